"""
Command line interface for Nodeflow Core
"""
