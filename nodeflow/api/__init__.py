"""
HTTP API for Nodeflow Core
"""
