"""
Nodeflow Core
Execution engine for visual node pipelines
"""
__version__ = "0.1.0"
