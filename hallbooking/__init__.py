"""
Hall booking availability and conflict-resolution engine.
"""

__version__ = "1.0.0"
