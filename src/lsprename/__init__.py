"""
lsprename - rename support for the Language Server Protocol.
"""

__version__ = "0.1.0"
