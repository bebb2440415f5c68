"""
Tools for previewing archival newspaper clippings.
"""

__version__ = '0.1.0'
