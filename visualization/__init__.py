"""
Visualization Package

Contains the framework-agnostic view controller for the isodose overlay.
"""

from .slice_viewer import SliceViewer

__all__ = [
    'SliceViewer',
]
