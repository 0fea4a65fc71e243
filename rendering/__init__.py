"""
Rendering Package

Window/level grayscale rendering and isodose slice compositing.
"""

from .window_level import (
    to_gray8,
    render_grayscale,
    sanitize_window,
    detect_hu_offset,
    auto_window,
    center_voxel,
    get_preset,
)
from .compositor import (
    RenderMode,
    ViewState,
    OverlayShape,
    StatusSummary,
    DoseOverlay,
    RenderResult,
    SliceCompositor,
    compose_overlay,
    blend,
)

__all__ = [
    'to_gray8',
    'render_grayscale',
    'sanitize_window',
    'detect_hu_offset',
    'auto_window',
    'center_voxel',
    'get_preset',
    'RenderMode',
    'ViewState',
    'OverlayShape',
    'StatusSummary',
    'DoseOverlay',
    'RenderResult',
    'SliceCompositor',
    'compose_overlay',
    'blend',
]
