"""
Erase masks: brush rasterization and connected-region extraction.
"""

from .regions import Rect, extract_connected_mask_rects, DEFAULT_MIN_PIXELS
from .brush import (
    ErasePath,
    StrokeMode,
    render_erase_mask,
    min_pixels_for_brush,
    extract_brush_rects,
)

__all__ = [
    'Rect',
    'extract_connected_mask_rects',
    'DEFAULT_MIN_PIXELS',
    'ErasePath',
    'StrokeMode',
    'render_erase_mask',
    'min_pixels_for_brush',
    'extract_brush_rects',
]
