"""
Page rendering for slide editing.

Rasterizes PDF pages so they can be edited like any other slide image.
"""

import numpy as np
import fitz  # PyMuPDF

from ..logging import get_logger

logger = get_logger(__name__)

DEFAULT_RENDER_SCALE = 3.0


def render_page_to_image(
    page: fitz.Page,
    scale: float = DEFAULT_RENDER_SCALE
) -> np.ndarray:
    """
    Render a PDF page to an RGB numpy array.

    Args:
        page: PyMuPDF page object
        scale: Zoom relative to the page's 72 DPI size (default 3.0)

    Returns:
        uint8 array of shape (height, width, 3)
    """
    mat = fitz.Matrix(scale, scale)
    pix = page.get_pixmap(matrix=mat, colorspace=fitz.csRGB, alpha=False)

    img = np.frombuffer(pix.samples, dtype=np.uint8)
    # Rows may be padded past width * 3.
    img = img.reshape(pix.height, pix.stride)[:, :pix.width * 3]
    img = img.reshape(pix.height, pix.width, 3).copy()

    logger.debug(f"Rendered page to {img.shape} at scale {scale}")

    return img
