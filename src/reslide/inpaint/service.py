"""
Text-removal services.

A service takes an image data URL and returns a data URL of the same picture
with its text removed. Remote generative backends plug in behind the
TextRemovalService protocol; OpenCvTextRemover is the local implementation.
"""

from typing import Optional, Protocol

import numpy as np
import cv2

from .payload import data_url_to_image, image_to_data_url, mime_type_of
from ..logging import get_logger

logger = get_logger(__name__)

_INPAINT_FLAGS = {
    "telea": cv2.INPAINT_TELEA,
    "ns": cv2.INPAINT_NS,
}

_FORMAT_BY_MIME = {
    "image/png": "PNG",
    "image/jpeg": "JPEG",
    "image/jpg": "JPEG",
    "image/webp": "WEBP",
}


class ServiceError(Exception):
    """Raised when a text-removal backend rejects or fails a request."""


class RequestTooLargeError(ServiceError):
    """Raised when a backend rejects a request for exceeding its size limit."""


class TextRemovalService(Protocol):
    def remove_text(self, data_url: str) -> Optional[str]:
        """Return a cleaned image data URL, or None if nothing was produced."""
        ...


def _odd(value: int) -> int:
    return value if value % 2 == 1 else value + 1


def build_text_mask(image: np.ndarray, min_delta: int = 8) -> np.ndarray:
    """
    Estimate which pixels of an RGB crop are text strokes.

    The background is approximated with a large median blur; pixels that
    differ from it (darker or lighter, whichever polarity is stronger) are
    thresholded with Otsu and dilated to cover anti-aliasing.
    """
    height, width = image.shape[:2]
    empty = np.zeros((height, width), dtype=np.uint8)
    if height < 3 or width < 3:
        return empty

    bgr = cv2.cvtColor(image, cv2.COLOR_RGB2BGR)
    gray = cv2.cvtColor(bgr, cv2.COLOR_BGR2GRAY)

    ksize = _odd(min(61, max(15, min(height, width) // 6)))
    # medianBlur needs the kernel to fit inside the image.
    ksize = min(ksize, _odd(min(height, width)) - 2)
    if ksize < 3:
        return empty
    background = cv2.cvtColor(cv2.medianBlur(bgr, ksize), cv2.COLOR_BGR2GRAY)

    best_mask = empty
    best_strength = 0.0
    for delta in (cv2.subtract(background, gray), cv2.subtract(gray, background)):
        if int(delta.max()) < min_delta:
            continue
        threshold, _ = cv2.threshold(delta, 0, 255, cv2.THRESH_BINARY + cv2.THRESH_OTSU)
        threshold = max(min_delta, int(threshold))
        candidate = (delta >= threshold).astype(np.uint8) * 255
        if not np.any(candidate):
            continue
        strength = float(np.median(delta[candidate > 0]))
        if strength > best_strength:
            best_mask, best_strength = candidate, strength

    if np.any(best_mask):
        best_mask = cv2.dilate(best_mask, np.ones((3, 3), np.uint8), iterations=2)

    return best_mask


class OpenCvTextRemover:
    """Local text removal using classical inpainting."""

    def __init__(self, inpaint_radius: int = 3, method: str = "telea") -> None:
        if method not in _INPAINT_FLAGS:
            raise ValueError(f"Unknown inpaint method: {method}. Must be one of {sorted(_INPAINT_FLAGS)}")
        self.inpaint_radius = inpaint_radius
        self.method = method

    def remove_text(self, data_url: str) -> Optional[str]:
        image = data_url_to_image(data_url)
        mask = build_text_mask(image)

        if not np.any(mask):
            logger.debug(f"No text strokes found in {image.shape[1]}x{image.shape[0]} crop")
            return data_url

        bgr = cv2.cvtColor(image, cv2.COLOR_RGB2BGR)
        cleaned = cv2.inpaint(bgr, mask, float(self.inpaint_radius), _INPAINT_FLAGS[self.method])
        result = cv2.cvtColor(cleaned, cv2.COLOR_BGR2RGB)

        fmt = _FORMAT_BY_MIME.get(mime_type_of(data_url), "PNG")
        return image_to_data_url(result, fmt=fmt)
