"""
Image payloads for text-removal requests.

Images travel to and from removal services as base64 data URLs. Large slides
are shrunk with a bounded JPEG recompression schedule before sending.
"""

import base64
import binascii
import io
import re
from typing import Optional

import numpy as np
from PIL import Image, UnidentifiedImageError

from ..logging import get_logger

logger = get_logger(__name__)

MAX_REQUEST_IMAGE_BYTES = 3_000_000

SHRINK_ATTEMPTS = 6
SHRINK_START_SCALE = 0.9
SHRINK_START_QUALITY = 0.9
SHRINK_SCALE_STEP = 0.07
SHRINK_QUALITY_STEP = 0.05
SHRINK_MIN_SCALE = 0.7
SHRINK_MIN_QUALITY = 0.68

EMERGENCY_SCALE = 0.65
EMERGENCY_QUALITY = 0.7

_DATA_URL_RE = re.compile(r"^data:([a-zA-Z0-9]+/[a-zA-Z0-9\-.+]+)?[^,]*,(.*)$", re.DOTALL)

_MIME_BY_FORMAT = {
    "PNG": "image/png",
    "JPEG": "image/jpeg",
    "WEBP": "image/webp",
}


class PayloadError(Exception):
    """Raised when a data URL cannot be decoded into an image."""


def _base64_part(data_url: str) -> str:
    return data_url.split(",", 1)[1] if "," in data_url else data_url


def mime_type_of(data_url: str, fallback: str = "image/png") -> str:
    match = _DATA_URL_RE.match(data_url)
    if match and match.group(1):
        return match.group(1)
    return fallback


def estimate_base64_bytes(data_url: str) -> int:
    """Decoded size of the base64 payload, estimated from its length."""
    return (len(_base64_part(data_url)) * 3) // 4


def image_to_data_url(image: np.ndarray, fmt: str = "PNG", quality: Optional[float] = None) -> str:
    """
    Encode an RGB (or grayscale) uint8 array as a data URL.

    ``quality`` is a 0-1 fraction and only applies to lossy formats.
    """
    fmt = fmt.upper()
    pil_image = Image.fromarray(np.ascontiguousarray(image))
    if fmt == "JPEG" and pil_image.mode not in ("RGB", "L"):
        pil_image = pil_image.convert("RGB")

    save_kwargs = {}
    if quality is not None and fmt in ("JPEG", "WEBP"):
        save_kwargs["quality"] = max(1, min(95, int(round(quality * 100))))

    buffer = io.BytesIO()
    pil_image.save(buffer, format=fmt, **save_kwargs)
    encoded = base64.b64encode(buffer.getvalue()).decode("ascii")
    mime = _MIME_BY_FORMAT.get(fmt, f"image/{fmt.lower()}")
    return f"data:{mime};base64,{encoded}"


def data_url_to_image(data_url: str) -> np.ndarray:
    """Decode a data URL (or bare base64 string) into an RGB uint8 array."""
    try:
        raw = base64.b64decode(_base64_part(data_url), validate=False)
        with Image.open(io.BytesIO(raw)) as img:
            return np.array(img.convert("RGB"))
    except (binascii.Error, ValueError, OSError, UnidentifiedImageError) as exc:
        raise PayloadError("Could not decode image payload") from exc


def compress_data_url(data_url: str, scale: float, quality: float) -> str:
    """Resize by ``scale`` and re-encode as JPEG at ``quality`` (0-1)."""
    image = data_url_to_image(data_url)
    height, width = image.shape[:2]
    new_width = max(1, int(round(width * scale)))
    new_height = max(1, int(round(height * scale)))

    resized = Image.fromarray(image).resize((new_width, new_height), Image.LANCZOS)
    return image_to_data_url(np.array(resized), fmt="JPEG", quality=quality)


def shrink_for_request_if_needed(data_url: str, max_bytes: int = MAX_REQUEST_IMAGE_BYTES) -> str:
    """
    Recompress ``data_url`` until its payload fits ``max_bytes``.

    Each attempt compounds on the previous one. After SHRINK_ATTEMPTS the last
    attempt is returned even if it is still too large.
    """
    if estimate_base64_bytes(data_url) <= max_bytes:
        return data_url

    scale = SHRINK_START_SCALE
    quality = SHRINK_START_QUALITY
    current = data_url

    for attempt in range(SHRINK_ATTEMPTS):
        current = compress_data_url(current, scale, quality)
        size = estimate_base64_bytes(current)
        logger.debug(f"Shrink attempt {attempt + 1}: scale={scale:.2f} quality={quality:.2f} -> {size} bytes")
        if size <= max_bytes:
            return current
        scale = max(SHRINK_MIN_SCALE, scale - SHRINK_SCALE_STEP)
        quality = max(SHRINK_MIN_QUALITY, quality - SHRINK_QUALITY_STEP)

    logger.warning(f"Payload still {estimate_base64_bytes(current)} bytes after {SHRINK_ATTEMPTS} shrink attempts")
    return current
