"""
Region inpainting pipeline.

Crops each erase region out of a slide, sends it to a text-removal service
and pastes the cleaned patch back. Regions are processed in order against the
working image, and a failure on one region never stops the others.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Sequence, Tuple

import numpy as np
import cv2

from .payload import (
    image_to_data_url,
    data_url_to_image,
    compress_data_url,
    shrink_for_request_if_needed,
    EMERGENCY_SCALE,
    EMERGENCY_QUALITY,
    MAX_REQUEST_IMAGE_BYTES,
)
from .service import TextRemovalService, RequestTooLargeError
from ..mask.regions import Rect
from ..mask.brush import ErasePath, extract_brush_rects
from ..slides import Slide, duplicate_slide_at_index
from ..logging import get_logger

logger = get_logger(__name__)


class NoRegionsError(Exception):
    """Raised when the painted strokes produce no region large enough to erase."""


class RegionStatus(str, Enum):
    CLEANED = "cleaned"
    EMPTY = "empty"
    FAILED = "failed"


@dataclass(frozen=True)
class RegionOutcome:
    rect: Rect
    status: RegionStatus
    error: Optional[str] = None


@dataclass
class EraseResult:
    """Outcome of erasing the brush regions of one slide."""
    image: np.ndarray
    rects: List[Rect]
    outcomes: List[RegionOutcome] = field(default_factory=list)
    min_pixels: int = 0

    @property
    def cleaned_count(self) -> int:
        return sum(1 for o in self.outcomes if o.status == RegionStatus.CLEANED)

    @property
    def failed_count(self) -> int:
        return sum(1 for o in self.outcomes if o.status == RegionStatus.FAILED)


def _clip_rect(rect: Rect, image_width: int, image_height: int) -> Optional[Rect]:
    x0 = max(0, rect.x)
    y0 = max(0, rect.y)
    x1 = min(image_width, rect.right)
    y1 = min(image_height, rect.bottom)
    if x1 <= x0 or y1 <= y0:
        return None
    return Rect(x=x0, y=y0, width=x1 - x0, height=y1 - y0)


def crop_rect(image: np.ndarray, rect: Rect) -> np.ndarray:
    """Copy the pixels under ``rect``, clipped to the image."""
    clipped = _clip_rect(rect, image.shape[1], image.shape[0])
    if clipped is None:
        raise ValueError(f"Rect {rect.as_tuple()} lies outside {image.shape[1]}x{image.shape[0]} image")
    return image[clipped.y:clipped.bottom, clipped.x:clipped.right].copy()


def paste_patch(image: np.ndarray, patch: np.ndarray, rect: Rect) -> np.ndarray:
    """
    Return a copy of ``image`` with ``patch`` drawn into ``rect``.

    ``rect`` is clipped to the image. A patch the size of the clipped rect
    (what ``crop_rect`` produces) is pasted as is, and a patch the size of the
    full rect is cut down to the visible part. Any other size is stretched to
    the clipped rect.
    """
    clipped = _clip_rect(rect, image.shape[1], image.shape[0])
    if clipped is None:
        raise ValueError(f"Rect {rect.as_tuple()} lies outside {image.shape[1]}x{image.shape[0]} image")

    size = patch.shape[:2]
    if size == (rect.height, rect.width):
        off_x = clipped.x - rect.x
        off_y = clipped.y - rect.y
        patch = patch[off_y:off_y + clipped.height, off_x:off_x + clipped.width]
    elif size != (clipped.height, clipped.width):
        patch = cv2.resize(patch, (clipped.width, clipped.height), interpolation=cv2.INTER_LINEAR)

    result = image.copy()
    result[clipped.y:clipped.bottom, clipped.x:clipped.right] = patch
    return result


def inpaint_regions(
    image: np.ndarray,
    rects: Sequence[Rect],
    service: TextRemovalService
) -> Tuple[np.ndarray, List[RegionOutcome]]:
    """
    Clean every rect of ``image`` through ``service``.

    Each crop is taken from the working image, so later regions see earlier
    pastes. Returns the final image and one outcome per rect.
    """
    working = image
    outcomes = []

    for i, rect in enumerate(rects):
        try:
            crop = crop_rect(working, rect)
            cleaned_url = service.remove_text(image_to_data_url(crop))
            if cleaned_url is None:
                logger.warning(f"Region {i + 1}/{len(rects)} {rect.as_tuple()}: service returned no image")
                outcomes.append(RegionOutcome(rect=rect, status=RegionStatus.EMPTY))
                continue
            working = paste_patch(working, data_url_to_image(cleaned_url), rect)
            outcomes.append(RegionOutcome(rect=rect, status=RegionStatus.CLEANED))
        except Exception as exc:
            logger.error(f"Region {i + 1}/{len(rects)} {rect.as_tuple()} failed: {exc}")
            outcomes.append(RegionOutcome(rect=rect, status=RegionStatus.FAILED, error=str(exc)))

    logger.debug(f"Inpainted {sum(1 for o in outcomes if o.status == RegionStatus.CLEANED)}/{len(rects)} regions")

    return working, outcomes


def erase_regions(
    slide: Slide,
    rects: Sequence[Rect],
    service: TextRemovalService,
    min_pixels: int = 0
) -> EraseResult:
    if not rects:
        raise NoRegionsError("No region is large enough to erase; paint a larger area")

    image, outcomes = inpaint_regions(slide.image, rects, service)
    return EraseResult(image=image, rects=list(rects), outcomes=outcomes, min_pixels=min_pixels)


def erase_brush_regions(
    slide: Slide,
    paths: Sequence[ErasePath],
    brush_size: float,
    service: TextRemovalService
) -> EraseResult:
    """
    Rasterize brush strokes over ``slide`` and erase each painted region.

    Raises:
        NoRegionsError: no stroke, or every painted blob is below the brush
            noise threshold
    """
    if not paths:
        raise NoRegionsError("No strokes to erase")

    rects, min_pixels = extract_brush_rects(slide.width, slide.height, paths, brush_size)
    logger.info(f"Found {len(rects)} regions (min_pixels={min_pixels})")
    return erase_regions(slide, rects, service, min_pixels=min_pixels)


def apply_erase_to_slides(slides: List[Slide], index: int, result: EraseResult) -> List[Slide]:
    """
    Replace slide ``index`` with the erased image, keeping the untouched
    original right after it.
    """
    new_slides, _ = duplicate_slide_at_index(slides, index)
    if 0 <= index < len(slides):
        new_slides[index] = Slide(index=slides[index].index, image=result.image, source=slides[index].source)
    return new_slides


def remove_all_text(
    image: np.ndarray,
    service: TextRemovalService,
    max_bytes: int = MAX_REQUEST_IMAGE_BYTES
) -> Optional[np.ndarray]:
    """
    Clean a whole slide in one request.

    Oversized payloads are shrunk first. If the backend still rejects the
    size, the original is recompressed once more aggressively and retried.
    """
    original_url = image_to_data_url(image)
    prepared = shrink_for_request_if_needed(original_url, max_bytes=max_bytes)

    try:
        cleaned_url = service.remove_text(prepared)
    except RequestTooLargeError:
        logger.warning("Request rejected as too large, retrying with emergency compression")
        emergency = compress_data_url(original_url, EMERGENCY_SCALE, EMERGENCY_QUALITY)
        cleaned_url = service.remove_text(emergency)

    if cleaned_url is None:
        return None

    cleaned = data_url_to_image(cleaned_url)
    if cleaned.shape[:2] != image.shape[:2]:
        cleaned = cv2.resize(cleaned, (image.shape[1], image.shape[0]), interpolation=cv2.INTER_LINEAR)
    return cleaned
