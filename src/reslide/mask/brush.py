"""
Erase-brush rasterization.

Renders freehand brush strokes into a single-channel erase mask and derives
the noise threshold used when splitting that mask into regions.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Sequence, Tuple

import math
import numpy as np
import cv2

from .regions import Rect, extract_connected_mask_rects
from ..logging import get_logger

logger = get_logger(__name__)

BRUSH_MIN_PIXELS_FLOOR = 120

MASK_ON = 255
MASK_OFF = 0


class StrokeMode(str, Enum):
    ADD = "add"
    SUBTRACT = "subtract"

    @classmethod
    def _missing_(cls, value):
        # The editor toolbar labels the subtract brush "remove".
        if value == "remove":
            return cls.SUBTRACT
        return None


@dataclass
class ErasePath:
    """A single brush stroke: polyline, diameter and compositing mode."""
    points: List[Tuple[float, float]] = field(default_factory=list)
    size: float = 28.0
    mode: StrokeMode = StrokeMode.ADD

    def __post_init__(self) -> None:
        self.mode = StrokeMode(self.mode)


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def min_pixels_for_brush(diameter: float, floor: int = BRUSH_MIN_PIXELS_FLOOR) -> int:
    """
    Noise threshold for a brush of the given diameter.

    Proportional to the brush footprint so thick brushes are not over-filtered,
    but never below ``floor`` so accidental taps are rejected.
    """
    return max(floor, _round_half_up(diameter * diameter / 3))


def render_erase_mask(width: int, height: int, paths: Sequence[ErasePath]) -> np.ndarray:
    """
    Composite brush strokes into a (height, width) uint8 mask of 0/255.

    Strokes are drawn anti-aliased and applied in order: ``add`` blends
    coverage in, ``subtract`` blends whatever earlier strokes painted back
    out. Caps and joins are round. Any pixel left with non-zero coverage is
    on, so the soft edge of an added stroke counts as painted and a subtract
    stroke only clears the pixels it fully covers.
    """
    coverage = np.zeros((height, width), dtype=np.uint8)

    for path in paths:
        if not path.points:
            continue

        value = MASK_ON if path.mode == StrokeMode.ADD else MASK_OFF
        thickness = max(1, _round_half_up(path.size))
        pts = [(_round_half_up(x), _round_half_up(y)) for x, y in path.points]

        for start, end in zip(pts, pts[1:]):
            cv2.line(coverage, start, end, value, thickness=thickness, lineType=cv2.LINE_AA)

        # Discs at every vertex give round caps and joins, and cover
        # single-point taps.
        disc_radius = thickness // 2
        for point in pts:
            cv2.circle(coverage, point, disc_radius, value, thickness=-1, lineType=cv2.LINE_AA)

    logger.debug(f"Rendered {len(paths)} strokes into {width}x{height} mask")

    return np.where(coverage > 0, MASK_ON, MASK_OFF).astype(np.uint8)


def extract_brush_rects(
    width: int,
    height: int,
    paths: Sequence[ErasePath],
    brush_size: float
) -> Tuple[List[Rect], int]:
    """Render strokes and split them into regions with the brush noise policy.

    Returns the regions and the min_pixels threshold that was applied.
    """
    mask = render_erase_mask(width, height, paths)
    min_pixels = min_pixels_for_brush(brush_size)
    rects = extract_connected_mask_rects(mask, width, height, min_pixels)
    return rects, min_pixels
