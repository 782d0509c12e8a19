"""
Connected-region extraction for erase masks.

Turns a binary erase mask into one bounding rectangle per 4-connected blob of
painted pixels, so each blob can be cleaned independently.
"""

from dataclasses import dataclass, asdict
from typing import Any, Dict, List, Tuple

import numpy as np

from ..logging import get_logger

logger = get_logger(__name__)

DEFAULT_MIN_PIXELS = 80


@dataclass(frozen=True)
class Rect:
    """Axis-aligned rectangle in pixel units."""

    x: int
    y: int
    width: int
    height: int

    @property
    def right(self) -> int:
        """Exclusive right edge."""
        return self.x + self.width

    @property
    def bottom(self) -> int:
        """Exclusive bottom edge."""
        return self.y + self.height

    @property
    def area(self) -> int:
        return self.width * self.height

    def as_tuple(self) -> Tuple[int, int, int, int]:
        return (self.x, self.y, self.width, self.height)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return asdict(self)


def _as_flat_mask(mask) -> np.ndarray:
    if isinstance(mask, np.ndarray):
        return mask.reshape(-1)
    if isinstance(mask, (bytes, bytearray, memoryview)):
        return np.frombuffer(mask, dtype=np.uint8)
    return np.asarray(mask).reshape(-1)


def extract_connected_mask_rects(
    mask,
    width: int,
    height: int,
    min_pixels: int = DEFAULT_MIN_PIXELS
) -> List[Rect]:
    """
    Partition the painted pixels of a mask into 4-connected components.

    Args:
        mask: Row-major buffer of ``width * height`` bytes (bytes, sequence or
            numpy array). Any non-zero value counts as painted.
        width: Mask width in pixels
        height: Mask height in pixels
        min_pixels: Components with fewer pixels than this are dropped

    Returns:
        One tight bounding Rect per surviving component, sorted top-to-bottom,
        then left-to-right. Empty if the buffer length does not match the
        dimensions.
    """
    flat = _as_flat_mask(mask)
    total = width * height
    if width <= 0 or height <= 0 or flat.size != total:
        logger.debug(f"Mask length {flat.size} does not match {width}x{height}, skipping")
        return []

    foreground = flat != 0
    painted = foreground.astype(np.uint8).tobytes()
    visited = bytearray(total)
    rects: List[Rect] = []
    stack: List[int] = []

    # Seeds come out of flatnonzero in row-major order.
    for seed in np.flatnonzero(foreground).tolist():
        if visited[seed]:
            continue

        visited[seed] = 1
        stack.append(seed)

        count = 0
        min_x, min_y = width, height
        max_x, max_y = 0, 0

        while stack:
            current = stack.pop()
            y, x = divmod(current, width)
            count += 1

            if x < min_x:
                min_x = x
            if x > max_x:
                max_x = x
            if y < min_y:
                min_y = y
            if y > max_y:
                max_y = y

            # Visit on push so each pixel enters the stack once.
            if x > 0:
                neighbor = current - 1
                if not visited[neighbor] and painted[neighbor]:
                    visited[neighbor] = 1
                    stack.append(neighbor)
            if x < width - 1:
                neighbor = current + 1
                if not visited[neighbor] and painted[neighbor]:
                    visited[neighbor] = 1
                    stack.append(neighbor)
            if y > 0:
                neighbor = current - width
                if not visited[neighbor] and painted[neighbor]:
                    visited[neighbor] = 1
                    stack.append(neighbor)
            if y < height - 1:
                neighbor = current + width
                if not visited[neighbor] and painted[neighbor]:
                    visited[neighbor] = 1
                    stack.append(neighbor)

        if count >= min_pixels:
            rects.append(Rect(
                x=min_x,
                y=min_y,
                width=max_x - min_x + 1,
                height=max_y - min_y + 1
            ))

    logger.debug(f"Extracted {len(rects)} regions from {width}x{height} mask")

    return sorted(rects, key=lambda r: (r.y, r.x))
