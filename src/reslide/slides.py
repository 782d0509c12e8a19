"""
Slide model and loading.

A slide is one editable raster: a rendered PDF page or an imported image.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from pathlib import Path
from typing import List, Optional, Tuple

import numpy as np
from PIL import Image, UnidentifiedImageError

from .logging import get_logger
from .pdf.ingestion import PdfDocument
from .pdf.rendering import DEFAULT_RENDER_SCALE

logger = get_logger(__name__)


class SlideLoadError(Exception):
    """Raised when a slide image or its erase input cannot be loaded."""


@dataclass(eq=False)
class Slide:
    index: int
    image: np.ndarray              # RGB uint8, (height, width, 3)
    source: Optional[str] = None

    @property
    def width(self) -> int:
        return int(self.image.shape[1])

    @property
    def height(self) -> int:
        return int(self.image.shape[0])

    def copy(self) -> Slide:
        return replace(self, image=self.image.copy())


def duplicate_slide_at_index(slides: List[Slide], source_index: int) -> Tuple[List[Slide], int]:
    """
    Insert a deep copy of ``slides[source_index]`` right after it.

    Returns the new list and the index of the inserted copy. An out-of-range
    index leaves the slides unchanged (a new list is still returned).
    """
    if source_index < 0 or source_index >= len(slides):
        return list(slides), source_index

    inserted_index = source_index + 1
    new_slides = list(slides)
    new_slides.insert(inserted_index, slides[source_index].copy())
    return new_slides, inserted_index


def load_image_slide(path: Path, index: int = 0) -> Slide:
    try:
        with Image.open(path) as img:
            rgb = np.array(img.convert("RGB"))
    except (OSError, UnidentifiedImageError) as exc:
        raise SlideLoadError(f"Failed to load image: {path}") from exc

    return Slide(index=index, image=rgb, source=str(path))


def load_slides(path: Path | str, scale: float = DEFAULT_RENDER_SCALE) -> List[Slide]:
    """
    Load a PDF (one slide per page) or a single image file.

    Raises:
        PdfOpenError: the PDF is missing, unreadable or encrypted
        SlideLoadError: the image is missing or unreadable
    """
    path = Path(path)

    if path.suffix.lower() != ".pdf":
        return [load_image_slide(path)]

    with PdfDocument(path, scale=scale) as doc:
        logger.info(f"Rendering {doc.page_count} pages from {path}")
        return [
            Slide(index=index, image=image, source=str(path))
            for index, image in doc.render_pages()
        ]


def load_slide(path: Path | str, index: int = 0, scale: float = DEFAULT_RENDER_SCALE) -> Slide:
    """
    Load one slide, rendering only that page of a PDF.

    An image file holds a single slide at index 0.

    Raises:
        IndexError: there is no slide at ``index``
        PdfOpenError: the PDF is missing, unreadable or encrypted
        SlideLoadError: the image is missing or unreadable
    """
    path = Path(path)

    if path.suffix.lower() != ".pdf":
        slide = load_image_slide(path)
        if index != 0:
            raise IndexError(f"Slide {index} out of range: {path} is a single image")
        return slide

    with PdfDocument(path, scale=scale) as doc:
        return Slide(index=index, image=doc.render_page(index), source=str(path))
