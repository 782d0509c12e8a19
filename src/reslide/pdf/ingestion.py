"""
Slide deck PDFs.

A deck is opened once and its pages are rasterized on demand, so a caller that
edits a single slide never renders the rest of the deck.
"""

from __future__ import annotations

from pathlib import Path
from typing import Iterator, Tuple

import fitz  # type: ignore[import]
import numpy as np

from ..logging import get_logger
from .rendering import render_page_to_image, DEFAULT_RENDER_SCALE

logger = get_logger(__name__)


class PdfOpenError(Exception):
    """Raised when a slide deck PDF cannot be opened."""


class EncryptedPdfError(PdfOpenError):
    """Raised when a PDF is password-protected."""


class PdfDocument:
    """An open slide deck whose pages render to RGB arrays at ``scale``."""

    def __init__(self, source: Path | str, scale: float = DEFAULT_RENDER_SCALE) -> None:
        self.scale = scale
        self._doc = _open_deck(Path(source))

    @property
    def page_count(self) -> int:
        return self._doc.page_count

    def render_page(self, index: int) -> np.ndarray:
        """
        Rasterize one page by zero-based index.

        Raises:
            IndexError: the deck has no such page
        """
        if index < 0 or index >= self.page_count:
            raise IndexError(f"Page {index} out of range for {self.page_count}-page PDF")
        return render_page_to_image(self._doc.load_page(index), scale=self.scale)

    def render_pages(self) -> Iterator[Tuple[int, np.ndarray]]:
        """Yield ``(index, image)`` for every page in order."""
        for index in range(self.page_count):
            yield index, self.render_page(index)

    def close(self) -> None:
        if self._doc is not None:
            self._doc.close()
            self._doc = None

    def __enter__(self) -> PdfDocument:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


def _open_deck(path: Path) -> fitz.Document:
    if not path.exists():
        raise PdfOpenError(f"PDF file does not exist: {path}")

    try:
        doc = fitz.open(path)
    except Exception as exc:
        raise PdfOpenError(f"Failed to open PDF: {path}") from exc

    if doc.needs_pass:
        doc.close()
        raise EncryptedPdfError(f"PDF is encrypted: {path}")

    logger.debug(f"Opened {path} with {doc.page_count} pages")
    return doc
