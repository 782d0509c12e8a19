from .ingestion import PdfDocument, PdfOpenError, EncryptedPdfError
from .rendering import render_page_to_image, DEFAULT_RENDER_SCALE

__all__ = [
    'PdfDocument',
    'PdfOpenError',
    'EncryptedPdfError',
    'render_page_to_image',
    'DEFAULT_RENDER_SCALE',
]
