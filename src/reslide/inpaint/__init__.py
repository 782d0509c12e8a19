"""
Text removal for erase regions: request payloads, services and the
crop / clean / paste pipeline.
"""

from .payload import (
    PayloadError,
    image_to_data_url,
    data_url_to_image,
    estimate_base64_bytes,
    compress_data_url,
    shrink_for_request_if_needed,
)
from .service import (
    ServiceError,
    RequestTooLargeError,
    TextRemovalService,
    OpenCvTextRemover,
)
from .pipeline import (
    NoRegionsError,
    RegionStatus,
    RegionOutcome,
    EraseResult,
    crop_rect,
    paste_patch,
    inpaint_regions,
    erase_regions,
    erase_brush_regions,
    apply_erase_to_slides,
    remove_all_text,
)

__all__ = [
    'PayloadError',
    'image_to_data_url',
    'data_url_to_image',
    'estimate_base64_bytes',
    'compress_data_url',
    'shrink_for_request_if_needed',
    'ServiceError',
    'RequestTooLargeError',
    'TextRemovalService',
    'OpenCvTextRemover',
    'NoRegionsError',
    'RegionStatus',
    'RegionOutcome',
    'EraseResult',
    'crop_rect',
    'paste_patch',
    'inpaint_regions',
    'erase_regions',
    'erase_brush_regions',
    'apply_erase_to_slides',
    'remove_all_text',
]
