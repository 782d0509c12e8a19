"""
Tests for request payload encoding and the shrink-and-retry schedule.
"""

import base64

import numpy as np
import pytest

from reslide.inpaint import payload
from reslide.inpaint.payload import (
    PayloadError,
    image_to_data_url,
    data_url_to_image,
    estimate_base64_bytes,
    compress_data_url,
    shrink_for_request_if_needed,
    mime_type_of,
    MAX_REQUEST_IMAGE_BYTES,
)
from tests.helpers.factories import make_text_like_image


def noisy_image(width: int, height: int, seed: int = 0) -> np.ndarray:
    rng = np.random.default_rng(seed)
    return rng.integers(0, 256, size=(height, width, 3), dtype=np.uint8)


class TestDataUrls:
    def test_png_is_lossless(self):
        image = make_text_like_image()
        url = image_to_data_url(image)

        assert url.startswith("data:image/png;base64,")
        np.testing.assert_array_equal(data_url_to_image(url), image)

    def test_jpeg_mime_type(self):
        url = image_to_data_url(make_text_like_image(), fmt="jpeg", quality=0.8)
        assert url.startswith("data:image/jpeg;base64,")
        assert mime_type_of(url) == "image/jpeg"

    def test_mime_type_fallback_for_bare_base64(self):
        assert mime_type_of("iVBORw0KGgo") == "image/png"

    def test_bare_base64_decodes(self):
        url = image_to_data_url(make_text_like_image(10, 8))
        bare = url.split(",", 1)[1]
        assert data_url_to_image(bare).shape == (8, 10, 3)

    def test_garbage_raises_payload_error(self):
        garbage = "data:image/png;base64," + base64.b64encode(b"not an image").decode("ascii")
        with pytest.raises(PayloadError):
            data_url_to_image(garbage)


class TestEstimateBase64Bytes:
    def test_uses_payload_after_comma(self):
        assert estimate_base64_bytes("data:image/png;base64,AAAA") == 3
        assert estimate_base64_bytes("AAAAAAAA") == 6

    def test_matches_decoded_length_without_padding(self):
        raw = bytes(range(255)) * 4   # 1020 bytes, divisible by 3
        url = "data:application/octet-stream;base64," + base64.b64encode(raw).decode("ascii")
        assert estimate_base64_bytes(url) == len(raw)


class TestCompressDataUrl:
    def test_scales_dimensions_and_switches_to_jpeg(self):
        url = image_to_data_url(make_text_like_image(100, 50))

        compressed = compress_data_url(url, scale=0.5, quality=0.7)

        assert compressed.startswith("data:image/jpeg;base64,")
        assert data_url_to_image(compressed).shape == (25, 50, 3)

    def test_never_collapses_below_one_pixel(self):
        url = image_to_data_url(make_text_like_image(3, 3, strokes=()))
        compressed = compress_data_url(url, scale=0.01, quality=0.7)
        assert data_url_to_image(compressed).shape == (1, 1, 3)


class TestShrinkForRequest:
    def test_default_limit(self):
        assert MAX_REQUEST_IMAGE_BYTES == 3_000_000

    def test_small_payload_returned_unchanged(self):
        url = image_to_data_url(make_text_like_image())
        assert shrink_for_request_if_needed(url) is url

    def test_shrinks_until_under_limit(self):
        url = image_to_data_url(noisy_image(200, 200))
        limit = estimate_base64_bytes(url) // 2

        shrunk = shrink_for_request_if_needed(url, max_bytes=limit)

        assert estimate_base64_bytes(shrunk) <= limit
        assert shrunk.startswith("data:image/jpeg")

    def test_gives_up_after_bounded_attempts(self, monkeypatch):
        calls = []
        real_compress = payload.compress_data_url

        def counting_compress(data_url, scale, quality):
            calls.append((round(scale, 2), round(quality, 2)))
            return real_compress(data_url, scale, quality)

        monkeypatch.setattr(payload, "compress_data_url", counting_compress)
        url = image_to_data_url(noisy_image(40, 40))

        result = shrink_for_request_if_needed(url, max_bytes=1)

        assert len(calls) == payload.SHRINK_ATTEMPTS
        assert calls[0] == (0.9, 0.9)
        assert calls[1] == (0.83, 0.85)
        # Scale and quality bottom out at their floors
        assert calls[-1] == (0.7, 0.68)
        assert estimate_base64_bytes(result) > 1
