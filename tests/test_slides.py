import numpy as np
import pytest

from reslide.pdf.ingestion import EncryptedPdfError, PdfOpenError
from reslide.slides import Slide, SlideLoadError, duplicate_slide_at_index, load_slide, load_slides
from tests.helpers.factories import (
    make_multi_page_pdf,
    make_encrypted_pdf,
    make_text_like_image,
    save_image,
)


def make_slide(index: int, fill: int = 255) -> Slide:
    return Slide(index=index, image=np.full((10, 20, 3), fill, dtype=np.uint8))


class TestSlide:
    def test_dimensions_come_from_image(self):
        slide = make_slide(0)
        assert slide.width == 20
        assert slide.height == 10

    def test_copy_is_deep(self):
        slide = make_slide(0)
        clone = slide.copy()
        clone.image[0, 0] = 0

        assert slide.image[0, 0, 0] == 255
        assert clone.index == slide.index


class TestDuplicateSlideAtIndex:
    def test_inserts_copy_after_source(self):
        slides = [make_slide(0, 10), make_slide(1, 20)]

        new_slides, inserted = duplicate_slide_at_index(slides, 0)

        assert inserted == 1
        assert len(new_slides) == 3
        np.testing.assert_array_equal(new_slides[1].image, slides[0].image)
        assert new_slides[1] is not slides[0]
        assert new_slides[1].image is not slides[0].image
        assert new_slides[2] is slides[1]

    def test_original_list_untouched(self):
        slides = [make_slide(0)]
        duplicate_slide_at_index(slides, 0)
        assert len(slides) == 1

    @pytest.mark.parametrize("index", [-1, 2, 5])
    def test_out_of_range_index_is_a_no_op(self, index):
        slides = [make_slide(0), make_slide(1)]

        new_slides, inserted = duplicate_slide_at_index(slides, index)

        assert inserted == index
        assert len(new_slides) == len(slides)
        assert all(a is b for a, b in zip(new_slides, slides))
        assert new_slides is not slides


class TestLoadSlides:
    def test_pdf_gives_one_slide_per_page(self, tmp_path):
        pdf_path = make_multi_page_pdf(tmp_path, 3)

        slides = load_slides(pdf_path, scale=1.0)

        assert [s.index for s in slides] == [0, 1, 2]
        assert all(s.image.shape == (100, 200, 3) for s in slides)
        assert slides[0].source == str(pdf_path)

    def test_image_gives_single_slide(self, tmp_path):
        image = make_text_like_image(64, 48)
        path = save_image(tmp_path / "slide.png", image)

        slides = load_slides(path)

        assert len(slides) == 1
        np.testing.assert_array_equal(slides[0].image, image)

    def test_grayscale_image_is_converted_to_rgb(self, tmp_path):
        path = save_image(tmp_path / "gray.png", np.full((8, 8), 100, dtype=np.uint8))

        slides = load_slides(path)

        assert slides[0].image.shape == (8, 8, 3)

    def test_unreadable_image_raises(self, tmp_path):
        path = tmp_path / "broken.png"
        path.write_bytes(b"not an image")

        with pytest.raises(SlideLoadError):
            load_slides(path)

    def test_missing_image_raises(self, tmp_path):
        with pytest.raises(SlideLoadError):
            load_slides(tmp_path / "missing.jpg")

    def test_encrypted_pdf_raises(self, tmp_path):
        with pytest.raises(EncryptedPdfError):
            load_slides(make_encrypted_pdf(tmp_path))

    def test_missing_pdf_raises(self, tmp_path):
        with pytest.raises(PdfOpenError):
            load_slides(tmp_path / "missing.pdf")


class TestLoadSlide:
    def test_pdf_page_is_rendered_alone(self, tmp_path):
        pdf_path = make_multi_page_pdf(tmp_path, 3, ["One", "Two", "Three"])

        slide = load_slide(pdf_path, 2, scale=1.0)
        expected = load_slides(pdf_path, scale=1.0)[2]

        assert slide.index == 2
        assert slide.source == str(pdf_path)
        np.testing.assert_array_equal(slide.image, expected.image)

    def test_pdf_page_out_of_range(self, tmp_path):
        with pytest.raises(IndexError):
            load_slide(make_multi_page_pdf(tmp_path, 1), 1, scale=1.0)

    def test_image_is_slide_zero(self, tmp_path):
        path = save_image(tmp_path / "slide.png", make_text_like_image(64, 48))

        assert load_slide(path).image.shape == (48, 64, 3)
        with pytest.raises(IndexError):
            load_slide(path, 1)

    def test_encrypted_pdf_raises(self, tmp_path):
        with pytest.raises(EncryptedPdfError):
            load_slide(make_encrypted_pdf(tmp_path))
