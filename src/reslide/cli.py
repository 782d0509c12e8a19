from pathlib import Path
from typing import List, Optional
import json

import numpy as np
import typer
from PIL import Image, UnidentifiedImageError

from .config import Settings
from .logging import get_logger
from .mask.regions import extract_connected_mask_rects
from .mask.brush import ErasePath, min_pixels_for_brush, render_erase_mask
from .pdf.ingestion import EncryptedPdfError, PdfOpenError
from .slides import Slide, SlideLoadError, load_slide
from .inpaint.service import OpenCvTextRemover, ServiceError
from .inpaint.payload import PayloadError
from .inpaint.pipeline import NoRegionsError, erase_regions, remove_all_text
from .output.report import build_erase_report, write_erase_report

app = typer.Typer(help="RESLIDE – erase text from slides region by region", no_args_is_help=True)

_defaults = Settings()


def _load_mask(mask_path: Path) -> np.ndarray:
    """Read a mask image; any non-zero gray level counts as painted."""
    try:
        with Image.open(mask_path) as img:
            return np.array(img.convert("L"))
    except (OSError, UnidentifiedImageError) as exc:
        raise SlideLoadError(f"Failed to load mask: {mask_path}") from exc


def _load_strokes(strokes_path: Path) -> List[ErasePath]:
    """Read brush strokes: a JSON list of {"points": [[x, y], ...], "size": d, "mode": "add"}."""
    try:
        raw = json.loads(strokes_path.read_text(encoding="utf-8"))
        return [
            ErasePath(
                points=[(float(x), float(y)) for x, y in item["points"]],
                size=float(item.get("size", 28)),
                mode=item.get("mode", "add"),
            )
            for item in raw
        ]
    except (OSError, ValueError, KeyError, TypeError) as exc:
        raise SlideLoadError(f"Failed to load strokes: {strokes_path}") from exc


def _load_slide(source: Path, page: int, scale: float, logger) -> Slide:
    try:
        return load_slide(source, page, scale=scale)
    except EncryptedPdfError as exc:
        logger.error(f"Cannot process encrypted PDF: {exc}")
        raise typer.Exit(code=2) from exc
    except (PdfOpenError, SlideLoadError) as exc:
        logger.error(f"Failed to load input: {exc}")
        raise typer.Exit(code=1) from exc
    except IndexError as exc:
        logger.error(str(exc))
        raise typer.Exit(code=1) from exc


@app.command()
def regions(
    mask_path: Path = typer.Argument(..., exists=True, readable=True, help="Mask image; non-zero pixels are painted"),
    min_pixels: int = typer.Option(_defaults.min_pixels, min=0, help="Drop regions with fewer pixels than this"),
) -> None:
    """
    Print the bounding rectangles of the painted regions of a mask as JSON.
    """
    logger = get_logger(__name__)

    try:
        mask = _load_mask(mask_path)
    except SlideLoadError as exc:
        logger.error(str(exc))
        raise typer.Exit(code=1) from exc

    height, width = mask.shape
    rects = extract_connected_mask_rects(mask, width, height, min_pixels)
    logger.info(f"Found {len(rects)} regions in {width}x{height} mask")
    typer.echo(json.dumps([rect.to_dict() for rect in rects]))


@app.command()
def erase(
    source: Path = typer.Argument(..., exists=True, readable=True, help="PDF or image to clean"),
    mask_path: Optional[Path] = typer.Option(None, "--mask", "-m", exists=True, readable=True, help="Mask image matching the slide size"),
    strokes_path: Optional[Path] = typer.Option(None, "--strokes", "-s", exists=True, readable=True, help="JSON brush strokes to rasterize instead of a mask"),
    page: int = typer.Option(0, min=0, help="Zero-based page index for PDF sources"),
    min_pixels: Optional[int] = typer.Option(None, min=0, help="Drop regions with fewer pixels than this"),
    brush_size: Optional[float] = typer.Option(None, min=1, help="Derive --min-pixels from the brush diameter"),
    out: Path = typer.Option(_defaults.output_dir, "--out", "-o", help="Output directory"),
    scale: float = typer.Option(_defaults.render_scale, help="PDF render scale relative to 72 DPI"),
    inpaint_radius: int = typer.Option(_defaults.inpaint_radius, min=1, help="OpenCV inpainting radius"),
    write_report: bool = typer.Option(True, "--report/--no-report", help="Write erase_report.json"),
) -> None:
    """
    Erase the text under every painted region of a mask or set of strokes.

    Each connected region is cropped from the slide, cleaned with OpenCV
    inpainting and pasted back. The result is written as a PNG.
    """
    logger = get_logger(__name__)

    if (mask_path is None) == (strokes_path is None):
        logger.error("Pass exactly one of --mask or --strokes")
        raise typer.Exit(code=1)

    slide = _load_slide(source, page, scale, logger)

    try:
        if mask_path is not None:
            mask = _load_mask(mask_path)
        else:
            paths = _load_strokes(strokes_path)
            mask = render_erase_mask(slide.width, slide.height, paths)
            if brush_size is None and paths:
                brush_size = max(path.size for path in paths)
    except SlideLoadError as exc:
        logger.error(str(exc))
        raise typer.Exit(code=1) from exc

    if min_pixels is None:
        if brush_size is not None:
            min_pixels = min_pixels_for_brush(brush_size, floor=_defaults.brush_min_pixels_floor)
        else:
            min_pixels = _defaults.min_pixels

    if mask.shape != (slide.height, slide.width):
        logger.warning(
            f"Mask is {mask.shape[1]}x{mask.shape[0]} but slide is {slide.width}x{slide.height}; no regions will match"
        )

    rects = extract_connected_mask_rects(mask, slide.width, slide.height, min_pixels)
    remover = OpenCvTextRemover(inpaint_radius=inpaint_radius)

    try:
        result = erase_regions(slide, rects, remover, min_pixels=min_pixels)
    except NoRegionsError as exc:
        logger.error(f"{exc} (min_pixels={min_pixels})")
        raise typer.Exit(code=1) from exc

    image_path = _save_image(result.image, out, f"{source.stem}_erased.png")
    logger.info(f"Wrote {image_path}")

    if write_report:
        report = build_erase_report(source, page, result, output_image=image_path)
        write_erase_report(report, out)

    typer.echo(f"Erased {result.cleaned_count}/{len(result.rects)} regions -> {image_path}")
    if result.failed_count:
        typer.echo(f"{result.failed_count} regions failed, see log for details")


@app.command()
def clean(
    source: Path = typer.Argument(..., exists=True, readable=True, help="PDF or image to clean"),
    page: int = typer.Option(0, min=0, help="Zero-based page index for PDF sources"),
    out: Path = typer.Option(_defaults.output_dir, "--out", "-o", help="Output directory"),
    scale: float = typer.Option(_defaults.render_scale, help="PDF render scale relative to 72 DPI"),
    inpaint_radius: int = typer.Option(_defaults.inpaint_radius, min=1, help="OpenCV inpainting radius"),
) -> None:
    """
    Remove all text from a whole slide in a single request.
    """
    logger = get_logger(__name__)

    slide = _load_slide(source, page, scale, logger)
    remover = OpenCvTextRemover(inpaint_radius=inpaint_radius)

    try:
        cleaned = remove_all_text(slide.image, remover, max_bytes=_defaults.max_request_image_bytes)
    except (PayloadError, ServiceError) as exc:
        logger.error(f"Text removal failed: {exc}")
        raise typer.Exit(code=1) from exc

    if cleaned is None:
        logger.error("Text removal returned no image")
        raise typer.Exit(code=1)

    image_path = _save_image(cleaned, out, f"{source.stem}_clean.png")
    typer.echo(f"Cleaned slide {page} -> {image_path}")


def _save_image(image: np.ndarray, out: Path, file_name: str) -> Path:
    out.mkdir(parents=True, exist_ok=True)
    image_path = out / file_name
    Image.fromarray(image).save(image_path)
    return image_path


def main() -> None:
    app()


if __name__ == "__main__":
    main()
