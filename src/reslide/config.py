from dataclasses import dataclass
from pathlib import Path


@dataclass
class Settings:
    output_dir: Path = Path("output")
    min_pixels: int = 80
    brush_min_pixels_floor: int = 120
    render_scale: float = 3.0
    max_request_image_bytes: int = 3_000_000
    inpaint_radius: int = 3
