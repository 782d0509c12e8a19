"""
Erase report generation.

Writes a JSON summary of one erase run: which regions were found and what
happened to each of them.
"""

import json
from dataclasses import dataclass, asdict
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..inpaint.pipeline import EraseResult, RegionStatus
from ..logging import get_logger

logger = get_logger(__name__)

REPORT_VERSION = "1.0"
REPORT_FILE_NAME = "erase_report.json"


@dataclass(frozen=True)
class ReportRegion:
    """Single erased region in the report."""
    x: int
    y: int
    width: int
    height: int
    status: str
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class EraseReport:
    version: str
    source: str
    slide_index: int
    timestamp: str
    min_pixels: int
    output_image: Optional[str]
    summary: Dict[str, int]
    regions: List[ReportRegion]

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "version": self.version,
            "source": self.source,
            "slide_index": self.slide_index,
            "timestamp": self.timestamp,
            "min_pixels": self.min_pixels,
            "output_image": self.output_image,
            "summary": self.summary,
            "regions": [region.to_dict() for region in self.regions],
        }


def build_erase_report(
    source: Path,
    slide_index: int,
    result: EraseResult,
    output_image: Optional[Path] = None
) -> EraseReport:
    regions = [
        ReportRegion(
            x=outcome.rect.x,
            y=outcome.rect.y,
            width=outcome.rect.width,
            height=outcome.rect.height,
            status=outcome.status.value,
            error=outcome.error,
        )
        for outcome in result.outcomes
    ]

    summary = {
        "total": len(result.rects),
        "cleaned": result.cleaned_count,
        "empty": sum(1 for o in result.outcomes if o.status == RegionStatus.EMPTY),
        "failed": result.failed_count,
    }

    return EraseReport(
        version=REPORT_VERSION,
        source=str(source),
        slide_index=slide_index,
        timestamp=datetime.now().isoformat(),
        min_pixels=result.min_pixels,
        output_image=output_image.name if output_image is not None else None,
        summary=summary,
        regions=regions,
    )


def write_erase_report(report: EraseReport, output_dir: Path) -> Path:
    """Write ``report`` as erase_report.json in ``output_dir``."""
    output_dir.mkdir(parents=True, exist_ok=True)
    report_path = output_dir / REPORT_FILE_NAME

    with open(report_path, 'w', encoding='utf-8') as f:
        json.dump(report.to_dict(), f, indent=2, ensure_ascii=False)

    logger.info(f"Wrote erase report to {report_path}")
    return report_path
