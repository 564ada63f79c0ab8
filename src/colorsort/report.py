"""
Distance reports for each phase of a sorting run.
"""

import json
import os
from dataclasses import dataclass, asdict
from typing import Any, Dict, List

from .pixels import PixelCollection


@dataclass
class DistanceReport:
    """Distortion of the current assignment after one phase."""
    phase: str
    total_distance: int
    mean_distance: float
    max_distance: int
    pixel_count: int

    def describe(self) -> str:
        return f"{self.phase}, distance: {self.total_distance}"


def measure_distance(pixels: PixelCollection, phase: str) -> DistanceReport:
    """Summarize the cached distances of a collection."""
    count = len(pixels)
    total = pixels.total_distance()
    return DistanceReport(
        phase=phase,
        total_distance=total,
        mean_distance=total / count if count else 0.0,
        max_distance=int(pixels.cached_distance.max()) if count else 0,
        pixel_count=count,
    )


def is_non_increasing(reports: List[DistanceReport]) -> bool:
    """True when no phase raised the total distance of the one before it."""
    totals = [report.total_distance for report in reports]
    return all(later <= earlier for earlier, later in zip(totals, totals[1:]))


def write_run_report(summary: Dict[str, Any], report_path: str) -> str:
    """Persist a run summary as JSON."""
    dir_path = os.path.dirname(report_path)
    if dir_path:
        os.makedirs(dir_path, exist_ok=True)

    serializable = dict(summary)
    serializable['reports'] = [asdict(report) for report in summary.get('reports', [])]

    with open(report_path, 'w', encoding='utf-8') as fh:
        json.dump(serializable, fh, indent=2, default=str)

    return report_path
