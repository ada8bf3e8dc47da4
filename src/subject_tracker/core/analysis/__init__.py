"""Post-run analysis of tracking results: zones, calibration and movement."""

from .calibration import (
    Calibration,
    CalibrationLine,
    calculate_pixels_per_unit,
    pixels_to_unit,
    unit_to_pixels,
)
from .metrics import compute_tracking_metrics, detailed_results
from .zones import analyze_zones

__all__ = [
    "Calibration",
    "CalibrationLine",
    "calculate_pixels_per_unit",
    "pixels_to_unit",
    "unit_to_pixels",
    "compute_tracking_metrics",
    "detailed_results",
    "analyze_zones",
]
