"""
Single-Subject-Tracker Package

Tracks one subject through a video and reports its position per sampled frame.

Key Features:
- Four interchangeable detectors: brightest region, background subtraction,
  AI object detection with continuity, and a trained nearest-neighbor classifier
- Cooperative, cancellable tracking sessions with progress reporting
- Zone dwell-time and entry/exit analysis
- Pixel to real-unit calibration and movement metrics
- CSV export of per-frame results
"""

__version__ = "1.0.0"

from .app.launcher import main, parse_arguments, setup_logging
from .core.tracking.session import TrackingSession

try:
    from .core.tracking.worker import TrackingWorker

    __all__ = ["main", "parse_arguments", "setup_logging", "TrackingSession", "TrackingWorker"]
except ImportError:
    # PySide6 not installed; headless use only
    __all__ = ["main", "parse_arguments", "setup_logging", "TrackingSession"]
