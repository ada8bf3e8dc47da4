"""
Core tracking components: data types, configuration, detectors, background
model, tracking session and post-run analysis.
"""

from .config import DetectorConfig, TrackingMethod, TrackStrategy, load_config, save_config
from .errors import (
    BackgroundCaptureError,
    CollaboratorError,
    ConfigError,
    FrameFetchError,
    InvalidSessionStateError,
    PreconditionError,
    TrackingError,
)
from .types import BoundingBox, Detection, FrameResult, Point, Zone, ZoneMetrics

__all__ = [
    "DetectorConfig",
    "TrackingMethod",
    "TrackStrategy",
    "load_config",
    "save_config",
    "TrackingError",
    "PreconditionError",
    "CollaboratorError",
    "FrameFetchError",
    "BackgroundCaptureError",
    "InvalidSessionStateError",
    "ConfigError",
    "Point",
    "BoundingBox",
    "FrameResult",
    "Detection",
    "Zone",
    "ZoneMetrics",
]
