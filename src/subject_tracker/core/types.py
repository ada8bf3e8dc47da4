"""
Core data types shared by detectors, the tracking session and the analytics.

All coordinates are in original-video pixel space with a top-left origin.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple


@dataclass(frozen=True)
class Point:
    """Subject location observed at a video timestamp (seconds)."""

    x: float
    y: float
    timestamp: float = 0.0


@dataclass(frozen=True)
class BoundingBox:
    """Axis-aligned box, top-left origin."""

    x: float
    y: float
    width: float
    height: float

    @property
    def area(self) -> float:
        return self.width * self.height

    @property
    def center(self) -> Tuple[float, float]:
        return (self.x + self.width / 2.0, self.y + self.height / 2.0)


@dataclass(frozen=True)
class FrameResult:
    """Outcome of one processed frame.

    ``position`` is None when nothing was detected; that is not an error.
    """

    frame_number: int
    timestamp: float
    position: Optional[Point]
    pixel_count: int = 0
    brightness_average: float = 0.0
    detection_box: Optional[BoundingBox] = None
    detected_class: Optional[str] = None
    detection_score: Optional[float] = None

    @property
    def has_detection_fields(self) -> bool:
        return (
            self.detection_box is not None
            or self.detected_class is not None
            or self.detection_score is not None
        )

    @classmethod
    def empty(cls, frame_number: int, timestamp: float) -> "FrameResult":
        return cls(frame_number=frame_number, timestamp=timestamp, position=None)


@dataclass(frozen=True)
class Blob:
    """Connected foreground region found in a single frame."""

    x: float  # centroid
    y: float
    pixel_count: int
    min_x: int
    max_x: int
    min_y: int
    max_y: int

    @property
    def width(self) -> int:
        return self.max_x - self.min_x + 1

    @property
    def height(self) -> int:
        return self.max_y - self.min_y + 1

    @property
    def aspect_ratio(self) -> float:
        return max(self.width, self.height) / min(self.width, self.height)


@dataclass(frozen=True)
class Detection:
    """Candidate produced by an external object-detection model."""

    box: BoundingBox
    score: float
    label: str


ZONE_SHAPES = ("rectangle", "circle")


@dataclass(frozen=True)
class Zone:
    """User-defined region.

    Rectangle: (x, y) is the top-left corner, width/height its size.
    Circle: (x, y) is the center and width the diameter; height is ignored.
    """

    id: str
    name: str
    shape: str
    x: float
    y: float
    width: float
    height: float = 0.0
    color: str = "#00ff00"

    def __post_init__(self):
        if self.shape not in ZONE_SHAPES:
            raise ValueError(f"Unknown zone shape: {self.shape!r}")


@dataclass
class ZoneMetrics:
    zone_id: str
    zone_name: str
    time_in_zone: float = 0.0  # seconds
    entry_count: int = 0
    exit_count: int = 0
    first_entry: Optional[float] = None
    last_exit: Optional[float] = None


@dataclass
class TrackingMetrics:
    """Movement summary over a finished result sequence."""

    total_distance: float = 0.0
    total_distance_scaled: float = 0.0
    average_speed: float = 0.0
    max_speed: float = 0.0
    min_speed: float = 0.0
    total_frames_tracked: int = 0
    successful_detections: int = 0
    failed_detections: int = 0
