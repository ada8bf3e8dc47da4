"""
Tracking configuration.

Parameters travel through the application as a flat dictionary of UPPER_CASE
keys (the same shape that is saved to JSON). ``DetectorConfig`` is the typed,
immutable view a tracking run is started with.
"""

import json
import logging
from dataclasses import asdict, dataclass, fields, replace
from enum import Enum
from pathlib import Path
from typing import Optional

from .errors import ConfigError

logger = logging.getLogger(__name__)


class TrackingMethod(str, Enum):
    BRIGHTNESS = "brightness"
    BACKGROUND_SUBTRACTION = "mouse-tracker"
    AI_OBJECT = "ai-object"
    KNN_CUSTOM = "knn-custom"


class TrackStrategy(str, Enum):
    NEAREST_PREVIOUS = "nearestPrev"
    HIGHEST_SCORE = "highestScore"
    LARGEST = "largest"


@dataclass(frozen=True)
class DetectorConfig:
    # Frame sampling
    sample_every_nth_frame: int = 1
    method: TrackingMethod = TrackingMethod.AI_OBJECT

    # Intensity thresholding
    brightness_threshold: float = 200.0
    min_pixel_count: int = 10

    # Continuity-based object tracking
    ai_confidence: float = 0.5
    ai_target_class: Optional[str] = None
    ai_track_strategy: TrackStrategy = TrackStrategy.NEAREST_PREVIOUS
    ai_max_jump_px: float = 200.0
    ai_lost_frame_tolerance: int = 5

    # Trained nearest-neighbor search
    knn_window_size: int = 80
    knn_search_radius: float = 100.0
    knn_confidence: float = 0.6
    knn_neighbors: int = 3
    knn_min_samples_per_class: int = 3

    # Background subtraction
    mouse_threshold: float = 25.0
    mouse_min_area: float = 100.0
    mouse_max_area: float = 1500.0
    mouse_invert: bool = False
    mouse_erosion: bool = True
    mouse_max_jump_px: float = 120.0
    max_aspect_ratio: float = 5.5
    erosion_kernel_size: int = 3
    processing_width: int = 480
    background_samples: int = 15

    def __post_init__(self):
        # Accept plain strings for the enum fields (e.g. straight from JSON).
        try:
            object.__setattr__(self, "method", TrackingMethod(self.method))
        except ValueError:
            raise ConfigError(f"Unknown tracking method: {self.method!r}") from None
        try:
            object.__setattr__(
                self, "ai_track_strategy", TrackStrategy(self.ai_track_strategy)
            )
        except ValueError:
            raise ConfigError(
                f"Unknown track strategy: {self.ai_track_strategy!r}"
            ) from None
        self.validate()

    def validate(self):
        """Raise ConfigError when a value is outside its usable range."""
        if self.sample_every_nth_frame < 1:
            raise ConfigError("SAMPLE_EVERY_NTH_FRAME must be >= 1")
        if not 0 <= self.brightness_threshold <= 255:
            raise ConfigError("BRIGHTNESS_THRESHOLD must be within [0, 255]")
        if self.min_pixel_count < 1:
            raise ConfigError("MIN_PIXEL_COUNT must be >= 1")
        if not 0.0 <= self.ai_confidence <= 1.0:
            raise ConfigError("AI_CONFIDENCE must be within [0, 1]")
        if self.ai_max_jump_px < 0:
            raise ConfigError("AI_MAX_JUMP_PX must be >= 0")
        if self.ai_lost_frame_tolerance < 0:
            raise ConfigError("AI_LOST_FRAME_TOLERANCE must be >= 0")
        if self.knn_window_size < 2:
            raise ConfigError("KNN_WINDOW_SIZE must be >= 2")
        if self.knn_search_radius < 0:
            raise ConfigError("KNN_SEARCH_RADIUS must be >= 0")
        if not 0.0 <= self.knn_confidence <= 1.0:
            raise ConfigError("KNN_CONFIDENCE must be within [0, 1]")
        if self.knn_neighbors < 1 or self.knn_min_samples_per_class < 1:
            raise ConfigError("KNN_NEIGHBORS and KNN_MIN_SAMPLES_PER_CLASS must be >= 1")
        if not 0 <= self.mouse_threshold <= 255:
            raise ConfigError("MOUSE_THRESHOLD must be within [0, 255]")
        if self.mouse_min_area < 0 or self.mouse_min_area > self.mouse_max_area:
            raise ConfigError("MOUSE_MIN_AREA must be within [0, MOUSE_MAX_AREA]")
        if self.mouse_max_jump_px <= 0:
            raise ConfigError("MOUSE_MAX_JUMP_PX must be > 0")
        if self.max_aspect_ratio <= 1.0:
            raise ConfigError("MAX_ASPECT_RATIO must be > 1")
        if self.erosion_kernel_size < 3 or self.erosion_kernel_size % 2 == 0:
            raise ConfigError("EROSION_KERNEL_SIZE must be an odd number >= 3")
        if self.processing_width < 16:
            raise ConfigError("PROCESSING_WIDTH must be >= 16")
        if self.background_samples < 2:
            raise ConfigError("BACKGROUND_SAMPLES must be >= 2")

    def with_updates(self, **changes) -> "DetectorConfig":
        return replace(self, **changes)

    @classmethod
    def from_params(cls, params: dict) -> "DetectorConfig":
        """Build a config from an UPPER_CASE parameter dictionary.

        Unknown keys are ignored so that a full application config file can be
        passed in as-is.
        """
        known = {f.name for f in fields(cls)}
        kwargs = {}
        for key, value in params.items():
            name = key.lower()
            if name in known:
                kwargs[name] = value
        try:
            return cls(**kwargs)
        except TypeError as e:
            raise ConfigError(str(e)) from e

    def to_params(self) -> dict:
        params = {}
        for key, value in asdict(self).items():
            if isinstance(value, Enum):
                value = value.value
            params[key.upper()] = value
        return params


def load_config(config_path) -> DetectorConfig:
    """Load a DetectorConfig from a JSON parameter file."""
    path = Path(config_path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            params = json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigError(f"Config file {path} is not valid JSON: {e}") from e
    if not isinstance(params, dict):
        raise ConfigError(f"Config file {path} must contain a JSON object")
    config = DetectorConfig.from_params(params)
    logger.info(f"Configuration loaded from {path}")
    return config


def save_config(config: DetectorConfig, config_path) -> None:
    path = Path(config_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(config.to_params(), f, indent=2)
    logger.info(f"Configuration saved to {path}")
