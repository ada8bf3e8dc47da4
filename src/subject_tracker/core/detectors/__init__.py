"""Detection strategies sharing the Detector interface."""

from ..config import TrackingMethod
from .background_subtraction import BackgroundSubtractionDetector
from .base import Detector
from .continuity import ContinuityObjectDetector
from .intensity import IntensityDetector
from .nearest_neighbor import TrainedNearestNeighborDetector


def create_detector(config, backend=None, embedder=None):
    """Instantiate the detector selected by ``config.method``."""
    method = TrackingMethod(config.method)
    if method == TrackingMethod.BRIGHTNESS:
        return IntensityDetector(config)
    if method == TrackingMethod.BACKGROUND_SUBTRACTION:
        return BackgroundSubtractionDetector(config)
    if method == TrackingMethod.AI_OBJECT:
        return ContinuityObjectDetector(backend=backend, config=config)
    return TrainedNearestNeighborDetector(embedder=embedder, config=config)


__all__ = [
    "Detector",
    "IntensityDetector",
    "BackgroundSubtractionDetector",
    "ContinuityObjectDetector",
    "TrainedNearestNeighborDetector",
    "create_detector",
]
