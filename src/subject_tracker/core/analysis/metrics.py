"""
Distance and speed summary of a tracking run.
"""

import logging
from dataclasses import dataclass

from ...utils.geometry import distance
from ..types import FrameResult, TrackingMetrics
from .calibration import pixels_to_unit

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DetailedResult:
    result: FrameResult
    distance_from_previous: float = 0.0  # px
    speed: float = 0.0  # px/s


def _step(prev, curr):
    """Distance and speed between two consecutive results, or None."""
    if prev.position is None or curr.position is None:
        return None
    dist = distance(prev.position, curr.position)
    dt = curr.timestamp - prev.timestamp
    speed = dist / dt if dt > 0 else None
    return dist, speed


def compute_tracking_metrics(results, pixels_per_unit=None) -> TrackingMetrics:
    """
    Summarise movement over an ordered result sequence.

    Distance only accumulates between consecutive results that both carry a
    position. ``min_speed`` is reported only when every consecutive pair of
    detections contributed a speed; otherwise it is 0.
    """
    results = list(results)
    if not results:
        return TrackingMetrics()

    successful = sum(1 for r in results if r.position is not None)
    total_distance = 0.0
    speeds = []
    for prev, curr in zip(results, results[1:]):
        step = _step(prev, curr)
        if step is None:
            continue
        dist, speed = step
        total_distance += dist
        if speed is not None:
            speeds.append(speed)

    metrics = TrackingMetrics(
        total_distance=total_distance,
        total_distance_scaled=pixels_to_unit(total_distance, pixels_per_unit),
        average_speed=sum(speeds) / len(speeds) if speeds else 0.0,
        max_speed=max(speeds) if speeds else 0.0,
        min_speed=min(speeds) if speeds and len(speeds) == successful - 1 else 0.0,
        total_frames_tracked=len(results),
        successful_detections=successful,
        failed_detections=len(results) - successful,
    )
    logger.debug(
        f"Metrics: {metrics.successful_detections}/{metrics.total_frames_tracked} detected, "
        f"distance {metrics.total_distance:.1f}px"
    )
    return metrics


def detailed_results(results):
    """Per-result distance from the previous result and instantaneous speed."""
    results = list(results)
    detailed = []
    for i, curr in enumerate(results):
        step = _step(results[i - 1], curr) if i > 0 else None
        if step is None:
            detailed.append(DetailedResult(curr))
        else:
            dist, speed = step
            detailed.append(DetailedResult(curr, dist, speed or 0.0))
    return detailed
