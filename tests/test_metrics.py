"""
Tests for movement metrics.
"""

import pytest

from subject_tracker.core.analysis.metrics import compute_tracking_metrics, detailed_results
from subject_tracker.core.types import FrameResult, Point


def _results(positions, dt=0.1):
    out = []
    for i, pos in enumerate(positions):
        t = i * dt
        point = None if pos is None else Point(pos[0], pos[1], t)
        out.append(FrameResult(i, t, point))
    return out


def test_empty() -> None:
    metrics = compute_tracking_metrics([])
    assert metrics.total_frames_tracked == 0
    assert metrics.total_distance == 0.0
    assert metrics.min_speed == 0.0


def test_straight_line() -> None:
    metrics = compute_tracking_metrics(_results([(0, 0), (3, 4), (6, 8)]))
    assert metrics.total_distance == pytest.approx(10.0)
    assert metrics.total_distance_scaled == pytest.approx(10.0)
    assert metrics.average_speed == pytest.approx(50.0)
    assert metrics.max_speed == pytest.approx(50.0)
    assert metrics.min_speed == pytest.approx(50.0)
    assert metrics.successful_detections == 3
    assert metrics.failed_detections == 0
    assert metrics.total_frames_tracked == 3


def test_gap_breaks_distance() -> None:
    metrics = compute_tracking_metrics(_results([(0, 0), None, (3, 4), (3, 8)]))
    assert metrics.total_distance == pytest.approx(4.0)
    assert metrics.successful_detections == 3
    assert metrics.failed_detections == 1
    assert metrics.max_speed == pytest.approx(40.0)
    # only one of the two detection pairs produced a speed
    assert metrics.min_speed == 0.0


def test_calibrated_distance() -> None:
    metrics = compute_tracking_metrics(_results([(0, 0), (30, 40)]), pixels_per_unit=5.0)
    assert metrics.total_distance == pytest.approx(50.0)
    assert metrics.total_distance_scaled == pytest.approx(10.0)


def test_detailed_results() -> None:
    rows = detailed_results(_results([(0, 0), (3, 4), None, (0, 0)]))
    assert [r.distance_from_previous for r in rows] == pytest.approx([0.0, 5.0, 0.0, 0.0])
    assert [r.speed for r in rows] == pytest.approx([0.0, 50.0, 0.0, 0.0])
    assert rows[1].result.frame_number == 1
