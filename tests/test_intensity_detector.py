"""
Tests for the brightness-threshold detector.
"""

import numpy as np
import pytest

from subject_tracker.core.config import DetectorConfig, TrackingMethod
from subject_tracker.core.detectors.intensity import IntensityDetector, detect_bright_pixels
from tests.helpers.fakes import blank_frame, frame_with_square


def test_centroid_of_bright_square() -> None:
    centroid, count, avg = detect_bright_pixels(frame_with_square(10, 20, 4), 200, 10)
    assert centroid == pytest.approx((11.5, 21.5))
    assert count == 16
    assert avg == pytest.approx(255.0)


def test_threshold_is_inclusive() -> None:
    frame = frame_with_square(0, 0, 4, value=200)
    _, count, _ = detect_bright_pixels(frame, 200, 1)
    assert count == 16
    _, count, _ = detect_bright_pixels(frame, 201, 1)
    assert count == 0


def test_too_few_pixels_reports_nothing() -> None:
    centroid, count, avg = detect_bright_pixels(frame_with_square(0, 0, 3), 200, 10)
    assert centroid is None
    assert count == 0
    assert avg == 0.0


def test_brightness_is_channel_mean() -> None:
    frame = blank_frame()
    # only red saturated: mean 85, below the threshold
    frame[5:10, 5:10] = (0, 0, 255)
    centroid, _, _ = detect_bright_pixels(frame, 200, 1)
    assert centroid is None


def test_position_null_iff_pixel_count_zero() -> None:
    config = DetectorConfig(method=TrackingMethod.BRIGHTNESS)
    detector = IntensityDetector(config)
    detector.begin_run(config)
    frames = [
        frame_with_square(5, 5, 4),
        blank_frame(),
        frame_with_square(30, 10, 2),  # 4 px, below min count
        frame_with_square(40, 30, 6, value=230),
        blank_frame(255),
    ]
    for i, frame in enumerate(frames):
        result = detector.process_frame(frame, i, i / 10.0)
        assert (result.position is None) == (result.pixel_count == 0)


def test_result_fields() -> None:
    detector = IntensityDetector(DetectorConfig(method=TrackingMethod.BRIGHTNESS))
    result = detector.process_frame(frame_with_square(20, 10, 4), 7, 0.7)
    assert result.frame_number == 7
    assert result.timestamp == 0.7
    assert result.position.x == pytest.approx(21.5)
    assert result.position.y == pytest.approx(11.5)
    assert result.position.timestamp == 0.7
    assert result.pixel_count == 16
    assert not result.has_detection_fields


def test_full_white_frame_centroid_is_center() -> None:
    frame = np.full((10, 20, 3), 255, dtype=np.uint8)
    centroid, count, _ = detect_bright_pixels(frame, 200, 10)
    assert count == 200
    assert centroid == pytest.approx((9.5, 4.5))
