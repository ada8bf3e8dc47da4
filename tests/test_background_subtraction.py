"""
Tests for the background-subtraction detector and its pure building blocks.
"""

import numpy as np
import pytest

from subject_tracker.core.config import DetectorConfig, TrackingMethod
from subject_tracker.core.detectors.background_subtraction import (
    BackgroundSubtractionDetector,
    erode_mask,
    find_blobs,
    foreground_mask,
    select_blob,
)
from subject_tracker.core.errors import PreconditionError
from subject_tracker.core.types import Blob
from tests.helpers.fakes import FakeFrameSource, blank_frame, frame_with_square

FLOOR = 100


def _config(**overrides):
    params = dict(
        method=TrackingMethod.BACKGROUND_SUBTRACTION,
        mouse_min_area=20,
        mouse_max_area=500,
        mouse_max_jump_px=30,
    )
    params.update(overrides)
    return DetectorConfig(**params)


def _blob(x, y, area):
    return Blob(x=x, y=y, pixel_count=area, min_x=0, max_x=9, min_y=0, max_y=9)


def _ready_detector(config=None):
    detector = BackgroundSubtractionDetector(config or _config())
    detector.capture_background_snapshot(blank_frame(FLOOR))
    return detector


class TestForegroundMask:
    @pytest.mark.parametrize("invert", [False, True])
    def test_background_itself_has_no_foreground(self, invert):
        bg = np.random.default_rng(0).integers(0, 256, size=(48, 64), dtype=np.uint8)
        mask = foreground_mask(bg.copy(), bg, 25, invert=invert)
        assert not mask.any()

    def test_threshold_is_strict(self):
        bg = np.full((4, 4), 100, dtype=np.uint8)
        gray = bg.copy()
        gray[0, 0] = 125  # diff == threshold
        gray[1, 1] = 126
        mask = foreground_mask(gray, bg, 25)
        assert mask[0, 0] == 0
        assert mask[1, 1] == 255

    def test_invert_keeps_only_darker_pixels(self):
        bg = np.full((4, 4), 100, dtype=np.uint8)
        gray = bg.copy()
        gray[0, 0] = 20
        gray[3, 3] = 200
        assert foreground_mask(gray, bg, 25)[3, 3] == 255
        inverted = foreground_mask(gray, bg, 25, invert=True)
        assert inverted[0, 0] == 255
        assert inverted[3, 3] == 0


class TestErosion:
    def test_repeated_erosion_never_grows(self):
        rng = np.random.default_rng(42)
        mask = (rng.random((40, 40)) > 0.3).astype(np.uint8) * 255
        once = erode_mask(mask)
        twice = erode_mask(once)
        assert np.all(once <= mask)
        assert np.all(twice <= once)

    def test_cross_erosion_of_square(self):
        mask = np.zeros((20, 20), dtype=np.uint8)
        mask[5:15, 5:15] = 255
        eroded = erode_mask(mask)
        assert np.count_nonzero(eroded) == 64
        assert eroded[6:14, 6:14].all()

    def test_border_pixels_are_cleared(self):
        mask = np.full((10, 10), 255, dtype=np.uint8)
        eroded = erode_mask(mask)
        assert not eroded[0, :].any()
        assert not eroded[:, -1].any()
        assert eroded[1:-1, 1:-1].all()


class TestFindBlobs:
    def test_elongated_region_excluded_square_retained(self):
        mask = np.zeros((60, 60), dtype=np.uint8)
        mask[5:45, 5:7] = 255  # 2 x 40, area 80
        mask[20:30, 30:40] = 255  # 10 x 10, area 100
        blobs = find_blobs(mask, min_area=50, max_area=200)
        assert len(blobs) == 1
        assert blobs[0].pixel_count == 100
        assert (blobs[0].x, blobs[0].y) == pytest.approx((34.5, 24.5))

    def test_area_limits(self):
        mask = np.zeros((60, 60), dtype=np.uint8)
        mask[0:3, 0:3] = 255  # 9
        mask[10:20, 10:20] = 255  # 100
        mask[30:50, 30:50] = 255  # 400
        areas = [b.pixel_count for b in find_blobs(mask, min_area=50, max_area=200)]
        assert areas == [100]

    def test_diagonal_pixels_are_separate_regions(self):
        mask = np.zeros((10, 10), dtype=np.uint8)
        mask[2:4, 2:4] = 255
        mask[4:6, 4:6] = 255
        blobs = find_blobs(mask, min_area=1, max_area=100)
        assert [b.pixel_count for b in blobs] == [4, 4]

    def test_sorted_largest_first(self):
        mask = np.zeros((60, 60), dtype=np.uint8)
        mask[0:5, 0:5] = 255
        mask[20:30, 20:30] = 255
        mask[40:47, 40:47] = 255
        areas = [b.pixel_count for b in find_blobs(mask, min_area=1, max_area=1000)]
        assert areas == [100, 49, 25]


class TestSelectBlob:
    def test_no_blobs(self):
        assert select_blob([], 100, (0, 0)) is None

    def test_without_history_closest_area_wins(self):
        blobs = [_blob(10, 10, 400), _blob(50, 50, 120)]
        assert select_blob(blobs, 100).pixel_count == 120

    def test_nearby_blob_preferred(self):
        near = _blob(12, 10, 100)
        far = _blob(200, 200, 100)
        assert select_blob([far, near], 100, prev_position=(10, 10), max_jump=50) is near

    def test_widened_search(self):
        wider = _blob(10, 10, 100)
        far = _blob(300, 300, 100)
        picked = select_blob([far, wider], 100, prev_position=(60, 10), max_jump=40)
        assert picked is wider

    def test_area_fallback_when_everything_is_far(self):
        small = _blob(0, 0, 100)
        big = _blob(5, 5, 300)
        picked = select_blob([small, big], 290, prev_position=(1000, 1000), max_jump=40)
        assert picked is big


class TestBackgroundSubtractionDetector:
    def test_requires_background(self):
        detector = BackgroundSubtractionDetector(_config())
        with pytest.raises(PreconditionError):
            detector.begin_run(detector.config)

    def test_rejects_mismatched_video_size(self):
        detector = _ready_detector()
        other = FakeFrameSource([blank_frame(FLOOR, width=32, height=32)])
        with pytest.raises(PreconditionError):
            detector.begin_run(detector.config, other)

    @pytest.mark.parametrize("invert", [False, True])
    def test_background_frame_yields_no_detection(self, invert):
        config = _config(mouse_invert=invert)
        detector = _ready_detector(config)
        detector.begin_run(config)
        result = detector.process_frame(blank_frame(FLOOR), 0, 0.0)
        assert result.position is None
        assert result.pixel_count == 0

    def test_tracks_dark_subject(self):
        config = _config()
        detector = _ready_detector(config)
        detector.begin_run(config)

        frames = [frame_with_square(20 + 4 * i, 10, 10, value=20, background=FLOOR) for i in range(4)]
        results = [detector.process_frame(f, i, i / 10.0) for i, f in enumerate(frames)]

        for i, result in enumerate(results):
            assert result.position.x == pytest.approx(24.5 + 4 * i)
            assert result.position.y == pytest.approx(14.5)
            assert result.pixel_count == 64  # 10 x 10 after one cross erosion
            assert (result.position is None) == (result.pixel_count == 0)

    def test_without_erosion_counts_full_blob(self):
        config = _config(mouse_erosion=False)
        detector = _ready_detector(config)
        detector.begin_run(config)
        result = detector.process_frame(
            frame_with_square(20, 10, 10, value=20, background=FLOOR), 0, 0.0
        )
        assert result.pixel_count == 100

    def test_results_are_in_source_pixels(self):
        config = _config(processing_width=32, mouse_min_area=40, mouse_max_area=800)
        detector = BackgroundSubtractionDetector(config)
        detector.capture_background_snapshot(blank_frame(FLOOR))
        detector.begin_run(config)

        frame = frame_with_square(20, 10, 16, value=20, background=FLOOR)
        result = detector.process_frame(frame, 0, 0.0)
        assert result.position is not None
        # 16 px square -> 8 px at half scale -> 6 px after erosion, centered at 13.5, 8.5
        assert result.position.x == pytest.approx(27.0)
        assert result.position.y == pytest.approx(17.0)
        assert result.pixel_count == 144

    def test_captured_temporal_median_background(self):
        frames = [frame_with_square(4 + 10 * i, 10, 10, value=20, background=FLOOR) for i in range(5)]
        source = FakeFrameSource(frames, fps=10.0)
        config = _config(background_samples=5)
        detector = BackgroundSubtractionDetector(config)
        detector.capture_background(source)
        detector.begin_run(config, source)

        result = detector.process_frame(frames[2], 2, 0.2)
        assert result.position.x == pytest.approx(28.5)
        assert result.position.y == pytest.approx(14.5)
