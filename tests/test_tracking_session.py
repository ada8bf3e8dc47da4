"""
Tests for the tracking session state machine.

Tests cover:
- Frame sampling, ordering and progress reporting
- Allowed and rejected state transitions
- Cancellation and failures keeping partial results
"""

import pytest

from subject_tracker.core.config import DetectorConfig, TrackingMethod
from subject_tracker.core.detectors.background_subtraction import BackgroundSubtractionDetector
from subject_tracker.core.detectors.intensity import IntensityDetector
from subject_tracker.core.errors import (
    CollaboratorError,
    FrameFetchError,
    InvalidSessionStateError,
    PreconditionError,
)
from subject_tracker.core.tracking.session import SessionState, TrackingSession
from tests.helpers.fakes import FakeFrameSource

CONFIG = DetectorConfig(method=TrackingMethod.BRIGHTNESS, min_pixel_count=4)


class CancellingDetector(IntensityDetector):
    """Cancels its session after processing ``cancel_at``."""

    def __init__(self, session, cancel_at, config=None):
        super().__init__(config)
        self.session = session
        self.cancel_at = cancel_at

    def process_frame(self, frame, frame_number, timestamp):
        result = super().process_frame(frame, frame_number, timestamp)
        if frame_number == self.cancel_at:
            self.session.cancel()
        return result


class ExplodingDetector(IntensityDetector):
    def process_frame(self, frame, frame_number, timestamp):
        if frame_number == 2:
            raise ValueError("bad frame data")
        return super().process_frame(frame, frame_number, timestamp)


def test_processes_every_frame(moving_spot_frames) -> None:
    calls = []
    session = TrackingSession(
        FakeFrameSource(moving_spot_frames),
        progress_callback=lambda p, m: calls.append((p, m)),
        progress_interval=0.0,
    )
    results = session.execute(IntensityDetector(), CONFIG)

    assert session.state == SessionState.COMPLETED
    assert [r.frame_number for r in results] == list(range(10))
    assert [r.timestamp for r in results] == pytest.approx([i / 10.0 for i in range(10)])
    assert results[3].position.x == pytest.approx(15.5)
    assert session.progress == 100.0
    assert calls[-1][0] == 100
    assert [p for p, _ in calls] == sorted(p for p, _ in calls)


def test_stride_samples_every_nth_frame(moving_spot_frames) -> None:
    source = FakeFrameSource(moving_spot_frames)
    session = TrackingSession(source)
    results = session.execute(IntensityDetector(), CONFIG.with_updates(sample_every_nth_frame=3))
    assert [r.frame_number for r in results] == [0, 3, 6, 9]
    assert source.seek_calls == [0, 3, 6, 9]


def test_progress_is_throttled(moving_spot_frames) -> None:
    calls = []
    session = TrackingSession(
        FakeFrameSource(moving_spot_frames),
        progress_callback=lambda p, m: calls.append(p),
        progress_interval=3600.0,
    )
    session.execute(IntensityDetector(), CONFIG)
    # the first frame emits, then only the forced completion report
    assert calls == [0, 100]


def test_precondition_failure_leaves_session_idle(moving_spot_frames) -> None:
    session = TrackingSession(FakeFrameSource(moving_spot_frames))
    config = DetectorConfig(method=TrackingMethod.BACKGROUND_SUBTRACTION)
    with pytest.raises(PreconditionError):
        session.start(BackgroundSubtractionDetector(config), config)
    assert session.state == SessionState.IDLE
    assert session.results == ()


def test_transitions(moving_spot_frames) -> None:
    session = TrackingSession(FakeFrameSource(moving_spot_frames))

    with pytest.raises(InvalidSessionStateError):
        session.run()

    session.start(IntensityDetector(), CONFIG)
    assert session.is_running
    with pytest.raises(InvalidSessionStateError):
        session.start(IntensityDetector(), CONFIG)
    with pytest.raises(InvalidSessionStateError):
        session.reset()

    session.run()
    with pytest.raises(InvalidSessionStateError):
        session.start(IntensityDetector(), CONFIG)

    session.reset()
    assert session.state == SessionState.IDLE
    assert session.results == ()
    assert len(session.execute(IntensityDetector(), CONFIG)) == 10


def test_cancel_keeps_partial_results(moving_spot_frames) -> None:
    session = TrackingSession(FakeFrameSource(moving_spot_frames))
    detector = CancellingDetector(session, cancel_at=4)
    results = session.execute(detector, CONFIG)

    assert session.state == SessionState.CANCELLED
    assert [r.frame_number for r in results] == [0, 1, 2, 3, 4]
    assert session.error is None


def test_frame_fetch_failure(moving_spot_frames) -> None:
    session = TrackingSession(FakeFrameSource(moving_spot_frames, fail_at=5))
    with pytest.raises(FrameFetchError) as excinfo:
        session.execute(IntensityDetector(), CONFIG)

    assert isinstance(excinfo.value.__cause__, RuntimeError)
    assert session.state == SessionState.FAILED
    assert len(session.results) == 5
    assert session.error is excinfo.value
    assert "decoder stalled" in session.error_message


def test_frame_source_error_passes_through(moving_spot_frames) -> None:
    error = FrameFetchError("timed out waiting for frame")
    session = TrackingSession(FakeFrameSource(moving_spot_frames, fail_at=1, error=error))
    with pytest.raises(FrameFetchError) as excinfo:
        session.execute(IntensityDetector(), CONFIG)
    assert excinfo.value is error
    assert len(session.results) == 1


def test_detector_failure(moving_spot_frames) -> None:
    session = TrackingSession(FakeFrameSource(moving_spot_frames))
    with pytest.raises(CollaboratorError) as excinfo:
        session.execute(ExplodingDetector(), CONFIG)

    assert isinstance(excinfo.value.__cause__, ValueError)
    assert session.state == SessionState.FAILED
    assert [r.frame_number for r in session.results] == [0, 1]
    assert "bad frame data" in session.error_message


def test_results_are_read_only(moving_spot_frames) -> None:
    session = TrackingSession(FakeFrameSource(moving_spot_frames))
    session.execute(IntensityDetector(), CONFIG)
    assert isinstance(session.results, tuple)
