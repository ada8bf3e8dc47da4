"""
Tracking session: drives one detector across the sampled frames of a video.

States::

    IDLE -> RUNNING -> COMPLETED | CANCELLED | FAILED

A finished session must be ``reset()`` before it can run again. Results are
appended in increasing frame order and are never revised once committed.
"""

import logging
import math
import threading
import time
from enum import Enum

from ..errors import (
    CollaboratorError,
    FrameFetchError,
    InvalidSessionStateError,
    TrackingError,
)
from ..runtime_types import FrameSource

logger = logging.getLogger(__name__)

PROGRESS_THROTTLE_S = 0.2
LOG_THROTTLE_S = 0.5


class SessionState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    FAILED = "failed"


class TrackingSession:
    """
    Owns the mutable state of one tracking run.

    Args:
        frame_source: FrameSource delivering frames by timestamp
        progress_callback (callable, optional): ``callback(percent, message)``,
            called at most every ``progress_interval`` seconds and once at 100
        progress_interval (float): Minimum seconds between progress callbacks

    A session is not safe to share between threads, except for ``cancel()``
    which may be called from any thread.
    """

    def __init__(
        self,
        frame_source: FrameSource,
        progress_callback=None,
        progress_interval=PROGRESS_THROTTLE_S,
    ):
        self.frame_source = frame_source
        self.progress_callback = progress_callback
        self.progress_interval = progress_interval

        self.state = SessionState.IDLE
        self.detector = None
        self.config = None
        self.progress = 0.0
        self.error = None
        self._results = []
        self._cancel_event = threading.Event()
        self._last_progress_emit = None
        self._last_log = 0.0

    @property
    def results(self):
        """Committed results, in frame order."""
        return tuple(self._results)

    @property
    def is_running(self):
        return self.state == SessionState.RUNNING

    @property
    def error_message(self):
        if self.error is None:
            return None
        cause = self.error.__cause__
        if cause is not None:
            return f"{self.error} (caused by {type(cause).__name__}: {cause})"
        return str(self.error)

    def total_frames(self):
        return int(math.floor(self.frame_source.duration * self.frame_source.fps))

    def start(self, detector, config):
        """
        Validate preconditions and enter RUNNING.

        Raises:
            InvalidSessionStateError: if the session is not IDLE
            PreconditionError: if the detector is not ready; the session stays IDLE
        """
        if self.state != SessionState.IDLE:
            raise InvalidSessionStateError(
                f"Cannot start a session in state '{self.state.value}'; reset it first"
            )
        if self.frame_source.fps <= 0:
            raise InvalidSessionStateError("Frame source reports a non-positive frame rate")

        detector.begin_run(config, self.frame_source)

        self.detector = detector
        self.config = config
        self._results = []
        self.progress = 0.0
        self.error = None
        self._cancel_event.clear()
        self._last_progress_emit = None
        self.state = SessionState.RUNNING
        logger.info(
            f"Tracking started: method={detector.name}, "
            f"every {config.sample_every_nth_frame} frame(s), "
            f"{self.total_frames()} frames total"
        )

    def cancel(self):
        """Request cooperative cancellation; checked once per frame."""
        if self.state == SessionState.RUNNING:
            logger.info("Cancelling tracking...")
        self._cancel_event.set()

    def reset(self):
        """Return a finished session to IDLE, discarding its results."""
        if self.state == SessionState.RUNNING:
            raise InvalidSessionStateError("Cannot reset a running session; cancel it first")
        self.state = SessionState.IDLE
        self.detector = None
        self.config = None
        self._results = []
        self.progress = 0.0
        self.error = None
        self._cancel_event.clear()

    def _emit_progress(self, message, force=False):
        if self.progress_callback is None:
            return
        now = time.monotonic()
        if (
            force
            or self._last_progress_emit is None
            or now - self._last_progress_emit >= self.progress_interval
        ):
            self._last_progress_emit = now
            self.progress_callback(int(round(self.progress)), message)

    def _fail(self, error):
        self.error = error
        self.state = SessionState.FAILED
        logger.error(
            f"Tracking failed after {len(self._results)} frames: {self.error_message}"
        )

    def run(self):
        """
        Process every sampled frame in order.

        Returns:
            tuple: The committed results (partial if cancelled)

        Raises:
            InvalidSessionStateError: if ``start`` has not been called
            CollaboratorError: when a frame or model call fails; the session
                is FAILED and the partial results are kept
        """
        if self.state != SessionState.RUNNING:
            raise InvalidSessionStateError("Call start() before run()")

        fps = self.frame_source.fps
        total = self.total_frames()
        step = self.config.sample_every_nth_frame

        for frame_number in range(0, total, step):
            if self._cancel_event.is_set():
                self.state = SessionState.CANCELLED
                logger.info(
                    f"Tracking cancelled at frame {frame_number}/{total}; "
                    f"{len(self._results)} results kept"
                )
                self._emit_progress("Cancelled", force=True)
                return self.results

            timestamp = frame_number / fps
            try:
                frame = self.frame_source.seek_to(timestamp)
            except FrameFetchError as e:
                self._fail(e)
                raise
            except Exception as e:
                error = FrameFetchError(
                    f"Could not fetch frame {frame_number} at {timestamp:.3f}s"
                )
                error.__cause__ = e
                self._fail(error)
                raise error from e

            try:
                result = self.detector.process_frame(frame, frame_number, timestamp)
            except TrackingError as e:
                self._fail(e)
                raise
            except Exception as e:
                error = CollaboratorError(
                    f"{self.detector.name} failed on frame {frame_number}"
                )
                error.__cause__ = e
                self._fail(error)
                raise error from e

            self._results.append(result)

            self.progress = frame_number / total * 100.0 if total else 100.0
            self._emit_progress(f"Processing frame {frame_number}/{total}")
            now = time.monotonic()
            if now - self._last_log >= LOG_THROTTLE_S:
                self._last_log = now
                logger.debug(
                    f"Processed frame {frame_number}/{total} ({self.progress:.1f}%)"
                )

        self.progress = 100.0
        self.state = SessionState.COMPLETED
        detected = sum(1 for r in self._results if r.position is not None)
        logger.info(
            f"Tracking completed: {len(self._results)} frames processed, "
            f"{detected} with a detection"
        )
        self._emit_progress(f"Completed {len(self._results)} frames", force=True)
        return self.results

    def execute(self, detector, config):
        """Convenience wrapper: ``start`` followed by ``run``."""
        self.start(detector, config)
        return self.run()
