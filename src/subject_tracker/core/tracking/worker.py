"""
Qt worker that runs a tracking session off the GUI thread.
"""

import logging

from PySide6.QtCore import QMutex, QThread, Signal

from ..errors import TrackingError
from .session import SessionState, TrackingSession

logger = logging.getLogger(__name__)


class TrackingWorker(QThread):
    """
    Runs one TrackingSession in a QThread and reports back through signals.

    ``finished_signal`` carries the final state value ("completed",
    "cancelled" or "failed") and the list of committed FrameResults.
    """

    progress_signal = Signal(int, str)
    finished_signal = Signal(str, list)
    warning_signal = Signal(str, str)  # (title, message)

    def __init__(self, frame_source, detector, config, parent=None):
        super().__init__(parent)
        self.frame_source = frame_source
        self.detector = detector
        self.config = config
        self.session_mutex = QMutex()
        self.session = None
        self._stop_requested = False

    def stop(self):
        """Request cooperative stop for the current session."""
        self._stop_requested = True
        self.session_mutex.lock()
        try:
            if self.session is not None:
                self.session.cancel()
        finally:
            self.session_mutex.unlock()

    def _on_progress(self, percent, message):
        self.progress_signal.emit(percent, message)

    def run(self):
        self.session_mutex.lock()
        self.session = TrackingSession(self.frame_source, progress_callback=self._on_progress)
        self.session_mutex.unlock()
        session = self.session

        state = None
        try:
            session.start(self.detector, self.config)
            if self._stop_requested:
                session.cancel()
            session.run()
        except TrackingError as e:
            logger.error(f"Tracking worker stopped: {e}")
            self.warning_signal.emit("Tracking failed", session.error_message or str(e))
            if session.state == SessionState.IDLE:
                # precondition failure; the session itself stays idle
                state = SessionState.FAILED

        state = state or session.state
        self.finished_signal.emit(state.value, list(session.results))
