"""
Common contract for the frame-by-frame detection strategies.

A detector owns its private per-run state (last position, expected blob area,
lost-frame counter, ...). The tracking session binds it to a configuration
with ``begin_run`` and then feeds it frames strictly in order.
"""

from abc import ABC, abstractmethod

from ..config import DetectorConfig
from ..types import FrameResult


class Detector(ABC):
    """Base class for all tracking strategies."""

    #: Human-readable strategy name used in logs and progress messages.
    name = "detector"

    def __init__(self, config: DetectorConfig = None):
        self.config = config or DetectorConfig()

    def begin_run(self, config: DetectorConfig, frame_source=None) -> None:
        """
        Bind ``config`` for a new run, verify preconditions and clear run state.

        Raises:
            PreconditionError: when the detector cannot start
        """
        self.config = config
        self.check_ready(frame_source)
        self.reset_run_state()

    def check_ready(self, frame_source=None) -> None:
        """Raise PreconditionError if the detector is not ready. Default: always ready."""

    def reset_run_state(self) -> None:
        """Forget per-run continuity state."""

    @abstractmethod
    def process_frame(self, frame, frame_number: int, timestamp: float) -> FrameResult:
        """Locate the subject in one frame."""
