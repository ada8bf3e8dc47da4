"""
Interfaces of the external collaborators a tracking run depends on.

Video decoding, object detection and feature embedding are supplied by the
caller; the core only relies on the methods below.
"""

from __future__ import annotations

from typing import Any, List, Protocol

import numpy as np

from .types import Detection


class FrameSource(Protocol):
    """Delivers decoded frames by timestamp."""

    duration: float  # seconds
    fps: float
    width: int
    height: int

    def seek_to(self, timestamp: float) -> np.ndarray:
        """Return the HxWx3 BGR frame at ``timestamp``; raise FrameFetchError on failure."""

    def save_state(self) -> Any:
        """Snapshot the playback position/state so it can be restored later."""

    def restore_state(self, state: Any) -> None:
        """Return to a state captured by save_state()."""


class ObjectDetectionBackend(Protocol):
    """Per-frame candidate detections from an external model."""

    def detect(self, frame: np.ndarray) -> List[Detection]:
        """Return candidate detections for one frame."""


class EmbeddingBackend(Protocol):
    """Fixed-length feature vectors for image patches."""

    def embed(self, patch: np.ndarray) -> np.ndarray:
        """Return a 1-D embedding; identical input gives identical output."""
