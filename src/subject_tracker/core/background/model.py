"""
Background modeling for single-subject background subtraction.

Two capture modes are supported:
- Snapshot: one frame of the empty scene is used as-is.
- Temporal median: frames sampled evenly across the clip are reduced to their
  per-pixel median, which removes a moving subject from the reference.

The background is stored as a downscaled grayscale image and reused for every
frame of a run.
"""

import logging

import numpy as np

from ...utils.image_processing import downscale, processing_size, to_grayscale
from ..errors import BackgroundCaptureError
from ..runtime_types import FrameSource

logger = logging.getLogger(__name__)


class BackgroundModel:
    """
    Cached grayscale reference frame at processing resolution.

    Attributes:
        gray (np.ndarray): Background luma image, or None if not captured
        source_size (tuple): (width, height) of the frames it was built from
        processing_size (tuple): (width, height) of ``gray``
        scale (tuple): (scale_x, scale_y) from processing to source pixels
    """

    def __init__(self, processing_width=480):
        self.processing_width = processing_width
        self.gray = None
        self.source_size = None
        self.processing_size = None
        self.scale = (1.0, 1.0)

    @property
    def is_ready(self):
        return self.gray is not None

    def clear(self):
        self.gray = None
        self.source_size = None
        self.processing_size = None
        self.scale = (1.0, 1.0)
        logger.info("Background cleared")

    def prepare(self, frame):
        """Downscale and convert a frame to match the background's geometry."""
        if self.processing_size is None:
            h, w = frame.shape[:2]
            size, _ = processing_size(w, h, self.processing_width)
        else:
            size = self.processing_size
        return to_grayscale(downscale(frame, size))

    def _set_geometry(self, frame):
        h, w = frame.shape[:2]
        size, scale = processing_size(w, h, self.processing_width)
        self.source_size = (w, h)
        self.processing_size = size
        self.scale = scale

    def capture_snapshot(self, frame):
        """Use a single frame of the empty scene as the background."""
        self._set_geometry(frame)
        self.gray = self.prepare(frame)
        logger.info(
            f"Snapshot background captured at {self.processing_size[0]}x{self.processing_size[1]}"
        )
        return self.gray

    def capture_temporal_median(self, frame_source: FrameSource, num_samples: int = 15):
        """
        Build the background from the per-pixel median of evenly spaced frames.

        The frame source is restored to its previous position afterwards, on
        success and on failure alike. If any sample cannot be fetched the
        capture is abandoned and no background is kept.

        Args:
            frame_source: FrameSource to sample from
            num_samples (int): Number of frames to sample

        Raises:
            BackgroundCaptureError: when a sample frame could not be fetched
        """
        if num_samples < 2:
            raise ValueError("Temporal median needs at least 2 samples")

        # The final frame sits one frame period before the nominal duration.
        last_time = max(0.0, frame_source.duration - 1.0 / frame_source.fps)
        sample_times = np.linspace(0.0, last_time, num_samples)

        logger.info(f"Sampling {num_samples} frames for temporal median background...")

        saved_state = frame_source.save_state()
        samples = []
        try:
            for i, t in enumerate(sample_times):
                try:
                    frame = frame_source.seek_to(float(t))
                    if not samples:
                        self._set_geometry(frame)
                    samples.append(self.prepare(frame))
                except Exception as e:
                    self.clear()
                    raise BackgroundCaptureError(
                        f"Background capture failed at sample {i + 1}/{num_samples} "
                        f"({t:.2f}s): {e}"
                    ) from e
                logger.debug(f"Sampled frame {i + 1}/{num_samples} at {t:.2f}s")
        finally:
            frame_source.restore_state(saved_state)

        stack = np.stack(samples, axis=0)
        self.gray = np.median(stack, axis=0).astype(np.uint8)
        logger.info(
            f"Temporal median background captured from {len(samples)} samples "
            f"at {self.processing_size[0]}x{self.processing_size[1]}"
        )
        return self.gray
