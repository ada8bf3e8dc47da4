"""
Video frame access for tracking runs, backed by OpenCV.
"""

import logging

import cv2

from ..core.errors import FrameFetchError

logger = logging.getLogger(__name__)


class VideoCaptureFrameSource:
    """
    Frame source reading a video file through ``cv2.VideoCapture``.

    Frames are addressed by timestamp and mapped to the nearest frame index
    at the container frame rate.
    """

    def __init__(self, video_path, fps_override=None):
        self.video_path = str(video_path)
        self.cap = cv2.VideoCapture(self.video_path)
        if not self.cap.isOpened():
            raise FrameFetchError(f"Cannot open video: {self.video_path}")

        fps = fps_override or self.cap.get(cv2.CAP_PROP_FPS)
        if not fps or fps <= 0:
            self.cap.release()
            raise FrameFetchError(f"Video reports no usable frame rate: {self.video_path}")

        self.fps = float(fps)
        self.frame_count = int(self.cap.get(cv2.CAP_PROP_FRAME_COUNT))
        self.width = int(self.cap.get(cv2.CAP_PROP_FRAME_WIDTH))
        self.height = int(self.cap.get(cv2.CAP_PROP_FRAME_HEIGHT))
        self.duration = self.frame_count / self.fps
        self._next_index = 0

        logger.info(
            f"Opened {self.video_path}: {self.width}x{self.height}, "
            f"{self.fps:.2f} fps, {self.frame_count} frames ({self.duration:.2f}s)"
        )

    def seek_to(self, timestamp):
        """
        Read the frame shown at ``timestamp`` seconds.

        Sequential reads skip the seek, which is much cheaper for most codecs.

        Raises:
            FrameFetchError: when the frame cannot be decoded
        """
        index = int(round(timestamp * self.fps))
        if index < 0 or (self.frame_count > 0 and index >= self.frame_count):
            raise FrameFetchError(
                f"Timestamp {timestamp:.3f}s is outside the video "
                f"(frame {index} of {self.frame_count})"
            )
        if index != self._next_index:
            self.cap.set(cv2.CAP_PROP_POS_FRAMES, index)
        ret, frame = self.cap.read()
        if not ret or frame is None:
            raise FrameFetchError(f"Failed to read frame {index} from {self.video_path}")
        self._next_index = index + 1
        return frame

    def save_state(self):
        return self._next_index

    def restore_state(self, state):
        self._next_index = int(state)
        self.cap.set(cv2.CAP_PROP_POS_FRAMES, self._next_index)

    def release(self):
        if self.cap is not None:
            self.cap.release()
            self.cap = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.release()
        return False
