"""
Background-subtraction detector for a single animal in an arena.

Per frame: downscale, convert to luma, difference against the cached
background, threshold, optionally erode, label connected blobs, then pick the
blob that best continues the previous position.
"""

import logging

import cv2
import numpy as np

from ..background.model import BackgroundModel
from ..errors import PreconditionError
from ..types import Blob, FrameResult, Point
from .base import Detector

logger = logging.getLogger(__name__)


def foreground_mask(gray, background, threshold, invert=False):
    """
    Binary foreground mask (0/255) from a frame and its background.

    By default any pixel whose absolute difference from the background exceeds
    ``threshold`` is foreground. With ``invert`` only pixels darker than the
    background by more than ``threshold`` count, for dark subjects on a light
    floor. An unchanged frame has no foreground in either mode.
    """
    if invert:
        diff = cv2.subtract(background, gray)
    else:
        diff = cv2.absdiff(gray, background)
    _, mask = cv2.threshold(diff, threshold, 255, cv2.THRESH_BINARY)
    return mask


def erode_mask(mask, kernel_size=3):
    """
    One pass of erosion with a cross-shaped structuring element.

    A pixel survives only if it and its 4-connected neighbors are all
    foreground. Pixels outside the image count as background, so the border
    row and column are always cleared.
    """
    kernel = cv2.getStructuringElement(cv2.MORPH_CROSS, (kernel_size, kernel_size))
    return cv2.erode(
        mask, kernel, iterations=1, borderType=cv2.BORDER_CONSTANT, borderValue=0
    )


def find_blobs(mask, min_area, max_area, max_aspect_ratio=5.5):
    """
    Label 4-connected foreground regions and keep the plausible ones.

    Regions are rejected when their pixel count is outside
    [min_area, max_area] or their bounding box aspect ratio
    (long side / short side) is ``max_aspect_ratio`` or more, which filters
    out cage walls and similar elongated structures.

    Returns:
        list[Blob]: Surviving blobs, largest first
    """
    n_labels, _, stats, centroids = cv2.connectedComponentsWithStats(
        mask, connectivity=4
    )

    blobs = []
    for label in range(1, n_labels):
        area = int(stats[label, cv2.CC_STAT_AREA])
        if area < min_area or area > max_area:
            continue
        left = int(stats[label, cv2.CC_STAT_LEFT])
        top = int(stats[label, cv2.CC_STAT_TOP])
        width = int(stats[label, cv2.CC_STAT_WIDTH])
        height = int(stats[label, cv2.CC_STAT_HEIGHT])
        blob = Blob(
            x=float(centroids[label, 0]),
            y=float(centroids[label, 1]),
            pixel_count=area,
            min_x=left,
            max_x=left + width - 1,
            min_y=top,
            max_y=top + height - 1,
        )
        if blob.aspect_ratio >= max_aspect_ratio:
            continue
        blobs.append(blob)

    blobs.sort(key=lambda b: b.pixel_count, reverse=True)
    return blobs


def _closest_area(blobs, expected_area):
    return min(blobs, key=lambda b: abs(b.pixel_count - expected_area))


def _best_scored(blobs, expected_area, prev_position, max_distance, w_dist, w_area):
    best, best_score = None, np.inf
    px, py = prev_position
    for blob in blobs:
        dist = float(np.hypot(blob.x - px, blob.y - py))
        if dist > max_distance:
            continue
        area_diff = abs(blob.pixel_count - expected_area) / expected_area
        score = w_dist * dist + w_area * area_diff * 100.0
        if score < best_score:
            best, best_score = blob, score
    return best


def select_blob(blobs, expected_area, prev_position=None, max_jump=120.0):
    """
    Pick the blob most likely to be the subject.

    Without a previous position the blob closest to ``expected_area`` wins.
    Otherwise candidates within ``max_jump`` are scored by
    0.7 * distance + 0.3 * (100 * relative area difference). If none are in
    range the search widens to 1.5 * max_jump with equal weights, and finally
    falls back to the closest area among all blobs.
    """
    if not blobs:
        return None
    expected_area = max(float(expected_area), 1e-6)

    if prev_position is None:
        return _closest_area(blobs, expected_area)

    best = _best_scored(blobs, expected_area, prev_position, max_jump, 0.7, 0.3)
    if best is not None:
        return best

    best = _best_scored(blobs, expected_area, prev_position, max_jump * 1.5, 0.5, 0.5)
    if best is not None:
        return best

    return _closest_area(blobs, expected_area)


class BackgroundSubtractionDetector(Detector):
    """
    Tracks one animal against a static background.

    Continuity state (last position and expected blob area) is kept in
    processing-resolution pixels; results are rescaled to the source frame.
    """

    name = "background-subtraction"

    def __init__(self, config=None, background=None):
        super().__init__(config)
        self.background = background or BackgroundModel(self.config.processing_width)
        self.last_position = None
        self.expected_area = None
        self._scaled_min_area = 0.0
        self._scaled_max_area = 0.0
        self._scaled_max_jump = 0.0

    def capture_background(self, frame_source):
        """Temporal-median background over the whole clip."""
        self.background.processing_width = self.config.processing_width
        return self.background.capture_temporal_median(
            frame_source, num_samples=self.config.background_samples
        )

    def capture_background_snapshot(self, frame):
        self.background.processing_width = self.config.processing_width
        return self.background.capture_snapshot(frame)

    def clear_background(self):
        self.background.clear()

    def check_ready(self, frame_source=None):
        if not self.background.is_ready:
            raise PreconditionError(
                "Background not captured. Capture a background before tracking."
            )
        if frame_source is not None and self.background.source_size is not None:
            source = (int(frame_source.width), int(frame_source.height))
            if source != tuple(self.background.source_size):
                raise PreconditionError(
                    f"Background was captured at {self.background.source_size}, "
                    f"video frames are {source}"
                )

    def reset_run_state(self):
        sx, sy = self.background.scale
        area_scale = sx * sy
        self._scaled_min_area = self.config.mouse_min_area / area_scale
        self._scaled_max_area = self.config.mouse_max_area / area_scale
        self._scaled_max_jump = self.config.mouse_max_jump_px / max(sx, sy)
        self.expected_area = (self._scaled_min_area + self._scaled_max_area) / 2.0
        self.last_position = None

    def detect_blobs(self, frame):
        """Blobs in processing-resolution pixels for one frame."""
        cfg = self.config
        gray = self.background.prepare(frame)
        mask = foreground_mask(gray, self.background.gray, cfg.mouse_threshold, cfg.mouse_invert)
        if cfg.mouse_erosion:
            mask = erode_mask(mask, cfg.erosion_kernel_size)
        return find_blobs(
            mask, self._scaled_min_area, self._scaled_max_area, cfg.max_aspect_ratio
        )

    def process_frame(self, frame, frame_number, timestamp):
        if self.expected_area is None:
            self.reset_run_state()

        blobs = self.detect_blobs(frame)

        if frame_number % 30 == 0:
            logger.debug(
                f"Frame {frame_number}: {len(blobs)} blobs "
                f"(area range {self._scaled_min_area:.1f}-{self._scaled_max_area:.1f})"
            )

        blob = select_blob(blobs, self.expected_area, self.last_position, self._scaled_max_jump)
        if blob is None:
            return FrameResult.empty(frame_number, timestamp)

        self.last_position = (blob.x, blob.y)
        self.expected_area = float(blob.pixel_count)

        sx, sy = self.background.scale
        return FrameResult(
            frame_number=frame_number,
            timestamp=timestamp,
            position=Point(blob.x * sx, blob.y * sy, timestamp),
            pixel_count=int(round(blob.pixel_count * sx * sy)),
            brightness_average=0.0,
        )
