"""
Brightness-threshold detector: centroid of all pixels at or above a cutoff.
"""

import logging

import numpy as np

from ...utils.image_processing import channel_mean_brightness
from ..types import FrameResult, Point
from .base import Detector

logger = logging.getLogger(__name__)


def detect_bright_pixels(frame, brightness_threshold, min_pixel_count):
    """
    Find the center of mass of bright pixels.

    Brightness is the unweighted mean of the three color channels. When fewer
    than ``min_pixel_count`` pixels pass the threshold nothing is reported and
    the pixel count is 0.

    Returns:
        tuple: ((x, y) or None, pixel_count, brightness_average)
    """
    brightness = channel_mean_brightness(frame)
    mask = brightness >= brightness_threshold
    count = int(np.count_nonzero(mask))

    if count == 0 or count < min_pixel_count:
        return None, 0, 0.0

    ys, xs = np.nonzero(mask)
    centroid = (float(xs.mean()), float(ys.mean()))
    return centroid, count, float(brightness[mask].mean())


class IntensityDetector(Detector):
    """Tracks the brightest object in the frame (e.g. an LED or a light marker)."""

    name = "brightness"

    def process_frame(self, frame, frame_number, timestamp):
        centroid, count, avg = detect_bright_pixels(
            frame, self.config.brightness_threshold, self.config.min_pixel_count
        )
        if centroid is None:
            return FrameResult.empty(frame_number, timestamp)

        return FrameResult(
            frame_number=frame_number,
            timestamp=timestamp,
            position=Point(centroid[0], centroid[1], timestamp),
            pixel_count=count,
            brightness_average=avg,
        )
