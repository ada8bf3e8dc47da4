"""
Utility modules: geometry, image processing and video input.
"""

from .geometry import distance, iou, point_in_zone, zone_at_point
from .image_processing import channel_mean_brightness, to_grayscale
from .video_io import VideoCaptureFrameSource

__all__ = [
    "distance",
    "iou",
    "point_in_zone",
    "zone_at_point",
    "channel_mean_brightness",
    "to_grayscale",
    "VideoCaptureFrameSource",
]
