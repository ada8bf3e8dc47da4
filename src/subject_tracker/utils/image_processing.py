"""
Utility functions for image processing in single-subject tracking.

Frames are HxWx3 uint8 arrays in OpenCV (BGR) channel order.
"""

import cv2
import numpy as np


def to_grayscale(frame):
    """
    Convert a color frame to 8-bit luma (0.299 R + 0.587 G + 0.114 B).

    Single-channel input is returned unchanged.
    """
    if frame.ndim == 2:
        return frame
    return cv2.cvtColor(frame, cv2.COLOR_BGR2GRAY)


def channel_mean_brightness(frame):
    """Unweighted per-pixel mean of the three color channels, as float32."""
    if frame.ndim == 2:
        return frame.astype(np.float32)
    return frame[:, :, :3].astype(np.float32).mean(axis=2)


def processing_size(width, height, processing_width):
    """
    Size of the downscaled processing frame and the linear scale factors back
    to the original resolution.

    Frames narrower than ``processing_width`` are processed at full size.

    Returns:
        tuple: ((proc_width, proc_height), (scale_x, scale_y))
    """
    if width <= processing_width:
        return (width, height), (1.0, 1.0)
    proc_w = int(processing_width)
    proc_h = max(1, int(round(proc_w * height / width)))
    return (proc_w, proc_h), (width / proc_w, height / proc_h)


def downscale(frame, size):
    """Resize a frame to ``size`` (width, height) with area interpolation."""
    h, w = frame.shape[:2]
    if (w, h) == tuple(size):
        return frame
    return cv2.resize(frame, tuple(size), interpolation=cv2.INTER_AREA)


def extract_patch(frame, cx, cy, size):
    """
    Cut a ``size`` x ``size`` square centered at (cx, cy).

    The source rectangle is clamped to the frame bounds and the clipped region
    is resized back to ``size`` x ``size``, so edge patches are stretched
    rather than padded.
    """
    h, w = frame.shape[:2]
    half = size // 2
    x0 = int(max(0, min(w - 1, round(cx) - half)))
    y0 = int(max(0, min(h - 1, round(cy) - half)))
    x1 = min(w, x0 + size)
    y1 = min(h, y0 + size)
    patch = frame[y0:y1, x0:x1]
    if patch.shape[0] != size or patch.shape[1] != size:
        patch = cv2.resize(patch, (size, size), interpolation=cv2.INTER_LINEAR)
    return patch
