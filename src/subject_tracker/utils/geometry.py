"""
Utility functions for geometry operations in single-subject tracking.

All functions are pure. Degenerate input yields 0.0 / False rather than an error.
"""

import math

from ..core.types import BoundingBox, Zone


def _xy(obj):
    """Return (x, y) for a point-like object or the center of a box."""
    if isinstance(obj, BoundingBox):
        return obj.center
    if isinstance(obj, (tuple, list)):
        return float(obj[0]), float(obj[1])
    return obj.x, obj.y


def distance(a, b) -> float:
    """
    Euclidean distance between two points or box centers.

    Args:
        a, b: Point, BoundingBox (its center is used) or an (x, y) tuple

    Returns:
        float: Distance in pixels
    """
    ax, ay = _xy(a)
    bx, by = _xy(b)
    return math.hypot(bx - ax, by - ay)


def bbox_distance(box_a: BoundingBox, box_b: BoundingBox) -> float:
    """Distance between the centers of two boxes."""
    return distance(box_a.center, box_b.center)


def bbox_area(box: BoundingBox) -> float:
    return box.width * box.height


def bbox_center(box: BoundingBox):
    return box.center


def iou(box_a: BoundingBox, box_b: BoundingBox) -> float:
    """
    Intersection over union of two axis-aligned boxes.

    Returns 0.0 when the boxes do not overlap or either box has a
    non-positive area. The result is symmetric and lies in [0, 1].
    """
    if box_a.width <= 0 or box_a.height <= 0:
        return 0.0
    if box_b.width <= 0 or box_b.height <= 0:
        return 0.0

    inter_w = min(box_a.x + box_a.width, box_b.x + box_b.width) - max(box_a.x, box_b.x)
    inter_h = min(box_a.y + box_a.height, box_b.y + box_b.height) - max(box_a.y, box_b.y)
    if inter_w <= 0 or inter_h <= 0:
        return 0.0

    intersection = inter_w * inter_h
    union = bbox_area(box_a) + bbox_area(box_b) - intersection
    if union <= 0:
        return 0.0
    return min(1.0, intersection / union)


def point_in_zone(point, zone: Zone) -> bool:
    """
    Test zone membership.

    Rectangles use inclusive axis-aligned bounds. Circles are centered on
    (zone.x, zone.y) with radius width / 2.
    """
    px, py = _xy(point)
    if zone.shape == "rectangle":
        return (
            zone.x <= px <= zone.x + zone.width
            and zone.y <= py <= zone.y + zone.height
        )
    if zone.shape == "circle":
        radius = zone.width / 2.0
        return math.hypot(px - zone.x, py - zone.y) <= radius
    return False


def zone_at_point(point, zones):
    """Return the first zone containing the point, or None."""
    for zone in zones:
        if point_in_zone(point, zone):
            return zone
    return None
