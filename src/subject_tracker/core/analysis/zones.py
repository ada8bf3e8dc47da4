"""
Dwell time and entry/exit counts per zone.
"""

import logging

from ...utils.geometry import point_in_zone
from ..types import ZoneMetrics

logger = logging.getLogger(__name__)


def analyze_zones(zones, results, fps):
    """
    Recompute zone metrics from scratch over an ordered result sequence.

    A frame without a position counts as outside every zone, so it closes an
    open visit. Each in-zone frame adds one frame duration (1/fps) of dwell.

    Args:
        zones: Iterable of Zone
        results: FrameResults in frame order
        fps (float): Video frame rate

    Returns:
        list[ZoneMetrics]: One entry per zone, in input order
    """
    if fps <= 0:
        raise ValueError(f"fps must be positive, got {fps}")

    frame_duration = 1.0 / fps
    analytics = []
    for zone in zones:
        metrics = ZoneMetrics(zone_id=zone.id, zone_name=zone.name)
        was_inside = False

        for result in results:
            inside = result.position is not None and point_in_zone(result.position, zone)
            if inside:
                metrics.time_in_zone += frame_duration
                if not was_inside:
                    metrics.entry_count += 1
                    if metrics.first_entry is None:
                        metrics.first_entry = result.timestamp
            elif was_inside:
                metrics.exit_count += 1
                metrics.last_exit = result.timestamp
            was_inside = inside

        analytics.append(metrics)
        logger.debug(
            f"Zone '{zone.name}': {metrics.time_in_zone:.2f}s, "
            f"{metrics.entry_count} entries, {metrics.exit_count} exits"
        )
    return analytics
