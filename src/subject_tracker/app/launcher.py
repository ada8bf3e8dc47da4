#!/usr/bin/env python3
"""
Command-line entry point for the Single-Subject-Tracker.

Runs brightness or background-subtraction tracking headless over a video file
and writes the per-frame results as CSV.
"""

import argparse
import json
import logging
import os
import sys
from pathlib import Path

from ..core.analysis.calibration import calculate_pixels_per_unit, format_distance, format_speed
from ..core.analysis.metrics import compute_tracking_metrics
from ..core.analysis.zones import analyze_zones
from ..core.config import DetectorConfig, TrackingMethod, load_config
from ..core.detectors import create_detector
from ..core.errors import TrackingError
from ..core.tracking.session import TrackingSession
from ..core.types import Zone
from ..data.csv_writer import export_results_csv
from ..utils.video_io import VideoCaptureFrameSource

HEADLESS_METHODS = [TrackingMethod.BRIGHTNESS.value, TrackingMethod.BACKGROUND_SUBTRACTION.value]


def setup_logging(log_level=logging.INFO):
    """Configure console logging for the application."""
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    logger = logging.getLogger(__name__)
    logger.info("Single-Subject-Tracker starting up...")
    logger.info(f"Python version: {sys.version}")
    logger.info(f"Working directory: {os.getcwd()}")


def _calibration_arg(value):
    try:
        pixels, real = (float(v) for v in value.split(","))
    except ValueError:
        raise argparse.ArgumentTypeError(
            f"expected PIXELS,REAL_LENGTH (e.g. 250,10), got {value!r}"
        )
    try:
        return calculate_pixels_per_unit(pixels, real)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e))


def parse_arguments(argv=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Single-Subject-Tracker - track one subject through a video",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  subject-tracker clip.mp4 --output clip.csv
  subject-tracker clip.mp4 --method mouse-tracker --zones zones.json
  subject-tracker clip.mp4 --config params.json --calibration 250,10
        """,
    )
    parser.add_argument("video", type=str, help="Input video file")
    parser.add_argument("--config", type=str, help="JSON parameter file")
    parser.add_argument(
        "--output", type=str, help="Output CSV path (default: <video>_tracking.csv)"
    )
    parser.add_argument(
        "--method",
        choices=HEADLESS_METHODS,
        help="Tracking method (overrides the config file; default: brightness)",
    )
    parser.add_argument("--zones", type=str, help="JSON file with a list of zones")
    parser.add_argument(
        "--calibration",
        type=_calibration_arg,
        metavar="PIXELS,REAL",
        help="Reference length in pixels and in real units, e.g. 250,10",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        default="INFO",
        help="Set the logging level (default: INFO)",
    )
    parser.add_argument(
        "--version", action="version", version="Single-Subject-Tracker 1.0.0"
    )
    return parser.parse_args(argv)


def load_zones(path):
    """Read zones from a JSON list of objects with Zone field names."""
    with open(path, "r", encoding="utf-8") as f:
        raw = json.load(f)
    if not isinstance(raw, list):
        raise ValueError(f"Zones file {path} must contain a JSON list")
    zones = []
    for i, item in enumerate(raw):
        if not isinstance(item, dict):
            raise ValueError(f"Zone {i + 1} in {path} must be a JSON object")
        item = dict(item)
        item.setdefault("id", str(i))
        item.setdefault("name", f"Zone {i + 1}")
        try:
            zones.append(Zone(**item))
        except TypeError as e:
            raise ValueError(f"Invalid zone {i + 1} in {path}: {e}") from e
    return zones


def build_config(args):
    config = load_config(args.config) if args.config else DetectorConfig(
        method=TrackingMethod.BRIGHTNESS
    )
    if args.method:
        config = config.with_updates(method=TrackingMethod(args.method))
    if config.method.value not in HEADLESS_METHODS:
        raise TrackingError(
            f"Method '{config.method.value}' needs an external model and cannot run "
            f"from the command line; use one of {', '.join(HEADLESS_METHODS)}"
        )
    return config


def run_tracking(args):
    """Run one headless tracking job; returns the finished session."""
    logger = logging.getLogger(__name__)
    config = build_config(args)
    zones = load_zones(args.zones) if args.zones else []
    output = args.output or str(Path(args.video).with_name(Path(args.video).stem + "_tracking.csv"))

    def report(percent, message):
        logger.info(f"[{percent:3d}%] {message}")

    with VideoCaptureFrameSource(args.video) as source:
        detector = create_detector(config)
        if config.method == TrackingMethod.BACKGROUND_SUBTRACTION:
            logger.info("Capturing temporal-median background...")
            detector.capture_background(source)

        session = TrackingSession(source, progress_callback=report, progress_interval=1.0)
        session.execute(detector, config)

        for zm in analyze_zones(zones, session.results, source.fps):
            logger.info(
                f"Zone '{zm.zone_name}': {zm.time_in_zone:.2f}s inside, "
                f"{zm.entry_count} entries, {zm.exit_count} exits"
            )

    ppu = args.calibration
    metrics = compute_tracking_metrics(session.results, ppu)
    logger.info(
        f"Detected in {metrics.successful_detections}/{metrics.total_frames_tracked} frames; "
        f"distance {format_distance(metrics.total_distance, ppu)}, "
        f"mean speed {format_speed(metrics.average_speed, ppu)}"
    )

    export_results_csv(output, session.results, zones=zones, pixels_per_unit=ppu)
    return session


def main(argv=None):
    """Application entry point."""
    args = parse_arguments(argv)
    setup_logging(getattr(logging, args.log_level.upper()))
    logger = logging.getLogger(__name__)

    try:
        run_tracking(args)
    except (TrackingError, ValueError, OSError) as e:
        logger.error(f"Tracking failed: {e}")
        return 1
    except KeyboardInterrupt:
        logger.info("Interrupted")
        return 130
    return 0


if __name__ == "__main__":
    sys.exit(main())
