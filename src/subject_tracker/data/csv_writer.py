"""
CSV export of tracking results, written through an asynchronous writer thread.
"""

import csv
import logging
import queue
import threading

from ..core.analysis.calibration import pixels_to_unit
from ..core.analysis.metrics import detailed_results
from ..utils.geometry import zone_at_point

logger = logging.getLogger(__name__)

MISSING = "N/A"

BASE_COLUMNS = [
    "Frame Number",
    "Timestamp (s)",
    "X Position (px)",
    "Y Position (px)",
    "Pixel Count",
    "Brightness Average",
    "Distance from Previous (px)",
    "Speed (px/s)",
    "Current Zone",
]

DETECTION_COLUMNS = [
    "Detected Class",
    "Detection Score",
    "BBox X (px)",
    "BBox Y (px)",
    "BBox Width (px)",
    "BBox Height (px)",
]


def _calibrated_columns(unit):
    return [
        f"X Position ({unit})",
        f"Y Position ({unit})",
        f"Distance from Previous ({unit})",
        f"Speed ({unit}/s)",
    ]


class CSVWriterThread(threading.Thread):
    """
    Asynchronous CSV writer.

    Rows are queued with ``enqueue`` and written in the background; after
    ``stop`` the thread drains the queue, then flushes and closes the file.
    """

    def __init__(self, path: str, header=None):
        """
        Args:
            path (str): Output CSV file path
            header (list, optional): Column names for the CSV header
        """
        super().__init__(daemon=True)
        self.csv_path = path
        self.header = header or []
        self.queue = queue.Queue()
        self._stop_requested = False
        self.rows_written = 0

        self.f = open(self.csv_path, "w", newline="")
        self.writer = csv.writer(self.f)
        if self.header:
            self.writer.writerow(self.header)

    def run(self):
        try:
            while not self._stop_requested or not self.queue.empty():
                try:
                    row = self.queue.get(timeout=0.3)
                except queue.Empty:
                    continue
                self.writer.writerow(row)
                self.rows_written += 1
                self.queue.task_done()
        finally:
            self.f.flush()
            self.f.close()

    def enqueue(self, row):
        self.queue.put(row)

    def stop(self):
        """Signal the thread to stop once the queue is drained."""
        self._stop_requested = True


def csv_header(include_detection=False, calibrated=False, unit="cm"):
    header = list(BASE_COLUMNS)
    if include_detection:
        header.extend(DETECTION_COLUMNS)
    if calibrated:
        header.extend(_calibrated_columns(unit))
    return header


def _fmt(value, digits=2):
    return MISSING if value is None else f"{value:.{digits}f}"


def result_rows(results, zones=(), pixels_per_unit=None, include_detection=None):
    """
    Yield one CSV row (list of str/int) per result, matching ``csv_header``.

    ``include_detection`` defaults to whether any result carries detection
    fields.
    """
    results = list(results)
    zones = list(zones)
    if include_detection is None:
        include_detection = any(r.has_detection_fields for r in results)
    calibrated = pixels_per_unit is not None and pixels_per_unit > 0

    for item in detailed_results(results):
        r = item.result
        pos = r.position
        zone = zone_at_point(pos, zones) if pos is not None and zones else None
        row = [
            r.frame_number,
            f"{r.timestamp:.3f}",
            _fmt(pos.x if pos else None),
            _fmt(pos.y if pos else None),
            r.pixel_count,
            _fmt(r.brightness_average),
            _fmt(item.distance_from_previous),
            _fmt(item.speed),
            zone.name if zone is not None else "None",
        ]
        if include_detection:
            box = r.detection_box
            row.extend([
                r.detected_class if r.detected_class is not None else MISSING,
                _fmt(r.detection_score, 3),
                _fmt(box.x if box else None),
                _fmt(box.y if box else None),
                _fmt(box.width if box else None),
                _fmt(box.height if box else None),
            ])
        if calibrated:
            row.extend([
                _fmt(pixels_to_unit(pos.x, pixels_per_unit) if pos else None),
                _fmt(pixels_to_unit(pos.y, pixels_per_unit) if pos else None),
                _fmt(pixels_to_unit(item.distance_from_previous, pixels_per_unit)),
                _fmt(pixels_to_unit(item.speed, pixels_per_unit)),
            ])
        yield row


def export_results_csv(path, results, zones=(), pixels_per_unit=None, unit="cm"):
    """
    Write results to ``path`` as CSV.

    Returns:
        int: Number of data rows written
    """
    results = list(results)
    include_detection = any(r.has_detection_fields for r in results)
    calibrated = pixels_per_unit is not None and pixels_per_unit > 0

    writer = CSVWriterThread(
        str(path), header=csv_header(include_detection, calibrated, unit)
    )
    writer.start()
    try:
        for row in result_rows(results, zones, pixels_per_unit, include_detection):
            writer.enqueue(row)
    finally:
        writer.stop()
        writer.join()

    logger.info(f"Exported {writer.rows_written} rows to {path}")
    return writer.rows_written
