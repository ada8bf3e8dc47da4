"""
Pixel to real-world unit calibration.

A calibration is a reference line drawn on the video together with its real
length. ``pixels_per_unit`` of None means uncalibrated; every conversion then
returns its input unchanged and the formatters report pixel units.
"""

import logging
from dataclasses import dataclass

from ...utils.geometry import distance

logger = logging.getLogger(__name__)

DEFAULT_UNIT = "cm"
DEFAULT_REAL_LENGTH = 10.0
MIN_LINE_LENGTH_PX = 20.0


def pixel_distance(start, end) -> float:
    return distance(start, end)


def calculate_pixels_per_unit(pixel_length: float, real_length: float) -> float:
    if real_length <= 0:
        raise ValueError("Real distance must be greater than 0")
    return pixel_length / real_length


def _calibrated(pixels_per_unit):
    return pixels_per_unit is not None and pixels_per_unit > 0


def pixels_to_unit(pixels: float, pixels_per_unit=None) -> float:
    if not _calibrated(pixels_per_unit):
        return pixels
    return pixels / pixels_per_unit


def unit_to_pixels(value: float, pixels_per_unit=None) -> float:
    if not _calibrated(pixels_per_unit):
        return value
    return value * pixels_per_unit


def pixel_area_to_unit(pixel_area: float, pixels_per_unit=None) -> float:
    if not _calibrated(pixels_per_unit):
        return pixel_area
    return pixel_area / (pixels_per_unit * pixels_per_unit)


def format_distance(pixels, pixels_per_unit=None, show_unit=True, unit=DEFAULT_UNIT):
    if _calibrated(pixels_per_unit):
        value = f"{pixels_to_unit(pixels, pixels_per_unit):.2f}"
        return f"{value} {unit}" if show_unit else value
    return f"{pixels:.2f} px" if show_unit else f"{pixels:.2f}"


def format_speed(pixels_per_second, pixels_per_unit=None, show_unit=True, unit=DEFAULT_UNIT):
    if _calibrated(pixels_per_unit):
        value = f"{pixels_to_unit(pixels_per_second, pixels_per_unit):.2f}"
        return f"{value} {unit}/s" if show_unit else value
    return f"{pixels_per_second:.2f} px/s" if show_unit else f"{pixels_per_second:.2f}"


def format_area(pixel_area, pixels_per_unit=None, show_unit=True, unit=DEFAULT_UNIT):
    if _calibrated(pixels_per_unit):
        value = f"{pixel_area_to_unit(pixel_area, pixels_per_unit):.2f}"
        return f"{value} {unit}²" if show_unit else value
    return f"{pixel_area:.0f} px²" if show_unit else f"{pixel_area:.0f}"


@dataclass(frozen=True)
class CalibrationLine:
    start: tuple
    end: tuple
    real_length: float = DEFAULT_REAL_LENGTH

    @property
    def pixel_length(self) -> float:
        return pixel_distance(self.start, self.end)

    @property
    def pixels_per_unit(self) -> float:
        return calculate_pixels_per_unit(self.pixel_length, self.real_length)


class Calibration:
    """
    Mutable calibration state: at most one reference line.

    Lines shorter than ``min_line_length`` pixels are ignored when drawn.
    """

    def __init__(self, unit=DEFAULT_UNIT, min_line_length=MIN_LINE_LENGTH_PX):
        self.unit = unit
        self.min_line_length = min_line_length
        self.line = None

    @property
    def pixels_per_unit(self):
        return None if self.line is None else self.line.pixels_per_unit

    @property
    def is_calibrated(self):
        ppu = self.pixels_per_unit
        return ppu is not None and ppu > 0

    def set_line(self, start, end, real_length=DEFAULT_REAL_LENGTH):
        """
        Store a reference line. Returns False (keeping the previous line)
        when the line is shorter than ``min_line_length``.
        """
        if real_length <= 0:
            raise ValueError("Real distance must be greater than 0")
        line = CalibrationLine(tuple(start), tuple(end), float(real_length))
        if line.pixel_length < self.min_line_length:
            logger.warning(
                f"Calibration line too short ({line.pixel_length:.1f}px < "
                f"{self.min_line_length:.0f}px), ignored"
            )
            return False
        self.line = line
        logger.info(f"Calibrated: {line.pixels_per_unit:.3f} px/{self.unit}")
        return True

    def set_real_length(self, real_length):
        if self.line is None:
            raise ValueError("No calibration line to update")
        if real_length <= 0:
            raise ValueError("Real distance must be greater than 0")
        self.line = CalibrationLine(self.line.start, self.line.end, float(real_length))
        logger.info(f"Calibration updated: {self.line.pixels_per_unit:.3f} px/{self.unit}")

    def clear(self):
        self.line = None

    def to_unit(self, pixels):
        return pixels_to_unit(pixels, self.pixels_per_unit)

    def to_pixels(self, value):
        return unit_to_pixels(value, self.pixels_per_unit)

    def area_to_unit(self, pixel_area):
        return pixel_area_to_unit(pixel_area, self.pixels_per_unit)
