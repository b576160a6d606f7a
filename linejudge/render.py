"""Geometry for drawing a trial's pair of lines.

Everything here is a pure function of the trial and the pixels-per-inch
calibration.  Coordinates are computed on a fixed 1200 x 500 canvas (origin
top left, y pointing down) and converted to PsychoPy ``pix`` units, which are
centred on the window with y pointing up, only at draw time.
"""
from __future__ import annotations

import colorsys
import math
from dataclasses import dataclass
from typing import List, Optional, Tuple

from .template import convert_color_value
from .trials import Trial

Point = Tuple[float, float]

CANVAS_SIZE: Tuple[int, int] = (1200, 500)
LINE1_ANCHOR: Point = (300.0, 250.0)
LINE2_ANCHOR: Point = (900.0, 250.0)
STROKE_WIDTH_IN: float = 0.1
SATURATION_HUE: float = 0.0  # red
SATURATION_LIGHTNESS: float = 0.5
BLACK: Tuple[int, int, int] = (0, 0, 0)


def saturation_to_rgb(saturation: float) -> Tuple[int, int, int]:
    """Map a saturation percentage onto the fixed-hue red scale."""

    if math.isnan(saturation):
        return BLACK
    fraction = min(max(saturation, 0.0), 100.0) / 100.0
    red, green, blue = colorsys.hls_to_rgb(SATURATION_HUE, SATURATION_LIGHTNESS, fraction)
    return (int(round(red * 255)), int(round(green * 255)), int(round(blue * 255)))


@dataclass(frozen=True)
class LineDrawing:
    """Endpoints, stroke width and colour of one line on the canvas."""

    start: Point
    end: Point
    width_px: float
    rgb255: Tuple[int, int, int] = BLACK

    @property
    def length_px(self) -> float:
        return math.hypot(self.end[0] - self.start[0], self.end[1] - self.start[1])

    def to_window(self, canvas_size: Tuple[int, int] = CANVAS_SIZE) -> Tuple[Point, Point]:
        """Return the endpoints in centred, y-up window coordinates."""

        half_w = canvas_size[0] / 2.0
        half_h = canvas_size[1] / 2.0
        return (
            (self.start[0] - half_w, half_h - self.start[1]),
            (self.end[0] - half_w, half_h - self.end[1]),
        )

    def psychopy_color(self) -> List[float]:
        return convert_color_value(self.rgb255)


def line_segment(
    length_in: float,
    center: Point,
    pixels_per_inch: float,
    tilt_deg: Optional[float] = None,
    saturation: Optional[float] = None,
) -> LineDrawing:
    """Return a line of ``length_in`` inches centred on ``center``.

    Positive tilt rotates the line counter-clockwise as seen on screen.
    """

    half_length = length_in * pixels_per_inch / 2.0
    radians = math.radians(tilt_deg or 0.0)
    dx = half_length * math.cos(radians)
    dy = half_length * math.sin(radians)
    center_x, center_y = center
    colour = BLACK if saturation is None else saturation_to_rgb(saturation)
    return LineDrawing(
        start=(center_x - dx, center_y + dy),
        end=(center_x + dx, center_y - dy),
        width_px=STROKE_WIDTH_IN * pixels_per_inch,
        rgb255=colour,
    )


def trial_drawings(trial: Trial, pixels_per_inch: float) -> Tuple[LineDrawing, LineDrawing]:
    """Return drawing instructions for both lines of ``trial``."""

    first = line_segment(
        trial.line1_length,
        LINE1_ANCHOR,
        pixels_per_inch,
        tilt_deg=trial.line1_tilt,
        saturation=trial.line1_saturation,
    )
    second = line_segment(
        trial.line2_length,
        LINE2_ANCHOR,
        pixels_per_inch,
        tilt_deg=trial.line2_tilt,
        saturation=trial.line2_saturation,
    )
    return first, second


__all__ = [
    "CANVAS_SIZE",
    "LINE1_ANCHOR",
    "LINE2_ANCHOR",
    "STROKE_WIDTH_IN",
    "saturation_to_rgb",
    "LineDrawing",
    "line_segment",
    "trial_drawings",
]
