"""Tests for line geometry."""
from __future__ import annotations

import math

import pytest

from linejudge.render import (
    LINE1_ANCHOR,
    LINE2_ANCHOR,
    line_segment,
    saturation_to_rgb,
    trial_drawings,
)
from linejudge.trials import Trial


class TestLineSegment:
    def test_horizontal_line_length_and_width(self) -> None:
        drawing = line_segment(2.0, (300.0, 250.0), 100.0)
        assert drawing.start == pytest.approx((200.0, 250.0))
        assert drawing.end == pytest.approx((400.0, 250.0))
        assert drawing.length_px == pytest.approx(200.0)
        assert drawing.width_px == pytest.approx(10.0)
        assert drawing.rgb255 == (0, 0, 0)

    def test_tilt_rotates_about_centre(self) -> None:
        drawing = line_segment(2.0, (300.0, 250.0), 100.0, tilt_deg=90.0)
        assert drawing.start == pytest.approx((300.0, 350.0))
        assert drawing.end == pytest.approx((300.0, 150.0))
        assert drawing.length_px == pytest.approx(200.0)

    def test_tilt_preserves_length(self) -> None:
        drawing = line_segment(3.0, (0.0, 0.0), 96.0, tilt_deg=33.0)
        assert drawing.length_px == pytest.approx(3.0 * 96.0)

    def test_window_coordinates_are_centred_and_y_up(self) -> None:
        drawing = line_segment(2.0, (300.0, 250.0), 100.0, tilt_deg=90.0)
        start, end = drawing.to_window((1200, 500))
        assert start == pytest.approx((-300.0, -100.0))
        assert end == pytest.approx((-300.0, 100.0))

    def test_black_in_psychopy_range(self) -> None:
        assert line_segment(1.0, (0.0, 0.0), 96.0).psychopy_color() == [-1.0, -1.0, -1.0]


class TestSaturation:
    def test_full_saturation_is_pure_red(self) -> None:
        assert saturation_to_rgb(100.0) == (255, 0, 0)

    def test_zero_saturation_is_grey(self) -> None:
        red, green, blue = saturation_to_rgb(0.0)
        assert red == green == blue

    def test_values_are_clamped(self) -> None:
        assert saturation_to_rgb(150.0) == saturation_to_rgb(100.0)
        assert saturation_to_rgb(-20.0) == saturation_to_rgb(0.0)

    def test_saturation_line_is_coloured(self) -> None:
        drawing = line_segment(1.0, (0.0, 0.0), 96.0, saturation=100.0)
        assert drawing.rgb255 == (255, 0, 0)
        assert drawing.psychopy_color() == [1.0, -1.0, -1.0]

    def test_nan_saturation_falls_back_to_black(self) -> None:
        assert saturation_to_rgb(math.nan) == (0, 0, 0)


class TestTrialDrawings:
    def test_lines_sit_on_fixed_anchors(self) -> None:
        first, second = trial_drawings(Trial(2.0, 3.0, line1_tilt=0.0, line2_tilt=0.0), 96.0)
        mid_first = ((first.start[0] + first.end[0]) / 2, (first.start[1] + first.end[1]) / 2)
        mid_second = ((second.start[0] + second.end[0]) / 2, (second.start[1] + second.end[1]) / 2)
        assert mid_first == pytest.approx(LINE1_ANCHOR)
        assert mid_second == pytest.approx(LINE2_ANCHOR)
        assert first.length_px == pytest.approx(2.0 * 96.0)
        assert second.length_px == pytest.approx(3.0 * 96.0)

    def test_calibration_scales_lengths(self) -> None:
        trial = Trial(2.0, 2.0)
        small, _ = trial_drawings(trial, 80.0)
        large, _ = trial_drawings(trial, 160.0)
        assert large.length_px == pytest.approx(2 * small.length_px)
