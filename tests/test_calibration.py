"""Tests for the persisted screen calibration."""
from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest

from linejudge.calibration import (
    CARD_ASPECT_RATIO,
    CARD_WIDTH_IN,
    CARD_WIDTH_KEY,
    DEFAULT_CARD_WIDTH_PX,
    DEFAULT_PIXELS_PER_INCH,
    PIXELS_PER_INCH_KEY,
    CalibrationStore,
    ScreenCalibration,
)


class TestScreenCalibration:
    def test_defaults(self) -> None:
        calibration = ScreenCalibration()
        assert calibration.pixels_per_inch == DEFAULT_PIXELS_PER_INCH
        assert calibration.card_width_px == DEFAULT_CARD_WIDTH_PX

    def test_from_card_width(self) -> None:
        calibration = ScreenCalibration.from_card_width(337)
        assert calibration.pixels_per_inch == pytest.approx(100.0)
        assert calibration.card_width_in == pytest.approx(CARD_WIDTH_IN)
        assert calibration.card_height_px == pytest.approx(337 * CARD_ASPECT_RATIO)
        assert calibration.inches_to_pixels(2.0) == pytest.approx(200.0)

    def test_width_is_clamped(self) -> None:
        assert ScreenCalibration.from_card_width(50).card_width_px == 200
        assert ScreenCalibration.from_card_width(5000).card_width_px == 600

    def test_adjusted(self) -> None:
        calibration = ScreenCalibration.from_card_width(300).adjusted(10)
        assert calibration.card_width_px == 310
        assert calibration.pixels_per_inch == pytest.approx(310 / CARD_WIDTH_IN)


class TestCalibrationStore:
    def test_missing_file_gives_defaults(self, tmp_path: Path) -> None:
        store = CalibrationStore(tmp_path / "calibration.json").load()
        assert store.as_dict() == {}
        assert ScreenCalibration.from_store(store) == ScreenCalibration()

    def test_round_trip_survives_new_store(self, tmp_path: Path) -> None:
        path = tmp_path / "nested" / "calibration.json"
        store = CalibrationStore(path).load()
        ScreenCalibration.from_card_width(400).to_store(store)
        store.save()

        reloaded = CalibrationStore(path).load()
        assert reloaded.get(CARD_WIDTH_KEY) == 400
        assert reloaded.get(PIXELS_PER_INCH_KEY) == pytest.approx(400 / CARD_WIDTH_IN)
        assert ScreenCalibration.from_store(reloaded).card_width_px == 400

    def test_scopes_do_not_clobber_each_other(self, tmp_path: Path) -> None:
        path = tmp_path / "calibration.json"
        other = CalibrationStore(path, scope="other").load()
        other.set("pixelsPerInch", 50)
        other.save()

        mine = CalibrationStore(path).load()
        assert mine.get("pixelsPerInch") is None
        mine.set("pixelsPerInch", 120)
        mine.save()

        payload = json.loads(path.read_text(encoding="utf-8"))
        assert payload["other"]["pixelsPerInch"] == 50
        assert payload["linejudge"]["pixelsPerInch"] == 120

    def test_corrupt_file_is_ignored(self, tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
        path = tmp_path / "calibration.json"
        path.write_text("{not json", encoding="utf-8")
        with caplog.at_level(logging.WARNING, logger="linejudge.calibration"):
            store = CalibrationStore(path).load()
        assert store.as_dict() == {}
        assert "calibration" in caplog.text

    def test_invalid_values_fall_back_to_defaults(self, tmp_path: Path) -> None:
        store = CalibrationStore(tmp_path / "c.json")
        store.set(PIXELS_PER_INCH_KEY, "wide")
        store.set(CARD_WIDTH_KEY, -4)
        assert ScreenCalibration.from_store(store) == ScreenCalibration()
