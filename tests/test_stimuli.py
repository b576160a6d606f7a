"""Tests for series loading."""
from __future__ import annotations

import logging
import math
from pathlib import Path

import pytest

from linejudge.config import series_order
from linejudge.errors import StimulusFormatError
from linejudge.stimuli import detect_kind, load_series_file, load_series_set, parse_series_text
from linejudge.trials import StimulusKind

TILT_CSV = """Line1Length,Line1Tilt,Line2Length,Line2Tilt
3,0,3,15

3,15,3.5,0
"""

SATURATION_CSV = """line1_length,line1_saturation,line2_length,line2_saturation
4,70,4,20
"""

LENGTH_CSV = """a,b,c,d
2,99,2.5,99
"""


class TestDetectKind:
    def test_header_selects_variant(self) -> None:
        assert detect_kind("Line1Length,Line1TILT,Line2Length,Line2Tilt") is StimulusKind.TILT
        assert detect_kind("len,Saturation,len,saturation") is StimulusKind.SATURATION
        assert detect_kind("l1,x,l2,y") is StimulusKind.LENGTH


class TestParseSeriesText:
    def test_tilt_rows_and_blank_lines(self) -> None:
        series = parse_series_text(TILT_CSV, "Series-1a")
        assert series.name == "Series-1a"
        assert len(series) == 2
        first, second = series.trials
        assert (first.line1_length, first.line1_tilt, first.line2_length, first.line2_tilt) == (3, 0, 3, 15)
        assert second.line2_length == 3.5
        assert series.kind is StimulusKind.TILT

    def test_saturation_rows(self) -> None:
        trial = parse_series_text(SATURATION_CSV, "s").trials[0]
        assert trial.line1_saturation == 70
        assert trial.line2_saturation == 20
        assert trial.line1_tilt is None

    def test_length_only_reads_first_and_third_fields(self) -> None:
        trial = parse_series_text(LENGTH_CSV, "s").trials[0]
        assert (trial.line1_length, trial.line2_length) == (2, 2.5)
        assert trial.kind is StimulusKind.LENGTH

    def test_non_numeric_fields_become_nan_with_warning(self, caplog: pytest.LogCaptureFixture) -> None:
        text = "l1,tilt,l2,tilt\nabc,0,3\n"
        with caplog.at_level(logging.WARNING, logger="linejudge.stimuli"):
            trial = parse_series_text(text, "broken").trials[0]
        assert math.isnan(trial.line1_length)
        assert math.isnan(trial.line2_tilt)
        assert trial.line2_length == 3
        assert "broken" in caplog.text

    def test_strict_mode_rejects_non_numeric_fields(self) -> None:
        with pytest.raises(StimulusFormatError):
            parse_series_text("l1,tilt,l2,tilt\n3,x,3,0\n", "strict", strict=True)

    def test_empty_text_has_no_header(self) -> None:
        with pytest.raises(StimulusFormatError):
            parse_series_text("\n\n", "empty")

    def test_header_only_gives_empty_series(self) -> None:
        assert len(parse_series_text("l1,tilt,l2,tilt\n", "none")) == 0


class TestLoadFiles:
    def test_load_series_file_uses_stem_as_name(self, tmp_path: Path) -> None:
        path = tmp_path / "Series-9.csv"
        path.write_text(TILT_CSV, encoding="utf-8")
        series = load_series_file(path)
        assert series.name == "Series-9"
        assert series.source == path

    def test_missing_file_raises(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_series_file(tmp_path / "nope.csv")

    def test_unavailable_series_are_skipped_in_order(
        self, tmp_path: Path, caplog: pytest.LogCaptureFixture
    ) -> None:
        (tmp_path / "Series-1b.csv").write_text(TILT_CSV, encoding="utf-8")
        (tmp_path / "Series-2a.csv").write_text("", encoding="utf-8")
        (tmp_path / "Series-2b.csv").write_text("l1,saturation,l2,saturation\n", encoding="utf-8")
        (tmp_path / "Series-1a.csv").write_text(TILT_CSV, encoding="utf-8")
        with caplog.at_level(logging.ERROR, logger="linejudge.stimuli"):
            loaded = load_series_set(tmp_path, series_order("C"))
        assert [series.name for series in loaded] == ["Series-1b", "Series-1a"]
        assert "Series-2a" in caplog.text
        assert "Series-2b" in caplog.text

    def test_bundled_data_loads_for_every_group(self, data_dir: Path) -> None:
        for group in "ABCD":
            loaded = load_series_set(data_dir, series_order(group))
            assert [series.name for series in loaded] == list(series_order(group))
            assert all(len(series) > 0 for series in loaded)
