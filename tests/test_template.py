"""Tests for the experiment template helpers."""
from __future__ import annotations

import json
import pickle
import zipfile
from pathlib import Path
from typing import List

from linejudge.export import export_session
from linejudge.results import Result
from linejudge.template import BaseExperiment, convert_color_value
from linejudge.trials import Trial


def test_convert_color_value() -> None:
    assert convert_color_value([0, 255, 128]) == [-1.0, 1.0, 0.0]


def test_file_prefix_pads_numeric_ids(tmp_path: Path) -> None:
    experiment = BaseExperiment("line_judgment", output_directory=str(tmp_path))
    experiment.experiment_info.update({"Participant ID": "7", "Session": "2"})
    assert experiment.file_prefix() == "line_judgment_007_2"
    experiment.experiment_info["Participant ID"] = "P 12"
    assert experiment.file_prefix() == "line_judgment_P_12_2"


def test_info_and_pickle_are_written(tmp_path: Path) -> None:
    experiment = BaseExperiment("line_judgment", output_directory=str(tmp_path / "out"))
    experiment.experiment_info.update({"Participant ID": "3", "Session": "1", "Group": "A"})
    info_path = experiment.save_experiment_info()
    assert json.loads(info_path.read_text(encoding="utf-8"))["Group"] == "A"

    pickle_path = experiment.save_experiment_pickle({"series_results": {}})
    with pickle_path.open("rb") as handle:
        state = pickle.load(handle)
    assert state["experiment_name"] == "line_judgment"
    assert state["saved_files"] == [str(info_path)]
    assert experiment.saved_files == [info_path, pickle_path]


def test_new_run_gets_its_own_prefix(tmp_path: Path) -> None:
    experiment = BaseExperiment("line_judgment", output_directory=str(tmp_path))
    experiment.experiment_info.update({"Participant ID": "7", "Session": "1"})
    assert experiment.start_new_run() == 2
    assert experiment.file_prefix() == "line_judgment_007_1_run2"
    experiment.start_new_run()
    assert experiment.file_prefix() == "line_judgment_007_1_run3"


def test_restarted_run_keeps_earlier_exports(tmp_path: Path) -> None:
    experiment = BaseExperiment("line_judgment", output_directory=str(tmp_path))
    experiment.experiment_info.update({"Participant ID": "7", "Session": "1"})
    trial = Trial(3.0, 3.0, line1_tilt=0.0, line2_tilt=10.0)

    def _export(response: str) -> List[Path]:
        result = Result.from_trial(
            trial,
            trial_index=1,
            response=response,
            response_time_ms=500,
            timestamp="2024-01-01T00:00:00.000Z",
        )
        return export_session(
            experiment.output_dir(),
            {"Series-1a": (result,), "Series-1b": (result,)},
            prefix=experiment.file_prefix(),
        )

    first = _export("same")
    experiment.start_new_run()
    second = _export("different")

    assert set(first).isdisjoint(second)
    assert all(path.exists() for path in first + second)
    with zipfile.ZipFile(first[0]) as archive:
        first_text = archive.read("Series-1a_results.csv").decode("utf-8")
    assert "Correct" in first_text
    assert "Incorrect" not in first_text
    with zipfile.ZipFile(second[0]) as archive:
        assert "Incorrect" in archive.read("Series-1a_results.csv").decode("utf-8")


def test_saved_files_are_not_duplicated(tmp_path: Path) -> None:
    experiment = BaseExperiment("line_judgment", output_directory=str(tmp_path))
    experiment.experiment_info.update({"Participant ID": "3", "Session": "1"})
    first = experiment.save_experiment_pickle({})
    second = experiment.save_experiment_pickle({})
    assert first == second
    assert experiment.saved_files == [first]
