"""Reusable experiment template utilities.

The :class:`BaseExperiment` class provides lightweight helpers for saving
participant information and a pickled session summary.  Task-specific
experiments extend it and focus on presentation logic.
"""
from __future__ import annotations

import json
import os
import pickle
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, List


def convert_color_value(rgb_values: Iterable[int]) -> List[float]:
    """Convert 0-255 RGB values to PsychoPy's -1 to 1 colour range."""

    converted = [((value / 255.0) * 2.0) - 1.0 for value in rgb_values]
    return [round(val, 2) for val in converted]


@dataclass
class BaseExperiment:
    """Core functionality for saving experiment metadata."""

    experiment_name: str
    output_directory: str = "results"

    def __post_init__(self) -> None:
        self.experiment_info: Dict[str, str] = {}
        self.saved_files: List[Path] = []
        self.run_number = 1

    # ------------------------------------------------------------------
    # File naming helpers
    # ------------------------------------------------------------------
    def output_dir(self) -> Path:
        folder = Path(self.output_directory).expanduser()
        folder.mkdir(parents=True, exist_ok=True)
        return folder

    def file_prefix(self) -> str:
        participant = self.experiment_info.get("Participant ID", "") or "000"
        try:
            subject_code = f"{int(participant):03d}"
        except (TypeError, ValueError):
            subject_code = str(participant).strip().replace(" ", "_")
        session = self.experiment_info.get("Session", "1")
        prefix = f"{self.experiment_name}_{subject_code}_{session}"
        if self.run_number > 1:
            prefix = f"{prefix}_run{self.run_number}"
        return prefix

    def start_new_run(self) -> int:
        """Move on to the next run so its files do not replace earlier ones."""

        self.run_number += 1
        return self.run_number

    def _record_saved(self, path: Path) -> None:
        if path not in self.saved_files:
            self.saved_files.append(path)

    def _default_path(self, suffix: str) -> Path:
        return self.output_dir() / f"{self.file_prefix()}{suffix}"

    # ------------------------------------------------------------------
    # Info saving
    # ------------------------------------------------------------------
    def save_experiment_info(self, filename: str | os.PathLike[str] | None = None) -> Path:
        """Write the participant information to disk as JSON."""

        output_path = Path(filename) if filename else self._default_path("_info.json")
        with output_path.open("w", encoding="utf-8") as info_file:
            json.dump(self.experiment_info, info_file, indent=2)
        self._record_saved(output_path)
        return output_path

    # ------------------------------------------------------------------
    # Pickle summary
    # ------------------------------------------------------------------
    def save_experiment_pickle(self, payload: Dict[str, object]) -> Path:
        """Persist the session state using pickle for quick inspection."""

        pickle_path = self._default_path(".pickle")
        state = {
            "experiment_name": self.experiment_name,
            "experiment_info": self.experiment_info,
            "saved_files": [str(path) for path in self.saved_files],
        }
        state.update(payload)
        with pickle_path.open("wb") as pickle_file:
            pickle.dump(state, pickle_file)
        self._record_saved(pickle_path)
        return pickle_path


__all__ = ["BaseExperiment", "convert_color_value"]
