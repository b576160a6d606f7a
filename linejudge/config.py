"""Configuration helpers for the line judgment experiment.

The :class:`ExperimentConfig` dataclass stores the user-editable parameters
for running the task.  Keeping these values in a separate module makes it easy
to discover what can be tweaked without touching the sequencing or export
code.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

COUNTERBALANCE_ORDERS: Dict[str, Tuple[str, ...]] = {
    "A": ("Series-1a", "Series-1b", "Series-2a", "Series-2b"),
    "B": ("Series-1a", "Series-1b", "Series-2b", "Series-2a"),
    "C": ("Series-1b", "Series-1a", "Series-2a", "Series-2b"),
    "D": ("Series-1b", "Series-1a", "Series-2b", "Series-2a"),
}
COUNTERBALANCE_GROUPS: Tuple[str, ...] = tuple(COUNTERBALANCE_ORDERS)


def series_order(group: str) -> Tuple[str, ...]:
    """Return the presentation order of the named series for ``group``."""

    key = (group or "").strip().upper()
    if key not in COUNTERBALANCE_ORDERS:
        raise ValueError(
            f"Unknown counterbalance group '{group}'. Choose one of {', '.join(COUNTERBALANCE_GROUPS)}."
        )
    return COUNTERBALANCE_ORDERS[key]


def describe_group_order(group: str) -> str:
    """Return a compact ``1a -> 1b -> ...`` description of a group's order."""

    return " -> ".join(name.replace("Series-", "") for name in series_order(group))


def default_calibration_file() -> Path:
    return Path.home() / ".linejudge" / "calibration.json"


@dataclass
class ExperimentConfig:
    """Container for experiment parameters and runtime options."""

    experiment_name: str = "line_judgment"
    data_directory: str = "data"
    data_file: Optional[str] = None
    counterbalance_group: Optional[str] = None
    results_directory: str = "results"
    calibration_file: str = field(default_factory=lambda: str(default_calibration_file()))
    run_calibration: bool = True
    practice_enabled: bool = True
    practice_per_category: int = 2
    exposure_duration_s: float = 3.0
    random_seed: Optional[int] = None
    strict_data: bool = False
    response_keys: Dict[str, str] = field(
        default_factory=lambda: {"s": "same", "d": "different"}
    )
    continue_keys: Tuple[str, ...] = ("space", "return")
    restart_key: str = "r"
    quit_keys: Tuple[str, ...] = ("escape",)
    full_screen: bool = False
    window_size: Tuple[int, int] = (1200, 800)
    window_units: str = "pix"
    screen_index: int = 0
    background_color: Sequence[float] = (1.0, 1.0, 1.0)
    text_color: str = "black"
    log_level: str = "INFO"

    @property
    def single_series(self) -> bool:
        """True when a single data file is played instead of the counterbalanced set."""

        return self.data_file is not None

    def series_names(self) -> List[str]:
        """Return the names to load for the configured counterbalance group."""

        if self.single_series:
            return [Path(self.data_file).stem]
        if self.counterbalance_group is None:
            raise ValueError("A counterbalance group must be chosen before loading series.")
        return list(series_order(self.counterbalance_group))

    def response_key_lines(self) -> List[str]:
        return [f"{key.upper()} = {label}" for key, label in self.response_keys.items()]


__all__ = [
    "COUNTERBALANCE_ORDERS",
    "COUNTERBALANCE_GROUPS",
    "series_order",
    "describe_group_order",
    "default_calibration_file",
    "ExperimentConfig",
]
