"""Trial and series containers for the line judgment task.

A :class:`Trial` describes one pair of lines.  Both lines always have a
length (in inches); a data set may additionally vary either the tilt or the
colour saturation of the lines, never both.  Trials are immutable once
loaded so that the same objects can be shared between the practice subset,
the main run and the exported results.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional, Tuple

SAME = "same"
DIFFERENT = "different"
RESPONSES: Tuple[str, str] = (SAME, DIFFERENT)


class StimulusKind(str, Enum):
    """Which stimulus dimension varies besides length."""

    TILT = "tilt"
    SATURATION = "saturation"
    LENGTH = "length"


def ground_truth_for(line1_length: float, line2_length: float) -> str:
    """Return ``"same"`` when both lengths are exactly equal."""

    return SAME if line1_length == line2_length else DIFFERENT


@dataclass(frozen=True)
class Trial:
    """One stimulus pair presentation."""

    line1_length: float
    line2_length: float
    line1_tilt: Optional[float] = None
    line2_tilt: Optional[float] = None
    line1_saturation: Optional[float] = None
    line2_saturation: Optional[float] = None

    def __post_init__(self) -> None:
        has_tilt = self.line1_tilt is not None or self.line2_tilt is not None
        has_saturation = (
            self.line1_saturation is not None or self.line2_saturation is not None
        )
        if has_tilt and has_saturation:
            raise ValueError("A trial carries either tilt or saturation values, not both.")

    @property
    def kind(self) -> StimulusKind:
        if self.line1_tilt is not None or self.line2_tilt is not None:
            return StimulusKind.TILT
        if self.line1_saturation is not None or self.line2_saturation is not None:
            return StimulusKind.SATURATION
        return StimulusKind.LENGTH

    @property
    def ground_truth(self) -> str:
        return ground_truth_for(self.line1_length, self.line2_length)

    @property
    def is_same(self) -> bool:
        return self.ground_truth == SAME


@dataclass(frozen=True)
class Series:
    """A named, ordered collection of trials loaded from one data source."""

    name: str
    trials: Tuple[Trial, ...] = field(default_factory=tuple)
    source: Optional[Path] = None

    def __post_init__(self) -> None:
        # accept any sequence but always store a tuple
        object.__setattr__(self, "trials", tuple(self.trials))

    def __len__(self) -> int:
        return len(self.trials)

    @property
    def kind(self) -> StimulusKind:
        if not self.trials:
            return StimulusKind.LENGTH
        return self.trials[0].kind

    def count_same(self) -> int:
        return sum(1 for trial in self.trials if trial.is_same)

    def count_different(self) -> int:
        return len(self.trials) - self.count_same()


__all__ = [
    "SAME",
    "DIFFERENT",
    "RESPONSES",
    "StimulusKind",
    "ground_truth_for",
    "Trial",
    "Series",
]
