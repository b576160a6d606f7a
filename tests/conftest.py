"""Shared fakes and fixtures for the line judgment tests."""
from __future__ import annotations

from pathlib import Path
from typing import List

import pytest

from linejudge.trials import Series, Trial


class FakeClock:
    """Monotonic clock that only moves when told to."""

    def __init__(self, start: float = 100.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def tilt_trials() -> List[Trial]:
    return [
        Trial(3.0, 3.0, line1_tilt=0.0, line2_tilt=15.0),
        Trial(3.0, 3.5, line1_tilt=15.0, line2_tilt=0.0),
        Trial(4.0, 4.0, line1_tilt=-10.0, line2_tilt=10.0),
        Trial(4.0, 3.5, line1_tilt=0.0, line2_tilt=20.0),
        Trial(2.5, 2.5, line1_tilt=30.0, line2_tilt=0.0),
        Trial(2.5, 3.0, line1_tilt=0.0, line2_tilt=-15.0),
    ]


def saturation_trials() -> List[Trial]:
    return [
        Trial(3.0, 3.0, line1_saturation=100.0, line2_saturation=40.0),
        Trial(3.0, 3.5, line1_saturation=40.0, line2_saturation=100.0),
        Trial(4.0, 4.0, line1_saturation=70.0, line2_saturation=20.0),
    ]


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def tilt_series() -> Series:
    return Series("Series-1a", tilt_trials())


@pytest.fixture
def four_series() -> List[Series]:
    return [
        Series("Series-1a", tilt_trials()[:3]),
        Series("Series-1b", tilt_trials()[3:]),
        Series("Series-2a", saturation_trials()[:2]),
        Series("Series-2b", saturation_trials()[2:]),
    ]


@pytest.fixture
def data_dir() -> Path:
    return Path(__file__).resolve().parent.parent / "data"
