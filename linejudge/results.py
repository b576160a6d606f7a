"""Response records and summary statistics."""
from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Iterable, List, Optional, Sequence

from .trials import RESPONSES, StimulusKind, Trial, ground_truth_for

NOT_APPLICABLE = "n/a"


def utc_timestamp(moment: datetime | None = None) -> str:
    """Return an ISO-8601 UTC timestamp with millisecond precision."""

    moment = moment or datetime.now(timezone.utc)
    text = moment.astimezone(timezone.utc).isoformat(timespec="milliseconds")
    return text.replace("+00:00", "Z")


@dataclass(frozen=True)
class Result:
    """Outcome of a single trial.

    The stimulus values are copied from the trial so that exporting never has
    to join back against the series the trial came from.
    """

    trial_index: int
    line1_length: float
    line2_length: float
    response: str
    response_time_ms: int
    timestamp: str
    line1_tilt: Optional[float] = None
    line2_tilt: Optional[float] = None
    line1_saturation: Optional[float] = None
    line2_saturation: Optional[float] = None

    @classmethod
    def from_trial(
        cls,
        trial: Trial,
        *,
        trial_index: int,
        response: str,
        response_time_ms: int,
        timestamp: str,
    ) -> "Result":
        if response not in RESPONSES:
            raise ValueError(f"Unknown response '{response}'; expected one of {RESPONSES}.")
        return cls(
            trial_index=trial_index,
            line1_length=trial.line1_length,
            line2_length=trial.line2_length,
            response=response,
            response_time_ms=response_time_ms,
            timestamp=timestamp,
            line1_tilt=trial.line1_tilt,
            line2_tilt=trial.line2_tilt,
            line1_saturation=trial.line1_saturation,
            line2_saturation=trial.line2_saturation,
        )

    @property
    def ground_truth(self) -> str:
        return ground_truth_for(self.line1_length, self.line2_length)

    @property
    def is_correct(self) -> bool:
        return self.response == self.ground_truth

    @property
    def kind(self) -> StimulusKind:
        if self.line1_tilt is not None:
            return StimulusKind.TILT
        if self.line1_saturation is not None:
            return StimulusKind.SATURATION
        return StimulusKind.LENGTH


@dataclass(frozen=True)
class ResultSummary:
    """Accuracy and mean response time over a set of results."""

    n_trials: int
    n_correct: int
    accuracy: Optional[float]
    mean_response_time_ms: Optional[float]

    def accuracy_text(self) -> str:
        return format_percent(self.accuracy)

    def response_time_text(self) -> str:
        return format_milliseconds(self.mean_response_time_ms)


def summarize(results: Iterable[Result]) -> ResultSummary:
    """Return summary statistics; empty input yields ``None`` rather than NaN."""

    rows = list(results)
    if not rows:
        return ResultSummary(0, 0, None, None)
    n_correct = sum(1 for row in rows if row.is_correct)
    mean_rt = sum(row.response_time_ms for row in rows) / len(rows)
    return ResultSummary(
        n_trials=len(rows),
        n_correct=n_correct,
        accuracy=n_correct / len(rows),
        mean_response_time_ms=mean_rt,
    )


def _is_missing(value: Optional[float]) -> bool:
    return value is None or (isinstance(value, float) and math.isnan(value))


def format_percent(value: Optional[float]) -> str:
    if _is_missing(value):
        return NOT_APPLICABLE
    return f"{round(value * 100)}%"


def format_milliseconds(value: Optional[float]) -> str:
    if _is_missing(value):
        return NOT_APPLICABLE
    return f"{round(value)}ms"


def format_number(value: Optional[float]) -> str:
    """Render a stimulus value the way it appears in the data files."""

    if value is None:
        return ""
    if isinstance(value, float):
        if math.isnan(value):
            return "NaN"
        if value.is_integer():
            return str(int(value))
    return str(value)


TABLE_HEADERS: Sequence[str] = (
    "Trial",
    "Line 1 Length",
    "Line 2 Length",
    "Ground Truth",
    "Your Response",
    "Result",
    "Response Time",
)


def format_result_table(results: Iterable[Result]) -> str:
    """Return a fixed-width text table of results for on-screen review."""

    rows: List[List[str]] = [list(TABLE_HEADERS)]
    for result in results:
        rows.append(
            [
                str(result.trial_index),
                f'{format_number(result.line1_length)}"',
                f'{format_number(result.line2_length)}"',
                result.ground_truth,
                result.response,
                "Correct" if result.is_correct else "Incorrect",
                f"{result.response_time_ms}ms",
            ]
        )
    widths = [max(len(row[col]) for row in rows) for col in range(len(TABLE_HEADERS))]
    lines = ["  ".join(cell.ljust(width) for cell, width in zip(row, widths)).rstrip() for row in rows]
    return "\n".join(lines)


__all__ = [
    "NOT_APPLICABLE",
    "utc_timestamp",
    "Result",
    "ResultSummary",
    "summarize",
    "format_percent",
    "format_milliseconds",
    "format_number",
    "format_result_table",
]
