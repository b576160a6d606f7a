"""Stimulus loading utilities for the line judgment task.

Each series lives in its own comma-separated file.  The header row decides
which variant the file holds: a header mentioning ``tilt`` marks tilted lines,
one mentioning ``saturation`` marks coloured lines, anything else is a
length-only data set.  Every data row carries four fields::

    line1_length, line1_tilt_or_saturation, line2_length, line2_tilt_or_saturation
"""
from __future__ import annotations

import csv
import io
import logging
import math
import os
from pathlib import Path
from typing import Iterable, List, Optional, Sequence

from .errors import StimulusFormatError
from .trials import Series, StimulusKind, Trial

logger = logging.getLogger(__name__)

FIELDS_PER_ROW = 4
COLUMN_NAMES: Sequence[str] = ("line 1 length", "line 1 value", "line 2 length", "line 2 value")


def detect_kind(header: str) -> StimulusKind:
    """Infer the stimulus variant from the header row."""

    lowered = header.lower()
    if "tilt" in lowered:
        return StimulusKind.TILT
    if "saturation" in lowered:
        return StimulusKind.SATURATION
    return StimulusKind.LENGTH


def _parse_value(
    raw: Optional[str],
    *,
    series_name: str,
    row_number: int,
    column: int,
    strict: bool,
) -> float:
    """Convert one field to float, falling back to NaN for unparseable input."""

    text = (raw or "").strip()
    try:
        if not text:
            raise ValueError("empty field")
        return float(text)
    except ValueError:
        message = (
            f"Series '{series_name}' row {row_number}: {COLUMN_NAMES[column]} "
            f"value {text!r} is not numeric"
        )
        if strict:
            raise StimulusFormatError(message) from None
        logger.warning("%s; stored as NaN", message)
        return math.nan


def _build_trial(kind: StimulusKind, values: List[float]) -> Trial:
    length1, extra1, length2, extra2 = values
    if kind is StimulusKind.TILT:
        return Trial(length1, length2, line1_tilt=extra1, line2_tilt=extra2)
    if kind is StimulusKind.SATURATION:
        return Trial(length1, length2, line1_saturation=extra1, line2_saturation=extra2)
    return Trial(length1, length2)


def parse_series_text(
    text: str,
    name: str,
    *,
    source: Optional[Path] = None,
    strict: bool = False,
) -> Series:
    """Parse the contents of a series file into a :class:`Series`.

    Parameters
    ----------
    text:
        Raw file contents.  Blank lines are ignored; the first non-blank line
        is the header.
    name:
        Series name used for logging and as the key of exported results.
    strict:
        Raise :class:`StimulusFormatError` on non-numeric fields instead of
        storing ``NaN``.
    """

    lines = [line for line in text.splitlines() if line.strip()]
    if not lines:
        raise StimulusFormatError(f"Series '{name}' has no header row.")

    kind = detect_kind(lines[0])
    trials: List[Trial] = []
    for row_number, row in enumerate(csv.reader(io.StringIO("\n".join(lines[1:]))), start=2):
        padded = list(row[:FIELDS_PER_ROW]) + [None] * (FIELDS_PER_ROW - len(row))
        values = [
            _parse_value(raw, series_name=name, row_number=row_number, column=column, strict=strict)
            for column, raw in enumerate(padded)
        ]
        trials.append(_build_trial(kind, values))

    logger.info("Loaded series '%s' (%s, %d trials)", name, kind.value, len(trials))
    return Series(name=name, trials=tuple(trials), source=source)


def load_series_file(
    path: str | os.PathLike[str],
    name: Optional[str] = None,
    *,
    strict: bool = False,
) -> Series:
    """Load one series from ``path``; the name defaults to the file stem."""

    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Series file '{path}' does not exist.")
    text = path.read_text(encoding="utf-8-sig")
    return parse_series_text(text, name or path.stem, source=path, strict=strict)


def load_series_set(
    directory: str | os.PathLike[str],
    names: Iterable[str],
    *,
    strict: bool = False,
) -> List[Series]:
    """Load ``<directory>/<name>.csv`` for every name, in order.

    A series that cannot be read, fails to parse, or holds no trials is
    reported as unavailable and left out of the returned list.
    """

    directory = Path(directory)
    loaded: List[Series] = []
    for name in names:
        path = directory / f"{name}.csv"
        try:
            series = load_series_file(path, name, strict=strict)
        except (OSError, UnicodeDecodeError, StimulusFormatError) as exc:
            logger.error("Series '%s' unavailable: %s", name, exc)
            continue
        if not series.trials:
            logger.error("Series '%s' unavailable: no trials in '%s'", name, path)
            continue
        loaded.append(series)
    return loaded


__all__ = [
    "detect_kind",
    "parse_series_text",
    "load_series_file",
    "load_series_set",
]
