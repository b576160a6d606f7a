"""Results export: one CSV per series, bundled into a ZIP for several series."""
from __future__ import annotations

import csv
import io
import logging
import os
import zipfile
from pathlib import Path
from typing import Callable, Dict, List, Mapping, Optional, Sequence, Tuple

from .results import Result, format_number
from .trials import StimulusKind

logger = logging.getLogger(__name__)

ARCHIVE_NAME = "experiment_results.zip"

Column = Tuple[str, Callable[[Result], object]]

_LEAD: List[Column] = [("Trial", lambda r: r.trial_index)]
_TAIL: List[Column] = [
    ("Ground Truth", lambda r: r.ground_truth),
    ("Your Response", lambda r: r.response),
    ("Result", lambda r: "Correct" if r.is_correct else "Incorrect"),
    ("Response Time", lambda r: r.response_time_ms),
    ("Timestamp", lambda r: r.timestamp),
]

COLUMNS: Dict[StimulusKind, List[Column]] = {
    StimulusKind.TILT: _LEAD
    + [
        ("Line 1 Length", lambda r: format_number(r.line1_length)),
        ("Line 1 Tilt", lambda r: format_number(r.line1_tilt)),
        ("Line 2 Length", lambda r: format_number(r.line2_length)),
        ("Line 2 Tilt", lambda r: format_number(r.line2_tilt)),
    ]
    + _TAIL,
    StimulusKind.SATURATION: _LEAD
    + [
        ("Line 1 Length", lambda r: format_number(r.line1_length)),
        ("Line 1 Saturation", lambda r: format_number(r.line1_saturation)),
        ("Line 2 Length", lambda r: format_number(r.line2_length)),
        ("Line 2 Saturation", lambda r: format_number(r.line2_saturation)),
    ]
    + _TAIL,
    StimulusKind.LENGTH: _LEAD
    + [
        ("Line 1 Length", lambda r: format_number(r.line1_length)),
        ("Line 2 Length", lambda r: format_number(r.line2_length)),
    ]
    + _TAIL,
}


def header_for(kind: StimulusKind) -> List[str]:
    return [name for name, _ in COLUMNS[kind]]


def infer_kind(results: Sequence[Result]) -> StimulusKind:
    """Take the variant from the first result; an empty list is length-only."""

    if not results:
        return StimulusKind.LENGTH
    return results[0].kind


def result_rows(results: Sequence[Result], kind: Optional[StimulusKind] = None) -> List[List[object]]:
    columns = COLUMNS[kind or infer_kind(results)]
    return [[getter(result) for _, getter in columns] for result in results]


def results_to_csv(results: Sequence[Result], kind: Optional[StimulusKind] = None) -> str:
    """Serialise ``results`` to CSV text including the header row."""

    kind = kind or infer_kind(results)
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(header_for(kind))
    writer.writerows(result_rows(results, kind))
    return buffer.getvalue()


def series_filename(series_name: str) -> str:
    return f"{series_name}_results.csv"


def write_series_csv(
    directory: str | os.PathLike[str],
    series_name: str,
    results: Sequence[Result],
    prefix: Optional[str] = None,
) -> Path:
    """Write one series to ``<directory>/[<prefix>_]<series>_results.csv``."""

    folder = Path(directory)
    folder.mkdir(parents=True, exist_ok=True)
    filename = series_filename(series_name)
    if prefix:
        filename = f"{prefix}_{filename}"
    path = folder / filename
    with path.open("w", newline="", encoding="utf-8") as csv_file:
        csv_file.write(results_to_csv(results))
    logger.info("Wrote %d results to '%s'", len(results), path)
    return path


def build_results_archive(series_results: Mapping[str, Sequence[Result]]) -> bytes:
    """Return a ZIP archive holding one CSV member per series."""

    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as archive:
        for series_name, results in series_results.items():
            archive.writestr(series_filename(series_name), results_to_csv(results))
    return buffer.getvalue()


def write_results_archive(
    path: str | os.PathLike[str],
    series_results: Mapping[str, Sequence[Result]],
) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(build_results_archive(series_results))
    logger.info("Wrote %d series to archive '%s'", len(series_results), path)
    return path


def export_session(
    directory: str | os.PathLike[str],
    series_results: Mapping[str, Sequence[Result]],
    prefix: Optional[str] = None,
) -> List[Path]:
    """Export a session: one CSV for a single series, a ZIP for several."""

    if not series_results:
        logger.warning("No completed series to export")
        return []
    if len(series_results) == 1:
        (series_name, results), = series_results.items()
        return [write_series_csv(directory, series_name, results, prefix=prefix)]
    archive_name = f"{prefix}_{ARCHIVE_NAME}" if prefix else ARCHIVE_NAME
    return [write_results_archive(Path(directory) / archive_name, series_results)]


__all__ = [
    "ARCHIVE_NAME",
    "COLUMNS",
    "header_for",
    "infer_kind",
    "result_rows",
    "results_to_csv",
    "series_filename",
    "write_series_csv",
    "build_results_archive",
    "write_results_archive",
    "export_session",
]
