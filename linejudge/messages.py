"""Participant-facing text for each screen of the task."""
from __future__ import annotations

from typing import Iterable, List, Mapping, Optional, Sequence

from .config import COUNTERBALANCE_GROUPS, describe_group_order
from .results import Result, format_result_table, summarize
from .trials import Series, StimulusKind

PROMPT_TEXT = "Are the two lines the same length?"

KIND_DESCRIPTIONS = {
    StimulusKind.TILT: "black lines with different tilts",
    StimulusKind.SATURATION: "red lines with different saturations",
    StimulusKind.LENGTH: "black horizontal lines",
}


def describe_kind(kind: StimulusKind) -> str:
    return KIND_DESCRIPTIONS[kind]


def setup_text(
    series: Sequence[Series],
    *,
    exposure_duration_s: float,
    response_key_lines: Iterable[str],
    practice_enabled: bool,
    counterbalance_group: Optional[str] = None,
) -> str:
    lines = ["Line Length Judgment", ""]
    if counterbalance_group:
        lines.append(f"Group {counterbalance_group} selected")
    total = sum(len(item) for item in series)
    lines.append(f"Loaded {len(series)} series ({total} total trials)")
    if series:
        lines.append("Order: " + " -> ".join(item.name for item in series))
    lines += [
        "",
        f"Two lines are shown for {exposure_duration_s:g} seconds, then hidden.",
        "Decide whether the two lines have the same length.",
        "You can still respond after the lines disappear.",
        "",
        "Response keys:",
        *response_key_lines,
    ]
    if practice_enabled and series:
        first_kind = series[0].kind
        lines += ["", f"You will start with a short practice using {describe_kind(first_kind)}."]
    lines += ["", "Press SPACE to begin."]
    return "\n".join(lines)


def group_orders_text() -> str:
    return "\n".join(f"Group {group}: {describe_group_order(group)}" for group in COUNTERBALANCE_GROUPS)


def trial_header(
    *,
    series_name: Optional[str],
    trial_index: int,
    total: int,
    in_practice: bool,
) -> str:
    position = f"Trial {trial_index + 1} of {total}"
    if in_practice:
        return f"Practice {position}"
    if series_name:
        return f"{series_name} - {position}"
    return position


def practice_complete_text(results: Sequence[Result], series: Optional[Series]) -> str:
    summary = summarize(results)
    lines = [
        "Practice Completed!",
        f"You completed {len(results)} practice trials.",
        "",
    ]
    if series is not None:
        lines += [
            f"You will now start {series.name} using {describe_kind(series.kind)}.",
            "The experiment works the same way as practice, but your responses will be recorded.",
            "",
        ]
    lines += [
        format_result_table(results),
        "",
        f"Accuracy: {summary.accuracy_text()}",
        f"Average Response Time: {summary.response_time_text()}",
        "",
        "Press SPACE to continue.",
    ]
    return "\n".join(lines)


def series_transition_text(
    completed: Series,
    n_completed_trials: int,
    upcoming: Series,
    *,
    upcoming_has_practice: bool,
    upcoming_is_final: bool,
) -> str:
    lines = [
        f"{completed.name} Completed!",
        f"Great work! You completed {n_completed_trials} trials.",
        "",
    ]
    if upcoming.kind != completed.kind:
        lines += [
            "Important: New Type of Experiment!",
            f"You will now see {describe_kind(upcoming.kind)}.",
            "You will still compare line lengths the same way.",
        ]
    else:
        title = f"Next: {upcoming.name}"
        if upcoming_is_final:
            title += " (Final Series)"
        lines += [
            title,
            f"You will continue with more trials using {describe_kind(upcoming.kind)}.",
        ]
        if upcoming_is_final:
            lines.append("This is the final series!")
    if upcoming_has_practice:
        lines.append("You will start with a short practice session.")
    lines += ["", "Press SPACE to continue."]
    return "\n".join(lines)


def completion_text(series_results: Mapping[str, Sequence[Result]], *, restart_key: str) -> str:
    all_results: List[Result] = [result for rows in series_results.values() for result in rows]
    lines = [
        "All Experiments Completed!",
        f"You completed all {len(series_results)} series with {len(all_results)} total trials.",
        "",
        "Summary by Series",
    ]
    for name, rows in series_results.items():
        summary = summarize(rows)
        lines.append(
            f"{name}: {summary.n_trials} trials, accuracy {summary.accuracy_text()}, "
            f"avg response time {summary.response_time_text()}"
        )
    overall = summarize(all_results)
    lines += [
        "",
        "Overall Statistics",
        f"Total Trials: {overall.n_trials}",
        f"Overall Accuracy: {overall.accuracy_text()}",
        f"Overall Avg Response Time: {overall.response_time_text()}",
        "",
        f"Press SPACE to finish or {restart_key.upper()} to start a new experiment.",
    ]
    return "\n".join(lines)


__all__ = [
    "PROMPT_TEXT",
    "KIND_DESCRIPTIONS",
    "describe_kind",
    "setup_text",
    "group_orders_text",
    "trial_header",
    "practice_complete_text",
    "series_transition_text",
    "completion_text",
]
