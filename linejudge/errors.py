"""Exception types shared by the line judgment task."""
from __future__ import annotations


class LineJudgeError(Exception):
    """Base class for errors raised by :mod:`linejudge`."""


class StimulusFormatError(LineJudgeError):
    """Raised when a series data file cannot be interpreted."""


class SequencerNotReady(LineJudgeError):
    """Raised when a run is requested but there are no trials to present."""


class InvalidTransition(LineJudgeError):
    """Raised when an action is requested in a mode that does not allow it."""


class ExperimentAbort(Exception):
    """Raised when the participant issues a quit command (e.g., presses ESC)."""


__all__ = [
    "LineJudgeError",
    "StimulusFormatError",
    "SequencerNotReady",
    "InvalidTransition",
    "ExperimentAbort",
]
