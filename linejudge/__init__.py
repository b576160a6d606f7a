"""Line length same/different judgment task.

This package exposes helpers for loading stimulus series, sequencing trials,
drawing line pairs, persisting screen calibration and exporting results.  The
PsychoPy front-end lives in :mod:`linejudge.experiment` and is imported only
when a window is needed, so the loaders and the sequencer can be used (and
tested) on machines without a display.
"""

from .calibration import CalibrationStore, ScreenCalibration
from .config import COUNTERBALANCE_ORDERS, ExperimentConfig, series_order
from .errors import (
    ExperimentAbort,
    InvalidTransition,
    LineJudgeError,
    SequencerNotReady,
    StimulusFormatError,
)
from .export import export_session, results_to_csv
from .results import Result, summarize
from .sequencer import ExposureTimer, SessionMode, TrialSequencer, build_practice_set
from .stimuli import load_series_file, load_series_set, parse_series_text
from .trials import Series, StimulusKind, Trial
from .cli import main as run_experiment

__all__ = [
    "CalibrationStore",
    "ScreenCalibration",
    "COUNTERBALANCE_ORDERS",
    "ExperimentConfig",
    "series_order",
    "ExperimentAbort",
    "InvalidTransition",
    "LineJudgeError",
    "SequencerNotReady",
    "StimulusFormatError",
    "export_session",
    "results_to_csv",
    "Result",
    "summarize",
    "ExposureTimer",
    "SessionMode",
    "TrialSequencer",
    "build_practice_set",
    "load_series_file",
    "load_series_set",
    "parse_series_text",
    "Series",
    "StimulusKind",
    "Trial",
    "run_experiment",
]
