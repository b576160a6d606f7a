"""Command line helpers for running the line judgment experiment."""
from __future__ import annotations

import argparse
import logging
import random
import sys
from pathlib import Path
from typing import List, Sequence

from .config import COUNTERBALANCE_GROUPS, ExperimentConfig, default_calibration_file
from .errors import StimulusFormatError
from .sequencer import TrialSequencer, build_practice_set
from .stimuli import load_series_file, load_series_set
from .trials import Series

DEFAULT_EXPOSURE_MS = int(ExperimentConfig.__dataclass_fields__["exposure_duration_s"].default * 1000)
DEFAULT_WINDOW_SIZE = ExperimentConfig.__dataclass_fields__["window_size"].default


def build_arg_parser() -> argparse.ArgumentParser:
    """Create an argument parser exposing the runtime options."""

    parser = argparse.ArgumentParser(
        description=(
            "Launch the line length same/different task. "
            "By default the four counterbalanced series are read from a 'data' folder."
        )
    )
    source = parser.add_mutually_exclusive_group()
    source.add_argument(
        "--data-dir",
        type=Path,
        default=Path("data"),
        help=(
            "Directory holding Series-1a.csv ... Series-2b.csv (default: %(default)s). "
            "Relative paths are resolved from the current working directory."
        ),
    )
    source.add_argument(
        "--data-file",
        type=Path,
        default=None,
        help="Run a single series from this CSV file instead of the counterbalanced set.",
    )
    parser.add_argument(
        "--group",
        type=str.upper,
        choices=COUNTERBALANCE_GROUPS,
        default=None,
        help="Counterbalance group; when omitted it is chosen in the participant dialog.",
    )
    parser.add_argument(
        "--results-dir",
        type=Path,
        default=Path("results"),
        help="Folder where CSV/ZIP/JSON/pickle outputs will be saved (default: %(default)s).",
    )
    parser.add_argument(
        "--calibration-file",
        type=Path,
        default=default_calibration_file(),
        help="JSON file holding the persisted screen calibration (default: %(default)s).",
    )
    parser.add_argument(
        "--skip-calibration",
        action="store_true",
        help="Reuse the stored calibration without showing the calibration screen.",
    )
    parser.add_argument(
        "--exposure-ms",
        type=int,
        default=DEFAULT_EXPOSURE_MS,
        help="How long the lines stay visible on each trial (default: %(default)s ms).",
    )
    parser.add_argument(
        "--no-practice",
        action="store_true",
        help="Skip the practice blocks.",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Seed for the practice-set randomisation.",
    )
    parser.add_argument(
        "--full-screen",
        action="store_true",
        help="Open the task window in full-screen mode.",
    )
    parser.add_argument(
        "--window-size",
        type=int,
        nargs=2,
        metavar=("WIDTH", "HEIGHT"),
        default=list(DEFAULT_WINDOW_SIZE),
        help="Window size in pixels when not full screen (default: %(default)s).",
    )
    parser.add_argument(
        "--strict-data",
        action="store_true",
        help="Reject series files with non-numeric fields instead of storing NaN.",
    )
    parser.add_argument(
        "--log-level",
        type=str.upper,
        choices=("DEBUG", "INFO", "WARNING", "ERROR"),
        default="INFO",
        help="Console and log file verbosity (default: %(default)s).",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help=(
            "Load the series, print a summary of each plus the practice sets a session would draw, "
            "and exit without launching PsychoPy."
        ),
    )
    return parser


def config_from_args(args: argparse.Namespace) -> ExperimentConfig:
    if args.exposure_ms < 0:
        raise SystemExit("--exposure-ms must not be negative")
    return ExperimentConfig(
        data_directory=str(args.data_dir),
        data_file=str(args.data_file) if args.data_file else None,
        counterbalance_group=args.group,
        results_directory=str(args.results_dir),
        calibration_file=str(args.calibration_file),
        run_calibration=not args.skip_calibration,
        practice_enabled=not args.no_practice,
        exposure_duration_s=args.exposure_ms / 1000.0,
        random_seed=args.seed,
        strict_data=args.strict_data,
        full_screen=args.full_screen,
        window_size=tuple(args.window_size),
        log_level=args.log_level,
    )


def main(argv: Sequence[str] | None = None) -> None:
    """Parse command line options and execute the experiment."""

    parser = build_arg_parser()
    args = parser.parse_args(argv)
    config = config_from_args(args)
    logging.basicConfig(level=config.log_level, format="%(levelname)s %(name)s: %(message)s")

    if args.dry_run:
        perform_dry_run(config)
        return

    # PsychoPy is only needed once a window is opened
    from .experiment import LineJudgmentExperiment

    experiment = LineJudgmentExperiment(config)
    experiment.run()


def _dry_run_series(config: ExperimentConfig) -> List[Series]:
    if config.single_series:
        try:
            return [load_series_file(config.data_file, strict=config.strict_data)]
        except (OSError, UnicodeDecodeError, StimulusFormatError) as exc:
            print(f"Series file unavailable: {exc}")
            return []
    group = config.counterbalance_group or "A"
    config.counterbalance_group = group
    return load_series_set(config.data_directory, config.series_names(), strict=config.strict_data)


def perform_dry_run(config: ExperimentConfig) -> None:
    """Print a summary of every playable series and exit."""

    series_list = _dry_run_series(config)
    if not series_list:
        print("No series found; nothing to report.")
        return

    rng = random.Random(config.random_seed)
    # Only used to decide which series get a practice block in a real session.
    schedule = TrialSequencer(
        series_list,
        practice_enabled=config.practice_enabled,
        practice_per_category=config.practice_per_category,
        counterbalance_group=config.counterbalance_group,
        rng=rng,
    )
    if config.single_series:
        print(f"Dry-run: single series from '{config.data_file}'.")
    else:
        print(
            f"Dry-run: group {config.counterbalance_group}, {len(series_list)} series loaded "
            f"from '{config.data_directory}'."
        )
    for index, series in enumerate(series_list):
        print(
            f"[{index + 1}] {series.name:<12} {series.kind.value:<10} trials={len(series):<4} "
            f"same={series.count_same():<4} different={series.count_different()}"
        )
        if schedule.needs_practice(index):
            practice = build_practice_set(series.trials, rng, config.practice_per_category)
            for trial in practice:
                print(
                    f"      practice: {trial.line1_length:g} vs {trial.line2_length:g} "
                    f"({trial.ground_truth})"
                )
    print("Dry-run complete.")


if __name__ == "__main__":  # pragma: no cover - module level CLI hook
    main(sys.argv[1:])
