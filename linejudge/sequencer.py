"""Trial sequencing for the line judgment task.

The :class:`TrialSequencer` walks a participant through calibration,
practice, the main run of each series, the transition screens between series
and the final summary.  It holds no PsychoPy objects: the front-end calls
:meth:`TrialSequencer.update` once per frame and forwards key presses to
:meth:`TrialSequencer.respond`, so the whole state machine can be driven from
tests with a fake clock.
"""
from __future__ import annotations

import logging
import random
import time
from enum import Enum
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from .errors import InvalidTransition, SequencerNotReady
from .results import Result, utc_timestamp
from .trials import Series, Trial

logger = logging.getLogger(__name__)

Clock = Callable[[], float]

DEFAULT_EXPOSURE_S: float = 3.0


class SessionMode(str, Enum):
    SETUP = "setup"
    CALIBRATION = "calibration"
    RUNNING = "running"
    PRACTICE_COMPLETED = "practice-completed"
    SERIES_COMPLETED = "series-completed"
    COMPLETED = "completed"


def build_practice_set(
    trials: Sequence[Trial],
    rng: random.Random | None = None,
    per_category: int = 2,
) -> List[Trial]:
    """Draw a short, balanced practice set from ``trials``.

    Up to ``per_category`` "same" and ``per_category`` "different" trials are
    sampled without replacement (fewer when a category is smaller) and the
    combined list is shuffled.
    """

    rng = rng or random.Random()
    same = [trial for trial in trials if trial.is_same]
    different = [trial for trial in trials if not trial.is_same]
    chosen = rng.sample(same, min(per_category, len(same)))
    chosen += rng.sample(different, min(per_category, len(different)))
    rng.shuffle(chosen)
    return chosen


class ExposureTimer:
    """Single deadline that hides the stimuli after ``duration_s``.

    Every call to :meth:`arm` starts a new generation.  An expiry is only
    reported for the generation that is currently armed, so a deadline left
    over from a previous trial can never hide the stimuli of the next one.
    """

    def __init__(self, duration_s: float = DEFAULT_EXPOSURE_S, clock: Clock = time.monotonic):
        if duration_s < 0:
            raise ValueError("Exposure duration must not be negative.")
        self.duration_s = float(duration_s)
        self._clock = clock
        self._generation = 0
        self._started_at: Optional[float] = None
        self._fired = False

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def armed(self) -> bool:
        return self._started_at is not None and not self._fired

    @property
    def started_at(self) -> Optional[float]:
        return self._started_at

    def arm(self, now: float | None = None) -> int:
        self.cancel()
        self._generation += 1
        self._started_at = self._clock() if now is None else now
        self._fired = False
        return self._generation

    def cancel(self) -> None:
        self._started_at = None
        self._fired = False

    def elapsed(self, now: float | None = None) -> float:
        if self._started_at is None:
            return 0.0
        now = self._clock() if now is None else now
        return max(0.0, now - self._started_at)

    def poll(self, generation: int | None = None, now: float | None = None) -> bool:
        """Return True exactly once, when the armed deadline has passed."""

        if not self.armed:
            return False
        if generation is not None and generation != self._generation:
            return False
        if self.elapsed(now) >= self.duration_s:
            self._fired = True
            return True
        return False


class TrialSequencer:
    """Finite-state controller for one participant session.

    Parameters
    ----------
    series:
        Playable series in presentation order.  A single-series session simply
        passes one element.
    exposure_duration_s:
        How long both lines stay visible after a trial starts.
    practice_enabled:
        Whether a practice block precedes series that introduce a new stimulus
        kind.
    counterbalance_group:
        Group the series order was derived from; kept for reference only and
        never changed for the lifetime of the sequencer.
    rng, clock, wall_clock:
        Injectable random source, monotonic clock (seconds) and timestamp
        factory.
    """

    def __init__(
        self,
        series: Sequence[Series],
        *,
        exposure_duration_s: float = DEFAULT_EXPOSURE_S,
        practice_enabled: bool = True,
        practice_per_category: int = 2,
        counterbalance_group: str | None = None,
        rng: random.Random | None = None,
        clock: Clock = time.monotonic,
        wall_clock: Callable[[], str] = utc_timestamp,
    ):
        self._series: Tuple[Series, ...] = tuple(series)
        self._practice_enabled = practice_enabled
        self._practice_per_category = practice_per_category
        self._counterbalance_group = counterbalance_group
        self._rng = rng or random.Random()
        self._clock = clock
        self._wall_clock = wall_clock
        self._timer = ExposureTimer(exposure_duration_s, clock)
        self._reset_state()

    def _reset_state(self) -> None:
        self._mode = SessionMode.SETUP
        self._series_index = 0
        self._trial_index = 0
        self._in_practice = False
        self._practice_trials: List[Trial] = []
        self._results: List[Result] = []
        self._series_results: Dict[str, Tuple[Result, ...]] = {}
        self._visible = False
        self._trial_generation = 0
        self._timer.cancel()

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------
    @property
    def mode(self) -> SessionMode:
        return self._mode

    @property
    def series(self) -> Tuple[Series, ...]:
        return self._series

    @property
    def counterbalance_group(self) -> str | None:
        return self._counterbalance_group

    @property
    def exposure_duration_s(self) -> float:
        return self._timer.duration_s

    @property
    def in_practice(self) -> bool:
        return self._in_practice

    @property
    def series_index(self) -> int:
        return self._series_index

    @property
    def trial_index(self) -> int:
        return self._trial_index

    @property
    def current_series(self) -> Series | None:
        if 0 <= self._series_index < len(self._series):
            return self._series[self._series_index]
        return None

    @property
    def active_trials(self) -> Tuple[Trial, ...]:
        if self._in_practice:
            return tuple(self._practice_trials)
        current = self.current_series
        return current.trials if current is not None else ()

    @property
    def current_trial(self) -> Trial | None:
        if self._mode is not SessionMode.RUNNING:
            return None
        trials = self.active_trials
        if 0 <= self._trial_index < len(trials):
            return trials[self._trial_index]
        return None

    @property
    def stimuli_visible(self) -> bool:
        return self._mode is SessionMode.RUNNING and self._visible

    @property
    def results(self) -> List[Result]:
        return list(self._results)

    @property
    def series_results(self) -> Dict[str, Tuple[Result, ...]]:
        return dict(self._series_results)

    @property
    def has_next_series(self) -> bool:
        return self._series_index < len(self._series) - 1

    @property
    def next_series(self) -> Series | None:
        if self.has_next_series:
            return self._series[self._series_index + 1]
        return None

    def needs_practice(self, index: int) -> bool:
        """Practice precedes the first series and any series that changes kind."""

        if not self._practice_enabled or not 0 <= index < len(self._series):
            return False
        if index == 0:
            return True
        return self._series[index].kind != self._series[index - 1].kind

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------
    def _require(self, *modes: SessionMode) -> None:
        if self._mode not in modes:
            allowed = ", ".join(mode.value for mode in modes)
            raise InvalidTransition(f"Action not allowed in mode '{self._mode.value}' (expected {allowed}).")

    def begin_calibration(self) -> None:
        self._require(SessionMode.SETUP)
        self._mode = SessionMode.CALIBRATION

    def start(self) -> None:
        """Start the session with the first playable series."""

        self._require(SessionMode.SETUP, SessionMode.CALIBRATION)
        if not self._series:
            raise SequencerNotReady("No series data is loaded.")
        self._enter_series(0)

    def start_practice(self) -> None:
        """Run a freshly drawn practice set for the current series."""

        self._require(
            SessionMode.SETUP,
            SessionMode.CALIBRATION,
            SessionMode.PRACTICE_COMPLETED,
            SessionMode.SERIES_COMPLETED,
        )
        current = self.current_series
        if current is None:
            raise SequencerNotReady("No series data is loaded.")
        practice = build_practice_set(current.trials, self._rng, self._practice_per_category)
        if not practice:
            raise SequencerNotReady(f"Series '{current.name}' has no trials to practise with.")
        self._practice_trials = practice
        self._begin_run(practice=True)

    def start_series(self) -> None:
        """Run the full trial list of the current series."""

        self._require(
            SessionMode.SETUP,
            SessionMode.CALIBRATION,
            SessionMode.PRACTICE_COMPLETED,
            SessionMode.SERIES_COMPLETED,
        )
        current = self.current_series
        if current is None or not current.trials:
            name = current.name if current is not None else "<none>"
            raise SequencerNotReady(f"Series '{name}' has no trials.")
        self._practice_trials = []
        self._begin_run(practice=False)

    def continue_after_practice(self) -> None:
        self._require(SessionMode.PRACTICE_COMPLETED)
        self.start_series()

    def advance_series(self) -> None:
        """Move from the transition screen to the next series."""

        self._require(SessionMode.SERIES_COMPLETED)
        if not self.has_next_series:
            raise InvalidTransition("There is no further series to run.")
        self._enter_series(self._series_index + 1)

    def _enter_series(self, index: int) -> None:
        previous_index = self._series_index
        self._series_index = index
        try:
            if self.needs_practice(index):
                self.start_practice()
            else:
                self.start_series()
        except SequencerNotReady:
            self._series_index = previous_index
            raise

    def _begin_run(self, *, practice: bool) -> None:
        self._in_practice = practice
        self._results = []
        self._trial_index = 0
        self._mode = SessionMode.RUNNING
        self._start_trial()
        current = self.current_series
        logger.info(
            "Starting %s for '%s' (%d trials)",
            "practice" if practice else "series",
            current.name if current is not None else "<none>",
            len(self.active_trials),
        )

    def _start_trial(self) -> None:
        self._timer.cancel()
        self._trial_generation = self._timer.arm()
        self._visible = True

    # ------------------------------------------------------------------
    # Per-frame and per-response handling
    # ------------------------------------------------------------------
    def update(self, now: float | None = None) -> bool:
        """Poll the exposure timer; return True on the frame the lines hide."""

        if self._mode is not SessionMode.RUNNING or not self._visible:
            return False
        if self._timer.poll(self._trial_generation, now):
            self._visible = False
            return True
        return False

    def elapsed_ms(self, now: float | None = None) -> int:
        return int(round(self._timer.elapsed(now) * 1000))

    def respond(self, response: str, now: float | None = None) -> Result | None:
        """Record ``response`` for the current trial and advance.

        Responses are accepted whether the lines are still visible or not.
        Calling this without an active trial does nothing and returns None.
        """

        trial = self.current_trial
        if trial is None:
            logger.debug("Ignoring response '%s' in mode '%s'", response, self._mode.value)
            return None

        result = Result.from_trial(
            trial,
            trial_index=self._trial_index + 1,
            response=response,
            response_time_ms=self.elapsed_ms(now),
            timestamp=self._wall_clock(),
        )
        self._results.append(result)

        if self._trial_index < len(self.active_trials) - 1:
            self._trial_index += 1
            self._start_trial()
            return result

        self._timer.cancel()
        self._visible = False
        if self._in_practice:
            self._mode = SessionMode.PRACTICE_COMPLETED
            return result

        current = self.current_series
        assert current is not None
        self._series_results[current.name] = tuple(self._results)
        logger.info("Series '%s' complete (%d results)", current.name, len(self._results))
        if self.has_next_series:
            self._mode = SessionMode.SERIES_COMPLETED
        else:
            self._mode = SessionMode.COMPLETED
        return result

    def restart(self) -> None:
        """Discard every result and return to setup with the same series."""

        logger.info("Session restarted; discarding %d finished series", len(self._series_results))
        self._reset_state()


__all__ = [
    "DEFAULT_EXPOSURE_S",
    "SessionMode",
    "build_practice_set",
    "ExposureTimer",
    "TrialSequencer",
]
