"""High-level experiment orchestration for the line judgment task."""
from __future__ import annotations

import random
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, List, Sequence

from psychopy import core, event, gui, logging, visual
from psychopy.hardware import keyboard

from . import messages
from .calibration import CalibrationStore, ScreenCalibration
from .config import COUNTERBALANCE_GROUPS, ExperimentConfig, describe_group_order
from .errors import ExperimentAbort, SequencerNotReady, StimulusFormatError
from .export import export_session
from .render import CANVAS_SIZE, LineDrawing, trial_drawings
from .sequencer import SessionMode, TrialSequencer
from .stimuli import load_series_file, load_series_set
from .template import BaseExperiment
from .trials import Series, Trial

if TYPE_CHECKING:
    from psychopy.visual.window import Window
else:  # pragma: no cover - used only for static analysis fallbacks
    Window = Any

CALIBRATION_SMALL_STEP_PX = 1
CALIBRATION_LARGE_STEP_PX = 10


class LineJudgmentExperiment(BaseExperiment):
    """Run the same/different line length task in a PsychoPy window."""

    def __init__(self, config: ExperimentConfig | None = None):
        self.config = config or ExperimentConfig()
        self.store = CalibrationStore(self.config.calibration_file).load()
        self.calibration = ScreenCalibration.from_store(self.store)
        self._global_keys_registered = False
        self._line_cache: Dict[int, List[visual.Line]] = {}
        super().__init__(
            experiment_name=self.config.experiment_name,
            output_directory=self.config.results_directory,
        )

    # ------------------------------------------------------------------
    # Logging
    # ------------------------------------------------------------------
    def configure_logging(self) -> None:
        """Send PsychoPy log output to the console and a log file."""

        level = getattr(logging, self.config.log_level.upper(), logging.INFO)
        logging.console.setLevel(level)
        log_path = self._default_path(".log")
        logging.LogFile(str(log_path), level=level, filemode="a")
        logging.info(f"Logging to {log_path}")

    # ------------------------------------------------------------------
    # GUI helpers
    # ------------------------------------------------------------------
    def collect_participant_info(self) -> Dict[str, str]:
        """Display an info dialog to collect participant metadata."""

        info: Dict[str, Any] = {
            "Participant ID": "",
            "Session": "1",
        }
        ask_group = not self.config.single_series and self.config.counterbalance_group is None
        if ask_group:
            info["Group"] = list(COUNTERBALANCE_GROUPS)
        dialog = gui.DlgFromDict(
            info,
            title="Line Length Judgment",
            fixed=["Session"],
            tip={"Group": messages.group_orders_text()} if ask_group else None,
        )
        if not dialog.OK:
            core.quit()
        if ask_group:
            self.config.counterbalance_group = str(info.pop("Group"))
        collected = {key: str(value) for key, value in info.items()}
        if self.config.counterbalance_group:
            collected["Group"] = self.config.counterbalance_group
            collected["Group Order"] = describe_group_order(self.config.counterbalance_group)
        return collected

    # ------------------------------------------------------------------
    # Data loading
    # ------------------------------------------------------------------
    def load_series(self) -> List[Series]:
        """Load the playable series; unavailable series are skipped."""

        if self.config.single_series:
            try:
                series = load_series_file(self.config.data_file, strict=self.config.strict_data)
            except (OSError, UnicodeDecodeError, StimulusFormatError) as exc:
                logging.error(f"Series file '{self.config.data_file}' unavailable: {exc}")
                return []
            return [series] if series.trials else []
        return load_series_set(
            self.config.data_directory,
            self.config.series_names(),
            strict=self.config.strict_data,
        )

    def build_sequencer(self, series: Sequence[Series]) -> TrialSequencer:
        return TrialSequencer(
            series,
            exposure_duration_s=self.config.exposure_duration_s,
            practice_enabled=self.config.practice_enabled,
            practice_per_category=self.config.practice_per_category,
            counterbalance_group=self.config.counterbalance_group,
            rng=random.Random(self.config.random_seed),
            clock=core.monotonicClock.getTime,
        )

    # ------------------------------------------------------------------
    # Window creation
    # ------------------------------------------------------------------
    def create_window(self) -> Window:
        win = visual.Window(
            size=list(self.config.window_size),
            fullscr=self.config.full_screen,
            screen=self.config.screen_index,
            units=self.config.window_units,
            color=list(self.config.background_color),
            allowGUI=not self.config.full_screen,
        )
        win.mouseVisible = False
        self._register_global_quit_handler()
        return win

    def _register_global_quit_handler(self) -> None:
        """Install a global key hook so ESC aborts from inside any ``win.flip()``."""

        if self._global_keys_registered:
            return

        for key in self.config.quit_keys:
            event.globalKeys.add(key=key, func=self._handle_global_quit)
        self._global_keys_registered = True

    def _handle_global_quit(self) -> None:
        # Raised through win.flip() so run() still exports finished series.
        logging.warning("Global quit key detected. Aborting the session.")
        raise ExperimentAbort("Quit key pressed")

    # ------------------------------------------------------------------
    # Screens
    # ------------------------------------------------------------------
    def _text(self, win: Window, text: str, *, pos=(0, 0), height: float = 22) -> visual.TextStim:
        return visual.TextStim(
            win,
            text=text,
            pos=pos,
            height=height,
            color=self.config.text_color,
            wrapWidth=win.size[0] * 0.85,
        )

    def _check_quit(self, kb: keyboard.Keyboard) -> None:
        quit_keys = list(self.config.quit_keys)
        for key in kb.getKeys(quit_keys, waitRelease=False):
            if key.name in quit_keys:
                raise ExperimentAbort(f"Quit key '{key.name}' pressed")

    def show_message(
        self,
        win: Window,
        kb: keyboard.Keyboard,
        text: str,
        keys: Sequence[str] | None = None,
    ) -> str:
        """Show ``text`` until one of ``keys`` is pressed; return that key."""

        accepted = list(keys or self.config.continue_keys)
        stim = self._text(win, text)
        kb.clearEvents()
        while True:
            stim.draw()
            win.flip()
            self._check_quit(kb)
            for key in kb.getKeys(accepted, waitRelease=False):
                return key.name
            core.wait(0.01)

    def run_calibration(self, win: Window, kb: keyboard.Keyboard) -> ScreenCalibration:
        """Let the participant match an on-screen box to a physical card."""

        calibration = self.calibration
        box = visual.Rect(win, lineColor="blue", fillColor=[0.6, 0.8, 1.0], lineWidth=4)
        label = self._text(win, "", pos=(0, -win.size[1] * 0.35), height=20)
        steps = {
            "left": -CALIBRATION_SMALL_STEP_PX,
            "right": CALIBRATION_SMALL_STEP_PX,
            "down": -CALIBRATION_LARGE_STEP_PX,
            "up": CALIBRATION_LARGE_STEP_PX,
        }
        kb.clearEvents()
        while True:
            box.width = calibration.card_width_px
            box.height = calibration.card_height_px
            label.text = (
                "Screen Calibration\n"
                "Hold a credit card against the screen and resize the box until it matches.\n"
                "LEFT/RIGHT: 1 px, DOWN/UP: 10 px, RETURN: confirm\n"
                f"Size: {calibration.card_width_px} pixels "
                f"(= {calibration.card_width_in:.2f} inches at {calibration.pixels_per_inch:.1f} px/in)"
            )
            box.draw()
            label.draw()
            win.flip()
            self._check_quit(kb)
            pressed = kb.getKeys(list(steps) + ["return"], waitRelease=False)
            if any(key.name == "return" for key in pressed):
                break
            for key in pressed:
                calibration = calibration.adjusted(steps[key.name])
            core.wait(0.01)

        calibration.to_store(self.store)
        self.store.save()
        logging.info(f"Calibration confirmed: {calibration}")
        self.calibration = calibration
        self._line_cache.clear()
        return calibration

    # ------------------------------------------------------------------
    # Trial presentation
    # ------------------------------------------------------------------
    def _lines_for(self, win: Window, trial: Trial) -> List[visual.Line]:
        key = id(trial)
        if key not in self._line_cache:
            stims = []
            for drawing in trial_drawings(trial, self.calibration.pixels_per_inch):
                stims.append(self._line_stim(win, drawing))
            self._line_cache[key] = stims
        return self._line_cache[key]

    @staticmethod
    def _line_stim(win: Window, drawing: LineDrawing) -> visual.Line:
        start, end = drawing.to_window(CANVAS_SIZE)
        return visual.Line(
            win,
            start=start,
            end=end,
            lineWidth=drawing.width_px,
            lineColor=drawing.psychopy_color(),
            colorSpace="rgb",
            units="pix",
        )

    def run_active_set(self, win: Window, kb: keyboard.Keyboard, sequencer: TrialSequencer) -> None:
        """Present trials until the active set (practice or series) is exhausted."""

        header = self._text(win, "", pos=(0, win.size[1] * 0.4), height=26)
        prompt = self._text(win, messages.PROMPT_TEXT, pos=(0, -win.size[1] * 0.3), height=30)
        keys_hint = self._text(
            win,
            "   ".join(self.config.response_key_lines()),
            pos=(0, -win.size[1] * 0.4),
            height=20,
        )
        response_keys = list(self.config.response_keys)
        kb.clearEvents()
        while sequencer.mode is SessionMode.RUNNING:
            trial = sequencer.current_trial
            if trial is None:
                break
            if sequencer.update():
                logging.debug(f"Stimuli hidden for trial {sequencer.trial_index + 1}")
            current = sequencer.current_series
            header.text = messages.trial_header(
                series_name=current.name if current is not None else None,
                trial_index=sequencer.trial_index,
                total=len(sequencer.active_trials),
                in_practice=sequencer.in_practice,
            )
            header.draw()
            if sequencer.stimuli_visible:
                for line in self._lines_for(win, trial):
                    line.draw()
            prompt.draw()
            keys_hint.draw()
            win.flip()
            self._check_quit(kb)
            for key in kb.getKeys(response_keys, waitRelease=False):
                result = sequencer.respond(self.config.response_keys[key.name])
                if result is not None:
                    logging.data(
                        f"trial={result.trial_index} response={result.response} "
                        f"rt_ms={result.response_time_ms} correct={result.is_correct}"
                    )
                kb.clearEvents()
                break
        self._line_cache.clear()

    # ------------------------------------------------------------------
    # Session flow
    # ------------------------------------------------------------------
    def run_session(self, win: Window, kb: keyboard.Keyboard, sequencer: TrialSequencer) -> bool:
        """Drive the sequencer to completion; return True when a restart is requested."""

        while True:
            mode = sequencer.mode
            if mode is SessionMode.RUNNING:
                self.run_active_set(win, kb, sequencer)
            elif mode is SessionMode.PRACTICE_COMPLETED:
                self.show_message(
                    win, kb, messages.practice_complete_text(sequencer.results, sequencer.current_series)
                )
                sequencer.continue_after_practice()
            elif mode is SessionMode.SERIES_COMPLETED:
                completed = sequencer.current_series
                upcoming = sequencer.next_series
                assert completed is not None and upcoming is not None
                text = messages.series_transition_text(
                    completed,
                    len(sequencer.series_results.get(completed.name, ())),
                    upcoming,
                    upcoming_has_practice=sequencer.needs_practice(sequencer.series_index + 1),
                    upcoming_is_final=sequencer.series_index + 1 == len(sequencer.series) - 1,
                )
                self.show_message(win, kb, text)
                sequencer.advance_series()
            elif mode is SessionMode.COMPLETED:
                self.save_results(sequencer)
                key = self.show_message(
                    win,
                    kb,
                    messages.completion_text(sequencer.series_results, restart_key=self.config.restart_key),
                    keys=list(self.config.continue_keys) + [self.config.restart_key],
                )
                return key == self.config.restart_key
            else:
                raise RuntimeError(f"Unexpected session mode '{mode.value}'")

    # ------------------------------------------------------------------
    # Data persistence
    # ------------------------------------------------------------------
    def save_results(self, sequencer: TrialSequencer) -> List[Path]:
        """Export finished series and the session summary."""

        series_results = sequencer.series_results
        paths = export_session(self.output_dir(), series_results, prefix=self.file_prefix())
        for path in paths:
            self._record_saved(path)
        self.save_experiment_pickle(
            {
                "counterbalance_group": sequencer.counterbalance_group,
                "series_order": [series.name for series in sequencer.series],
                "calibration": {
                    "pixels_per_inch": self.calibration.pixels_per_inch,
                    "card_width_px": self.calibration.card_width_px,
                },
                "series_results": {name: list(rows) for name, rows in series_results.items()},
            }
        )
        return paths

    # ------------------------------------------------------------------
    # Experiment entry point
    # ------------------------------------------------------------------
    def run(self) -> None:
        """Execute the full experiment pipeline."""

        participant_info = self.collect_participant_info()
        self.experiment_info.update(participant_info)
        self.configure_logging()
        self.save_experiment_info()

        series = self.load_series()
        sequencer = self.build_sequencer(series)
        win = self.create_window()
        kb = keyboard.Keyboard()
        calibrated = False
        try:
            while True:
                self.show_message(
                    win,
                    kb,
                    messages.setup_text(
                        sequencer.series,
                        exposure_duration_s=self.config.exposure_duration_s,
                        response_key_lines=self.config.response_key_lines(),
                        practice_enabled=self.config.practice_enabled,
                        counterbalance_group=sequencer.counterbalance_group,
                    ),
                )
                if self.config.run_calibration and not calibrated:
                    sequencer.begin_calibration()
                    self.run_calibration(win, kb)
                    calibrated = True
                try:
                    sequencer.start()
                except SequencerNotReady as exc:
                    logging.error(f"Cannot start: {exc}")
                    self.show_message(win, kb, f"Cannot start the experiment:\n{exc}\n\nPress SPACE to exit.")
                    break
                if not self.run_session(win, kb, sequencer):
                    break
                sequencer.restart()
                run_number = self.start_new_run()
                logging.info(f"Restarting; files from run {run_number} use prefix '{self.file_prefix()}'")
        except ExperimentAbort as exc:
            logging.warning(f"Experiment aborted: {exc}")
            if sequencer.series_results:
                self.save_results(sequencer)
        finally:
            win.close()
            logging.flush()

        core.quit()


__all__ = ["LineJudgmentExperiment"]
