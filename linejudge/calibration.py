"""Screen calibration helpers for the line judgment task.

Line lengths are specified in inches, so the task needs to know how many
pixels make up an inch on the participant's display.  The participant resizes
an on-screen box until it matches a physical ID-1 card (a credit card), and
the width of that box in pixels yields the pixels-per-inch constant.  Both
values are kept in a small JSON key-value store so the calibration survives
between sessions.
"""
from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Physical constants
# ---------------------------------------------------------------------------

CARD_WIDTH_IN: float = 3.370
CARD_ASPECT_RATIO: float = 0.6308  # 53.98 mm / 85.6 mm
MIN_CARD_WIDTH_PX: int = 200
MAX_CARD_WIDTH_PX: int = 600

PIXELS_PER_INCH_KEY = "pixelsPerInch"
CARD_WIDTH_KEY = "cardWidthInPixels"
DEFAULT_PIXELS_PER_INCH: float = 96.0
DEFAULT_CARD_WIDTH_PX: int = 550


class CalibrationStore:
    """Scoped key-value store persisted as JSON.

    Values live under ``scope`` inside the file so that several tools can
    share one calibration file without clobbering each other's keys.  Nothing
    touches the disk until :meth:`load` or :meth:`save` is called.
    """

    def __init__(self, path: str | os.PathLike[str], scope: str = "linejudge"):
        self.path = Path(path).expanduser()
        self.scope = scope
        self._values: Dict[str, Any] = {}
        self._other_scopes: Dict[str, Any] = {}

    def load(self) -> "CalibrationStore":
        """Read the stored values; missing or unreadable files yield an empty store."""

        self._values = {}
        self._other_scopes = {}
        if not self.path.exists():
            return self
        try:
            with self.path.open("r", encoding="utf-8") as store_file:
                loaded = json.load(store_file)
        except (OSError, ValueError) as exc:
            logger.warning("Could not read calibration store '%s': %s", self.path, exc)
            return self
        if not isinstance(loaded, dict):
            logger.warning("Calibration store '%s' does not hold a JSON object; ignoring it", self.path)
            return self
        scoped = loaded.get(self.scope, {})
        self._values = dict(scoped) if isinstance(scoped, dict) else {}
        self._other_scopes = {key: value for key, value in loaded.items() if key != self.scope}
        return self

    def save(self) -> Path:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = dict(self._other_scopes)
        payload[self.scope] = self._values
        with self.path.open("w", encoding="utf-8") as store_file:
            json.dump(payload, store_file, indent=2, sort_keys=True)
        logger.info("Saved calibration to '%s'", self.path)
        return self.path

    def get(self, key: str, default: Any = None) -> Any:
        return self._values.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self._values[key] = value

    def as_dict(self) -> Dict[str, Any]:
        return dict(self._values)


def _clamp_card_width(width_px: float) -> int:
    return int(round(min(max(width_px, MIN_CARD_WIDTH_PX), MAX_CARD_WIDTH_PX)))


@dataclass(frozen=True)
class ScreenCalibration:
    """Pixels-per-inch constant plus the card width it was derived from."""

    pixels_per_inch: float = DEFAULT_PIXELS_PER_INCH
    card_width_px: int = DEFAULT_CARD_WIDTH_PX

    @classmethod
    def from_card_width(cls, width_px: float) -> "ScreenCalibration":
        width = _clamp_card_width(width_px)
        return cls(pixels_per_inch=width / CARD_WIDTH_IN, card_width_px=width)

    @property
    def card_height_px(self) -> float:
        return self.card_width_px * CARD_ASPECT_RATIO

    @property
    def card_width_in(self) -> float:
        return self.card_width_px / self.pixels_per_inch

    def adjusted(self, delta_px: int) -> "ScreenCalibration":
        return ScreenCalibration.from_card_width(self.card_width_px + delta_px)

    def inches_to_pixels(self, inches: float) -> float:
        return inches * self.pixels_per_inch

    @classmethod
    def from_store(cls, store: CalibrationStore) -> "ScreenCalibration":
        def _number(key: str, default: float) -> float:
            value = store.get(key)
            if isinstance(value, (int, float)) and not isinstance(value, bool) and value > 0:
                return float(value)
            return default

        return cls(
            pixels_per_inch=_number(PIXELS_PER_INCH_KEY, DEFAULT_PIXELS_PER_INCH),
            card_width_px=int(_number(CARD_WIDTH_KEY, DEFAULT_CARD_WIDTH_PX)),
        )

    def to_store(self, store: CalibrationStore) -> None:
        store.set(PIXELS_PER_INCH_KEY, self.pixels_per_inch)
        store.set(CARD_WIDTH_KEY, self.card_width_px)


__all__ = [
    "CARD_WIDTH_IN",
    "CARD_ASPECT_RATIO",
    "MIN_CARD_WIDTH_PX",
    "MAX_CARD_WIDTH_PX",
    "PIXELS_PER_INCH_KEY",
    "CARD_WIDTH_KEY",
    "DEFAULT_PIXELS_PER_INCH",
    "DEFAULT_CARD_WIDTH_PX",
    "CalibrationStore",
    "ScreenCalibration",
]
