"""Colour classification of RGBC light-sensor measurements."""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum

CLEAR_THRESHOLD = 110
CHANNEL_HIGH_THRESHOLD = 0.7
CHANNEL_LOW_THRESHOLD = 0.3

_U16_MASK = 0xFFFF


@dataclass(frozen=True)
class Measurement:
    """Raw readings of all four channels of an RGBC sensor."""

    red: int
    green: int
    blue: int
    clear: int


def normalize_measurement(m: Measurement) -> tuple[float, float, float]:
    """Scale the channels to the strongest one and square them.

    The blue channel is boosted by 3/2 to correct the sensor's weaker
    blue response. Squaring attenuates weak channels relative to strong ones.
    """
    blue = ((m.blue * 3) & _U16_MASK) // 2
    peak = max(m.red, m.green, blue)
    if peak == 0:
        return (math.nan, math.nan, math.nan)
    red_n, green_n, blue_n = ((value / peak) ** 2 for value in (m.red, m.green, blue))
    return (red_n, green_n, blue_n)


_LOW = (-math.inf, CHANNEL_LOW_THRESHOLD)
_HIGH = (CHANNEL_HIGH_THRESHOLD, math.inf)


def _matches(values: tuple[float, float, float], bounds) -> bool:
    # Written as "not outside" so that NaN channels behave like the sensor firmware.
    return all(not (v < lo or v > hi) for v, (lo, hi) in zip(values, bounds))


class Color(Enum):
    """Colours the robot recognises on the floor."""

    BLACK = "black"
    BLUE = "blue"
    RED = "red"
    MAGENTA = "magenta"
    GREEN = "green"
    CYAN = "cyan"
    YELLOW = "yellow"
    WHITE = "white"
    ORANGE = "orange"
    UNKNOWN = "unknown"

    def to_rgb(self) -> tuple[int, int, int]:
        """Return the LED colour used to display this colour."""
        return _RGB[self]

    @classmethod
    def from_measurement(cls, m: Measurement) -> Color:
        """Classify a raw measurement."""
        normalized = normalize_measurement(m)
        if m.clear < CLEAR_THRESHOLD:
            return cls.BLACK
        for color, bounds in _PATTERNS:
            if _matches(normalized, bounds):
                return color
        return cls.UNKNOWN


_RGB = {
    Color.BLACK: (0, 0, 0),
    Color.BLUE: (0, 0, 128),
    Color.RED: (128, 0, 0),
    Color.MAGENTA: (128, 0, 128),
    Color.GREEN: (0, 128, 0),
    Color.CYAN: (0, 128, 128),
    Color.YELLOW: (128, 128, 0),
    Color.WHITE: (128, 128, 128),
    Color.ORANGE: (128, 82, 0),
    Color.UNKNOWN: (0, 0, 0),
}

_PATTERNS = (
    (Color.BLUE, (_LOW, _LOW, _HIGH)),
    (Color.MAGENTA, (_HIGH, _LOW, _HIGH)),
    (Color.GREEN, (_LOW, _HIGH, _LOW)),
    (Color.CYAN, (_LOW, _HIGH, _HIGH)),
    (Color.YELLOW, (_HIGH, _HIGH, _LOW)),
    (Color.WHITE, (_HIGH, _HIGH, _HIGH)),
    # Tuned for specific filament colours.
    (Color.MAGENTA, ((0.35, 0.55), (0.3, 0.55), _HIGH)),
    (Color.ORANGE, (_HIGH, (0.35, 0.55), (0.2, 0.4))),
    (Color.RED, (_HIGH, (0.2, 0.35), (0.2, 0.4))),
    (Color.BLUE, ((0.15, 0.35), (0.30, 0.50), _HIGH)),
)