"""High-level driving decisions taken from sensor messages."""

from __future__ import annotations

import enum

from zerobot.color import Color
from zerobot.comm import ColorMessage, DistanceMessage, VoltageMessage
from zerobot.motors import MotorsCommand

BATTERY_LOW = 3200  # mV
NO_BATTERY = 200  # mV
DISTANCE_CLOSE = 7  # cm
DISTANCE_SAMPLES = 3

FORWARD_DELAY = 600
LEFT_DELAY = 180
RIGHT_DELAY = 160
BACKWARDS_DELAY = 1000


class _State(enum.Enum):
    BATTERY_LOW = "battery_low"
    BLOCKED = "blocked"
    NORMAL = "normal"


def _is_low_voltage(voltage: int) -> bool:
    return NO_BATTERY <= voltage < BATTERY_LOW


class ControlSm:
    """Turns sensor messages into motor commands.

    The robot starts blocked and only moves once the way ahead has been
    clear for several consecutive distance samples. A low battery stops it
    until the voltage recovers.
    """

    def __init__(self) -> None:
        self._state = _State.BLOCKED
        self._samples = 0
        self._last_turn = False

    def process_event(self, message) -> MotorsCommand | None:
        """Handle one sensor message; return a motor command, if any."""
        if self._state is _State.BATTERY_LOW:
            return self._on_battery_low(message)
        if self._state is _State.NORMAL:
            return self._on_normal(message)
        return self._on_blocked(message)

    def _enter_battery_low(self) -> MotorsCommand:
        self._state = _State.BATTERY_LOW
        self._samples = 0
        return MotorsCommand.emergency_stop()

    def _count_sample(self, hit: bool) -> bool:
        self._samples = min(self._samples + 1, DISTANCE_SAMPLES) if hit else 0
        if self._samples == DISTANCE_SAMPLES:
            self._samples = 0
            return True
        return False

    def _on_battery_low(self, message) -> None:
        if isinstance(message, VoltageMessage):
            if not NO_BATTERY <= message.voltage <= BATTERY_LOW:
                self._state = _State.BLOCKED
                self._samples = 0
        return None

    def _on_normal(self, message) -> MotorsCommand | None:
        if isinstance(message, VoltageMessage):
            if _is_low_voltage(message.voltage):
                return self._enter_battery_low()
            return None
        if isinstance(message, DistanceMessage):
            if self._count_sample(message.distance < DISTANCE_CLOSE):
                self._state = _State.BLOCKED
                return MotorsCommand.emergency_stop()
            return None
        if isinstance(message, ColorMessage):
            return self._on_color(message.color)
        return None

    def _on_color(self, color: Color) -> MotorsCommand | None:
        if color is Color.MAGENTA:
            self._last_turn = False
            return MotorsCommand.forward(FORWARD_DELAY)
        if color in (Color.RED, Color.ORANGE):
            turn = MotorsCommand.left(LEFT_DELAY)
        elif color is Color.BLUE:
            turn = MotorsCommand.right(RIGHT_DELAY)
        else:
            return None
        if self._last_turn:
            self._last_turn = False
            return MotorsCommand.forward(FORWARD_DELAY)
        self._last_turn = True
        return turn

    def _on_blocked(self, message) -> MotorsCommand | None:
        if isinstance(message, VoltageMessage):
            if _is_low_voltage(message.voltage):
                return self._enter_battery_low()
            return None
        if isinstance(message, DistanceMessage):
            if self._count_sample(message.distance > DISTANCE_CLOSE):
                self._last_turn = False
                self._state = _State.NORMAL
        return None