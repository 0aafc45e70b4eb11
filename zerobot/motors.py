"""Motor driver with soft acceleration and a command state machine."""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass

log = logging.getLogger(__name__)

ACCEL_TIME = 500
DECEL_TIME_L = 1000
DECEL_TIME_R = 500


@dataclass(frozen=True)
class Config:
    """Timing (ms) and duty (percent) settings for the motors."""

    accel_time: int = ACCEL_TIME
    decel_time_l: int = DECEL_TIME_L
    decel_time_r: int = DECEL_TIME_R
    left_duty: int = 87
    right_duty: int = 81


@dataclass(frozen=True)
class Fade:
    """A duty fade in progress on a channel."""

    start: int
    end: int
    duration_ms: int


def _check_pct(duty: int) -> None:
    if not 0 <= duty <= 100:
        raise ValueError(f"duty must be between 0 and 100 percent, got {duty}")


class DutyChannel:
    """A PWM output channel whose duty is set in percent."""

    def __init__(self) -> None:
        self.duty = 0
        self.fade: Fade | None = None

    def set_duty(self, duty: int) -> None:
        """Set the duty immediately."""
        _check_pct(duty)
        self.duty = duty
        self.fade = None

    def start_duty_fade(self, start: int, end: int, duration_ms: int) -> None:
        """Fade the duty from start to end over duration_ms."""
        _check_pct(start)
        _check_pct(end)
        self.fade = Fade(start, end, duration_ms)
        self.duty = end


class Motors:
    """Two DC motors, each driven by a pair of PWM channels."""

    def __init__(
        self,
        left_1: DutyChannel,
        left_2: DutyChannel,
        right_1: DutyChannel,
        right_2: DutyChannel,
        config: Config | None = None,
    ) -> None:
        self.left_1 = left_1
        self.left_2 = left_2
        self.right_1 = right_1
        self.right_2 = right_2
        self.config = config if config is not None else Config()
        for channel in (left_1, left_2, right_1, right_2):
            channel.set_duty(0)
        self._l1 = self._l2 = self._r1 = self._r2 = 0

    def _drive(self, left_fwd: bool, right_fwd: bool) -> int:
        cfg = self.config
        left_on, left_off = (self.left_1, self.left_2) if left_fwd else (self.left_2, self.left_1)
        right_on, right_off = (
            (self.right_1, self.right_2) if right_fwd else (self.right_2, self.right_1)
        )
        left_on.start_duty_fade(0, cfg.left_duty, cfg.accel_time)
        left_off.set_duty(0)
        right_on.start_duty_fade(0, cfg.right_duty, cfg.accel_time)
        right_off.set_duty(0)

        self._l1, self._l2 = (cfg.left_duty, 0) if left_fwd else (0, cfg.left_duty)
        self._r1, self._r2 = (cfg.right_duty, 0) if right_fwd else (0, cfg.right_duty)
        return cfg.accel_time

    def forward(self) -> int:
        """Accelerate both motors forward; return the acceleration time."""
        return self._drive(True, True)

    def backwards(self) -> int:
        """Accelerate both motors backwards; return the acceleration time."""
        return self._drive(False, False)

    def right(self) -> int:
        """Turn right in place; return the acceleration time."""
        return self._drive(True, False)

    def left(self) -> int:
        """Turn left in place; return the acceleration time."""
        return self._drive(False, True)

    def stop(self) -> int:
        """Decelerate the running channels; return the longest deceleration time."""
        cfg = self.config
        for duty, channel, decel in (
            (self._l1, self.left_1, cfg.decel_time_l),
            (self._l2, self.left_2, cfg.decel_time_l),
            (self._r1, self.right_1, cfg.decel_time_r),
            (self._r2, self.right_2, cfg.decel_time_r),
        ):
            if duty > 0:
                channel.start_duty_fade(duty, 0, decel)
        return max(cfg.decel_time_l, cfg.decel_time_r)

    def emergency_stop(self) -> int:
        """Cut all channels without deceleration."""
        for channel in (self.left_1, self.left_2, self.right_1, self.right_2):
            channel.set_duty(0)
        return 0


class CommandKind(enum.Enum):
    FORWARD = "forward"
    BACKWARDS = "backwards"
    STOP = "stop"
    EMERGENCY_STOP = "emergency_stop"
    LEFT = "left"
    RIGHT = "right"


@dataclass(frozen=True)
class MotorsCommand:
    """A motion command; delay is how long to keep moving, in ms."""

    kind: CommandKind
    delay: int = 0

    @classmethod
    def forward(cls, delay: int) -> MotorsCommand:
        return cls(CommandKind.FORWARD, delay)

    @classmethod
    def backwards(cls, delay: int) -> MotorsCommand:
        return cls(CommandKind.BACKWARDS, delay)

    @classmethod
    def left(cls, delay: int) -> MotorsCommand:
        return cls(CommandKind.LEFT, delay)

    @classmethod
    def right(cls, delay: int) -> MotorsCommand:
        return cls(CommandKind.RIGHT, delay)

    @classmethod
    def stop(cls) -> MotorsCommand:
        return cls(CommandKind.STOP)

    @classmethod
    def emergency_stop(cls) -> MotorsCommand:
        return cls(CommandKind.EMERGENCY_STOP)


class MotorsBusyError(Exception):
    """The state machine cannot accept a command right now."""


class _State(enum.Enum):
    STOPPED = "stopped"
    WAIT_ACCEL = "wait_accel"
    WAIT_DECEL = "wait_decel"
    FORWARD = "forward"
    BACKWARDS = "backwards"
    LEFT = "left"
    RIGHT = "right"


_MOVING = {_State.FORWARD, _State.BACKWARDS, _State.LEFT, _State.RIGHT}

_START = {
    CommandKind.FORWARD: Motors.forward,
    CommandKind.BACKWARDS: Motors.backwards,
    CommandKind.LEFT: Motors.left,
    CommandKind.RIGHT: Motors.right,
}

_RUNNING_STATE = {
    CommandKind.FORWARD: _State.FORWARD,
    CommandKind.BACKWARDS: _State.BACKWARDS,
    CommandKind.LEFT: _State.LEFT,
    CommandKind.RIGHT: _State.RIGHT,
}


class MotorsSm:
    """Sequences accelerate, run and decelerate phases of motor commands."""

    def __init__(self, motors: Motors) -> None:
        self.motors = motors
        self._cmd: MotorsCommand | None = None
        self._state = _State.STOPPED

    def _emergency(self) -> int:
        self._state = _State.STOPPED
        self.motors.emergency_stop()
        self._cmd = None
        return 0

    def _decelerate(self) -> int:
        self._state = _State.WAIT_DECEL
        return self.motors.stop()

    def _step(self) -> int:
        cmd = self._cmd
        if self._state is _State.STOPPED:
            if cmd is None:
                return 0
            if cmd.kind is CommandKind.EMERGENCY_STOP:
                return self._emergency()
            if cmd.kind is CommandKind.STOP:
                self._cmd = None
                return 0
            self._state = _State.WAIT_ACCEL
            return _START[cmd.kind](self.motors)

        if self._state is _State.WAIT_ACCEL:
            if cmd is None:
                log.info("%s state with no command. Stopping motors", self._state)
                return self._decelerate()
            if cmd.kind is CommandKind.EMERGENCY_STOP:
                return self._emergency()
            if cmd.kind in _RUNNING_STATE:
                self._state = _RUNNING_STATE[cmd.kind]
                return cmd.delay
            log.info("%s state with %s command. Stopping motors", self._state, cmd)
            return self._decelerate()

        if self._state in _MOVING:
            if cmd is not None and cmd.kind is CommandKind.EMERGENCY_STOP:
                return self._emergency()
            return self._decelerate()

        # WAIT_DECEL
        self._state = _State.STOPPED
        self._cmd = None
        return 0

    def advance(self) -> int:
        """Move to the next phase; return how many ms to wait before the next call."""
        log.debug("from: %s", self._state)
        delay = self._step()
        log.debug("to: %s, delay: %s", self._state, delay)
        return delay

    def process_cmd(self, new_cmd: MotorsCommand) -> None:
        """Queue a command, raising MotorsBusyError if one cannot be taken now."""
        if new_cmd.kind is CommandKind.EMERGENCY_STOP:
            self._cmd = new_cmd
            return
        if self._state is _State.STOPPED:
            if self._cmd is not None:
                raise MotorsBusyError("a command is already pending")
            self._cmd = new_cmd
            return
        if self._state in _MOVING:
            if new_cmd.kind is CommandKind.STOP:
                return
            raise MotorsBusyError(f"motors are busy in state {self._state.value}")
        raise MotorsBusyError(f"motors are busy in state {self._state.value}")