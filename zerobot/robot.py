"""The robot's main loop and the sensor tasks that feed it."""

from __future__ import annotations

import asyncio
import itertools
import logging
from typing import Callable

from zerobot.color import Color
from zerobot.comm import ColorMessage, DistanceMessage, VoltageMessage
from zerobot.control import ControlSm
from zerobot.motors import MotorsBusyError, MotorsCommand, MotorsSm

log = logging.getLogger(__name__)

COLOR_PERIOD_MS = 100
DISTANCE_PERIOD_MS = 100
BATTERY_PERIOD_MS = 200
IDLE_TIMEOUT_MS = 100
OVERDUE_TIMEOUT_MS = 10
INTEGRATION_CYCLES = 32
AMBIENT_TEMPERATURE = 22.0

_U16_MAX = 0xFFFF


def _steps(iterations: int | None):
    return itertools.count() if iterations is None else range(iterations)


def _to_u16(value: float) -> int:
    if value != value or value <= 0:
        return 0
    return min(int(value), _U16_MAX)


class Robot:
    """Feeds sensor messages to the control logic and drives the motors."""

    def __init__(
        self,
        motors_sm: MotorsSm,
        control_sm: ControlSm | None = None,
        led: Callable[[tuple[int, int, int]], None] | None = None,
    ) -> None:
        self.motors_sm = motors_sm
        self.control_sm = control_sm if control_sm is not None else ControlSm()
        self.led = led
        if led is not None:
            led(Color.BLACK.to_rgb())

    def handle_message(self, message) -> MotorsCommand | None:
        """Process one sensor message; return the command the control logic chose."""
        if isinstance(message, ColorMessage) and self.led is not None:
            self.led(message.color.to_rgb())
        cmd = self.control_sm.process_event(message)
        if cmd is not None:
            try:
                self.motors_sm.process_cmd(cmd)
            except MotorsBusyError as exc:
                log.debug("motors rejected %s: %s", cmd, exc)
        return cmd

    async def run(self, channel: asyncio.Queue, iterations: int | None = None) -> None:
        """Run the main loop; forever when iterations is None."""
        loop = asyncio.get_running_loop()
        wait = 0
        started: float | None = None

        def elapsed_ms() -> int:
            return int((loop.time() - started) * 1000)

        log.info("Starting main loop")
        for _ in _steps(iterations):
            if wait > 0:
                elapsed = elapsed_ms()
                timeout = OVERDUE_TIMEOUT_MS if elapsed > wait else wait - elapsed
            else:
                timeout = IDLE_TIMEOUT_MS
            try:
                message = await asyncio.wait_for(channel.get(), timeout / 1000)
            except asyncio.TimeoutError:
                message = None
            if message is not None:
                self.handle_message(message)

            if wait == 0 or (started is not None and elapsed_ms() >= wait):
                wait = self.motors_sm.advance()
                started = loop.time() if wait > 0 else None


async def color_task(sensor, channel: asyncio.Queue, iterations: int | None = None) -> None:
    """Poll an RGBC sensor and send the colours it sees."""
    log.info("Starting color sensor task")
    await sensor.enable()
    await sensor.enable_rgbc()
    await sensor.set_integration_cycles(INTEGRATION_CYCLES)
    for _ in _steps(iterations):
        if await sensor.is_rgbc_status_valid():
            measurement = await sensor.read_all_channels()
            color = Color.from_measurement(measurement)
            log.debug("Measurement: %s, %s", measurement, color)
            await channel.put(ColorMessage(color))
        else:
            log.error("Measurement is not valid!")
        await asyncio.sleep(COLOR_PERIOD_MS / 1000)


async def distance_task(sensor, channel: asyncio.Queue, iterations: int | None = None) -> None:
    """Poll an ultrasonic range finder and send distances in whole centimetres."""
    for _ in _steps(iterations):
        try:
            distance = await sensor.measure(AMBIENT_TEMPERATURE)
        except (OSError, ValueError, asyncio.TimeoutError):
            log.error("Couldn't measure distance")
        else:
            log.info("Distance: %s", distance)
            await channel.put(DistanceMessage(_to_u16(distance)))
        await asyncio.sleep(DISTANCE_PERIOD_MS / 1000)


async def battery_task(adc, channel: asyncio.Queue, iterations: int | None = None) -> None:
    """Sample the battery through a 1:2 divider and send the voltage in mV."""
    log.info("Starting battery task")
    for _ in _steps(iterations):
        voltage = (2 * await adc.read_oneshot()) & _U16_MAX
        await channel.put(VoltageMessage(voltage))
        log.debug("Battery voltage: %s", voltage)
        await asyncio.sleep(BATTERY_PERIOD_MS / 1000)