import asyncio

import pytest

from zerobot.color import Color, Measurement
from zerobot.comm import ColorMessage, DistanceMessage, VoltageMessage, sensor_channel
from zerobot.control import BATTERY_LOW, FORWARD_DELAY, ControlSm
from zerobot.motors import Config, DutyChannel, Motors, MotorsCommand, MotorsSm
from zerobot.robot import (
    INTEGRATION_CYCLES,
    Robot,
    battery_task,
    color_task,
    distance_task,
)


def _robot(led=None):
    motors = Motors(DutyChannel(), DutyChannel(), DutyChannel(), DutyChannel())
    return Robot(MotorsSm(motors), ControlSm(), led)


def _unblock(robot):
    for _ in range(3):
        robot.handle_message(DistanceMessage(30))


class FakeColorSensor:
    def __init__(self, readings):
        self.readings = list(readings)
        self.calls = []

    async def enable(self):
        self.calls.append("enable")

    async def enable_rgbc(self):
        self.calls.append("enable_rgbc")

    async def set_integration_cycles(self, cycles):
        self.calls.append(("cycles", cycles))

    async def is_rgbc_status_valid(self):
        return self.readings[0] is not None

    async def read_all_channels(self):
        return self.readings.pop(0)


class FakeRangeFinder:
    def __init__(self, results):
        self.results = list(results)
        self.temperatures = []

    async def measure(self, temperature):
        self.temperatures.append(temperature)
        result = self.results.pop(0)
        if isinstance(result, Exception):
            raise result
        return result


class FakeAdc:
    def __init__(self, readings):
        self.readings = list(readings)

    async def read_oneshot(self):
        return self.readings.pop(0)


def _drain(queue):
    items = []
    while not queue.empty():
        items.append(queue.get_nowait())
    return items


def test_led_starts_black_and_follows_colors():
    shown = []
    robot = _robot(shown.append)
    robot.handle_message(ColorMessage(Color.ORANGE))
    assert shown == [Color.BLACK.to_rgb(), Color.ORANGE.to_rgb()]


def test_handle_message_returns_control_command():
    robot = _robot()
    assert robot.handle_message(ColorMessage(Color.MAGENTA)) is None
    _unblock(robot)
    assert robot.handle_message(ColorMessage(Color.MAGENTA)) == MotorsCommand.forward(FORWARD_DELAY)


def test_low_battery_triggers_emergency_stop():
    robot = _robot()
    assert robot.handle_message(VoltageMessage(BATTERY_LOW - 1)) == MotorsCommand.emergency_stop()
    assert robot.motors_sm.advance() == 0


@pytest.mark.asyncio
async def test_run_starts_motors_from_queued_messages():
    robot = _robot()
    channel = sensor_channel()
    for _ in range(3):
        channel.put_nowait(DistanceMessage(30))
    channel.put_nowait(ColorMessage(Color.MAGENTA))
    await robot.run(channel, 4)
    motors = robot.motors_sm.motors
    assert channel.empty()
    assert motors.left_1.duty == motors.config.left_duty
    assert motors.right_1.duty == motors.config.right_duty
    assert motors.left_2.duty == 0


@pytest.mark.asyncio
async def test_run_idle_leaves_motors_stopped():
    robot = _robot()
    channel = sensor_channel()
    await robot.run(channel, 1)
    motors = robot.motors_sm.motors
    duties = [c.duty for c in (motors.left_1, motors.left_2, motors.right_1, motors.right_2)]
    assert duties == [0, 0, 0, 0]


@pytest.mark.asyncio
async def test_color_task_sends_colors_and_skips_invalid():
    sensor = FakeColorSensor([Measurement(100, 100, 100, 50), None])
    channel = sensor_channel()
    await color_task(sensor, channel, 2)
    assert _drain(channel) == [ColorMessage(Color.BLACK)]
    assert sensor.calls == ["enable", "enable_rgbc", ("cycles", INTEGRATION_CYCLES)]


@pytest.mark.asyncio
async def test_distance_task_truncates_and_skips_errors():
    sensor = FakeRangeFinder([12.7, OSError("timeout"), -3.0])
    channel = sensor_channel()
    await distance_task(sensor, channel, 3)
    assert _drain(channel) == [DistanceMessage(12), DistanceMessage(0)]
    assert sensor.temperatures == [22.0, 22.0, 22.0]


@pytest.mark.asyncio
async def test_distance_task_saturates_large_values():
    channel = sensor_channel()
    await distance_task(FakeRangeFinder([1e9]), channel, 1)
    assert _drain(channel) == [DistanceMessage(0xFFFF)]


@pytest.mark.asyncio
async def test_battery_task_doubles_reading():
    channel = sensor_channel()
    await battery_task(FakeAdc([1700, 1500]), channel, 2)
    assert _drain(channel) == [VoltageMessage(3400), VoltageMessage(3000)]


@pytest.mark.asyncio
async def test_tasks_feed_robot_through_channel():
    robot = _robot()
    channel = sensor_channel()
    await distance_task(FakeRangeFinder([40.0, 40.0, 40.0]), channel, 3)
    await asyncio.wait_for(robot.run(channel, 3), 5)
    assert channel.empty()
    assert robot.handle_message(ColorMessage(Color.BLUE)) == MotorsCommand.right(160)