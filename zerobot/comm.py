"""Messages sent by the sensor tasks to the control loop."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Union

from zerobot.color import Color

CHANNEL_CAPACITY = 4


@dataclass(frozen=True)
class ColorMessage:
    """A colour seen by the colour sensor."""

    color: Color


@dataclass(frozen=True)
class DistanceMessage:
    """Distance to the nearest obstacle, in centimetres."""

    distance: int


@dataclass(frozen=True)
class VoltageMessage:
    """Battery voltage, in millivolts."""

    voltage: int


SensorMessage = Union[ColorMessage, DistanceMessage, VoltageMessage]


def sensor_channel() -> asyncio.Queue:
    """Create the bounded channel shared by the sensors and the control loop."""
    return asyncio.Queue(maxsize=CHANNEL_CAPACITY)