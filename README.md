# zerobot

The decision-making core of a small two-wheeled robot that follows coloured
markers on the floor. It classifies readings from an RGBC colour sensor,
watches the distance to obstacles and the battery voltage, decides what to do,
and drives two motors through PWM duty channels with soft acceleration and
deceleration.

Everything here is plain Python with no third-party dependencies. The
hardware is reached through small objects you supply, so the same logic runs
on a real robot, in a simulator or in tests.

## Modules

### `zerobot.color`

- `Measurement(red, green, blue, clear)` holds one raw sensor reading.
- `normalize_measurement(m)` boosts blue by 3/2, scales the three colour
  channels to the strongest one and squares them, giving three levels between
  0 and 1 (NaN when every channel is zero).
- `Color.from_measurement(m)` classifies a reading as `BLACK`, `BLUE`, `RED`,
  `MAGENTA`, `GREEN`, `CYAN`, `YELLOW`, `WHITE`, `ORANGE` or `UNKNOWN`. Any
  reading whose clear channel is below 110 is `BLACK`.
- `Color.to_rgb()` returns the `(r, g, b)` tuple to show on a status LED.

### `zerobot.comm`

- `ColorMessage(color)`, `DistanceMessage(distance)` (centimetres) and
  `VoltageMessage(voltage)` (millivolts) are the messages the sensors send.
- `sensor_channel()` creates the `asyncio.Queue` they share, bounded at four
  messages.

### `zerobot.motors`

- `DutyChannel` is one PWM output with a duty in percent. `set_duty(duty)`
  sets it at once; `start_duty_fade(start, end, duration_ms)` records a fade
  in its `fade` attribute. Duties outside 0..100 raise `ValueError`.
- `Motors(left_1, left_2, right_1, right_2, config=None)` drives two motors,
  each from a pair of channels, with the timings and duties of `Config`
  (500 ms acceleration, 1000/500 ms left/right deceleration, 87 %/81 % duty by
  default). `forward`, `backwards`, `left` and `right` return the acceleration
  time, `stop` returns the longest deceleration time and `emergency_stop` cuts
  every channel and returns 0.
- `MotorsCommand` is built with `forward(delay)`, `backwards(delay)`,
  `left(delay)`, `right(delay)`, `stop()` or `emergency_stop()`; its `kind` is
  a `CommandKind`.
- `MotorsSm(motors)` runs one command through accelerate, run and decelerate
  phases. Hand it a command with `process_cmd`, then call `advance()` each time
  the previous wait is over; it returns the number of milliseconds to wait
  next (0 when idle). A command it cannot take raises `MotorsBusyError`; an
  emergency stop is always accepted.

### `zerobot.control`

`ControlSm.process_event(message)` turns a sensor message into a
`MotorsCommand` or `None`:

- It starts blocked. Three consecutive distances above 7 cm unblock it; while
  driving, three consecutive distances below 7 cm block it again with an
  emergency stop.
- A voltage from 200 mV up to (not including) 3200 mV means a low battery:
  emergency stop, and nothing more happens until a voltage outside
  200..3200 mV is seen, which returns it to the blocked state.
- While driving, magenta drives forward for 600 ms, red or orange turns left
  for 180 ms and blue turns right for 160 ms. Right after a turn, the next
  red, orange or blue reading drives forward instead of turning again.

### `zerobot.robot`

- `Robot(motors_sm, control_sm=None, led=None)` ties the pieces together.
  `led` is an optional callable that receives RGB tuples; it is set to black
  at start-up and to each colour seen.
- `Robot.handle_message(message)` passes one message to the control logic and
  any resulting command to the motors (busy rejections are logged and
  dropped), and returns that command.
- `Robot.run(channel, iterations=None)` is the main loop: it reads messages
  from the channel and advances the motor state machine when its wait is over.
  It runs forever unless `iterations` is given.
- `color_task(sensor, channel, iterations=None)` enables an RGBC sensor and
  polls it every 100 ms. The sensor needs async `enable()`, `enable_rgbc()`,
  `set_integration_cycles(n)`, `is_rgbc_status_valid()` and
  `read_all_channels()` (returning a `Measurement`).
- `distance_task(sensor, channel, iterations=None)` awaits
  `sensor.measure(22.0)` every 100 ms and sends the distance in whole
  centimetres; `OSError`, `ValueError` and timeouts are logged and skipped.
- `battery_task(adc, channel, iterations=None)` awaits `adc.read_oneshot()`
  every 200 ms and sends twice the reading, for a 1:2 voltage divider.

## Example

```python
from zerobot.color import Color, Measurement

reading = Measurement(red=300, green=60, blue=210, clear=400)
colour = Color.from_measurement(reading)
print(colour, colour.to_rgb())  # Color.MAGENTA (128, 0, 128)
```

Running the whole robot:

```python
import asyncio

from zerobot.comm import sensor_channel
from zerobot.motors import DutyChannel, Motors, MotorsSm
from zerobot.robot import Robot, battery_task, color_task, distance_task

async def main(colour_sensor, range_finder, adc):
    channel = sensor_channel()
    motors = Motors(DutyChannel(), DutyChannel(), DutyChannel(), DutyChannel())
    robot = Robot(MotorsSm(motors))
    await asyncio.gather(
        robot.run(channel),
        color_task(colour_sensor, channel),
        distance_task(range_finder, channel),
        battery_task(adc, channel),
    )
```

## What it does not do

There are no hardware drivers and no command-line program. `DutyChannel` only
records the duty and fade it is given; to move real motors, subclass it and
override `set_duty` and `start_duty_fade`. The colour sensor, range finder and
ADC objects must be supplied by you.

## Running the tests

Install the `test` extra and run `pytest` from the project directory.