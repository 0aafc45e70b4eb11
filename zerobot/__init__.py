"""Colour classification, sensor messages and motor and control state machines for a small robot."""

__version__ = "0.1.0"
__all__ = ["color", "comm", "control", "motors", "robot"]