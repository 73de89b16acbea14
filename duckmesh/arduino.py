"""Small numeric helpers familiar from microcontroller sketches."""

from __future__ import annotations

import math

PI = math.pi
HALF_PI = math.pi / 2
TWO_PI = math.tau
DEG_TO_RAD = math.pi / 180
RAD_TO_DEG = 180 / math.pi
EULER = math.e

LSBFIRST = 0
MSBFIRST = 1


def low_byte(value: int) -> int:
    """Return the least significant byte of value."""
    return value & 0xFF


def high_byte(value: int) -> int:
    """Return value shifted right by eight bits."""
    return value >> 8


def bit(b: int) -> int:
    """Return an integer with only bit b set."""
    return 1 << b


def bit_read(value: int, bit_index: int) -> int:
    """Return bit bit_index of value as 0 or 1."""
    return (value >> bit_index) & 0x01


def bit_set(value: int, bit_index: int) -> int:
    """Return value with bit bit_index set."""
    return value | (1 << bit_index)


def bit_clear(value: int, bit_index: int) -> int:
    """Return value with bit bit_index cleared."""
    return value & ~(1 << bit_index)


def bit_write(value: int, bit_index: int, bit_value) -> int:
    """Return value with bit bit_index set when bit_value is truthy, else cleared."""
    return bit_set(value, bit_index) if bit_value else bit_clear(value, bit_index)


def constrain(amount, low, high):
    """Clamp amount into the range [low, high]."""
    if amount < low:
        return low
    if amount > high:
        return high
    return amount


def radians(deg: float) -> float:
    """Convert degrees to radians."""
    return deg * DEG_TO_RAD


def degrees(rad: float) -> float:
    """Convert radians to degrees."""
    return rad * RAD_TO_DEG


def sq(x):
    """Return x squared."""
    return x * x