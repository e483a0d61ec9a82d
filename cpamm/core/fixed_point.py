"""Checked integer arithmetic for pool money math.

All amounts are plain Python ints, but every intermediate is held to the
unsigned 128-bit domain so results match a u64/u128 implementation bit for bit:
a product of two u64 values always fits, and anything wider fails explicitly
instead of silently growing.

Rounding: ``//`` on non-negative operands, i.e. floor (toward zero).
"""

from __future__ import annotations

import math

from .errors import AmmError, ErrorKind

U16_MAX: int = (1 << 16) - 1
U64_MAX: int = (1 << 64) - 1
U128_MAX: int = (1 << 128) - 1


def _require_int(name: str, value: int) -> None:
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be an int")


def _require_bounded(name: str, value: int, hi: int) -> int:
    _require_int(name, value)
    if value < 0:
        raise AmmError(ErrorKind.INVALID_AMOUNT, f"{name} must be non-negative: {value}")
    if value > hi:
        raise AmmError(ErrorKind.OVERFLOW, f"{name} exceeds {hi}: {value}")
    return value


def require_u64(name: str, value: int) -> int:
    """Validate that *value* is an int in ``[0, U64_MAX]`` and return it."""
    return _require_bounded(name, value, U64_MAX)


def require_u16(name: str, value: int) -> int:
    """Validate that *value* is an int in ``[0, U16_MAX]`` and return it."""
    return _require_bounded(name, value, U16_MAX)


def _check_u128(value: int) -> int:
    if value < 0:
        raise AmmError(ErrorKind.UNDERFLOW)
    if value > U128_MAX:
        raise AmmError(ErrorKind.OVERFLOW)
    return value


def checked_add(a: int, b: int) -> int:
    return _check_u128(a + b)


def checked_sub(a: int, b: int) -> int:
    return _check_u128(a - b)


def checked_mul(a: int, b: int) -> int:
    return _check_u128(a * b)


def checked_div(numerator: int, denominator: int) -> int:
    """Floor division; a zero denominator means an empty reserve or supply."""
    if denominator == 0:
        raise AmmError(ErrorKind.ZERO_BALANCE, "division by zero")
    return _check_u128(_check_u128(numerator) // _check_u128(denominator))


def mul_div(a: int, b: int, denominator: int) -> int:
    """``floor(a * b / denominator)`` with a u128 intermediate."""
    return checked_div(checked_mul(a, b), denominator)


def to_u64(value: int) -> int:
    """Narrow a wide intermediate back to u64, failing instead of truncating."""
    if value < 0:
        raise AmmError(ErrorKind.UNDERFLOW)
    if value > U64_MAX:
        raise AmmError(ErrorKind.OVERFLOW, f"{value} does not fit in u64")
    return value


def isqrt_u128(value: int) -> int:
    """Floor square root of a u128 value (fits in u64). Integer-only."""
    return math.isqrt(_check_u128(value))
