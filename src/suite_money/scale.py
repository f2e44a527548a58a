"""Exact-decimal scale engine.

All numeric inputs are converted to `Decimal` without silent precision loss. Rounding only
happens when a rounding mode is given explicitly or set for the current scope with
`with_rounding`; otherwise an operation that would need rounding raises `InexactRounding`.
"""

from __future__ import annotations

import math
from contextlib import contextmanager
from contextvars import ContextVar
from decimal import (
    Context,
    Decimal,
    DivisionByZero,
    Inexact,
    InvalidOperation,
    Overflow,
    MAX_EMAX,
    MIN_EMIN,
    ROUND_CEILING,
    ROUND_DOWN,
    ROUND_FLOOR,
    ROUND_HALF_DOWN,
    ROUND_HALF_EVEN,
    ROUND_HALF_UP,
    ROUND_UP,
)
from enum import Enum
from fractions import Fraction
from typing import Iterator

from suite_money.config import get_settings
from suite_money.errors import InexactRounding, ValidationError
from suite_money.utils.decimal_tools import DecimalLike, as_decimal, decimal_precision, decimal_scale

# Scale sentinel meaning "automatic / unbounded"
AUTO_SCALE = None


class RoundingMode(Enum):
    """Rounding modes supported by scaling operations."""

    CEILING = "CEILING"
    FLOOR = "FLOOR"
    HALF_UP = "HALF_UP"
    HALF_DOWN = "HALF_DOWN"
    HALF_EVEN = "HALF_EVEN"
    UP = "UP"
    DOWN = "DOWN"
    UNNECESSARY = "UNNECESSARY"

    @property
    def decimal_rounding(self) -> str | None:
        """Matching `decimal` module constant, or None for UNNECESSARY."""
        return _DECIMAL_ROUNDING.get(self)

    @classmethod
    def parse(cls, value: RoundingMode | str) -> RoundingMode:
        """Parse a rounding mode from an enum member or its textual name.

        Accepts "HALF_UP", "ROUND_HALF_UP", "half-up", `decimal.ROUND_HALF_UP`, etc.

        Raises:
            ValidationError: If $value does not name a rounding mode.
        """
        if isinstance(value, RoundingMode):
            return value

        # Raise: only text can be parsed into a rounding mode
        if not isinstance(value, str):
            raise ValidationError(f"Cannot parse rounding mode because $value is not a string (got type '{type(value).__name__}')", value=value)

        name = value.strip().upper().replace("-", "_").replace(" ", "_")
        if name.startswith("ROUND_"):
            name = name[len("ROUND_"):]

        try:
            return cls[name]
        except KeyError as e:
            raise ValidationError(f"Cannot parse rounding mode because $value '{value}' is not one of {[m.value for m in cls]}", value=value) from e


_DECIMAL_ROUNDING = {
    RoundingMode.CEILING: ROUND_CEILING,
    RoundingMode.FLOOR: ROUND_FLOOR,
    RoundingMode.HALF_UP: ROUND_HALF_UP,
    RoundingMode.HALF_DOWN: ROUND_HALF_DOWN,
    RoundingMode.HALF_EVEN: ROUND_HALF_EVEN,
    RoundingMode.UP: ROUND_UP,
    RoundingMode.DOWN: ROUND_DOWN,
}

# region Scoped overrides

_UNSET = object()

_rounding_mode_var: ContextVar[object] = ContextVar("suite_money_rounding_mode", default=_UNSET)
_rescale_each_var: ContextVar[bool] = ContextVar("suite_money_rescale_each", default=False)


def current_rounding_mode() -> RoundingMode | None:
    """Returns the rounding mode of the current scope, falling back to configuration."""
    mode = _rounding_mode_var.get()
    if mode is _UNSET:
        configured = get_settings().rounding_mode
        return RoundingMode.parse(configured) if configured else None
    return mode


def rescale_each_enabled() -> bool:
    """Returns True when multi-step operations should rescale after every step."""
    return _rescale_each_var.get()


@contextmanager
def with_rounding(rounding_mode: RoundingMode | str | None) -> Iterator[RoundingMode | None]:
    """Set the ambient rounding mode for the enclosed block.

    The binding is local to the current thread/task and is restored on every exit path.
    Passing None disables ambient rounding inside the block.

    Example:
        ```python
        with with_rounding(RoundingMode.HALF_UP):
            apply_scale("10.5", 0)  # Decimal("11")
        ```
    """
    mode = RoundingMode.parse(rounding_mode) if rounding_mode is not None else None
    token = _rounding_mode_var.set(mode)
    try:
        yield mode
    finally:
        _rounding_mode_var.reset(token)


@contextmanager
def rescaling(rounding_mode: RoundingMode | str | None = None) -> Iterator[None]:
    """Enable rescaling after each step of multi-step money operations.

    When $rounding_mode is given it also becomes the ambient rounding mode of the block.
    """
    token = _rescale_each_var.set(True)
    try:
        if rounding_mode is None:
            yield
        else:
            with with_rounding(rounding_mode):
                yield
    finally:
        _rescale_each_var.reset(token)


def _effective_mode(rounding_mode: RoundingMode | str | None) -> RoundingMode | None:
    if rounding_mode is not None:
        return RoundingMode.parse(rounding_mode)
    return current_rounding_mode()


# endregion

# region Contexts


def _context(precision: int, rounding_mode: RoundingMode | None) -> Context:
    """Build a local decimal context; without a usable rounding mode inexact results trap."""
    traps = [InvalidOperation, DivisionByZero, Overflow]
    rounding = rounding_mode.decimal_rounding if rounding_mode is not None else None
    if rounding is None:
        traps.append(Inexact)
        rounding = ROUND_HALF_EVEN
    return Context(prec=max(precision, 1), rounding=rounding, Emax=MAX_EMAX, Emin=MIN_EMIN, traps=traps)


def division_precision(a: Decimal, b: Decimal) -> int:
    """Returns the precision budget for dividing $a by $b.

    The budget is `precision(a) + ceil(10 * precision(b) / 3)`, which is enough to hold any
    terminating quotient of the operands.
    """
    return decimal_precision(a) + math.ceil(10 * decimal_precision(b) / 3)


# endregion

# region Conversion


def to_decimal(value: DecimalLike, rounding_mode: RoundingMode | str | None = None) -> Decimal:
    """Convert any supported numeric kind to an exact `Decimal`.

    Args:
        value: Decimal, int, float, numeric string or Fraction.
        rounding_mode: Used only for fractions without a terminating decimal expansion. When
            None, the ambient rounding mode is consulted.

    Returns:
        Decimal: Exact decimal value.

    Raises:
        ValidationError: If $value is of unsupported type, is not a number or not finite.
        InexactRounding: If $value is a Fraction that needs rounding and no mode is available.
    """
    # Raise: booleans are ints in Python but never amounts
    if isinstance(value, bool):
        raise ValidationError(f"Cannot convert $value ({value}) to Decimal because booleans are not numbers", value=value)

    if isinstance(value, Fraction):
        return divide(Decimal(value.numerator), Decimal(value.denominator), rounding_mode)

    # Raise: only numeric kinds and numerals can be converted
    if not isinstance(value, (Decimal, int, float, str)):
        raise ValidationError(f"Cannot convert $value to Decimal because type '{type(value).__name__}' is not supported", value=value)

    try:
        result = as_decimal(value)
    except (ValueError, InvalidOperation) as e:
        raise ValidationError(f"Cannot convert $value ('{value}') to Decimal", value=value) from e

    # Raise: NaN and infinities have no scale
    if not result.is_finite():
        raise ValidationError(f"Cannot convert $value ('{value}') to Decimal because it is not finite", value=value)

    return result


def scale_of(value: DecimalLike) -> int:
    """Returns the decimal scale (digits right of the decimal point) of $value."""
    return decimal_scale(to_decimal(value))


def apply_scale(value: DecimalLike, scale: int | None = None, rounding_mode: RoundingMode | str | None = None) -> Decimal:
    """Convert $value to Decimal and optionally set its scale.

    Args:
        value: Any numeric kind accepted by `to_decimal`.
        scale: Target number of fractional digits. None returns the exact converted value.
        rounding_mode: Explicit rounding mode. When None, the ambient mode is used; when no
            mode is available the conversion must be exact.

    Returns:
        Decimal: Value at the requested scale.

    Raises:
        InexactRounding: If rounding is required but no rounding mode is available (or the
            mode is UNNECESSARY).
    """
    mode = _effective_mode(rounding_mode)
    if isinstance(value, Fraction) and scale is not None:
        return round_fraction(value, scale, mode)

    number = to_decimal(value, mode)
    if scale is None or decimal_scale(number) == scale:
        return number

    quantum = Decimal((0, (1,), -scale))
    precision = max(decimal_precision(number), number.adjusted() + scale + 2)
    try:
        return number.quantize(quantum, context=_context(precision, mode))
    except Inexact as e:
        raise InexactRounding(
            f"Cannot apply $scale {scale} to $value {number} without rounding; set a rounding mode",
            value=number,
            scale=scale,
        ) from e


def _round_integer(value: Fraction, rounding_mode: RoundingMode) -> int:
    """Round a non-integral fraction to an integer according to $rounding_mode."""
    floor, remainder = divmod(value.numerator, value.denominator)
    positive = value > 0
    twice = 2 * remainder
    if rounding_mode is RoundingMode.FLOOR:
        return floor
    if rounding_mode is RoundingMode.CEILING:
        return floor + 1
    if rounding_mode is RoundingMode.DOWN:
        return floor if positive else floor + 1
    if rounding_mode is RoundingMode.UP:
        return floor + 1 if positive else floor
    if twice < value.denominator:
        return floor
    if twice > value.denominator:
        return floor + 1
    if rounding_mode is RoundingMode.HALF_UP:
        return floor + 1 if positive else floor
    if rounding_mode is RoundingMode.HALF_DOWN:
        return floor if positive else floor + 1
    return floor if floor % 2 == 0 else floor + 1


def _decimal_of(units: int, scale: int) -> Decimal:
    """Exact Decimal equal to `units * 10 ** -scale`, independent of context precision."""
    digits = tuple(int(d) for d in str(abs(units)))
    return Decimal((1 if units < 0 else 0, digits, -scale))


def round_fraction(value: Fraction, scale: int, rounding_mode: RoundingMode | str | None = None) -> Decimal:
    """Round an exact rational number to $scale fractional digits.

    Raises:
        InexactRounding: If rounding is required but no rounding mode is available.
    """
    mode = _effective_mode(rounding_mode)
    scaled = value * 10**scale
    if scaled.denominator == 1:
        return _decimal_of(scaled.numerator, scale)

    # Raise: rounding needs a mode
    if mode is None or mode is RoundingMode.UNNECESSARY:
        raise InexactRounding(
            f"Cannot apply $scale {scale} to $value {value} without rounding; set a rounding mode",
            value=value,
            scale=scale,
        )

    return _decimal_of(_round_integer(scaled, mode), scale)


# endregion

# region Exact arithmetic


def add(a: DecimalLike, b: DecimalLike) -> Decimal:
    """Exact sum; the result scale is the larger of the operand scales."""
    x, y = to_decimal(a), to_decimal(b)
    precision = max(x.adjusted(), y.adjusted()) - min(x.as_tuple().exponent, y.as_tuple().exponent) + 2
    return _context(precision, None).add(x, y)


def subtract(a: DecimalLike, b: DecimalLike) -> Decimal:
    """Exact difference; the result scale is the larger of the operand scales."""
    return add(a, -to_decimal(b))


def multiply(a: DecimalLike, b: DecimalLike) -> Decimal:
    """Exact product; the result scale is the sum of the operand scales."""
    x, y = to_decimal(a), to_decimal(b)
    return _context(decimal_precision(x) + decimal_precision(y), None).multiply(x, y)


def divide(a: DecimalLike, b: DecimalLike, rounding_mode: RoundingMode | str | None = None) -> Decimal:
    """Divide within the precision budget of the operands.

    Raises:
        ZeroDivisionError: If $b is zero.
        InexactRounding: If the quotient does not terminate within the budget and no rounding
            mode is available.
    """
    mode = _effective_mode(rounding_mode)
    x, y = to_decimal(a), to_decimal(b)

    # Raise: division by zero is undefined
    if y == 0:
        raise ZeroDivisionError(f"Cannot divide $a ({x}) by zero")

    try:
        return _context(division_precision(x, y), mode).divide(x, y)
    except Inexact as e:
        raise InexactRounding(
            f"Cannot divide $a ({x}) by $b ({y}) exactly; set a rounding mode",
            dividend=x,
            divisor=y,
        ) from e


def divide_to_scale(a: DecimalLike, b: DecimalLike, scale: int, rounding_mode: RoundingMode | str | None = None) -> Decimal:
    """Divide $a by $b and round the exact quotient once to $scale.

    Raises:
        ZeroDivisionError: If $b is zero.
        InexactRounding: If the quotient needs rounding and no mode is available.
    """
    x, y = to_decimal(a), to_decimal(b)

    # Raise: division by zero is undefined
    if y == 0:
        raise ZeroDivisionError(f"Cannot divide $a ({x}) by zero")

    return round_fraction(Fraction(x) / Fraction(y), scale, rounding_mode)


def integer_part(value: DecimalLike) -> Decimal:
    """Returns the integer part of $value, truncated toward zero (scale 0)."""
    number = to_decimal(value)
    return number.quantize(Decimal(1), context=_context(max(number.adjusted() + 2, 1), RoundingMode.DOWN))


def fractional_part(value: DecimalLike) -> Decimal:
    """Returns $value minus its integer part, keeping the original scale."""
    number = to_decimal(value)
    return subtract(number, integer_part(number))


def strip_trailing_zeros(value: DecimalLike) -> Decimal:
    """Remove trailing fractional zeros; never produces a negative scale."""
    number = to_decimal(value)
    stripped = number.normalize(context=_context(decimal_precision(number), None))
    if decimal_scale(stripped) < 0:
        return stripped.quantize(Decimal(1), context=_context(stripped.adjusted() + 2, None))
    return stripped


# endregion
