from __future__ import annotations

from decimal import Decimal
from fractions import Fraction
from typing import TypeAlias

# Use where optimal type is `Decimal`, but other types are also acceptable (and will be converted to `Decimal`)
DecimalLike: TypeAlias = Decimal | int | str | float | Fraction


def as_decimal(value: Decimal | int | str | float) -> Decimal:
    """Converts input to `Decimal` without any rounding.

    Floats are converted via string to avoid binary precision noise. Strings are trimmed and
    may use `_` as a digit group separator (like Python literals).

    Args:
        value: Input value as Decimal, int, str or float.

    Returns:
        Value converted to `Decimal`.
    """
    if isinstance(value, Decimal):
        return value

    if isinstance(value, str):
        return Decimal(value.strip().replace("_", ""))

    return Decimal(str(value))


def decimal_precision(value: Decimal) -> int:
    """Returns the number of significant digits stored in the coefficient of $value.

    Zero has precision 1.
    """
    return max(len(value.as_tuple().digits), 1)


def decimal_scale(value: Decimal) -> int:
    """Returns number of digits to the right of the decimal point (negative exponent)."""
    return -value.as_tuple().exponent
