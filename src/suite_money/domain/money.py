from __future__ import annotations

from contextlib import contextmanager
from contextvars import ContextVar
from decimal import Decimal
from fractions import Fraction
from typing import Any, Iterable, Iterator

from suite_money import scale as scaling
from suite_money.domain.currency import Currency
from suite_money.errors import CurrencyMismatch, CurrencyRequired, MultipleMonetaryOperands, ValidationError
from suite_money.registry.registry import Registry
from suite_money.registry.resolution import registry_or_current, resolve
from suite_money.scale import RoundingMode
from suite_money.utils.decimal_tools import DecimalLike, decimal_scale

_default_currency_var: ContextVar[Currency | None] = ContextVar("suite_money_default_currency", default=None)


def default_currency() -> Currency | None:
    """Currency used by `Money` when no currency is given, or None."""
    return _default_currency_var.get()


@contextmanager
def with_currency(currency: Any, registry: Registry | None = None) -> Iterator[Currency]:
    """Set the default currency for the enclosed block (this thread/task only).

    Raises:
        CurrencyNotFound: If $currency cannot be resolved.
    """
    token = _default_currency_var.set(_resolve_currency(currency, registry))
    try:
        yield _default_currency_var.get()
    finally:
        _default_currency_var.reset(token)


def _resolve_currency(currency: Any, registry: Registry | None) -> Currency:
    if isinstance(currency, Money):
        return currency.currency
    if currency is None:
        currency = default_currency()

        # Raise: some currency must be known
        if currency is None:
            raise CurrencyRequired("Cannot create `Money` because $currency is missing and no default currency is set")

        return currency
    if isinstance(currency, Currency) and registry is None:
        return currency
    return resolve(currency, registry)


def _nominal_scale(money: Money) -> int | None:
    return money.currency.scale


def _finish(value: Fraction | Decimal, scale: int | None, rounding_mode: RoundingMode | str | None) -> Decimal:
    """Bring an intermediate result to the currency scale (auto scale keeps it exact)."""
    if scale is None:
        return scaling.to_decimal(value, rounding_mode)
    return scaling.apply_scale(value, scale, rounding_mode)


def _wider_currency(a: Currency, b: Currency) -> Currency:
    """Of two variants of the same currency, the one with the larger (or automatic) scale."""
    if a == b or a.scale is None:
        return a
    if b.scale is None or b.scale > a.scale:
        return b
    return a


class Money:
    """Amount of a currency kept at the currency scale.

    Amounts are exact `Decimal` values. Construction and arithmetic never round silently:
    when the result does not fit the currency scale, a rounding mode must be given
    explicitly or set for the current scope (`with_rounding`), otherwise `InexactRounding`
    is raised.

    Examples:
        >>> Money("1.5", "PLN") + Money("1.25", "PLN")
        Money(2.75, PLN)
        >>> Money("10.5", "JPY", rounding_mode="HALF_UP")
        Money(11, JPY)
    """

    __slots__ = ("_value", "_currency")

    def __init__(
        self,
        amount: DecimalLike,
        currency: Any = None,
        rounding_mode: RoundingMode | str | None = None,
        registry: Registry | None = None,
    ):
        """Initialize Money.

        Args:
            amount: Decimal-like amount.
            currency: Currency, identifier, numeric id or constraint map; None uses the default
                currency set by `with_currency`. A Currency given without $registry is used
                as it is.
            rounding_mode: Rounding mode used when $amount does not fit the currency scale.
            registry: Registry used to resolve $currency; None means the current registry.

        Raises:
            CurrencyRequired: If no currency is given and no default is set.
            CurrencyNotFound: If $currency cannot be resolved.
            InexactRounding: If $amount needs rounding and no rounding mode is available.
            ValidationError: If $amount is not a number.
        """
        self._currency = _resolve_currency(currency, registry)
        self._value = scaling.apply_scale(amount, self._currency.scale, rounding_mode)

    @classmethod
    def _of(cls, value: Decimal, currency: Currency) -> Money:
        result = object.__new__(cls)
        result._value = value
        result._currency = currency
        return result

    @classmethod
    def of_major(cls, major: int, currency: Any = None, registry: Registry | None = None) -> Money:
        """Money of a whole number of major units (e.g. 12 PLN)."""
        # Raise: major units are integers
        if isinstance(major, bool) or not isinstance(major, int):
            raise ValidationError(f"Cannot call `of_major` because $major must be an integer, but provided value is: {major!r}", major=major)
        return cls(major, currency, registry=registry)

    @classmethod
    def of_minor(cls, minor: int, currency: Any = None, registry: Registry | None = None) -> Money:
        """Money of a number of minor units (e.g. 1234 -> 12.34 PLN).

        Auto-scaled currencies have no minor unit and are treated as scale 0.
        """
        # Raise: minor units are integers
        if isinstance(minor, bool) or not isinstance(minor, int):
            raise ValidationError(f"Cannot call `of_minor` because $minor must be an integer, but provided value is: {minor!r}", minor=minor)
        resolved = _resolve_currency(currency, registry)
        return cls._of(scaling.round_fraction(Fraction(minor, 10 ** (resolved.scale or 0)), resolved.scale or 0), resolved)

    @classmethod
    def from_str(cls, text: str, registry: Registry | None = None) -> Money:
        """Parse Money from text like '12.30 PLN' or 'PLN 12.30'."""
        from suite_money.serialization.codecs import parse_money

        return parse_money(text, registry)

    # region Properties

    @property
    def value(self) -> Decimal:
        return self._value

    amount = value

    @property
    def currency(self) -> Currency:
        return self._currency

    @property
    def scale(self) -> int:
        """Scale of the amount (equals the currency scale unless the currency is auto-scaled)."""
        return decimal_scale(self._value)

    # endregion

    # region Arithmetic

    def _check_same_currency(self, other: Money, operation: str) -> None:
        # Raise: operands must share the currency id
        if self._currency.id != other._currency.id:
            raise CurrencyMismatch(
                f"Cannot call `{operation}` on different currencies: {self._currency.id} and {other._currency.id}",
                left=self._currency,
                right=other._currency,
            )

    def add(self, *others: Money) -> Money:
        """Sum of amounts of the same currency; the result scale is the largest operand scale.

        Raises:
            CurrencyMismatch: If any operand has a different currency id.
        """
        value, currency = self._value, self._currency
        for other in others:
            # Raise: only money can be added to money
            if not isinstance(other, Money):
                raise ValidationError(f"Cannot call `add` because $other is not Money (got type '{type(other).__name__}')", other=other)
            self._check_same_currency(other, "add")
            value = scaling.add(value, other._value)
            currency = _wider_currency(currency, other._currency)
        return self._of(value, currency)

    def subtract(self, *others: Money) -> Money:
        """Difference of amounts of the same currency.

        Raises:
            CurrencyMismatch: If any operand has a different currency id.
        """
        value, currency = self._value, self._currency
        for other in others:
            # Raise: only money can be subtracted from money
            if not isinstance(other, Money):
                raise ValidationError(f"Cannot call `subtract` because $other is not Money (got type '{type(other).__name__}')", other=other)
            self._check_same_currency(other, "subtract")
            value = scaling.subtract(value, other._value)
            currency = _wider_currency(currency, other._currency)
        return self._of(value, currency)

    def multiply(self, *factors: DecimalLike, rounding_mode: RoundingMode | str | None = None) -> Money:
        """Multiply by plain numbers.

        By default the product is kept exact and brought to the currency scale once at the
        end; inside `rescaling()` it is rescaled after every step.

        Raises:
            MultipleMonetaryOperands: If any factor is Money.
            InexactRounding: If the result needs rounding and no rounding mode is available.
        """
        scale = _nominal_scale(self)
        each = scaling.rescale_each_enabled()
        value: Fraction | Decimal = self._value if scale is None else Fraction(self._value)
        for factor in factors:
            # Raise: a product may contain at most one monetary operand
            if isinstance(factor, Money):
                raise MultipleMonetaryOperands(f"Cannot call `multiply` with more than one monetary operand ({self} and {factor})", left=self, right=factor)
            if scale is None:
                value = scaling.multiply(value, factor)
            else:
                value = value * Fraction(scaling.to_decimal(factor))
                if each:
                    value = Fraction(scaling.apply_scale(value, scale, rounding_mode))
        return self._of(_finish(value, scale, rounding_mode), self._currency)

    def divide(self, *divisors: DecimalLike | Money, rounding_mode: RoundingMode | str | None = None) -> Money | Decimal:
        """Divide by plain numbers or by Money of the same currency.

        Dividing by a number keeps the currency. Dividing by Money of the same currency gives
        a plain Decimal ratio; any following divisors must then be numbers.

        Raises:
            CurrencyMismatch: If a monetary divisor has a different currency.
            MultipleMonetaryOperands: If Money follows a Money divisor.
            ZeroDivisionError: If any divisor is zero.
            InexactRounding: If the result needs rounding and no rounding mode is available.
        """
        scale = _nominal_scale(self)
        each = scaling.rescale_each_enabled()
        value: Fraction | Decimal = self._value if scale is None else Fraction(self._value)
        for position, divisor in enumerate(divisors):
            if isinstance(divisor, Money):
                self._check_same_currency(divisor, "divide")
                ratio = scaling.divide(_finish(value, scale, rounding_mode), divisor._value, rounding_mode)
                rest = divisors[position + 1:]

                # Raise: a ratio can only be divided further by numbers
                if any(isinstance(d, Money) for d in rest):
                    raise MultipleMonetaryOperands(f"Cannot call `divide` with more than one monetary divisor of {self}", money=self)

                for number in rest:
                    ratio = scaling.divide(ratio, number, rounding_mode)
                return ratio

            number = scaling.to_decimal(divisor)

            # Raise: division by zero is undefined
            if number == 0:
                raise ZeroDivisionError(f"Cannot divide {self} by zero")

            if scale is None:
                value = scaling.divide(value, number, rounding_mode)
            else:
                value = value / Fraction(number)
                if each:
                    value = Fraction(scaling.apply_scale(value, scale, rounding_mode))
        return self._of(_finish(value, scale, rounding_mode), self._currency)

    def negate(self) -> Money:
        return self._of(-self._value, self._currency)

    def abs(self) -> Money:
        return self._of(abs(self._value), self._currency)

    def is_zero(self) -> bool:
        return self._value == 0

    def is_positive(self) -> bool:
        return self._value > 0

    def is_negative(self) -> bool:
        return self._value < 0

    # endregion

    # region Scale

    def rescale(self, scale: int | None = None, rounding_mode: RoundingMode | str | None = None, registry: Registry | None = None) -> Money:
        """Change the scale of the amount; the currency carries the new scale as an override.

        Args:
            scale: Target scale. None restores the nominal scale of the registered currency.
            rounding_mode: Used when downscaling needs rounding.
            registry: Registry consulted when $scale is None.

        Raises:
            InexactRounding: If downscaling needs rounding and no rounding mode is available.
        """
        if scale is None:
            nominal = registry_or_current(registry).get(self._currency.id) or self._currency
            currency = self._currency.with_scale(nominal.scale)
        else:
            currency = self._currency.with_scale(scale)
        return self._of(scaling.apply_scale(self._value, currency.scale, rounding_mode), currency)

    def strip(self) -> Money:
        """Remove trailing fractional zeros; the currency becomes auto-scaled."""
        return self._of(scaling.strip_trailing_zeros(self._value), self._currency.with_scale(None))

    def round_to(self, interval: DecimalLike, rounding_mode: RoundingMode | str | None = None) -> Money:
        """Round the amount to a multiple of $interval (e.g. 0.05 for cash rounding).

        Raises:
            ValidationError: If $interval is not positive.
            InexactRounding: If rounding is needed and no rounding mode is available.
        """
        step = scaling.to_decimal(interval)

        # Raise: interval must be positive
        if step <= 0:
            raise ValidationError(f"Cannot call `round_to` because $interval must be positive, but provided value is: {interval}", interval=interval)

        steps = scaling.round_fraction(Fraction(self._value) / Fraction(step), 0, rounding_mode)
        return self._of(_finish(scaling.multiply(steps, step), self._currency.scale, rounding_mode), self._currency)

    # endregion

    # region Major / minor

    def major(self) -> Decimal:
        """Integer part of the amount, truncated toward zero."""
        return scaling.integer_part(self._value)

    def minor(self) -> int:
        """Fractional part of the amount expressed in minor units (sign follows the amount)."""
        return int(Fraction(scaling.fractional_part(self._value)) * 10**self.scale)

    def to_minor_units(self) -> int:
        """Whole amount expressed in minor units (e.g. 12.34 -> 1234)."""
        return int(Fraction(self._value) * 10**self.scale)

    def inc_major(self, amount: int = 1) -> Money:
        return self._of(scaling.add(self._value, amount), self._currency)

    def dec_major(self, amount: int = 1) -> Money:
        return self._of(scaling.subtract(self._value, amount), self._currency)

    def inc_minor(self, amount: int = 1) -> Money:
        return self._of(scaling.add(self._value, scaling.round_fraction(Fraction(amount, 10**self.scale), self.scale)), self._currency)

    def dec_minor(self, amount: int = 1) -> Money:
        return self.inc_minor(-amount)

    # endregion

    # region Allocation

    def allocate(self, ratios: Iterable[DecimalLike]) -> list[Money]:
        """Split the amount by $ratios without losing minor units.

        Remaining minor units are given one by one to the first parts with a positive ratio, so
        the parts always sum up to the original amount.

        Raises:
            ValidationError: If ratios are empty, negative or sum up to zero.
        """
        weights = [Fraction(scaling.to_decimal(r)) for r in ratios]

        # Raise: ratios must be non-negative with a positive total
        if not weights or any(w < 0 for w in weights) or sum(weights) == 0:
            raise ValidationError(f"Cannot call `allocate` because $ratios must be non-negative with a positive sum, but provided value is: {ratios}", ratios=ratios)

        scale = self.scale
        total = self.to_minor_units()
        sign = -1 if total < 0 else 1
        total = abs(total)
        weight_sum = sum(weights)

        units = [int(total * w / weight_sum) for w in weights]
        receivers = [i for i, w in enumerate(weights) if w > 0]
        for i in range(total - sum(units)):
            units[receivers[i % len(receivers)]] += 1
        return [self._of(scaling.round_fraction(Fraction(sign * u, 10**scale), scale), self._currency) for u in units]

    def distribute(self, parts: int) -> list[Money]:
        """Split the amount into $parts (nearly) equal parts."""
        # Raise: at least one part is needed
        if isinstance(parts, bool) or not isinstance(parts, int) or parts < 1:
            raise ValidationError(f"Cannot call `distribute` because $parts must be a positive integer, but provided value is: {parts!r}", parts=parts)
        return self.allocate([1] * parts)

    # endregion

    def info(self) -> dict[str, Any]:
        """Plain description of the amount and its currency."""
        currency = self._currency
        return {
            "amount": self._value,
            "scale": self.scale,
            "currency": str(currency.id),
            "code": currency.code,
            "numeric": currency.numeric,
            "currency_scale": currency.scale,
            "domain": currency.domain,
            "kind": currency.kind,
        }

    # region Comparison

    def eq_strict(self, other: Any) -> bool:
        """Equality that also requires the same currency value and the same amount scale."""
        if not isinstance(other, Money):
            return False
        return self._currency == other._currency and self._value == other._value and self.scale == other.scale

    def __eq__(self, other) -> bool:
        if not isinstance(other, Money):
            return False
        return self._currency.id == other._currency.id and self._value == other._value

    def __hash__(self) -> int:
        return hash((self._currency.id, self._value))

    def __lt__(self, other) -> bool:
        if not isinstance(other, Money):
            return NotImplemented
        self._check_same_currency(other, "compare")
        return self._value < other._value

    def __le__(self, other) -> bool:
        if not isinstance(other, Money):
            return NotImplemented
        self._check_same_currency(other, "compare")
        return self._value <= other._value

    def __gt__(self, other) -> bool:
        if not isinstance(other, Money):
            return NotImplemented
        self._check_same_currency(other, "compare")
        return self._value > other._value

    def __ge__(self, other) -> bool:
        if not isinstance(other, Money):
            return NotImplemented
        self._check_same_currency(other, "compare")
        return self._value >= other._value

    # endregion

    # region Operators

    def __add__(self, other):
        if not isinstance(other, Money):
            return NotImplemented
        return self.add(other)

    def __sub__(self, other):
        if not isinstance(other, Money):
            return NotImplemented
        return self.subtract(other)

    def __mul__(self, other):
        if isinstance(other, Money):
            raise MultipleMonetaryOperands(f"Cannot multiply {self} by {other} because both operands are monetary", left=self, right=other)
        if isinstance(other, bool) or not isinstance(other, (Decimal, int, float, Fraction)):
            return NotImplemented
        return self.multiply(other)

    def __rmul__(self, other):
        return self.__mul__(other)

    def __truediv__(self, other):
        if not isinstance(other, Money) and (isinstance(other, bool) or not isinstance(other, (Decimal, int, float, Fraction))):
            return NotImplemented
        return self.divide(other)

    def __rtruediv__(self, other):
        return NotImplemented

    def __neg__(self):
        return self.negate()

    def __pos__(self):
        return self

    def __abs__(self):
        return self.abs()

    # endregion

    def __str__(self) -> str:
        """Return string like '1000.50 USD'."""
        return f"{self._value:f} {self._currency.id}"

    def __repr__(self) -> str:
        """Return string like 'Money(1000.50, USD)'."""
        return f"{self.__class__.__name__}({self._value}, {self._currency.id})"
