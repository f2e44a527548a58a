"""Plain-data, text and JSON representations of currencies and money.

Encoding produces values made of strings, numbers and mappings only. Decoding never trusts
the encoded attributes blindly: the currency is always re-resolved against a registry, so a
decoded value is the registered one.
"""

from __future__ import annotations

import json
import re
from typing import Any, Mapping

from suite_money.domain.currency import Currency
from suite_money.domain.money import Money
from suite_money.errors import InvalidRepresentation, ValidationError
from suite_money.registry.registry import Registry
from suite_money.registry.resolution import resolve
from suite_money.scale import RoundingMode, current_rounding_mode, scale_of

_AMOUNT = r"[+-]?[\d_]*\.?[\d_]+\.?(?:[eE][+-]?\d+)?"
_AMOUNT_FIRST = re.compile(rf"^(?P<amount>{_AMOUNT})\s*(?P<id>[^\s\d+\-.]\S*)$")
_IDENTIFIER_FIRST = re.compile(rf"^(?P<id>\S*?[^\s\d+\-.])\s*(?P<amount>{_AMOUNT})$")
_MONEY_KEYS = frozenset({"currency", "amount", "scale"})

# region Currency


def currency_to_map(currency: Currency, full: bool = False) -> dict[str, Any]:
    """Encode $currency as `{"id": ...}`, or with `numeric`, `scale`, `domain` and `kind` when $full."""
    result: dict[str, Any] = {"id": str(currency.id)}
    if full:
        for name in ("numeric", "scale", "domain", "kind"):
            value = getattr(currency, name)
            if value is not None:
                result[name] = value
    return result


def currency_from_map(data: Mapping[str, Any], registry: Registry | None = None) -> Currency:
    """Decode a currency map by resolving all present attributes against the registry.

    Raises:
        InvalidRepresentation: If $data is not a mapping or has no `id`.
        CurrencyNotFound: If no registered currency matches.
    """
    # Raise: currency maps need an id
    if not isinstance(data, Mapping) or not data.get("id"):
        raise InvalidRepresentation(f"Cannot decode currency because $data is not a mapping with an `id` field: {data!r}", data=data)

    return resolve(dict(data), registry)


def currency_to_string(currency: Currency) -> str:
    return str(currency.id)


def currency_from_string(text: str, registry: Registry | None = None) -> Currency:
    """Decode an identifier like 'PLN' or 'crypto/ETH'.

    Raises:
        InvalidRepresentation: If $text is not a non-empty string.
        CurrencyNotFound: If no registered currency matches.
    """
    # Raise: identifiers are non-empty strings
    if not isinstance(text, str) or not text.strip():
        raise InvalidRepresentation(f"Cannot decode currency because $text is not a non-empty string: {text!r}", text=text)

    return resolve(text.strip(), registry)


# endregion

# region Money


def money_to_map(money: Money, full: bool = False) -> dict[str, Any]:
    """Encode $money as `{"currency": "PLN", "amount": "12.30"}`.

    With $full the currency is a full currency map next to the amount scale, and the extra
    fields of the currency are copied as strings. Numbers describing the amount are strings,
    so no precision is lost in transit.
    """
    if not full:
        return {"currency": str(money.currency.id), "amount": f"{money.value:f}"}
    result = {key: str(value) for key, value in money.currency.extra.items() if key not in _MONEY_KEYS}
    result.update(
        currency=currency_to_map(money.currency, full=True),
        amount=f"{money.value:f}",
        scale=str(money.scale),
    )
    return result


def _with_amount_scale(currency: Currency, amount: Any, rounding_mode: RoundingMode | str | None) -> Currency:
    """Widen a fixed currency scale to the scale of $amount when no rounding mode applies."""
    if currency.scale is None or rounding_mode is not None or current_rounding_mode() is not None:
        return currency
    amount_scale = scale_of(amount)
    return currency.with_scale(amount_scale) if amount_scale > currency.scale else currency


def _money_of(amount: Any, currency: Currency, rounding_mode: RoundingMode | str | None, widen: bool = True) -> Money:
    try:
        if widen:
            currency = _with_amount_scale(currency, amount, rounding_mode)
        return Money(amount, currency, rounding_mode)
    except ValidationError as e:
        raise InvalidRepresentation(f"Cannot decode money because $amount {amount!r} is not a number", amount=amount) from e


def _scale_override(currency: Currency, scale: Any) -> Currency:
    try:
        return currency.with_scale(int(scale) if isinstance(scale, str) else scale)
    except (ValueError, ValidationError) as e:
        raise InvalidRepresentation(f"Cannot decode money because $scale {scale!r} is not a valid scale", scale=scale) from e


def money_from_map(data: Mapping[str, Any], registry: Registry | None = None, rounding_mode: RoundingMode | str | None = None) -> Money:
    """Decode a minimal or full money map.

    The currency is resolved without its `scale`; a `scale` in the nested currency map, or
    the amount `scale` of a fixed-scale currency, is applied as an override. Without any
    scale information the amount keeps its own scale when it is finer than the currency
    scale and no rounding mode is available.

    Raises:
        InvalidRepresentation: If $data has a wrong shape or misses a field.
        CurrencyNotFound: If the currency is not registered.
        InexactRounding: If the amount does not fit an explicit scale and no rounding mode
            is available.
    """
    # Raise: money maps carry a currency and an amount
    if not isinstance(data, Mapping) or data.get("currency") is None or data.get("amount") is None:
        raise InvalidRepresentation(f"Cannot decode money because $data is not a mapping with `currency` and `amount` fields: {data!r}", data=data)

    raw_currency = data["currency"]
    explicit_scale = False
    if isinstance(raw_currency, Mapping):
        constraints = {key: value for key, value in raw_currency.items() if key not in ("scale", "sc")}
        currency = currency_from_map(constraints, registry)
        for key in ("scale", "sc"):
            if key in raw_currency:
                currency = _scale_override(currency, raw_currency[key])
                explicit_scale = True
    else:
        currency = currency_from_string(raw_currency, registry)

    if data.get("scale") is not None and currency.scale is not None:
        currency = _scale_override(currency, data["scale"])
        explicit_scale = True
    return _money_of(data["amount"], currency, rounding_mode, widen=not explicit_scale)


def money_to_string(money: Money) -> str:
    """Canonical text form: amount first, then the currency identifier."""
    return f"{money.value:f} {money.currency.id}"


def split_money_string(text: str) -> tuple[str, str]:
    """Split money text into (amount, identifier).

    Text starting with a digit, a sign or a dot is read amount first ('12.30 PLN',
    '12.30PLN'); anything else is read identifier first ('PLN 12.30', 'PLN12.30').

    Raises:
        InvalidRepresentation: If $text matches neither form.
    """
    # Raise: only text can be parsed
    if not isinstance(text, str) or not text.strip():
        raise InvalidRepresentation(f"Cannot parse money because $text is not a non-empty string: {text!r}", text=text)

    text = text.strip()
    pattern = _AMOUNT_FIRST if text[0] in "0123456789+-." else _IDENTIFIER_FIRST
    matched = pattern.match(text)

    # Raise: text must hold exactly an amount and an identifier
    if matched is None:
        raise InvalidRepresentation(f"Cannot parse money from $text '{text}'", text=text)

    return matched.group("amount"), matched.group("id")


def parse_money(text: str, registry: Registry | None = None, rounding_mode: RoundingMode | str | None = None) -> Money:
    """Parse money text (see `split_money_string`) and resolve its currency.

    Raises:
        InvalidRepresentation: If $text is malformed.
        CurrencyNotFound: If the currency is not registered.
    """
    amount, identifier = split_money_string(text)
    return _money_of(amount, resolve(identifier, registry), rounding_mode)


# endregion

# region JSON


def to_json(value: Money | Currency, full: bool = False) -> str:
    """Encode Money or Currency as JSON text of its map representation."""
    if isinstance(value, Money):
        return json.dumps(money_to_map(value, full), ensure_ascii=False)
    if isinstance(value, Currency):
        return json.dumps(currency_to_map(value, full), ensure_ascii=False)

    # Raise: only monetary values are encoded
    raise InvalidRepresentation(f"Cannot encode $value to JSON (got type '{type(value).__name__}')", value=value)


def _load_json(text: str | bytes) -> Any:
    try:
        return json.loads(text)
    except (TypeError, ValueError) as e:
        raise InvalidRepresentation(f"Cannot decode JSON $text {text!r}", text=text) from e


def money_from_json(text: str | bytes, registry: Registry | None = None, rounding_mode: RoundingMode | str | None = None) -> Money:
    """Decode money from JSON holding a money map or a money string."""
    data = _load_json(text)
    if isinstance(data, str):
        return parse_money(data, registry, rounding_mode)
    return money_from_map(data, registry, rounding_mode)


def currency_from_json(text: str | bytes, registry: Registry | None = None) -> Currency:
    """Decode a currency from JSON holding a currency map or an identifier string."""
    data = _load_json(text)
    if isinstance(data, str):
        return currency_from_string(data, registry)
    return currency_from_map(data, registry)


# endregion
