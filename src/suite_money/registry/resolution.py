"""Resolution of loose currency references against a registry.

A reference is first classified into one of five representations (exact currency value,
identifier, numeric code, constraint map or absent) and then matched by the function
dedicated to that representation. All matches are ordered by (weight, id), so the first
one is the preferred currency.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping

from suite_money.domain.currency import Currency, CurrencyId, ISO_4217, canonical_code, is_iso_marker
from suite_money.errors import CurrencyNotFound, InvalidRepresentation, ValidationError
from suite_money.registry.bucket import bucket_key
from suite_money.registry.registry import Registry

# region Representations


@dataclass(frozen=True)
class ExactCurrency:
    """A full currency value; matched field by field against the registered one."""

    currency: Currency


@dataclass(frozen=True)
class Identifier:
    """Textual identifier split into its raw qualifier and code."""

    code: str
    qualifier: str | None = None


@dataclass(frozen=True)
class NumericCode:
    numeric: int


@dataclass(frozen=True)
class ConstraintMap:
    """Mapping of attribute constraints; `valid` is False when aliases disagree."""

    constraints: Mapping[str, Any] = field(default_factory=dict)
    valid: bool = True


@dataclass(frozen=True)
class Absent:
    pass


Representation = ExactCurrency | Identifier | NumericCode | ConstraintMap | Absent

_CONSTRAINT_KEYS = {
    "id": "id",
    "code": "code",
    "numeric": "numeric",
    "numeric_id": "numeric",
    "nr": "numeric",
    "scale": "scale",
    "sc": "scale",
    "domain": "domain",
    "kind": "kind",
}

_MISSING = object()


def _normalize_constraint(key: str, value: Any) -> Any:
    if value is None:
        return None
    if key == "id":
        return CurrencyId.parse(value)
    if key == "code":
        return canonical_code(value) if isinstance(value, str) else value
    if key == "numeric":
        return value if not isinstance(value, int) or value > 0 else None
    if key == "scale":
        return None if value == -1 else value
    if isinstance(value, str):
        return value.strip().upper() or None
    return value


def _to_constraint_map(value: Mapping[Any, Any]) -> ConstraintMap:
    constraints: dict[str, Any] = {}
    valid = True
    for key, raw in value.items():
        name = _CONSTRAINT_KEYS.get(str(key).strip().lower())
        if name is None:
            continue
        try:
            normalized = _normalize_constraint(name, raw)
        except ValidationError as e:
            raise InvalidRepresentation(f"Cannot use constraint $key '{key}' with value {raw!r}", key=key, value=raw) from e
        previous = constraints.get(name, _MISSING)
        if previous is not _MISSING and previous != normalized:
            valid = False
        constraints[name] = normalized
    return ConstraintMap(constraints, valid)


def to_representation(value: Any) -> Representation:
    """Classify $value as one of the currency reference representations.

    Raises:
        InvalidRepresentation: If $value is of unsupported type or a malformed constraint map.
    """
    if value is None:
        return Absent()
    if isinstance(value, Currency):
        return ExactCurrency(value)
    if isinstance(value, CurrencyId):
        return Identifier(value.code, value.qualifier)
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return Absent()
        qualifier, code = CurrencyId.split(text)
        if not code or "/" in code or (qualifier is not None and not qualifier):
            return Absent()
        return Identifier(code, qualifier)
    if isinstance(value, int) and not isinstance(value, bool):
        return NumericCode(value)
    if isinstance(value, Mapping):
        return _to_constraint_map(value)

    raise InvalidRepresentation(f"Cannot use $value as a currency reference (got type '{type(value).__name__}')", value=value)


# endregion

# region Matching


def _ordered(currencies) -> tuple[Currency, ...]:
    unique = {c.id: c for c in currencies}
    return tuple(sorted(unique.values(), key=bucket_key))


def _same_fields(value: Currency, stored: Currency) -> bool:
    """Numeric id and scale must be equal; unset domain and kind on $value match anything."""
    if value.numeric != stored.numeric or value.scale != stored.scale:
        return False
    if value.domain is not None and value.domain != stored.domain:
        return False
    return value.kind is None or value.kind == stored.kind


def _match_exact(rep: ExactCurrency, registry: Registry) -> tuple[Currency, ...]:
    value = rep.currency
    stored = registry.currencies.get(value.id)
    if stored is not None:
        return (stored,) if _same_fields(value, stored) else ()
    if value.numeric is None:
        return ()

    bucket = registry.numeric_buckets.get(value.numeric, ())
    return tuple(c for c in bucket if c.code == value.code and _same_fields(value, c))


def _match_identifier(rep: Identifier, registry: Registry) -> tuple[Currency, ...]:
    code = canonical_code(rep.code)

    if is_iso_marker(rep.qualifier):
        return tuple(c for c in registry.code_buckets.get(code, ()) if c.domain == ISO_4217)

    if rep.qualifier is not None:
        for currency_id in (CurrencyId(code, rep.qualifier), CurrencyId.raw(rep.code, rep.qualifier)):
            stored = registry.currencies.get(currency_id)
            if stored is not None:
                return (stored,)
        return ()

    bucket = registry.code_buckets.get(code)
    if bucket:
        return tuple(bucket)
    stored = registry.currencies.get(CurrencyId.raw(rep.code))
    return (stored,) if stored is not None else ()


def _match_numeric(rep: NumericCode, registry: Registry) -> tuple[Currency, ...]:
    return tuple(registry.numeric_buckets.get(rep.numeric, ()))


def _satisfies(currency: Currency, constraints: Mapping[str, Any]) -> bool:
    for name, expected in constraints.items():
        actual = currency.id if name == "id" else getattr(currency, name)
        if actual != expected:
            return False
    return True


def _match_constraints(rep: ConstraintMap, registry: Registry) -> tuple[Currency, ...]:
    if not rep.valid:
        return ()

    constraints = rep.constraints
    candidates: list[Currency] = []
    hinted = False
    if constraints.get("id") is not None:
        hinted = True
        currency_id = constraints["id"]
        candidates.extend(_match_identifier(Identifier(currency_id.code, currency_id.qualifier), registry))
    if constraints.get("code") is not None:
        hinted = True
        candidates.extend(registry.code_buckets.get(constraints["code"], ()))
    if constraints.get("numeric") is not None:
        hinted = True
        candidates.extend(registry.numeric_buckets.get(constraints["numeric"], ()))
    if not hinted:
        domain = constraints.get("domain")
        candidates = list(registry.domain_buckets.get(domain, ())) if domain is not None else list(registry)

    return _ordered(c for c in candidates if _satisfies(c, constraints))


_MATCHERS = {
    ExactCurrency: _match_exact,
    Identifier: _match_identifier,
    NumericCode: _match_numeric,
    ConstraintMap: _match_constraints,
    Absent: lambda rep, registry: (),
}


def match(rep: Representation, registry: Registry) -> tuple[Currency, ...]:
    """All currencies of $registry matching $rep, preferred first."""
    return _MATCHERS[type(rep)](rep, registry)


# endregion

# region API


def registry_or_current(registry: Registry | None) -> Registry:
    if registry is not None:
        return registry
    from suite_money.registry.shared import current

    return current()


def resolve_all(value: Any, registry: Registry | None = None) -> tuple[Currency, ...]:
    """All currencies matching $value, preferred first; empty when nothing matches.

    Never raises for malformed references.
    """
    try:
        rep = to_representation(value)
    except InvalidRepresentation:
        return ()
    return match(rep, registry_or_current(registry))


def resolve_soft(value: Any, registry: Registry | None = None) -> Currency | None:
    """Preferred currency matching $value, or None."""
    matches = resolve_all(value, registry)
    return matches[0] if matches else None


def resolve(value: Any, registry: Registry | None = None) -> Currency:
    """Preferred currency matching $value.

    Args:
        value: Currency, CurrencyId, identifier text, numeric id or constraint mapping.
        registry: Registry to search; None means the current registry.

    Raises:
        InvalidRepresentation: If $value is of unsupported type.
        CurrencyNotFound: If no registered currency matches.
    """
    rep = to_representation(value)
    registry = registry_or_current(registry)
    matches = match(rep, registry)

    # Raise: strict resolution needs a match
    if not matches:
        raise CurrencyNotFound(f"Cannot resolve currency from $value '{value}' in {registry}", value=value)

    return matches[0]


def is_defined(value: Any, registry: Registry | None = None) -> bool:
    return bool(resolve_all(value, registry))


def to_currency_id(value: Any, registry: Registry | None = None) -> CurrencyId | None:
    currency = resolve_soft(value, registry)
    return currency.id if currency is not None else None


# endregion
