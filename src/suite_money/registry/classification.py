from __future__ import annotations

from typing import Any

from suite_money.domain.currency import Currency, ISO_4217
from suite_money.domain.hierarchy import CurrencyHierarchy
from suite_money.registry.bucket import bucket_key
from suite_money.registry.registry import Registry
from suite_money.registry.resolution import registry_or_current, resolve_soft

CRYPTO = "CRYPTO"
FIAT = "FIAT"
STABLE = "STABLE"


def _is_a(hierarchy: CurrencyHierarchy, tag: str | None, parent: str) -> bool:
    """Hierarchy-aware tag test; plain equality for tags outside the hierarchy."""
    return hierarchy.is_a(tag, parent)


def _currency_and_registry(ref: Any, registry: Registry | None) -> tuple[Currency | None, Registry]:
    registry = registry_or_current(registry)
    return resolve_soft(ref, registry), registry


def in_domain(ref: Any, domain: str, registry: Registry | None = None) -> bool:
    """True if the currency of $ref belongs to $domain or to one of its sub-domains."""
    currency, registry = _currency_and_registry(ref, registry)
    return currency is not None and _is_a(registry.hierarchies.domain, currency.domain, domain)


def is_kind_of(ref: Any, kind: str, registry: Registry | None = None) -> bool:
    """True if the kind of the currency of $ref is $kind or derives from it."""
    currency, registry = _currency_and_registry(ref, registry)
    return currency is not None and _is_a(registry.hierarchies.kind, currency.kind, kind)


def has_trait(ref: Any, trait: str, registry: Registry | None = None) -> bool:
    """True if any trait of the currency of $ref is $trait or derives from it."""
    currency, registry = _currency_and_registry(ref, registry)
    if currency is None:
        return False
    hierarchy = registry.hierarchies.traits
    return any(_is_a(hierarchy, t, trait) for t in registry.traits_of(currency.id))


def of_domain(domain: str, registry: Registry | None = None) -> tuple[Currency, ...]:
    """All currencies in $domain (including sub-domains), ordered by weight and id."""
    registry = registry_or_current(registry)
    hierarchy = registry.hierarchies.domain
    return tuple(sorted((c for c in registry if _is_a(hierarchy, c.domain, domain)), key=bucket_key))


def of_kind(kind: str, registry: Registry | None = None) -> tuple[Currency, ...]:
    registry = registry_or_current(registry)
    hierarchy = registry.hierarchies.kind
    return tuple(sorted((c for c in registry if _is_a(hierarchy, c.kind, kind)), key=bucket_key))


def with_trait(trait: str, registry: Registry | None = None) -> tuple[Currency, ...]:
    registry = registry_or_current(registry)
    hierarchy = registry.hierarchies.traits
    return tuple(sorted((c for c in registry if any(_is_a(hierarchy, t, trait) for t in registry.traits_of(c.id))), key=bucket_key))


def is_iso(ref: Any, registry: Registry | None = None) -> bool:
    return in_domain(ref, ISO_4217, registry)


def is_crypto(ref: Any, registry: Registry | None = None) -> bool:
    return in_domain(ref, CRYPTO, registry)


def is_fiat(ref: Any, registry: Registry | None = None) -> bool:
    return is_kind_of(ref, FIAT, registry)


def is_stable(ref: Any, registry: Registry | None = None) -> bool:
    return is_kind_of(ref, STABLE, registry)
