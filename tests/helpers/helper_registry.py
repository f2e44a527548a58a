from __future__ import annotations

from suite_money.domain.currency import Currency
from suite_money.registry.registry import Registry

HIERARCHIES = {
    "domain": {"CRYPTO": "VIRTUAL"},
    "kind": {"FIAT": "FIDUCIARY", "STABLECOIN": "STABLE", "STABLE": "FIDUCIARY", "DECENTRALIZED": "VIRTUAL"},
    "traits": {"FIAT_BACKED": "COLLATERALIZED"},
}


def create_pln() -> Currency:
    return Currency("PLN", numeric=985, scale=2, kind="FIAT")


def create_eur() -> Currency:
    return Currency("EUR", numeric=978, scale=2, kind="FIAT")


def create_jpy() -> Currency:
    return Currency("JPY", numeric=392, scale=0, kind="FIAT")


def create_eth() -> Currency:
    return Currency("crypto/ETH", scale=18, kind="DECENTRALIZED")


def create_usdt() -> Currency:
    return Currency("crypto/USDT", scale=6, kind="STABLECOIN")


def create_registry() -> Registry:
    """Create a small registry with ISO, crypto and one legacy currency sharing a numeric id.

    Contents:
        PLN (985), EUR (978), JPY (392), crypto/ETH, crypto/USDT (trait FIAT_BACKED),
        legacy/PLN (985, weight 5), countries PL -> PLN, DE/FR -> EUR, JP -> JPY and a
        localized name of PLN.
    """
    registry = Registry(hierarchies=HIERARCHIES, version="2025010100")
    registry = registry.register(create_pln(), country_ids="PL", localized={"*": {"name": "Polish Zloty"}, "pl": {"name": "złoty"}})
    registry = registry.register(create_eur(), country_ids=["DE", "FR"])
    registry = registry.register(create_jpy(), country_ids="JP")
    registry = registry.register(create_eth())
    registry = registry.register(create_usdt())
    registry = registry.register(Currency("legacy/PLN", numeric=985, scale=2, kind="FIAT", weight=5))
    registry = registry.set_traits("crypto/USDT", ["FIAT_BACKED"])
    return registry
