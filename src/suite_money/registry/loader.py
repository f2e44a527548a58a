from __future__ import annotations

import json
import logging
from collections import defaultdict
from importlib.resources import files
from pathlib import Path
from typing import Any, Mapping

from suite_money.config import get_settings
from suite_money.domain.currency import Currency, CurrencyId
from suite_money.errors import ValidationError
from suite_money.registry.registry import Registry

logger = logging.getLogger(__name__)

BUNDLED_DATA = "data/currencies.json"


def _section(data: Mapping[str, Any], name: str) -> Mapping[str, Any]:
    section = data.get(name) or {}

    # Raise: every section is a mapping keyed by id
    if not isinstance(section, Mapping):
        raise ValidationError(f"Cannot build registry because section $name '{name}' is not a mapping (got type '{type(section).__name__}')", name=name)

    return section


def build_registry(data: Mapping[str, Any]) -> Registry:
    """Build a registry from plain configuration data.

    Expected shape (every section is optional):

    ```
    {
        "version": "2025010100",
        "currencies": {"PLN": {"numeric": 985, "scale": 2, "kind": "FIAT"}, ...},
        "countries": {"PL": "PLN", ...},
        "localized": {"PLN": {"*": {"name": "Polish Zloty"}, "pl": {"name": "złoty"}}, ...},
        "traits": {"crypto/USDT": ["STABLECOIN"], ...},
        "weights": {"PLZ": 10, ...},
        "hierarchies": {"domain": {...}, "kind": {...}, "traits": {...}},
        "ext": {...},
    }
    ```

    Every record goes through the regular registry transforms, so the same validation
    applies as for programmatic registration.

    Raises:
        ValidationError: If a record or section is malformed.
        DuplicateCurrency: If two records describe the same currency id.
        CurrencyNotFound: If a country, localized, trait or weight entry names an unknown
            currency.
    """
    # Raise: configuration data must be a mapping
    if not isinstance(data, Mapping):
        raise ValidationError(f"Cannot build registry because $data is not a mapping (got type '{type(data).__name__}')", data=data)

    version = data.get("version")
    registry = Registry(hierarchies=data.get("hierarchies"), version=str(version) if version is not None else None, ext=_section(data, "ext"))

    localized = {CurrencyId.parse(k): v for k, v in _section(data, "localized").items()}
    for currency_id, record in _section(data, "currencies").items():
        currency = Currency.from_map(record or {}, id=currency_id)
        registry = registry.register(currency, localized=localized.pop(currency.id, None))

    for currency_id, props in localized.items():
        registry = registry.add_localized_properties(currency_id, props)

    countries_by_currency: dict[CurrencyId, list[str]] = defaultdict(list)
    for country_id, currency_id in _section(data, "countries").items():
        countries_by_currency[CurrencyId.parse(currency_id)].append(country_id)
    for currency_id, country_ids in countries_by_currency.items():
        registry = registry.add_countries(currency_id, country_ids)

    for currency_id, traits in _section(data, "traits").items():
        registry = registry.set_traits(currency_id, traits)

    for currency_id, weight in _section(data, "weights").items():
        registry = registry.set_weight(currency_id, weight)

    logger.debug(f"Built {registry}")
    return registry


def registry_to_data(registry: Registry) -> dict[str, Any]:
    """Export $registry as plain data accepted by `build_registry`."""
    currencies = {}
    for currency in sorted(registry, key=lambda c: c.id.sort_key):
        record = currency.to_map()
        del record["id"]
        record.pop("weight", None)
        currencies[str(currency.id)] = record

    hierarchies = registry.hierarchies
    return {
        "version": registry.version,
        "currencies": currencies,
        "countries": {country: str(currency_id) for country, currency_id in sorted(registry.country_to_currency.items())},
        "localized": {str(currency_id): {locale: dict(props) for locale, props in by_locale.items()} for currency_id, by_locale in registry.localized.items()},
        "traits": {str(currency_id): sorted(traits) for currency_id, traits in registry.traits.items()},
        "weights": {str(currency_id): weight for currency_id, weight in registry.weights.items()},
        "hierarchies": {
            "domain": hierarchies.domain.to_parent_map(),
            "kind": hierarchies.kind.to_parent_map(),
            "traits": hierarchies.traits.to_parent_map(),
        },
        "ext": dict(registry.ext),
    }


def read_registry_data(path: str | Path | None = None) -> dict[str, Any]:
    """Read registry configuration data from JSON.

    Args:
        path: JSON file path. When None, the configured `SUITE_MONEY_REGISTRY_PATH` is used,
            falling back to the data bundled with the package.
    """
    path = path or get_settings().registry_path
    if path is None:
        logger.debug(f"Reading bundled registry data '{BUNDLED_DATA}'")
        return json.loads(files("suite_money").joinpath(BUNDLED_DATA).read_text(encoding="utf-8"))

    logger.debug(f"Reading registry data from $path '{path}'")
    return json.loads(Path(path).read_text(encoding="utf-8"))


def load_registry(path: str | Path | None = None) -> Registry:
    """Read JSON registry data (see `read_registry_data`) and build a Registry from it."""
    return build_registry(read_registry_data(path))
