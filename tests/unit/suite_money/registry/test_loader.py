import json

import pytest

from suite_money.domain.currency import CurrencyId
from suite_money.errors import CurrencyNotFound, DuplicateCurrency, ValidationError
from suite_money.registry.classification import has_trait, is_stable
from suite_money.registry.loader import build_registry, load_registry, registry_to_data
from suite_money.registry.registry import Registry

DATA = {
    "version": 2025010100,
    "currencies": {
        "PLN": {"numeric": 985, "scale": 2, "kind": "FIAT", "name": "Polish Zloty"},
        "legacy/PLZ": {"nr": 616, "sc": 2},
        "crypto/USDT": {"scale": 6, "kind": "STABLECOIN"},
    },
    "countries": {"PL": "PLN"},
    "localized": {"PLN": {"*": {"symbol": "zł"}}},
    "traits": {"crypto/USDT": ["fiat_backed"]},
    "weights": {"legacy/PLZ": 10},
    "hierarchies": {"kind": {"STABLECOIN": "STABLE"}},
    "ext": {"source": "unit test"},
}


def test_build_registry_from_data():
    registry = build_registry(DATA)

    assert registry.version == "2025010100"
    assert len(registry) == 3
    assert registry.get("PLN").extra == {"name": "Polish Zloty"}
    assert registry.get("legacy/PLZ").numeric == 616
    assert registry.weight_of("legacy/PLZ") == 10
    assert registry.currency_of_country("PL").id == CurrencyId("PLN")
    assert registry.localized_property("PLN", "symbol", "pl") == "zł"
    assert has_trait("crypto/USDT", "FIAT_BACKED", registry)
    assert is_stable("crypto/USDT", registry)
    assert registry.ext["source"] == "unit test"
    assert Registry.from_config(DATA) == registry


def test_build_registry_round_trips_through_plain_data():
    registry = build_registry(DATA)
    assert build_registry(registry_to_data(registry)) == registry


@pytest.mark.parametrize(
    "data, error",
    [
        ([], ValidationError),
        ({"currencies": ["PLN"]}, ValidationError),
        ({"currencies": {"PLN": {"scale": "two"}}}, ValidationError),
        ({"currencies": {"PLN": {}, "ISO-4217/PLN": {}}}, DuplicateCurrency),
        ({"countries": {"PL": "PLN"}}, CurrencyNotFound),
        ({"weights": {"PLN": 1}}, CurrencyNotFound),
        ({"hierarchies": {"kind": {"A": "A"}}}, ValidationError),
    ],
)
def test_build_registry_rejects_malformed_data(data, error):
    with pytest.raises(error):
        build_registry(data)


def test_load_registry_from_bundled_data():
    registry = load_registry()

    assert registry.numeric_canonical[932].id == CurrencyId("ZWL")
    assert registry.get("crypto/ETH").scale == 18
    assert registry.get("XAU").is_auto_scaled
    assert registry.integrity_problems() == []


def test_load_registry_from_file(tmp_path):
    path = tmp_path / "currencies.json"
    path.write_text(json.dumps(DATA), encoding="utf-8")

    assert load_registry(path) == build_registry(DATA)
