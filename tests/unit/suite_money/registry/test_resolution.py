import pytest

from suite_money.domain.currency import Currency, CurrencyId
from suite_money.errors import CurrencyNotFound, InvalidRepresentation
from suite_money.registry.resolution import (
    Absent,
    ConstraintMap,
    ExactCurrency,
    Identifier,
    NumericCode,
    is_defined,
    resolve,
    resolve_all,
    resolve_soft,
    to_currency_id,
    to_representation,
)
from tests.helpers.helper_registry import create_pln, create_registry

REGISTRY = create_registry()


@pytest.mark.parametrize(
    "value, expected_type",
    [
        (None, Absent),
        ("", Absent),
        ("crypto/", Absent),
        (create_pln(), ExactCurrency),
        (CurrencyId("PLN"), Identifier),
        ("crypto/ETH", Identifier),
        (985, NumericCode),
        ({"code": "PLN"}, ConstraintMap),
    ],
)
def test_to_representation(value, expected_type):
    assert isinstance(to_representation(value), expected_type)


def test_to_representation_rejects_unsupported_types():
    with pytest.raises(InvalidRepresentation):
        to_representation(1.5)


@pytest.mark.parametrize(
    "value, expected",
    [
        ("ISO-4217/PLN", "PLN"),
        ("iso-4217/pln", "PLN"),
        ("ISO-4217/XYZ", None),
        ("ISO-4217/ETH", None),
        ("ETH", "crypto/ETH"),
        ("eth", "crypto/ETH"),
        ("crypto/ETH", "crypto/ETH"),
        ("crypto/eth", "crypto/ETH"),
        ("other/ETH", None),
        ("PLN", "PLN"),
        ("legacy/PLN", "legacy/PLN"),
        (985, "PLN"),
        (392, "JPY"),
        (999, None),
        (None, None),
    ],
)
def test_resolve_soft_fallbacks(value, expected):
    result = resolve_soft(value, REGISTRY)
    assert (str(result.id) if result is not None else None) == expected


def test_resolve_all_orders_by_weight_then_id():
    assert [str(c.id) for c in resolve_all("PLN", REGISTRY)] == ["PLN", "legacy/PLN"]
    assert [str(c.id) for c in resolve_all(985, REGISTRY)] == ["PLN", "legacy/PLN"]

    reweighted = REGISTRY.set_weight("legacy/PLN", -1)
    assert resolve(985, reweighted).id == CurrencyId("legacy/PLN")
    assert resolve("PLN", reweighted).id == CurrencyId("legacy/PLN")


def test_resolve_exact_currency_compares_fields():
    assert resolve(create_pln(), REGISTRY) == create_pln()
    assert resolve(Currency("PLN", numeric=985, scale=2), REGISTRY).kind == "FIAT"
    assert resolve_soft(Currency("PLN", numeric=985, scale=3), REGISTRY) is None
    assert resolve_soft(Currency("PLN", numeric=985, scale=2, kind="CRYPTO"), REGISTRY) is None


def test_resolve_exact_currency_falls_back_to_numeric_bucket():
    """A value whose id is not registered matches a same-code entry sharing its numeric id."""
    value = Currency("PLN", numeric=985, scale=2, kind="FIAT", domain="LEGACY")
    assert resolve(value, REGISTRY.unregister("PLN")).id == CurrencyId("legacy/PLN")

    # registered id with different attributes does not fall back
    assert resolve_soft(value, REGISTRY) is None

    assert resolve_soft(Currency("other/PLN", numeric=985, scale=2), REGISTRY) is None
    assert resolve_soft(Currency("PLN", numeric=978, scale=2, domain="LEGACY"), REGISTRY) is None


def test_resolve_constraint_maps():
    assert resolve({"code": "PLN", "domain": "LEGACY"}, REGISTRY).id == CurrencyId("legacy/PLN")
    assert resolve({"numeric_id": 985}, REGISTRY).id == CurrencyId("PLN")
    assert resolve({"id": "crypto/ETH", "scale": 18}, REGISTRY).code == "ETH"
    assert [str(c.id) for c in resolve_all({"domain": "CRYPTO"}, REGISTRY)] == ["crypto/ETH", "crypto/USDT"]
    assert [str(c.id) for c in resolve_all({"kind": "FIAT", "sc": 0}, REGISTRY)] == ["JPY"]
    assert resolve_all({"numeric": None, "domain": "CRYPTO", "scale": 6}, REGISTRY)[0].code == "USDT"


def test_resolve_constraint_map_with_conflicting_aliases_is_unmatched():
    assert resolve_all({"numeric": 985, "nr": 978}, REGISTRY) == ()
    assert resolve_all({"numeric": 985, "nr": 985}, REGISTRY)[0].code == "PLN"


def test_resolve_strict_raises_when_missing():
    with pytest.raises(CurrencyNotFound):
        resolve("USD", REGISTRY)
    with pytest.raises(CurrencyNotFound):
        resolve(None, REGISTRY)
    with pytest.raises(InvalidRepresentation):
        resolve(object(), REGISTRY)


def test_soft_queries_never_raise():
    assert resolve_all(object(), REGISTRY) == ()
    assert not is_defined("USD", REGISTRY)
    assert is_defined("PLN", REGISTRY)
    assert to_currency_id("ETH", REGISTRY) == CurrencyId("ETH", "crypto")
    assert to_currency_id("USD", REGISTRY) is None
