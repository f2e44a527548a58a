from decimal import Decimal

import pytest

from suite_money.domain.currency import Currency
from suite_money.domain.money import Money
from suite_money.errors import CurrencyNotFound, InexactRounding, InvalidRepresentation
from suite_money.serialization.codecs import (
    currency_from_json,
    currency_from_map,
    currency_from_string,
    currency_to_map,
    currency_to_string,
    money_from_json,
    money_from_map,
    money_to_map,
    money_to_string,
    parse_money,
    split_money_string,
    to_json,
)
from tests.helpers.helper_registry import create_registry

REGISTRY = create_registry()


def test_currency_maps():
    pln = REGISTRY.get("PLN")

    assert currency_to_map(pln) == {"id": "PLN"}
    assert currency_to_map(pln, full=True) == {"id": "PLN", "numeric": 985, "scale": 2, "domain": "ISO-4217", "kind": "FIAT"}
    assert currency_to_map(REGISTRY.get("crypto/ETH"), full=True) == {"id": "crypto/ETH", "scale": 18, "domain": "CRYPTO", "kind": "DECENTRALIZED"}


@pytest.mark.parametrize("currency_id", ["PLN", "legacy/PLN", "crypto/ETH", "JPY"])
def test_currency_codecs_round_trip(currency_id):
    currency = REGISTRY.get(currency_id)

    assert currency_from_map(currency_to_map(currency), REGISTRY).id == currency.id
    assert currency_from_map(currency_to_map(currency, full=True), REGISTRY).id == currency.id
    assert currency_from_string(currency_to_string(currency), REGISTRY).id == currency.id
    assert currency_from_json(to_json(currency, full=True), REGISTRY).id == currency.id


def test_currency_decoding_errors():
    with pytest.raises(InvalidRepresentation):
        currency_from_map({"numeric": 985}, REGISTRY)
    with pytest.raises(InvalidRepresentation):
        currency_from_string("  ", REGISTRY)
    with pytest.raises(CurrencyNotFound):
        currency_from_map({"id": "PLN", "scale": 4}, REGISTRY)


def test_money_maps():
    money = Money("12.3", "PLN", registry=REGISTRY)

    assert money_to_map(money) == {"currency": "PLN", "amount": "12.30"}
    assert money_to_map(money, full=True) == {
        "currency": {"id": "PLN", "numeric": 985, "scale": 2, "domain": "ISO-4217", "kind": "FIAT"},
        "amount": "12.30",
        "scale": "2",
    }


@pytest.mark.parametrize("amount, currency_id", [("12.30", "PLN"), ("-0.01", "legacy/PLN"), ("0.000000000000000001", "crypto/ETH"), ("7", "JPY")])
def test_money_codecs_round_trip(amount, currency_id):
    money = Money(amount, currency_id, registry=REGISTRY)

    for decoded in (
        money_from_map(money_to_map(money), REGISTRY),
        money_from_map(money_to_map(money, full=True), REGISTRY),
        parse_money(money_to_string(money), REGISTRY),
        money_from_json(to_json(money), REGISTRY),
    ):
        assert decoded.eq_strict(money)


@pytest.mark.parametrize(
    "money",
    [
        Money("1.23", "PLN", registry=REGISTRY).rescale(4),
        Money("1.23", "PLN", registry=REGISTRY).rescale(4).inc_minor(),
        Money("1.25", "PLN", registry=REGISTRY).add(Money("1", "PLN", registry=REGISTRY).rescale(3)),
        Money("7", "JPY", registry=REGISTRY).rescale(2),
    ],
)
def test_money_codecs_round_trip_with_scale_override(money):
    """Money carrying a wider scale than its registered currency decodes to the same value."""
    for decoded in (
        money_from_map(money_to_map(money), REGISTRY),
        money_from_map(money_to_map(money, full=True), REGISTRY),
        parse_money(money_to_string(money), REGISTRY),
        money_from_json(to_json(money, full=True), REGISTRY),
    ):
        assert decoded.eq_strict(money)


def test_money_codecs_round_trip_narrower_and_stripped_amounts():
    narrower = Money("1.20", "PLN", registry=REGISTRY).rescale(1)
    stripped = Money("12.50", "PLN", registry=REGISTRY).strip()

    decoded = money_from_map(money_to_map(narrower, full=True), REGISTRY)
    assert decoded.eq_strict(narrower)
    assert parse_money(money_to_string(narrower), REGISTRY) == narrower
    assert money_from_map(money_to_map(stripped, full=True), REGISTRY) == stripped
    assert parse_money(money_to_string(stripped), REGISTRY) == stripped


def test_money_from_map_applies_explicit_scale():
    decoded = money_from_map({"currency": "PLN", "amount": "1.5", "scale": "3"}, REGISTRY)

    assert str(decoded.value) == "1.500"
    assert decoded.currency.scale == 3
    with pytest.raises(InexactRounding):
        money_from_map({"currency": "JPY", "amount": "10.5", "scale": "0"}, REGISTRY)
    with pytest.raises(InvalidRepresentation):
        money_from_map({"currency": "PLN", "amount": "1", "scale": "x"}, REGISTRY)


def test_full_money_map_carries_extra_fields_as_strings():
    zwd = Currency("legacy/ZWD", numeric=932, scale=2, kind="FIAT", extra={"withdrawn": 2009, "amount": "ignored"})

    encoded = money_to_map(Money("1", zwd), full=True)

    assert encoded == {
        "withdrawn": "2009",
        "currency": {"id": "legacy/ZWD", "numeric": 932, "scale": 2, "domain": "LEGACY", "kind": "FIAT"},
        "amount": "1.00",
        "scale": "2",
    }
    assert "withdrawn" not in money_to_map(Money("1", zwd))


@pytest.mark.parametrize(
    "text, expected",
    [
        ("12.30 PLN", ("12.30", "PLN")),
        ("12.30PLN", ("12.30", "PLN")),
        ("PLN 12.30", ("12.30", "PLN")),
        ("PLN12.30", ("12.30", "PLN")),
        ("-5 EUR", ("-5", "EUR")),
        (".5 crypto/ETH", (".5", "crypto/ETH")),
        ("crypto/ETH 1.5", ("1.5", "crypto/ETH")),
        ("PLN -1_000.50", ("-1_000.50", "PLN")),
        ("  1e3 JPY ", ("1e3", "JPY")),
    ],
)
def test_split_money_string(text, expected):
    assert split_money_string(text) == expected


@pytest.mark.parametrize("text", ["", "PLN", "12.30", "12.30 PLN EUR", "PLN 12.30 EUR"])
def test_split_money_string_rejects_malformed_text(text):
    with pytest.raises(InvalidRepresentation):
        split_money_string(text)


def test_parse_money():
    assert parse_money("PLN 12.3", REGISTRY) == Money("12.30", "PLN", registry=REGISTRY)
    assert parse_money("1.5 ETH", REGISTRY).currency.qualifier == "crypto"
    assert parse_money("10.5 JPY", REGISTRY, rounding_mode="HALF_UP").value == Decimal("11")
    assert parse_money("10.5 JPY", REGISTRY).currency.scale == 1
    with pytest.raises(CurrencyNotFound):
        parse_money("1 USD", REGISTRY)
    assert Money.from_str("2 EUR", REGISTRY).currency.code == "EUR"


def test_money_decoding_errors():
    with pytest.raises(InvalidRepresentation):
        money_from_map({"currency": "PLN"}, REGISTRY)
    with pytest.raises(InvalidRepresentation):
        money_from_map({"currency": "PLN", "amount": "abc"}, REGISTRY)
    with pytest.raises(InvalidRepresentation):
        money_from_json("{not json", REGISTRY)
    with pytest.raises(InvalidRepresentation):
        to_json(Decimal("1"))
    assert money_from_json('"12.30 PLN"', REGISTRY).value == Decimal("12.30")
