import pytest

from suite_money.domain.currency import Currency, CurrencyId, ISO_4217
from suite_money.errors import ValidationError


def test_currency_id_parse_and_str():
    """Identifiers keep the qualifier and upper-case the code."""
    currency_id = CurrencyId.parse("crypto/eth")

    assert currency_id.qualifier == "crypto"
    assert currency_id.code == "ETH"
    assert str(currency_id) == "crypto/ETH"
    assert CurrencyId.parse("pln") == CurrencyId("PLN")


def test_currency_id_strips_iso_marker():
    assert CurrencyId.parse("ISO-4217/PLN") == CurrencyId("PLN")
    assert CurrencyId.parse("iso-4217/pln").qualifier is None


@pytest.mark.parametrize("text", ["", "   ", "crypto/ETH/X"])
def test_currency_id_rejects_malformed_text(text):
    with pytest.raises(ValidationError):
        CurrencyId.parse(text)


def test_currency_id_ordering_puts_unqualified_first():
    ids = sorted([CurrencyId.parse("crypto/BTC"), CurrencyId("USD"), CurrencyId("EUR")])
    assert [str(i) for i in ids] == ["EUR", "USD", "crypto/BTC"]


def test_currency_domain_from_qualifier():
    eth = Currency("crypto/ETH", scale=18)

    assert eth.domain == "CRYPTO"
    assert eth.code == "ETH"
    assert eth.qualifier == "crypto"


def test_currency_domain_inferred_as_iso_for_numeric_three_letter_codes():
    assert Currency("PLN", numeric=985, scale=2).domain == ISO_4217
    assert Currency("PLN", numeric=985, scale=2).is_iso
    assert Currency("ISO-4217/XYZ").domain == ISO_4217
    assert Currency("XYZ").domain is None
    assert Currency("ABCD", numeric=1).domain is None


def test_currency_explicit_domain_must_agree_with_qualifier():
    assert Currency("crypto/ETH", domain="crypto").domain == "CRYPTO"
    with pytest.raises(ValidationError):
        Currency("crypto/ETH", domain="FIAT")


def test_currency_sentinels():
    """Non-positive numeric ids and scale -1 mean "none" and "automatic"."""
    currency = Currency("XAU", numeric=0, scale=-1)

    assert currency.numeric is None
    assert currency.scale is None
    assert currency.is_auto_scaled


@pytest.mark.parametrize("kwargs", [{"scale": -2}, {"scale": 1.5}, {"numeric": "985"}, {"weight": "1"}, {"kind": 5}])
def test_currency_rejects_malformed_attributes(kwargs):
    with pytest.raises(ValidationError):
        Currency("PLN", **kwargs)


def test_currency_equality_ignores_weight_and_extra():
    a = Currency("PLN", numeric=985, scale=2, kind="fiat")
    b = a.with_weight(10).with_extra({"name": "Zloty"})

    assert a == b
    assert hash(a) == hash(b)
    assert b.weight == 10
    assert b.extra["name"] == "Zloty"
    assert a != a.with_scale(4)


def test_currency_from_map_aliases_and_extra():
    currency = Currency.from_map({"nr": 985, "sc": 2, "kind": "FIAT", "name": "Polish Zloty"}, id="PLN")

    assert currency.numeric == 985
    assert currency.scale == 2
    assert currency.kind == "FIAT"
    assert currency.extra == {"name": "Polish Zloty"}


def test_currency_from_map_requires_id():
    with pytest.raises(ValidationError):
        Currency.from_map({"numeric": 985})


def test_currency_to_map_is_accepted_by_from_map():
    """Records keep extra fields and the weight, and omit unset attributes."""
    currency = Currency("legacy/ZWD", numeric=932, scale=2, kind="FIAT", weight=10, extra={"withdrawn": "2009"})

    record = currency.to_map()

    assert record == {"id": "legacy/ZWD", "withdrawn": "2009", "numeric": 932, "scale": 2, "kind": "FIAT", "domain": "LEGACY", "weight": 10}
    assert Currency.from_map(record) == currency
    assert Currency.from_map(record).weight == 10
    assert Currency("XAU").to_map() == {"id": "XAU"}
