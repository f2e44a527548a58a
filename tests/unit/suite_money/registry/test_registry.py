import pytest

from suite_money.domain.currency import Currency, CurrencyId
from suite_money.errors import CurrencyNotFound, DuplicateCurrency, ValidationError
from suite_money.registry.registry import Registry, normalize_locale
from tests.helpers.helper_registry import create_eur, create_pln, create_registry

PLN = CurrencyId("PLN")
LEGACY_PLN = CurrencyId("legacy/PLN")


def test_register_builds_every_index():
    registry = create_registry()

    assert len(registry) == 6
    assert registry.get("PLN") == create_pln()
    assert registry.numeric_canonical[985].id == PLN
    assert registry.numeric_buckets[985].ids == (PLN, LEGACY_PLN)
    assert registry.code_buckets["PLN"].ids == (PLN, LEGACY_PLN)
    assert registry.domain_buckets["CRYPTO"].ids == (CurrencyId.parse("crypto/ETH"), CurrencyId.parse("crypto/USDT"))
    assert registry.currency_of_country("pl").id == PLN
    assert registry.countries_of("EUR") == {"DE", "FR"}
    assert registry.localized_property("PLN", "name") == "Polish Zloty"
    assert registry.integrity_problems() == []


def test_register_is_pure():
    registry = Registry(version="1")
    updated = registry.register(create_pln())

    assert len(registry) == 0
    assert len(updated) == 1
    assert "PLN" in updated
    assert "PLN" not in registry


def test_register_duplicate_fails_without_update():
    registry = create_registry()

    with pytest.raises(DuplicateCurrency) as info:
        registry.register(Currency("PLN", numeric=985, scale=4))
    assert info.value.existing == create_pln()


def test_register_update_replaces_entry_and_keeps_traits_and_weight():
    registry = create_registry().set_weight("PLN", 3).add_traits("PLN", "LOCAL")

    updated = registry.register(Currency("PLN", numeric=985, scale=4, kind="FIAT"), country_ids="PL", update=True)

    assert updated.get("PLN").scale == 4
    assert updated.weight_of("PLN") == 3
    assert updated.get("PLN").weight == 3
    assert updated.traits_of("PLN") == {"LOCAL"}
    assert updated.localized_properties("PLN") == {}
    assert updated.integrity_problems() == []


def test_register_update_with_explicit_weight_overrides_previous_weight():
    registry = create_registry().set_weight("PLN", 3)
    updated = registry.register(create_pln().with_weight(7), update=True)

    assert updated.weight_of("PLN") == 7


def test_register_rejects_non_currency():
    with pytest.raises(ValidationError):
        Registry().register("PLN")


def test_unregister_purges_every_index():
    registry = create_registry().unregister("PLN")

    assert registry.get("PLN") is None
    assert registry.numeric_canonical[985].id == LEGACY_PLN
    assert registry.code_buckets["PLN"].ids == (LEGACY_PLN,)
    assert registry.currency_of_country("PL") is None
    assert PLN not in registry.localized
    assert registry.integrity_problems() == []


def test_unregister_is_idempotent():
    once = create_registry().unregister("EUR")
    twice = once.unregister("EUR")

    assert once == twice
    assert "DE" not in once.country_to_currency


def test_unregister_by_numeric_id_uses_canonical_entry():
    registry = create_registry().unregister(985)
    assert registry.get("PLN") is None
    assert registry.get("legacy/PLN") is not None


def test_country_moves_between_currencies():
    registry = create_registry().add_countries("EUR", "PL")

    assert registry.currency_of_country("PL").id == CurrencyId("EUR")
    assert registry.countries_of("PLN") == frozenset()
    assert PLN not in registry.currency_to_countries
    assert registry.integrity_problems() == []


def test_remove_countries():
    registry = create_registry().remove_countries(["de", "XX"])

    assert registry.countries_of("EUR") == {"FR"}
    assert "DE" not in registry.country_to_currency


def test_add_countries_preconditions():
    registry = create_registry()

    with pytest.raises(CurrencyNotFound):
        registry.add_countries("USD", "US")
    with pytest.raises(ValidationError):
        registry.add_countries(Currency("PLN", numeric=985, scale=4), "PL")


def test_set_weight_resorts_buckets():
    registry = create_registry().set_weight("legacy/PLN", -1)

    assert registry.numeric_canonical[985].id == LEGACY_PLN
    assert registry.code_buckets["PLN"].first.id == LEGACY_PLN
    assert registry.get("legacy/PLN").weight == -1

    cleared = registry.clear_weight("legacy/PLN")
    assert cleared.weight_of("legacy/PLN") is None
    assert cleared.numeric_canonical[985].id == PLN


def test_explicit_zero_weight_is_recorded():
    registry = create_registry().set_weight("PLN", 0)
    assert registry.weight_of("PLN") == 0
    assert registry.weight_of("EUR") is None


@pytest.mark.parametrize("operation", ["set_weight", "clear_weight", "set_traits", "add_traits", "add_localized_properties"])
def test_mutators_require_existing_currency(operation):
    registry = create_registry()
    args = {
        "set_weight": (1,),
        "clear_weight": (),
        "set_traits": (["A"],),
        "add_traits": (["A"],),
        "add_localized_properties": ({"*": {"name": "x"}},),
    }[operation]

    with pytest.raises(CurrencyNotFound):
        getattr(registry, operation)("USD", *args)


def test_traits():
    registry = create_registry().add_traits("crypto/ETH", ["smart_contract", "pos"])

    assert registry.traits_of("crypto/ETH") == {"SMART_CONTRACT", "POS"}
    registry = registry.remove_traits("crypto/ETH", "pos")
    assert registry.traits_of("crypto/ETH") == {"SMART_CONTRACT"}
    registry = registry.remove_traits("crypto/ETH", "smart_contract")
    assert CurrencyId.parse("crypto/ETH") not in registry.traits
    assert registry.remove_traits("USD", "X") is registry


def test_localized_properties_fallback():
    registry = create_registry().add_localized_properties("PLN", {"pl-PL": {"symbol": "zł"}, "*": {"symbol": "PLN"}})

    assert registry.localized_property("PLN", "symbol", "pl_PL") == "zł"
    assert registry.localized_property("PLN", "name", "pl_PL") == "złoty"
    assert registry.localized_property("PLN", "name", "en_US") == "Polish Zloty"
    assert registry.localized_property("PLN", "symbol") == "PLN"
    assert registry.localized_property("PLN", "missing") is None

    removed = registry.remove_localized_properties("PLN")
    assert removed.localized_property("PLN", "name") is None


def test_normalize_locale():
    assert normalize_locale("PL-pl") == "pl_PL"
    assert normalize_locale("EN") == "en"
    assert normalize_locale("*") == "*"


def test_snapshot_metadata():
    registry = create_registry().with_version("2").with_ext({"source": "test"}).with_hierarchies({"kind": {"A": "B"}})

    assert registry.version == "2"
    assert registry.ext == {"source": "test"}
    assert registry.hierarchies.kind.is_a("A", "B")
    assert len(Registry().version) == 16
    assert repr(registry) == "Registry(currencies=6, countries=4, version='2')"


def test_referential_integrity_after_mixed_operations():
    registry = create_registry()
    operations = [
        lambda r: r.register(Currency("USD", numeric=840, scale=2), country_ids=["US", "PL"]),
        lambda r: r.unregister("EUR"),
        lambda r: r.register(create_eur(), country_ids="DE"),
        lambda r: r.set_weight("USD", 2),
        lambda r: r.register(Currency("USD", numeric=840, scale=3), update=True),
        lambda r: r.unregister("crypto/USDT"),
        lambda r: r.remove_countries("DE"),
    ]
    for operation in operations:
        registry = operation(registry)
        assert registry.integrity_problems() == []
