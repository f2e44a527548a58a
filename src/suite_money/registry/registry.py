from __future__ import annotations

import logging
from datetime import datetime
from types import MappingProxyType
from typing import Any, Iterable, Mapping

from suite_money.domain.currency import Currency, CurrencyId
from suite_money.domain.hierarchy import CurrencyHierarchies, normalize_tag
from suite_money.errors import CurrencyNotFound, DuplicateCurrency, ValidationError
from suite_money.registry.bucket import CurrencyBucket
from suite_money.registry.diagnostics import inconsistency_warning

logger = logging.getLogger(__name__)

DEFAULT_LOCALE = "*"

CurrencyRef = Currency | CurrencyId | str | int


def default_version() -> str:
    """Registry version derived from the current time (`YYYYMMDDHHMMSSff`)."""
    now = datetime.now()
    return f"{now:%Y%m%d%H%M%S}{now.microsecond // 10000:02d}"


def normalize_country_ids(country_ids: str | Iterable[str] | None) -> list[str]:
    """Single country id or a collection of them as a de-duplicated list of upper-case ids."""
    if country_ids is None:
        return []
    if isinstance(country_ids, str):
        country_ids = [country_ids]

    result: list[str] = []
    for country_id in country_ids:
        # Raise: country ids are non-empty strings
        if not isinstance(country_id, str) or not country_id.strip():
            raise ValidationError(f"Cannot use $country_id ({country_id!r}) because it is not a non-empty string", country_id=country_id)
        country_id = country_id.strip().upper()
        if country_id not in result:
            result.append(country_id)
    return result


def normalize_locale(locale: str) -> str:
    """Canonical locale key: `*`, `pl` or `pl_PL` (language lower-case, region upper-case)."""
    # Raise: locales are non-empty strings
    if not isinstance(locale, str) or not locale.strip():
        raise ValidationError(f"Cannot use $locale ({locale!r}) because it is not a non-empty string", locale=locale)

    locale = locale.strip().replace("-", "_")
    if locale == DEFAULT_LOCALE:
        return locale
    language, _, region = locale.partition("_")
    return f"{language.lower()}_{region.upper()}" if region else language.lower()


def normalize_localized(localized: Mapping[str, Mapping[str, Any]]) -> dict[str, Mapping[str, Any]]:
    # Raise: localized properties must be a mapping of locale -> mapping
    if not isinstance(localized, Mapping) or not all(isinstance(v, Mapping) for v in localized.values()):
        raise ValidationError("Cannot use $localized because it is not a mapping of locale to properties", localized=localized)
    return {normalize_locale(locale): MappingProxyType(dict(props)) for locale, props in localized.items()}


def normalize_traits(traits: str | Iterable[str] | None) -> frozenset[str]:
    if traits is None:
        return frozenset()
    if isinstance(traits, str):
        traits = [traits]
    return frozenset(normalize_tag(t) for t in traits)


class _RegistryDraft:
    """Mutable working copy of registry indices used inside a single pure transform."""

    def __init__(self, registry: Registry):
        self.currencies: dict[CurrencyId, Currency] = dict(registry._currencies)
        self.numeric_canonical: dict[int, Currency] = dict(registry._numeric_canonical)
        self.numeric_buckets: dict[int, CurrencyBucket] = dict(registry._numeric_buckets)
        self.code_buckets: dict[str, CurrencyBucket] = dict(registry._code_buckets)
        self.domain_buckets: dict[str, CurrencyBucket] = dict(registry._domain_buckets)
        self.country_to_currency: dict[str, CurrencyId] = dict(registry._country_to_currency)
        self.currency_to_countries: dict[CurrencyId, frozenset[str]] = dict(registry._currency_to_countries)
        self.localized: dict[CurrencyId, Mapping[str, Mapping[str, Any]]] = dict(registry._localized)
        self.traits: dict[CurrencyId, frozenset[str]] = dict(registry._traits)
        self.weights: dict[CurrencyId, int] = dict(registry._weights)
        self.hierarchies = registry._hierarchies
        self.version = registry._version
        self.ext = registry._ext

    # region Buckets

    @staticmethod
    def _bucket_put(buckets: dict, key: Any, currency: Currency) -> None:
        buckets[key] = buckets.get(key, CurrencyBucket()).with_currency(currency)

    @staticmethod
    def _bucket_drop(buckets: dict, key: Any, currency_id: CurrencyId, index_name: str) -> None:
        bucket = buckets.get(key)
        if bucket is None or currency_id not in bucket:
            inconsistency_warning(f"currency missing from {index_name} bucket", index=index_name, key=key, id=str(currency_id))
            return
        bucket = bucket.without_id(currency_id)
        if bucket:
            buckets[key] = bucket
        else:
            del buckets[key]

    @staticmethod
    def _bucket_scan_drop(buckets: dict, currency_id: CurrencyId, index_name: str) -> None:
        for key in [k for k, bucket in buckets.items() if currency_id in bucket]:
            inconsistency_warning(f"orphaned entry in {index_name} bucket", index=index_name, key=key, id=str(currency_id))
            bucket = buckets[key].without_id(currency_id)
            if bucket:
                buckets[key] = bucket
            else:
                del buckets[key]

    def _refresh_numeric(self, numeric: int) -> None:
        bucket = self.numeric_buckets.get(numeric)
        if bucket:
            self.numeric_canonical[numeric] = bucket.first
        else:
            self.numeric_canonical.pop(numeric, None)

    # endregion

    def index_currency(self, currency: Currency) -> None:
        """Put $currency into the primary index and every bucket it belongs to."""
        self.currencies[currency.id] = currency
        if currency.numeric is not None:
            self._bucket_put(self.numeric_buckets, currency.numeric, currency)
            self._refresh_numeric(currency.numeric)
        self._bucket_put(self.code_buckets, currency.code, currency)
        if currency.domain is not None:
            self._bucket_put(self.domain_buckets, currency.domain, currency)

    def purge(self, currency_id: CurrencyId) -> None:
        """Remove $currency_id from all indices; indices without the id are left untouched."""
        stored = self.currencies.pop(currency_id, None)
        if stored is not None:
            if stored.numeric is not None:
                self._bucket_drop(self.numeric_buckets, stored.numeric, currency_id, "numeric")
                self._refresh_numeric(stored.numeric)
            self._bucket_drop(self.code_buckets, stored.code, currency_id, "code")
            if stored.domain is not None:
                self._bucket_drop(self.domain_buckets, stored.domain, currency_id, "domain")
        else:
            self._bucket_scan_drop(self.numeric_buckets, currency_id, "numeric")
            for numeric in [n for n, c in self.numeric_canonical.items() if c.id == currency_id]:
                self._refresh_numeric(numeric)
            self._bucket_scan_drop(self.code_buckets, currency_id, "code")
            self._bucket_scan_drop(self.domain_buckets, currency_id, "domain")
            if currency_id in self.localized or currency_id in self.traits or currency_id in self.weights:
                inconsistency_warning("orphaned per-currency properties", id=str(currency_id))

        self.localized.pop(currency_id, None)
        self.traits.pop(currency_id, None)
        self.weights.pop(currency_id, None)

        for country_id in self.currency_to_countries.pop(currency_id, frozenset()):
            if self.country_to_currency.get(country_id) == currency_id:
                del self.country_to_currency[country_id]
            else:
                inconsistency_warning("country link points elsewhere", country=country_id, id=str(currency_id))
        for country_id in [k for k, v in self.country_to_currency.items() if v == currency_id]:
            inconsistency_warning("orphaned country link", country=country_id, id=str(currency_id))
            del self.country_to_currency[country_id]

    def link_countries(self, currency_id: CurrencyId, country_ids: list[str]) -> None:
        """Assign countries to $currency_id, unlinking them from their previous currencies."""
        self.unlink_countries(country_ids)
        if country_ids:
            self.currency_to_countries[currency_id] = self.currency_to_countries.get(currency_id, frozenset()) | set(country_ids)
            for country_id in country_ids:
                self.country_to_currency[country_id] = currency_id

    def unlink_countries(self, country_ids: list[str]) -> None:
        for country_id in country_ids:
            holder = self.country_to_currency.pop(country_id, None)
            if holder is None:
                continue
            remaining = self.currency_to_countries.get(holder, frozenset()) - {country_id}
            if remaining:
                self.currency_to_countries[holder] = remaining
            else:
                self.currency_to_countries.pop(holder, None)

    def reweigh(self, currency_id: CurrencyId, weight: int) -> None:
        """Re-index a stored currency with a new weight so every bucket stays sorted."""
        self.index_currency(self.currencies[currency_id].with_weight(weight))

    def freeze(self) -> Registry:
        return Registry._of(self)


class Registry:
    """Immutable multi-index store of currencies.

    Every transform (`register`, `unregister`, `set_weight`, ...) returns a new Registry and
    leaves the receiver untouched, so a snapshot can be shared freely between threads.

    Indices:
        - primary: id -> Currency (the only unique key),
        - numeric: numeric id -> canonical Currency and numeric id -> bucket,
        - code: bare code -> bucket,
        - domain: domain -> bucket,
        - countries: country id <-> currency id (a country has at most one currency),
        - localized: id -> locale -> properties (`*` is the default locale),
        - traits: id -> set of tags,
        - weights: id -> explicitly set weight.

    Buckets are ordered by (weight, id); their first entry is the canonical currency.
    """

    __slots__ = (
        "_currencies",
        "_numeric_canonical",
        "_numeric_buckets",
        "_code_buckets",
        "_domain_buckets",
        "_country_to_currency",
        "_currency_to_countries",
        "_localized",
        "_traits",
        "_weights",
        "_hierarchies",
        "_version",
        "_ext",
    )

    def __init__(self, hierarchies: Any = None, version: str | None = None, ext: Mapping[str, Any] | None = None):
        """Initialize an empty registry.

        Args:
            hierarchies: CurrencyHierarchies or a mapping with `domain`/`kind`/`traits`
                parent-maps.
            version: Version string; defaults to a timestamp.
            ext: Free-form extension data.

        Raises:
            ValidationError: If $hierarchies is malformed.
        """
        empty = MappingProxyType({})
        self._currencies = empty
        self._numeric_canonical = empty
        self._numeric_buckets = empty
        self._code_buckets = empty
        self._domain_buckets = empty
        self._country_to_currency = empty
        self._currency_to_countries = empty
        self._localized = empty
        self._traits = empty
        self._weights = empty
        self._hierarchies = CurrencyHierarchies.coerce(hierarchies)
        self._version = version or default_version()
        self._ext = MappingProxyType(dict(ext or {}))

    @classmethod
    def _of(cls, draft: _RegistryDraft) -> Registry:
        result = object.__new__(cls)
        result._currencies = MappingProxyType(draft.currencies)
        result._numeric_canonical = MappingProxyType(draft.numeric_canonical)
        result._numeric_buckets = MappingProxyType(draft.numeric_buckets)
        result._code_buckets = MappingProxyType(draft.code_buckets)
        result._domain_buckets = MappingProxyType(draft.domain_buckets)
        result._country_to_currency = MappingProxyType(draft.country_to_currency)
        result._currency_to_countries = MappingProxyType(draft.currency_to_countries)
        result._localized = MappingProxyType(draft.localized)
        result._traits = MappingProxyType(draft.traits)
        result._weights = MappingProxyType(draft.weights)
        result._hierarchies = draft.hierarchies
        result._version = draft.version
        result._ext = draft.ext
        return result

    @classmethod
    def from_config(cls, data: Mapping[str, Any]) -> Registry:
        """Build a registry from plain configuration data (see `build_registry`)."""
        from suite_money.registry.loader import build_registry

        return build_registry(data)

    # region Reference helpers

    def to_id(self, ref: CurrencyRef) -> CurrencyId | None:
        """Convert a reference to a currency id without consulting buckets other than numeric.

        Raises:
            ValidationError: If $ref is of unsupported type or a malformed identifier.
        """
        if isinstance(ref, Currency):
            return ref.id
        if isinstance(ref, CurrencyId):
            return ref
        if isinstance(ref, str):
            return CurrencyId.parse(ref)
        if isinstance(ref, int) and not isinstance(ref, bool):
            canonical = self._numeric_canonical.get(ref)
            return canonical.id if canonical is not None else None

        raise ValidationError(f"Cannot use $ref ({ref!r}) as a currency reference (got type '{type(ref).__name__}')", ref=ref)

    def _require(self, ref: CurrencyRef, operation: str) -> Currency:
        currency_id = self.to_id(ref)
        stored = self._currencies.get(currency_id) if currency_id is not None else None

        # Raise: mutators need an existing currency
        if stored is None:
            raise CurrencyNotFound(f"Cannot call `{operation}` because currency $ref '{ref}' does not exist in registry", ref=ref)

        return stored

    # endregion

    # region Getters

    def get(self, ref: CurrencyRef) -> Currency | None:
        """Currency stored under the id of $ref, or None."""
        currency_id = self.to_id(ref)
        return self._currencies.get(currency_id) if currency_id is not None else None

    def __contains__(self, ref: object) -> bool:
        try:
            return self.get(ref) is not None
        except ValidationError:
            return False

    def __len__(self) -> int:
        return len(self._currencies)

    def __iter__(self):
        return iter(self._currencies.values())

    @property
    def currencies(self) -> Mapping[CurrencyId, Currency]:
        return self._currencies

    @property
    def numeric_canonical(self) -> Mapping[int, Currency]:
        return self._numeric_canonical

    @property
    def numeric_buckets(self) -> Mapping[int, CurrencyBucket]:
        return self._numeric_buckets

    @property
    def code_buckets(self) -> Mapping[str, CurrencyBucket]:
        return self._code_buckets

    @property
    def domain_buckets(self) -> Mapping[str, CurrencyBucket]:
        return self._domain_buckets

    @property
    def country_to_currency(self) -> Mapping[str, CurrencyId]:
        return self._country_to_currency

    @property
    def currency_to_countries(self) -> Mapping[CurrencyId, frozenset[str]]:
        return self._currency_to_countries

    @property
    def localized(self) -> Mapping[CurrencyId, Mapping[str, Mapping[str, Any]]]:
        return self._localized

    @property
    def traits(self) -> Mapping[CurrencyId, frozenset[str]]:
        return self._traits

    @property
    def weights(self) -> Mapping[CurrencyId, int]:
        return self._weights

    @property
    def hierarchies(self) -> CurrencyHierarchies:
        return self._hierarchies

    @property
    def version(self) -> str:
        return self._version

    @property
    def ext(self) -> Mapping[str, Any]:
        return self._ext

    def currency_of_country(self, country_id: str) -> Currency | None:
        currency_id = self._country_to_currency.get(country_id.strip().upper())
        return self._currencies.get(currency_id) if currency_id is not None else None

    def countries_of(self, ref: CurrencyRef) -> frozenset[str]:
        currency_id = self.to_id(ref)
        return self._currency_to_countries.get(currency_id, frozenset())

    def traits_of(self, ref: CurrencyRef) -> frozenset[str]:
        currency_id = self.to_id(ref)
        return self._traits.get(currency_id, frozenset())

    def weight_of(self, ref: CurrencyRef) -> int | None:
        """Explicitly set weight, or None when the weight was never set."""
        currency_id = self.to_id(ref)
        return self._weights.get(currency_id)

    def localized_properties(self, ref: CurrencyRef) -> Mapping[str, Mapping[str, Any]]:
        currency_id = self.to_id(ref)
        return self._localized.get(currency_id, MappingProxyType({}))

    def localized_property(self, ref: CurrencyRef, prop: str, locale: str | None = None) -> Any:
        """Localized property with fallback: exact locale, then its language, then `*`."""
        properties = self.localized_properties(ref)
        candidates = []
        if locale is not None:
            locale = normalize_locale(locale)
            candidates.append(locale)
            language = locale.partition("_")[0]
            if language != locale:
                candidates.append(language)
        candidates.append(DEFAULT_LOCALE)

        for candidate in candidates:
            props = properties.get(candidate)
            if props is not None and prop in props:
                return props[prop]
        return None

    # endregion

    # region Transforms

    def register(
        self,
        currency: Currency,
        country_ids: str | Iterable[str] | None = None,
        localized: Mapping[str, Mapping[str, Any]] | None = None,
        update: bool = False,
    ) -> Registry:
        """Returns a registry with $currency added (or replaced in update mode).

        The previous entry of the same id is fully unregistered first. Country links and
        localized properties of the id are replaced by the given ones. In update mode the
        trait set and the explicitly set weight of the previous entry are kept, unless the
        incoming currency carries a non-zero weight.

        Args:
            currency: Currency to register.
            country_ids: Country id or ids for which the currency is the main currency.
            localized: Mapping of locale to properties.
            update: Allow replacing an existing currency.

        Raises:
            DuplicateCurrency: If the id already exists and $update is False.
            ValidationError: If any argument is malformed.
        """
        # Raise: only Currency values can be registered
        if not isinstance(currency, Currency):
            raise ValidationError(f"Cannot call `register` because $currency is not Currency (got type '{type(currency).__name__}')", currency=currency)

        currency_id = currency.id
        existing = self._currencies.get(currency_id)

        # Raise: ids are unique unless updating
        if existing is not None and not update:
            raise DuplicateCurrency(f"Cannot call `register` because currency with $id '{currency_id}' already exists in registry", existing=existing, currency=currency)

        countries = normalize_country_ids(country_ids)
        localized_props = normalize_localized(localized) if localized else None

        if currency.weight != 0:
            weight, explicit = currency.weight, True
        elif update and currency_id in self._weights:
            weight, explicit = self._weights[currency_id], True
        else:
            weight, explicit = 0, False
        previous_traits = self._traits.get(currency_id) if update else None

        draft = _RegistryDraft(self)
        draft.purge(currency_id)
        draft.index_currency(currency.with_weight(weight))
        if explicit:
            draft.weights[currency_id] = weight
        draft.link_countries(currency_id, countries)
        if localized_props:
            draft.localized[currency_id] = MappingProxyType(localized_props)
        if previous_traits:
            draft.traits[currency_id] = previous_traits

        logger.debug(f"Registered currency $id '{currency_id}' (update={update}, weight={weight}, countries={countries})")
        return draft.freeze()

    def unregister(self, ref: CurrencyRef) -> Registry:
        """Returns a registry without the currency of $ref; unknown references are a no-op."""
        currency_id = self.to_id(ref)
        if currency_id is None:
            return self

        draft = _RegistryDraft(self)
        draft.purge(currency_id)
        logger.debug(f"Unregistered currency $id '{currency_id}'")
        return draft.freeze()

    def add_countries(self, ref: CurrencyRef, country_ids: str | Iterable[str]) -> Registry:
        """Link countries to a registered currency, unlinking them from previous holders.

        Raises:
            CurrencyNotFound: If the currency is not registered.
            ValidationError: If $ref is a Currency that differs from the registered one.
        """
        stored = self._require(ref, "add_countries")

        # Raise: given currency value must match the registered one
        if isinstance(ref, Currency) and ref != stored:
            raise ValidationError(f"Cannot call `add_countries` because currency '{ref.id}' differs from the one existing in registry", currency=ref, existing=stored)

        countries = normalize_country_ids(country_ids)
        if not countries:
            return self

        draft = _RegistryDraft(self)
        draft.link_countries(stored.id, countries)
        return draft.freeze()

    def remove_countries(self, country_ids: str | Iterable[str]) -> Registry:
        """Unlink countries from whatever currencies they are assigned to."""
        countries = normalize_country_ids(country_ids)
        if not countries:
            return self

        draft = _RegistryDraft(self)
        draft.unlink_countries(countries)
        return draft.freeze()

    def set_weight(self, ref: CurrencyRef, weight: int) -> Registry:
        """Set an explicit weight and re-sort every bucket containing the currency.

        Raises:
            CurrencyNotFound: If the currency is not registered.
            ValidationError: If $weight is not an integer.
        """
        stored = self._require(ref, "set_weight")

        # Raise: weight must be an integer
        if isinstance(weight, bool) or not isinstance(weight, int):
            raise ValidationError(f"Cannot call `set_weight` because $weight must be an integer, but provided value is: {weight!r}", weight=weight)

        draft = _RegistryDraft(self)
        draft.weights[stored.id] = weight
        draft.reweigh(stored.id, weight)
        logger.debug(f"Set weight of currency $id '{stored.id}' to {weight}")
        return draft.freeze()

    def clear_weight(self, ref: CurrencyRef) -> Registry:
        """Forget the explicit weight (the currency sorts with weight 0 again).

        Raises:
            CurrencyNotFound: If the currency is not registered.
        """
        stored = self._require(ref, "clear_weight")

        draft = _RegistryDraft(self)
        draft.weights.pop(stored.id, None)
        draft.reweigh(stored.id, 0)
        return draft.freeze()

    def set_traits(self, ref: CurrencyRef, traits: str | Iterable[str] | None) -> Registry:
        """Replace the trait set of a currency; an empty set removes the entry.

        Raises:
            CurrencyNotFound: If the currency is not registered.
        """
        stored = self._require(ref, "set_traits")
        tags = normalize_traits(traits)

        draft = _RegistryDraft(self)
        if tags:
            draft.traits[stored.id] = tags
        else:
            draft.traits.pop(stored.id, None)
        return draft.freeze()

    def add_traits(self, ref: CurrencyRef, traits: str | Iterable[str]) -> Registry:
        """Union $traits into the trait set of a currency.

        Raises:
            CurrencyNotFound: If the currency is not registered.
        """
        stored = self._require(ref, "add_traits")
        tags = self._traits.get(stored.id, frozenset()) | normalize_traits(traits)
        return self.set_traits(stored.id, tags)

    def remove_traits(self, ref: CurrencyRef, traits: str | Iterable[str]) -> Registry:
        """Remove $traits from a currency; missing currencies or traits are a no-op."""
        currency_id = self.to_id(ref)
        if currency_id is None or currency_id not in self._traits:
            return self

        tags = self._traits[currency_id] - normalize_traits(traits)
        draft = _RegistryDraft(self)
        if tags:
            draft.traits[currency_id] = tags
        else:
            del draft.traits[currency_id]
        return draft.freeze()

    def add_localized_properties(self, ref: CurrencyRef, localized: Mapping[str, Mapping[str, Any]]) -> Registry:
        """Merge localized properties of a currency (per locale).

        Raises:
            CurrencyNotFound: If the currency is not registered.
        """
        stored = self._require(ref, "add_localized_properties")
        merged = {locale: dict(props) for locale, props in self._localized.get(stored.id, {}).items()}
        for locale, props in normalize_localized(localized).items():
            merged[locale] = {**merged.get(locale, {}), **props}

        draft = _RegistryDraft(self)
        draft.localized[stored.id] = MappingProxyType({locale: MappingProxyType(props) for locale, props in merged.items()})
        return draft.freeze()

    def remove_localized_properties(self, ref: CurrencyRef) -> Registry:
        currency_id = self.to_id(ref)
        if currency_id is None or currency_id not in self._localized:
            return self

        draft = _RegistryDraft(self)
        del draft.localized[currency_id]
        return draft.freeze()

    def with_hierarchies(self, hierarchies: Any) -> Registry:
        draft = _RegistryDraft(self)
        draft.hierarchies = CurrencyHierarchies.coerce(hierarchies)
        return draft.freeze()

    def with_version(self, version: str) -> Registry:
        draft = _RegistryDraft(self)
        draft.version = version
        return draft.freeze()

    def with_ext(self, ext: Mapping[str, Any]) -> Registry:
        draft = _RegistryDraft(self)
        draft.ext = MappingProxyType(dict(ext))
        return draft.freeze()

    # endregion

    def integrity_problems(self) -> list[str]:
        """Describe every violation of referential integrity (empty list when consistent)."""
        problems: list[str] = []
        primary = self._currencies

        def check(index_name: str, ids: Iterable[CurrencyId]) -> None:
            for currency_id in ids:
                if currency_id not in primary:
                    problems.append(f"{index_name}: '{currency_id}' not in primary index")

        for name, buckets in (("numeric", self._numeric_buckets), ("code", self._code_buckets), ("domain", self._domain_buckets)):
            for key, bucket in buckets.items():
                if not bucket:
                    problems.append(f"{name}: empty bucket under {key!r}")
                check(name, bucket.ids)
        for numeric, canonical in self._numeric_canonical.items():
            bucket = self._numeric_buckets.get(numeric)
            if bucket is None or bucket.first is None or bucket.first.id != canonical.id:
                problems.append(f"numeric canonical: {numeric} is not the first entry of its bucket")
        check("country", self._country_to_currency.values())
        check("currency countries", self._currency_to_countries)
        check("localized", self._localized)
        check("traits", self._traits)
        check("weights", self._weights)
        for country_id, currency_id in self._country_to_currency.items():
            if country_id not in self._currency_to_countries.get(currency_id, frozenset()):
                problems.append(f"country: '{country_id}' has no reverse link from '{currency_id}'")
        for currency_id, country_ids in self._currency_to_countries.items():
            for country_id in country_ids:
                if self._country_to_currency.get(country_id) != currency_id:
                    problems.append(f"country: '{country_id}' reverse link from '{currency_id}' is stale")
        return problems

    def _state(self) -> tuple:
        return (
            dict(self._currencies),
            {currency_id: c.weight for currency_id, c in self._currencies.items()},
            dict(self._numeric_canonical),
            dict(self._numeric_buckets),
            dict(self._code_buckets),
            dict(self._domain_buckets),
            dict(self._country_to_currency),
            dict(self._currency_to_countries),
            {k: {loc: dict(p) for loc, p in v.items()} for k, v in self._localized.items()},
            dict(self._traits),
            dict(self._weights),
            self._hierarchies,
            self._version,
            dict(self._ext),
        )

    def __eq__(self, other) -> bool:
        if not isinstance(other, Registry):
            return False
        return self._state() == other._state()

    __hash__ = None

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(currencies={len(self._currencies)}, countries={len(self._country_to_currency)}, version='{self._version}')"
