from __future__ import annotations

from collections.abc import Iterator, Sequence
from typing import Iterable

from suite_money.domain.currency import Currency, CurrencyId


def bucket_key(currency: Currency) -> tuple:
    """Ordering key of bucket entries: weight ascending, then id ascending."""
    return currency.weight, currency.id.sort_key


class CurrencyBucket(Sequence[Currency]):
    """Immutable ordered set of currencies sharing a numeric id, code or domain.

    Entries are ordered by (weight, id). Two entries with the same id are considered the same
    entry regardless of weight, so `with_currency` replaces an existing entry instead of
    adding a second one. The first entry is the canonical currency of the bucket.

    Examples:
        >>> bucket = CurrencyBucket().with_currency(legacy).with_currency(current)
        >>> bucket.first     # lowest weight, then lowest id
        >>> bucket.without_id(current.id).first
    """

    __slots__ = ("_items",)

    def __init__(self, currencies: Iterable[Currency] = ()):
        """Initialize a bucket from $currencies; later duplicates of an id win."""
        by_id: dict[CurrencyId, Currency] = {}
        for currency in currencies:
            by_id[currency.id] = currency
        self._items: tuple[Currency, ...] = tuple(sorted(by_id.values(), key=bucket_key))

    @classmethod
    def _of_sorted(cls, items: tuple[Currency, ...]) -> CurrencyBucket:
        result = object.__new__(cls)
        result._items = items
        return result

    def __getitem__(self, index: int | slice) -> Currency | tuple[Currency, ...]:
        return self._items[index]

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[Currency]:
        return iter(self._items)

    def __bool__(self) -> bool:
        return bool(self._items)

    def __contains__(self, value: object) -> bool:
        if isinstance(value, CurrencyId):
            return any(c.id == value for c in self._items)
        return value in self._items

    @property
    def first(self) -> Currency | None:
        """Canonical entry (lowest weight, then lowest id), or None for an empty bucket."""
        return self._items[0] if self._items else None

    @property
    def ids(self) -> tuple[CurrencyId, ...]:
        return tuple(c.id for c in self._items)

    def get(self, currency_id: CurrencyId) -> Currency | None:
        for currency in self._items:
            if currency.id == currency_id:
                return currency
        return None

    def with_currency(self, currency: Currency) -> CurrencyBucket:
        """Returns a bucket with $currency inserted, replacing an entry with the same id."""
        items = [c for c in self._items if c.id != currency.id]
        items.append(currency)
        items.sort(key=bucket_key)
        return self._of_sorted(tuple(items))

    def without_id(self, currency_id: CurrencyId) -> CurrencyBucket:
        """Returns a bucket without the entry of $currency_id (the same bucket if absent)."""
        if currency_id not in self:
            return self
        return self._of_sorted(tuple(c for c in self._items if c.id != currency_id))

    def to_list(self) -> list[Currency]:
        """Create a copy of the entries as a regular list."""
        return list(self._items)

    def __eq__(self, other) -> bool:
        if not isinstance(other, CurrencyBucket):
            return NotImplemented
        return self._items == other._items and [c.weight for c in self._items] == [c.weight for c in other._items]

    def __hash__(self) -> int:
        return hash(self._items)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({[str(c.id) for c in self._items]})"
