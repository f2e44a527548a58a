from __future__ import annotations

from types import MappingProxyType
from typing import Any, Mapping

from suite_money.errors import ValidationError

ISO_4217 = "ISO-4217"

_EMPTY_EXTRA: Mapping[str, Any] = MappingProxyType({})


def canonical_code(code: str) -> str:
    """Upper-case ASCII letters only; other characters are kept as they are."""
    return "".join(ch.upper() if "a" <= ch <= "z" else ch for ch in code.strip())


def is_iso_marker(qualifier: str | None) -> bool:
    return qualifier is not None and qualifier.upper() == ISO_4217


def _is_iso_code(code: str) -> bool:
    return len(code) == 3 and all("A" <= ch <= "Z" for ch in code)


def _normalize_tag(tag: str | None, name: str) -> str | None:
    if tag is None:
        return None

    # Raise: tags are textual
    if not isinstance(tag, str):
        raise ValidationError(f"Cannot create `Currency` because ${name} is not a string (got type '{type(tag).__name__}')", **{name: tag})

    tag = tag.strip().upper()
    return tag or None


class CurrencyId:
    """Identifier of a currency: optional qualifier and a code.

    The code is canonicalized to upper-case ASCII. The qualifier keeps its case, except the
    `ISO-4217` marker (in any case) which is always stripped, because official currencies are
    identified by the bare code.

    Attributes:
        qualifier (str | None): Classification prefix (e.g. "crypto"), or None.
        code (str): Canonical currency code (e.g. "ETH").
    """

    __slots__ = ("_qualifier", "_code")

    def __init__(self, code: str, qualifier: str | None = None):
        """Initialize a CurrencyId.

        Args:
            code: Currency code; upper-cased.
            qualifier: Optional qualifier; `ISO-4217` is stripped.

        Raises:
            ValidationError: If $code is empty or contains "/", or $qualifier is empty.
        """
        # Raise: code must be a non-empty string
        if not isinstance(code, str) or not code.strip():
            raise ValidationError(f"Cannot create `CurrencyId` because $code must be a non-empty string, but provided value is: '{code}'", code=code)

        # Raise: code cannot carry its own qualifier separator
        if "/" in code:
            raise ValidationError(f"Cannot create `CurrencyId` because $code '{code}' contains '/'", code=code)

        if qualifier is not None:
            # Raise: qualifier must be a non-empty string when given
            if not isinstance(qualifier, str) or not qualifier.strip():
                raise ValidationError(f"Cannot create `CurrencyId` because $qualifier must be a non-empty string, but provided value is: '{qualifier}'", qualifier=qualifier)
            qualifier = qualifier.strip()
            if is_iso_marker(qualifier):
                qualifier = None

        self._qualifier = qualifier
        self._code = canonical_code(code)

    @classmethod
    def split(cls, text: str) -> tuple[str | None, str]:
        """Split "qualifier/code" text into its raw parts (no normalization).

        Raises:
            ValidationError: If $text is not a string or is empty.
        """
        # Raise: only text can be split
        if not isinstance(text, str) or not text.strip():
            raise ValidationError(f"Cannot parse currency identifier because $text must be a non-empty string, but provided value is: '{text}'", text=text)

        text = text.strip()
        if "/" in text:
            qualifier, code = text.split("/", 1)
            return qualifier, code
        return None, text

    @classmethod
    def parse(cls, text: str | CurrencyId) -> CurrencyId:
        """Parse "CODE" or "qualifier/CODE" into a CurrencyId."""
        if isinstance(text, CurrencyId):
            return text
        qualifier, code = cls.split(text)
        return cls(code, qualifier)

    @classmethod
    def raw(cls, code: str, qualifier: str | None = None) -> CurrencyId:
        """Build an identifier without canonicalizing $code (used for case-preserving lookups)."""
        result = object.__new__(cls)
        result._qualifier = qualifier
        result._code = code
        return result

    @property
    def qualifier(self) -> str | None:
        return self._qualifier

    @property
    def code(self) -> str:
        return self._code

    @property
    def sort_key(self) -> tuple[int, str, str]:
        """Total order: unqualified ids first, then by qualifier, then by code."""
        if self._qualifier is None:
            return 0, "", self._code
        return 1, self._qualifier, self._code

    def __eq__(self, other) -> bool:
        if not isinstance(other, CurrencyId):
            return False
        return self._qualifier == other._qualifier and self._code == other._code

    def __hash__(self) -> int:
        return hash((self._qualifier, self._code))

    def __lt__(self, other: CurrencyId) -> bool:
        if not isinstance(other, CurrencyId):
            return NotImplemented
        return self.sort_key < other.sort_key

    def __str__(self) -> str:
        if self._qualifier is None:
            return self._code
        return f"{self._qualifier}/{self._code}"

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}('{self}')"


class Currency:
    """Immutable currency value.

    Identity (equality and hash) covers id, numeric id, scale, domain and kind. Weight and
    extra fields are metadata: they never take part in comparisons, and changing them
    returns a new value.

    Attributes:
        id (CurrencyId): Globally unique identifier within a registry.
        numeric (int | None): ISO numeric code, or None when the currency has none.
        scale (int | None): Nominal number of decimal places, or None for automatic scale.
        domain (str | None): Coarse classification (e.g. "ISO-4217", "CRYPTO").
        kind (str | None): Monetary nature (e.g. "FIAT", "DECENTRALIZED").
        weight (int): Tie-break priority among currencies sharing a code or numeric id
            (lower wins).
        extra (Mapping[str, Any]): Read-only propagated fields (e.g. from configuration).
    """

    __slots__ = ("_id", "_numeric", "_scale", "_domain", "_kind", "_weight", "_extra")

    def __init__(
        self,
        id: str | CurrencyId,
        numeric: int | None = None,
        scale: int | None = None,
        kind: str | None = None,
        domain: str | None = None,
        weight: int = 0,
        extra: Mapping[str, Any] | None = None,
    ):
        """Initialize a Currency.

        Args:
            id: Identifier as text ("PLN", "crypto/ETH", "ISO-4217/PLN") or CurrencyId.
            numeric: Numeric id; values <= 0 mean "no numeric id".
            scale: Nominal scale; None or -1 mean automatic scale.
            kind: Kind tag; upper-cased.
            domain: Explicit domain; upper-cased. When None the domain is derived from the
                qualifier, or inferred as ISO-4217 for 3-letter codes with a numeric id.
            weight: Tie-break weight.
            extra: Additional read-only fields.

        Raises:
            ValidationError: If any attribute is malformed, or an explicit $domain
                contradicts the domain implied by the qualifier.
        """
        if isinstance(id, CurrencyId):
            currency_id = id
            iso_marker = False
        else:
            raw_qualifier, raw_code = CurrencyId.split(id)
            iso_marker = is_iso_marker(raw_qualifier)
            currency_id = CurrencyId(raw_code, raw_qualifier)

        numeric = self._normalize_numeric(numeric)
        scale = self._normalize_scale(scale)
        explicit_domain = _normalize_tag(domain, "domain")

        # Raise: weight must be an integer
        if isinstance(weight, bool) or not isinstance(weight, int):
            raise ValidationError(f"Cannot create `Currency` because $weight must be an integer, but provided value is: {weight}", weight=weight)

        if currency_id.qualifier is not None:
            derived_domain = currency_id.qualifier.upper()
            # Raise: explicit domain must agree with the qualifier
            if explicit_domain is not None and explicit_domain != derived_domain:
                raise ValidationError(
                    f"Cannot create `Currency` because $domain '{explicit_domain}' contradicts qualifier of $id '{currency_id}'",
                    id=str(currency_id),
                    domain=explicit_domain,
                )
            resolved_domain = derived_domain
        elif explicit_domain is not None:
            resolved_domain = explicit_domain
        elif iso_marker:
            resolved_domain = ISO_4217
        elif numeric is not None and _is_iso_code(currency_id.code):
            resolved_domain = ISO_4217
        else:
            resolved_domain = None

        self._id = currency_id
        self._numeric = numeric
        self._scale = scale
        self._domain = resolved_domain
        self._kind = _normalize_tag(kind, "kind")
        self._weight = weight
        self._extra = MappingProxyType(dict(extra)) if extra else _EMPTY_EXTRA

    @staticmethod
    def _normalize_numeric(numeric: Any) -> int | None:
        if numeric is None:
            return None

        # Raise: numeric id must be an integer
        if isinstance(numeric, bool) or not isinstance(numeric, int):
            raise ValidationError(f"Cannot create `Currency` because $numeric must be an integer, but provided value is: {numeric!r}", numeric=numeric)

        return numeric if numeric > 0 else None

    @staticmethod
    def _normalize_scale(scale: Any) -> int | None:
        if scale is None or scale == -1:
            return None

        # Raise: scale must be a non-negative integer
        if isinstance(scale, bool) or not isinstance(scale, int) or scale < 0:
            raise ValidationError(f"Cannot create `Currency` because $scale must be a non-negative integer or None, but provided value is: {scale!r}", scale=scale)

        return scale

    @classmethod
    def from_map(cls, record: Mapping[str, Any], id: str | CurrencyId | None = None) -> Currency:
        """Create a currency from a plain record (as supplied by configuration data).

        Recognized keys: `id`, `numeric` (or `numeric_id`, `nr`), `scale` (or `sc`), `kind`,
        `domain`, `weight`. Remaining keys are kept in `extra`.

        Args:
            record: Currency attributes.
            id: Identifier used when $record has no `id` key.

        Raises:
            ValidationError: If the record has no id or any attribute is malformed.
        """
        # Raise: record must be a mapping
        if not isinstance(record, Mapping):
            raise ValidationError(f"Cannot create `Currency` from $record because it is not a mapping (got type '{type(record).__name__}')", record=record)

        fields = dict(record)
        currency_id = fields.pop("id", None) or id

        # Raise: every record needs an identifier
        if currency_id is None:
            raise ValidationError("Cannot create `Currency` from $record because it has no `id`", record=record)

        numeric = None
        for key in ("numeric", "numeric_id", "nr"):
            if key in fields:
                numeric = fields.pop(key)
        scale = None
        for key in ("scale", "sc"):
            if key in fields:
                scale = fields.pop(key)

        return cls(
            currency_id,
            numeric=numeric,
            scale=scale,
            kind=fields.pop("kind", None),
            domain=fields.pop("domain", None),
            weight=fields.pop("weight", 0) or 0,
            extra=fields,
        )

    def to_map(self) -> dict[str, Any]:
        """Plain record accepted by `from_map`; None attributes and zero weight are omitted."""
        record: dict[str, Any] = {"id": str(self._id), **self._extra}
        for name in ("numeric", "scale", "kind", "domain"):
            value = getattr(self, name)
            if value is not None:
                record[name] = value
        if self._weight:
            record["weight"] = self._weight
        return record

    def _replace(self, **changes: Any) -> Currency:
        """Copy with some slots replaced, skipping constructor inference."""
        result = object.__new__(self.__class__)
        for slot in self.__slots__:
            setattr(result, slot, changes.get(slot[1:], getattr(self, slot)))
        return result

    # region Properties

    @property
    def id(self) -> CurrencyId:
        return self._id

    @property
    def code(self) -> str:
        """Bare code without qualifier."""
        return self._id.code

    @property
    def qualifier(self) -> str | None:
        return self._id.qualifier

    @property
    def numeric(self) -> int | None:
        return self._numeric

    @property
    def scale(self) -> int | None:
        return self._scale

    @property
    def domain(self) -> str | None:
        return self._domain

    @property
    def kind(self) -> str | None:
        return self._kind

    @property
    def weight(self) -> int:
        return self._weight

    @property
    def extra(self) -> Mapping[str, Any]:
        return self._extra

    @property
    def is_auto_scaled(self) -> bool:
        """True when the currency has no nominal scale."""
        return self._scale is None

    @property
    def is_iso(self) -> bool:
        return self._domain == ISO_4217

    # endregion

    # region Copies

    def with_weight(self, weight: int) -> Currency:
        """Returns a copy with $weight; equality is unaffected."""
        # Raise: weight must be an integer
        if isinstance(weight, bool) or not isinstance(weight, int):
            raise ValidationError(f"Cannot call `with_weight` because $weight must be an integer, but provided value is: {weight}", weight=weight)
        return self if weight == self._weight else self._replace(weight=weight)

    def with_scale(self, scale: int | None) -> Currency:
        """Returns a copy with overridden scale (None = automatic)."""
        scale = self._normalize_scale(scale)
        return self if scale == self._scale else self._replace(scale=scale)

    def with_extra(self, extra: Mapping[str, Any] | None) -> Currency:
        return self._replace(extra=MappingProxyType(dict(extra)) if extra else _EMPTY_EXTRA)

    # endregion

    def _key(self) -> tuple:
        return self._id, self._numeric, self._scale, self._domain, self._kind

    def __eq__(self, other) -> bool:
        if not isinstance(other, Currency):
            return False
        return self._key() == other._key()

    def __hash__(self) -> int:
        return hash(self._key())

    def __str__(self) -> str:
        return str(self._id)

    def __repr__(self) -> str:
        scale = "auto" if self._scale is None else self._scale
        return f"{self.__class__.__name__}(id='{self._id}', numeric={self._numeric}, scale={scale}, domain={self._domain}, kind={self._kind}, weight={self._weight})"
