from __future__ import annotations

from types import MappingProxyType
from typing import Any, Iterable, Mapping

from suite_money.errors import ValidationError


def normalize_tag(tag: Any) -> str:
    """Canonical form of a classification tag (trimmed, upper-case text)."""
    # Raise: tags must be non-empty text
    if not isinstance(tag, str) or not tag.strip():
        raise ValidationError(f"Cannot use $tag ({tag!r}) as a classification tag because it is not a non-empty string", tag=tag)
    return tag.strip().upper()


def _parents_of(value: Any) -> list[str]:
    """Parents listed for one child in a parent-map, sorted."""
    if isinstance(value, str) or not isinstance(value, Iterable):
        return [normalize_tag(value)]
    return sorted({normalize_tag(v) for v in value})


class CurrencyHierarchy:
    """Immutable directed acyclic graph of classification tags.

    A tag may have several parents. Ancestors are precomputed, so `is_a` queries are plain
    set lookups. `derive` returns a new hierarchy and never mutates the receiver.

    Example:
        ```python
        kinds = CurrencyHierarchy.from_parent_map({"STABLE": "FIDUCIARY", "FIAT": "FIDUCIARY"})
        kinds.is_a("STABLE", "FIDUCIARY")  # True
        ```
    """

    __slots__ = ("_parents", "_ancestors")

    def __init__(self):
        self._parents: Mapping[str, frozenset[str]] = MappingProxyType({})
        self._ancestors: Mapping[str, frozenset[str]] = MappingProxyType({})

    @classmethod
    def _of(cls, parents: dict[str, frozenset[str]], ancestors: dict[str, frozenset[str]]) -> CurrencyHierarchy:
        result = cls()
        result._parents = MappingProxyType(parents)
        result._ancestors = MappingProxyType(ancestors)
        return result

    @classmethod
    def from_parent_map(cls, parent_map: Mapping[Any, Any]) -> CurrencyHierarchy:
        """Build a hierarchy from a mapping of child tag to one parent or a collection of parents.

        Edges are added in sorted order so that malformed maps (e.g. with cycles) always fail
        on the same edge.

        Raises:
            ValidationError: If a tag is invalid, a tag is its own parent, or edges form a cycle.
        """
        edges = sorted((normalize_tag(child), parent) for child, parents in parent_map.items() for parent in _parents_of(parents))

        hierarchy = cls()
        for child, parent in edges:
            hierarchy = hierarchy.derive(child, parent)
        return hierarchy

    @classmethod
    def coerce(cls, value: Any, hierarchy_type: str) -> CurrencyHierarchy:
        """Coerce None, a prebuilt hierarchy, a prebuilt graph map or a parent-map.

        A prebuilt graph map is a mapping with a `parents` key holding a parent-map.

        Raises:
            ValidationError: If $value is of unsupported shape.
        """
        if value is None:
            return cls()
        if isinstance(value, CurrencyHierarchy):
            return value
        if isinstance(value, Mapping):
            if "parents" in value and isinstance(value["parents"], Mapping):
                return cls.from_parent_map(value["parents"])
            return cls.from_parent_map(value)

        raise ValidationError(f"Invalid currency hierarchy definition for $hierarchy_type '{hierarchy_type}'", type=hierarchy_type, value=value)

    def derive(self, child: str, parent: str) -> CurrencyHierarchy:
        """Returns a new hierarchy with an added child -> parent edge.

        Raises:
            ValidationError: If the edge is a self-loop or would create a cycle.
        """
        child, parent = normalize_tag(child), normalize_tag(parent)

        # Raise: a tag cannot be its own parent
        if child == parent:
            raise ValidationError(f"Cannot derive $child '{child}' from itself", child=child, parent=parent)

        # Raise: edge would make $child its own ancestor
        if child in self.ancestors(parent):
            raise ValidationError(f"Cannot derive $child '{child}' from $parent '{parent}' because it would create a cycle", child=child, parent=parent)

        if parent in self._parents.get(child, frozenset()):
            return self

        parents = dict(self._parents)
        parents[child] = parents.get(child, frozenset()) | {parent}

        ancestors = dict(self._ancestors)
        inherited = {parent} | self.ancestors(parent)
        for tag in {child} | self.descendants(child):
            ancestors[tag] = ancestors.get(tag, frozenset()) | inherited
        return self._of(parents, ancestors)

    @property
    def tags(self) -> frozenset[str]:
        """All tags taking part in at least one edge."""
        result = set(self._parents)
        for parents in self._parents.values():
            result |= parents
        return frozenset(result)

    def parents(self, tag: str) -> frozenset[str]:
        return self._parents.get(normalize_tag(tag), frozenset())

    def ancestors(self, tag: str) -> frozenset[str]:
        return self._ancestors.get(normalize_tag(tag), frozenset())

    def descendants(self, tag: str) -> frozenset[str]:
        tag = normalize_tag(tag)
        return frozenset(child for child, ancestors in self._ancestors.items() if tag in ancestors)

    def is_a(self, child: str | None, parent: str | None) -> bool:
        """True if $child equals $parent or $parent is one of its ancestors."""
        if child is None or parent is None:
            return False
        child, parent = normalize_tag(child), normalize_tag(parent)
        if child == parent:
            return True
        return parent in self._ancestors.get(child, frozenset())

    def to_parent_map(self) -> dict[str, list[str]]:
        return {child: sorted(parents) for child, parents in sorted(self._parents.items())}

    def __bool__(self) -> bool:
        return bool(self._parents)

    def __eq__(self, other) -> bool:
        if not isinstance(other, CurrencyHierarchy):
            return False
        return dict(self._parents) == dict(other._parents)

    def __hash__(self) -> int:
        return hash(frozenset(self._parents.items()))

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.to_parent_map()})"


class CurrencyHierarchies:
    """The three classification hierarchies of a registry: domain, kind and traits."""

    __slots__ = ("_domain", "_kind", "_traits")

    def __init__(self, domain: CurrencyHierarchy | None = None, kind: CurrencyHierarchy | None = None, traits: CurrencyHierarchy | None = None):
        self._domain = domain or CurrencyHierarchy()
        self._kind = kind or CurrencyHierarchy()
        self._traits = traits or CurrencyHierarchy()

    @classmethod
    def coerce(cls, value: Any) -> CurrencyHierarchies:
        """Coerce None, a CurrencyHierarchies or a mapping with `domain`/`kind`/`traits` keys.

        Raises:
            ValidationError: If $value (or one of its members) is of unsupported shape.
        """
        if value is None:
            return cls()
        if isinstance(value, CurrencyHierarchies):
            return value
        if isinstance(value, Mapping):
            return cls(
                domain=CurrencyHierarchy.coerce(value.get("domain"), "domain"),
                kind=CurrencyHierarchy.coerce(value.get("kind"), "kind"),
                traits=CurrencyHierarchy.coerce(value.get("traits"), "traits"),
            )

        raise ValidationError("Invalid currency hierarchies definition", value=value)

    @property
    def domain(self) -> CurrencyHierarchy:
        return self._domain

    @property
    def kind(self) -> CurrencyHierarchy:
        return self._kind

    @property
    def traits(self) -> CurrencyHierarchy:
        return self._traits

    def __eq__(self, other) -> bool:
        if not isinstance(other, CurrencyHierarchies):
            return False
        return (self._domain, self._kind, self._traits) == (other._domain, other._kind, other._traits)

    def __hash__(self) -> int:
        return hash((self._domain, self._kind, self._traits))

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(domain={self._domain!r}, kind={self._kind!r}, traits={self._traits!r})"
