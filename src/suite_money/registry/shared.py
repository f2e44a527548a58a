from __future__ import annotations

import logging
from contextlib import contextmanager
from contextvars import ContextVar
from threading import Lock
from typing import Any, Callable, Generic, Iterable, Iterator, Mapping, TypeVar

from suite_money.domain.currency import Currency
from suite_money.errors import ValidationError
from suite_money.registry.registry import CurrencyRef, Registry

logger = logging.getLogger(__name__)

T = TypeVar("T")


class AtomicReference(Generic[T]):
    """Thread-safe cell holding a single value, updated by compare-and-set.

    Reads never block writers for long: the lock only guards the identity check and the
    assignment. `swap` computes the new value outside the lock and retries when another
    thread won the race, so update functions must be pure.
    """

    __slots__ = ("_value", "_lock")

    def __init__(self, value: T):
        self._value = value
        self._lock = Lock()

    def get(self) -> T:
        return self._value

    def set(self, value: T) -> None:
        with self._lock:
            self._value = value

    def compare_and_set(self, expected: T, new: T) -> bool:
        """Store $new only if the current value is (identical to) $expected."""
        with self._lock:
            if self._value is not expected:
                return False
            self._value = new
            return True

    def swap(self, fn: Callable[..., T], *args: Any) -> T:
        """Replace the value with `fn(current, *args)`, retrying on contention.

        Returns:
            The value that was stored.
        """
        attempt = 0
        while True:
            current = self._value
            new = fn(current, *args)
            if self.compare_and_set(current, new):
                return new
            attempt += 1
            logger.debug(f"Compare-and-set lost the race, retrying (attempt {attempt})")


# region Global registry

_global_ref: AtomicReference[Registry | None] = AtomicReference(None)
_init_lock = Lock()

_scoped_registry_var: ContextVar[Registry | None] = ContextVar("suite_money_registry", default=None)


def _as_registry(value: Registry | Mapping[str, Any]) -> Registry:
    if isinstance(value, Registry):
        return value
    if isinstance(value, Mapping):
        return Registry.from_config(value)

    # Raise: only registries and configuration data can become the registry
    raise ValidationError(f"Cannot use $value as a registry (got type '{type(value).__name__}')", value=value)


def global_state() -> Registry:
    """Returns the global registry, loading the default data on first use."""
    registry = _global_ref.get()
    if registry is not None:
        return registry

    with _init_lock:
        registry = _global_ref.get()
        if registry is None:
            from suite_money.registry.loader import load_registry

            registry = load_registry()
            _global_ref.compare_and_set(None, registry)
            registry = _global_ref.get()
            logger.info(f"Initialized global currency registry: {registry}")
    return registry


def set_global(registry: Registry | Mapping[str, Any]) -> Registry:
    """Replace the global registry by a Registry or configuration data.

    Raises:
        ValidationError: If $registry is neither a Registry nor valid configuration data.
    """
    registry = _as_registry(registry)
    _global_ref.set(registry)
    return registry


def reset_global() -> None:
    """Drop the global registry; the next access loads the default data again."""
    _global_ref.set(None)


def update_global(fn: Callable[..., Registry], *args: Any) -> Registry:
    """Atomically replace the global registry by `fn(registry, *args)`.

    $fn may run more than once under contention and must not have side effects.
    """
    global_state()
    return _global_ref.swap(fn, *args)


def current() -> Registry:
    """Registry bound to the current scope by `using_registry`, or the global one."""
    scoped = _scoped_registry_var.get()
    return scoped if scoped is not None else global_state()


@contextmanager
def using_registry(registry: Registry | Mapping[str, Any]) -> Iterator[Registry]:
    """Make $registry the current registry for the enclosed block (this thread/task only)."""
    token = _scoped_registry_var.set(_as_registry(registry))
    try:
        yield _scoped_registry_var.get()
    finally:
        _scoped_registry_var.reset(token)


# endregion

# region Global mutators


def register_global(
    currency: Currency,
    country_ids: str | Iterable[str] | None = None,
    localized: Mapping[str, Mapping[str, Any]] | None = None,
    update: bool = False,
) -> Registry:
    return update_global(Registry.register, currency, country_ids, localized, update)


def unregister_global(ref: CurrencyRef) -> Registry:
    return update_global(Registry.unregister, ref)


def add_countries_global(ref: CurrencyRef, country_ids: str | Iterable[str]) -> Registry:
    return update_global(Registry.add_countries, ref, country_ids)


def remove_countries_global(country_ids: str | Iterable[str]) -> Registry:
    return update_global(Registry.remove_countries, country_ids)


def set_weight_global(ref: CurrencyRef, weight: int) -> Registry:
    return update_global(Registry.set_weight, ref, weight)


def set_traits_global(ref: CurrencyRef, traits: str | Iterable[str] | None) -> Registry:
    return update_global(Registry.set_traits, ref, traits)


# endregion
