from __future__ import annotations

import logging
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any, Callable, Iterator

from suite_money.config import get_settings

logger = logging.getLogger(__name__)

WarningsHook = Callable[[str, dict[str, Any]], None]


def log_warning(message: str, data: dict[str, Any]) -> None:
    """Default hook: report the inconsistency through `logging`."""
    logger.warning(f"{message} {data}")


_UNSET = object()

_enabled_var: ContextVar[object] = ContextVar("suite_money_warn_on_inconsistency", default=_UNSET)
_hook_var: ContextVar[WarningsHook | None] = ContextVar("suite_money_warnings_hook", default=log_warning)


def warnings_enabled() -> bool:
    enabled = _enabled_var.get()
    if enabled is _UNSET:
        return get_settings().warn_on_inconsistency
    return bool(enabled)


@contextmanager
def inconsistency_warnings(enabled: bool = True, hook: WarningsHook | None = None) -> Iterator[None]:
    """Enable (or disable) registry inconsistency reports for the enclosed block.

    Args:
        enabled: Whether inconsistencies are reported.
        hook: Function receiving the message and a data dictionary. When None, the currently
            installed hook (by default `log_warning`) is kept.
    """
    enabled_token = _enabled_var.set(enabled)
    hook_token = _hook_var.set(hook) if hook is not None else None
    try:
        yield
    finally:
        if hook_token is not None:
            _hook_var.reset(hook_token)
        _enabled_var.reset(enabled_token)


def inconsistency_warning(message: str, **data: Any) -> None:
    """Report an index inconsistency without aborting the current operation.

    Does nothing unless warnings are enabled. Errors raised by the hook are logged at DEBUG
    level and otherwise ignored.
    """
    if not warnings_enabled():
        return

    hook = _hook_var.get()
    if hook is None:
        return

    try:
        hook(f"Registry inconsistency: {message}", data)
    except Exception as e:
        logger.debug(f"Inconsistency warnings hook failed: {e}")
