from __future__ import annotations

from typing import Any


class MonetaryError(Exception):
    """Base class for all errors raised by `suite_money`.

    Every error carries a $data dictionary with the values that caused it, so callers can
    inspect the failure without parsing the message.
    """

    def __init__(self, message: str, **data: Any):
        super().__init__(message)
        self.data: dict[str, Any] = data


class ValidationError(MonetaryError, ValueError):
    """Malformed construction input, domain/qualifier conflict or invalid hierarchy definition."""


class DuplicateCurrency(MonetaryError, ValueError):
    """Currency with the same id is already registered and update mode was not requested."""

    def __init__(self, message: str, existing: Any = None, **data: Any):
        super().__init__(message, existing=existing, **data)
        self.existing = existing


class CurrencyNotFound(MonetaryError, LookupError):
    """Strict resolution miss or a registry mutator called for an unknown currency."""


class CurrencyMismatch(MonetaryError, ValueError):
    """Operation requires amounts of the same currency."""


class MultipleMonetaryOperands(MonetaryError, TypeError):
    """More than one monetary operand was given where at most one is allowed."""


class InexactRounding(MonetaryError, ArithmeticError):
    """Result cannot be represented at the requested scale without a rounding mode."""


class InvalidRepresentation(MonetaryError, ValueError):
    """Wire value has a wrong shape or lacks a required field."""


class CurrencyRequired(MonetaryError, ValueError):
    """Money cannot be created because no currency was given and no default is set."""
