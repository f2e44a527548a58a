__version__ = "0.1.0"

from suite_money.domain.currency import Currency, CurrencyId
from suite_money.domain.money import Money, with_currency
from suite_money.registry.registry import Registry
from suite_money.registry.resolution import resolve, resolve_soft
from suite_money.registry.shared import current, using_registry
from suite_money.scale import RoundingMode, rescaling, with_rounding

__all__ = [
    "Currency",
    "CurrencyId",
    "Money",
    "Registry",
    "RoundingMode",
    "current",
    "rescaling",
    "resolve",
    "resolve_soft",
    "using_registry",
    "with_currency",
    "with_rounding",
]
