from __future__ import annotations

from decimal import Decimal
from typing import Union

from ..domain.models import Currency, to_decimal

D = Decimal

CurrencyLike = Union[Currency, str]


class UnknownCurrencyError(ValueError):
    """Raised for a currency outside PLN/EUR. Data error, not user input."""


def as_currency(value: CurrencyLike) -> Currency:
    if isinstance(value, Currency):
        return value
    try:
        return Currency(str(value).strip().upper())
    except ValueError:
        raise UnknownCurrencyError(f"Unsupported currency: {value!r}") from None


def convert(amount, from_currency: CurrencyLike, to_currency: CurrencyLike, exchange_rate) -> D:
    """
    Convert between PLN and EUR.

    exchange_rate = PLN per 1 EUR (NBP table C ask, e.g. 4.30).
    A zero rate never divides: PLN -> EUR gives 0.
    """
    src = as_currency(from_currency)
    dst = as_currency(to_currency)
    value = to_decimal(amount)
    rate = to_decimal(exchange_rate)

    if src == dst:
        return value
    if src == Currency.EUR and dst == Currency.PLN:
        return value * rate
    if src == Currency.PLN and dst == Currency.EUR:
        if rate == 0:
            return D("0")
        return value / rate

    raise UnknownCurrencyError(f"No conversion path {src.value} -> {dst.value}")
