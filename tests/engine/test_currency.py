from decimal import Decimal

import pytest

from rackquote.domain.models import Currency
from rackquote.engine.currency import UnknownCurrencyError, as_currency, convert

D = Decimal


@pytest.mark.parametrize("currency", ["PLN", "EUR", Currency.PLN, Currency.EUR])
def test_same_currency_is_identity(currency):
    assert convert(D("123.45"), currency, currency, D("4.30")) == D("123.45")
    assert convert(D("123.45"), currency, currency, D("0")) == D("123.45")


def test_eur_to_pln_multiplies():
    assert convert(D("100"), "EUR", "PLN", D("4.30")) == D("430.00")


def test_pln_to_eur_divides():
    assert convert(D("430"), "PLN", "EUR", D("4.30")) == D("100")


def test_pln_to_eur_zero_rate_is_zero():
    assert convert(D("999"), Currency.PLN, Currency.EUR, 0) == D("0")


def test_round_trip_within_tolerance():
    rate = D("4.3271")
    back = convert(convert(D("1234.56"), "EUR", "PLN", rate), "PLN", "EUR", rate)
    assert abs(back - D("1234.56")) < D("0.0000001")


def test_lenient_amount_and_rate():
    assert convert("12,5", "EUR", "PLN", "4") == D("50.0")
    assert convert(None, "EUR", "PLN", D("4.30")) == D("0")


def test_unknown_currency_raises_value_error():
    with pytest.raises(UnknownCurrencyError):
        convert(D("1"), "USD", "PLN", D("4"))
    with pytest.raises(ValueError):
        as_currency("GBP")


def test_as_currency_normalizes_case():
    assert as_currency(" eur ") is Currency.EUR
