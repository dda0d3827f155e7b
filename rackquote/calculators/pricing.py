from __future__ import annotations

from decimal import Decimal
from typing import Optional

from ..core.settings import get_settings
from ..domain.models import Currency, PaymentTerms, to_decimal
from ..engine.context import MarginLevel, Money, PaymentSchedule, PriceResult
from ..engine.currency import CurrencyLike, as_currency, convert

D = Decimal

# margin >= 100% has no real price; show a big finite number instead of inf/negative
MARGIN_OVERFLOW_MULTIPLIER = D("999")


def derive_price(total, target_margin=None, manual_price=None) -> PriceResult:
    """
    Sell price from cost.

    Margin mode (manual_price is None):
        sell = total / (1 - margin/100)
    Manual mode:
        sell = manual_price, margin = (1 - total/sell) * 100 (0 when sell is 0)
    """
    cost = to_decimal(total)

    if manual_price is not None:
        sell = to_decimal(manual_price)
        margin = (1 - cost / sell) * D("100") if sell != 0 else D("0")
        return PriceResult(selling_price=sell, margin_percent=margin, profit=sell - cost, is_manual=True)

    margin = to_decimal(target_margin)
    margin_decimal = margin / D("100")
    if margin_decimal >= 1:
        sell = cost * MARGIN_OVERFLOW_MULTIPLIER if cost > 0 else D("0")
    else:
        sell = cost / (1 - margin_decimal)

    return PriceResult(selling_price=sell, margin_percent=margin, profit=sell - cost)


def margin_level(margin_percent, critical_pct=None, warning_pct=None) -> MarginLevel:
    settings = get_settings()
    critical = settings.margin_critical_pct if critical_pct is None else to_decimal(critical_pct)
    warning = settings.margin_warning_pct if warning_pct is None else to_decimal(warning_pct)

    m = to_decimal(margin_percent)
    if m < critical:
        return MarginLevel.CRITICAL
    if m < warning:
        return MarginLevel.WARNING
    return MarginLevel.OK


def payment_schedule(selling_price, terms: Optional[PaymentTerms] = None) -> PaymentSchedule:
    terms = terms or PaymentTerms()
    sell = to_decimal(selling_price)

    advance1 = sell * (terms.advance1_percent / D("100"))
    advance2 = sell * (terms.advance2_percent / D("100"))
    return PaymentSchedule(
        advance1_amount=advance1,
        advance2_amount=advance2,
        final_percent=D("100") - terms.advance1_percent - terms.advance2_percent,
        final_amount=sell - advance1 - advance2,
    )


def to_client_currency(amount, offer_currency: CurrencyLike, client_currency: CurrencyLike, exchange_rate) -> Money:
    dst: Currency = as_currency(client_currency)
    return Money(dst.value, convert(amount, offer_currency, dst, exchange_rate))
