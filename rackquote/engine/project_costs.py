from __future__ import annotations

from decimal import Decimal

import structlog

from ..calculators.installation import custom_items_value, evaluate_stage
from ..calculators.supplier_cost import calc_supplier_cost
from ..calculators.transport import calc_transport_cost
from ..core.settings import get_settings
from ..domain.models import CalculationData, CalculationMode, Currency, to_decimal
from ..explain.breakdown_builder import Breakdown
from .context import CostBreakdown, Money
from .currency import CurrencyLike, as_currency, convert

D = Decimal

logger = structlog.get_logger(__name__)

IN_SUPPLIERS = "w tym w kosztach dostawców"


class _Totals:
    """Running sums for one calculation (offer currency)."""

    def __init__(self, currency: Currency, rate: D):
        self.currency = currency
        self.rate = rate
        self.excluded = D("0")
        self.breakdown = Breakdown()

    def to_offer(self, amount: D, currency: CurrencyLike) -> D:
        return convert(amount, currency, self.currency, self.rate)

    def money(self, amount: D) -> Money:
        return Money(self.currency.value, amount)


def _suppliers(data: CalculationData, t: _Totals, mode: CalculationMode, orm_fee_percent: D):
    total = D("0")
    fees = D("0")
    for s in data.suppliers:
        sc = calc_supplier_cost(s, orm_fee_percent, mode)
        if sc.excluded:
            t.excluded += t.to_offer(sc.excluded, s.currency)
        if not s.is_included:
            continue
        total += t.to_offer(sc.cost, s.currency)
        fees += t.to_offer(sc.orm_fee, s.currency)
    return total, fees


def _transport(data: CalculationData, t: _Totals, mode: CalculationMode) -> D:
    total = D("0")
    for item in data.transport:
        tc = calc_transport_cost(item, data.suppliers, mode)
        value = t.to_offer(tc.cost, tc.currency)
        if tc.is_skipped:
            t.excluded += value
            continue
        total += value
    return total


def _other(data: CalculationData, t: _Totals, mode: CalculationMode) -> D:
    total = D("0")
    for c in data.other_costs:
        cost, currency = c.price, c.currency
        if mode == CalculationMode.FINAL and c.final_cost_override is not None:
            cost = c.final_cost_override
            if c.final_currency is not None:
                currency = c.final_currency
        value = t.to_offer(cost, currency)
        if c.is_excluded:
            t.excluded += value
            continue
        total += value
    return total


def _installation(data: CalculationData, t: _Totals, mode: CalculationMode) -> D:
    inst = data.installation

    if mode == CalculationMode.FINAL:
        if inst.final_installation_costs:
            t.breakdown.add_meta("INSTALLATION_FINAL", "Montaż: koszty z faktur (Final)")
            return sum(
                (t.to_offer(i.price, i.currency) for i in inst.final_installation_costs),
                D("0"),
            )
        if inst.final_cost_override is not None:
            t.breakdown.add_meta("INSTALLATION_FINAL", "Montaż: ręczna kwota końcowa (Final)")
            return t.to_offer(inst.final_cost_override, Currency.PLN)

    stages_pln = D("0")
    excluded_pln = D("0")
    for stage in inst.stages:
        res = evaluate_stage(stage, data)
        excluded_pln += res.excluded_custom_items
        if res.is_excluded:
            excluded_pln += res.cost
            continue
        stages_pln += res.cost

    global_pln = custom_items_value(inst.custom_items)
    excluded_pln += custom_items_value(inst.custom_items, excluded=True)

    t.excluded += t.to_offer(excluded_pln, Currency.PLN)
    # PLN is the installation base currency: convert once
    return t.to_offer(stages_pln + global_pln + inst.other_installation_costs, Currency.PLN)


def calculate_project_costs(
    data: CalculationData,
    exchange_rate,
    offer_currency: CurrencyLike,
    mode: CalculationMode = CalculationMode.INITIAL,
    orm_fee_percent=None,
    target_margin=None,
    manual_price=None,
    *,
    nameplate_unit_price=None,
) -> CostBreakdown:
    """
    Cost breakdown of one calculation snapshot, in the offer currency.

    total = suppliers + transport + other + installation
    Nameplates (qty * 19 PLN) are part of `suppliers`. ORM fees are already
    inside `suppliers` and only reported in `orm_fee`. `excluded` collects what
    the what-if flags removed and is never added to total.

    target_margin/manual_price do not change costs; they are accepted so callers
    can pass the full quote state (price derivation: calculators.pricing).
    """
    settings = get_settings()
    currency = as_currency(offer_currency)
    rate = to_decimal(exchange_rate)
    fee_pct = settings.orm_fee_percent if orm_fee_percent is None else to_decimal(orm_fee_percent)
    nameplate_price = (
        settings.nameplate_unit_price_pln if nameplate_unit_price is None else to_decimal(nameplate_unit_price)
    )
    mode = CalculationMode(mode)

    t = _Totals(currency, rate)
    if rate == 0 and currency == Currency.EUR:
        t.breakdown.add_warning("RATE_ZERO", "Kurs EUR = 0: kwoty PLN przeliczone na 0 EUR")

    suppliers, orm_fee = _suppliers(data, t, mode, fee_pct)
    nameplates = t.to_offer(data.nameplate_qty * nameplate_price, Currency.PLN)
    suppliers += nameplates
    transport = _transport(data, t, mode)
    other = _other(data, t, mode)
    installation = _installation(data, t, mode)

    total = suppliers + transport + other + installation

    b = t.breakdown
    b.add_step("SUPPLIERS", "Dostawcy", t.money(suppliers))
    if nameplates:
        b.add_meta("NAMEPLATES", "Tabliczki", t.money(nameplates), note=IN_SUPPLIERS)
    if orm_fee:
        b.add_meta("ORM_FEE", f"Opłata ORM {fee_pct}%", t.money(orm_fee), note=IN_SUPPLIERS)
    b.add_step("TRANSPORT", "Transport", t.money(transport))
    b.add_step("OTHER", "Inne koszty", t.money(other))
    b.add_step("INSTALLATION", "Montaż", t.money(installation))
    b.add_step("TOTAL", "Razem koszt", t.money(total))
    if t.excluded:
        b.add_meta("EXCLUDED", "Wykluczone (what-if)", t.money(t.excluded))

    logger.debug(
        "project_costs",
        mode=mode.value,
        currency=currency.value,
        suppliers=str(suppliers),
        transport=str(transport),
        other=str(other),
        installation=str(installation),
        total=str(total),
        excluded=str(t.excluded),
    )

    return CostBreakdown(
        currency=currency,
        suppliers=suppliers,
        transport=transport,
        other=other,
        installation=installation,
        orm_fee=orm_fee,
        financing=D("0"),
        total=total,
        excluded=t.excluded,
        steps=b.as_strings(),
    )
