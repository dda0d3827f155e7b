from __future__ import annotations

from decimal import Decimal
from typing import Optional

from ..core.settings import get_settings
from ..domain.models import CalculationMode, Supplier, SupplierItem, to_decimal
from ..engine.context import SupplierCost

D = Decimal

# ORM suppliers quote list prices; we buy at half.
ORM_LIST_PRICE_FACTOR = D("0.5")


def effective_unit_price(supplier: Supplier, item: SupplierItem) -> D:
    if supplier.is_orm:
        return item.unit_price * ORM_LIST_PRICE_FACTOR
    return item.unit_price


def item_value(supplier: Supplier, item: SupplierItem) -> D:
    """Line value before discount/markup/fee (own currency)."""
    return item.quantity * effective_unit_price(supplier, item)


def _fee_percent(value) -> D:
    return get_settings().orm_fee_percent if value is None else to_decimal(value)


def _apply_adjustments(supplier: Supplier, subtotal: D, orm_fee_percent: D):
    discounted = subtotal * (1 - supplier.discount / D("100"))
    adjusted = discounted * (1 + (supplier.extra_markup_percent or D("0")) / D("100"))
    fee = adjusted * (orm_fee_percent / D("100")) if supplier.is_orm else D("0")
    return discounted, adjusted, fee


def net_supplier_value(supplier: Supplier, subtotal: D, orm_fee_percent: Optional[D] = None) -> D:
    """Run an arbitrary subtotal through discount -> markup -> ORM fee."""
    pct = _fee_percent(orm_fee_percent)
    _, adjusted, fee = _apply_adjustments(supplier, subtotal, pct)
    return adjusted + fee


def calc_supplier_cost(
    supplier: Supplier,
    orm_fee_percent: Optional[D] = None,
    mode: CalculationMode = CalculationMode.INITIAL,
) -> SupplierCost:
    """
    Supplier net cost in its own currency.

      subtotal   = sum(qty * unit_price [* 0.5 if ORM]) over non-excluded items
      discounted = subtotal * (1 - discount/100)
      adjusted   = discounted * (1 + extraMarkupPercent/100)
      orm_fee    = adjusted * ormFeePercent/100 (ORM only)
      cost       = adjusted + orm_fee

    No floor: discount > 100% gives a negative cost and that is accepted input.
    """
    pct = _fee_percent(orm_fee_percent)

    if mode == CalculationMode.FINAL and supplier.final_cost_override is not None:
        override = supplier.final_cost_override
        if not supplier.is_included:
            return SupplierCost(
                supplier_id=supplier.id,
                currency=supplier.currency,
                excluded=override,
                is_override=True,
            )
        return SupplierCost(
            supplier_id=supplier.id,
            currency=supplier.currency,
            subtotal=override,
            discounted=override,
            adjusted=override,
            cost=override,
            is_override=True,
        )

    active = D("0")
    flagged = D("0")
    for item in supplier.items:
        if item.is_excluded:
            flagged += item_value(supplier, item)
        else:
            active += item_value(supplier, item)

    discounted, adjusted, fee = _apply_adjustments(supplier, active, pct)
    excluded = net_supplier_value(supplier, flagged, pct) if flagged else D("0")

    if not supplier.is_included:
        # whole supplier switched off: everything it would have cost is "excluded"
        return SupplierCost(
            supplier_id=supplier.id,
            currency=supplier.currency,
            subtotal=active,
            discounted=discounted,
            adjusted=adjusted,
            orm_fee=D("0"),
            cost=D("0"),
            excluded=adjusted + fee + excluded,
        )

    return SupplierCost(
        supplier_id=supplier.id,
        currency=supplier.currency,
        subtotal=active,
        discounted=discounted,
        adjusted=adjusted,
        orm_fee=fee,
        cost=adjusted + fee,
        excluded=excluded,
    )
