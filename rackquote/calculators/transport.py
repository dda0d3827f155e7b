from __future__ import annotations

from decimal import Decimal
from typing import List, Sequence

import structlog

from ..domain.models import CalculationMode, Supplier, TransportItem
from ..engine.context import TransportCost

D = Decimal

logger = structlog.get_logger(__name__)

SKIP_EXCLUDED = "excluded"
SKIP_SUPPLIER_OFF = "supplier_not_included"
SKIP_GROUP_OFF = "no_active_supplier_in_group"


def truck_cost(item: TransportItem) -> D:
    """trucks * price per truck; vendor-organized transport is inside the material price."""
    if item.is_supplier_organized:
        return D("0")
    return item.trucks_count * item.price_per_truck


def _lookup(suppliers: Sequence[Supplier], supplier_id: str):
    for s in suppliers:
        if s.id == supplier_id:
            return s
    return None


def supplier_skip_reason(item: TransportItem, suppliers: Sequence[Supplier]):
    """
    Single-supplier entry: skipped when that supplier is switched off.
    Merged entry: skipped only when none of its suppliers is still included.
    """
    if item.supplier_id:
        s = _lookup(suppliers, item.supplier_id)
        if s is None:
            logger.warning("transport_supplier_missing", transport_id=item.id, supplier_id=item.supplier_id)
        elif not s.is_included:
            return SKIP_SUPPLIER_OFF

    if item.linked_supplier_ids:
        active = False
        for sid in item.linked_supplier_ids:
            s = _lookup(suppliers, sid)
            if s is not None and s.is_included:
                active = True
                break
        if not active:
            return SKIP_GROUP_OFF

    return None


def calc_transport_cost(
    item: TransportItem,
    suppliers: Sequence[Supplier],
    mode: CalculationMode = CalculationMode.INITIAL,
) -> TransportCost:
    """
    Cost of one transport entry in its own currency (final invoice currency
    when a Final override is set). `cost` is the would-be amount; check
    `skipped_reason` before adding it to a total.
    """
    currency = item.currency
    if mode == CalculationMode.FINAL and item.final_cost_override is not None:
        cost = item.final_cost_override
        if item.final_currency is not None:
            currency = item.final_currency
    else:
        cost = truck_cost(item)

    reason = supplier_skip_reason(item, suppliers)
    if reason is None and item.is_excluded:
        reason = SKIP_EXCLUDED

    return TransportCost(transport_id=item.id, currency=currency, cost=cost, skipped_reason=reason)


def calc_transport_costs(
    transport: Sequence[TransportItem],
    suppliers: Sequence[Supplier],
    mode: CalculationMode = CalculationMode.INITIAL,
) -> List[TransportCost]:
    return [calc_transport_cost(t, suppliers, mode) for t in transport]
