"""
Variants: named groups of cost entries toggled together for what-if quotes.

If any variant is INCLUDED, the union of INCLUDED variants is a whitelist and
every other entry gets excluded. Otherwise the union of EXCLUDED variants is a
blacklist. NEUTRAL variants never change anything.

All exclusion flags are recomputed from scratch on every call; hand-set flags
do not survive.
"""
from __future__ import annotations

from decimal import Decimal
from typing import Iterable, Set, Tuple

import structlog

from ..calculators.installation import calculate_stage_cost
from ..calculators.supplier_cost import effective_unit_price
from ..calculators.transport import truck_cost
from ..domain.models import (
    CalculationData,
    Currency,
    ProjectVariant,
    VariantItemType,
    VariantStatus,
)
from ..engine.currency import CurrencyLike, convert

D = Decimal

logger = structlog.get_logger(__name__)

GROUP_PREFIX = "group_supp_"


def _collect_ids(variants: Iterable[ProjectVariant], data: CalculationData) -> Set[str]:
    ids: Set[str] = set()
    for v in variants:
        for vi in v.items:
            if vi.type == VariantItemType.SUPPLIER_ITEM and vi.id.startswith(GROUP_PREFIX):
                supplier = data.find_supplier(vi.id[len(GROUP_PREFIX):])
                if supplier is None:
                    logger.warning("variant_supplier_missing", variant_id=v.id, item_id=vi.id)
                    continue
                ids.update(i.id for i in supplier.items)
            elif vi.type in (
                VariantItemType.SUPPLIER_ITEM,
                VariantItemType.TRANSPORT,
                VariantItemType.OTHER,
                VariantItemType.STAGE,
            ):
                ids.add(vi.id)
    return ids


def apply_variants(data: CalculationData) -> CalculationData:
    included = [v for v in data.variants if v.status == VariantStatus.INCLUDED]
    excluded = [v for v in data.variants if v.status == VariantStatus.EXCLUDED]

    whitelist = bool(included)
    ids = _collect_ids(included if whitelist else excluded, data)

    def flag(entry_id: str) -> bool:
        return (entry_id not in ids) if whitelist else (entry_id in ids)

    suppliers = [
        s.model_copy(update={"items": [i.model_copy(update={"is_excluded": flag(i.id)}) for i in s.items]})
        for s in data.suppliers
    ]
    transport = [t.model_copy(update={"is_excluded": flag(t.id)}) for t in data.transport]
    other = [o.model_copy(update={"is_excluded": flag(o.id)}) for o in data.other_costs]
    stages = [st.model_copy(update={"is_excluded": flag(st.id)}) for st in data.installation.stages]

    logger.debug("variants_applied", mode="whitelist" if whitelist else "blacklist", ids=len(ids))

    return data.model_copy(
        update={
            "suppliers": suppliers,
            "transport": transport,
            "other_costs": other,
            "installation": data.installation.model_copy(update={"stages": stages}),
        }
    )


def set_variant_status(data: CalculationData, variant_id: str, status: VariantStatus) -> CalculationData:
    variants = [
        v.model_copy(update={"status": VariantStatus(status)}) if v.id == variant_id else v for v in data.variants
    ]
    return apply_variants(data.model_copy(update={"variants": variants}))


def solo_variant(data: CalculationData, variant_id: str) -> CalculationData:
    """This variant INCLUDED, every other one NEUTRAL."""
    variants = [
        v.model_copy(update={"status": VariantStatus.INCLUDED if v.id == variant_id else VariantStatus.NEUTRAL})
        for v in data.variants
    ]
    return apply_variants(data.model_copy(update={"variants": variants}))


def _item_value(item_id: str, item_type: VariantItemType, data: CalculationData) -> Tuple[D, Currency]:
    """Value of one variant entry, own currency. Supplier lines: after discount, before markup and fee."""
    if item_type == VariantItemType.SUPPLIER_ITEM:
        if item_id.startswith(GROUP_PREFIX):
            s = data.find_supplier(item_id[len(GROUP_PREFIX):])
            if s is not None:
                subtotal = sum((i.quantity * effective_unit_price(s, i) for i in s.items), D("0"))
                return subtotal * (1 - s.discount / D("100")), s.currency
        else:
            for s in data.suppliers:
                for i in s.items:
                    if i.id == item_id:
                        return i.quantity * effective_unit_price(s, i) * (1 - s.discount / D("100")), s.currency

    elif item_type == VariantItemType.STAGE:
        for st in data.installation.stages:
            if st.id == item_id:
                return calculate_stage_cost(st, data), Currency.PLN

    elif item_type == VariantItemType.TRANSPORT:
        for t in data.transport:
            if t.id == item_id:
                return truck_cost(t), t.currency

    elif item_type == VariantItemType.OTHER:
        for o in data.other_costs:
            if o.id == item_id:
                return o.price, o.currency

    elif item_type == VariantItemType.INSTALLATION:
        for ci in data.installation.custom_items:
            if ci.id == item_id:
                return ci.quantity * ci.unit_price, Currency.PLN

    return D("0"), Currency.PLN


def variant_value(variant: ProjectVariant, data: CalculationData, exchange_rate, offer_currency: CurrencyLike) -> D:
    total = D("0")
    for vi in variant.items:
        value, currency = _item_value(vi.id, vi.type, data)
        total += convert(value, currency, offer_currency, exchange_rate)
    return total
