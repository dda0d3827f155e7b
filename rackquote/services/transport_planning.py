"""
Transport planning helpers.

Every helper returns a new transport list (or item); inputs are left untouched.
Auto truck count: ceil(total supplier weight / truck load capacity), weight
counted over all items, excluded ones too.
"""
from __future__ import annotations

import math
import uuid
from decimal import Decimal
from typing import Dict, List, Optional, Sequence

import structlog

from ..core.settings import get_settings
from ..domain.models import AppState, Currency, Supplier, TransportItem, to_decimal

D = Decimal

logger = structlog.get_logger(__name__)

TRANSPORT_KEYWORDS = ("transport", "dostawa", "delivery", "shipping", "przesyłka", "fracht")
MERGED_NAME_PREFIX = "Transport zbiorczy: "


def _new_id() -> str:
    return uuid.uuid4().hex[:9]


def _capacity(truck_load_capacity) -> D:
    if truck_load_capacity is None:
        return get_settings().truck_load_capacity_kg
    return to_decimal(truck_load_capacity)


def project_truck_capacity(state: AppState) -> D:
    """Capacity set on the project, else the configured default. Pass it as `truck_load_capacity`."""
    capacity = state.global_settings.truck_load_capacity
    if capacity is None or capacity <= 0:
        return get_settings().truck_load_capacity_kg
    return capacity


def supplier_weight(supplier: Supplier) -> D:
    return sum((i.weight * i.quantity for i in supplier.items), D("0"))


def auto_truck_count(weight, truck_load_capacity=None) -> int:
    capacity = _capacity(truck_load_capacity)
    if capacity <= 0:
        return 0
    return int(math.ceil(to_decimal(weight) / capacity))


def _has_transport_line(supplier: Supplier) -> bool:
    for i in supplier.items:
        desc = i.item_description.lower()
        if any(k in desc for k in TRANSPORT_KEYWORDS):
            return True
    return False


def _priced(item: TransportItem) -> TransportItem:
    total = D("0") if item.is_supplier_organized else item.trucks_count * item.price_per_truck
    return item.model_copy(update={"total_price": total})


def default_transport_for(supplier: Supplier, truck_load_capacity=None, item_id: Optional[str] = None) -> TransportItem:
    """
    Transport entry a supplier gets before anyone edits it. ORM suppliers get
    an auto truck count; a supplier whose offer already has a delivery line is
    marked as organizing its own transport.
    """
    trucks = auto_truck_count(supplier_weight(supplier), truck_load_capacity) if supplier.is_orm else 0
    return TransportItem(
        id=item_id or _new_id(),
        supplier_id=supplier.id,
        is_orm_calc=supplier.is_orm,
        is_supplier_organized=_has_transport_line(supplier),
        is_manual_override=False,
        trucks_count=D(trucks),
        manual_stored_trucks=D(trucks),
        currency=Currency.PLN,
    )


def transport_for_supplier(transport: Sequence[TransportItem], supplier: Supplier, truck_load_capacity=None) -> TransportItem:
    for t in transport:
        if t.supplier_id == supplier.id:
            return t
    return default_transport_for(supplier, truck_load_capacity, item_id=f"temp_{supplier.id}")


def update_supplier_transport(
    transport: Sequence[TransportItem],
    supplier: Supplier,
    updates: Dict,
    truck_load_capacity=None,
) -> List[TransportItem]:
    """Apply `updates` to the supplier's own entry, creating it when missing."""
    result = list(transport)
    for idx, t in enumerate(result):
        if t.supplier_id == supplier.id:
            result[idx] = _priced(t.model_copy(update=updates))
            return result

    base = default_transport_for(supplier, truck_load_capacity)
    result.append(_priced(base.model_copy(update=updates)))
    return result


def toggle_manual_override(
    transport: Sequence[TransportItem],
    supplier: Supplier,
    truck_load_capacity=None,
) -> List[TransportItem]:
    """
    Auto -> manual restores the stored manual count (auto count when none).
    Manual -> auto recomputes from weight; the stored manual count survives.
    """
    current = transport_for_supplier(transport, supplier, truck_load_capacity)
    auto = D(auto_truck_count(supplier_weight(supplier), truck_load_capacity))

    if current.is_manual_override:
        updates = {"is_manual_override": False, "trucks_count": auto}
    else:
        updates = {"is_manual_override": True, "trucks_count": current.manual_stored_trucks or auto}
    return update_supplier_transport(transport, supplier, updates, truck_load_capacity)


def set_manual_trucks(
    transport: Sequence[TransportItem],
    supplier: Supplier,
    trucks,
    truck_load_capacity=None,
) -> List[TransportItem]:
    value = to_decimal(trucks)
    return update_supplier_transport(
        transport,
        supplier,
        {"trucks_count": value, "manual_stored_trucks": value},
        truck_load_capacity,
    )


def _merged_ids(transport: Sequence[TransportItem]) -> set:
    ids = set()
    for t in transport:
        ids.update(t.linked_supplier_ids)
    return ids


def mergeable_supplier_names(suppliers: Sequence[Supplier], transport: Sequence[TransportItem]) -> List[str]:
    """Names shared by 2+ included suppliers of which 2+ are not merged yet."""
    counts: Dict[str, int] = {}
    for s in suppliers:
        if s.is_included:
            counts[s.name] = counts.get(s.name, 0) + 1

    merged = _merged_ids(transport)
    names = []
    for name, n in counts.items():
        if n < 2:
            continue
        unmerged = [s for s in suppliers if s.name == name and s.id not in merged]
        if len(unmerged) > 1:
            names.append(name)
    return names


def merge_transport(
    transport: Sequence[TransportItem],
    suppliers: Sequence[Supplier],
    supplier_name: str,
    truck_load_capacity=None,
    item_id: Optional[str] = None,
) -> List[TransportItem]:
    """
    One shared entry for all included suppliers called `supplier_name`.
    Their own single-supplier entries are removed, so no supplier is
    transported twice.
    """
    group = [s for s in suppliers if s.name == supplier_name and s.is_included]
    ids = [s.id for s in group]
    if not ids:
        logger.warning("merge_transport_no_suppliers", supplier_name=supplier_name)
        return list(transport)

    weight = sum((supplier_weight(s) for s in group), D("0"))
    trucks = auto_truck_count(weight, truck_load_capacity)

    result = [t for t in transport if not (t.supplier_id and t.supplier_id in ids)]
    result.append(
        TransportItem(
            id=item_id or _new_id(),
            name=f"{MERGED_NAME_PREFIX}{supplier_name}",
            linked_supplier_ids=ids,
            is_orm_calc=True,
            is_supplier_organized=False,
            trucks_count=D(trucks),
            currency=Currency.PLN,
        )
    )
    logger.info("transport_merged", supplier_name=supplier_name, suppliers=len(ids), trucks=trucks)
    return result


def unmerge_transport(transport: Sequence[TransportItem], transport_id: str) -> List[TransportItem]:
    """Drop the merged entry; suppliers fall back to default per-supplier transport."""
    return [t for t in transport if t.id != transport_id]
