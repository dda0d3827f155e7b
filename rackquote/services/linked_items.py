from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, List, Optional, Sequence

import structlog

from ..domain.models import (
    CalculationData,
    CustomInstallationItem,
    InstallationStage,
    LinkedSource,
    LinkType,
    Supplier,
    to_decimal,
)

D = Decimal

logger = structlog.get_logger(__name__)


def linked_quantity(sources: Sequence[LinkedSource], suppliers: Sequence[Supplier]) -> D:
    """GROUP adds every item quantity of that supplier, ITEM adds that one item."""
    total = D("0")
    for src in sources:
        if src.type == LinkType.GROUP:
            s = next((x for x in suppliers if x.id == src.id), None)
            if s is None:
                logger.warning("linked_group_missing", source_id=src.id)
                continue
            total += sum((i.quantity for i in s.items), D("0"))
        else:
            found = None
            for s in suppliers:
                found = next((i for i in s.items if i.id == src.id), None)
                if found is not None:
                    break
            if found is None:
                logger.warning("linked_item_missing", source_id=src.id)
                continue
            total += found.quantity
    return total


def _auto_description(sources: Sequence[LinkedSource], added: LinkedSource, label: Optional[str]) -> str:
    if len(sources) > 1:
        return "Montaż (wiele elementów)"
    name = label or added.id
    if added.type == LinkType.ITEM:
        return f"Montaż: {name}"
    return f"Montaż elementów: {name}"


def link_source(
    item: CustomInstallationItem,
    source: LinkedSource,
    suppliers: Sequence[Supplier],
    label: Optional[str] = None,
) -> CustomInstallationItem:
    """
    Toggle `source` on the item. Quantity is resynced and auto sync switched
    on; an empty description is filled from the link.
    """
    exists = any(s.id == source.id and s.type == source.type for s in item.linked_sources)
    if exists:
        sources = [s for s in item.linked_sources if not (s.id == source.id and s.type == source.type)]
    else:
        sources = list(item.linked_sources) + [source]

    description = item.description
    if sources and not description:
        description = _auto_description(sources, source, label)

    return item.model_copy(
        update={
            "linked_sources": sources,
            "quantity": linked_quantity(sources, suppliers),
            "is_auto_quantity": True,
            "description": description,
        }
    )


def unlink_all(item: CustomInstallationItem) -> CustomInstallationItem:
    return item.model_copy(update={"linked_sources": [], "is_auto_quantity": False})


def sync_quantity(item: CustomInstallationItem, suppliers: Sequence[Supplier]) -> CustomInstallationItem:
    if not item.linked_sources:
        return item
    return item.model_copy(
        update={"quantity": linked_quantity(item.linked_sources, suppliers), "is_auto_quantity": True}
    )


def set_quantity(item: CustomInstallationItem, quantity) -> CustomInstallationItem:
    """Manual quantity edit. A linked auto item stops following its sources."""
    updates = {"quantity": to_decimal(quantity)}
    if item.linked_sources and item.is_auto_quantity:
        updates["is_auto_quantity"] = False
    return item.model_copy(update=updates)


def _resolve(items: Sequence[CustomInstallationItem], suppliers: Sequence[Supplier]) -> List[CustomInstallationItem]:
    return [sync_quantity(i, suppliers) if i.is_auto_quantity else i for i in items]


def resolve_auto_quantities(data: CalculationData) -> CalculationData:
    """Copy of `data` with every auto-quantity item synced to its sources."""
    suppliers = data.suppliers
    stages: List[InstallationStage] = [
        st.model_copy(update={"custom_items": _resolve(st.custom_items, suppliers)})
        for st in data.installation.stages
    ]
    installation = data.installation.model_copy(
        update={"stages": stages, "custom_items": _resolve(data.installation.custom_items, suppliers)}
    )
    return data.model_copy(update={"installation": installation})


# -----------------------------
# Hierarchy (global custom items)
# -----------------------------


@dataclass
class CustomItemNode:
    item: CustomInstallationItem
    children: List["CustomItemNode"] = field(default_factory=list)

    def subtotal(self, *, include_excluded: bool = False) -> D:
        own = D("0")
        if include_excluded or not self.item.is_excluded:
            own = self.item.quantity * self.item.unit_price
        return own + sum((c.subtotal(include_excluded=include_excluded) for c in self.children), D("0"))


def build_custom_item_tree(items: Sequence[CustomInstallationItem]) -> List[CustomItemNode]:
    """
    Display tree from the flat `parent_id` list, input order kept.
    Unknown parents make an item a root; items on a parent loop become roots
    too, so the tree is always finite.
    """
    nodes: Dict[str, CustomItemNode] = {}
    for i in items:
        nodes.setdefault(i.id, CustomItemNode(i))

    parents = {k: n.item.parent_id for k, n in nodes.items()}

    def _on_loop(item_id: str) -> bool:
        seen = {item_id}
        current = parents.get(item_id)
        while current is not None and current in parents:
            if current == item_id:
                return True
            if current in seen:
                return False
            seen.add(current)
            current = parents[current]
        return False

    roots: List[CustomItemNode] = []
    for i in items:
        node = nodes[i.id]
        if node.item is not i:
            # duplicate id: first one wins
            continue
        parent = nodes.get(i.parent_id) if i.parent_id else None
        if parent is None or parent is node or _on_loop(i.id):
            roots.append(node)
            if parent is not None:
                logger.warning("custom_item_cycle", item_id=i.id, parent_id=i.parent_id)
        else:
            parent.children.append(node)
    return roots
