from decimal import Decimal

from rackquote.core.settings import get_settings
from rackquote.domain.models import AppState, Supplier, SupplierItem, TransportItem
from rackquote.services.transport_planning import (
    auto_truck_count,
    default_transport_for,
    merge_transport,
    mergeable_supplier_names,
    project_truck_capacity,
    set_manual_trucks,
    supplier_weight,
    toggle_manual_override,
    unmerge_transport,
)

D = Decimal


def _orm(sid, weight, qty="1", included=True, name="ORM"):
    return Supplier(
        id=sid,
        name=name,
        is_orm=True,
        is_included=included,
        items=[SupplierItem(id=f"{sid}-i", quantity=D(qty), weight=D(weight))],
    )


def test_weight_counts_excluded_items():
    s = Supplier(
        id="s",
        items=[
            SupplierItem(id="a", quantity=D("2"), weight=D("100")),
            SupplierItem(id="b", quantity=D("1"), weight=D("50"), is_excluded=True),
        ],
    )
    assert supplier_weight(s) == D("250")


def test_auto_truck_count():
    assert auto_truck_count(D("22000"), D("22000")) == 1
    assert auto_truck_count(D("22001"), D("22000")) == 2
    assert auto_truck_count(D("0"), D("22000")) == 0
    assert auto_truck_count(D("5000"), D("0")) == 0


def test_auto_truck_count_default_capacity():
    assert auto_truck_count(D("44000")) == 2


def test_default_transport_for_orm(orm_supplier):
    t = default_transport_for(orm_supplier, D("1000"), item_id="x")
    # 10 pcs * 1500 kg = 15000 kg
    assert t.trucks_count == D("15")
    assert t.manual_stored_trucks == D("15")
    assert t.is_orm_calc
    assert not t.is_supplier_organized


def test_default_transport_detects_delivery_line():
    s = Supplier(id="s", items=[SupplierItem(id="d", item_description="Dostawa na budowę")])
    t = default_transport_for(s)
    assert t.is_supplier_organized
    assert t.trucks_count == D("0")


def test_manual_override_round_trip():
    s = _orm("a", "30000")
    transport = set_manual_trucks([], s, 5, D("22000"))
    assert transport[0].trucks_count == D("5")

    transport = toggle_manual_override(transport, s, D("22000"))
    assert transport[0].is_manual_override
    assert transport[0].trucks_count == D("5")

    transport = toggle_manual_override(transport, s, D("22000"))
    assert not transport[0].is_manual_override
    assert transport[0].trucks_count == D("2")
    assert transport[0].manual_stored_trucks == D("5")

    transport = toggle_manual_override(transport, s, D("22000"))
    assert transport[0].trucks_count == D("5")


def test_total_price_snapshot_updated():
    s = _orm("a", "1000")
    t = [TransportItem(id="t", supplier_id="a", price_per_truck=D("300"), trucks_count=D("1"))]
    out = set_manual_trucks(t, s, "3")
    assert out[0].total_price == D("900")
    assert t[0].trucks_count == D("1")


def test_merge_drops_own_entries():
    a, b, c = _orm("a", "12000"), _orm("b", "12000"), _orm("c", "1000", name="Other")
    transport = [
        TransportItem(id="ta", supplier_id="a"),
        TransportItem(id="tb", supplier_id="b"),
        TransportItem(id="tc", supplier_id="c"),
    ]
    assert mergeable_supplier_names([a, b, c], transport) == ["ORM"]

    merged = merge_transport(transport, [a, b, c], "ORM", D("22000"), item_id="m")
    assert [t.id for t in merged] == ["tc", "m"]
    m = merged[-1]
    assert m.name == "Transport zbiorczy: ORM"
    assert m.linked_supplier_ids == ["a", "b"]
    assert m.trucks_count == D("2")

    assert mergeable_supplier_names([a, b, c], merged) == []
    assert [t.id for t in unmerge_transport(merged, "m")] == ["tc"]


def test_merge_skips_switched_off_suppliers():
    a, b, off = _orm("a", "1"), _orm("b", "1"), _orm("x", "1", included=False)
    merged = merge_transport([], [a, b, off], "ORM", item_id="m")
    assert merged[0].linked_supplier_ids == ["a", "b"]


def test_merge_unknown_name_is_noop():
    transport = [TransportItem(id="t")]
    assert merge_transport(transport, [], "nobody") == transport


def test_project_capacity_drives_auto_count():
    state = AppState.model_validate({"globalSettings": {"truckLoadCapacity": "10000"}})
    capacity = project_truck_capacity(state)
    assert capacity == D("10000")
    t = default_transport_for(_orm("s", "15000"), capacity, item_id="t")
    assert t.trucks_count == D("2")


def test_project_capacity_falls_back_to_settings(monkeypatch):
    assert project_truck_capacity(AppState()) == D("22000")
    monkeypatch.setenv("RACKQUOTE_TRUCK_LOAD_CAPACITY_KG", "5000")
    get_settings.cache_clear()
    zero = AppState.model_validate({"globalSettings": {"truckLoadCapacity": 0}})
    assert project_truck_capacity(zero) == D("5000")
