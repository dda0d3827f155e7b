from __future__ import annotations

import os
from decimal import Decimal
from pathlib import Path

import pytest

from rackquote.core.settings import get_settings
from rackquote.domain.models import (
    AppState,
    CalculationData,
    InstallationData,
    InstallationStage,
    Supplier,
    SupplierItem,
    TransportItem,
)

D = Decimal

SAMPLES_DIR = Path(__file__).resolve().parents[1] / "samples"


@pytest.fixture(autouse=True)
def _fresh_settings(monkeypatch):
    # settings are lru_cached; tests must not see a developer's RACKQUOTE_* env
    for key in list(os.environ):
        if key.upper().startswith("RACKQUOTE_"):
            monkeypatch.delenv(key, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def plain_supplier():
    return Supplier(
        id="s1",
        name="Regały PL",
        currency="PLN",
        discount=D("10"),
        items=[SupplierItem(id="i1", item_description="Rama", quantity=D("5"), unit_price=D("100"))],
    )


@pytest.fixture
def orm_supplier():
    return Supplier(
        id="orm",
        name="ORM",
        currency="PLN",
        is_orm=True,
        items=[
            SupplierItem(
                id="o1",
                item_description="Belka",
                quantity=D("10"),
                unit_price=D("20"),
                weight=D("1500"),
                time_minutes=D("30"),
            )
        ],
    )


@pytest.fixture
def pallet_stage():
    return InstallationStage(id="st1", name="Regały", calc_method="PALLETS", pallet_spots=D("10"), pallet_spot_price=D("50"))


@pytest.fixture
def e2e_data(plain_supplier):
    """One supplier (5 @ 100, -10%) and one truck at 200 PLN."""
    return CalculationData(
        suppliers=[plain_supplier],
        transport=[TransportItem(id="t1", supplier_id="s1", trucks_count=D("1"), price_per_truck=D("200"))],
        installation=InstallationData(),
    )


@pytest.fixture
def sample_state() -> AppState:
    raw = (SAMPLES_DIR / "demo_project.json").read_text(encoding="utf-8")
    return AppState.model_validate_json(raw)
