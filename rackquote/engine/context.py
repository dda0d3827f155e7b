from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal, localcontext
from enum import Enum
from typing import List, Optional, Sequence

from ..domain.models import Currency, Supplier

D = Decimal
ZERO = D("0")
CENT = D("0.01")


# -----------------------------
# Money
# -----------------------------


def cents(amount: D) -> D:
    """Round to 0.01 at any magnitude; precision grows with the amount."""
    if not amount.is_finite():
        return amount
    with localcontext() as ctx:
        ctx.prec = max(ctx.prec, amount.adjusted() + 3)
        return amount.quantize(CENT)


@dataclass(frozen=True)
class Money:
    currency: str
    amount: D

    def quantized(self) -> "Money":
        return Money(self.currency, cents(self.amount))

    def __str__(self) -> str:
        return f"{cents(self.amount)} {self.currency}"


# -----------------------------
# Calculator results
# -----------------------------


@dataclass(frozen=True)
class SupplierCost:
    """
    One supplier, in its own currency.

    `cost` is what enters the project total (0 for a non-included supplier).
    `excluded` is what the what-if flags removed, run through the same
    discount/markup/fee pipeline.
    """

    supplier_id: str
    currency: Currency
    subtotal: D = ZERO
    discounted: D = ZERO
    adjusted: D = ZERO
    orm_fee: D = ZERO
    cost: D = ZERO
    excluded: D = ZERO
    is_override: bool = False


@dataclass(frozen=True)
class StageResult:
    """
    Installation stage evaluation (PLN). Always computed, also for excluded
    stages, so the UI can preview what the stage would cost.
    """

    stage_id: str
    total_hours: D = ZERO
    daily_capacity: D = ZERO
    time_based_days: int = 0
    pallet_based_days: int = 0
    duration_days: int = 0
    pallet_cost: D = ZERO
    labor_cost: D = ZERO
    equipment_cost: D = ZERO
    custom_items_cost: D = ZERO
    excluded_custom_items: D = ZERO
    is_excluded: bool = False

    @property
    def cost(self) -> D:
        return self.pallet_cost + self.labor_cost + self.equipment_cost + self.custom_items_cost

    @property
    def contribution(self) -> D:
        return ZERO if self.is_excluded else self.cost


@dataclass(frozen=True)
class TransportCost:
    transport_id: str
    currency: Currency
    cost: D = ZERO
    skipped_reason: Optional[str] = None

    @property
    def is_skipped(self) -> bool:
        return self.skipped_reason is not None


# -----------------------------
# Output models
# -----------------------------


@dataclass(frozen=True)
class CostBreakdown:
    """
    All amounts in the offer currency.

    total = suppliers + transport + other + installation.
    orm_fee and financing are informational: orm_fee is already inside
    `suppliers`, financing has no cost model in the core and stays 0.
    excluded is informational and never part of total.
    """

    currency: Currency
    suppliers: D = ZERO
    transport: D = ZERO
    other: D = ZERO
    installation: D = ZERO
    orm_fee: D = ZERO
    financing: D = ZERO
    total: D = ZERO
    excluded: D = ZERO
    steps: List[str] = field(default_factory=list)

    def money(self, amount: D) -> Money:
        return Money(self.currency.value, amount).quantized()

    def as_dict(self) -> dict:
        return {
            "currency": self.currency.value,
            "suppliers": str(self.money(self.suppliers).amount),
            "transport": str(self.money(self.transport).amount),
            "other": str(self.money(self.other).amount),
            "installation": str(self.money(self.installation).amount),
            "ormFee": str(self.money(self.orm_fee).amount),
            "financing": str(self.money(self.financing).amount),
            "total": str(self.money(self.total).amount),
            "excluded": str(self.money(self.excluded).amount),
        }


class MarginLevel(str, Enum):
    OK = "OK"
    WARNING = "WARNING"
    CRITICAL = "CRITICAL"


@dataclass(frozen=True)
class PriceResult:
    selling_price: D
    margin_percent: D
    profit: D
    is_manual: bool = False


@dataclass(frozen=True)
class PaymentSchedule:
    advance1_amount: D
    advance2_amount: D
    final_percent: D
    final_amount: D


@dataclass(frozen=True)
class QuoteResult:
    breakdown: CostBreakdown
    price: PriceResult
    margin_level: MarginLevel
    payment_schedule: PaymentSchedule
    client_price: Money
    # cost steps followed by the margin check line
    steps: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class InstallationContext:
    """Minimal context for stage costing: the suppliers whose ORM minutes roll up."""

    suppliers: Sequence[Supplier] = ()
