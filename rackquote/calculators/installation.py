from __future__ import annotations

import math
from decimal import Decimal
from typing import Iterable, Sequence

import structlog

from ..domain.models import CalcMethod, CustomInstallationItem, InstallationStage, Supplier
from ..engine.context import StageResult

D = Decimal

logger = structlog.get_logger(__name__)


def _ceil_days(amount: D, per_day: D) -> int:
    if per_day <= 0:
        return 0
    return int(math.ceil(amount / per_day))


def custom_items_value(items: Iterable[CustomInstallationItem], *, excluded: bool = False) -> D:
    """Sum qty * unit price over active items (or over the flagged ones with excluded=True)."""
    total = D("0")
    for i in items:
        if i.is_excluded == excluded:
            total += i.quantity * i.unit_price
    return total


def linked_labor_minutes(stage: InstallationStage, suppliers: Sequence[Supplier]) -> D:
    """ORM labor minutes (qty * timeMinutes) of the suppliers linked to this stage."""
    by_id = {s.id: s for s in suppliers}
    minutes = D("0")
    for sid in stage.linked_supplier_ids:
        s = by_id.get(sid)
        if s is None:
            logger.warning("stage_supplier_missing", stage_id=stage.id, supplier_id=sid)
            continue
        if not s.is_included:
            continue
        for i in s.items:
            if not i.is_excluded:
                minutes += i.quantity * (i.time_minutes or D("0"))
    return minutes


def equipment_cost(stage: InstallationStage) -> D:
    cost = D("0")
    if stage.forklift_enabled:
        cost += stage.forklift_days * stage.forklift_daily_rate + stage.forklift_transport_price
    if stage.scissor_lift_enabled:
        cost += stage.scissor_lift_days * stage.scissor_lift_daily_rate + stage.scissor_lift_transport_price
    return cost


def evaluate_stage(stage: InstallationStage, context) -> StageResult:
    """
    Cost and duration of one stage (PLN).

    `context` is anything with a `suppliers` sequence: CalculationData or
    InstallationContext.

    Duration: TIME -> time-based days; PALLETS/BOTH -> pallet-based days when
    both pallet inputs are set, else time-based days.
    Labor cost is day-driven: ceil(hours / (hours_per_day * crew)) * crew * day rate.
    """
    suppliers = getattr(context, "suppliers", None) or ()
    method = stage.calc_method

    total_hours = linked_labor_minutes(stage, suppliers) / D("60") + stage.manual_labor_hours
    daily_capacity = stage.work_day_hours * stage.installers_count
    time_days = _ceil_days(total_hours, daily_capacity)
    pallet_days = _ceil_days(stage.pallet_spots, stage.pallet_spots_per_day)

    if method == CalcMethod.TIME:
        duration = time_days
    elif stage.pallet_spots > 0 and stage.pallet_spots_per_day > 0:
        duration = pallet_days
    else:
        duration = time_days

    pallet_cost = D("0")
    if method in (CalcMethod.PALLETS, CalcMethod.BOTH):
        pallet_cost = stage.pallet_spots * stage.pallet_spot_price

    labor_cost = D("0")
    if method in (CalcMethod.TIME, CalcMethod.BOTH):
        labor_cost = time_days * stage.installers_count * stage.man_day_rate

    return StageResult(
        stage_id=stage.id,
        total_hours=total_hours,
        daily_capacity=daily_capacity,
        time_based_days=time_days,
        pallet_based_days=pallet_days,
        duration_days=duration,
        pallet_cost=pallet_cost,
        labor_cost=labor_cost,
        equipment_cost=equipment_cost(stage),
        custom_items_cost=custom_items_value(stage.custom_items),
        excluded_custom_items=custom_items_value(stage.custom_items, excluded=True),
        is_excluded=stage.is_excluded,
    )


def calculate_stage_cost(stage: InstallationStage, context) -> D:
    """
    Stage cost in PLN, what-if preview included: an excluded stage still
    reports its cost here. Parent totals use StageResult.contribution.
    """
    return evaluate_stage(stage, context).cost


def calculate_stage_duration(stage: InstallationStage, context) -> int:
    return evaluate_stage(stage, context).duration_days
