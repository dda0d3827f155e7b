from __future__ import annotations

from pathlib import Path
from typing import Dict, Optional

import structlog

from ..calculators.pricing import derive_price, margin_level, payment_schedule, to_client_currency
from ..core.settings import QuoteSettings, get_settings
from ..domain.models import AppState, CalculationData, CalculationMode
from ..explain.breakdown_builder import Breakdown
from .context import CostBreakdown, QuoteResult
from .project_costs import calculate_project_costs

logger = structlog.get_logger(__name__)


class QuoteEngine:
    def __init__(self, settings: Optional[QuoteSettings] = None):
        self.settings = settings or get_settings()

    @staticmethod
    def load_state(path: str) -> AppState:
        state_path = Path(path)
        with state_path.open("r", encoding="utf-8") as f:
            return AppState.model_validate_json(f.read())

    def breakdown(self, state: AppState, data: CalculationData, mode: CalculationMode) -> CostBreakdown:
        return calculate_project_costs(
            data,
            state.exchange_rate,
            state.offer_currency,
            mode,
            state.global_settings.orm_fee_percent,
            state.target_margin,
            state.manual_price,
            nameplate_unit_price=self.settings.nameplate_unit_price_pln,
        )

    def calculate(self, state: AppState) -> QuoteResult:
        data = state.active
        costs = self.breakdown(state, data, state.mode)
        price = derive_price(costs.total, state.target_margin, state.manual_price)
        level = margin_level(price.margin_percent, self.settings.margin_critical_pct, self.settings.margin_warning_pct)

        logger.info(
            "quote_calculated",
            mode=state.mode.value,
            currency=costs.currency.value,
            total=str(costs.total),
            selling_price=str(price.selling_price),
            margin=str(price.margin_percent),
            margin_level=level.value,
        )

        checks = Breakdown()
        checks.add_margin_check(price.margin_percent, level)

        return QuoteResult(
            breakdown=costs,
            price=price,
            margin_level=level,
            payment_schedule=payment_schedule(price.selling_price, data.payment_terms),
            client_price=to_client_currency(
                price.selling_price, state.offer_currency, state.client_currency, state.exchange_rate
            ),
            steps=costs.steps + checks.as_strings(),
        )

    def compare(self, state: AppState) -> Dict[CalculationMode, CostBreakdown]:
        """Initial vs Final breakdown of the same project (offer currency)."""
        return {
            CalculationMode.INITIAL: self.breakdown(state, state.initial, CalculationMode.INITIAL),
            CalculationMode.FINAL: self.breakdown(state, state.final, CalculationMode.FINAL),
        }
