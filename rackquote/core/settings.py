# rackquote/core/settings.py
from decimal import Decimal
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class QuoteSettings(BaseSettings):
    # === Pricing defaults ===
    orm_fee_percent: Decimal = Field(Decimal("1.6"), description="ORM service fee on top of the adjusted subtotal")
    nameplate_unit_price_pln: Decimal = Decimal("19")

    # === Transport ===
    truck_load_capacity_kg: Decimal = Decimal("22000")

    # === Margin warnings (UI) ===
    margin_critical_pct: Decimal = Decimal("6")
    margin_warning_pct: Decimal = Decimal("7")

    # === Logging ===
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_prefix="RACKQUOTE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


@lru_cache(maxsize=1)
def get_settings() -> QuoteSettings:
    """Singleton settings instance (reads env + .env once)."""
    return QuoteSettings()
