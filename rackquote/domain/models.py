# rackquote/domain/models.py
"""
Project data model (Initial/Final calculation snapshots).

Field names are snake_case; the persisted JSON of the application uses camelCase
(`unitPrice`, `isOrm`, ...). Both are accepted on input, so a saved project
validates verbatim: `AppState.model_validate_json(raw)`.

Numbers are Decimal. Missing or garbage numeric input becomes 0 instead of an
error: the application behaves like a spreadsheet, an empty cell is zero.
"""
from __future__ import annotations

from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Annotated, Any, List, Optional

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field
from pydantic.alias_generators import to_camel

D = Decimal


# -----------------------------
# Lenient numbers
# -----------------------------


def to_decimal(value: Any) -> D:
    """`parseFloat(x) || 0` semantics on Decimal."""
    if value is None or isinstance(value, bool):
        return D("0")
    if isinstance(value, D):
        result = value
    elif isinstance(value, (int, float)):
        result = D(str(value))
    elif isinstance(value, str):
        raw = value.strip().replace(" ", "").replace(",", ".")
        if not raw:
            return D("0")
        try:
            result = D(raw)
        except InvalidOperation:
            return D("0")
    else:
        return D("0")

    if not result.is_finite():
        return D("0")
    return result


def _optional_decimal(value: Any) -> Optional[D]:
    if value is None:
        return None
    if isinstance(value, str) and not value.strip():
        return None
    return to_decimal(value)


Num = Annotated[D, BeforeValidator(to_decimal)]
OptNum = Annotated[Optional[D], BeforeValidator(_optional_decimal)]


def _list_or_empty(value: Any) -> Any:
    return [] if value is None else value


IdList = Annotated[List[str], BeforeValidator(_list_or_empty)]


def _flag(default: bool) -> BeforeValidator:
    def parse(value: Any) -> Any:
        return default if value is None else value

    return BeforeValidator(parse)


# null reads as the field default: isIncluded null is included, isExcluded null is not excluded
Flag = Annotated[bool, _flag(False)]
OnFlag = Annotated[bool, _flag(True)]


# -----------------------------
# Enums
# -----------------------------


class Currency(str, Enum):
    PLN = "PLN"
    EUR = "EUR"


class CalculationMode(str, Enum):
    INITIAL = "INITIAL"
    FINAL = "FINAL"


class CalcMethod(str, Enum):
    PALLETS = "PALLETS"
    TIME = "TIME"
    BOTH = "BOTH"


class SupplierStatus(str, Enum):
    TO_ORDER = "TO_ORDER"
    ORDERED = "ORDERED"


class LinkType(str, Enum):
    ITEM = "ITEM"
    GROUP = "GROUP"


class VariantStatus(str, Enum):
    NEUTRAL = "NEUTRAL"
    INCLUDED = "INCLUDED"
    EXCLUDED = "EXCLUDED"


class VariantItemType(str, Enum):
    SUPPLIER_ITEM = "SUPPLIER_ITEM"
    TRANSPORT = "TRANSPORT"
    OTHER = "OTHER"
    INSTALLATION = "INSTALLATION"
    STAGE = "STAGE"


class FinalInstallationCategory(str, Enum):
    LABOR = "LABOR"
    RENTAL = "RENTAL"


class Model(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        use_enum_values=False,
    )


# -----------------------------
# Project meta
# -----------------------------


class AddressData(Model):
    name: str = ""
    street: str = ""
    city: str = ""
    zip: str = ""
    nip: str = ""
    client_id: str = ""
    project_id: str = ""
    email: Optional[str] = None
    phone: Optional[str] = None
    contact_person: Optional[str] = None


class ProjectMeta(Model):
    order_number: str = ""
    order_date: str = ""
    protocol_date: str = ""
    project_number: str = ""
    sap_project_number: str = ""
    sales_person: str = ""
    assistant_person: str = ""


# -----------------------------
# Suppliers
# -----------------------------


class SupplierItem(Model):
    id: str = ""
    item_description: str = ""
    component_number: str = ""
    quantity: Num = D("0")
    weight: Num = D("0")
    # ORM list price when the owning supplier is ORM
    unit_price: Num = D("0")
    time_minutes: Num = D("0")
    is_excluded: Flag = False


class Supplier(Model):
    id: str
    name: str = ""
    custom_tab_name: Optional[str] = None
    group_id: Optional[str] = None
    offer_number: str = ""
    offer_date: str = ""
    delivery_date: str = ""
    currency: Currency = Currency.PLN
    discount: Num = D("0")
    extra_markup_percent: Num = D("0")
    items: List[SupplierItem] = Field(default_factory=list)
    is_orm: Flag = False
    status: SupplierStatus = SupplierStatus.TO_ORDER
    is_included: OnFlag = True
    notes: Optional[str] = None
    final_cost_override: OptNum = None
    final_vendor_name: Optional[str] = None

    @property
    def display_name(self) -> str:
        return self.custom_tab_name or self.name or self.id


# -----------------------------
# Transport / other costs
# -----------------------------


class TransportItem(Model):
    id: str
    supplier_id: Optional[str] = None
    linked_supplier_ids: IdList = Field(default_factory=list)
    name: Optional[str] = None
    is_orm_calc: Flag = False
    is_supplier_organized: Flag = False
    is_manual_override: Flag = False
    trucks_count: Num = D("0")
    manual_stored_trucks: OptNum = None
    price_per_truck: Num = D("0")
    # snapshot kept for the UI; costing always recomputes trucks * price
    total_price: Num = D("0")
    currency: Currency = Currency.PLN
    is_excluded: Flag = False
    final_cost_override: OptNum = None
    final_currency: Optional[Currency] = None
    final_vendor_name: Optional[str] = None

    @property
    def is_merged(self) -> bool:
        return bool(self.linked_supplier_ids)


class OtherCostItem(Model):
    id: str
    description: str = ""
    price: Num = D("0")
    currency: Currency = Currency.PLN
    is_excluded: Flag = False
    final_cost_override: OptNum = None
    final_currency: Optional[Currency] = None
    final_vendor_name: Optional[str] = None


# -----------------------------
# Installation
# -----------------------------


class LinkedSource(Model):
    id: str
    type: LinkType


class CustomInstallationItem(Model):
    id: str
    description: str = ""
    quantity: Num = D("0")
    unit_price: Num = D("0")
    is_excluded: Flag = False
    linked_sources: Annotated[List[LinkedSource], BeforeValidator(_list_or_empty)] = Field(default_factory=list)
    is_auto_quantity: Flag = False
    parent_id: Optional[str] = None
    is_collapsed: Flag = False


class FinalInstallationItem(Model):
    id: str
    description: str = ""
    price: Num = D("0")
    currency: Currency = Currency.PLN
    vendor_name: str = ""
    category: FinalInstallationCategory = FinalInstallationCategory.LABOR


class InstallationStage(Model):
    id: str
    name: str = ""
    linked_supplier_ids: IdList = Field(default_factory=list)
    calc_method: CalcMethod = CalcMethod.PALLETS

    # pallet method
    pallet_spots: Num = D("0")
    pallet_spot_price: Num = D("0")
    pallet_spots_per_day: Num = D("0")

    # time method
    work_day_hours: Num = D("10")
    installers_count: Num = D("2")
    man_day_rate: Num = D("0")
    manual_labor_hours: Num = D("0")

    # equipment
    forklift_enabled: OnFlag = True
    forklift_daily_rate: Num = D("0")
    forklift_days: Num = D("0")
    forklift_start_day: Num = D("0")
    forklift_transport_price: Num = D("0")
    forklift_provider: Optional[str] = None

    scissor_lift_enabled: OnFlag = True
    scissor_lift_daily_rate: Num = D("0")
    scissor_lift_days: Num = D("0")
    scissor_lift_start_day: Num = D("0")
    scissor_lift_transport_price: Num = D("0")
    scissor_lift_provider: Optional[str] = None

    custom_items: List[CustomInstallationItem] = Field(default_factory=list)
    is_excluded: Flag = False


class InstallationData(Model):
    stages: List[InstallationStage] = Field(default_factory=list)
    custom_items: List[CustomInstallationItem] = Field(default_factory=list)
    other_installation_costs: Num = D("0")
    final_cost_override: OptNum = None
    final_installation_costs: List[FinalInstallationItem] = Field(default_factory=list)


# -----------------------------
# Variants / payment terms
# -----------------------------


class VariantItem(Model):
    id: str
    type: VariantItemType
    original_description: Optional[str] = None


class ProjectVariant(Model):
    id: str
    name: str = ""
    status: VariantStatus = VariantStatus.NEUTRAL
    items: List[VariantItem] = Field(default_factory=list)


class PaymentTerms(Model):
    advance1_percent: Num = D("30")
    advance1_days: Num = D("7")
    advance2_percent: Num = D("0")
    advance2_days: Num = D("0")
    final_payment_days: Num = D("14")


# -----------------------------
# Snapshots / app state
# -----------------------------


class CalculationData(Model):
    payer: AddressData = Field(default_factory=AddressData)
    recipient: AddressData = Field(default_factory=AddressData)
    ordering_party: AddressData = Field(default_factory=AddressData)
    meta: ProjectMeta = Field(default_factory=ProjectMeta)
    suppliers: List[Supplier] = Field(default_factory=list)
    transport: List[TransportItem] = Field(default_factory=list)
    other_costs: List[OtherCostItem] = Field(default_factory=list)
    installation: InstallationData = Field(default_factory=InstallationData)
    nameplate_qty: Num = D("0")
    project_notes: str = ""
    variants: List[ProjectVariant] = Field(default_factory=list)
    payment_terms: PaymentTerms = Field(default_factory=PaymentTerms)

    def find_supplier(self, supplier_id: Optional[str]) -> Optional[Supplier]:
        if not supplier_id:
            return None
        for s in self.suppliers:
            if s.id == supplier_id:
                return s
        return None


class GlobalSettings(Model):
    orm_fee_percent: Num = D("1.6")
    # kg per truck; None falls back to QuoteSettings.truck_load_capacity_kg
    truck_load_capacity: OptNum = None
    default_sales_person: Optional[str] = None
    default_support_person: Optional[str] = None


class AppState(Model):
    initial: CalculationData = Field(default_factory=CalculationData)
    final: CalculationData = Field(default_factory=CalculationData)
    mode: CalculationMode = CalculationMode.INITIAL
    exchange_rate: Num = D("4.30")
    offer_currency: Currency = Currency.PLN
    client_currency: Currency = Currency.PLN
    target_margin: Num = D("20")
    manual_price: OptNum = None
    global_settings: GlobalSettings = Field(default_factory=GlobalSettings)

    @property
    def active(self) -> CalculationData:
        return self.final if self.mode == CalculationMode.FINAL else self.initial


def empty_calculation() -> CalculationData:
    """Fresh EMPTY_CALCULATION (new object on every call, nothing shared)."""
    return CalculationData()


__all__ = [
    "to_decimal",
    "Currency",
    "CalculationMode",
    "CalcMethod",
    "SupplierStatus",
    "LinkType",
    "VariantStatus",
    "VariantItemType",
    "FinalInstallationCategory",
    "AddressData",
    "ProjectMeta",
    "SupplierItem",
    "Supplier",
    "TransportItem",
    "OtherCostItem",
    "LinkedSource",
    "CustomInstallationItem",
    "FinalInstallationItem",
    "InstallationStage",
    "InstallationData",
    "VariantItem",
    "ProjectVariant",
    "PaymentTerms",
    "CalculationData",
    "GlobalSettings",
    "AppState",
    "empty_calculation",
]
