from decimal import Decimal

from rackquote.calculators.pricing import derive_price
from rackquote.core.settings import get_settings
from rackquote.domain.models import (
    CalculationData,
    CalculationMode,
    CustomInstallationItem,
    FinalInstallationItem,
    InstallationData,
    InstallationStage,
    OtherCostItem,
    Supplier,
    SupplierItem,
    TransportItem,
)
from rackquote.engine.project_costs import calculate_project_costs

D = Decimal


def test_end_to_end_pln(e2e_data):
    b = calculate_project_costs(e2e_data, D("4.30"), "PLN")
    assert b.suppliers == D("450")
    assert b.transport == D("200")
    assert b.other == D("0")
    assert b.installation == D("0")
    assert b.total == D("650")

    price = derive_price(b.total, D("10"))
    assert price.selling_price.quantize(D("0.01")) == D("722.22")


def test_rate_is_irrelevant_for_pln_only_project(e2e_data):
    assert calculate_project_costs(e2e_data, D("0"), "PLN").total == calculate_project_costs(e2e_data, D("5"), "PLN").total


def test_switched_off_supplier_contributes_zero(e2e_data):
    data = e2e_data.model_copy(
        update={"suppliers": [e2e_data.suppliers[0].model_copy(update={"is_included": False})]}
    )
    b = calculate_project_costs(data, D("4.30"), "PLN")
    assert b.suppliers == D("0")
    # its transport goes with it
    assert b.transport == D("0")
    assert b.excluded == D("650")
    assert b.total == D("0")


def test_orm_fee_reported_not_double_counted(orm_supplier):
    data = CalculationData(suppliers=[orm_supplier])
    b = calculate_project_costs(data, D("4.30"), "PLN", orm_fee_percent=D("1.6"))
    assert b.orm_fee == D("1.6")
    assert b.suppliers == D("101.6")
    assert b.total == D("101.6")
    assert b.financing == D("0")


def test_default_fee_percent_comes_from_settings(orm_supplier, monkeypatch):
    monkeypatch.setenv("RACKQUOTE_ORM_FEE_PERCENT", "2")
    get_settings.cache_clear()
    b = calculate_project_costs(CalculationData(suppliers=[orm_supplier]), D("4.30"), "PLN")
    assert b.orm_fee == D("2")


def test_nameplates_in_suppliers():
    data = CalculationData(nameplate_qty=D("10"))
    b = calculate_project_costs(data, D("4"), "EUR")
    assert b.suppliers == D("47.5")
    assert b.total == D("47.5")


def test_conversion_to_offer_currency():
    data = CalculationData(
        suppliers=[Supplier(id="s", currency="EUR", items=[SupplierItem(id="i", quantity=D("1"), unit_price=D("100"))])],
        transport=[TransportItem(id="t", trucks_count=D("1"), price_per_truck=D("430"), currency="PLN")],
        installation=InstallationData(other_installation_costs=D("43")),
    )
    b = calculate_project_costs(data, D("4.30"), "EUR")
    assert b.currency.value == "EUR"
    assert b.suppliers == D("100")
    assert b.transport == D("100")
    assert b.installation == D("10")
    assert b.total == D("210")


def test_excluded_bucket_never_in_total(e2e_data, pallet_stage):
    data = e2e_data.model_copy(
        update={
            "other_costs": [
                OtherCostItem(id="o1", price=D("100"), currency="EUR", is_excluded=True),
                OtherCostItem(id="o2", price=D("30"), currency="PLN"),
            ],
            "installation": InstallationData(stages=[pallet_stage.model_copy(update={"is_excluded": True})]),
        }
    )
    b = calculate_project_costs(data, D("4"), "PLN")
    assert b.other == D("30")
    assert b.installation == D("0")
    assert b.excluded == D("900")
    assert b.total == D("680")


def test_installation_stages_global_items_and_other(pallet_stage):
    inst = InstallationData(
        stages=[pallet_stage],
        custom_items=[
            CustomInstallationItem(id="g1", quantity=D("2"), unit_price=D("150")),
            CustomInstallationItem(id="g2", quantity=D("1"), unit_price=D("99"), is_excluded=True),
        ],
        other_installation_costs=D("200"),
    )
    b = calculate_project_costs(CalculationData(installation=inst), D("4.30"), "PLN")
    assert b.installation == D("1000")
    assert b.excluded == D("99")


def test_final_mode_uses_invoice_costs(pallet_stage):
    inst = InstallationData(
        stages=[pallet_stage],
        final_cost_override=D("7000"),
        final_installation_costs=[
            FinalInstallationItem(id="f1", price=D("1000"), currency="PLN"),
            FinalInstallationItem(id="f2", price=D("100"), currency="EUR", category="RENTAL"),
        ],
    )
    data = CalculationData(installation=inst)
    assert calculate_project_costs(data, D("4"), "PLN", CalculationMode.FINAL).installation == D("1400")
    assert calculate_project_costs(data, D("4"), "PLN", CalculationMode.INITIAL).installation == D("500")


def test_final_mode_override_then_standard(pallet_stage):
    inst = InstallationData(stages=[pallet_stage], final_cost_override=D("7000"))
    data = CalculationData(installation=inst)
    assert calculate_project_costs(data, D("4"), "PLN", "FINAL").installation == D("7000")

    data = CalculationData(installation=InstallationData(stages=[pallet_stage]))
    assert calculate_project_costs(data, D("4"), "PLN", "FINAL").installation == D("500")


def test_final_mode_other_cost_override():
    data = CalculationData(
        other_costs=[OtherCostItem(id="o", price=D("100"), final_cost_override=D("50"), final_currency="EUR")]
    )
    assert calculate_project_costs(data, D("4"), "PLN", CalculationMode.FINAL).other == D("200")
    assert calculate_project_costs(data, D("4"), "PLN").other == D("100")


def test_margin_inputs_do_not_change_costs(e2e_data):
    a = calculate_project_costs(e2e_data, D("4.30"), "PLN")
    b = calculate_project_costs(e2e_data, D("4.30"), "PLN", target_margin=D("50"), manual_price=D("1"))
    assert a == b


def test_inputs_are_not_mutated(sample_state):
    before = sample_state.model_dump()
    calculate_project_costs(sample_state.initial, sample_state.exchange_rate, sample_state.offer_currency)
    calculate_project_costs(sample_state.final, sample_state.exchange_rate, "EUR", CalculationMode.FINAL)
    assert sample_state.model_dump() == before


def test_same_input_same_output(sample_state):
    out1 = calculate_project_costs(sample_state.initial, D("4.31"), "PLN")
    out2 = calculate_project_costs(sample_state.initial, D("4.31"), "PLN")
    assert out1 == out2


def test_steps_explain_buckets(e2e_data):
    b = calculate_project_costs(e2e_data, D("4.30"), "PLN")
    assert b.steps[0] == "Dostawcy: 450.00 PLN"
    assert "Razem koszt: 650.00 PLN" in b.steps


def test_zero_rate_warning_for_eur_offer(e2e_data):
    b = calculate_project_costs(e2e_data, D("0"), "EUR")
    assert b.total == D("0")
    assert b.steps[0].startswith("WARNING: ")


def test_as_dict_uses_camel_case(e2e_data):
    d = calculate_project_costs(e2e_data, D("4.30"), "PLN").as_dict()
    assert d["total"] == "650.00"
    assert d["ormFee"] == "0.00"
    assert d["currency"] == "PLN"


def test_excluded_blank_stage_adds_nothing():
    data = CalculationData(installation=InstallationData(stages=[InstallationStage(id="x", is_excluded=True)]))
    b = calculate_project_costs(data, D("4"), "PLN")
    assert b.installation == D("0")
    assert b.excluded == D("0")


def test_huge_amounts_still_render():
    data = CalculationData(
        suppliers=[Supplier(id="s", items=[SupplierItem(id="i", quantity=D("1e200"), unit_price=D("1e200"))])]
    )
    b = calculate_project_costs(data, D("4.30"), "PLN")
    assert b.total == D("1e400")
    assert b.steps[0].startswith("Dostawcy: 1000")
    assert b.steps[0].endswith(".00 PLN")
    assert b.as_dict()["total"].endswith(".00")
