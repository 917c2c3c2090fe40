import pytest

from conftest import make_row
from fabrication_estimator.calculation.recalculation import (
    CostCalculator,
    calculate_cost,
    recalculate_everything,
)
from fabrication_estimator.calculation.summary import compose_cost_summary
from fabrication_estimator.models.cost import AutomaticCosts, CostCalculation, ManualCosts

MANUAL = {
    "externalInspectionCost": 12000,
    "transportationCost": 30000,
    "factoryInspectionCost": 8000,
    "designCost": 45000,
}


def assert_summary_consistent(cost: CostCalculation) -> None:
    total = (
        cost.material_cost
        + cost.processing_cost
        + cost.painting_cost
        + cost.external_inspection_cost
        + cost.transportation_cost
        + cost.factory_inspection_cost
        + cost.design_cost
    )
    assert cost.total_cost == pytest.approx(total)
    assert cost.direct_cost == cost.total_cost * 0.7
    assert cost.manufacturing_cost == cost.total_cost * 0.9


def test_compose_sums_automatic_and_manual_costs():
    automatic = AutomaticCosts(material_cost=1000, processing_cost=2000, painting_cost=500, painting_area=0.1)
    cost = compose_cost_summary(automatic, ManualCosts(design_cost=300, transportation_cost=200))
    assert cost.total_cost == 4000
    assert cost.direct_cost == 4000 * 0.7
    assert cost.manufacturing_cost == 4000 * 0.9
    assert cost.painting_area == 0.1
    assert_summary_consistent(cost)


def test_compose_treats_missing_manual_fields_as_zero():
    automatic = AutomaticCosts(material_cost=1000)
    cost = compose_cost_summary(automatic, {"designCost": None, "transportation_cost": 50})
    assert cost.design_cost == 0
    assert cost.transportation_cost == 50
    assert cost.total_cost == 1050
    assert compose_cost_summary(automatic, None).total_cost == 1000


def test_cost_calculation_never_carries_stale_totals():
    cost = CostCalculation.model_validate({"materialCost": 100, "designCost": 50, "totalCost": 999999})
    assert cost.total_cost == 150
    assert cost.direct_cost == 150 * 0.7


def test_recalculate_everything(sheet_metal_row, cylinder_row):
    result = recalculate_everything([sheet_metal_row, cylinder_row], MANUAL)
    cost = result.cost_calculation
    assert [row.id for row in result.rows] == [sheet_metal_row.id, cylinder_row.id]
    assert result.rows[0].weight == pytest.approx(39.65)
    assert cost.material_cost == pytest.approx(result.rows[0].price + result.rows[1].price)
    assert cost.painting_area == pytest.approx(3.8)
    assert cost.design_cost == 45000
    assert_summary_consistent(cost)


def test_recalculation_is_idempotent(sheet_metal_row, cylinder_row):
    first = recalculate_everything([sheet_metal_row, cylinder_row], MANUAL)
    second = recalculate_everything(first.rows, first.cost_calculation)
    assert second.cost_calculation == first.cost_calculation
    assert [row.model_dump() for row in second.rows] == [row.model_dump() for row in first.rows]


def test_manual_costs_survive_recalculation(sheet_metal_row):
    first = recalculate_everything([sheet_metal_row], MANUAL)
    again = recalculate_everything([], first.cost_calculation)
    assert again.cost_calculation.manual_costs() == first.cost_calculation.manual_costs()
    assert again.cost_calculation.material_cost == 0


def test_empty_table_yields_zeroed_summary():
    result = recalculate_everything([])
    assert result.rows == []
    assert result.cost_calculation == CostCalculation()
    assert result.cost_calculation.total_cost == 0


def test_calculate_cost_matches_full_recalculation(sheet_metal_row):
    assert calculate_cost([sheet_metal_row], MANUAL) == recalculate_everything([sheet_metal_row], MANUAL).cost_calculation


def test_calculator_with_custom_rates():
    row = make_row(part_type="cylinder", weight=0)
    calculator = CostCalculator(processing_setup_per_part_type=1000, painting_unit_rate=0)
    cost = calculator.calculate_cost([row])
    assert cost.processing_cost == 1000


def test_result_dump_uses_interchange_names(sheet_metal_row):
    dumped = recalculate_everything([sheet_metal_row]).model_dump()
    assert set(dumped) == {"tableData", "costCalculation"}
    assert "unitPrice" in dumped["tableData"][0]
    assert "paintingArea" in dumped["costCalculation"]
