import pytest

from conftest import make_row
from fabrication_estimator.calculation.pricing import line_price, price_all, price_row
from fabrication_estimator.models.line_item import DimensionData, LineItem


def test_auto_priced_row_without_weight_is_floored_at_one_kg():
    row = make_row(part_type="購入品", unit_price=100, quantity=2, is_auto=True)
    priced = price_row(row)
    assert priced.weight == 0
    assert priced.price == 200


def test_auto_priced_row_scales_with_weight(sheet_metal_row):
    priced = price_row(sheet_metal_row)
    assert priced.weight == pytest.approx(39.65)
    assert priced.price == pytest.approx(100 * 2 * 39.65)


def test_light_auto_priced_row_uses_floor():
    assert line_price(unit_price=100, quantity=3, weight=0.5, is_auto=True) == 300


def test_manual_row_is_unit_price_times_quantity(cylinder_row):
    priced = price_row(cylinder_row)
    assert priced.weight > 0
    assert priced.price == 500


def test_stale_derived_values_are_overwritten():
    row = make_row(part_type="sheet_metal", weight=999, price=123456, unit_price=10, quantity=3)
    priced = price_row(row)
    assert priced.weight == 0
    assert priced.price == 30


def test_price_row_does_not_mutate_input(sheet_metal_row):
    price_row(sheet_metal_row)
    assert sheet_metal_row.weight == 0
    assert sheet_metal_row.price == 0


def test_price_all_keeps_order_and_ids(sheet_metal_row, cylinder_row):
    extra = make_row(model_number="Z9", dimensions=DimensionData(custom="支給品"), unit_price=7, quantity=3)
    priced = price_all([cylinder_row, extra, sheet_metal_row])
    assert [row.id for row in priced] == [cylinder_row.id, extra.id, sheet_metal_row.id]
    assert priced[1].price == 21


PLATE = {
    "modelNumber": "SP-01",
    "partType": "板金",
    "material": "SUS304",
    "dimensions": {"partType": "板金", "length": 1000, "width": 500, "thickness": 10},
    "quantity": 2,
    "unitPrice": 100,
}


@pytest.mark.parametrize("flag", ["false", "FALSE", "0", "no", ""])
def test_falsey_flag_strings_keep_rows_manually_priced(flag):
    row = LineItem.model_validate({**PLATE, "isAuto": flag})
    assert row.is_auto is False
    assert price_row(row).price == 200


@pytest.mark.parametrize("flag", ["true", "TRUE", "1", "自動", True])
def test_truthy_flags_mark_rows_auto_priced(flag):
    row = LineItem.model_validate({**PLATE, "isAuto": flag})
    assert row.is_auto is True
    assert price_row(row).price == pytest.approx(7930)
