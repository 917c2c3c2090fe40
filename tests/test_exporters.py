import io
from datetime import date

from openpyxl import load_workbook

from conftest import make_row
from fabrication_estimator.calculation.recalculation import recalculate_everything
from fabrication_estimator.exporters.excel import export_filename, generate_excel
from fabrication_estimator.exporters.pdf import generate_pdf
from fabrication_estimator.models.estimate import Estimate, ProjectInfo, RemarksData


def build_estimate(rows) -> Estimate:
    result = recalculate_everything(rows, {"designCost": 10000})
    return Estimate(
        project_info=ProjectInfo(estimate_number="EST-1", customer="東邦化工", delivery_date="2025-12-20T00:00:00.000Z"),
        table_data=result.rows,
        cost_calculation=result.cost_calculation,
        remarks_data=RemarksData(remarks=["納期厳守 & 分納可", ""], material_cost_notes=["SUS支給"]),
    )


def test_generate_excel_sheets(sheet_metal_row):
    estimate = build_estimate([sheet_metal_row, make_row(unit_price=5, quantity=2)])
    workbook = load_workbook(io.BytesIO(generate_excel(estimate)))
    assert workbook.sheetnames == ["基本情報", "原価明細", "原価計算", "備考・補足"]

    info = workbook["基本情報"]
    assert info["A2"].value == "見積番号"
    assert info["B2"].value == "EST-1"
    assert info["B7"].value == "2025/12/20"

    detail = workbook["原価明細"]
    assert detail.max_row == 3
    assert detail["I2"].value == "✓"
    assert detail["H3"].value == 10

    costs = {row[0]: row[1] for row in workbook["原価計算"].iter_rows(min_row=2, values_only=True)}
    assert costs["設計費"] == 10000
    assert costs["総原価"] == estimate.cost_calculation.total_cost

    remarks = list(workbook["備考・補足"].iter_rows(min_row=2, values_only=True))
    assert remarks == [("備考1", "納期厳守 & 分納可"), ("材料費補足1", "SUS支給")]


def test_generate_pdf(sheet_metal_row):
    content = generate_pdf(build_estimate([sheet_metal_row]))
    assert content.startswith(b"%PDF")


def test_export_filename():
    estimate = Estimate(project_info=ProjectInfo(estimate_number="EST-1"))
    assert export_filename(estimate, "pdf", today=date(2025, 3, 9)) == "見積書_EST-1_20250309.pdf"
