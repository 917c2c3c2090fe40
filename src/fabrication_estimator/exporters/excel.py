from __future__ import annotations

import io
from datetime import date
from typing import Any, Sequence

from openpyxl import Workbook
from openpyxl.styles import Font, PatternFill
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.worksheet import Worksheet

from ..dictionaries import COST_FIELD_LABELS
from ..models.cost import COST_COMPONENTS
from ..models.estimate import Estimate

HEADER_FONT = Font(bold=True)
HEADER_FILL = PatternFill(start_color="FFE0E0E0", end_color="FFE0E0E0", fill_type="solid")

DETAIL_COLUMNS: Sequence[tuple[str, int, str | None]] = (
    ("型式", 15, None),
    ("名称", 25, None),
    ("Part Type", 15, None),
    ("材質", 15, None),
    ("数量", 10, "#,##0"),
    ("重量", 12, "#,##0.00"),
    ("単価", 15, "#,##0"),
    ("価格", 15, "#,##0"),
    ("自動", 10, None),
)

SUMMARY_FIELDS: Sequence[str] = COST_COMPONENTS + ("direct_cost", "manufacturing_cost", "total_cost")

REMARK_SECTIONS: Sequence[tuple[str, str]] = (
    ("remarks", "備考"),
    ("material_cost_notes", "材料費補足"),
    ("internal_processing_notes", "内作加工費補足"),
    ("external_processing_notes", "外注加工等補足"),
)


def _add_sheet(workbook: Workbook, title: str, headers: Sequence[tuple[str, int]]) -> Worksheet:
    sheet = workbook.create_sheet(title)
    sheet.append([header for header, _ in headers])
    for index, (_, width) in enumerate(headers, start=1):
        sheet.column_dimensions[get_column_letter(index)].width = width
    for cell in sheet[1]:
        cell.font = HEADER_FONT
        cell.fill = HEADER_FILL
    return sheet


def _format_date(value: date | None) -> str:
    return value.strftime("%Y/%m/%d") if value else ""


def project_info_rows(estimate: Estimate) -> list[tuple[str, Any]]:
    info = estimate.project_info
    quantity = f"{info.production_quantity:g} {info.production_unit}"
    return [
        ("見積番号", info.estimate_number),
        ("客先", info.customer),
        ("向先", info.delivery_destination),
        ("機器名", info.equipment_name),
        ("製作数量", quantity),
        ("納期", _format_date(info.delivery_date)),
        ("機種", info.model),
        ("機器形状", info.equipment_shape),
        ("重量", f"{info.weight:g} kg"),
    ]


def generate_excel(estimate: Estimate) -> bytes:
    """Render an estimate as an .xlsx workbook."""
    workbook = Workbook()
    workbook.remove(workbook.active)

    info_sheet = _add_sheet(workbook, "基本情報", (("項目", 20), ("値", 30)))
    for row in project_info_rows(estimate):
        info_sheet.append(row)

    detail_sheet = _add_sheet(workbook, "原価明細", [(header, width) for header, width, _ in DETAIL_COLUMNS])
    for item in estimate.table_data:
        detail_sheet.append(
            [
                item.model_number,
                item.name,
                item.part_type,
                item.material,
                item.quantity,
                item.weight,
                item.unit_price,
                item.price,
                "✓" if item.is_auto else "",
            ]
        )
    for index, (_, _, number_format) in enumerate(DETAIL_COLUMNS, start=1):
        if number_format is None:
            continue
        for (cell,) in detail_sheet.iter_rows(min_row=2, min_col=index, max_col=index):
            cell.number_format = number_format

    cost_sheet = _add_sheet(workbook, "原価計算", (("項目", 25), ("金額", 20)))
    cost = estimate.cost_calculation
    for field_name in SUMMARY_FIELDS:
        cost_sheet.append([COST_FIELD_LABELS[field_name], getattr(cost, field_name)])
    cost_sheet.append([f"{COST_FIELD_LABELS['painting_area']}(m²)", cost.painting_area])
    for (cell,) in cost_sheet.iter_rows(min_row=2, max_row=len(SUMMARY_FIELDS) + 1, min_col=2, max_col=2):
        cell.number_format = "#,##0"

    remarks_sheet = _add_sheet(workbook, "備考・補足", (("カテゴリ", 30), ("内容", 50)))
    for attribute, label in REMARK_SECTIONS:
        for index, note in enumerate(getattr(estimate.remarks_data, attribute), start=1):
            if note:
                remarks_sheet.append([f"{label}{index}", note])

    buffer = io.BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


def export_filename(estimate: Estimate, extension: str, *, today: date | None = None) -> str:
    today = today or date.today()
    return f"見積書_{estimate.estimate_number}_{today.strftime('%Y%m%d')}.{extension}"


__all__ = ["export_filename", "generate_excel", "project_info_rows"]
