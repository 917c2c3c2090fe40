from __future__ import annotations

import io
import logging
import zipfile
from datetime import datetime
from typing import Any, Sequence

from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException

from ..exceptions import FileParseError
from ..models.line_item import DIMENSION_FIELDS, DimensionData, LineItem, coerce_flag, coerce_number

logger = logging.getLogger(__name__)

# 1-based column layout of the cost-detail sheet exported by the estimate screens.
COLUMN_MODEL_NUMBER = 1
COLUMN_NAME = 2
COLUMN_PART_TYPE = 3
COLUMN_MATERIAL = 4
COLUMN_QUANTITY = 6
COLUMN_WEIGHT = 7
COLUMN_UNIT_PRICE = 8
COLUMN_PRICE = 9
COLUMN_IS_AUTO = 10
COLUMN_FIRST_DIMENSION = 11  # length, width, height, thickness, diameter, radius
LAST_COLUMN = COLUMN_FIRST_DIMENSION + len(DIMENSION_FIELDS) - 1


def _cell(values: Sequence[Any], column: int) -> Any:
    index = column - 1
    return values[index] if index < len(values) else None


def _text(value: Any) -> str:
    return "" if value is None else str(value).strip()


def row_from_values(values: Sequence[Any], *, now: datetime | None = None) -> LineItem:
    """Build a parsed line item from one sheet row (cell values in column order)."""
    part_type = _text(_cell(values, COLUMN_PART_TYPE))
    dimensions: dict[str, Any] = {"part_type": part_type}
    for offset, field_name in enumerate(DIMENSION_FIELDS):
        number = coerce_number(_cell(values, COLUMN_FIRST_DIMENSION + offset))
        if number:
            dimensions[field_name] = number

    quantity = coerce_number(_cell(values, COLUMN_QUANTITY)) or 1
    unit_price = coerce_number(_cell(values, COLUMN_UNIT_PRICE)) or 0.0
    price = coerce_number(_cell(values, COLUMN_PRICE)) or 0.0
    if price == 0 and unit_price > 0 and quantity > 0:
        price = unit_price * quantity

    return LineItem(
        model_number=_text(_cell(values, COLUMN_MODEL_NUMBER)),
        name=_text(_cell(values, COLUMN_NAME)),
        part_type=part_type,
        material=_text(_cell(values, COLUMN_MATERIAL)),
        dimensions=DimensionData(**dimensions),
        quantity=quantity,
        weight=coerce_number(_cell(values, COLUMN_WEIGHT)) or 0.0,
        unit_price=unit_price,
        price=price,
        is_auto=coerce_flag(_cell(values, COLUMN_IS_AUTO)),
        is_auto_input=True,
        created_at=now,
        updated_at=now,
    )


def parse_excel_file(data: bytes) -> list[LineItem]:
    """Read the cost-detail rows from the first sheet of an .xlsx/.xlsm workbook.

    Row 1 is the header; rows whose first cell is empty are skipped.
    """
    try:
        workbook = load_workbook(io.BytesIO(data), read_only=True, data_only=True)
    except (InvalidFileException, zipfile.BadZipFile, KeyError, OSError) as exc:
        raise FileParseError(f"Excelファイルを読み込めませんでした: {exc}") from exc

    try:
        if not workbook.worksheets:
            raise FileParseError("Excelファイルにシートが見つかりません")
        worksheet = workbook.worksheets[0]
        now = datetime.utcnow()
        rows: list[LineItem] = []
        for row_number, values in enumerate(
            worksheet.iter_rows(min_row=2, max_col=LAST_COLUMN, values_only=True), start=2
        ):
            if not values or _cell(values, COLUMN_MODEL_NUMBER) in (None, ""):
                continue
            rows.append(row_from_values(values, now=now))
    finally:
        workbook.close()

    logger.info("Parsed Excel file", extra={"sheet": worksheet.title, "rows": len(rows)})
    return rows


__all__ = ["parse_excel_file", "row_from_values"]
