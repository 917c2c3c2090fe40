from __future__ import annotations

import io
import logging
import re
from datetime import datetime

from pypdf import PdfReader
from pypdf.errors import PdfReadError

from ..exceptions import FileParseError
from ..models.line_item import DimensionData, LineItem, coerce_number

logger = logging.getLogger(__name__)

HEADER_MARKERS = ("型式", "名称")
MIN_COLUMNS = 3


def _column(columns: list[str], index: int) -> str:
    return columns[index] if index < len(columns) else ""


def parse_pdf_text(text: str) -> list[LineItem]:
    """Turn the text of a cost table into line items.

    The first line mentioning a header marker starts the table; every
    following whitespace-separated line with at least three columns is a row
    of model number, name, part type, material, quantity, weight, unit price
    and price.
    """
    lines = [line.strip() for line in text.splitlines() if line.strip()]
    header_index = next(
        (index for index, line in enumerate(lines) if any(marker in line for marker in HEADER_MARKERS)),
        None,
    )
    if header_index is None:
        raise FileParseError("PDFファイルから表データを検出できませんでした")

    now = datetime.utcnow()
    rows: list[LineItem] = []
    for line in lines[header_index + 1 :]:
        columns = re.split(r"\s+", line)
        if len(columns) < MIN_COLUMNS:
            continue
        part_type = _column(columns, 2)
        quantity = coerce_number(_column(columns, 4)) or 1
        unit_price = coerce_number(_column(columns, 6)) or 0.0
        price = coerce_number(_column(columns, 7)) or 0.0
        if price == 0 and unit_price > 0 and quantity > 0:
            price = unit_price * quantity
        rows.append(
            LineItem(
                model_number=columns[0],
                name=columns[1],
                part_type=part_type,
                material=_column(columns, 3),
                dimensions=DimensionData(part_type=part_type),
                quantity=quantity,
                weight=coerce_number(_column(columns, 5)) or 0.0,
                unit_price=unit_price,
                price=price,
                is_auto_input=True,
                created_at=now,
                updated_at=now,
            )
        )
    return rows


def parse_pdf_file(data: bytes) -> list[LineItem]:
    try:
        reader = PdfReader(io.BytesIO(data))
        text = "\n".join(page.extract_text() or "" for page in reader.pages)
    except PdfReadError as exc:
        raise FileParseError(f"PDFファイルを読み込めませんでした: {exc}") from exc

    rows = parse_pdf_text(text)
    logger.info("Parsed PDF file", extra={"pages": len(reader.pages), "rows": len(rows)})
    return rows


__all__ = ["parse_pdf_file", "parse_pdf_text"]
