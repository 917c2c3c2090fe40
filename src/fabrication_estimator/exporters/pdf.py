from __future__ import annotations

import io
import logging
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.cidfonts import UnicodeCIDFont
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from ..dictionaries import COST_FIELD_LABELS
from ..models.estimate import Estimate
from .excel import REMARK_SECTIONS, SUMMARY_FIELDS, project_info_rows

logger = logging.getLogger(__name__)

FONT_NAME = "HeiseiKakuGo-W5"
COLOR_HEADER = colors.HexColor("#e0e0e0")
COLOR_GRID = colors.HexColor("#999999")


def _register_font() -> None:
    if FONT_NAME not in pdfmetrics.getRegisteredFontNames():
        pdfmetrics.registerFont(UnicodeCIDFont(FONT_NAME))


def _styles() -> dict[str, ParagraphStyle]:
    base = getSampleStyleSheet()
    return {
        "title": ParagraphStyle("EstimateTitle", parent=base["Title"], fontName=FONT_NAME, fontSize=20),
        "section": ParagraphStyle("EstimateSection", parent=base["Heading2"], fontName=FONT_NAME, fontSize=12),
        "body": ParagraphStyle("EstimateBody", parent=base["Normal"], fontName=FONT_NAME, fontSize=9),
    }


def _table(data: list[list[object]], col_widths: list[float], *, header: bool = True, right_from: int | None = None) -> Table:
    table = Table(data, colWidths=col_widths, repeatRows=1 if header else 0)
    commands = [
        ("FONTNAME", (0, 0), (-1, -1), FONT_NAME),
        ("FONTSIZE", (0, 0), (-1, -1), 8),
        ("GRID", (0, 0), (-1, -1), 0.5, COLOR_GRID),
        ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
    ]
    if header:
        commands.append(("BACKGROUND", (0, 0), (-1, 0), COLOR_HEADER))
    if right_from is not None:
        commands.append(("ALIGN", (right_from, 1 if header else 0), (-1, -1), "RIGHT"))
    table.setStyle(TableStyle(commands))
    return table


def _yen(value: float) -> str:
    return f"¥{value:,.0f}"


def generate_pdf(estimate: Estimate) -> bytes:
    """Render an estimate as an A4 PDF document."""
    _register_font()
    styles = _styles()
    buffer = io.BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=A4,
        leftMargin=15 * mm,
        rightMargin=15 * mm,
        topMargin=15 * mm,
        bottomMargin=15 * mm,
        title=f"見積書 {estimate.estimate_number}",
    )

    elements: list[object] = [Paragraph("見積書", styles["title"]), Spacer(1, 6 * mm)]

    elements.append(Paragraph("基本情報", styles["section"]))
    info_rows = [[label, str(value)] for label, value in project_info_rows(estimate)]
    elements.append(_table(info_rows, [40 * mm, 120 * mm], header=False))
    elements.append(Spacer(1, 6 * mm))

    elements.append(Paragraph("原価明細", styles["section"]))
    detail_rows: list[list[object]] = [["型式", "名称", "Part Type", "材質", "数量", "重量(kg)", "単価", "価格"]]
    for item in estimate.table_data:
        detail_rows.append(
            [
                item.model_number,
                item.name,
                item.part_type,
                item.material,
                f"{item.quantity:,g}",
                f"{item.weight:,.2f}",
                _yen(item.unit_price),
                _yen(item.price),
            ]
        )
    widths = [22 * mm, 35 * mm, 20 * mm, 20 * mm, 14 * mm, 18 * mm, 25 * mm, 26 * mm]
    elements.append(_table(detail_rows, widths, right_from=4))
    elements.append(Spacer(1, 6 * mm))

    elements.append(Paragraph("原価計算", styles["section"]))
    cost = estimate.cost_calculation
    cost_rows: list[list[object]] = [["項目", "金額"]]
    cost_rows.extend([COST_FIELD_LABELS[name], _yen(getattr(cost, name))] for name in SUMMARY_FIELDS)
    cost_rows.append([COST_FIELD_LABELS["painting_area"], f"{cost.painting_area:,.2f} m²"])
    elements.append(_table(cost_rows, [60 * mm, 50 * mm], right_from=1))

    notes = [
        f"{label}{index}: {note}"
        for attribute, label in REMARK_SECTIONS
        for index, note in enumerate(getattr(estimate.remarks_data, attribute), start=1)
        if note
    ]
    if notes:
        elements.append(Spacer(1, 6 * mm))
        elements.append(Paragraph("備考・補足", styles["section"]))
        elements.extend(Paragraph(escape(note), styles["body"]) for note in notes)

    doc.build(elements)
    logger.debug("Rendered estimate PDF", extra={"estimate_number": estimate.estimate_number})
    return buffer.getvalue()


__all__ = ["generate_pdf"]
