from __future__ import annotations

from pathlib import PurePath

from ..exceptions import FileParseError
from ..models.line_item import LineItem
from .excel import parse_excel_file
from .pdf import parse_pdf_file


def parse_upload(filename: str, data: bytes) -> list[LineItem]:
    """Parse one uploaded file into line items according to its extension."""
    extension = PurePath(filename).suffix.lower()
    if extension == ".pdf":
        return parse_pdf_file(data)
    if extension in (".xlsx", ".xlsm"):
        return parse_excel_file(data)
    if extension == ".xls":
        raise FileParseError("旧形式のExcelファイル(.xls)は読み込めません。.xlsxで保存し直してください")
    raise FileParseError(f"対応していないファイル形式です: {extension}")


__all__ = ["parse_upload"]
