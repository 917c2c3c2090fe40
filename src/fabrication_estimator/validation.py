from __future__ import annotations

import math
from collections import Counter
from dataclasses import dataclass, field
from datetime import date, datetime
from pathlib import PurePath
from typing import Any, Iterable, Mapping, Sequence

from pydantic.alias_generators import to_camel

from .dictionaries import (
    ACCEPTED_FILE_EXTENSIONS,
    AUTOMATIC_COST_FIELDS,
    COST_FIELD_LABELS,
    DEFAULT_PRODUCTION_UNIT,
    MANUAL_COST_FIELDS,
    MAX_FILE_SIZE,
    MAX_UPLOAD_FILES,
    PRODUCTION_UNITS,
)
from .models.line_item import DIMENSION_FIELDS, coerce_number


@dataclass(frozen=True)
class ValidationIssue:
    field: str
    message: str


@dataclass
class ValidationResult:
    issues: list[ValidationIssue] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.issues

    @property
    def errors(self) -> list[str]:
        return [issue.message for issue in self.issues]

    def add(self, field_name: str, message: str) -> None:
        self.issues.append(ValidationIssue(field=field_name, message=message))

    def extend(self, other: "ValidationResult") -> None:
        self.issues.extend(other.issues)

    def by_field(self) -> dict[str, str]:
        """First message per field, in the order the fields were checked."""
        messages: dict[str, str] = {}
        for issue in self.issues:
            messages.setdefault(issue.field, issue.message)
        return messages


@dataclass(frozen=True)
class UploadedFileInfo:
    name: str
    size: int


def is_finite_number(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


def _lookup(payload: Mapping[str, Any], field_name: str) -> tuple[str, Any] | None:
    camel = to_camel(field_name)
    if camel in payload:
        return camel, payload[camel]
    if field_name in payload:
        return field_name, payload[field_name]
    return None


def _check_non_negative(result: ValidationResult, key: str, label: str, value: Any) -> None:
    if not is_finite_number(value):
        result.add(key, f"{label}は数値である必要があります")
    elif value < 0:
        result.add(key, f"{label}は0以上である必要があります")


def validate_cost_calculation(payload: Mapping[str, Any]) -> ValidationResult:
    """Check every cost field present in an update payload; all violations are reported."""
    result = ValidationResult()
    for field_name in MANUAL_COST_FIELDS + AUTOMATIC_COST_FIELDS:
        found = _lookup(payload, field_name)
        if found is None:
            continue
        key, value = found
        _check_non_negative(result, key, COST_FIELD_LABELS[field_name], value)
    return result


_ROW_LABELS: Mapping[str, str] = {
    "quantity": "数量",
    "unit_price": "単価",
    "length": "長さ",
    "width": "幅",
    "height": "高さ",
    "thickness": "厚さ",
    "diameter": "直径",
    "radius": "半径",
}


def validate_line_items(rows: Sequence[Mapping[str, Any]]) -> ValidationResult:
    """Guard raw table rows before they enter the table: numbers must be finite and ≥ 0."""
    result = ValidationResult()
    for index, row in enumerate(rows):
        if not isinstance(row, Mapping):
            result.add(f"tableData[{index}]", f"{index + 1}行目の形式が不正です")
            continue
        for field_name in ("quantity", "unit_price"):
            found = _lookup(row, field_name)
            if found is None or found[1] is None:
                continue
            key, value = found
            _check_non_negative(result, f"tableData[{index}].{key}", f"{index + 1}行目の{_ROW_LABELS[field_name]}", value)
        dimensions = row.get("dimensions")
        if not isinstance(dimensions, Mapping):
            continue
        for field_name in DIMENSION_FIELDS:
            value = dimensions.get(field_name)
            if value is None:
                continue
            _check_non_negative(
                result,
                f"tableData[{index}].dimensions.{field_name}",
                f"{index + 1}行目の{_ROW_LABELS[field_name]}",
                value,
            )
    return result


_PROJECT_TEXT_FIELDS: Mapping[str, str] = {
    "estimate_number": "見積番号",
    "customer": "客先",
    "delivery_destination": "向先",
    "equipment_name": "機器名",
    "model": "機種",
    "equipment_shape": "機器形状",
}

_PROJECT_NUMBER_FIELDS: Mapping[str, str] = {
    "production_quantity": "製作数量",
    "weight": "重量",
}


def _blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _parse_date(value: Any) -> date | None:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value.strip().split("T", 1)[0])
        except ValueError:
            return None
    return None


def normalize_project_info(payload: Mapping[str, Any]) -> dict[str, Any]:
    """Trim text fields and fill numeric and unit defaults.

    Values that cannot be normalized are passed through unchanged so that
    ``validate_project_info`` can report them.
    """
    normalized: dict[str, Any] = {}
    for field_name in _PROJECT_TEXT_FIELDS:
        found = _lookup(payload, field_name)
        value = found[1] if found else None
        normalized[field_name] = "" if value is None else str(value).strip()
    for field_name in _PROJECT_NUMBER_FIELDS:
        found = _lookup(payload, field_name)
        value = found[1] if found else None
        if _blank(value):
            normalized[field_name] = 0.0
        else:
            number = coerce_number(value)
            normalized[field_name] = value if number is None else number
    found = _lookup(payload, "production_unit")
    unit = found[1] if found else None
    normalized["production_unit"] = DEFAULT_PRODUCTION_UNIT if _blank(unit) else unit
    found = _lookup(payload, "delivery_date")
    delivery_date = found[1] if found else None
    normalized["delivery_date"] = None if _blank(delivery_date) else delivery_date
    return normalized


def validate_project_info(payload: Mapping[str, Any]) -> ValidationResult:
    """Check the basic-information block; every problem is reported under its field name."""
    result = ValidationResult()
    for field_name, label in _PROJECT_TEXT_FIELDS.items():
        found = _lookup(payload, field_name)
        value = found[1] if found else None
        if not isinstance(value, str) or not value.strip():
            result.add(to_camel(field_name), f"{label}は必須です")

    for field_name, label in _PROJECT_NUMBER_FIELDS.items():
        found = _lookup(payload, field_name)
        value = found[1] if found else None
        if not is_finite_number(value) or value < 0:
            result.add(to_camel(field_name), f"{label}は0以上の数値で入力してください")

    found = _lookup(payload, "production_unit")
    if found is None or found[1] not in PRODUCTION_UNITS:
        result.add("productionUnit", "単位を選択してください")

    found = _lookup(payload, "delivery_date")
    delivery_date = found[1] if found else None
    if _blank(delivery_date):
        result.add("deliveryDate", "納期は必須です")
    elif _parse_date(delivery_date) is None:
        result.add("deliveryDate", "有効な日付を入力してください")
    return result


def validate_file_type(filename: str) -> bool:
    return PurePath(filename).suffix.lower() in ACCEPTED_FILE_EXTENSIONS


def validate_file_size(size: int, *, max_size: int = MAX_FILE_SIZE) -> bool:
    return size <= max_size


def validate_file(file: UploadedFileInfo, *, max_size: int = MAX_FILE_SIZE) -> ValidationResult:
    result = ValidationResult()
    if not validate_file_type(file.name):
        accepted = ", ".join(ACCEPTED_FILE_EXTENSIONS)
        result.add(file.name, f"{file.name}: 対応していないファイル形式です（対応形式: {accepted}）")
    if not validate_file_size(file.size, max_size=max_size):
        result.add(file.name, f"{file.name}: ファイルサイズが大きすぎます（最大{max_size // (1024 * 1024)}MB）")
    return result


def validate_files(
    files: Iterable[UploadedFileInfo],
    *,
    max_files: int = MAX_UPLOAD_FILES,
    max_size: int = MAX_FILE_SIZE,
) -> ValidationResult:
    """Validate an upload batch: count, duplicates and every file, reporting all problems."""
    files = list(files)
    result = ValidationResult()
    if len(files) > max_files:
        result.add("files", f"ファイル数が上限（{max_files}個）を超えています")
    seen = Counter((file.name, file.size) for file in files)
    if any(count > 1 for count in seen.values()):
        result.add("files", "重複したファイルが検出されました")
    for file in files:
        result.extend(validate_file(file, max_size=max_size))
    return result


__all__ = [
    "UploadedFileInfo",
    "ValidationIssue",
    "ValidationResult",
    "is_finite_number",
    "normalize_project_info",
    "validate_cost_calculation",
    "validate_file",
    "validate_file_size",
    "validate_file_type",
    "validate_files",
    "validate_line_items",
    "validate_project_info",
]
