from __future__ import annotations

import math
import uuid
from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field, field_validator
from pydantic.alias_generators import to_camel

DIMENSION_FIELDS: tuple[str, ...] = ("length", "width", "height", "thickness", "diameter", "radius")


def coerce_number(value: Any) -> float | None:
    """Best-effort numeric conversion; anything unusable becomes ``None``."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        text = value.replace(",", "").strip()
        if not text:
            return None
        try:
            number = float(text)
        except ValueError:
            return None
    else:
        return None
    if not math.isfinite(number):
        return None
    return number


TRUTHY_FLAGS = frozenset({"true", "1", "yes", "y", "on", "✓", "○", "〇", "auto", "自動"})


def coerce_flag(value: Any) -> bool:
    """Checkbox-style flag; strings count only when they spell a truthy marker."""
    if isinstance(value, str):
        return value.strip().lower() in TRUTHY_FLAGS
    return bool(value)


class DimensionData(BaseModel):
    """Sparse dimension bag as exchanged with the estimate screens (mm)."""

    part_type: str = ""
    length: float | None = None
    width: float | None = None
    height: float | None = None
    thickness: float | None = None
    diameter: float | None = None
    radius: float | None = None
    custom: str | None = None

    class Config:
        populate_by_name = True
        alias_generator = to_camel
        extra = "allow"

    @field_validator(*DIMENSION_FIELDS, mode="before")
    @classmethod
    def _numeric_or_none(cls, value: Any) -> float | None:
        return coerce_number(value)

    @field_validator("part_type", mode="before")
    @classmethod
    def _text(cls, value: Any) -> str:
        return "" if value is None else str(value)


class LineItem(BaseModel):
    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    model_number: str = ""
    name: str = ""
    part_type: str = ""
    material: str = ""
    dimensions: DimensionData = Field(default_factory=DimensionData)
    quantity: float = 0.0
    weight: float = 0.0
    unit_price: float = 0.0
    price: float = 0.0
    auto_display: bool = False
    is_auto: bool = False
    is_auto_input: bool = False
    is_template_diff: bool = False
    created_at: datetime | None = None
    updated_at: datetime | None = None

    class Config:
        populate_by_name = True
        alias_generator = to_camel
        protected_namespaces = ()

    @field_validator("quantity", "weight", "unit_price", "price", mode="before")
    @classmethod
    def _numeric_or_zero(cls, value: Any) -> float:
        number = coerce_number(value)
        return 0.0 if number is None else number

    @field_validator("model_number", "name", "part_type", "material", mode="before")
    @classmethod
    def _text(cls, value: Any) -> str:
        return "" if value is None else str(value)

    @field_validator("dimensions", mode="before")
    @classmethod
    def _dimensions(cls, value: Any) -> Any:
        return {} if value is None else value

    @field_validator("is_auto", "auto_display", "is_auto_input", "is_template_diff", mode="before")
    @classmethod
    def _flag(cls, value: Any) -> bool:
        return coerce_flag(value)


__all__ = ["DIMENSION_FIELDS", "DimensionData", "LineItem", "TRUTHY_FLAGS", "coerce_flag", "coerce_number"]
