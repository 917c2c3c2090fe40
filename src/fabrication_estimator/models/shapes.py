from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from ..dictionaries import CYLINDER, SHEET_METAL, normalize_part_type
from .line_item import DimensionData


@dataclass(frozen=True)
class SheetMetal:
    length: float
    width: float
    thickness: float
    height: float | None = None


@dataclass(frozen=True)
class Cylinder:
    diameter: float
    height: float


@dataclass(frozen=True)
class OtherShape:
    custom: str | None = None


Shape = Union[SheetMetal, Cylinder, OtherShape]


def _positive(value: float | None) -> float | None:
    if value is None or value <= 0:
        return None
    return value


def resolve_shape(dimensions: DimensionData | None, part_type: str | None) -> Shape:
    """Pick the shape variant whose formula the row's data can feed.

    A recognised part type with incomplete dimensions falls back to
    ``OtherShape`` so the weight is left to manual entry.
    """
    dims = dimensions or DimensionData()
    kind = normalize_part_type(part_type)
    if kind == SHEET_METAL:
        length = _positive(dims.length)
        width = _positive(dims.width)
        thickness = _positive(dims.thickness)
        if length and width and thickness:
            return SheetMetal(length=length, width=width, thickness=thickness, height=_positive(dims.height))
    elif kind == CYLINDER:
        diameter = _positive(dims.diameter)
        height = _positive(dims.height)
        if diameter and height:
            return Cylinder(diameter=diameter, height=height)
    return OtherShape(custom=dims.custom)


__all__ = ["Cylinder", "OtherShape", "Shape", "SheetMetal", "resolve_shape"]
