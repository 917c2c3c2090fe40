from __future__ import annotations

import logging
import math
from typing import Mapping

from ..dictionaries import MATERIAL_DENSITY, resolve_density
from ..models.line_item import DimensionData
from ..models.shapes import Cylinder, OtherShape, Shape, SheetMetal, resolve_shape

logger = logging.getLogger(__name__)

MM3_PER_M3 = 1_000_000_000


def shape_volume(shape: Shape) -> float:
    """Volume in m³ of the solid the shape describes; 0 for manual-entry shapes."""
    if isinstance(shape, SheetMetal):
        return (shape.length * shape.width * shape.thickness) / MM3_PER_M3
    if isinstance(shape, Cylinder):
        radius = shape.diameter / 2
        return (math.pi * radius * radius * shape.height) / MM3_PER_M3
    if isinstance(shape, OtherShape):
        return 0.0
    raise TypeError(f"Unsupported shape: {shape!r}")


def compute_weight(
    dimensions: DimensionData | None,
    material: str | None,
    part_type: str | None,
    *,
    densities: Mapping[str, float] = MATERIAL_DENSITY,
) -> float:
    """Weight in kg of one piece, or 0 when the weight must be entered by hand."""
    shape = resolve_shape(dimensions, part_type)
    volume = shape_volume(shape)
    if volume <= 0:
        return 0.0
    return volume * resolve_density(material, densities)


__all__ = ["compute_weight", "shape_volume"]
