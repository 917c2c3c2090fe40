from __future__ import annotations

from typing import Sequence

from ..dictionaries import (
    PAINTING_UNIT_RATE,
    PROCESSING_RATE_PER_KG,
    PROCESSING_SETUP_PER_PART_TYPE,
    SHEET_METAL,
    normalize_part_type,
)
from ..models.cost import AutomaticCosts
from ..models.line_item import LineItem

MM2_PER_M2 = 1_000_000


def calculate_material_cost(rows: Sequence[LineItem]) -> float:
    return sum((row.price for row in rows), 0.0)


def calculate_processing_cost(
    rows: Sequence[LineItem],
    *,
    rate_per_kg: float = PROCESSING_RATE_PER_KG,
    setup_per_part_type: float = PROCESSING_SETUP_PER_PART_TYPE,
) -> float:
    """Total handled mass times the per-kg rate plus one setup charge per part type.

    Part types are counted by their raw tag, so ``"板金"`` and ``"sheet_metal"``
    are two process families here.
    """
    total_weight = sum((row.weight for row in rows), 0.0)
    part_types = {row.part_type for row in rows if row.part_type}
    return total_weight * rate_per_kg + len(part_types) * setup_per_part_type


def row_painting_area(row: LineItem) -> float:
    """Six-face box surface of a sheet-metal row in m², times its quantity."""
    if normalize_part_type(row.part_type) != SHEET_METAL:
        return 0.0
    dims = row.dimensions
    length, width, height = dims.length, dims.width, dims.height
    if not (length and width and height):
        return 0.0
    area = (2 * ((length * width) + (width * height) + (height * length))) / MM2_PER_M2
    return area * row.quantity


def calculate_painting_area(rows: Sequence[LineItem]) -> float:
    return sum((row_painting_area(row) for row in rows), 0.0)


def calculate_painting_cost(painting_area: float, *, unit_rate: float = PAINTING_UNIT_RATE) -> float:
    return painting_area * unit_rate


def aggregate_costs(
    rows: Sequence[LineItem],
    *,
    painting_unit_rate: float = PAINTING_UNIT_RATE,
    processing_rate_per_kg: float = PROCESSING_RATE_PER_KG,
    processing_setup_per_part_type: float = PROCESSING_SETUP_PER_PART_TYPE,
) -> AutomaticCosts:
    painting_area = calculate_painting_area(rows)
    return AutomaticCosts(
        material_cost=calculate_material_cost(rows),
        processing_cost=calculate_processing_cost(
            rows,
            rate_per_kg=processing_rate_per_kg,
            setup_per_part_type=processing_setup_per_part_type,
        ),
        painting_area=painting_area,
        painting_cost=calculate_painting_cost(painting_area, unit_rate=painting_unit_rate),
    )


__all__ = [
    "aggregate_costs",
    "calculate_material_cost",
    "calculate_painting_area",
    "calculate_painting_cost",
    "calculate_processing_cost",
    "row_painting_area",
]
