from __future__ import annotations

from typing import Iterable, Mapping

from ..dictionaries import MATERIAL_DENSITY
from ..models.line_item import LineItem
from .weight import compute_weight


def line_price(*, unit_price: float, quantity: float, weight: float, is_auto: bool) -> float:
    if is_auto:
        # Auto-priced rows without a usable weight are priced per piece.
        return unit_price * quantity * max(weight, 1)
    return unit_price * quantity


def price_row(row: LineItem, *, densities: Mapping[str, float] = MATERIAL_DENSITY) -> LineItem:
    weight = compute_weight(row.dimensions, row.material, row.part_type, densities=densities)
    price = line_price(unit_price=row.unit_price, quantity=row.quantity, weight=weight, is_auto=row.is_auto)
    return row.model_copy(update={"weight": weight, "price": price})


def price_all(rows: Iterable[LineItem], *, densities: Mapping[str, float] = MATERIAL_DENSITY) -> list[LineItem]:
    return [price_row(row, densities=densities) for row in rows]


__all__ = ["line_price", "price_all", "price_row"]
