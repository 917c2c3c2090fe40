from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Union

from ..dictionaries import (
    MATERIAL_DENSITY,
    PAINTING_UNIT_RATE,
    PROCESSING_RATE_PER_KG,
    PROCESSING_SETUP_PER_PART_TYPE,
)
from ..models.cost import AutomaticCosts, CostCalculation, ManualCosts
from ..models.line_item import LineItem
from .aggregation import aggregate_costs
from .pricing import price_all
from .summary import compose_cost_summary

logger = logging.getLogger(__name__)

ManualSource = Union[ManualCosts, CostCalculation, Mapping[str, Any], None]


@dataclass
class RecalculationResult:
    rows: list[LineItem]
    cost_calculation: CostCalculation

    def model_dump(self) -> dict[str, object]:
        return {
            "tableData": [row.model_dump(by_alias=True, mode="json") for row in self.rows],
            "costCalculation": self.cost_calculation.model_dump(by_alias=True),
        }


class CostCalculator:
    """Runs the full pricing → aggregation → summary pipeline with one set of rates."""

    def __init__(
        self,
        *,
        densities: Mapping[str, float] = MATERIAL_DENSITY,
        painting_unit_rate: float = PAINTING_UNIT_RATE,
        processing_rate_per_kg: float = PROCESSING_RATE_PER_KG,
        processing_setup_per_part_type: float = PROCESSING_SETUP_PER_PART_TYPE,
    ) -> None:
        self._densities = dict(densities)
        self._painting_unit_rate = painting_unit_rate
        self._processing_rate_per_kg = processing_rate_per_kg
        self._processing_setup_per_part_type = processing_setup_per_part_type

    def price_rows(self, rows: Iterable[LineItem]) -> list[LineItem]:
        return price_all(rows, densities=self._densities)

    def aggregate(self, rows: list[LineItem]) -> AutomaticCosts:
        return aggregate_costs(
            rows,
            painting_unit_rate=self._painting_unit_rate,
            processing_rate_per_kg=self._processing_rate_per_kg,
            processing_setup_per_part_type=self._processing_setup_per_part_type,
        )

    def recalculate_everything(self, rows: Iterable[LineItem], existing: ManualSource = None) -> RecalculationResult:
        priced = self.price_rows(rows)
        automatic = self.aggregate(priced)
        cost_calculation = compose_cost_summary(automatic, existing)
        logger.debug(
            "Recalculated estimate costs",
            extra={"rows": len(priced), "total_cost": cost_calculation.total_cost},
        )
        return RecalculationResult(rows=priced, cost_calculation=cost_calculation)

    def calculate_cost(self, rows: Iterable[LineItem], existing: ManualSource = None) -> CostCalculation:
        return self.recalculate_everything(rows, existing).cost_calculation


_default_calculator = CostCalculator()


def recalculate_everything(rows: Iterable[LineItem], existing: ManualSource = None) -> RecalculationResult:
    return _default_calculator.recalculate_everything(rows, existing)


def calculate_cost(rows: Iterable[LineItem], existing: ManualSource = None) -> CostCalculation:
    return _default_calculator.calculate_cost(rows, existing)


__all__ = ["CostCalculator", "RecalculationResult", "calculate_cost", "recalculate_everything"]
