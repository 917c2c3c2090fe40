from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Iterable, Mapping

from pydantic.alias_generators import to_camel

from .calculation.recalculation import CostCalculator, RecalculationResult
from .calculation.summary import compose_cost_summary
from .dictionaries import MANUAL_COST_FIELDS
from .estimate_store import EstimateRepository
from .exceptions import EstimateNotFoundError, LineItemNotFoundError
from .models.cost import CostCalculation
from .models.estimate import Estimate, ProjectInfo
from .models.line_item import LineItem

logger = logging.getLogger(__name__)


class EstimateService:
    """Estimate lifecycle and cost-table editing on top of a repository."""

    def __init__(self, *, repository: EstimateRepository, calculator: CostCalculator | None = None) -> None:
        self._repository = repository
        self._calculator = calculator or CostCalculator()

    def save_estimate(self, estimate: Estimate) -> Estimate:
        saved = self._repository.save(estimate)
        logger.info(
            "Saved estimate",
            extra={"estimate_id": saved.id, "estimate_number": saved.estimate_number},
        )
        return saved

    def get_estimate(self, estimate_id: str) -> Estimate:
        estimate = self._repository.get(estimate_id)
        if estimate is None:
            raise EstimateNotFoundError(estimate_id)
        return estimate

    def find_by_estimate_number(self, estimate_number: str) -> Estimate | None:
        return self._repository.find_by_estimate_number(estimate_number)

    def list_estimates(self) -> list[Estimate]:
        return self._repository.list_estimates()

    def delete_estimate(self, estimate_id: str) -> None:
        if not self._repository.delete(estimate_id):
            raise EstimateNotFoundError(estimate_id)
        logger.info("Deleted estimate", extra={"estimate_id": estimate_id})

    def get_project_info(self, estimate_id: str) -> ProjectInfo:
        return self.get_estimate(estimate_id).project_info

    def update_project_info(self, estimate_id: str, project_info: ProjectInfo) -> ProjectInfo:
        estimate = self.get_estimate(estimate_id)
        saved = self._repository.save(estimate.model_copy(update={"project_info": project_info}))
        logger.info(
            "Updated project info",
            extra={"estimate_id": estimate_id, "estimate_number": saved.estimate_number},
        )
        return saved.project_info

    def get_table_data(self, estimate_id: str) -> list[LineItem]:
        return list(self.get_estimate(estimate_id).table_data)

    def replace_table_data(self, estimate_id: str, rows: Iterable[LineItem]) -> list[LineItem]:
        estimate = self.get_estimate(estimate_id)
        saved = self._repository.save(estimate.model_copy(update={"table_data": list(rows)}))
        return list(saved.table_data)

    def add_row(self, estimate_id: str) -> LineItem:
        estimate = self.get_estimate(estimate_id)
        now = datetime.utcnow()
        row = LineItem(quantity=1, created_at=now, updated_at=now)
        self._repository.save(estimate.model_copy(update={"table_data": [*estimate.table_data, row]}))
        return row

    def update_row(self, estimate_id: str, row_id: str, patch: Mapping[str, Any]) -> LineItem:
        estimate = self.get_estimate(estimate_id)
        rows = list(estimate.table_data)
        index = self._row_index(estimate, row_id)
        data = rows[index].model_dump(by_alias=True)
        data.update({(to_camel(key) if "_" in key else key): value for key, value in patch.items()})
        data["id"] = row_id
        data["updatedAt"] = datetime.utcnow()
        updated = LineItem.model_validate(data)
        rows[index] = updated
        self._repository.save(estimate.model_copy(update={"table_data": rows}))
        return updated

    def delete_row(self, estimate_id: str, row_id: str) -> None:
        estimate = self.get_estimate(estimate_id)
        index = self._row_index(estimate, row_id)
        rows = [row for position, row in enumerate(estimate.table_data) if position != index]
        self._repository.save(estimate.model_copy(update={"table_data": rows}))

    def get_cost_calculation(self, estimate_id: str) -> CostCalculation:
        return self.get_estimate(estimate_id).cost_calculation

    def update_manual_costs(self, estimate_id: str, payload: Mapping[str, Any]) -> CostCalculation:
        """Apply the manual cost fields of ``payload``; automatic fields in it are ignored."""
        estimate = self.get_estimate(estimate_id)
        manual = estimate.cost_calculation.manual_costs().model_dump()
        for field_name in MANUAL_COST_FIELDS:
            for key in (to_camel(field_name), field_name):
                if key in payload and payload[key] is not None:
                    manual[field_name] = payload[key]
                    break
        cost_calculation = compose_cost_summary(estimate.cost_calculation.automatic_costs(), manual)
        self._repository.save(estimate.model_copy(update={"cost_calculation": cost_calculation}))
        return cost_calculation

    def recalculate(self, estimate_id: str) -> RecalculationResult:
        estimate = self.get_estimate(estimate_id)
        result = self._calculator.recalculate_everything(estimate.table_data, estimate.cost_calculation)
        self._repository.save(
            estimate.model_copy(update={"table_data": result.rows, "cost_calculation": result.cost_calculation})
        )
        logger.info(
            "Recalculated estimate",
            extra={
                "estimate_id": estimate_id,
                "rows": len(result.rows),
                "total_cost": result.cost_calculation.total_cost,
            },
        )
        return result

    @staticmethod
    def _row_index(estimate: Estimate, row_id: str) -> int:
        for index, row in enumerate(estimate.table_data):
            if row.id == row_id:
                return index
        raise LineItemNotFoundError(estimate.id or "", row_id)


__all__ = ["EstimateService"]
