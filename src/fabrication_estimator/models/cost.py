from __future__ import annotations

from typing import Any, Mapping

from pydantic import BaseModel, field_validator, model_validator
from pydantic.alias_generators import to_camel

from ..dictionaries import DIRECT_COST_RATIO, MANUAL_COST_FIELDS, MANUFACTURING_COST_RATIO
from .line_item import coerce_number

# Summation order of the total cost.
COST_COMPONENTS: tuple[str, ...] = (
    "material_cost",
    "processing_cost",
    "painting_cost",
    "external_inspection_cost",
    "transportation_cost",
    "factory_inspection_cost",
    "design_cost",
)


def _zero_if_missing(value: Any) -> float:
    number = coerce_number(value)
    return 0.0 if number is None else number


def pick_cost_fields(source: Mapping[str, Any] | BaseModel | None, fields: tuple[str, ...]) -> dict[str, float]:
    """Read ``fields`` from a model or a camelCase/snake_case mapping, defaulting to 0."""
    if source is None:
        return {field: 0.0 for field in fields}
    if isinstance(source, BaseModel):
        return {field: _zero_if_missing(getattr(source, field, None)) for field in fields}
    values: dict[str, float] = {}
    for field in fields:
        raw = source.get(field)
        if raw is None:
            raw = source.get(to_camel(field))
        values[field] = _zero_if_missing(raw)
    return values


class AutomaticCosts(BaseModel):
    material_cost: float = 0.0
    processing_cost: float = 0.0
    painting_cost: float = 0.0
    painting_area: float = 0.0

    class Config:
        populate_by_name = True
        alias_generator = to_camel
        frozen = True


class ManualCosts(BaseModel):
    external_inspection_cost: float = 0.0
    transportation_cost: float = 0.0
    factory_inspection_cost: float = 0.0
    design_cost: float = 0.0

    class Config:
        populate_by_name = True
        alias_generator = to_camel
        frozen = True

    @field_validator(*MANUAL_COST_FIELDS, mode="before")
    @classmethod
    def _coerce(cls, value: Any) -> float:
        return _zero_if_missing(value)

    @classmethod
    def from_source(cls, source: Mapping[str, Any] | BaseModel | None) -> "ManualCosts":
        return cls(**pick_cost_fields(source, MANUAL_COST_FIELDS))


class CostCalculation(BaseModel):
    """Read-only cost summary of an estimate.

    ``total_cost``, ``direct_cost`` and ``manufacturing_cost`` are always
    derived from the seven cost components on construction, so a stored or
    posted summary can never carry stale totals.
    """

    material_cost: float = 0.0
    processing_cost: float = 0.0
    painting_cost: float = 0.0
    external_inspection_cost: float = 0.0
    transportation_cost: float = 0.0
    factory_inspection_cost: float = 0.0
    design_cost: float = 0.0
    direct_cost: float = 0.0
    manufacturing_cost: float = 0.0
    total_cost: float = 0.0
    painting_area: float = 0.0

    class Config:
        populate_by_name = True
        alias_generator = to_camel
        frozen = True

    @model_validator(mode="before")
    @classmethod
    def _derive_totals(cls, data: Any) -> Any:
        if isinstance(data, BaseModel):
            data = data.model_dump()
        if not isinstance(data, Mapping):
            return data
        values = pick_cost_fields(data, COST_COMPONENTS + ("painting_area",))
        total = 0.0
        for field in COST_COMPONENTS:
            total += values[field]
        values["total_cost"] = total
        values["direct_cost"] = total * DIRECT_COST_RATIO
        values["manufacturing_cost"] = total * MANUFACTURING_COST_RATIO
        return values

    def manual_costs(self) -> ManualCosts:
        return ManualCosts.from_source(self)

    def automatic_costs(self) -> AutomaticCosts:
        return AutomaticCosts(
            material_cost=self.material_cost,
            processing_cost=self.processing_cost,
            painting_cost=self.painting_cost,
            painting_area=self.painting_area,
        )


__all__ = ["AutomaticCosts", "COST_COMPONENTS", "CostCalculation", "ManualCosts", "pick_cost_fields"]
