from __future__ import annotations

from typing import Any, Mapping

from pydantic import BaseModel

from ..models.cost import AutomaticCosts, CostCalculation, ManualCosts


def compose_cost_summary(
    automatic: AutomaticCosts,
    manual: ManualCosts | CostCalculation | Mapping[str, Any] | None = None,
) -> CostCalculation:
    """Combine recomputed automatic costs with the human-entered ones.

    ``manual`` may be a ``ManualCosts``, a previous ``CostCalculation`` or a raw
    payload; any manual field it lacks counts as 0. The total, direct and
    manufacturing costs are derived by ``CostCalculation`` itself.
    """
    if not isinstance(manual, ManualCosts):
        manual = ManualCosts.from_source(manual if isinstance(manual, (BaseModel, Mapping)) else None)
    return CostCalculation(**automatic.model_dump(), **manual.model_dump())


__all__ = ["compose_cost_summary"]
