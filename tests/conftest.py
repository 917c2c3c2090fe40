from __future__ import annotations

import pytest

from fabrication_estimator.estimate_service import EstimateService
from fabrication_estimator.estimate_store import InMemoryEstimateStore
from fabrication_estimator.models.estimate import Estimate, ProjectInfo
from fabrication_estimator.models.line_item import DimensionData, LineItem


def make_row(**overrides) -> LineItem:
    data = {
        "model_number": "A100",
        "name": "Bolt",
        "part_type": "",
        "material": "",
        "quantity": 1,
        "unit_price": 0,
    }
    data.update(overrides)
    return LineItem(**data)


@pytest.fixture
def sheet_metal_row() -> LineItem:
    return make_row(
        model_number="SP-01",
        name="天板",
        part_type="sheet_metal",
        material="SUS304",
        dimensions=DimensionData(part_type="sheet_metal", length=1000, width=500, thickness=10, height=300),
        quantity=2,
        unit_price=100,
        is_auto=True,
    )


@pytest.fixture
def cylinder_row() -> LineItem:
    return make_row(
        model_number="CY-01",
        name="胴板",
        part_type="cylinder",
        material="炭素鋼",
        dimensions=DimensionData(part_type="cylinder", diameter=100, height=1000),
        quantity=1,
        unit_price=500,
    )


@pytest.fixture
def store() -> InMemoryEstimateStore:
    return InMemoryEstimateStore()


@pytest.fixture
def service(store: InMemoryEstimateStore) -> EstimateService:
    return EstimateService(repository=store)


@pytest.fixture
def saved_estimate(service: EstimateService, sheet_metal_row: LineItem, cylinder_row: LineItem) -> Estimate:
    estimate = Estimate(
        project_info=ProjectInfo(estimate_number="EST-2025-0042", customer="東邦化工株式会社"),
        table_data=[sheet_metal_row, cylinder_row],
    )
    return service.save_estimate(estimate)
