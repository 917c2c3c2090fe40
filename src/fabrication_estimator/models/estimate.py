from __future__ import annotations

from datetime import date, datetime
from typing import Any, Literal, Sequence

from pydantic import BaseModel, Field, field_validator
from pydantic.alias_generators import to_camel

from .cost import CostCalculation
from .line_item import LineItem


def _date_part(value: Any) -> Any:
    # Browsers post full ISO timestamps for date pickers.
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        if "T" in text:
            return text.split("T", 1)[0]
    return value


class ProjectInfo(BaseModel):
    estimate_number: str = ""
    customer: str = ""
    delivery_destination: str = ""
    equipment_name: str = ""
    production_quantity: float = 1
    production_unit: Literal["台", "個", "式"] = "台"
    delivery_date: date | None = None
    model: str = ""
    equipment_shape: str = ""
    weight: float = 0.0

    class Config:
        populate_by_name = True
        alias_generator = to_camel
        protected_namespaces = ()
        json_schema_extra = {
            "example": {
                "estimateNumber": "EST-2025-0042",
                "customer": "東邦化工株式会社",
                "deliveryDestination": "千葉工場",
                "equipmentName": "反応槽架台",
                "productionQuantity": 2,
                "productionUnit": "台",
                "deliveryDate": "2025-12-20",
                "model": "RT-300",
                "equipmentShape": "角型",
                "weight": 850,
            }
        }

    @field_validator("delivery_date", mode="before")
    @classmethod
    def _delivery_date(cls, value: Any) -> Any:
        return _date_part(value)


class RemarksData(BaseModel):
    remarks: Sequence[str] = Field(default_factory=list)
    material_cost_notes: Sequence[str] = Field(default_factory=list)
    internal_processing_notes: Sequence[str] = Field(default_factory=list)
    external_processing_notes: Sequence[str] = Field(default_factory=list)

    class Config:
        populate_by_name = True
        alias_generator = to_camel


class ApprovalInfo(BaseModel):
    assessor: str = ""
    assessment_date: date | None = None
    approver: str = ""
    approval_date: date | None = None
    final_approver: str = ""
    seal1: str = ""
    seal2: str = ""
    seal3: str = ""
    seal4: str = ""
    person_in_charge: str = ""

    class Config:
        populate_by_name = True
        alias_generator = to_camel

    @field_validator("assessment_date", "approval_date", mode="before")
    @classmethod
    def _dates(cls, value: Any) -> Any:
        return _date_part(value)


class Estimate(BaseModel):
    id: str | None = None
    project_info: ProjectInfo = Field(default_factory=ProjectInfo)
    table_data: list[LineItem] = Field(default_factory=list)
    cost_calculation: CostCalculation = Field(default_factory=CostCalculation)
    remarks_data: RemarksData = Field(default_factory=RemarksData)
    approval_info: ApprovalInfo = Field(default_factory=ApprovalInfo)
    created_at: datetime | None = None
    updated_at: datetime | None = None

    class Config:
        populate_by_name = True
        alias_generator = to_camel

    @property
    def estimate_number(self) -> str:
        return self.project_info.estimate_number


__all__ = ["ApprovalInfo", "Estimate", "ProjectInfo", "RemarksData"]
