from __future__ import annotations

from typing import Mapping

# kg/m³
MATERIAL_DENSITY: Mapping[str, float] = {
    "SUS304": 7930.0,
    "SUS316": 8000.0,
    "炭素鋼": 7850.0,
    "アルミ": 2700.0,
    "アルミニウム": 2700.0,
    "carbon_steel": 7850.0,
    "aluminum": 2700.0,
}

DEFAULT_DENSITY = 7850.0

SHEET_METAL = "sheet_metal"
CYLINDER = "cylinder"

# Spreadsheets exported from the estimate screens carry the Japanese tags.
PART_TYPE_ALIASES: Mapping[str, str] = {
    SHEET_METAL: SHEET_METAL,
    "板金": SHEET_METAL,
    CYLINDER: CYLINDER,
    "円筒": CYLINDER,
}

PAINTING_UNIT_RATE = 5000.0  # yen / m²
PROCESSING_RATE_PER_KG = 1000.0  # yen / kg
PROCESSING_SETUP_PER_PART_TYPE = 5000.0  # yen per distinct part type
DIRECT_COST_RATIO = 0.7
MANUFACTURING_COST_RATIO = 0.9

MANUAL_COST_FIELDS: tuple[str, ...] = (
    "external_inspection_cost",
    "transportation_cost",
    "factory_inspection_cost",
    "design_cost",
)

AUTOMATIC_COST_FIELDS: tuple[str, ...] = (
    "material_cost",
    "processing_cost",
    "painting_cost",
    "direct_cost",
    "manufacturing_cost",
    "total_cost",
    "painting_area",
)

COST_FIELD_LABELS: Mapping[str, str] = {
    "material_cost": "材料費",
    "processing_cost": "加工費",
    "painting_cost": "塗装費",
    "external_inspection_cost": "外注検査費",
    "transportation_cost": "輸送費",
    "factory_inspection_cost": "工場検査費",
    "design_cost": "設計費",
    "direct_cost": "直接原価",
    "manufacturing_cost": "製造原価",
    "total_cost": "総原価",
    "painting_area": "塗装面積",
}

ACCEPTED_FILE_EXTENSIONS: tuple[str, ...] = (".xlsx", ".xlsm", ".xls", ".pdf")
MAX_FILE_SIZE = 10 * 1024 * 1024
MAX_UPLOAD_FILES = 3

PRODUCTION_UNITS: tuple[str, ...] = ("台", "個", "式")
DEFAULT_PRODUCTION_UNIT = "台"


def normalize_part_type(part_type: str | None) -> str | None:
    """Map a raw part type tag onto ``SHEET_METAL``/``CYLINDER`` or ``None``."""
    if not part_type:
        return None
    return PART_TYPE_ALIASES.get(part_type.strip())


def resolve_density(material: str | None, densities: Mapping[str, float] = MATERIAL_DENSITY) -> float:
    if material:
        density = densities.get(material.strip())
        if density:
            return density
    return DEFAULT_DENSITY


__all__ = [
    "ACCEPTED_FILE_EXTENSIONS",
    "AUTOMATIC_COST_FIELDS",
    "COST_FIELD_LABELS",
    "CYLINDER",
    "DEFAULT_DENSITY",
    "DEFAULT_PRODUCTION_UNIT",
    "DIRECT_COST_RATIO",
    "MANUAL_COST_FIELDS",
    "MANUFACTURING_COST_RATIO",
    "MATERIAL_DENSITY",
    "MAX_FILE_SIZE",
    "MAX_UPLOAD_FILES",
    "PAINTING_UNIT_RATE",
    "PART_TYPE_ALIASES",
    "PROCESSING_RATE_PER_KG",
    "PROCESSING_SETUP_PER_PART_TYPE",
    "PRODUCTION_UNITS",
    "SHEET_METAL",
    "normalize_part_type",
    "resolve_density",
]
