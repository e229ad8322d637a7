# backend/schemas/bom.py
from datetime import datetime
from typing import Literal

from pydantic import Field

from schemas.base import CamelModel


class BomGuideCreate(CamelModel):
    guide_name: str = Field(min_length=1)
    item_code: str = Field(min_length=1)
    required_quantity: int = Field(ge=0)


class BomGuideOut(CamelModel):
    id: int
    guide_name: str
    item_code: str
    required_quantity: int
    created_at: datetime


# Guide lines summed per part
class BomRequirement(CamelModel):
    item_code: str
    required_quantity: int


# One part of a guide compared against stock at all locations
class BomCheckRow(CamelModel):
    code: str
    name: str
    required_quantity: int
    current_stock: int
    shortfall: int
    status: Literal["sufficient", "shortage"]
