# backend/schemas/inventory.py
from datetime import datetime
from typing import List, Optional

from pydantic import Field

from schemas.base import CamelModel


# Shared attributes of an inventory row
class InventoryItemBase(CamelModel):
    code: str = Field(min_length=1)
    name: str = Field(min_length=1)
    category: str = "기타"
    manufacturer: Optional[str] = None
    unit: str = "ea"
    box_size: Optional[int] = Field(default=1, ge=1)
    stock: int = Field(default=0, ge=0)
    min_stock: int = Field(default=0, ge=0)
    location: Optional[str] = None


# Schema for creating a row directly (master data, corrections)
class InventoryItemCreate(InventoryItemBase):
    pass


# Schema for PATCH requests - all fields optional
class InventoryItemUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1)
    category: Optional[str] = None
    manufacturer: Optional[str] = None
    unit: Optional[str] = None
    box_size: Optional[int] = Field(None, ge=1)
    stock: Optional[int] = Field(None, ge=0)
    min_stock: Optional[int] = Field(None, ge=0)
    location: Optional[str] = None


class InventoryItemOut(CamelModel):
    id: int
    code: str
    name: str
    category: str
    manufacturer: Optional[str] = None
    unit: str
    box_size: Optional[int] = None
    # Not constrained here so integrity problems stay visible
    stock: int
    min_stock: int
    location: Optional[str] = None
    created_at: datetime
    updated_at: datetime


# Every location row of one code with the cross-location total
class ItemLocations(CamelModel):
    code: str
    total_stock: int
    items: List[InventoryItemOut]


class InventorySummary(CamelModel):
    distinct_codes: int
    row_count: int
    total_stock: int
    low_stock_codes: List[str]
    pending_exchanges: int
