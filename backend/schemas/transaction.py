# backend/schemas/transaction.py
from datetime import datetime
from typing import Literal, Optional

from pydantic import Field, model_validator

from schemas.base import CamelModel
from utils.locations import build_location

TransactionKind = Literal["inbound", "outbound", "move", "adjustment"]


# Request for one stock-affecting event
class TransactionCreate(CamelModel):
    type: TransactionKind
    item_code: str = Field(min_length=1)
    item_name: str = Field(min_length=1)
    quantity: int = Field(ge=0)
    from_location: Optional[str] = None
    to_location: Optional[str] = None
    reason: Optional[str] = None
    memo: Optional[str] = None
    user_id: Optional[int] = None

    # Destination given as layout coordinates instead of toLocation
    zone: Optional[str] = None
    sub_zone: Optional[str] = None
    floor: Optional[str] = None

    # Adjustment target row
    item_id: Optional[int] = None

    # Attributes for the row an inbound creates when none exists at toLocation
    category: Optional[str] = None
    manufacturer: Optional[str] = None
    unit: Optional[str] = None
    box_size: Optional[int] = Field(None, ge=1)
    min_stock: Optional[int] = Field(None, ge=0)

    @model_validator(mode="after")
    def _check_quantity_and_destination(self):
        # Only stock counts may be zero
        if self.type != "adjustment" and self.quantity <= 0:
            raise ValueError("quantity must be a positive integer")
        if not self.to_location and self.zone and self.sub_zone and self.floor:
            self.to_location = build_location(self.zone, self.sub_zone, self.floor)
        return self


# Raw ledger entry as exported in a backup (no reconciliation on restore)
class TransactionRecordIn(CamelModel):
    type: TransactionKind
    item_code: str = Field(min_length=1)
    item_name: str
    quantity: int
    from_location: Optional[str] = None
    to_location: Optional[str] = None
    reason: Optional[str] = None
    memo: Optional[str] = None
    user_id: Optional[int] = None


class TransactionOut(CamelModel):
    id: int
    type: str
    item_code: str
    item_name: str
    quantity: int
    from_location: Optional[str] = None
    to_location: Optional[str] = None
    reason: Optional[str] = None
    memo: Optional[str] = None
    user_id: Optional[int] = None
    created_at: datetime
