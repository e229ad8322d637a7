# backend/schemas/exchange.py
from datetime import datetime
from typing import Optional

from pydantic import Field

from schemas.base import CamelModel


class ExchangeQueueOut(CamelModel):
    id: int
    item_code: str
    item_name: str
    quantity: int
    outbound_date: datetime
    processed: bool
    transaction_id: Optional[int] = None
    created_at: datetime


# Queue entry as found in a backup file; `transaction_id` still points at the old ledger id
class ExchangeQueueRecordIn(CamelModel):
    item_code: str = Field(min_length=1)
    item_name: str
    quantity: int = Field(gt=0)
    outbound_date: datetime
    processed: bool = False
    transaction_id: Optional[int] = None
