# backend/repositories/base.py
from abc import ABC, abstractmethod
from typing import List, Optional

from models.bom import BomGuide
from models.exchange import ExchangeQueueItem
from models.inventory import InventoryItem
from models.layout import WarehouseZone
from models.transaction import Transaction


class InventoryRepository(ABC):
    """
    Storage contract shared by the SQL and in-memory backends.

    Inventory rows are mutated by id only. `get_first_by_code` exists for
    legacy display callers that treat a code as a single row; anything
    that changes stock resolves the exact row first and then calls
    `update_item`.

    Changes become durable on `commit()`; `rollback()` discards everything
    since the last commit.
    """

    # ---- inventory rows ----

    @abstractmethod
    def list_items(self) -> List[InventoryItem]:
        """All rows, oldest first (ascending id)."""

    @abstractmethod
    def get_item(self, item_id: int) -> Optional[InventoryItem]: ...

    @abstractmethod
    def get_first_by_code(self, code: str) -> Optional[InventoryItem]: ...

    @abstractmethod
    def list_by_code(self, code: str, lock_rows: bool = False) -> List[InventoryItem]:
        """Every row sharing `code`, oldest first."""

    @abstractmethod
    def find_at_location(self, code: str, location: Optional[str]) -> Optional[InventoryItem]: ...

    @abstractmethod
    def create_item(self, **fields) -> InventoryItem: ...

    @abstractmethod
    def update_item(self, item_id: int, **changes) -> Optional[InventoryItem]: ...

    @abstractmethod
    def delete_item(self, item_id: int) -> bool: ...

    @abstractmethod
    def reset_items(self) -> int:
        """Remove every inventory row, returning how many were removed."""

    # ---- transaction ledger ----

    @abstractmethod
    def append_transaction(self, **fields) -> Transaction: ...

    @abstractmethod
    def get_transaction(self, transaction_id: int) -> Optional[Transaction]: ...

    @abstractmethod
    def list_transactions(self, item_code: Optional[str] = None, type: Optional[str] = None) -> List[Transaction]:
        """Ledger entries in insertion order (most recent last)."""

    # ---- exchange queue ----

    @abstractmethod
    def create_exchange_item(self, **fields) -> ExchangeQueueItem: ...

    @abstractmethod
    def get_exchange_item(self, exchange_id: int, lock_row: bool = False) -> Optional[ExchangeQueueItem]: ...

    @abstractmethod
    def list_exchange_items(self, pending_only: bool = False) -> List[ExchangeQueueItem]: ...

    @abstractmethod
    def mark_exchange_processed(self, exchange_id: int) -> Optional[ExchangeQueueItem]: ...

    @abstractmethod
    def reset_exchange_items(self) -> int: ...

    # ---- BOM guides ----

    @abstractmethod
    def list_bom(self, guide_name: Optional[str] = None) -> List[BomGuide]: ...

    @abstractmethod
    def create_bom(self, **fields) -> BomGuide: ...

    @abstractmethod
    def delete_bom_guide(self, guide_name: str) -> int: ...

    @abstractmethod
    def reset_bom(self) -> int: ...

    # ---- warehouse layout ----

    @abstractmethod
    def list_zones(self) -> List[WarehouseZone]: ...

    @abstractmethod
    def create_zone(self, **fields) -> WarehouseZone: ...

    @abstractmethod
    def delete_zone(self, zone_id: int) -> bool: ...

    @abstractmethod
    def reset_zones(self) -> int: ...

    # ---- unit of work ----

    @abstractmethod
    def commit(self) -> None: ...

    @abstractmethod
    def rollback(self) -> None: ...
