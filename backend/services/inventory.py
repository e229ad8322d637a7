# backend/services/inventory.py
import logging
from typing import Any, Dict, List, Optional

from models.inventory import InventoryItem
from repositories.base import InventoryRepository
from schemas.inventory import (
    InventoryItemCreate,
    InventoryItemOut,
    InventoryItemUpdate,
    InventorySummary,
    ItemLocations,
)
from utils.errors import ItemNotFoundError, ValidationError
from utils.locks import KeyedLock, item_key

logger = logging.getLogger(__name__)


class InventoryService:
    def __init__(self, repo: InventoryRepository, locks: Optional[KeyedLock] = None):
        self.repo = repo
        self.locks = locks or KeyedLock()

    def list(
        self,
        code: Optional[str] = None,
        location: Optional[str] = None,
        category: Optional[str] = None,
        low_stock: bool = False,
    ) -> List[InventoryItem]:
        items = self.repo.list_items()
        self._warn_negative(items)

        if code:
            items = [i for i in items if i.code == code]
        if location:
            items = [i for i in items if i.location == location]
        if category:
            items = [i for i in items if i.category == category]
        if low_stock:
            totals = self.stock_totals(items)
            minimums = self._min_stock_by_code(items)
            items = [i for i in items if totals[i.code] < minimums[i.code]]
        return items

    def get_first(self, code: str) -> InventoryItem:
        item = self.repo.get_first_by_code(code)
        if item is None:
            raise ItemNotFoundError()
        return item

    def locations(self, code: str) -> ItemLocations:
        rows = self.repo.list_by_code(code)
        if not rows:
            raise ItemNotFoundError()
        return ItemLocations(
            code=code,
            total_stock=sum(r.stock for r in rows),
            items=[InventoryItemOut.model_validate(r) for r in rows],
        )

    def create(self, payload: InventoryItemCreate) -> InventoryItem:
        with self.locks.hold(item_key(payload.code)):
            try:
                self._check_location_free(payload.code, payload.location)
                item = self.repo.create_item(**payload.model_dump())
                self.repo.commit()
            except Exception:
                self.repo.rollback()
                raise
        return item

    def update(self, item_id: int, payload: InventoryItemUpdate) -> InventoryItem:
        changes = payload.model_dump(exclude_unset=True)
        current = self.repo.get_item(item_id)
        if current is None:
            raise ItemNotFoundError()

        with self.locks.hold(item_key(current.code)):
            try:
                if "location" in changes and changes["location"] != current.location:
                    self._check_location_free(current.code, changes["location"])
                item = self.repo.update_item(item_id, **changes)
                if item is None:
                    raise ItemNotFoundError()
                self.repo.commit()
            except Exception:
                self.repo.rollback()
                raise
        return item

    def delete(self, item_id: int) -> None:
        current = self.repo.get_item(item_id)
        if current is None:
            raise ItemNotFoundError()

        with self.locks.hold(item_key(current.code)):
            try:
                if not self.repo.delete_item(item_id):
                    raise ItemNotFoundError()
                self.repo.commit()
            except Exception:
                self.repo.rollback()
                raise

    # Legacy delete by code: removes the first row of the code only
    def delete_first(self, code: str) -> Dict[str, Any]:
        with self.locks.hold(item_key(code)):
            try:
                item = self.get_first(code)
                removed = {"id": item.id, "code": item.code, "location": item.location}
                self.repo.delete_item(item.id)
                self.repo.commit()
            except Exception:
                self.repo.rollback()
                raise
        return removed

    def replace_all(self, rows: List[InventoryItemCreate]) -> List[InventoryItem]:
        with self.locks.hold_all():
            try:
                removed = self.repo.reset_items()
                created = [self.repo.create_item(**row.model_dump()) for row in rows]
                self.repo.commit()
            except Exception:
                self.repo.rollback()
                raise
        logger.info("Replaced inventory: removed %d rows, created %d", removed, len(created))
        return created

    # A code has at most one row per location; location-less master rows are exempt
    def _check_location_free(self, code: str, location: Optional[str]) -> None:
        if location is not None and self.repo.find_at_location(code, location) is not None:
            raise ValidationError(f"Item {code} already has a row at {location}")

    def summary(self) -> InventorySummary:
        items = self.repo.list_items()
        totals = self.stock_totals(items)
        minimums = self._min_stock_by_code(items)
        return InventorySummary(
            distinct_codes=len(totals),
            row_count=len(items),
            total_stock=sum(totals.values()),
            low_stock_codes=sorted(code for code, total in totals.items() if total < minimums[code]),
            pending_exchanges=len(self.repo.list_exchange_items(pending_only=True)),
        )

    @staticmethod
    def stock_totals(items: List[InventoryItem]) -> Dict[str, int]:
        totals: Dict[str, int] = {}
        for item in items:
            totals[item.code] = totals.get(item.code, 0) + item.stock
        return totals

    # Shortage threshold per code: the highest minStock set on any of its rows
    @staticmethod
    def _min_stock_by_code(items: List[InventoryItem]) -> Dict[str, int]:
        minimums: Dict[str, int] = {}
        for item in items:
            minimums[item.code] = max(minimums.get(item.code, 0), item.min_stock or 0)
        return minimums

    # Negative stock means a reconciliation bug or a bad import; report it, never fix it here
    @staticmethod
    def _warn_negative(items: List[InventoryItem]) -> None:
        for item in items:
            if item.stock is not None and item.stock < 0:
                logger.warning(
                    "Data integrity: inventory row %s (%s at %s) has negative stock %s",
                    item.id, item.code, item.location, item.stock,
                )
