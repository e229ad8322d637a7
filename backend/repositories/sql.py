# backend/repositories/sql.py
from typing import List, Optional

from sqlalchemy.orm import Session

from models.bom import BomGuide
from models.exchange import ExchangeQueueItem
from models.inventory import InventoryItem, utcnow
from models.layout import WarehouseZone
from models.transaction import Transaction
from repositories.base import InventoryRepository


# SQLAlchemy-backed repository bound to one request session
class SqlRepository(InventoryRepository):
    def __init__(self, db: Session):
        self.db = db

    # ---- inventory rows ----

    def list_items(self) -> List[InventoryItem]:
        return self.db.query(InventoryItem).order_by(InventoryItem.id.asc()).all()

    def get_item(self, item_id: int) -> Optional[InventoryItem]:
        return self.db.get(InventoryItem, item_id)

    def get_first_by_code(self, code: str) -> Optional[InventoryItem]:
        return (
            self.db.query(InventoryItem)
            .filter(InventoryItem.code == code)
            .order_by(InventoryItem.id.asc())
            .first()
        )

    def list_by_code(self, code: str, lock_rows: bool = False) -> List[InventoryItem]:
        q = self.db.query(InventoryItem).filter(InventoryItem.code == code).order_by(InventoryItem.id.asc())
        if lock_rows:
            # Re-read under lock so rows cached earlier in this session are refreshed
            q = q.with_for_update().populate_existing()
        return q.all()

    def find_at_location(self, code: str, location: Optional[str]) -> Optional[InventoryItem]:
        q = self.db.query(InventoryItem).filter(InventoryItem.code == code)
        if location is None:
            q = q.filter(InventoryItem.location.is_(None))
        else:
            q = q.filter(InventoryItem.location == location)
        return q.order_by(InventoryItem.id.asc()).first()

    def create_item(self, **fields) -> InventoryItem:
        item = InventoryItem(**fields)
        self.db.add(item)
        self.db.flush()
        return item

    def update_item(self, item_id: int, **changes) -> Optional[InventoryItem]:
        item = self.get_item(item_id)
        if item is None:
            return None
        for key, value in changes.items():
            setattr(item, key, value)
        item.updated_at = utcnow()
        self.db.flush()
        return item

    def delete_item(self, item_id: int) -> bool:
        item = self.get_item(item_id)
        if item is None:
            return False
        self.db.delete(item)
        self.db.flush()
        return True

    def reset_items(self) -> int:
        count = self.db.query(InventoryItem).delete(synchronize_session=False)
        self.db.flush()
        return count

    # ---- transaction ledger ----

    def append_transaction(self, **fields) -> Transaction:
        record = Transaction(**fields)
        self.db.add(record)
        self.db.flush()
        return record

    def get_transaction(self, transaction_id: int) -> Optional[Transaction]:
        return self.db.get(Transaction, transaction_id)

    def list_transactions(self, item_code: Optional[str] = None, type: Optional[str] = None) -> List[Transaction]:
        q = self.db.query(Transaction)
        if item_code is not None:
            q = q.filter(Transaction.item_code == item_code)
        if type is not None:
            q = q.filter(Transaction.type == type)
        return q.order_by(Transaction.id.asc()).all()

    # ---- exchange queue ----

    def create_exchange_item(self, **fields) -> ExchangeQueueItem:
        fields.setdefault("processed", False)
        entry = ExchangeQueueItem(**fields)
        self.db.add(entry)
        self.db.flush()
        return entry

    def get_exchange_item(self, exchange_id: int, lock_row: bool = False) -> Optional[ExchangeQueueItem]:
        q = self.db.query(ExchangeQueueItem).filter(ExchangeQueueItem.id == exchange_id)
        if lock_row:
            q = q.with_for_update().populate_existing()
        return q.first()

    def list_exchange_items(self, pending_only: bool = False) -> List[ExchangeQueueItem]:
        q = self.db.query(ExchangeQueueItem)
        if pending_only:
            q = q.filter(ExchangeQueueItem.processed.is_(False))
        return q.order_by(ExchangeQueueItem.id.asc()).all()

    def mark_exchange_processed(self, exchange_id: int) -> Optional[ExchangeQueueItem]:
        entry = self.get_exchange_item(exchange_id)
        if entry is None:
            return None
        entry.processed = True
        self.db.flush()
        return entry

    def reset_exchange_items(self) -> int:
        count = self.db.query(ExchangeQueueItem).delete(synchronize_session=False)
        self.db.flush()
        return count

    # ---- BOM guides ----

    def list_bom(self, guide_name: Optional[str] = None) -> List[BomGuide]:
        q = self.db.query(BomGuide)
        if guide_name is not None:
            q = q.filter(BomGuide.guide_name == guide_name)
        return q.order_by(BomGuide.id.asc()).all()

    def create_bom(self, **fields) -> BomGuide:
        row = BomGuide(**fields)
        self.db.add(row)
        self.db.flush()
        return row

    def delete_bom_guide(self, guide_name: str) -> int:
        count = self.db.query(BomGuide).filter(BomGuide.guide_name == guide_name).delete(synchronize_session=False)
        self.db.flush()
        return count

    def reset_bom(self) -> int:
        count = self.db.query(BomGuide).delete(synchronize_session=False)
        self.db.flush()
        return count

    # ---- warehouse layout ----

    def list_zones(self) -> List[WarehouseZone]:
        return self.db.query(WarehouseZone).order_by(WarehouseZone.id.asc()).all()

    def create_zone(self, **fields) -> WarehouseZone:
        zone = WarehouseZone(**fields)
        self.db.add(zone)
        self.db.flush()
        return zone

    def delete_zone(self, zone_id: int) -> bool:
        zone = self.db.get(WarehouseZone, zone_id)
        if zone is None:
            return False
        self.db.delete(zone)
        self.db.flush()
        return True

    def reset_zones(self) -> int:
        count = self.db.query(WarehouseZone).delete(synchronize_session=False)
        self.db.flush()
        return count

    # ---- unit of work ----

    def commit(self) -> None:
        self.db.commit()

    def rollback(self) -> None:
        self.db.rollback()
