# backend/repositories/memory.py
import itertools
import threading
from typing import Callable, Dict, List, Optional

from models.bom import BomGuide
from models.exchange import ExchangeQueueItem
from models.inventory import InventoryItem, utcnow
from models.layout import WarehouseZone
from models.transaction import Transaction
from repositories.base import InventoryRepository


# Process-wide state behind MemoryRepository. Kept on app.state (or created
# per test); each request gets its own MemoryRepository over it, so a
# rollback only undoes that request's changes.
class MemoryStore:
    def __init__(self):
        self.lock = threading.RLock()
        self.items: Dict[int, InventoryItem] = {}
        self.transactions: List[Transaction] = []
        self.exchange: List[ExchangeQueueItem] = []
        self.bom: List[BomGuide] = []
        self.zones: List[WarehouseZone] = []
        self._ids = {name: itertools.count(1) for name in ("item", "transaction", "exchange", "bom", "zone")}

    def next_id(self, kind: str) -> int:
        with self.lock:
            return next(self._ids[kind])


class MemoryRepository(InventoryRepository):
    def __init__(self, store: Optional[MemoryStore] = None):
        self.store = store or MemoryStore()
        # Undo steps recorded since the last commit, replayed in reverse on rollback
        self._journal: List[Callable[[], None]] = []

    def _record(self, undo: Callable[[], None]) -> None:
        self._journal.append(undo)

    def _remove_from(self, rows: list, row) -> Callable[[], None]:
        def undo():
            if row in rows:
                rows.remove(row)
        return undo

    # ---- inventory rows ----

    def list_items(self) -> List[InventoryItem]:
        with self.store.lock:
            return [self.store.items[k] for k in sorted(self.store.items)]

    def get_item(self, item_id: int) -> Optional[InventoryItem]:
        return self.store.items.get(item_id)

    def get_first_by_code(self, code: str) -> Optional[InventoryItem]:
        rows = self.list_by_code(code)
        return rows[0] if rows else None

    def list_by_code(self, code: str, lock_rows: bool = False) -> List[InventoryItem]:
        return [item for item in self.list_items() if item.code == code]

    def find_at_location(self, code: str, location: Optional[str]) -> Optional[InventoryItem]:
        for item in self.list_by_code(code):
            if item.location == location:
                return item
        return None

    def create_item(self, **fields) -> InventoryItem:
        now = utcnow()
        values = {
            "unit": "ea",
            "box_size": 1,
            "stock": 0,
            "min_stock": 0,
            "manufacturer": None,
            "location": None,
        }
        values.update(fields)
        item = InventoryItem(**values)
        item.id = self.store.next_id("item")
        item.created_at = values.get("created_at") or now
        item.updated_at = values.get("updated_at") or now
        with self.store.lock:
            self.store.items[item.id] = item
        self._record(lambda: self.store.items.pop(item.id, None))
        return item

    def update_item(self, item_id: int, **changes) -> Optional[InventoryItem]:
        item = self.get_item(item_id)
        if item is None:
            return None
        previous = {key: getattr(item, key) for key in list(changes) + ["updated_at"]}
        for key, value in changes.items():
            setattr(item, key, value)
        item.updated_at = utcnow()

        def undo():
            for key, value in previous.items():
                setattr(item, key, value)
        self._record(undo)
        return item

    def delete_item(self, item_id: int) -> bool:
        with self.store.lock:
            item = self.store.items.pop(item_id, None)
        if item is None:
            return False
        self._record(lambda: self.store.items.__setitem__(item_id, item))
        return True

    def reset_items(self) -> int:
        with self.store.lock:
            removed = dict(self.store.items)
            self.store.items.clear()
        self._record(lambda: self.store.items.update(removed))
        return len(removed)

    # ---- transaction ledger ----

    def append_transaction(self, **fields) -> Transaction:
        values = {"from_location": None, "to_location": None, "reason": None, "memo": None, "user_id": None}
        values.update(fields)
        record = Transaction(**values)
        record.id = self.store.next_id("transaction")
        record.created_at = values.get("created_at") or utcnow()
        with self.store.lock:
            self.store.transactions.append(record)
        self._record(self._remove_from(self.store.transactions, record))
        return record

    def get_transaction(self, transaction_id: int) -> Optional[Transaction]:
        for record in self.store.transactions:
            if record.id == transaction_id:
                return record
        return None

    def list_transactions(self, item_code: Optional[str] = None, type: Optional[str] = None) -> List[Transaction]:
        with self.store.lock:
            rows = list(self.store.transactions)
        if item_code is not None:
            rows = [t for t in rows if t.item_code == item_code]
        if type is not None:
            rows = [t for t in rows if t.type == type]
        return rows

    # ---- exchange queue ----

    def create_exchange_item(self, **fields) -> ExchangeQueueItem:
        values = {"processed": False, "transaction_id": None}
        values.update(fields)
        entry = ExchangeQueueItem(**values)
        entry.id = self.store.next_id("exchange")
        entry.created_at = utcnow()
        with self.store.lock:
            self.store.exchange.append(entry)
        self._record(self._remove_from(self.store.exchange, entry))
        return entry

    def get_exchange_item(self, exchange_id: int, lock_row: bool = False) -> Optional[ExchangeQueueItem]:
        for entry in self.store.exchange:
            if entry.id == exchange_id:
                return entry
        return None

    def list_exchange_items(self, pending_only: bool = False) -> List[ExchangeQueueItem]:
        with self.store.lock:
            rows = list(self.store.exchange)
        if pending_only:
            rows = [e for e in rows if not e.processed]
        return rows

    def mark_exchange_processed(self, exchange_id: int) -> Optional[ExchangeQueueItem]:
        entry = self.get_exchange_item(exchange_id)
        if entry is None:
            return None
        was = entry.processed
        entry.processed = True
        self._record(lambda: setattr(entry, "processed", was))
        return entry

    def reset_exchange_items(self) -> int:
        with self.store.lock:
            removed = list(self.store.exchange)
            self.store.exchange.clear()
        self._record(lambda: self.store.exchange.extend(removed))
        return len(removed)

    # ---- BOM guides ----

    def list_bom(self, guide_name: Optional[str] = None) -> List[BomGuide]:
        with self.store.lock:
            rows = list(self.store.bom)
        if guide_name is not None:
            rows = [b for b in rows if b.guide_name == guide_name]
        return rows

    def create_bom(self, **fields) -> BomGuide:
        row = BomGuide(**fields)
        row.id = self.store.next_id("bom")
        row.created_at = utcnow()
        with self.store.lock:
            self.store.bom.append(row)
        self._record(self._remove_from(self.store.bom, row))
        return row

    def _replace_bom(self, keep: List[BomGuide]) -> int:
        with self.store.lock:
            before = list(self.store.bom)
            self.store.bom[:] = keep

        def undo():
            with self.store.lock:
                self.store.bom[:] = before
        self._record(undo)
        return len(before) - len(keep)

    def delete_bom_guide(self, guide_name: str) -> int:
        return self._replace_bom([b for b in self.store.bom if b.guide_name != guide_name])

    def reset_bom(self) -> int:
        return self._replace_bom([])

    # ---- warehouse layout ----

    def list_zones(self) -> List[WarehouseZone]:
        with self.store.lock:
            return list(self.store.zones)

    def create_zone(self, **fields) -> WarehouseZone:
        zone = WarehouseZone(**fields)
        zone.id = self.store.next_id("zone")
        zone.created_at = utcnow()
        with self.store.lock:
            self.store.zones.append(zone)
        self._record(self._remove_from(self.store.zones, zone))
        return zone

    def delete_zone(self, zone_id: int) -> bool:
        for zone in self.list_zones():
            if zone.id == zone_id:
                with self.store.lock:
                    self.store.zones.remove(zone)
                self._record(lambda: self.store.zones.append(zone))
                return True
        return False

    def reset_zones(self) -> int:
        with self.store.lock:
            removed = list(self.store.zones)
            self.store.zones.clear()
        self._record(lambda: self.store.zones.extend(removed))
        return len(removed)

    # ---- unit of work ----

    def commit(self) -> None:
        self._journal.clear()

    def rollback(self) -> None:
        while self._journal:
            undo = self._journal.pop()
            undo()
