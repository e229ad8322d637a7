# backend/services/bulk.py
import logging
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel

from repositories.base import InventoryRepository
from schemas.bom import BomGuideCreate, BomGuideOut
from schemas.exchange import ExchangeQueueOut, ExchangeQueueRecordIn
from schemas.inventory import InventoryItemCreate, InventoryItemOut
from schemas.layout import WarehouseZoneCreate, WarehouseZoneOut
from schemas.transaction import TransactionOut, TransactionRecordIn
from schemas.upload import (
    BackupPayload,
    SkippedRow,
    UploadResult,
    normalize_bom_row,
    normalize_inventory_add_row,
    normalize_master_row,
    normalize_sync_row,
)
from services.inventory import InventoryService
from services.reconciliation import ReconciliationEngine
from utils.errors import InventoryError
from utils.locks import KeyedLock

logger = logging.getLogger(__name__)


# Uploads of pre-parsed spreadsheet rows plus JSON backup/restore
class BulkService:
    def __init__(self, repo: InventoryRepository, locks: Optional[KeyedLock] = None, strict_locations: bool = False):
        self.repo = repo
        self.locks = locks or KeyedLock()
        self.engine = ReconciliationEngine(repo, self.locks, strict_locations=strict_locations)

    def _normalize(self, rows: List[Dict[str, Any]], normalizer) -> Tuple[List[Tuple[int, BaseModel]], List[SkippedRow]]:
        parsed, skipped = [], []
        for index, row in enumerate(rows):
            try:
                result = normalizer(row)
            except ValueError as exc:
                skipped.append(SkippedRow(row=index, reason=str(exc)))
                continue
            if result is None:
                skipped.append(SkippedRow(row=index, reason="missing required columns"))
                continue
            parsed.append((index, result))
        return parsed, skipped

    # Adds location-less master rows with zero stock
    def import_master(self, rows: List[Dict[str, Any]]) -> UploadResult:
        parsed, skipped = self._normalize(rows, normalize_master_row)
        with self.locks.hold_all():
            try:
                created = [self.repo.create_item(**item.model_dump()) for _, item in parsed]
                self.repo.commit()
            except Exception:
                self.repo.rollback()
                raise
        logger.info("Master upload: %d rows created, %d skipped", len(created), len(skipped))
        return UploadResult(
            processed=len(created),
            skipped=skipped,
            items=[InventoryItemOut.model_validate(i) for i in created],
        )

    # Replaces every BOM line with the uploaded ones
    def import_bom(self, rows: List[Dict[str, Any]]) -> UploadResult:
        parsed, skipped = self._normalize(rows, normalize_bom_row)
        try:
            self.repo.reset_bom()
            created = [self.repo.create_bom(**line.model_dump()) for _, line in parsed]
            self.repo.commit()
        except Exception:
            self.repo.rollback()
            raise
        logger.info("BOM upload: %d lines created, %d skipped", len(created), len(skipped))
        return UploadResult(
            processed=len(created),
            skipped=skipped,
            items=[BomGuideOut.model_validate(b) for b in created],
        )

    # Each row is booked as its own inbound transaction
    def add_inventory(self, rows: List[Dict[str, Any]], user_id: Optional[int] = None) -> UploadResult:
        parsed, skipped = self._normalize(rows, normalize_inventory_add_row)
        recorded = []
        for index, request in parsed:
            try:
                recorded.append(self.engine.record(request, user_id=user_id))
            except InventoryError as exc:
                skipped.append(SkippedRow(row=index, reason=exc.message))
        logger.info("Stock upload: %d inbound transactions, %d rows skipped", len(recorded), len(skipped))
        return UploadResult(
            processed=len(recorded),
            skipped=skipped,
            items=[TransactionOut.model_validate(t) for t in recorded],
        )

    # Replaces every inventory row with the uploaded stock count
    def sync_inventory(self, rows: List[Dict[str, Any]]) -> UploadResult:
        parsed, skipped = self._normalize(rows, normalize_sync_row)
        created = InventoryService(self.repo, self.locks).replace_all([item for _, item in parsed])
        return UploadResult(
            processed=len(created),
            skipped=skipped,
            items=[InventoryItemOut.model_validate(i) for i in created],
        )

    def export_backup(self) -> Dict[str, Any]:
        return {
            "inventory": [InventoryItemOut.model_validate(i).model_dump(by_alias=True, mode="json") for i in self.repo.list_items()],
            "transactions": [TransactionOut.model_validate(t).model_dump(by_alias=True, mode="json") for t in self.repo.list_transactions()],
            "bomGuides": [BomGuideOut.model_validate(b).model_dump(by_alias=True, mode="json") for b in self.repo.list_bom()],
            "layout": [WarehouseZoneOut.model_validate(z).model_dump(by_alias=True, mode="json") for z in self.repo.list_zones()],
            "exchangeQueue": [ExchangeQueueOut.model_validate(e).model_dump(by_alias=True, mode="json") for e in self.repo.list_exchange_items()],
        }

    def restore_backup(self, payload: BackupPayload) -> Dict[str, int]:
        """
        Replace inventory rows and BOM lines with the backup contents and
        append its transactions to the ledger. The layout and the exchange
        queue are replaced too when the backup carries them; queue entries
        are relinked to the ledger ids their transactions get on append.
        Entries that fail validation are skipped and logged; the rest is
        applied in one unit of work.
        """
        counts = {
            "inventoryCount": 0,
            "transactionCount": 0,
            "bomCount": 0,
            "layoutCount": 0,
            "exchangeCount": 0,
            "skipped": 0,
        }
        with self.locks.hold_all():
            try:
                self.repo.reset_items()
                self.repo.reset_bom()

                for raw in payload.inventory:
                    item = self._validated(InventoryItemCreate, raw, counts)
                    if item is not None:
                        self.repo.create_item(**item.model_dump())
                        counts["inventoryCount"] += 1

                # backup id -> id assigned by this ledger
                ledger_ids: Dict[Any, int] = {}
                for raw in payload.transactions:
                    record = self._validated(TransactionRecordIn, raw, counts)
                    if record is not None:
                        appended = self.repo.append_transaction(**record.model_dump())
                        if raw.get("id") is not None:
                            ledger_ids[raw["id"]] = appended.id
                        counts["transactionCount"] += 1

                for raw in payload.bom_guides:
                    line = self._validated(BomGuideCreate, raw, counts)
                    if line is not None:
                        self.repo.create_bom(**line.model_dump())
                        counts["bomCount"] += 1

                if payload.layout is not None:
                    self.repo.reset_zones()
                    for raw in payload.layout:
                        zone = self._validated(WarehouseZoneCreate, raw, counts)
                        if zone is not None:
                            self.repo.create_zone(**zone.model_dump())
                            counts["layoutCount"] += 1

                if payload.exchange_queue is not None:
                    self.repo.reset_exchange_items()
                    for raw in payload.exchange_queue:
                        entry = self._validated(ExchangeQueueRecordIn, raw, counts)
                        if entry is not None:
                            fields = entry.model_dump()
                            # An unknown id leaves the entry unlinked; processing then uses the ledger history
                            fields["transaction_id"] = ledger_ids.get(entry.transaction_id)
                            self.repo.create_exchange_item(**fields)
                            counts["exchangeCount"] += 1

                self.repo.commit()
            except Exception:
                self.repo.rollback()
                logger.exception("Backup restore failed")
                raise

        logger.info("Backup restored: %s", counts)
        return counts

    @staticmethod
    def _validated(schema, raw: Dict[str, Any], counts: Dict[str, int]):
        try:
            return schema.model_validate(raw)
        except ValueError as exc:
            counts["skipped"] += 1
            logger.error("Skipping %s entry in backup: %s", schema.__name__, exc)
            return None
