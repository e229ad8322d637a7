# backend/services/exchange.py
import logging
from typing import List, Optional

from models.exchange import ExchangeQueueItem
from models.transaction import EXCHANGE_INBOUND_REASON, OutboundReason, TransactionType
from repositories.base import InventoryRepository
from services.reconciliation import ReconciliationEngine
from utils.errors import AlreadyProcessedError, ExchangeItemNotFoundError
from utils.locations import split_locations
from utils.locks import KeyedLock, exchange_key, item_key

logger = logging.getLogger(__name__)


# Defective units waiting for a replacement. Processing an entry books
# the replacement back into the location the defective unit came from.
class ExchangeQueueService:
    def __init__(self, repo: InventoryRepository, locks: Optional[KeyedLock] = None):
        self.repo = repo
        self.locks = locks or KeyedLock()
        self.engine = ReconciliationEngine(repo, self.locks)

    def list(self, pending_only: bool = False) -> List[ExchangeQueueItem]:
        return self.repo.list_exchange_items(pending_only=pending_only)

    def list_pending(self) -> List[ExchangeQueueItem]:
        return self.repo.list_exchange_items(pending_only=True)

    def process(self, exchange_id: int, user_id: Optional[int] = None) -> ExchangeQueueItem:
        entry = self.repo.get_exchange_item(exchange_id)
        if entry is None:
            raise ExchangeItemNotFoundError()

        with self.locks.hold(exchange_key(exchange_id), item_key(entry.item_code)):
            try:
                entry = self.repo.get_exchange_item(exchange_id, lock_row=True)
                if entry.processed:
                    raise AlreadyProcessedError()

                location = self._source_location(entry)
                target = self.engine.credit_stock(entry.item_code, entry.item_name, entry.quantity, location)
                self.repo.append_transaction(
                    type=TransactionType.INBOUND.value,
                    item_code=entry.item_code,
                    item_name=entry.item_name,
                    quantity=entry.quantity,
                    to_location=target.location,
                    reason=EXCHANGE_INBOUND_REASON,
                    memo=f"Exchange queue #{entry.id}",
                    user_id=user_id,
                )
                # Flag last: the credit and the ledger entry exist before the item counts as processed
                self.repo.mark_exchange_processed(entry.id)
                self.repo.commit()
            except AlreadyProcessedError:
                self.repo.rollback()
                logger.warning("Exchange queue item %s was already processed", exchange_id)
                raise
            except Exception:
                self.repo.rollback()
                raise

        logger.info(
            "Processed exchange #%s: %s x%s back to %s",
            entry.id, entry.item_code, entry.quantity, target.location,
        )
        return entry

    def _source_location(self, entry: ExchangeQueueItem) -> Optional[str]:
        if entry.transaction_id is not None:
            origin = self.repo.get_transaction(entry.transaction_id)
            if origin is not None:
                locations = split_locations(origin.from_location)
                if locations:
                    return locations[0]
        return self.engine.last_draw_location(
            entry.item_code, reasons=(OutboundReason.DEFECTIVE_EXCHANGE.value,)
        )
