"""
Reconciliation engine.

Inventory rows are a projection of the transaction ledger. Every accepted
transaction request goes through `ReconciliationEngine.record`, which
checks preconditions, mutates the affected rows by id and appends one
ledger entry, all in one unit of work:

- inbound: add to the row already at `toLocation`, or create one there
- outbound: FIFO deduction over every row of the code (oldest id first);
  "출고 반환" credits stock back instead, "불량품 교환 출고" also queues
  an exchange item
- move: location-exact; relocates the whole row or splits it
- adjustment: overwrites the stock count of one resolved row

Preconditions are checked before the first mutation, so a rejected
request leaves neither rows nor ledger entries behind. The per-code lock
is held from the sufficiency check until commit.
"""
import logging
from typing import List, Optional, Sequence, Tuple

from models.inventory import InventoryItem
from models.transaction import OutboundReason, Transaction, TransactionType
from repositories.base import InventoryRepository
from schemas.transaction import TransactionCreate
from services.layout import LayoutService
from utils.errors import (
    AmbiguousItemError,
    InsufficientStockError,
    SourceNotFoundError,
    ValidationError,
)
from utils.locations import join_locations, split_locations
from utils.locks import KeyedLock, item_key

logger = logging.getLogger(__name__)

DEFAULT_CATEGORY = "기타"

# Attributes copied from an existing row when a new row of the same code is created
MASTER_ATTRIBUTES = ("name", "category", "manufacturer", "unit", "box_size", "min_stock")


class ReconciliationEngine:
    def __init__(
        self,
        repo: InventoryRepository,
        locks: Optional[KeyedLock] = None,
        strict_locations: bool = False,
    ):
        self.repo = repo
        self.locks = locks or KeyedLock()
        self.strict_locations = strict_locations
        self.layout = LayoutService(repo)

    def record(self, request: TransactionCreate, user_id: Optional[int] = None) -> Transaction:
        """Apply one transaction request and append it to the ledger."""
        handlers = {
            TransactionType.INBOUND.value: self._inbound,
            TransactionType.OUTBOUND.value: self._outbound,
            TransactionType.MOVE.value: self._move,
            TransactionType.ADJUSTMENT.value: self._adjustment,
        }
        handler = handlers[request.type]
        actor = user_id if user_id is not None else request.user_id

        with self.locks.hold(item_key(request.item_code)):
            try:
                record = handler(request, actor)
                self.repo.commit()
            except Exception:
                self.repo.rollback()
                raise

        logger.info(
            "Recorded %s #%s for %s qty=%s from=%s to=%s reason=%s",
            record.type, record.id, record.item_code, record.quantity,
            record.from_location, record.to_location, record.reason,
        )
        return record

    # ---- inbound ----

    def _inbound(self, request: TransactionCreate, user_id: Optional[int]) -> Transaction:
        location = request.to_location
        if not location:
            raise ValidationError("Inbound requires toLocation")
        self._check_destination(location)

        existing = self.repo.find_at_location(request.item_code, location)
        if existing is not None:
            self.repo.update_item(existing.id, stock=existing.stock + request.quantity)
        else:
            template = self.repo.get_first_by_code(request.item_code)
            self.repo.create_item(
                code=request.item_code,
                name=request.item_name,
                category=request.category or (template.category if template else DEFAULT_CATEGORY),
                manufacturer=_first_set(request.manufacturer, template.manufacturer if template else None),
                unit=request.unit or (template.unit if template else "ea"),
                box_size=_first_set(request.box_size, template.box_size if template else None, 1),
                min_stock=_first_set(request.min_stock, template.min_stock if template else None, 0),
                stock=request.quantity,
                location=location,
            )

        return self._append(request, user_id, to_location=location)

    # ---- outbound ----

    def _outbound(self, request: TransactionCreate, user_id: Optional[int]) -> Transaction:
        reason = request.reason or OutboundReason.OTHER.value
        if reason == OutboundReason.RETURN.value:
            return self._outbound_return(request, user_id)

        touched = self.deduct_fifo(request.item_code, request.quantity)
        record = self._append(
            request,
            user_id,
            reason=reason,
            from_location=join_locations(row.location for row, _ in touched),
        )

        if reason == OutboundReason.DEFECTIVE_EXCHANGE.value:
            self.repo.create_exchange_item(
                item_code=request.item_code,
                item_name=request.item_name,
                quantity=request.quantity,
                outbound_date=record.created_at,
                processed=False,
                transaction_id=record.id,
            )
        return record

    def deduct_fifo(self, code: str, quantity: int) -> List[Tuple[InventoryItem, int]]:
        """
        Take `quantity` from the rows of `code`, oldest row first.

        Returns (row, amount taken) pairs in consumption order. Raises
        InsufficientStockError before touching anything when the rows do
        not hold enough in total.
        """
        candidates = sorted(
            (row for row in self.repo.list_by_code(code, lock_rows=True) if row.stock > 0),
            key=lambda row: row.id,
        )
        available = sum(row.stock for row in candidates)
        if available < quantity:
            logger.warning("Rejected outbound of %s x%s: only %s in stock", code, quantity, available)
            raise InsufficientStockError(code, available, quantity)

        touched = []
        remaining = quantity
        for row in candidates:
            if remaining <= 0:
                break
            take = min(row.stock, remaining)
            self.repo.update_item(row.id, stock=row.stock - take)
            touched.append((row, take))
            remaining -= take
        return touched

    def _outbound_return(self, request: TransactionCreate, user_id: Optional[int]) -> Transaction:
        location = request.from_location or self.last_draw_location(
            request.item_code, exclude_reasons=(OutboundReason.RETURN.value,)
        )
        target = self.credit_stock(request.item_code, request.item_name, request.quantity, location)
        return self._append(
            request,
            user_id,
            reason=OutboundReason.RETURN.value,
            from_location=request.from_location,
            to_location=target.location,
        )

    # ---- move ----

    def _move(self, request: TransactionCreate, user_id: Optional[int]) -> Transaction:
        source_location = request.from_location
        target_location = request.to_location
        if not source_location or not target_location:
            raise ValidationError("Move requires fromLocation and toLocation")
        if source_location == target_location:
            raise ValidationError("fromLocation and toLocation are the same")
        self._check_destination(target_location)

        source = next(
            (
                row for row in self.repo.list_by_code(request.item_code, lock_rows=True)
                if row.location == source_location and row.stock >= request.quantity
            ),
            None,
        )
        if source is None:
            raise SourceNotFoundError()

        # One row per code and location: an occupied target absorbs the stock
        target = self.repo.find_at_location(request.item_code, target_location)
        if source.stock == request.quantity and target is None:
            self.repo.update_item(source.id, location=target_location)
        elif source.stock == request.quantity:
            self.repo.update_item(target.id, stock=target.stock + request.quantity)
            self.repo.delete_item(source.id)
        else:
            self.repo.update_item(source.id, stock=source.stock - request.quantity)
            if target is not None:
                self.repo.update_item(target.id, stock=target.stock + request.quantity)
            else:
                self.repo.create_item(
                    code=source.code,
                    stock=request.quantity,
                    location=target_location,
                    **{attr: getattr(source, attr) for attr in MASTER_ATTRIBUTES},
                )

        return self._append(request, user_id, from_location=source_location, to_location=target_location)

    # ---- adjustment ----

    def _adjustment(self, request: TransactionCreate, user_id: Optional[int]) -> Transaction:
        row = self._resolve_adjustment_row(request)
        previous = row.stock
        self.repo.update_item(row.id, stock=request.quantity)
        logger.info("Adjusted %s at %s from %s to %s", row.code, row.location, previous, request.quantity)
        return self._append(request, user_id, from_location=row.location)

    def _resolve_adjustment_row(self, request: TransactionCreate) -> InventoryItem:
        if request.item_id is not None:
            row = self.repo.get_item(request.item_id)
            if row is None or row.code != request.item_code:
                raise SourceNotFoundError()
            return row

        rows = self.repo.list_by_code(request.item_code, lock_rows=True)
        if request.from_location:
            rows = [row for row in rows if row.location == request.from_location]
        if not rows:
            raise SourceNotFoundError()
        if len(rows) > 1:
            raise AmbiguousItemError(request.item_code, len(rows))
        return rows[0]

    # ---- shared helpers ----

    def credit_stock(self, code: str, name: str, quantity: int, location: Optional[str]) -> InventoryItem:
        """
        Put `quantity` back into stock.

        With a location: the row of `code` there, created if missing with
        attributes copied from any other row of the code. Without one: the
        first row of the code.
        """
        if location:
            target = self.repo.find_at_location(code, location)
        else:
            target = self.repo.get_first_by_code(code)

        if target is not None:
            return self.repo.update_item(target.id, stock=target.stock + quantity)

        template = self.repo.get_first_by_code(code)
        if template is not None:
            attributes = {attr: getattr(template, attr) for attr in MASTER_ATTRIBUTES}
        else:
            attributes = {"name": name, "category": DEFAULT_CATEGORY}
        return self.repo.create_item(code=code, stock=quantity, location=location, **attributes)

    def last_draw_location(
        self,
        code: str,
        reasons: Optional[Sequence[str]] = None,
        exclude_reasons: Sequence[str] = (),
    ) -> Optional[str]:
        """First source location of the most recent matching outbound for `code`."""
        history = self.repo.list_transactions(item_code=code, type=TransactionType.OUTBOUND.value)
        for record in reversed(history):
            reason = record.reason or OutboundReason.OTHER.value
            if reason in exclude_reasons:
                continue
            if reasons is not None and reason not in reasons:
                continue
            locations = split_locations(record.from_location)
            if locations:
                return locations[0]
        return None

    def _check_destination(self, location: str) -> None:
        if self.strict_locations and not self.layout.is_known_location(location):
            raise ValidationError(f"Unknown warehouse location: {location}")

    def _append(self, request: TransactionCreate, user_id: Optional[int], **overrides) -> Transaction:
        fields = {
            "type": request.type,
            "item_code": request.item_code,
            "item_name": request.item_name,
            "quantity": request.quantity,
            "from_location": request.from_location,
            "to_location": request.to_location,
            "reason": request.reason,
            "memo": request.memo,
            "user_id": user_id,
        }
        fields.update(overrides)
        return self.repo.append_transaction(**fields)


def _first_set(*values):
    for value in values:
        if value is not None:
            return value
    return None
