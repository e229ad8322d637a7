"""
Reconciliation engine tests against the in-memory repository.
"""
import threading

import pytest

from models.transaction import OutboundReason
from repositories.memory import MemoryRepository
from schemas.transaction import TransactionCreate
from services.layout import LayoutService
from services.reconciliation import ReconciliationEngine
from utils.errors import (
    AmbiguousItemError,
    InsufficientStockError,
    SourceNotFoundError,
    ValidationError,
)
from utils.locks import KeyedLock


def txn(type, code="X1", quantity=1, **fields):
    return TransactionCreate(type=type, item_code=code, item_name=f"Part {code}", quantity=quantity, **fields)


def stock_by_location(repo, code="X1"):
    return {row.location: row.stock for row in repo.list_by_code(code)}


class TestOutbound:

    def test_fifo_drains_oldest_row_first(self, repo, reconciler, add_row):
        first = add_row("X1", 5, "A구역-1-1")
        second = add_row("X1", 5, "B구역-1-1")

        record = reconciler.record(txn("outbound", quantity=7))

        assert repo.get_item(first.id).stock == 0
        assert repo.get_item(second.id).stock == 3
        assert record.from_location == "A구역-1-1,B구역-1-1"
        assert record.reason == OutboundReason.OTHER.value

    def test_fifo_order_follows_row_id_not_location(self, repo, reconciler, add_row):
        older = add_row("X1", 4, "D구역-2-3")
        newer = add_row("X1", 4, "A구역-1-1")

        record = reconciler.record(txn("outbound", quantity=3, reason=OutboundReason.ASSEMBLY_TRANSFER.value))

        assert repo.get_item(older.id).stock == 1
        assert repo.get_item(newer.id).stock == 4
        assert record.from_location == "D구역-2-3"

    def test_rows_without_stock_are_skipped(self, repo, reconciler, add_row):
        add_row("X1", 0, "A구역-1-1")
        add_row("X1", 4, "B구역-1-1")

        record = reconciler.record(txn("outbound", quantity=2))

        assert record.from_location == "B구역-1-1"
        assert stock_by_location(repo) == {"A구역-1-1": 0, "B구역-1-1": 2}

    def test_insufficient_stock_leaves_everything_unchanged(self, repo, reconciler, add_row):
        add_row("X1", 6, "A구역-1-1")
        add_row("X1", 4, "B구역-1-1")

        with pytest.raises(InsufficientStockError) as exc_info:
            reconciler.record(txn("outbound", quantity=100))

        assert exc_info.value.available == 10
        assert exc_info.value.message == "Insufficient stock"
        assert stock_by_location(repo) == {"A구역-1-1": 6, "B구역-1-1": 4}
        assert repo.list_transactions() == []

    def test_outbound_of_unknown_code_is_insufficient(self, repo, reconciler):
        with pytest.raises(InsufficientStockError):
            reconciler.record(txn("outbound", code="NOPE", quantity=1))
        assert repo.list_transactions() == []

    def test_total_drops_by_exactly_quantity(self, repo, reconciler, add_row):
        for location, stock in (("A구역-1-1", 3), ("A구역-1-2", 8), ("B구역-2-1", 2)):
            add_row("X1", stock, location)

        reconciler.record(txn("outbound", quantity=12))

        assert sum(stock_by_location(repo).values()) == 1
        assert all(stock >= 0 for stock in stock_by_location(repo).values())

    def test_defective_exchange_queues_item(self, repo, reconciler, add_row):
        add_row("X1", 5, "A구역-1-1")

        record = reconciler.record(txn("outbound", quantity=2, reason=OutboundReason.DEFECTIVE_EXCHANGE.value))

        [entry] = repo.list_exchange_items()
        assert entry.processed is False
        assert entry.quantity == 2
        assert entry.transaction_id == record.id
        assert stock_by_location(repo) == {"A구역-1-1": 3}

    def test_failed_defective_exchange_queues_nothing(self, repo, reconciler, add_row):
        add_row("X1", 1, "A구역-1-1")

        with pytest.raises(InsufficientStockError):
            reconciler.record(txn("outbound", quantity=2, reason=OutboundReason.DEFECTIVE_EXCHANGE.value))

        assert repo.list_exchange_items() == []


class TestReturn:

    def test_return_credits_location_of_last_draw(self, repo, reconciler, add_row):
        add_row("X1", 5, "A구역-1-1")
        add_row("X1", 5, "B구역-1-1")
        reconciler.record(txn("outbound", quantity=7))

        record = reconciler.record(txn("outbound", quantity=2, reason=OutboundReason.RETURN.value))

        # The last draw started at A구역-1-1
        assert stock_by_location(repo) == {"A구역-1-1": 2, "B구역-1-1": 3}
        assert record.to_location == "A구역-1-1"
        assert record.reason == OutboundReason.RETURN.value

    def test_return_recreates_row_copying_master_attributes(self, repo, reconciler, add_row):
        source = add_row("X1", 3, "A구역-1-1", unit="box", box_size=10, min_stock=2, manufacturer="ACME")
        reconciler.record(txn("outbound", quantity=3))
        repo.delete_item(source.id)
        other = add_row("X1", 1, "C구역-1-1", unit="box", box_size=10, min_stock=2, manufacturer="ACME")

        reconciler.record(txn("outbound", quantity=1, reason=OutboundReason.RETURN.value, from_location="A구역-1-1"))

        restored = repo.find_at_location("X1", "A구역-1-1")
        assert restored is not None and restored.id != other.id
        assert restored.stock == 1
        assert (restored.unit, restored.box_size, restored.min_stock, restored.manufacturer) == ("box", 10, 2, "ACME")

    def test_return_without_history_credits_first_row(self, repo, reconciler, add_row):
        first = add_row("X1", 1, "A구역-1-1")
        add_row("X1", 1, "B구역-1-1")

        reconciler.record(txn("outbound", quantity=4, reason=OutboundReason.RETURN.value))

        assert repo.get_item(first.id).stock == 5


class TestInbound:

    def test_inbound_creates_row_at_destination(self, repo, reconciler):
        record = reconciler.record(txn("inbound", quantity=50, to_location="A구역-1-1", category="센서"))

        [row] = repo.list_by_code("X1")
        assert (row.location, row.stock, row.category) == ("A구역-1-1", 50, "센서")
        assert record.to_location == "A구역-1-1"

    def test_inbound_merges_into_row_at_same_location(self, repo, reconciler, add_row):
        row = add_row("X1", 5, "A구역-1-1")

        reconciler.record(txn("inbound", quantity=3, to_location="A구역-1-1"))

        assert len(repo.list_by_code("X1")) == 1
        assert repo.get_item(row.id).stock == 8

    def test_inbound_to_new_location_copies_attributes(self, repo, reconciler, add_row):
        add_row("X1", 5, "A구역-1-1", category="모터", manufacturer="ACME", min_stock=4)

        reconciler.record(txn("inbound", quantity=2, to_location="B구역-2-1"))

        new_row = repo.find_at_location("X1", "B구역-2-1")
        assert (new_row.stock, new_row.category, new_row.manufacturer, new_row.min_stock) == (2, "모터", "ACME", 4)
        assert sum(stock_by_location(repo).values()) == 7

    def test_inbound_from_layout_coordinates(self, repo, reconciler):
        request = txn("inbound", quantity=4, zone="B구역", sub_zone="B-2", floor="3층")

        reconciler.record(request)

        assert stock_by_location(repo) == {"B구역-2-3": 4}

    def test_inbound_requires_destination(self, reconciler, repo):
        with pytest.raises(ValidationError):
            reconciler.record(txn("inbound", quantity=4))
        assert repo.list_items() == []

    def test_strict_locations_reject_unknown_destination(self, repo):
        LayoutService(repo).seed_defaults()
        strict = ReconciliationEngine(repo, KeyedLock(), strict_locations=True)

        with pytest.raises(ValidationError):
            strict.record(txn("inbound", quantity=1, to_location="Z구역-9-9"))
        strict.record(txn("inbound", quantity=1, to_location="A구역-1-1"))

        assert stock_by_location(repo) == {"A구역-1-1": 1}


class TestMove:

    def test_exact_quantity_relocates_row(self, repo, reconciler, add_row):
        row = add_row("X1", 20, "A구역-1-1")

        record = reconciler.record(txn("move", quantity=20, from_location="A구역-1-1", to_location="B구역-1-1"))

        [moved] = repo.list_by_code("X1")
        assert moved.id == row.id
        assert (moved.location, moved.stock) == ("B구역-1-1", 20)
        assert (record.from_location, record.to_location) == ("A구역-1-1", "B구역-1-1")

    def test_partial_quantity_splits_row(self, repo, reconciler, add_row):
        add_row("X1", 20, "A구역-1-1", category="모터", unit="box")

        reconciler.record(txn("move", quantity=5, from_location="A구역-1-1", to_location="B구역-1-1"))

        assert stock_by_location(repo) == {"A구역-1-1": 15, "B구역-1-1": 5}
        split = repo.find_at_location("X1", "B구역-1-1")
        assert (split.name, split.category, split.unit) == ("Part X1", "모터", "box")

    def test_partial_move_merges_into_existing_target(self, repo, reconciler, add_row):
        add_row("X1", 10, "A구역-1-1")
        add_row("X1", 1, "B구역-1-1")

        reconciler.record(txn("move", quantity=4, from_location="A구역-1-1", to_location="B구역-1-1"))

        assert stock_by_location(repo) == {"A구역-1-1": 6, "B구역-1-1": 5}
        assert len(repo.list_by_code("X1")) == 2

    def test_full_move_merges_into_existing_target(self, repo, reconciler, add_row):
        source = add_row("X1", 5, "A구역-1-1")
        target = add_row("X1", 3, "B구역-1-1")

        reconciler.record(txn("move", quantity=5, from_location="A구역-1-1", to_location="B구역-1-1"))

        [merged] = repo.list_by_code("X1")
        assert merged.id == target.id
        assert (merged.location, merged.stock) == ("B구역-1-1", 8)
        assert repo.get_item(source.id) is None

    def test_adjustment_after_merging_move_sets_target_total(self, repo, reconciler, add_row):
        add_row("X1", 5, "A구역-1-1")
        add_row("X1", 3, "B구역-1-1")
        reconciler.record(txn("move", quantity=5, from_location="A구역-1-1", to_location="B구역-1-1"))

        reconciler.record(txn("adjustment", quantity=2, from_location="B구역-1-1"))

        assert stock_by_location(repo) == {"B구역-1-1": 2}
        assert len(repo.list_by_code("X1")) == 1

    def test_failed_merging_move_restores_both_rows(self, repo, add_row, monkeypatch):
        add_row("X1", 5, "A구역-1-1")
        add_row("X1", 3, "B구역-1-1")
        reconciler = ReconciliationEngine(repo)
        def broken_append(**fields):
            raise RuntimeError("ledger unavailable")
        monkeypatch.setattr(repo, "append_transaction", broken_append)

        with pytest.raises(RuntimeError):
            reconciler.record(txn("move", quantity=5, from_location="A구역-1-1", to_location="B구역-1-1"))

        assert stock_by_location(repo) == {"A구역-1-1": 5, "B구역-1-1": 3}

    def test_move_is_location_exact(self, repo, reconciler, add_row):
        add_row("X1", 1, "A구역-1-1")
        add_row("X1", 10, "C구역-1-1")

        with pytest.raises(SourceNotFoundError):
            reconciler.record(txn("move", quantity=5, from_location="A구역-1-1", to_location="B구역-1-1"))

        assert stock_by_location(repo) == {"A구역-1-1": 1, "C구역-1-1": 10}
        assert repo.list_transactions() == []

    def test_move_to_same_location_rejected(self, reconciler, add_row):
        add_row("X1", 5, "A구역-1-1")

        with pytest.raises(ValidationError):
            reconciler.record(txn("move", quantity=1, from_location="A구역-1-1", to_location="A구역-1-1"))


class TestAdjustment:

    def test_single_row_is_overwritten(self, repo, reconciler, add_row):
        row = add_row("X1", 7, "A구역-1-1")

        record = reconciler.record(txn("adjustment", quantity=3))

        assert repo.get_item(row.id).stock == 3
        assert record.from_location == "A구역-1-1"

    def test_zero_is_a_valid_count(self, repo, reconciler, add_row):
        row = add_row("X1", 7, "A구역-1-1")

        reconciler.record(txn("adjustment", quantity=0))

        assert repo.get_item(row.id).stock == 0

    def test_multi_location_code_needs_explicit_row(self, repo, reconciler, add_row):
        add_row("X1", 7, "A구역-1-1")
        second = add_row("X1", 2, "B구역-1-1")

        with pytest.raises(AmbiguousItemError):
            reconciler.record(txn("adjustment", quantity=9))

        reconciler.record(txn("adjustment", quantity=9, from_location="B구역-1-1"))
        assert repo.get_item(second.id).stock == 9

        reconciler.record(txn("adjustment", quantity=1, item_id=second.id))
        assert stock_by_location(repo) == {"A구역-1-1": 7, "B구역-1-1": 1}

    def test_item_id_of_another_code_is_rejected(self, reconciler, add_row):
        other = add_row("Y9", 7, "A구역-1-1")

        with pytest.raises(SourceNotFoundError):
            reconciler.record(txn("adjustment", quantity=1, item_id=other.id))

    def test_duplicate_rows_at_location_are_not_guessed(self, repo, reconciler, add_row):
        # Rows loaded by a stock-count sync can share a location
        first = add_row("X1", 5, "B구역-1-1")
        add_row("X1", 3, "B구역-1-1")

        with pytest.raises(AmbiguousItemError):
            reconciler.record(txn("adjustment", quantity=2, from_location="B구역-1-1"))

        reconciler.record(txn("adjustment", quantity=2, item_id=first.id))
        assert sorted(row.stock for row in repo.list_by_code("X1")) == [2, 3]


class TestUnitOfWork:

    def test_failure_after_deduction_rolls_back(self, repo, reconciler, add_row, monkeypatch):
        add_row("X1", 5, "A구역-1-1")

        def broken_append(**fields):
            raise RuntimeError("ledger unavailable")
        monkeypatch.setattr(repo, "append_transaction", broken_append)

        with pytest.raises(RuntimeError):
            reconciler.record(txn("outbound", quantity=3))

        assert stock_by_location(repo) == {"A구역-1-1": 5}

    def test_rejected_split_leaves_no_partial_row(self, repo, add_row, monkeypatch):
        add_row("X1", 5, "A구역-1-1")
        reconciler = ReconciliationEngine(repo)
        def broken_append(**fields):
            raise RuntimeError("ledger unavailable")
        monkeypatch.setattr(repo, "append_transaction", broken_append)

        with pytest.raises(RuntimeError):
            reconciler.record(txn("move", quantity=2, from_location="A구역-1-1", to_location="B구역-1-1"))

        assert stock_by_location(repo) == {"A구역-1-1": 5}

    def test_concurrent_outbounds_never_oversell(self, repo, add_row):
        add_row("X1", 10, "A구역-1-1")
        locks = KeyedLock()
        results = []

        def worker():
            # One repository per request over the shared store
            engine = ReconciliationEngine(MemoryRepository(repo.store), locks)
            try:
                engine.record(txn("outbound", quantity=1))
                results.append(True)
            except InsufficientStockError:
                results.append(False)

        threads = [threading.Thread(target=worker) for _ in range(25)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert results.count(True) == 10
        assert stock_by_location(repo) == {"A구역-1-1": 0}
        assert len(repo.list_transactions()) == 10
        assert len(locks) == 0
