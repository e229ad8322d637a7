import pytest

from models.transaction import EXCHANGE_INBOUND_REASON, OutboundReason
from schemas.transaction import TransactionCreate
from services.exchange import ExchangeQueueService
from utils.errors import AlreadyProcessedError, ExchangeItemNotFoundError
from utils.locks import KeyedLock


def txn(type, quantity, **fields):
    return TransactionCreate(type=type, item_code="X1", item_name="Sensor X1", quantity=quantity, **fields)


@pytest.fixture
def queue(repo):
    return ExchangeQueueService(repo, KeyedLock())


def test_inbound_outbound_exchange_round_trip(repo, reconciler, queue):
    reconciler.record(txn("inbound", 50, to_location="A-1-1"))
    [row] = repo.list_by_code("X1")
    assert row.stock == 50

    assembly = reconciler.record(txn("outbound", 30, reason=OutboundReason.ASSEMBLY_TRANSFER.value))
    assert repo.get_item(row.id).stock == 20
    assert assembly.from_location == "A-1-1"

    reconciler.record(txn("outbound", 20, reason=OutboundReason.DEFECTIVE_EXCHANGE.value))
    assert repo.get_item(row.id).stock == 0
    [pending] = queue.list_pending()

    queue.process(pending.id)

    assert repo.get_item(row.id).stock == 20
    assert queue.list_pending() == []
    assert repo.get_exchange_item(pending.id).processed is True
    last = repo.list_transactions()[-1]
    assert (last.type, last.reason, last.to_location) == ("inbound", EXCHANGE_INBOUND_REASON, "A-1-1")
    assert str(pending.id) in last.memo


def test_processing_twice_credits_once(repo, reconciler, queue, add_row):
    add_row("X1", 5, "A구역-1-1")
    reconciler.record(txn("outbound", 2, reason=OutboundReason.DEFECTIVE_EXCHANGE.value))
    [entry] = queue.list_pending()

    queue.process(entry.id)
    with pytest.raises(AlreadyProcessedError):
        queue.process(entry.id)

    assert repo.find_at_location("X1", "A구역-1-1").stock == 5
    assert len(repo.list_transactions(type="inbound")) == 1


def test_unknown_entry(queue):
    with pytest.raises(ExchangeItemNotFoundError):
        queue.process(999)


def test_replacement_goes_back_to_recorded_source(repo, reconciler, queue, add_row):
    add_row("X1", 1, "A구역-1-1")
    add_row("X1", 5, "C구역-2-1")
    # Draw for the exchange starts at A, a later plain outbound starts at C
    reconciler.record(txn("outbound", 2, reason=OutboundReason.DEFECTIVE_EXCHANGE.value))
    reconciler.record(txn("outbound", 1))
    [entry] = queue.list_pending()

    queue.process(entry.id)

    assert repo.find_at_location("X1", "A구역-1-1").stock == 2
    assert repo.find_at_location("X1", "C구역-2-1").stock == 3


def test_replacement_recreates_deleted_row(repo, reconciler, queue, add_row):
    source = add_row("X1", 2, "A구역-1-1", unit="box")
    add_row("X1", 1, "B구역-1-1", unit="box")
    reconciler.record(txn("outbound", 2, reason=OutboundReason.DEFECTIVE_EXCHANGE.value))
    repo.delete_item(source.id)
    repo.commit()
    [entry] = queue.list_pending()

    queue.process(entry.id)

    restored = repo.find_at_location("X1", "A구역-1-1")
    assert restored.id != source.id
    assert (restored.stock, restored.unit) == (2, "box")


def test_failed_credit_leaves_entry_pending(repo, reconciler, queue, add_row, monkeypatch):
    add_row("X1", 3, "A구역-1-1")
    reconciler.record(txn("outbound", 1, reason=OutboundReason.DEFECTIVE_EXCHANGE.value))
    [entry] = queue.list_pending()

    def broken_append(**fields):
        raise RuntimeError("ledger unavailable")
    monkeypatch.setattr(repo, "append_transaction", broken_append)

    with pytest.raises(RuntimeError):
        queue.process(entry.id)

    assert repo.get_exchange_item(entry.id).processed is False
    assert repo.find_at_location("X1", "A구역-1-1").stock == 2
