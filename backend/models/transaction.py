# backend/models/transaction.py
import enum
from sqlalchemy import Column, Integer, String, DateTime, Text
from database import Base
from models.inventory import utcnow


# Kinds of stock-affecting events recorded in the ledger
class TransactionType(str, enum.Enum):
    INBOUND = "inbound"
    OUTBOUND = "outbound"
    MOVE = "move"
    ADJUSTMENT = "adjustment"


# Immutable ledger entry. Rows are only ever inserted; the reconciliation
# engine reads them back to recover where earlier outbounds drew stock from.
class Transaction(Base):
    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True, index=True)
    type = Column(String, nullable=False, index=True)
    item_code = Column(String, nullable=False, index=True)
    item_name = Column(String, nullable=False)
    quantity = Column(Integer, nullable=False)

    # Comma-joined list of source locations for multi-row FIFO outbounds
    from_location = Column(Text, nullable=True)
    to_location = Column(String, nullable=True)

    reason = Column(String, nullable=True)
    memo = Column(Text, nullable=True)
    user_id = Column(Integer, nullable=True)

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)


# Outbound reasons selected on the outbound form. Anything not listed here
# is handled like OTHER (plain FIFO deduction).
class OutboundReason(str, enum.Enum):
    ASSEMBLY_TRANSFER = "조립장 이동"
    RETURN = "출고 반환"
    DEFECTIVE_EXCHANGE = "불량품 교환 출고"
    OTHER = "기타"


# Reason stamped on the inbound entry written when an exchange item is processed
EXCHANGE_INBOUND_REASON = "불량품교환 새제품 입고"
