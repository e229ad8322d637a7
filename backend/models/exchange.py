# backend/models/exchange.py
from sqlalchemy import Column, Integer, String, DateTime, Boolean
from database import Base
from models.inventory import utcnow


# Defective units taken out of stock and waiting for a replacement.
# `processed` flips to True exactly once, when the replacement is booked in.
class ExchangeQueueItem(Base):
    __tablename__ = "exchange_queue"

    id = Column(Integer, primary_key=True, index=True)
    item_code = Column(String, nullable=False, index=True)
    item_name = Column(String, nullable=False)
    quantity = Column(Integer, nullable=False)
    outbound_date = Column(DateTime(timezone=True), nullable=False)
    processed = Column(Boolean, nullable=False, default=False)

    # Outbound transaction that created this entry (used to find the source location)
    transaction_id = Column(Integer, nullable=True)

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
