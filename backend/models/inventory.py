# backend/models/inventory.py
from datetime import datetime, timezone

from sqlalchemy import Column, Integer, String, DateTime, CheckConstraint
from database import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# One physical stock lot: a product code at one location.
# The same code may appear on many rows (one per location), so the
# synthetic id is the only identity. Rows without a location are
# "master" rows created by a product master upload.
class InventoryItem(Base):
    __tablename__ = "inventory_items"

    id = Column(Integer, primary_key=True, index=True)
    code = Column(String, nullable=False, index=True)
    name = Column(String, nullable=False)
    category = Column(String, nullable=False)
    manufacturer = Column(String, nullable=True)
    unit = Column(String, nullable=False, default="ea")
    box_size = Column(Integer, nullable=True, default=1)

    stock = Column(Integer, CheckConstraint("stock >= 0"), nullable=False, default=0)
    min_stock = Column(Integer, CheckConstraint("min_stock >= 0"), nullable=False, default=0)

    # Zone-subzone-floor encoding, e.g. "A구역-1-2"
    location = Column(String, nullable=True, index=True)

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    def __repr__(self) -> str:
        return f"<InventoryItem id={self.id} code={self.code!r} location={self.location!r} stock={self.stock}>"
