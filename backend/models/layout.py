# backend/models/layout.py
from sqlalchemy import Column, Integer, String, DateTime, JSON
from database import Base
from models.inventory import utcnow


# Zone / sub-zone pair with its ordered list of floor labels ("1층", "2층", ...)
class WarehouseZone(Base):
    __tablename__ = "warehouse_layout"

    id = Column(Integer, primary_key=True, index=True)
    zone_name = Column(String, nullable=False)
    sub_zone_name = Column(String, nullable=False)
    floors = Column(JSON, nullable=False, default=list)

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
