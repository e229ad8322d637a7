# backend/models/bom.py
from sqlalchemy import Column, Integer, String, DateTime
from database import Base
from models.inventory import utcnow


# One line of an installation guide: part code and how many of it the guide
# needs. A guide may list the same part on several lines.
class BomGuide(Base):
    __tablename__ = "bom_guides"

    id = Column(Integer, primary_key=True, index=True)
    guide_name = Column(String, nullable=False, index=True)
    item_code = Column(String, nullable=False, index=True)
    required_quantity = Column(Integer, nullable=False)

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
