# backend/models/users.py
from sqlalchemy import Column, Integer, String, DateTime
from database import Base
from models.inventory import utcnow

# Represents a user account with authentication details and system role
class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String, unique=True, nullable=False, index=True)
    password_hash = Column(String, nullable=False)
    # "admin" may change stock, "viewer" may only read
    role = Column(String, nullable=False, default="viewer")
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
