# backend/populate_db.py
"""
Bootstrap data: the default admin/viewer accounts and the standard
warehouse layout. Runs on application startup and can be run by hand:

    python populate_db.py
"""
import logging
import os
import sys

from sqlalchemy.orm import Session

# Add 'backend' folder to Python path when run as a script
sys.path.append(os.path.abspath(os.path.dirname(__file__)))

from config import settings
from database import SessionLocal, init_db
from models.users import User
from repositories.base import InventoryRepository
from repositories.sql import SqlRepository
from services.layout import LayoutService
from utils.hashing import get_password_hash

logger = logging.getLogger(__name__)


# Create a user unless one with that username exists; returns True when created
def ensure_user(db: Session, username: str, password: str, role: str) -> bool:
    if db.query(User).filter(User.username == username).first():
        return False
    db.add(User(username=username, password_hash=get_password_hash(password), role=role))
    db.commit()
    logger.info("Created %s account %r", role, username)
    return True


def seed_users(db: Session) -> None:
    ensure_user(db, settings.DEFAULT_ADMIN_USERNAME, settings.DEFAULT_ADMIN_PASSWORD, "admin")
    ensure_user(db, settings.DEFAULT_VIEWER_USERNAME, settings.DEFAULT_VIEWER_PASSWORD, "viewer")


# Users always live in the database; the layout goes to whichever
# repository backs the inventory
def seed_database(db: Session, repo: InventoryRepository = None) -> None:
    seed_users(db)
    if settings.SEED_DEFAULT_LAYOUT:
        LayoutService(repo or SqlRepository(db)).seed_defaults()


if __name__ == "__main__":
    from utils.logging_setup import configure_logging

    configure_logging(settings.LOG_LEVEL)
    init_db()
    session = SessionLocal()
    try:
        seed_database(session)
    finally:
        session.close()
