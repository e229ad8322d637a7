# backend/routes/deps.py
from fastapi import Depends, Request
from sqlalchemy.orm import Session

from config import settings
from database import get_db
from repositories.base import InventoryRepository
from repositories.memory import MemoryRepository
from repositories.sql import SqlRepository
from services.reconciliation import ReconciliationEngine
from utils.locks import KeyedLock
from utils.tokenJWT import role_required

# Mutations are reserved for admins; viewers may read everything
admin_required = role_required("admin")


# Repository for this request: the shared in-memory store when the app
# runs with STORAGE_BACKEND=memory, otherwise the request's DB session
def get_repository(request: Request, db: Session = Depends(get_db)) -> InventoryRepository:
    store = getattr(request.app.state, "memory_store", None)
    if store is not None:
        return MemoryRepository(store)
    return SqlRepository(db)


def get_item_locks(request: Request) -> KeyedLock:
    locks = getattr(request.app.state, "item_locks", None)
    if locks is None:
        locks = request.app.state.item_locks = KeyedLock()
    return locks


def get_engine(
    repo: InventoryRepository = Depends(get_repository),
    locks: KeyedLock = Depends(get_item_locks),
) -> ReconciliationEngine:
    return ReconciliationEngine(repo, locks, strict_locations=settings.STRICT_LOCATIONS)
