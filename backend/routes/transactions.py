# backend/routes/transactions.py
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.orm import Session

from database import get_db
from models.users import User
from repositories.base import InventoryRepository
from routes.deps import admin_required, get_engine, get_repository
from schemas.transaction import TransactionCreate, TransactionKind, TransactionOut
from services.reconciliation import ReconciliationEngine
from utils.audit import client_ip, write_log
from utils.errors import InventoryError
from utils.tokenJWT import get_current_user

router = APIRouter(prefix="/api/transactions", tags=["Transactions"])


# Ledger entries in the order they were recorded
@router.get("", response_model=List[TransactionOut])
def list_transactions(
    item_code: Optional[str] = Query(None, alias="itemCode"),
    type: Optional[TransactionKind] = Query(None),
    repo: InventoryRepository = Depends(get_repository),
    current_user: User = Depends(get_current_user),
):
    return repo.list_transactions(item_code=item_code, type=type)


# Record an inbound/outbound/move/adjustment and reconcile inventory rows
@router.post("", response_model=TransactionOut, status_code=status.HTTP_201_CREATED)
def create_transaction(
    payload: TransactionCreate,
    request: Request,
    engine: ReconciliationEngine = Depends(get_engine),
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_required),
):
    meta = {"type": payload.type, "itemCode": payload.item_code, "quantity": payload.quantity, "reason": payload.reason}
    try:
        record = engine.record(payload, user_id=current_user.id)
    except InventoryError as exc:
        write_log(db, user_id=current_user.id, action="STOCK_TRANSACTION", resource="transactions",
                  status="FAIL", ip=client_ip(request), meta={**meta, "error": exc.message})
        raise

    write_log(db, user_id=current_user.id, action="STOCK_TRANSACTION", resource="transactions",
              ip=client_ip(request), meta={**meta, "id": record.id})
    return record
