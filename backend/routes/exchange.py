# backend/routes/exchange.py
from typing import List

from fastapi import APIRouter, Depends, Query, Request, Response, status
from sqlalchemy.orm import Session

from database import get_db
from models.users import User
from repositories.base import InventoryRepository
from routes.deps import admin_required, get_item_locks, get_repository
from schemas.exchange import ExchangeQueueOut
from services.exchange import ExchangeQueueService
from utils.audit import client_ip, write_log
from utils.errors import InventoryError
from utils.locks import KeyedLock
from utils.tokenJWT import get_current_user

router = APIRouter(prefix="/api/exchange-queue", tags=["Exchange queue"])


@router.get("", response_model=List[ExchangeQueueOut])
def list_exchange_queue(
    pending: bool = Query(False, description="Only items not processed yet"),
    repo: InventoryRepository = Depends(get_repository),
    current_user: User = Depends(get_current_user),
):
    return ExchangeQueueService(repo).list(pending_only=pending)


# Book the replacement for a defective item back into stock (once)
@router.post("/{exchange_id}/process", status_code=status.HTTP_204_NO_CONTENT)
def process_exchange_item(
    exchange_id: int,
    request: Request,
    repo: InventoryRepository = Depends(get_repository),
    locks: KeyedLock = Depends(get_item_locks),
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_required),
):
    try:
        ExchangeQueueService(repo, locks).process(exchange_id, user_id=current_user.id)
    except InventoryError as exc:
        write_log(db, user_id=current_user.id, action="EXCHANGE_PROCESS", resource="exchange_queue",
                  status="FAIL", ip=client_ip(request), meta={"id": exchange_id, "error": exc.message})
        raise

    write_log(db, user_id=current_user.id, action="EXCHANGE_PROCESS", resource="exchange_queue",
              ip=client_ip(request), meta={"id": exchange_id})
    return Response(status_code=status.HTTP_204_NO_CONTENT)
