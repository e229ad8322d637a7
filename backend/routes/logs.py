# backend/routes/logs.py
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import List, Optional, Any
from datetime import datetime
from pydantic import BaseModel, ConfigDict

from database import get_db
from models.log import Log
from models.users import User
from routes.deps import admin_required

router = APIRouter(prefix="/logs", tags=["Logs"])


class LogResponse(BaseModel):
    id: int
    user_id: Optional[int] = None
    action: str
    resource: str
    status: str
    ip: Optional[str] = None
    ts: datetime
    meta: Optional[Any] = None

    model_config = ConfigDict(from_attributes=True)


class LogPage(BaseModel):
    items: List[LogResponse]
    total: int
    page: int
    page_size: int


def _parse_date(value: Optional[str], end_of_day: bool = False) -> Optional[datetime]:
    if not value:
        return None
    # A bare YYYY-MM-DD upper bound covers the whole day
    if end_of_day and len(value) == 10:
        value += " 23:59:59"
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        return None


# Audit trail of logins and inventory mutations, newest first
@router.get("", response_model=LogPage)
def get_logs(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    action: Optional[str] = Query(None, description="Filter by action"),
    user_id: Optional[int] = Query(None, description="Filter by user ID"),
    resource: Optional[str] = Query(None, description="Filter by resource"),
    status: Optional[str] = Query(None, description="Filter by status (SUCCESS/FAIL)"),
    date_from: Optional[str] = Query(None, description="From date (YYYY-MM-DD)"),
    date_to: Optional[str] = Query(None, description="To date (YYYY-MM-DD)"),
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_required),
):
    query = db.query(Log)

    if action:
        query = query.filter(Log.action.ilike(f"%{action}%"))
    if user_id is not None:
        query = query.filter(Log.user_id == user_id)
    if resource:
        query = query.filter(Log.resource.ilike(f"%{resource}%"))
    if status:
        query = query.filter(Log.status == status)

    # Malformed dates are ignored
    dt_from = _parse_date(date_from)
    if dt_from is not None:
        query = query.filter(Log.ts >= dt_from)
    dt_to = _parse_date(date_to, end_of_day=True)
    if dt_to is not None:
        query = query.filter(Log.ts <= dt_to)

    query = query.order_by(Log.ts.desc(), Log.id.desc())

    total = query.count()
    logs = query.offset((page - 1) * page_size).limit(page_size).all()

    return {
        "items": logs,
        "total": total,
        "page": page,
        "page_size": page_size,
    }
