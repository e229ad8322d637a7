# backend/routes/inventory.py
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request, Response, status
from sqlalchemy.orm import Session

from database import get_db
from models.users import User
from repositories.base import InventoryRepository
from routes.deps import admin_required, get_item_locks, get_repository
from schemas.inventory import (
    InventoryItemCreate,
    InventoryItemOut,
    InventoryItemUpdate,
    InventorySummary,
    ItemLocations,
)
from services.inventory import InventoryService
from utils.audit import client_ip, write_log
from utils.locks import KeyedLock
from utils.tokenJWT import get_current_user

router = APIRouter(prefix="/api/inventory", tags=["Inventory"])


# All inventory rows (one per code and location), optionally filtered
@router.get("", response_model=List[InventoryItemOut])
def list_inventory(
    code: Optional[str] = Query(None),
    location: Optional[str] = Query(None),
    category: Optional[str] = Query(None),
    low_stock: bool = Query(False, alias="lowStock", description="Only codes below their minimum stock"),
    repo: InventoryRepository = Depends(get_repository),
    current_user: User = Depends(get_current_user),
):
    return InventoryService(repo).list(code=code, location=location, category=category, low_stock=low_stock)


@router.get("/summary", response_model=InventorySummary)
def inventory_summary(
    repo: InventoryRepository = Depends(get_repository),
    current_user: User = Depends(get_current_user),
):
    return InventoryService(repo).summary()


# First row for a code (kept for callers that treat a code as one row)
@router.get("/{code}", response_model=InventoryItemOut)
def get_inventory_item(
    code: str,
    repo: InventoryRepository = Depends(get_repository),
    current_user: User = Depends(get_current_user),
):
    return InventoryService(repo).get_first(code)


# Every location row of a code plus the total across them
@router.get("/{code}/locations", response_model=ItemLocations)
def get_item_locations(
    code: str,
    repo: InventoryRepository = Depends(get_repository),
    current_user: User = Depends(get_current_user),
):
    return InventoryService(repo).locations(code)


@router.post("", response_model=InventoryItemOut, status_code=status.HTTP_201_CREATED)
def create_inventory_item(
    payload: InventoryItemCreate,
    request: Request,
    repo: InventoryRepository = Depends(get_repository),
    locks: KeyedLock = Depends(get_item_locks),
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_required),
):
    item = InventoryService(repo, locks).create(payload)
    write_log(db, user_id=current_user.id, action="INVENTORY_CREATE", resource="inventory",
              ip=client_ip(request), meta={"id": item.id, "code": item.code, "location": item.location})
    return item


@router.patch("/items/{item_id}", response_model=InventoryItemOut)
def update_inventory_item(
    item_id: int,
    payload: InventoryItemUpdate,
    request: Request,
    repo: InventoryRepository = Depends(get_repository),
    locks: KeyedLock = Depends(get_item_locks),
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_required),
):
    item = InventoryService(repo, locks).update(item_id, payload)
    write_log(db, user_id=current_user.id, action="INVENTORY_UPDATE", resource="inventory",
              ip=client_ip(request), meta={"id": item_id, "changes": payload.model_dump(exclude_unset=True)})
    return item


@router.delete("/items/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_inventory_item(
    item_id: int,
    request: Request,
    repo: InventoryRepository = Depends(get_repository),
    locks: KeyedLock = Depends(get_item_locks),
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_required),
):
    InventoryService(repo, locks).delete(item_id)
    write_log(db, user_id=current_user.id, action="INVENTORY_DELETE", resource="inventory",
              ip=client_ip(request), meta={"id": item_id})
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# Removes the first row of a code; other locations of the code stay
@router.delete("/{code}", status_code=status.HTTP_204_NO_CONTENT)
def delete_inventory_by_code(
    code: str,
    request: Request,
    repo: InventoryRepository = Depends(get_repository),
    locks: KeyedLock = Depends(get_item_locks),
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_required),
):
    removed = InventoryService(repo, locks).delete_first(code)
    write_log(db, user_id=current_user.id, action="INVENTORY_DELETE", resource="inventory",
              ip=client_ip(request), meta=removed)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
