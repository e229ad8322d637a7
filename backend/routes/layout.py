# backend/routes/layout.py
from typing import List

from fastapi import APIRouter, Depends, Request, Response, status
from sqlalchemy.orm import Session

from database import get_db
from models.users import User
from repositories.base import InventoryRepository
from routes.deps import admin_required, get_repository
from schemas.layout import WarehouseZoneCreate, WarehouseZoneOut
from services.layout import LayoutService
from utils.audit import client_ip, write_log
from utils.tokenJWT import get_current_user

router = APIRouter(prefix="/api/warehouse/layout", tags=["Warehouse layout"])


@router.get("", response_model=List[WarehouseZoneOut])
def get_layout(
    repo: InventoryRepository = Depends(get_repository),
    current_user: User = Depends(get_current_user),
):
    return LayoutService(repo).list_zones()


@router.post("", response_model=WarehouseZoneOut, status_code=status.HTTP_201_CREATED)
def create_zone(
    payload: WarehouseZoneCreate,
    request: Request,
    repo: InventoryRepository = Depends(get_repository),
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_required),
):
    zone = LayoutService(repo).create_zone(payload.zone_name, payload.sub_zone_name, payload.floors)
    write_log(db, user_id=current_user.id, action="LAYOUT_CREATE", resource="layout",
              ip=client_ip(request), meta={"id": zone.id, "zone": zone.zone_name, "subZone": zone.sub_zone_name})
    return zone


@router.delete("/{zone_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_zone(
    zone_id: int,
    request: Request,
    repo: InventoryRepository = Depends(get_repository),
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_required),
):
    LayoutService(repo).delete_zone(zone_id)
    write_log(db, user_id=current_user.id, action="LAYOUT_DELETE", resource="layout",
              ip=client_ip(request), meta={"id": zone_id})
    return Response(status_code=status.HTTP_204_NO_CONTENT)
