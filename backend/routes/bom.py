# backend/routes/bom.py
from typing import List

from fastapi import APIRouter, Depends, Request, Response, status
from sqlalchemy.orm import Session

from database import get_db
from models.users import User
from repositories.base import InventoryRepository
from routes.deps import admin_required, get_repository
from schemas.bom import BomCheckRow, BomGuideCreate, BomGuideOut, BomRequirement
from services.bom import BomService
from utils.audit import client_ip, write_log
from utils.tokenJWT import get_current_user

router = APIRouter(prefix="/api/bom", tags=["BOM"])


@router.get("", response_model=List[BomGuideOut])
def list_bom(
    repo: InventoryRepository = Depends(get_repository),
    current_user: User = Depends(get_current_user),
):
    return BomService(repo).list_all()


@router.get("/guides", response_model=List[str])
def list_guide_names(
    repo: InventoryRepository = Depends(get_repository),
    current_user: User = Depends(get_current_user),
):
    return BomService(repo).guide_names()


# Required quantity per part, summed over the guide's lines
@router.get("/{guide_name}", response_model=List[BomRequirement])
def get_guide(
    guide_name: str,
    repo: InventoryRepository = Depends(get_repository),
    current_user: User = Depends(get_current_user),
):
    return BomService(repo).requirements(guide_name)


# Compare a guide with stock summed across all locations
@router.get("/{guide_name}/check", response_model=List[BomCheckRow])
def check_guide(
    guide_name: str,
    repo: InventoryRepository = Depends(get_repository),
    current_user: User = Depends(get_current_user),
):
    return BomService(repo).check(guide_name)


@router.post("", response_model=BomGuideOut, status_code=status.HTTP_201_CREATED)
def create_bom_line(
    payload: BomGuideCreate,
    request: Request,
    repo: InventoryRepository = Depends(get_repository),
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_required),
):
    row = BomService(repo).create(payload.guide_name, payload.item_code, payload.required_quantity)
    write_log(db, user_id=current_user.id, action="BOM_CREATE", resource="bom",
              ip=client_ip(request), meta={"guideName": row.guide_name, "itemCode": row.item_code})
    return row


@router.delete("/{guide_name}", status_code=status.HTTP_204_NO_CONTENT)
def delete_guide(
    guide_name: str,
    request: Request,
    repo: InventoryRepository = Depends(get_repository),
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_required),
):
    removed = BomService(repo).delete_guide(guide_name)
    write_log(db, user_id=current_user.id, action="BOM_DELETE", resource="bom",
              ip=client_ip(request), meta={"guideName": guide_name, "lines": removed})
    return Response(status_code=status.HTTP_204_NO_CONTENT)
