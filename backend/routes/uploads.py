# backend/routes/uploads.py
from typing import Any, Dict

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from config import settings
from database import get_db
from models.users import User
from repositories.base import InventoryRepository
from routes.deps import admin_required, get_item_locks, get_repository
from schemas.upload import BackupPayload, UploadPayload, UploadResult
from services.bulk import BulkService
from utils.audit import client_ip, write_log
from utils.locks import KeyedLock

router = APIRouter(prefix="/api", tags=["Uploads"])


def _bulk(repo: InventoryRepository, locks: KeyedLock) -> BulkService:
    return BulkService(repo, locks, strict_locations=settings.STRICT_LOCATIONS)


def _log_upload(db: Session, request: Request, user: User, action: str, result: UploadResult) -> None:
    write_log(db, user_id=user.id, action=action, resource="upload", ip=client_ip(request),
              meta={"processed": result.processed, "skipped": len(result.skipped)})


@router.post("/upload/master", response_model=UploadResult)
def upload_master(
    payload: UploadPayload,
    request: Request,
    repo: InventoryRepository = Depends(get_repository),
    locks: KeyedLock = Depends(get_item_locks),
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_required),
):
    result = _bulk(repo, locks).import_master(payload.items)
    _log_upload(db, request, current_user, "UPLOAD_MASTER", result)
    return result


@router.post("/upload/bom", response_model=UploadResult)
def upload_bom(
    payload: UploadPayload,
    request: Request,
    repo: InventoryRepository = Depends(get_repository),
    locks: KeyedLock = Depends(get_item_locks),
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_required),
):
    result = _bulk(repo, locks).import_bom(payload.items)
    _log_upload(db, request, current_user, "UPLOAD_BOM", result)
    return result


@router.post("/upload/inventory-add", response_model=UploadResult)
def upload_inventory_add(
    payload: UploadPayload,
    request: Request,
    repo: InventoryRepository = Depends(get_repository),
    locks: KeyedLock = Depends(get_item_locks),
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_required),
):
    result = _bulk(repo, locks).add_inventory(payload.items, user_id=current_user.id)
    _log_upload(db, request, current_user, "UPLOAD_INVENTORY_ADD", result)
    return result


@router.post("/upload/inventory-sync", response_model=UploadResult)
def upload_inventory_sync(
    payload: UploadPayload,
    request: Request,
    repo: InventoryRepository = Depends(get_repository),
    locks: KeyedLock = Depends(get_item_locks),
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_required),
):
    result = _bulk(repo, locks).sync_inventory(payload.items)
    _log_upload(db, request, current_user, "UPLOAD_INVENTORY_SYNC", result)
    return result


@router.get("/backup")
def export_backup(
    repo: InventoryRepository = Depends(get_repository),
    locks: KeyedLock = Depends(get_item_locks),
    current_user: User = Depends(admin_required),
) -> Dict[str, Any]:
    return _bulk(repo, locks).export_backup()


@router.post("/restore-backup")
def restore_backup(
    payload: BackupPayload,
    request: Request,
    repo: InventoryRepository = Depends(get_repository),
    locks: KeyedLock = Depends(get_item_locks),
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_required),
):
    counts = _bulk(repo, locks).restore_backup(payload)
    write_log(db, user_id=current_user.id, action="BACKUP_RESTORE", resource="backup",
              ip=client_ip(request), meta=counts)
    return {**counts, "message": "Backup restored"}
