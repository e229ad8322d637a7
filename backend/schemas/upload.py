"""
Spreadsheet rows arriving from the client.

The client parses the Excel files and posts the rows as JSON objects whose
keys are either the Korean column headers of the templates or their
English field names. The functions here turn one such row into a typed
request; nothing past this module sees the raw keys.
"""
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from schemas.bom import BomGuideCreate
from schemas.inventory import InventoryItemCreate
from schemas.transaction import TransactionCreate
from utils.locations import build_location

Row = Dict[str, Any]

DEFAULT_ZONE = "A구역"
DEFAULT_SUB_ZONE = "A-1"
DEFAULT_FLOOR = "1층"


class UploadPayload(BaseModel):
    items: List[Row]


class BackupPayload(BaseModel):
    inventory: List[Row] = Field(default_factory=list)
    transactions: List[Row] = Field(default_factory=list)
    bom_guides: List[Row] = Field(default_factory=list, alias="bomGuides")
    # Older backups carry neither section; those leave layout and queue untouched
    layout: Optional[List[Row]] = None
    exchange_queue: Optional[List[Row]] = Field(None, alias="exchangeQueue")

    model_config = {"populate_by_name": True}


class SkippedRow(BaseModel):
    row: int
    reason: str


class UploadResult(BaseModel):
    processed: int
    skipped: List[SkippedRow] = Field(default_factory=list)
    items: List[Any] = Field(default_factory=list)


def _pick(row: Row, *keys: str, default: Any = None) -> Any:
    for key in keys:
        value = row.get(key)
        if value is not None and value != "":
            return value
    return default


def _text(row: Row, *keys: str, default: Optional[str] = None) -> Optional[str]:
    value = _pick(row, *keys)
    return str(value).strip() if value is not None else default


def _number(row: Row, *keys: str, default: int = 0) -> int:
    value = _pick(row, *keys)
    if value is None:
        return default
    try:
        return int(float(str(value).strip()))
    except ValueError:
        raise ValueError(f"{keys[-1]} is not a number: {value!r}")


def _code(row: Row) -> str:
    return _text(row, "제품코드", "code", default="")


def _item_attributes(row: Row, code: str) -> Row:
    return {
        "code": code,
        "name": _text(row, "품명", "name", default=code),
        "category": _text(row, "카테고리", "category", default="기타"),
        "manufacturer": _text(row, "제조사", "manufacturer"),
        "unit": _text(row, "단위", "unit", default="ea"),
        "min_stock": _number(row, "최소재고", "minStock"),
        "box_size": _number(row, "박스당수량(ea)", "박스당수량", "boxSize", default=1),
    }


# Product master row: stock 0, no location
def normalize_master_row(row: Row) -> Optional[InventoryItemCreate]:
    code = _code(row)
    if not code:
        return None
    return InventoryItemCreate(stock=0, location=None, **_item_attributes(row, code))


def normalize_bom_row(row: Row) -> Optional[BomGuideCreate]:
    guide_name = _text(row, "설치가이드명", "guideName", default="")
    item_code = _text(row, "필요부품코드", "itemCode", default="")
    if not guide_name or not item_code:
        return None
    return BomGuideCreate(
        guide_name=guide_name,
        item_code=item_code,
        required_quantity=_number(row, "필요수량", "requiredQuantity"),
    )


# Stock-add row: becomes an inbound transaction at the zone/sub-zone/floor given
def normalize_inventory_add_row(row: Row) -> Optional[TransactionCreate]:
    code = _code(row)
    quantity = _number(row, "수량", "quantity")
    if not code or quantity <= 0:
        return None
    attributes = _item_attributes(row, code)
    location = build_location(
        _text(row, "구역", "zone", default=DEFAULT_ZONE),
        _text(row, "세부구역", "subZone", default=DEFAULT_SUB_ZONE),
        _text(row, "층수", "floor", default=DEFAULT_FLOOR),
    )
    return TransactionCreate(
        type="inbound",
        item_code=code,
        item_name=attributes["name"],
        quantity=quantity,
        to_location=location,
        reason="엑셀 입고",
        category=attributes["category"],
        manufacturer=attributes["manufacturer"],
        unit=attributes["unit"],
        box_size=attributes["box_size"],
        min_stock=attributes["min_stock"],
    )


# Full stock-count row used by inventory sync
def normalize_sync_row(row: Row) -> Optional[InventoryItemCreate]:
    code = _code(row)
    if not code:
        return None
    return InventoryItemCreate(
        stock=_number(row, "현재고", "stock"),
        location=_text(row, "위치", "location"),
        **_item_attributes(row, code),
    )
