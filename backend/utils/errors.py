"""
Domain exceptions raised by the inventory services.

Services raise these and never HTTPException; main.py maps each one to a
status code and a {"message": ...} body.
"""
from typing import Optional


class InventoryError(Exception):
    """Base class for expected, per-request failures"""

    message = "Inventory operation failed"
    status_code = 400

    def __init__(self, message: Optional[str] = None):
        if message is not None:
            self.message = message
        super().__init__(self.message)


class ValidationError(InventoryError):
    """Request is well-formed JSON but not acceptable for the operation"""

    message = "Invalid data"


class AmbiguousItemError(ValidationError):
    """Code (or code and location) maps to several rows and the request does not say which"""

    def __init__(self, item_code: str, row_count: int):
        self.item_code = item_code
        self.row_count = row_count
        super().__init__(
            f"Item {item_code} matches {row_count} inventory rows; specify itemId or fromLocation"
        )


class InsufficientStockError(InventoryError):
    """Total stock across the matching rows is lower than the requested quantity"""

    message = "Insufficient stock"

    def __init__(self, item_code: str, available: int, requested: int):
        self.item_code = item_code
        self.available = available
        self.requested = requested
        super().__init__()


class SourceNotFoundError(InventoryError):
    """No row at the requested source (or not enough stock on that exact row)"""

    message = "Source item not found or insufficient stock"


class ItemNotFoundError(InventoryError):
    message = "Item not found"
    status_code = 404


class ExchangeItemNotFoundError(InventoryError):
    message = "Exchange queue item not found"
    status_code = 404


class AlreadyProcessedError(InventoryError):
    message = "Exchange queue item already processed"
    status_code = 404


class GuideNotFoundError(InventoryError):
    message = "BOM guide not found"
    status_code = 404


class ZoneNotFoundError(InventoryError):
    message = "Warehouse zone not found"
    status_code = 404
