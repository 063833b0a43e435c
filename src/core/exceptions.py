"""
Domain exceptions for the ledger and reservation engine.

Four families, matching how callers are expected to react:

- validation: malformed input, rejected before any read
- state conflict: the stock facts do not allow the request (nothing written)
- invariant violation: a replay would drive quantity negative (nothing written)
- partial failure: compensation of a multi-step write failed (fatal alarm)

None of them are retried automatically.
"""

from typing import Any


class LedgerError(Exception):
    """Base exception for all ledger errors."""

    def __init__(
        self,
        message: str,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}

    def to_dict(self) -> dict:
        """Convert to dictionary for API responses."""
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details,
        }


# Storage Exceptions
class StorageError(LedgerError):
    """Base exception for storage operations."""

    pass


class NotFoundError(StorageError):
    """Base for missing records."""

    def __init__(self, entity: str, entity_id: Any, code: str):
        super().__init__(
            f"{entity} not found: {entity_id}",
            code=code,
            details={f"{entity.lower().replace(' ', '_')}_id": entity_id},
        )


class CatalogItemNotFoundError(NotFoundError):
    """Catalog item unknown to the registry."""

    def __init__(self, item_id: int):
        super().__init__("Catalog item", item_id, "CATALOG_ITEM_NOT_FOUND")


class InventoryNotFoundError(NotFoundError):
    """Inventory aggregate not found."""

    def __init__(self, inventory_id: int):
        super().__init__("Inventory", inventory_id, "INVENTORY_NOT_FOUND")


class LotNotFoundError(NotFoundError):
    """Lot not found, or it belongs to another aggregate."""

    def __init__(self, lot_id: int):
        super().__init__("Lot", lot_id, "LOT_NOT_FOUND")


class LedgerEntryNotFoundError(NotFoundError):
    """Ledger entry not found."""

    def __init__(self, entry_id: int):
        super().__init__("Ledger entry", entry_id, "LEDGER_ENTRY_NOT_FOUND")


class FolderNotFoundError(NotFoundError):
    """Checkout folder not found."""

    def __init__(self, folder_id: int):
        super().__init__("Folder", folder_id, "FOLDER_NOT_FOUND")


class CheckoutItemNotFoundError(NotFoundError):
    """Checkout item not found."""

    def __init__(self, item_id: int):
        super().__init__("Checkout item", item_id, "CHECKOUT_ITEM_NOT_FOUND")


class DatabaseError(StorageError):
    """Database operation failed."""

    def __init__(self, operation: str, error: str):
        super().__init__(
            f"Database error during {operation}: {error}",
            code="DATABASE_ERROR",
            details={"operation": operation, "error": error},
        )


# Validation Exceptions
class ValidationError(LedgerError):
    """Input validation failed."""

    def __init__(self, field: str, message: str, value: Any = None):
        super().__init__(
            f"Validation error for '{field}': {message}",
            code="INVALID_INPUT",
            details={
                "field": field,
                "message": message,
                "value": str(value)[:100] if value is not None else None,
            },
        )


# State Conflict Exceptions
class StateConflictError(LedgerError):
    """The current stock facts do not allow the request."""

    pass


class InsufficientStockError(StateConflictError):
    """Aggregate quantity is lower than requested."""

    def __init__(self, inventory_id: int, requested: int, available: int):
        super().__init__(
            f"Insufficient stock for inventory {inventory_id}: "
            f"requested {requested}, available {available}",
            code="INSUFFICIENT_STOCK",
            details={
                "inventory_id": inventory_id,
                "requested": requested,
                "available": available,
            },
        )


class LotRequiredError(StateConflictError):
    """A lot-costed item was sold or withdrawn without naming a lot."""

    def __init__(self, inventory_id: int):
        super().__init__(
            f"Inventory {inventory_id} uses lot costing; a lot_id is required",
            code="LOT_REQUIRED",
            details={"inventory_id": inventory_id},
        )


class LotInsufficientError(StateConflictError):
    """Lot remainder is lower than requested."""

    def __init__(self, lot_id: int, requested: int, remaining: int):
        super().__init__(
            f"Insufficient remainder in lot {lot_id}: "
            f"requested {requested}, remaining {remaining}",
            code="LOT_INSUFFICIENT",
            details={"lot_id": lot_id, "requested": requested, "remaining": remaining},
        )


class FolderClosedError(StateConflictError):
    """Folder is closed; reopen it first."""

    def __init__(self, folder_id: int):
        super().__init__(
            f"Folder {folder_id} is closed; reopen it first",
            code="FOLDER_CLOSED",
            details={"folder_id": folder_id},
        )


class AlreadyResolvedError(StateConflictError):
    """Checkout item is not pending."""

    def __init__(self, item_id: int, status: str):
        super().__init__(
            f"Checkout item {item_id} is already {status}",
            code="ALREADY_RESOLVED",
            details={"item_id": item_id, "status": status},
        )


class NotResolvedError(StateConflictError):
    """Undo was requested on an item that is still pending."""

    def __init__(self, item_id: int):
        super().__init__(
            f"Checkout item {item_id} is pending; nothing to undo",
            code="NOT_RESOLVED",
            details={"item_id": item_id},
        )


class InsufficientStockForUndoError(StateConflictError):
    """Stock moved since the resolution, so it cannot be taken back."""

    def __init__(self, item_id: int, requested: int, available: int, reason: str):
        super().__init__(
            f"Cannot undo checkout item {item_id}: {reason} "
            f"(requested {requested}, available {available})",
            code="INSUFFICIENT_STOCK_FOR_UNDO",
            details={
                "item_id": item_id,
                "requested": requested,
                "available": available,
                "reason": reason,
            },
        )


class PendingItemsExistError(StateConflictError):
    """Folder still holds pending items."""

    def __init__(self, folder_id: int, pending: int):
        super().__init__(
            f"Folder {folder_id} has {pending} pending item(s)",
            code="PENDING_ITEMS_EXIST",
            details={"folder_id": folder_id, "pending": pending},
        )


class FolderHasLinkedItemsError(StateConflictError):
    """Folder holds sold or converted items that back ledger entries."""

    def __init__(self, folder_id: int, linked: int):
        super().__init__(
            f"Folder {folder_id} has {linked} sold or converted item(s); "
            "undo them before deleting the folder",
            code="FOLDER_HAS_LINKED_ITEMS",
            details={"folder_id": folder_id, "linked": linked},
        )


class CheckoutLinkedEntryError(StateConflictError):
    """Ledger entry is owned by a checkout item and changes only via undo."""

    def __init__(self, entry_id: int):
        super().__init__(
            f"Ledger entry {entry_id} was created by a checkout resolution; "
            "undo the checkout item instead",
            code="CHECKOUT_LINKED_ENTRY",
            details={"entry_id": entry_id},
        )


# Invariant Exceptions
class WouldGoNegativeError(LedgerError):
    """Replaying the ledger with the requested change drives quantity below zero."""

    def __init__(self, inventory_id: int, resulting_quantity: int, operation: str):
        super().__init__(
            f"{operation} rejected: inventory {inventory_id} would go to "
            f"{resulting_quantity}",
            code="WOULD_GO_NEGATIVE",
            details={
                "inventory_id": inventory_id,
                "resulting_quantity": resulting_quantity,
                "operation": operation,
            },
        )


# Partial Failure Exceptions
class ConsistencyAlarmError(LedgerError):
    """A compensating write failed; records may be half-applied."""

    def __init__(self, operation: str, failed_steps: list[str], cause: str):
        super().__init__(
            f"Compensation failed during {operation}: {', '.join(failed_steps)}",
            code="CONSISTENCY_ALARM",
            details={
                "operation": operation,
                "failed_steps": failed_steps,
                "cause": cause,
            },
        )


class ConfigurationError(LedgerError):
    """Configuration error."""

    pass
