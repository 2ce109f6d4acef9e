"""Domain exceptions.

Fixed error taxonomy surfaced by the catalog services. Store adapters
translate their low-level errors into these before they reach the
application layer, and the transport maps them to stable status codes.
"""

from typing import Any


class CatalogError(Exception):
    """Base class for all catalog exceptions.

    Unexpected store failures that fit no narrower kind are raised as
    this class directly and reported as internal errors.
    """

    status_code: int = 500
    error_code: str = "INTERNAL_ERROR"

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        """Initialize catalog error.

        Args:
            message: Human-readable error message.
            details: Optional dictionary with additional error context.
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}


# ============================================================================
# Store Errors
# ============================================================================


class ConflictError(CatalogError):
    """Raised when a write violates a unique key (EAN, category name, code)."""

    status_code = 409
    error_code = "DUPLICATE_ENTRY"

    def __init__(self, target: str | None = None) -> None:
        """Initialize conflict error.

        Args:
            target: Name of the field or constraint that collided.
        """
        super().__init__(
            f"Duplicate entry for {target or 'field'}",
            details={"target": target},
        )
        self.target = target


class NotFoundError(CatalogError):
    """Raised when a requested entity does not exist."""

    status_code = 404
    error_code = "NOT_FOUND"

    def __init__(self, entity_type: str = "Record", entity_id: str | None = None) -> None:
        """Initialize not found error.

        Args:
            entity_type: Kind of entity (e.g., "Product").
            entity_id: Identifier that was looked up.
        """
        super().__init__(
            f"{entity_type} not found",
            details={"entity_type": entity_type, "entity_id": entity_id},
        )
        self.entity_type = entity_type
        self.entity_id = entity_id


class StoreUnavailableError(CatalogError):
    """Raised on connectivity or driver-level store failures."""

    error_code = "STORE_UNAVAILABLE"


class StockUpdateAbortedError(StoreUnavailableError):
    """Raised when a batch stock transaction cannot be applied in full.

    Nothing from the batch is committed.
    """

    error_code = "STOCK_UPDATE_ABORTED"

    def __init__(self, product_ids: list[str], reason: str) -> None:
        """Initialize aborted stock update error.

        Args:
            product_ids: Products that could not be updated.
            reason: Why the transaction was rolled back.
        """
        super().__init__(
            f"Stock update aborted: {reason}",
            details={"product_ids": product_ids},
        )
        self.product_ids = product_ids


# ============================================================================
# Classifier Errors
# ============================================================================


class ClassifierError(Exception):
    """Raised inside classifier clients; never escapes them."""
