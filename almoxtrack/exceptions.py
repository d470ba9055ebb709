"""Typed errors raised by the inventory services.

Every error carries a machine-readable ``code`` and the structured data the
API layer puts in the response body, so callers catch by type instead of
parsing messages.
"""


class AlmoxTrackError(Exception):
    code: str = "ALMOXTRACK_ERROR"
    status_code: int = 500

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)

    def to_dict(self) -> dict:
        return {"detail": self.message, "code": self.code}


class NotFoundError(AlmoxTrackError):
    code = "NOT_FOUND"
    status_code = 404

    def __init__(self, entity: str, entity_id: str):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} {entity_id} not found")

    def to_dict(self) -> dict:
        return {**super().to_dict(), "entity": self.entity, "entity_id": self.entity_id}


class InvalidArgumentError(AlmoxTrackError, ValueError):
    code = "INVALID_ARGUMENT"
    status_code = 400


class InsufficientStockError(AlmoxTrackError):
    code = "INSUFFICIENT_STOCK"
    status_code = 409

    def __init__(self, product_id: str, requested: int, available: int):
        self.product_id = product_id
        self.requested = requested
        self.available = available
        super().__init__(
            f"Insufficient stock for product {product_id}. Requested: {requested}, available: {available}"
        )

    def to_dict(self) -> dict:
        return {
            **super().to_dict(),
            "product_id": self.product_id,
            "requested": self.requested,
            "available": self.available,
        }


class StorageFailureError(AlmoxTrackError):
    """The database rejected or lost the transaction. Safe for the caller to retry."""

    code = "STORAGE_FAILURE"
    status_code = 503
