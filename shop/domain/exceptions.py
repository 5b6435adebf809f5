"""
Custom exceptions for the shop domain.

These exceptions represent domain-level errors and are independent
of infrastructure concerns (HTTP, database, etc.).
"""

from typing import Iterable, Optional


class ShopServiceException(Exception):
    """Base exception for all shop service errors."""

    def __init__(self, message: str, details: Optional[dict] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class EntityNotFoundException(ShopServiceException):
    """Raised when a lookup by primary key finds nothing."""

    def __init__(self, entity: str, entity_id: int):
        super().__init__(
            message=f"{entity} not found: {entity_id}",
            details={"entity": entity, "id": entity_id},
        )


class NotEnoughStockException(ShopServiceException):
    """Raised when an item does not have enough stock for a request."""

    def __init__(self, item_name: str, requested: int, available: int):
        super().__init__(
            message=f"Not enough stock for '{item_name}': requested {requested}, available {available}",
            details={"item": item_name, "requested": requested, "available": available},
        )


class DuplicateMemberException(ShopServiceException):
    """Raised when a member name is already registered."""

    def __init__(self, name: str):
        super().__init__(message=f"Member already exists: {name}", details={"name": name})


class OrderAlreadyDeliveredException(ShopServiceException):
    """Raised when cancelling an order whose delivery is complete."""

    def __init__(self, order_id: Optional[int]):
        super().__init__(
            message=f"Order {order_id} has already been delivered and cannot be cancelled",
            details={"order_id": order_id},
        )


class OrderAlreadyCancelledException(ShopServiceException):
    """Raised when cancelling an order that is already cancelled."""

    def __init__(self, order_id: Optional[int]):
        super().__init__(
            message=f"Order {order_id} is already cancelled",
            details={"order_id": order_id},
        )


class ConcurrentModificationException(ShopServiceException):
    """Raised when a row changed underneath us between read and write."""

    def __init__(self, entity: str, reason: Optional[str] = None):
        message = f"Concurrent modification of {entity}"
        if reason:
            message += f": {reason}"
        super().__init__(message=message, details={"entity": entity, "reason": reason})


class AssociationNotLoadedException(ShopServiceException):
    """Raised when mapping needs an association the loader did not materialize."""

    def __init__(self, missing: Iterable[str], loaded: Iterable[str]):
        missing = sorted(missing)
        super().__init__(
            message=f"Associations not loaded: {', '.join(missing)}",
            details={"missing": missing, "loaded": sorted(loaded)},
        )


class ValidationException(ShopServiceException):
    """Raised when input validation fails."""

    def __init__(self, field: str, value, reason: str):
        super().__init__(
            message=f"Validation failed for {field}: {reason}",
            details={"field": field, "value": str(value), "reason": reason},
        )
