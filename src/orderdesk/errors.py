"""Error kinds raised by the OrderDesk domain.

All of them extend Protean's exception hierarchy so that the FastAPI
integration maps them to HTTP responses without extra glue:

    ValidationError          -> 400 (and every subclass below)
    NotFoundError            -> 404
    ConcurrencyConflict      -> 409 (registered in ``orderdesk.api``)
"""

from enum import Enum

from protean.exceptions import InvalidOperationError, ObjectNotFoundError, ValidationError

__all__ = [
    "ConcurrencyConflict",
    "DuplicateOrderError",
    "InsufficientStockError",
    "InvalidTransitionError",
    "NotFoundError",
    "TransitionRejection",
    "ValidationError",
]


class TransitionRejection(Enum):
    NOT_ALLOWED = "not_allowed"
    TERMINAL_STATE = "terminal_state"
    TRACKING_REQUIRED = "tracking_required"


class DuplicateOrderError(ValidationError):
    """An active order with the same external order number already exists."""

    def __init__(self, external_order_number: str, existing_order_id: str | None = None):
        self.external_order_number = external_order_number
        self.existing_order_id = existing_order_id
        super().__init__(
            {"external_order_number": [f"Order {external_order_number} already exists"]},
        )


class InsufficientStockError(ValidationError):
    """A movement would take an item's balance below zero."""

    def __init__(self, item_code: str, available: int, requested: int):
        self.item_code = item_code
        self.available = available
        self.requested = requested
        super().__init__(
            {"stock": [f"Insufficient stock for {item_code}: available {available}, requested {requested}"]},
        )


class InvalidTransitionError(ValidationError):
    """The requested status change is not in the order transition table."""

    def __init__(self, from_status: str, to_status: str, reason: TransitionRejection):
        self.from_status = from_status
        self.to_status = to_status
        self.reason = reason
        super().__init__(
            {"status": [f"Cannot transition from {from_status} to {to_status} ({reason.value})"]},
        )


class NotFoundError(ObjectNotFoundError):
    """A referenced order, item, product or allocation does not exist."""


class ConcurrencyConflict(InvalidOperationError):
    """A concurrent writer changed the same aggregate and the single retry also lost."""
