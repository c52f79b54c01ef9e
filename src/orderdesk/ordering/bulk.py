"""Bulk status operations — multi-select and filter-wide.

Orders are processed one after another, each in its own Unit of Work and
under its own item locks, so one failure never undoes another order's
success. Every order gets an outcome entry.
"""

from dataclasses import asdict, dataclass, field

import structlog
from protean.exceptions import ValidationError
from protean.utils.globals import current_domain

from orderdesk.errors import (
    ConcurrencyConflict,
    InsufficientStockError,
    InvalidTransitionError,
    NotFoundError,
)
from orderdesk.ordering.order import Order, OrderStatus
from orderdesk.ordering.transitions import change_order_status

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class OrderOutcome:
    order_id: str
    success: bool
    status: str | None = None
    reason: str | None = None
    message: str | None = None


@dataclass
class BulkResult:
    outcomes: list[OrderOutcome] = field(default_factory=list)

    @property
    def succeeded(self) -> int:
        return sum(1 for o in self.outcomes if o.success)

    @property
    def failed(self) -> int:
        return len(self.outcomes) - self.succeeded

    def to_dict(self) -> dict:
        return {
            "total": len(self.outcomes),
            "succeeded": self.succeeded,
            "failed": self.failed,
            "outcomes": [asdict(o) for o in self.outcomes],
        }


def _failure(order_id: str, reason: str, exc: Exception) -> OrderOutcome:
    return OrderOutcome(order_id=order_id, success=False, reason=reason, message=str(exc))


def bulk_change_status(order_ids: list[str], to_status: OrderStatus, actor_id: str | None = None) -> BulkResult:
    result = BulkResult()
    for order_id in dict.fromkeys(order_ids):
        try:
            status = change_order_status(order_id, to_status, actor_id=actor_id)
        except InvalidTransitionError as exc:
            outcome = _failure(order_id, exc.reason.value, exc)
        except InsufficientStockError as exc:
            outcome = _failure(order_id, "insufficient_stock", exc)
        except NotFoundError as exc:
            outcome = _failure(order_id, "not_found", exc)
        except ConcurrencyConflict as exc:
            outcome = _failure(order_id, "concurrency_conflict", exc)
        except ValidationError as exc:
            outcome = _failure(order_id, "invalid", exc)
        else:
            outcome = OrderOutcome(order_id=order_id, success=True, status=status)
        result.outcomes.append(outcome)

    logger.info(
        "Bulk status change finished",
        to_status=to_status.value,
        succeeded=result.succeeded,
        failed=result.failed,
        actor_id=actor_id,
    )
    return result


def restore_matching(
    product_code: str | None = None,
    member_id: str | None = None,
    upload_format: str | None = None,
    actor_id: str | None = None,
) -> BulkResult:
    """Send every PREPARING order matching the filters back to WAITING."""
    orders = current_domain.repository_for(Order).find_matching(
        status=OrderStatus.PREPARING.value,
        product_code=product_code,
        member_id=member_id,
        upload_format=upload_format,
    )
    return bulk_change_status([str(o.id) for o in orders], OrderStatus.WAITING, actor_id=actor_id)
