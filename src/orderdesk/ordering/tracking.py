"""Tracking registration — single and bulk-from-file.

Vendors register tracking for the orders routed to them; admins may register
any order. Tracking must be in place before READY_TO_SHIP → SHIPPING.
"""

from dataclasses import asdict, dataclass, field

import structlog
from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from orderdesk.domain import orderdesk
from orderdesk.errors import ConcurrencyConflict, NotFoundError
from orderdesk.ordering.order import Order
from orderdesk.ordering.transitions import get_order
from orderdesk.shared.concurrency import order_key, process_exclusively

logger = structlog.get_logger(__name__)


@orderdesk.command(part_of="Order")
class RegisterTracking:
    order_id = Identifier(required=True)
    tracking_number = String(max_length=100)
    courier_company = String(max_length=100)
    vendor_id = String(max_length=100)


@orderdesk.command_handler(part_of=Order)
class RegisterTrackingHandler:
    @handle(RegisterTracking)
    def register_tracking(self, command):
        order = get_order(command.order_id)
        if command.vendor_id and order.vendor_id != command.vendor_id:
            raise ValidationError({"order_id": [f"Order {command.order_id} belongs to another vendor"]})

        order.register_tracking(command.tracking_number, command.courier_company)
        current_domain.repository_for(Order).add(order)
        logger.info(
            "Tracking registered",
            order_id=str(order.id),
            courier_company=command.courier_company,
            vendor_id=command.vendor_id,
        )
        return str(order.id)


def register_tracking(
    order_id: str,
    tracking_number: str | None,
    courier_company: str | None,
    vendor_id: str | None = None,
) -> str:
    command = RegisterTracking(
        order_id=order_id,
        tracking_number=tracking_number,
        courier_company=courier_company,
        vendor_id=vendor_id,
    )
    return process_exclusively(command, [order_key(order_id)])


@dataclass(frozen=True)
class TrackingFailure:
    row_number: int
    order_id: str | None
    reason: str


@dataclass
class TrackingUploadResult:
    success: int = 0
    failures: list[TrackingFailure] = field(default_factory=list)

    @property
    def failed(self) -> int:
        return len(self.failures)

    def to_dict(self) -> dict:
        return {
            "success": self.success,
            "failed": self.failed,
            "failures": [asdict(f) for f in self.failures],
        }


def bulk_register_tracking(rows: list[dict], vendor_id: str | None = None) -> TrackingUploadResult:
    """Register tracking for many orders; each row is ``{order_id, tracking_number, courier_company}``.

    Row numbers start at 2 to line up with the uploaded sheet's header row.
    """
    result = TrackingUploadResult()
    for index, row in enumerate(rows):
        row_number = index + 2
        order_id = str(row.get("order_id") or "").strip() or None
        tracking_number = str(row.get("tracking_number") or "").strip()
        courier_company = str(row.get("courier_company") or "").strip()

        if not order_id or not tracking_number or not courier_company:
            result.failures.append(TrackingFailure(row_number, order_id, "Missing order id, tracking number or courier"))
            continue

        try:
            register_tracking(order_id, tracking_number, courier_company, vendor_id=vendor_id)
        except NotFoundError:
            result.failures.append(TrackingFailure(row_number, order_id, "Order not found"))
        except ValidationError as exc:
            result.failures.append(TrackingFailure(row_number, order_id, _first_message(exc)))
        except ConcurrencyConflict:
            result.failures.append(TrackingFailure(row_number, order_id, "Order was changed concurrently, retry the row"))
        else:
            result.success += 1

    logger.info("Bulk tracking upload finished", success=result.success, failed=result.failed, vendor_id=vendor_id)
    return result


def _first_message(exc: ValidationError) -> str:
    for messages in exc.messages.values():
        if messages:
            return messages[0] if isinstance(messages, list) else str(messages)
    return str(exc)
