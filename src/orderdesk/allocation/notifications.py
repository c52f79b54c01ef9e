"""Vendor notification — reacts to new allocation requests.

Runs after the request's Unit of Work commits, so a vendor is never told
about an allocation that was rolled back.
"""

import structlog
from protean import handle

from orderdesk.allocation.allocation import AllocationResponse
from orderdesk.allocation.events import AllocationRequested
from orderdesk.domain import orderdesk
from orderdesk.notifier import get_notifier
from orderdesk.notifier.port import AllocationNotice

logger = structlog.get_logger(__name__)


@orderdesk.event_handler(part_of=AllocationResponse)
class VendorNotificationHandler:
    @handle(AllocationRequested)
    def on_allocation_requested(self, event: AllocationRequested) -> None:
        notice = AllocationNotice(
            vendor_id=event.vendor_id,
            response_id=str(event.response_id),
            product_code=event.product_code,
            allocation_date=event.allocation_date,
            requested_quantity=event.requested_quantity,
        )
        if get_notifier().notify_allocation_requested(notice):
            logger.info("Vendor notified of allocation request", vendor_id=event.vendor_id, response_id=notice.response_id)
        else:
            logger.warning(
                "Vendor notification was not accepted",
                vendor_id=event.vendor_id,
                response_id=notice.response_id,
            )
