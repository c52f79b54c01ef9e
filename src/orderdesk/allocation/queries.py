"""Read side of the allocation negotiation.

``confirmed_capacity`` is what the fulfillment router consumes; the listing
backs the admin and vendor allocation screens.
"""

from datetime import date
from enum import Enum

from protean.exceptions import ValidationError
from protean.utils.globals import current_domain

from orderdesk.allocation.allocation import AllocationRequest, AllocationResponse, AllocationResponseStatus


class AllocationView(Enum):
    PENDING = "pending"
    RESPONDED = "responded"


_VIEW_STATUSES = {
    AllocationView.PENDING: {AllocationResponseStatus.PENDING.value, AllocationResponseStatus.NOTIFIED.value},
    AllocationView.RESPONDED: {
        AllocationResponseStatus.RESPONDED.value,
        AllocationResponseStatus.CONFIRMED.value,
        AllocationResponseStatus.REJECTED.value,
    },
}


def confirmed_capacity(vendor_id: str, product_code: str, allocation_date: date) -> int:
    """Units a vendor has confirmed it can supply for a product on a day."""
    requests = current_domain.repository_for(AllocationRequest).find_matching(
        vendor_id=vendor_id,
        product_code=product_code,
        allocation_date=allocation_date,
    )
    responses = current_domain.repository_for(AllocationResponse)
    total = 0
    for request in requests:
        response = responses.for_request(str(request.id))
        if response is not None and response.status == AllocationResponseStatus.CONFIRMED.value:
            total += response.confirmed_quantity or 0
    return total


def list_allocations(
    vendor_id: str | None = None,
    view: str | None = None,
    allocation_date: date | None = None,
    product_code: str | None = None,
) -> list[dict]:
    """Allocation requests joined with their responses, newest date first."""
    statuses = None
    if view:
        try:
            statuses = _VIEW_STATUSES[AllocationView(view)]
        except ValueError as exc:
            raise ValidationError({"view": [f"Unknown allocation view: {view}"]}) from exc

    requests = current_domain.repository_for(AllocationRequest).find_matching(
        vendor_id=vendor_id,
        allocation_date=allocation_date,
        product_code=product_code,
    )
    responses = current_domain.repository_for(AllocationResponse)

    rows = []
    for request in requests:
        response = responses.for_request(str(request.id))
        if response is None or (statuses and response.status not in statuses):
            continue
        rows.append(
            {
                "response_id": str(response.id),
                "request_id": str(request.id),
                "allocation_date": request.allocation_date,
                "product_code": request.product_code,
                "vendor_id": request.vendor_id,
                "requested_quantity": request.requested_quantity,
                "confirmed_quantity": response.confirmed_quantity,
                "memo": response.memo,
                "status": response.status,
                "notified_at": response.notified_at,
                "responded_at": response.responded_at,
                "confirmed_at": response.confirmed_at,
            }
        )
    rows.sort(key=lambda row: (row["allocation_date"], row["vendor_id"]), reverse=True)
    return rows
