"""Allocation aggregates — the vendor forecast negotiation.

The platform asks a vendor how many units of a product it can supply on a
given day (AllocationRequest). The vendor's answer lives in its own
AllocationResponse, which moves through:

    PENDING → NOTIFIED → RESPONDED → CONFIRMED
                  └──────────┴──────→ REJECTED

Responding again while RESPONDED replaces the previous answer; confirmed
quantities feed the fulfillment router's vendor headroom.
"""

from datetime import UTC, date, datetime
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import Date, DateTime, Identifier, Integer, String

from orderdesk.allocation.events import (
    AllocationConfirmed,
    AllocationRejected,
    AllocationRequested,
    AllocationResponded,
)
from orderdesk.domain import orderdesk


class AllocationRequestStatus(Enum):
    OPEN = "Open"
    CONFIRMED = "Confirmed"
    REJECTED = "Rejected"


class AllocationResponseStatus(Enum):
    PENDING = "Pending"
    NOTIFIED = "Notified"
    RESPONDED = "Responded"
    CONFIRMED = "Confirmed"
    REJECTED = "Rejected"


_VALID_TRANSITIONS = {
    AllocationResponseStatus.PENDING: {AllocationResponseStatus.NOTIFIED},
    AllocationResponseStatus.NOTIFIED: {AllocationResponseStatus.RESPONDED, AllocationResponseStatus.REJECTED},
    AllocationResponseStatus.RESPONDED: {
        AllocationResponseStatus.RESPONDED,
        AllocationResponseStatus.CONFIRMED,
        AllocationResponseStatus.REJECTED,
    },
    AllocationResponseStatus.CONFIRMED: set(),  # terminal
    AllocationResponseStatus.REJECTED: set(),  # terminal
}


@orderdesk.aggregate
class AllocationRequest:
    allocation_date = Date(required=True)
    product_code = String(required=True, max_length=50)
    vendor_id = String(required=True, max_length=100)
    requested_quantity = Integer(required=True, min_value=1)
    status = String(choices=AllocationRequestStatus, default=AllocationRequestStatus.OPEN.value)
    requested_by = String(max_length=100)
    created_at = DateTime()
    updated_at = DateTime()

    @classmethod
    def open(
        cls,
        allocation_date: date,
        product_code: str,
        vendor_id: str,
        requested_quantity: int,
        requested_by: str | None = None,
    ):
        now = datetime.now(UTC)
        return cls(
            allocation_date=allocation_date,
            product_code=product_code,
            vendor_id=vendor_id,
            requested_quantity=requested_quantity,
            status=AllocationRequestStatus.OPEN.value,
            requested_by=requested_by,
            created_at=now,
            updated_at=now,
        )

    def revise_quantity(self, requested_quantity: int) -> None:
        if self.status != AllocationRequestStatus.OPEN.value:
            raise ValidationError({"status": [f"Cannot revise a {self.status} allocation request"]})
        self.requested_quantity = requested_quantity
        self.updated_at = datetime.now(UTC)

    def close(self, status: AllocationRequestStatus) -> None:
        self.status = status.value
        self.updated_at = datetime.now(UTC)


@orderdesk.aggregate
class AllocationResponse:
    request_id = Identifier(required=True)
    confirmed_quantity = Integer(min_value=0)
    memo = String(max_length=1000)
    status = String(choices=AllocationResponseStatus, default=AllocationResponseStatus.PENDING.value)
    notified_at = DateTime()
    responded_at = DateTime()
    confirmed_at = DateTime()
    rejected_at = DateTime()
    rejection_reason = String(max_length=500)

    @invariant.post
    def answered_responses_carry_a_quantity(self):
        answered = {AllocationResponseStatus.RESPONDED.value, AllocationResponseStatus.CONFIRMED.value}
        if self.status in answered and self.confirmed_quantity is None:
            raise ValidationError({"confirmed_quantity": ["An answered allocation needs a quantity"]})

    @classmethod
    def notify(cls, request: AllocationRequest):
        """Create the response slot for ``request`` and mark the vendor as notified."""
        now = datetime.now(UTC)
        response = cls(request_id=request.id, status=AllocationResponseStatus.PENDING.value)
        response._assert_can_transition(AllocationResponseStatus.NOTIFIED)
        response.status = AllocationResponseStatus.NOTIFIED.value
        response.notified_at = now
        response.raise_(
            AllocationRequested(
                request_id=str(request.id),
                response_id=str(response.id),
                allocation_date=request.allocation_date,
                product_code=request.product_code,
                vendor_id=request.vendor_id,
                requested_quantity=request.requested_quantity,
                notified_at=now,
            )
        )
        return response

    @property
    def current_status(self) -> AllocationResponseStatus:
        return AllocationResponseStatus(self.status)

    def _assert_can_transition(self, target_status: AllocationResponseStatus) -> None:
        current = self.current_status
        if target_status not in _VALID_TRANSITIONS.get(current, set()):
            raise ValidationError({"status": [f"Cannot transition from {current.value} to {target_status.value}"]})

    def respond(self, available_quantity: int, memo: str | None = None) -> None:
        """Record the vendor's answer. A later answer replaces an earlier one."""
        if available_quantity is None or available_quantity < 0:
            raise ValidationError({"available_quantity": ["Available quantity must be zero or more"]})
        self._assert_can_transition(AllocationResponseStatus.RESPONDED)

        now = datetime.now(UTC)
        self.confirmed_quantity = available_quantity
        if memo is not None:
            self.memo = memo
        self.status = AllocationResponseStatus.RESPONDED.value
        self.responded_at = now
        self.raise_(
            AllocationResponded(
                response_id=str(self.id),
                request_id=str(self.request_id),
                confirmed_quantity=available_quantity,
                memo=self.memo,
                responded_at=now,
            )
        )

    def confirm(self) -> bool:
        """Accept the vendor's answer. Returns False when already confirmed."""
        if self.current_status == AllocationResponseStatus.CONFIRMED:
            return False
        self._assert_can_transition(AllocationResponseStatus.CONFIRMED)

        now = datetime.now(UTC)
        self.status = AllocationResponseStatus.CONFIRMED.value
        self.confirmed_at = now
        self.raise_(
            AllocationConfirmed(
                response_id=str(self.id),
                request_id=str(self.request_id),
                confirmed_quantity=self.confirmed_quantity,
                confirmed_at=now,
            )
        )
        return True

    def reject(self, reason: str | None = None) -> bool:
        """Decline the allocation. Returns False when already rejected."""
        if self.current_status == AllocationResponseStatus.REJECTED:
            return False
        self._assert_can_transition(AllocationResponseStatus.REJECTED)

        now = datetime.now(UTC)
        self.status = AllocationResponseStatus.REJECTED.value
        self.rejected_at = now
        self.rejection_reason = reason
        self.raise_(
            AllocationRejected(
                response_id=str(self.id),
                request_id=str(self.request_id),
                reason=reason,
                rejected_at=now,
            )
        )
        return True
