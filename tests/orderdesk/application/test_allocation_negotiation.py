"""Application tests for the vendor allocation negotiation."""

from datetime import date

import pytest
from orderdesk.allocation.allocation import (
    AllocationRequest,
    AllocationRequestStatus,
    AllocationResponse,
    AllocationResponseStatus,
)
from orderdesk.allocation.negotiation import (
    ConfirmAllocation,
    RejectAllocation,
    RequestAllocation,
    RespondToAllocation,
)
from orderdesk.allocation.queries import confirmed_capacity, list_allocations
from orderdesk.errors import NotFoundError
from orderdesk.notifier import get_notifier
from protean import current_domain
from protean.exceptions import ValidationError

ALLOCATION_DATE = date(2026, 3, 2)


def _request(vendor_id="vendor-a", quantity=50, product_code="P1", allocation_date=ALLOCATION_DATE):
    return current_domain.process(
        RequestAllocation(
            allocation_date=allocation_date,
            product_code=product_code,
            vendor_id=vendor_id,
            requested_quantity=quantity,
            actor_id="admin-1",
        ),
        asynchronous=False,
    )


def _respond(response_id, quantity, memo=None, vendor_id=None):
    return current_domain.process(
        RespondToAllocation(response_id=response_id, available_quantity=quantity, memo=memo, vendor_id=vendor_id),
        asynchronous=False,
    )


def _response(response_id):
    return current_domain.repository_for(AllocationResponse).get(response_id)


@pytest.mark.usefixtures("apple_jam")
class TestRequestAllocation:
    def test_request_notifies_vendor(self):
        response_id = _request()

        response = _response(response_id)
        assert response.status == AllocationResponseStatus.NOTIFIED.value

        (notice,) = get_notifier().notices_for("vendor-a")
        assert notice.response_id == response_id
        assert notice.requested_quantity == 50
        assert notice.allocation_date == ALLOCATION_DATE

    def test_identical_request_is_idempotent(self):
        first = _request()
        second = _request()

        assert first == second
        assert len(get_notifier().sent) == 1

    def test_new_quantity_revises_unanswered_request(self):
        response_id = _request(quantity=50)
        assert _request(quantity=70) == response_id

        request = current_domain.repository_for(AllocationRequest).get(_response(response_id).request_id)
        assert request.requested_quantity == 70

    def test_answered_request_cannot_be_revised(self):
        response_id = _request(quantity=50)
        _respond(response_id, 40)

        with pytest.raises(ValidationError):
            _request(quantity=70)

    def test_unknown_product(self):
        with pytest.raises(NotFoundError):
            _request(product_code="NOPE")


@pytest.mark.usefixtures("apple_jam")
class TestRespond:
    def test_latest_answer_wins(self):
        response_id = _request()
        _respond(response_id, 40, memo="First guess")
        _respond(response_id, 35)

        response = _response(response_id)
        assert response.status == AllocationResponseStatus.RESPONDED.value
        assert response.confirmed_quantity == 35
        assert response.memo == "First guess"

    def test_same_answer_twice_is_stable(self):
        response_id = _request()
        _respond(response_id, 40)
        _respond(response_id, 40)
        assert _response(response_id).confirmed_quantity == 40

    def test_vendor_cannot_answer_for_another(self):
        response_id = _request(vendor_id="vendor-a")
        with pytest.raises(NotFoundError):
            _respond(response_id, 40, vendor_id="vendor-b")

    def test_unknown_allocation(self):
        with pytest.raises(NotFoundError):
            _respond("missing-allocation", 40)


@pytest.mark.usefixtures("apple_jam")
class TestConfirmAndReject:
    def test_confirm_closes_request(self):
        response_id = _request()
        _respond(response_id, 40)
        current_domain.process(ConfirmAllocation(response_id=response_id), asynchronous=False)

        response = _response(response_id)
        assert response.status == AllocationResponseStatus.CONFIRMED.value
        request = current_domain.repository_for(AllocationRequest).get(response.request_id)
        assert request.status == AllocationRequestStatus.CONFIRMED.value
        assert confirmed_capacity("vendor-a", "P1", ALLOCATION_DATE) == 40

    def test_confirm_twice_is_idempotent(self):
        response_id = _request()
        _respond(response_id, 40)
        current_domain.process(ConfirmAllocation(response_id=response_id), asynchronous=False)
        current_domain.process(ConfirmAllocation(response_id=response_id), asynchronous=False)

        assert confirmed_capacity("vendor-a", "P1", ALLOCATION_DATE) == 40

    def test_unconfirmed_answer_is_not_capacity(self):
        response_id = _request()
        _respond(response_id, 40)
        assert confirmed_capacity("vendor-a", "P1", ALLOCATION_DATE) == 0

    def test_reject(self):
        response_id = _request()
        current_domain.process(RejectAllocation(response_id=response_id, reason="No capacity"), asynchronous=False)

        response = _response(response_id)
        assert response.status == AllocationResponseStatus.REJECTED.value
        assert response.rejection_reason == "No capacity"


@pytest.mark.usefixtures("apple_jam")
class TestListAllocations:
    def test_pending_and_responded_views(self):
        pending = _request(vendor_id="vendor-a")
        answered = _request(vendor_id="vendor-b")
        _respond(answered, 20)

        assert [r["response_id"] for r in list_allocations(view="pending")] == [pending]
        assert [r["response_id"] for r in list_allocations(view="responded")] == [answered]
        assert len(list_allocations()) == 2

    def test_vendor_sees_only_own_allocations(self):
        _request(vendor_id="vendor-a")
        _request(vendor_id="vendor-b")

        rows = list_allocations(vendor_id="vendor-b")
        assert [r["vendor_id"] for r in rows] == ["vendor-b"]

    def test_unknown_view(self):
        with pytest.raises(ValidationError):
            list_allocations(view="archived")
