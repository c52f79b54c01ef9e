"""Allocation negotiation — commands and handlers.

Every command here is safe to repeat: an identical request returns the
existing allocation, an identical answer leaves the same quantity behind, and
confirming or rejecting twice changes nothing the second time.
"""

import structlog
from protean import handle
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.fields import Date, Identifier, Integer, String
from protean.utils.globals import current_domain

from orderdesk.allocation.allocation import (
    AllocationRequest,
    AllocationRequestStatus,
    AllocationResponse,
    AllocationResponseStatus,
)
from orderdesk.catalog.management import get_product
from orderdesk.domain import orderdesk
from orderdesk.errors import NotFoundError

logger = structlog.get_logger(__name__)


@orderdesk.command(part_of="AllocationResponse")
class RequestAllocation:
    allocation_date = Date(required=True)
    product_code = String(required=True, max_length=50)
    vendor_id = String(required=True, max_length=100)
    requested_quantity = Integer(required=True, min_value=1)
    actor_id = String(max_length=100)


@orderdesk.command(part_of="AllocationResponse")
class RespondToAllocation:
    response_id = Identifier(required=True)
    available_quantity = Integer(required=True)
    memo = String(max_length=1000)
    vendor_id = String(max_length=100)


@orderdesk.command(part_of="AllocationResponse")
class ConfirmAllocation:
    response_id = Identifier(required=True)


@orderdesk.command(part_of="AllocationResponse")
class RejectAllocation:
    response_id = Identifier(required=True)
    reason = String(max_length=500)


def _load(response_id: str) -> tuple[AllocationResponse, AllocationRequest]:
    try:
        response = current_domain.repository_for(AllocationResponse).get(response_id)
        request = current_domain.repository_for(AllocationRequest).get(response.request_id)
    except ObjectNotFoundError as exc:
        raise NotFoundError({"allocation": [f"Allocation {response_id} not found"]}) from exc
    return response, request


@orderdesk.command_handler(part_of=AllocationResponse)
class AllocationNegotiationHandler:
    @handle(RequestAllocation)
    def request_allocation(self, command):
        get_product(command.product_code)
        requests = current_domain.repository_for(AllocationRequest)
        responses = current_domain.repository_for(AllocationResponse)

        existing = requests.find_for(command.allocation_date, command.product_code, command.vendor_id)
        if existing is not None:
            response = responses.for_request(str(existing.id))
            if existing.requested_quantity == command.requested_quantity:
                return str(response.id)
            if response.current_status != AllocationResponseStatus.NOTIFIED:
                raise ValidationError(
                    {"requested_quantity": [f"Allocation already {response.status.lower()}; it cannot be revised"]}
                )
            existing.revise_quantity(command.requested_quantity)
            requests.add(existing)
            logger.info(
                "Allocation request revised",
                request_id=str(existing.id),
                requested_quantity=command.requested_quantity,
            )
            return str(response.id)

        request = AllocationRequest.open(
            allocation_date=command.allocation_date,
            product_code=command.product_code,
            vendor_id=command.vendor_id,
            requested_quantity=command.requested_quantity,
            requested_by=command.actor_id,
        )
        response = AllocationResponse.notify(request)
        requests.add(request)
        responses.add(response)
        logger.info(
            "Allocation requested",
            request_id=str(request.id),
            response_id=str(response.id),
            vendor_id=command.vendor_id,
            product_code=command.product_code,
        )
        return str(response.id)

    @handle(RespondToAllocation)
    def respond_to_allocation(self, command):
        response, request = _load(command.response_id)
        if command.vendor_id and command.vendor_id != request.vendor_id:
            raise NotFoundError({"allocation": [f"Allocation {command.response_id} not found"]})

        response.respond(command.available_quantity, command.memo)
        current_domain.repository_for(AllocationResponse).add(response)
        logger.info(
            "Allocation responded",
            response_id=str(response.id),
            confirmed_quantity=command.available_quantity,
        )
        return str(response.id)

    @handle(ConfirmAllocation)
    def confirm_allocation(self, command):
        response, request = _load(command.response_id)
        if response.confirm():
            request.close(AllocationRequestStatus.CONFIRMED)
            current_domain.repository_for(AllocationResponse).add(response)
            current_domain.repository_for(AllocationRequest).add(request)
            logger.info("Allocation confirmed", response_id=str(response.id), quantity=response.confirmed_quantity)
        return str(response.id)

    @handle(RejectAllocation)
    def reject_allocation(self, command):
        response, request = _load(command.response_id)
        if response.reject(command.reason):
            request.close(AllocationRequestStatus.REJECTED)
            current_domain.repository_for(AllocationResponse).add(response)
            current_domain.repository_for(AllocationRequest).add(request)
            logger.info("Allocation rejected", response_id=str(response.id), reason=command.reason)
        return str(response.id)
