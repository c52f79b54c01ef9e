"""Allocation negotiation events."""

from protean.fields import Date, DateTime, Identifier, Integer, String

from orderdesk.domain import orderdesk


@orderdesk.event(part_of="AllocationResponse")
class AllocationRequested:
    """A vendor was asked for a supply quantity and is now expected to answer."""

    __version__ = 1

    request_id = Identifier(required=True)
    response_id = Identifier(required=True)
    allocation_date = Date(required=True)
    product_code = String(required=True)
    vendor_id = String(required=True)
    requested_quantity = Integer(required=True)
    notified_at = DateTime(required=True)


@orderdesk.event(part_of="AllocationResponse")
class AllocationResponded:
    __version__ = 1

    response_id = Identifier(required=True)
    request_id = Identifier(required=True)
    confirmed_quantity = Integer(required=True)
    memo = String()
    responded_at = DateTime(required=True)


@orderdesk.event(part_of="AllocationResponse")
class AllocationConfirmed:
    __version__ = 1

    response_id = Identifier(required=True)
    request_id = Identifier(required=True)
    confirmed_quantity = Integer(required=True)
    confirmed_at = DateTime(required=True)


@orderdesk.event(part_of="AllocationResponse")
class AllocationRejected:
    __version__ = 1

    response_id = Identifier(required=True)
    request_id = Identifier(required=True)
    reason = String()
    rejected_at = DateTime(required=True)
