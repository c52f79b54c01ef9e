"""Fulfillment router — decides whether an order ships itself or via a vendor.

Called by the status transition engine at PREPARING → READY_TO_SHIP. A
vendor is eligible when it is actively mapped to the product and its headroom
for the day covers the order:

    headroom = confirmed allocation − units already routed to that vendor

Among eligible vendors the one with the most headroom wins (ties go to the
lowest vendor id); with none eligible the order is fulfilled in-house. Routing
never touches stock: materials are reserved at ingestion whoever ships.
"""

from dataclasses import dataclass
from datetime import UTC, date, datetime

import structlog
from protean.utils.globals import current_domain

from orderdesk.allocation.queries import confirmed_capacity
from orderdesk.catalog.vendor import VendorProduct
from orderdesk.ordering.order import FulfillmentType, Order

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class RouteDecision:
    fulfillment_type: FulfillmentType
    vendor_id: str | None = None
    headroom: int = 0


def vendor_headroom(vendor_id: str, product_code: str, on_date: date) -> int:
    capacity = confirmed_capacity(vendor_id, product_code, on_date)
    routed = current_domain.repository_for(Order).routed_quantity(vendor_id, product_code, on_date)
    return capacity - routed


def decide_route(order: Order, on_date: date) -> RouteDecision:
    best = None
    for vendor_id in current_domain.repository_for(VendorProduct).active_vendor_ids(order.product_code):
        headroom = vendor_headroom(vendor_id, order.product_code, on_date)
        if headroom >= order.quantity and (best is None or headroom > best.headroom):
            best = RouteDecision(FulfillmentType.VENDOR, vendor_id, headroom)
    return best or RouteDecision(FulfillmentType.SELF)


def route_order(order: Order, on_date: date | None = None) -> RouteDecision:
    """Assign a route to ``order`` unless it already has one."""
    if order.is_routed:
        return RouteDecision(FulfillmentType(order.fulfillment_type), order.vendor_id)

    on_date = on_date or datetime.now(UTC).date()
    decision = decide_route(order, on_date)
    order.assign_route(decision.fulfillment_type, decision.vendor_id, on_date)
    logger.info(
        "Order routed",
        order_id=str(order.id),
        fulfillment_type=decision.fulfillment_type.value,
        vendor_id=decision.vendor_id,
        headroom=decision.headroom,
    )
    return decision
