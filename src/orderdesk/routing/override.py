"""Route override — an admin re-routes an order explicitly."""

from datetime import UTC, datetime

import structlog
from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from orderdesk.catalog.vendor import VendorProduct
from orderdesk.domain import orderdesk
from orderdesk.ordering.order import FulfillmentType, Order
from orderdesk.ordering.transitions import get_order

logger = structlog.get_logger(__name__)


@orderdesk.command(part_of="Order")
class OverrideRoute:
    order_id = Identifier(required=True)
    fulfillment_type = String(required=True, choices=FulfillmentType)
    vendor_id = String(max_length=100)
    actor_id = String(max_length=100)


@orderdesk.command_handler(part_of=Order)
class OverrideRouteHandler:
    @handle(OverrideRoute)
    def override_route(self, command):
        order = get_order(command.order_id)
        fulfillment_type = FulfillmentType(command.fulfillment_type)
        if fulfillment_type == FulfillmentType.VENDOR:
            active = current_domain.repository_for(VendorProduct).active_vendor_ids(order.product_code)
            if command.vendor_id not in active:
                raise ValidationError(
                    {"vendor_id": [f"Vendor {command.vendor_id} is not mapped to {order.product_code}"]}
                )

        order.override_route(fulfillment_type, command.vendor_id, datetime.now(UTC).date())
        current_domain.repository_for(Order).add(order)
        logger.info(
            "Order route overridden",
            order_id=str(order.id),
            fulfillment_type=fulfillment_type.value,
            vendor_id=order.vendor_id,
            actor_id=command.actor_id,
        )
        return str(order.id)
