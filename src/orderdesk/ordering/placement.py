"""Order placement — command and handler.

Placing an order is the commit step of ingestion: the order and one stock
reservation per material are staged in the same Unit of Work, so either all
of them land or none do.
"""

import structlog
from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Integer, String, Text
from protean.utils.globals import current_domain

from orderdesk.catalog.management import get_product
from orderdesk.domain import orderdesk
from orderdesk.errors import DuplicateOrderError
from orderdesk.inventory import ledger
from orderdesk.inventory.movement import MovementSource
from orderdesk.ordering.order import Order, UploadFormat
from orderdesk.shared.concurrency import item_key, order_number_key, process_exclusively

logger = structlog.get_logger(__name__)


@orderdesk.command(part_of="Order")
class PlaceOrder:
    external_order_number = String(required=True, max_length=100)
    product_code = String(required=True, max_length=50)
    product_name = String(max_length=255)
    quantity = Integer(default=1, min_value=1)
    orderer_name = String(required=True, max_length=100)
    orderer_phone = String(required=True, max_length=50)
    orderer_address = String(max_length=500)
    recipient_name = String(required=True, max_length=100)
    recipient_mobile = String(required=True, max_length=50)
    recipient_phone = String(max_length=50)
    recipient_address = String(required=True, max_length=500)
    delivery_message = Text()
    member_id = String(max_length=100)
    upload_format = String(max_length=20, choices=UploadFormat, default=UploadFormat.DEFAULT.value)
    actor_id = String(max_length=100)


@orderdesk.command_handler(part_of=Order)
class PlaceOrderHandler:
    @handle(PlaceOrder)
    def place_order(self, command):
        repo = current_domain.repository_for(Order)
        existing = repo.find_active_by_external_number(command.external_order_number)
        if existing is not None:
            raise DuplicateOrderError(command.external_order_number, str(existing.id))

        product = get_product(command.product_code)
        if not product.is_orderable:
            raise ValidationError({"product_code": [f"Product {product.product_code} is suspended"]})

        quantity = command.quantity or 1
        order = Order.place(
            external_order_number=command.external_order_number,
            product_code=product.product_code,
            product_name=command.product_name or product.name,
            quantity=quantity,
            orderer_name=command.orderer_name,
            orderer_phone=command.orderer_phone,
            orderer_address=command.orderer_address,
            recipient_name=command.recipient_name,
            recipient_mobile=command.recipient_mobile,
            recipient_phone=command.recipient_phone,
            recipient_address=command.recipient_address,
            delivery_message=command.delivery_message,
            member_id=command.member_id,
            upload_format=command.upload_format or UploadFormat.DEFAULT.value,
        )

        for material_code, units in sorted(product.material_requirements(quantity).items()):
            ledger.reserve(
                material_code,
                -units,
                source=MovementSource.ORDER,
                related_order_id=str(order.id),
                actor_id=command.actor_id,
                reason=f"Reserved for order {command.external_order_number}",
            )

        repo.add(order)
        logger.info(
            "Order placed",
            order_id=str(order.id),
            external_order_number=command.external_order_number,
            product_code=product.product_code,
            quantity=quantity,
        )
        return str(order.id)


def place_order(command: PlaceOrder) -> str:
    """Place an order while holding the locks of everything it writes."""
    product = get_product(command.product_code)
    keys = [order_number_key(command.external_order_number)]
    keys += [item_key(code) for code in product.material_requirements(command.quantity or 1)]
    return process_exclusively(command, keys)
