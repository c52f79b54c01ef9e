"""Order status transitions — command and handler.

A status change and its stock effect are one unit: the handler stages the
updated order and any restoring or re-reserving ledger movements in the same
Unit of Work, so a failing credit or a stock shortfall rolls the status change
back with it.
"""

from datetime import date

import structlog
from protean import handle
from protean.exceptions import ObjectNotFoundError
from protean.fields import Date, Identifier, String
from protean.utils.globals import current_domain

from orderdesk.catalog.management import get_product
from orderdesk.domain import orderdesk
from orderdesk.errors import NotFoundError
from orderdesk.inventory import ledger
from orderdesk.inventory.movement import MovementSource
from orderdesk.ordering.order import Order, OrderStatus
from orderdesk.routing.router import route_order
from orderdesk.shared.concurrency import item_key, order_key, process_exclusively, route_key

logger = structlog.get_logger(__name__)


@orderdesk.command(part_of="Order")
class ChangeOrderStatus:
    order_id = Identifier(required=True)
    to_status = String(required=True, choices=OrderStatus)
    actor_id = String(max_length=100)
    routing_date = Date()


def get_order(order_id: str) -> Order:
    try:
        return current_domain.repository_for(Order).get(order_id)
    except ObjectNotFoundError as exc:
        raise NotFoundError({"order_id": [f"Order {order_id} not found"]}) from exc


@orderdesk.command_handler(part_of=Order)
class ChangeOrderStatusHandler:
    @handle(ChangeOrderStatus)
    def change_order_status(self, command):
        order = get_order(command.order_id)
        target = OrderStatus(command.to_status)

        # Restoring an order that is already back in WAITING is a no-op
        if target == OrderStatus.WAITING == order.current_status and order.stock_restored:
            logger.info("Order already restored", order_id=str(order.id))
            return order.status

        order.assert_can_transition(target)
        if target == OrderStatus.READY_TO_SHIP:
            route_order(order, command.routing_date)

        previous = order.status
        restores_stock = order.restores_stock_on(target)
        reserves_stock = order.reserves_stock_on(target)
        order.transition_to(target, actor_id=command.actor_id)

        if restores_stock:
            movements = ledger.restore_order_reservations(
                str(order.id),
                actor_id=command.actor_id,
                reason=f"Restored on {previous} -> {target.value}",
            )
            order.mark_stock_restored(sum(m.delta for m in movements), actor_id=command.actor_id)
        elif reserves_stock:
            movements = _reserve_again(order, command.actor_id)
            order.mark_stock_reserved(-sum(m.delta for m in movements), actor_id=command.actor_id)

        current_domain.repository_for(Order).add(order)
        logger.info(
            "Order status changed",
            order_id=str(order.id),
            previous_status=previous,
            new_status=target.value,
            stock_restored=restores_stock,
            stock_reserved=reserves_stock,
            actor_id=command.actor_id,
        )
        return order.status


def _reserve_again(order: Order, actor_id: str | None) -> list:
    """Take a restored order's materials out of the ledger at the current recipe."""
    product = get_product(order.product_code)
    return [
        ledger.reserve(
            material_code,
            -units,
            source=MovementSource.ORDER,
            related_order_id=str(order.id),
            actor_id=actor_id,
            reason=f"Re-reserved for order {order.external_order_number}",
        )
        for material_code, units in sorted(product.material_requirements(order.quantity).items())
    ]


def lock_keys_for(order: Order) -> list[str]:
    """Every key a transition of ``order`` may write under."""
    keys = [order_key(str(order.id)), route_key(order.product_code)]
    keys += [item_key(code) for code in ledger.reserved_item_codes(str(order.id))]
    if order.stock_restored:
        keys += [item_key(code) for code in get_product(order.product_code).material_requirements(order.quantity)]
    return keys


def change_order_status(
    order_id: str,
    to_status: OrderStatus,
    actor_id: str | None = None,
    routing_date: date | None = None,
) -> str:
    """Apply one transition while holding the order's and its materials' locks.

    Returns the order's new status value.
    """
    order = get_order(order_id)
    command = ChangeOrderStatus(
        order_id=order_id,
        to_status=to_status.value,
        actor_id=actor_id,
        routing_date=routing_date,
    )
    return process_exclusively(command, lock_keys_for(order))
