"""Inventory ledger — the only code allowed to change stock balances.

Each function loads the item, applies one movement and stages both the
updated StockItem and the new StockMovement in the caller's Unit of Work, so
the balance and the log always commit (or roll back) together. They must be
called from inside a command handler while the caller holds the item's lock
(see ``orderdesk.shared.concurrency``).
"""

import structlog
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.utils.globals import current_domain

from orderdesk.errors import InsufficientStockError, NotFoundError
from orderdesk.inventory.movement import MovementAction, MovementSource, StockMovement
from orderdesk.inventory.stock_item import StockItem

logger = structlog.get_logger(__name__)


def get_stock_item(item_code: str) -> StockItem:
    try:
        return current_domain.repository_for(StockItem).get(item_code)
    except ObjectNotFoundError as exc:
        raise NotFoundError({"item_code": [f"Stock item {item_code} not found"]}) from exc


def find_stock_item(item_code: str) -> StockItem | None:
    try:
        return current_domain.repository_for(StockItem).get(item_code)
    except ObjectNotFoundError:
        return None


def _record(item_code: str, delta: int, action: MovementAction, source: MovementSource, **details) -> StockMovement:
    item = get_stock_item(item_code)
    try:
        movement = item.record_movement(delta, action, source, **details)
    except InsufficientStockError as exc:
        logger.warning(
            "Stock movement rejected",
            item_code=item_code,
            delta=delta,
            available=exc.available,
            related_order_id=details.get("related_order_id"),
        )
        raise

    current_domain.repository_for(StockItem).add(item)
    current_domain.repository_for(StockMovement).add(movement)

    logger.info(
        "Stock movement recorded",
        item_code=item_code,
        action=action.value,
        source=source.value,
        delta=delta,
        after_balance=movement.after_balance,
        related_order_id=details.get("related_order_id"),
    )
    return movement


def reserve(
    item_code: str,
    delta: int,
    source: MovementSource = MovementSource.ORDER,
    related_order_id: str | None = None,
    actor_id: str | None = None,
    reason: str | None = None,
) -> StockMovement:
    """Deduct stock. ``delta`` is negative; fails rather than go below zero."""
    if delta >= 0:
        raise ValidationError({"delta": ["A reservation must decrease stock"]})
    return _record(
        item_code,
        delta,
        MovementAction.OUT,
        source,
        related_order_id=related_order_id,
        actor_id=actor_id,
        reason=reason,
    )


def credit(
    item_code: str,
    delta: int,
    source: MovementSource = MovementSource.ORDER,
    related_order_id: str | None = None,
    actor_id: str | None = None,
    reason: str | None = None,
    note: str | None = None,
) -> StockMovement:
    """Return or add stock. ``delta`` is positive."""
    if delta <= 0:
        raise ValidationError({"delta": ["A credit must increase stock"]})
    return _record(
        item_code,
        delta,
        MovementAction.IN,
        source,
        related_order_id=related_order_id,
        actor_id=actor_id,
        reason=reason,
        note=note,
    )


def adjust(
    item_code: str,
    delta: int,
    reason: str,
    actor_id: str | None = None,
    allow_negative: bool = False,
) -> StockMovement:
    """Manual correction in either direction."""
    if delta == 0:
        raise ValidationError({"delta": ["An adjustment must change stock"]})
    if not reason:
        raise ValidationError({"reason": ["An adjustment requires a reason"]})
    return _record(
        item_code,
        delta,
        MovementAction.ADJUST,
        MovementSource.MANUAL,
        actor_id=actor_id,
        reason=reason,
        allow_negative=allow_negative,
    )


def restore_order_reservations(order_id: str, actor_id: str | None = None, reason: str | None = None) -> list[StockMovement]:
    """Credit back everything ``order_id`` still holds.

    The amounts are read from the order's own movements (deductions minus
    earlier credits), so the credit always mirrors what is actually held even
    after a restore and re-reservation round trip. Idempotence is the caller's
    concern (the order's restore marker).
    """
    reserved = outstanding_for_order(order_id)

    return [
        credit(
            item_code,
            units,
            source=MovementSource.ORDER,
            related_order_id=order_id,
            actor_id=actor_id,
            reason=reason,
        )
        for item_code, units in sorted(reserved.items())
        if units > 0
    ]


def outstanding_for_order(order_id: str) -> dict[str, int]:
    """Units per item that ``order_id`` currently holds out of the ledger."""
    held: dict[str, int] = {}
    for movement in current_domain.repository_for(StockMovement).for_order(order_id):
        held[movement.item_code] = held.get(movement.item_code, 0) - movement.delta
    return held


def reserved_item_codes(order_id: str) -> list[str]:
    """Item codes an order holds reservations on; used to pick lock keys."""
    movements = current_domain.repository_for(StockMovement).reservations_for_order(order_id)
    return sorted({m.item_code for m in movements})
