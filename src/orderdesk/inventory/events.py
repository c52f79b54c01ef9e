"""Inventory ledger events."""

from protean.fields import DateTime, Identifier, Integer, String

from orderdesk.domain import orderdesk


@orderdesk.event(part_of="StockItem")
class StockItemRegistered:
    """A product or material started being tracked by the ledger."""

    __version__ = 1

    item_code = String(required=True)
    item_kind = String(required=True)
    name = String()
    initial_quantity = Integer(required=True)
    registered_at = DateTime(required=True)


@orderdesk.event(part_of="StockItem")
class StockMovementRecorded:
    """A movement changed an item's balance."""

    __version__ = 1

    movement_id = Identifier(required=True)
    item_code = String(required=True)
    action_kind = String(required=True)
    source = String(required=True)
    delta = Integer(required=True)
    before_balance = Integer(required=True)
    after_balance = Integer(required=True)
    related_order_id = Identifier()
    actor_id = String()
    recorded_at = DateTime(required=True)
