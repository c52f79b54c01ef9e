"""Stock adjustment — manual corrections after counts, damage or loss."""

from protean import handle
from protean.fields import Boolean, Integer, String

from orderdesk.domain import orderdesk
from orderdesk.inventory import ledger
from orderdesk.inventory.stock_item import StockItem


@orderdesk.command(part_of="StockItem")
class AdjustStock:
    """Correct an item's balance by ``delta`` (positive or negative)."""

    item_code = String(required=True, max_length=50)
    delta = Integer(required=True)
    reason = String(required=True, max_length=500)
    actor_id = String(max_length=100)
    allow_negative = Boolean(default=False)


@orderdesk.command_handler(part_of=StockItem)
class AdjustStockHandler:
    @handle(AdjustStock)
    def adjust_stock(self, command):
        movement = ledger.adjust(
            command.item_code,
            command.delta,
            reason=command.reason,
            actor_id=command.actor_id,
            allow_negative=bool(command.allow_negative),
        )
        return str(movement.id)
