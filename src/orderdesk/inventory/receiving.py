"""Stock receiving — manual stock-in of products or materials."""

from protean import handle
from protean.fields import Integer, String

from orderdesk.domain import orderdesk
from orderdesk.inventory import ledger
from orderdesk.inventory.movement import MovementSource
from orderdesk.inventory.stock_item import StockItem


@orderdesk.command(part_of="StockItem")
class ReceiveStock:
    item_code = String(required=True, max_length=50)
    quantity = Integer(required=True, min_value=1)
    actor_id = String(max_length=100)
    note = String(max_length=500)


@orderdesk.command_handler(part_of=StockItem)
class ReceiveStockHandler:
    @handle(ReceiveStock)
    def receive_stock(self, command):
        movement = ledger.credit(
            command.item_code,
            command.quantity,
            source=MovementSource.MANUAL,
            actor_id=command.actor_id,
            reason="Stock received",
            note=command.note,
        )
        return str(movement.id)
