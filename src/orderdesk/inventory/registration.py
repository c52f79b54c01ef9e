"""Stock item registration — command and handler."""

from protean import handle
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.fields import Integer, String
from protean.utils.globals import current_domain

from orderdesk.domain import orderdesk
from orderdesk.inventory.movement import ItemKind
from orderdesk.inventory.stock_item import StockItem


@orderdesk.command(part_of="StockItem")
class RegisterStockItem:
    """Start tracking a product or material with an opening balance."""

    item_code = String(required=True, max_length=50)
    item_kind = String(required=True, choices=ItemKind)
    name = String(max_length=255)
    initial_quantity = Integer(default=0, min_value=0)


@orderdesk.command_handler(part_of=StockItem)
class RegisterStockItemHandler:
    @handle(RegisterStockItem)
    def register_stock_item(self, command):
        repo = current_domain.repository_for(StockItem)
        try:
            repo.get(command.item_code)
        except ObjectNotFoundError:
            pass
        else:
            raise ValidationError({"item_code": [f"Stock item {command.item_code} already registered"]})

        item = StockItem.register(
            item_code=command.item_code,
            item_kind=ItemKind(command.item_kind),
            name=command.name,
            initial_quantity=command.initial_quantity or 0,
        )
        repo.add(item)
        return item.item_code
