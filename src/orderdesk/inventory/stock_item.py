"""StockItem aggregate — the current balance of one product or material.

The balance is the cached half of the ledger: every change to
``current_quantity`` produces exactly one StockMovement carrying the before
and after values, so that ``current_quantity == initial_quantity + sum(delta)``
holds for every item at all times.
"""

from datetime import UTC, datetime

from protean.fields import DateTime, Integer, String

from orderdesk.domain import orderdesk
from orderdesk.errors import InsufficientStockError
from orderdesk.inventory.events import StockItemRegistered, StockMovementRecorded
from orderdesk.inventory.movement import ItemKind, MovementAction, MovementSource, StockMovement


@orderdesk.aggregate
class StockItem:
    item_code = String(identifier=True, max_length=50)
    item_kind = String(required=True, choices=ItemKind)
    name = String(max_length=255)
    initial_quantity = Integer(required=True, min_value=0)
    current_quantity = Integer(required=True)
    created_at = DateTime()
    updated_at = DateTime()

    @classmethod
    def register(cls, item_code: str, item_kind: ItemKind, name: str | None = None, initial_quantity: int = 0):
        now = datetime.now(UTC)
        item = cls(
            item_code=item_code,
            item_kind=item_kind.value,
            name=name,
            initial_quantity=initial_quantity,
            current_quantity=initial_quantity,
            created_at=now,
            updated_at=now,
        )
        item.raise_(
            StockItemRegistered(
                item_code=item_code,
                item_kind=item_kind.value,
                name=name,
                initial_quantity=initial_quantity,
                registered_at=now,
            )
        )
        return item

    def record_movement(
        self,
        delta: int,
        action: MovementAction,
        source: MovementSource,
        actor_id: str | None = None,
        related_order_id: str | None = None,
        reason: str | None = None,
        note: str | None = None,
        allow_negative: bool = False,
    ) -> StockMovement:
        """Apply ``delta`` to the balance and return the movement describing it.

        Raises InsufficientStockError when the balance would drop below zero,
        unless ``allow_negative`` is set. The balance is never clamped.
        """
        before = self.current_quantity
        after = before + delta
        if after < 0 and not allow_negative:
            raise InsufficientStockError(self.item_code, available=before, requested=-delta)

        now = datetime.now(UTC)
        movement = StockMovement(
            item_kind=self.item_kind,
            item_code=self.item_code,
            item_name=self.name,
            delta=delta,
            before_balance=before,
            after_balance=after,
            action_kind=action.value,
            source=source.value,
            related_order_id=related_order_id,
            actor_id=actor_id,
            reason=reason,
            note=note,
            created_at=now,
        )

        self.current_quantity = after
        self.updated_at = now
        self.raise_(
            StockMovementRecorded(
                movement_id=str(movement.id),
                item_code=self.item_code,
                action_kind=action.value,
                source=source.value,
                delta=delta,
                before_balance=before,
                after_balance=after,
                related_order_id=related_order_id,
                actor_id=actor_id,
                recorded_at=now,
            )
        )
        return movement
