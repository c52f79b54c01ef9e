"""StockMovement aggregate — one append-only row of the stock ledger.

Movements are written once, in the same Unit of Work as the balance change
they describe, and never updated afterwards.
"""

from datetime import UTC, datetime
from enum import Enum

from protean.fields import DateTime, Identifier, Integer, String

from orderdesk.domain import orderdesk
from orderdesk.shared.queries import fetch_all


class ItemKind(Enum):
    PRODUCT = "product"
    MATERIAL = "material"


class MovementAction(Enum):
    IN = "in"
    OUT = "out"
    ADJUST = "adjust"


class MovementSource(Enum):
    MANUAL = "manual"
    ORDER = "order"


@orderdesk.aggregate
class StockMovement:
    item_kind = String(required=True, choices=ItemKind)
    item_code = String(required=True, max_length=50)
    item_name = String(max_length=255)
    delta = Integer(required=True)
    before_balance = Integer(required=True)
    after_balance = Integer(required=True)
    action_kind = String(required=True, choices=MovementAction)
    source = String(required=True, choices=MovementSource)
    related_order_id = Identifier()
    actor_id = String(max_length=100)
    reason = String(max_length=500)
    note = String(max_length=500)
    created_at = DateTime(default=lambda: datetime.now(UTC))


@orderdesk.repository(part_of=StockMovement)
class StockMovementRepository:
    def for_item(self, item_code: str) -> list[StockMovement]:
        return fetch_all(self._dao.query.filter(item_code=item_code))

    def matching(self, **criteria) -> list[StockMovement]:
        queryset = self._dao.query.filter(**criteria) if criteria else self._dao.query
        return fetch_all(queryset)

    def actors(self) -> list[str]:
        return sorted({m.actor_id for m in fetch_all(self._dao.query) if m.actor_id})

    def for_order(self, order_id: str) -> list[StockMovement]:
        """Every order-sourced movement recorded against ``order_id``."""
        return fetch_all(self._dao.query.filter(related_order_id=order_id, source=MovementSource.ORDER.value))

    def reservations_for_order(self, order_id: str) -> list[StockMovement]:
        """Order-sourced deductions recorded against ``order_id``."""
        return fetch_all(
            self._dao.query.filter(
                related_order_id=order_id,
                source=MovementSource.ORDER.value,
                action_kind=MovementAction.OUT.value,
            )
        )

