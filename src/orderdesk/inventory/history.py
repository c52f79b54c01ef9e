"""Stock movement history — the ledger's read surface.

This is the single source of truth for any reporting or export collaborator:
they ask for a filtered page (or every page) of movements and never read
balances from anywhere else.
"""

from dataclasses import dataclass, field
from datetime import UTC, date, datetime, time

from protean.exceptions import ValidationError
from protean.utils.globals import current_domain

from orderdesk.inventory.ledger import get_stock_item
from orderdesk.inventory.movement import StockMovement

WILDCARD = "all"
MAX_PAGE_SIZE = 200


@dataclass(frozen=True)
class HistoryFilter:
    item_kind: str | None = None
    action_kind: str | None = None
    source: str | None = None
    actor_id: str | None = None
    item_code: str | None = None
    start_date: date | None = None
    end_date: date | None = None
    keyword: str | None = None

    def exact_criteria(self) -> dict:
        criteria = {
            "item_kind": self.item_kind,
            "action_kind": self.action_kind,
            "source": self.source,
            "actor_id": self.actor_id,
            "item_code": self.item_code,
        }
        return {k: v for k, v in criteria.items() if v and v != WILDCARD}

    def matches(self, movement: StockMovement) -> bool:
        created_at = _as_utc(movement.created_at)
        if self.start_date and created_at < datetime.combine(self.start_date, time.min, tzinfo=UTC):
            return False
        # The end date is inclusive up to the last instant of that day
        if self.end_date and created_at > datetime.combine(self.end_date, time.max, tzinfo=UTC):
            return False
        if self.keyword:
            needle = self.keyword.lower()
            haystack = (movement.item_code, movement.item_name, movement.related_order_id)
            if not any(needle in str(value).lower() for value in haystack if value):
                return False
        return True


@dataclass(frozen=True)
class MovementPage:
    items: list = field(default_factory=list)
    total: int = 0
    page: int = 1
    page_size: int = 50

    @property
    def has_next(self) -> bool:
        return self.page * self.page_size < self.total


def _as_utc(value: datetime) -> datetime:
    return value.replace(tzinfo=UTC) if value.tzinfo is None else value


def filtered_movements(filters: HistoryFilter) -> list[StockMovement]:
    """Every movement matching ``filters``, newest first."""
    if filters.start_date and filters.end_date and filters.start_date > filters.end_date:
        raise ValidationError({"start_date": ["Start date must not be after end date"]})

    candidates = current_domain.repository_for(StockMovement).matching(**filters.exact_criteria())
    movements = [m for m in candidates if filters.matches(m)]
    movements.sort(key=lambda m: _as_utc(m.created_at), reverse=True)
    return movements


def query_history(filters: HistoryFilter | None = None, page: int = 1, page_size: int = 50) -> MovementPage:
    if page < 1:
        raise ValidationError({"page": ["Page numbers start at 1"]})
    if not 1 <= page_size <= MAX_PAGE_SIZE:
        raise ValidationError({"page_size": [f"Page size must be between 1 and {MAX_PAGE_SIZE}"]})

    movements = filtered_movements(filters or HistoryFilter())
    start = (page - 1) * page_size
    return MovementPage(
        items=movements[start : start + page_size],
        total=len(movements),
        page=page,
        page_size=page_size,
    )


def list_actors() -> list[str]:
    """Distinct actors that have recorded movements."""
    return current_domain.repository_for(StockMovement).actors()


def reconcile(item_code: str) -> dict:
    """Compare an item's cached balance with the sum of its movements."""
    item = get_stock_item(item_code)
    total_delta = sum(m.delta for m in current_domain.repository_for(StockMovement).for_item(item_code))
    return {
        "item_code": item_code,
        "initial_quantity": item.initial_quantity,
        "current_quantity": item.current_quantity,
        "movement_total": total_delta,
        "balanced": item.initial_quantity + total_delta == item.current_quantity,
    }
