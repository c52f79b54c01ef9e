"""Repository for the Order aggregate."""

from datetime import date

from orderdesk.domain import orderdesk
from orderdesk.ordering.order import CANCELLED_STATUSES, FulfillmentType, Order, OrderStatus
from orderdesk.shared.queries import fetch_all


@orderdesk.repository(part_of=Order)
class OrderRepository:
    """Order lookups used by ingestion, the transition engine and the router."""

    def find_active_by_external_number(self, external_order_number: str) -> Order | None:
        """The non-cancelled order carrying ``external_order_number``, if any."""
        orders = fetch_all(self._dao.query.filter(external_order_number=external_order_number))
        return next((o for o in orders if o.is_active), None)

    def find_matching(self, **criteria) -> list[Order]:
        """Orders whose fields equal every non-empty value in ``criteria``."""
        criteria = {k: v for k, v in criteria.items() if v is not None}
        queryset = self._dao.query.filter(**criteria) if criteria else self._dao.query
        return sorted(fetch_all(queryset), key=lambda o: o.created_at)

    def routed_quantity(self, vendor_id: str, product_code: str, routed_on: date) -> int:
        """Units already routed to a vendor for one product and day."""
        orders = fetch_all(
            self._dao.query.filter(
                fulfillment_type=FulfillmentType.VENDOR.value,
                vendor_id=vendor_id,
                product_code=product_code,
                routed_on=routed_on,
            )
        )
        cancelled = {s.value for s in CANCELLED_STATUSES}
        return sum(o.quantity for o in orders if o.status not in cancelled)

    def count_by_status(self) -> dict[str, int]:
        counts = {status.value: 0 for status in OrderStatus}
        for order in fetch_all(self._dao.query):
            counts[order.status] += 1
        return counts
