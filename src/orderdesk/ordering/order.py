"""Order aggregate (CQRS) — one unit of B2B customer demand.

Orders are created by the ingestion pipeline in WAITING with their material
already reserved. From then on only the status transition engine, the
fulfillment router and tracking registration touch them.

State Machine:
    WAITING → PREPARING → READY_TO_SHIP → SHIPPING → DELIVERED
    PREPARING → WAITING                         (restores reserved stock)
    WAITING → PREPARING                         (re-reserves stock if it was restored)
    {WAITING, PREPARING} → ADMIN_CANCELLED | MEMBER_CANCELLED
                                                (restores unless already restored)
"""

from datetime import UTC, date, datetime
from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import Boolean, Date, DateTime, Integer, String, Text

from orderdesk.domain import orderdesk
from orderdesk.errors import InvalidTransitionError, TransitionRejection
from orderdesk.ordering.events import (
    OrderPlaced,
    OrderRouted,
    OrderStatusChanged,
    OrderStockReserved,
    OrderStockRestored,
    TrackingRegistered,
)


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class OrderStatus(Enum):
    WAITING = "Waiting"
    PREPARING = "Preparing"
    READY_TO_SHIP = "Ready_To_Ship"
    SHIPPING = "Shipping"
    DELIVERED = "Delivered"
    ADMIN_CANCELLED = "Admin_Cancelled"
    MEMBER_CANCELLED = "Member_Cancelled"


class FulfillmentType(Enum):
    SELF = "self"
    VENDOR = "vendor"


class UploadFormat(Enum):
    DEFAULT = "default"
    POSTOFFICE = "postoffice"
    LOTTE = "lotte"


_VALID_TRANSITIONS = {
    OrderStatus.WAITING: {
        OrderStatus.PREPARING,
        OrderStatus.ADMIN_CANCELLED,
        OrderStatus.MEMBER_CANCELLED,
    },
    OrderStatus.PREPARING: {
        OrderStatus.WAITING,
        OrderStatus.READY_TO_SHIP,
        OrderStatus.ADMIN_CANCELLED,
        OrderStatus.MEMBER_CANCELLED,
    },
    OrderStatus.READY_TO_SHIP: {OrderStatus.SHIPPING},
    OrderStatus.SHIPPING: {OrderStatus.DELIVERED},
    OrderStatus.DELIVERED: set(),  # terminal
    OrderStatus.ADMIN_CANCELLED: set(),  # terminal
    OrderStatus.MEMBER_CANCELLED: set(),  # terminal
}

CANCELLED_STATUSES = {OrderStatus.ADMIN_CANCELLED, OrderStatus.MEMBER_CANCELLED}
TERMINAL_STATUSES = {status for status, targets in _VALID_TRANSITIONS.items() if not targets}

# Transitions that hand reserved stock back to the ledger
_RESTORING_TRANSITIONS = {
    (OrderStatus.PREPARING, OrderStatus.WAITING),
    (OrderStatus.WAITING, OrderStatus.ADMIN_CANCELLED),
    (OrderStatus.WAITING, OrderStatus.MEMBER_CANCELLED),
    (OrderStatus.PREPARING, OrderStatus.ADMIN_CANCELLED),
    (OrderStatus.PREPARING, OrderStatus.MEMBER_CANCELLED),
}

# Routes can be overridden until the parcel leaves
_ROUTABLE_STATUSES = {OrderStatus.WAITING, OrderStatus.PREPARING, OrderStatus.READY_TO_SHIP}


# ---------------------------------------------------------------------------
# Aggregate Root (CQRS)
# ---------------------------------------------------------------------------
@orderdesk.aggregate
class Order:
    external_order_number = String(required=True, max_length=100)
    product_code = String(required=True, max_length=50)
    product_name = String(max_length=255)
    quantity = Integer(min_value=1, default=1)

    orderer_name = String(required=True, max_length=100)
    orderer_phone = String(required=True, max_length=50)
    orderer_address = String(max_length=500)
    recipient_name = String(required=True, max_length=100)
    recipient_mobile = String(required=True, max_length=50)
    recipient_phone = String(max_length=50)
    recipient_address = String(required=True, max_length=500)
    delivery_message = Text()

    member_id = String(max_length=100)
    upload_format = String(max_length=20, choices=UploadFormat, default=UploadFormat.DEFAULT.value)
    status = String(max_length=30, choices=OrderStatus, default=OrderStatus.WAITING.value)

    fulfillment_type = String(max_length=10, choices=FulfillmentType)
    vendor_id = String(max_length=100)
    routed_on = Date()
    route_overridden = Boolean(default=False)

    tracking_number = String(max_length=100)
    courier_company = String(max_length=100)

    stock_restored = Boolean(default=False)
    stock_restored_at = DateTime()

    created_at = DateTime()
    updated_at = DateTime()
    cancelled_at = DateTime()
    delivered_at = DateTime()

    # -------------------------------------------------------------------
    # Factory method
    # -------------------------------------------------------------------
    @classmethod
    def place(cls, **details):
        """Create a WAITING order from a validated ingestion row."""
        now = datetime.now(UTC)
        order = cls(
            **details,
            status=OrderStatus.WAITING.value,
            stock_restored=False,
            created_at=now,
            updated_at=now,
        )
        order.raise_(
            OrderPlaced(
                order_id=str(order.id),
                external_order_number=order.external_order_number,
                product_code=order.product_code,
                quantity=order.quantity,
                member_id=order.member_id,
                upload_format=order.upload_format,
                placed_at=now,
            )
        )
        return order

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    @property
    def current_status(self) -> OrderStatus:
        return OrderStatus(self.status)

    @property
    def is_active(self) -> bool:
        return self.current_status not in CANCELLED_STATUSES

    @property
    def is_routed(self) -> bool:
        return self.fulfillment_type is not None

    @property
    def has_tracking(self) -> bool:
        return bool(self.tracking_number and self.courier_company)

    def restores_stock_on(self, target_status: OrderStatus) -> bool:
        """Whether moving to ``target_status`` must credit the reservation back."""
        return (self.current_status, target_status) in _RESTORING_TRANSITIONS and not self.stock_restored

    def reserves_stock_on(self, target_status: OrderStatus) -> bool:
        """Whether moving to ``target_status`` must take restored stock out again."""
        return (
            self.current_status == OrderStatus.WAITING
            and target_status == OrderStatus.PREPARING
            and bool(self.stock_restored)
        )

    # -------------------------------------------------------------------
    # State transitions
    # -------------------------------------------------------------------
    def assert_can_transition(self, target_status: OrderStatus) -> None:
        current = self.current_status
        if current in TERMINAL_STATUSES:
            raise InvalidTransitionError(current.value, target_status.value, TransitionRejection.TERMINAL_STATE)
        if target_status not in _VALID_TRANSITIONS[current]:
            raise InvalidTransitionError(current.value, target_status.value, TransitionRejection.NOT_ALLOWED)
        if target_status == OrderStatus.SHIPPING and not self.has_tracking:
            raise InvalidTransitionError(current.value, target_status.value, TransitionRejection.TRACKING_REQUIRED)

    def transition_to(self, target_status: OrderStatus, actor_id: str | None = None) -> None:
        self.assert_can_transition(target_status)
        if target_status == OrderStatus.READY_TO_SHIP and not self.is_routed:
            raise ValidationError({"fulfillment_type": ["Order must be routed before it is ready to ship"]})

        previous = self.current_status
        now = datetime.now(UTC)
        self.status = target_status.value
        self.updated_at = now
        if target_status in CANCELLED_STATUSES:
            self.cancelled_at = now
        elif target_status == OrderStatus.DELIVERED:
            self.delivered_at = now

        self.raise_(
            OrderStatusChanged(
                order_id=str(self.id),
                previous_status=previous.value,
                new_status=target_status.value,
                actor_id=actor_id,
                changed_at=now,
            )
        )

    def mark_stock_restored(self, restored_units: int, actor_id: str | None = None) -> None:
        if self.stock_restored:
            raise ValidationError({"stock_restored": ["Stock for this order was already restored"]})
        now = datetime.now(UTC)
        self.stock_restored = True
        self.stock_restored_at = now
        self.updated_at = now
        self.raise_(
            OrderStockRestored(
                order_id=str(self.id),
                restored_units=restored_units,
                actor_id=actor_id,
                restored_at=now,
            )
        )

    def mark_stock_reserved(self, reserved_units: int, actor_id: str | None = None) -> None:
        """Clear the restore marker once the order holds its materials again."""
        if not self.stock_restored:
            raise ValidationError({"stock_restored": ["Stock for this order is still reserved"]})
        now = datetime.now(UTC)
        self.stock_restored = False
        self.stock_restored_at = None
        self.updated_at = now
        self.raise_(
            OrderStockReserved(
                order_id=str(self.id),
                reserved_units=reserved_units,
                actor_id=actor_id,
                reserved_at=now,
            )
        )

    # -------------------------------------------------------------------
    # Routing
    # -------------------------------------------------------------------
    def assign_route(self, fulfillment_type: FulfillmentType, vendor_id: str | None, routed_on: date) -> None:
        """Record the router's decision. Only the first decision sticks."""
        if self.is_routed:
            return
        self._set_route(fulfillment_type, vendor_id, routed_on, overridden=False)

    def override_route(self, fulfillment_type: FulfillmentType, vendor_id: str | None, routed_on: date) -> None:
        if self.current_status not in _ROUTABLE_STATUSES:
            raise ValidationError({"status": [f"Cannot re-route an order in {self.status}"]})
        self._set_route(fulfillment_type, vendor_id, routed_on, overridden=True)

    def _set_route(self, fulfillment_type: FulfillmentType, vendor_id: str | None, routed_on: date, overridden: bool):
        if fulfillment_type == FulfillmentType.VENDOR and not vendor_id:
            raise ValidationError({"vendor_id": ["Vendor fulfillment requires a vendor"]})

        self.fulfillment_type = fulfillment_type.value
        self.vendor_id = vendor_id if fulfillment_type == FulfillmentType.VENDOR else None
        self.routed_on = routed_on
        self.route_overridden = overridden
        self.updated_at = datetime.now(UTC)
        self.raise_(
            OrderRouted(
                order_id=str(self.id),
                fulfillment_type=self.fulfillment_type,
                vendor_id=self.vendor_id,
                routed_on=routed_on,
                overridden=overridden,
            )
        )

    # -------------------------------------------------------------------
    # Tracking
    # -------------------------------------------------------------------
    def register_tracking(self, tracking_number: str, courier_company: str) -> None:
        if not tracking_number or not courier_company:
            raise ValidationError({"tracking": ["Tracking number and courier company are both required"]})
        if self.current_status in TERMINAL_STATUSES:
            raise ValidationError({"status": [f"Cannot register tracking on an order in {self.status}"]})

        self.tracking_number = tracking_number
        self.courier_company = courier_company
        self.updated_at = datetime.now(UTC)
        self.raise_(
            TrackingRegistered(
                order_id=str(self.id),
                tracking_number=tracking_number,
                courier_company=courier_company,
                registered_at=self.updated_at,
            )
        )
