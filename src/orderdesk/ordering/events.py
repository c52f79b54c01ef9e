"""Order events — immutable facts about order lifecycle changes."""

from protean.fields import Boolean, Date, DateTime, Identifier, Integer, String

from orderdesk.domain import orderdesk


@orderdesk.event(part_of="Order")
class OrderPlaced:
    """An ingested row became a WAITING order with its stock reserved."""

    __version__ = 1

    order_id = Identifier(required=True)
    external_order_number = String(required=True)
    product_code = String(required=True)
    quantity = Integer(required=True)
    member_id = String()
    upload_format = String()
    placed_at = DateTime(required=True)


@orderdesk.event(part_of="Order")
class OrderStatusChanged:
    __version__ = 1

    order_id = Identifier(required=True)
    previous_status = String(required=True)
    new_status = String(required=True)
    actor_id = String()
    changed_at = DateTime(required=True)


@orderdesk.event(part_of="Order")
class OrderStockRestored:
    """The stock reserved for an order was credited back to the ledger."""

    __version__ = 1

    order_id = Identifier(required=True)
    restored_units = Integer(required=True)
    actor_id = String()
    restored_at = DateTime(required=True)


@orderdesk.event(part_of="Order")
class OrderStockReserved:
    """A restored order took its materials out of the ledger again."""

    __version__ = 1

    order_id = Identifier(required=True)
    reserved_units = Integer(required=True)
    actor_id = String()
    reserved_at = DateTime(required=True)


@orderdesk.event(part_of="Order")
class OrderRouted:
    __version__ = 1

    order_id = Identifier(required=True)
    fulfillment_type = String(required=True)
    vendor_id = String()
    routed_on = Date(required=True)
    overridden = Boolean(default=False)


@orderdesk.event(part_of="Order")
class TrackingRegistered:
    __version__ = 1

    order_id = Identifier(required=True)
    tracking_number = String(required=True)
    courier_company = String(required=True)
    registered_at = DateTime(required=True)
