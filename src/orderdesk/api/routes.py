"""FastAPI routes for the OrderDesk domain.

Thin adapters that translate HTTP requests into domain commands or service
calls. No business logic — just schema → command → response translation.
The acting user comes from the ``X-Actor-Id`` header set by the gateway.
"""

import json
from datetime import date

from fastapi import APIRouter, Header, Query
from protean.exceptions import ValidationError
from protean.utils.globals import current_domain

from orderdesk.allocation.negotiation import (
    ConfirmAllocation,
    RejectAllocation,
    RequestAllocation,
    RespondToAllocation,
)
from orderdesk.allocation.queries import list_allocations
from orderdesk.api.schemas import (
    AdjustStockRequest,
    AllocationResponseSchema,
    BulkChangeStatusRequest,
    BulkResultResponse,
    BulkTrackingRequest,
    BulkTrackingResponse,
    ChangeStatusRequest,
    DefineMaterialsRequest,
    IdResponse,
    IngestionReportResponse,
    IngestOrdersRequest,
    MapVendorProductRequest,
    MovementPageResponse,
    OrderResponse,
    OverrideRouteRequest,
    ReceiveStockRequest,
    RegisterProductRequest,
    RegisterStockItemRequest,
    RegisterTrackingRequest,
    RejectAllocationRequest,
    RequestAllocationRequest,
    RespondAllocationRequest,
    RestoreMatchingRequest,
    StatusResponse,
    StockItemResponse,
    StockMovementResponse,
    SupplyStatusRequest,
)
from orderdesk.catalog.management import (
    ChangeSupplyStatus,
    DefineMaterialMapping,
    MapVendorProduct,
    RegisterProduct,
    UnmapVendorProduct,
)
from orderdesk.ingestion.pipeline import IngestionFlags, ingest_orders
from orderdesk.inventory.adjustment import AdjustStock
from orderdesk.inventory.history import HistoryFilter, list_actors, query_history
from orderdesk.inventory.ledger import get_stock_item
from orderdesk.inventory.receiving import ReceiveStock
from orderdesk.inventory.registration import RegisterStockItem
from orderdesk.ordering.bulk import bulk_change_status, restore_matching
from orderdesk.ordering.order import Order, OrderStatus
from orderdesk.ordering.tracking import bulk_register_tracking, register_tracking
from orderdesk.ordering.transitions import change_order_status, get_order
from orderdesk.routing.override import OverrideRoute
from orderdesk.shared.concurrency import item_key, order_key, process_exclusively


def _order_status(value: str) -> OrderStatus:
    try:
        return OrderStatus(value)
    except ValueError as exc:
        raise ValidationError({"to_status": [f"Unknown order status: {value}"]}) from exc


def _order_response(order: Order) -> OrderResponse:
    return OrderResponse(
        order_id=str(order.id),
        external_order_number=order.external_order_number,
        product_code=order.product_code,
        product_name=order.product_name,
        quantity=order.quantity,
        status=order.status,
        member_id=order.member_id,
        upload_format=order.upload_format,
        fulfillment_type=order.fulfillment_type,
        vendor_id=order.vendor_id,
        routed_on=order.routed_on,
        tracking_number=order.tracking_number,
        courier_company=order.courier_company,
        stock_restored=bool(order.stock_restored),
        stock_restored_at=order.stock_restored_at,
        recipient_name=order.recipient_name,
        recipient_address=order.recipient_address,
        delivery_message=order.delivery_message,
        created_at=order.created_at,
        updated_at=order.updated_at,
    )


# ---------------------------------------------------------------------------
# Orders Router
# ---------------------------------------------------------------------------
order_router = APIRouter(prefix="/orders", tags=["orders"])


@order_router.post("/ingest", response_model=IngestionReportResponse)
async def ingest(body: IngestOrdersRequest, x_actor_id: str | None = Header(default=None)) -> IngestionReportResponse:
    flags = IngestionFlags(
        confirm_partial=body.confirm_partial,
        confirm_duplicate=body.confirm_duplicate,
        upload_format=body.upload_format,
        skip_address_validation=body.skip_address_validation,
    )
    report = ingest_orders(body.rows, flags, actor_id=x_actor_id, member_id=body.member_id)
    return IngestionReportResponse(**report.to_dict())


@order_router.get("", response_model=list[OrderResponse])
async def list_orders(
    status: str | None = None,
    product_code: str | None = None,
    member_id: str | None = None,
    vendor_id: str | None = None,
) -> list[OrderResponse]:
    orders = current_domain.repository_for(Order).find_matching(
        status=status,
        product_code=product_code,
        member_id=member_id,
        vendor_id=vendor_id,
    )
    return [_order_response(o) for o in orders]


@order_router.get("/summary")
async def order_summary() -> dict[str, int]:
    return current_domain.repository_for(Order).count_by_status()


@order_router.get("/{order_id}", response_model=OrderResponse)
async def get_order_detail(order_id: str) -> OrderResponse:
    return _order_response(get_order(order_id))


@order_router.post("/{order_id}/status", response_model=StatusResponse)
async def change_status(
    order_id: str,
    body: ChangeStatusRequest,
    x_actor_id: str | None = Header(default=None),
) -> StatusResponse:
    new_status = change_order_status(order_id, _order_status(body.to_status), actor_id=x_actor_id)
    return StatusResponse(status=new_status)


@order_router.post("/status/bulk", response_model=BulkResultResponse)
async def change_status_bulk(
    body: BulkChangeStatusRequest,
    x_actor_id: str | None = Header(default=None),
) -> BulkResultResponse:
    result = bulk_change_status(body.order_ids, _order_status(body.to_status), actor_id=x_actor_id)
    return BulkResultResponse(**result.to_dict())


@order_router.post("/restore", response_model=BulkResultResponse)
async def restore_orders(
    body: RestoreMatchingRequest,
    x_actor_id: str | None = Header(default=None),
) -> BulkResultResponse:
    result = restore_matching(
        product_code=body.product_code,
        member_id=body.member_id,
        upload_format=body.upload_format,
        actor_id=x_actor_id,
    )
    return BulkResultResponse(**result.to_dict())


@order_router.post("/{order_id}/tracking", response_model=StatusResponse)
async def add_tracking(order_id: str, body: RegisterTrackingRequest) -> StatusResponse:
    register_tracking(order_id, body.tracking_number, body.courier_company, vendor_id=body.vendor_id)
    return StatusResponse()


@order_router.post("/tracking/bulk", response_model=BulkTrackingResponse)
async def add_tracking_bulk(body: BulkTrackingRequest) -> BulkTrackingResponse:
    result = bulk_register_tracking([row.model_dump() for row in body.rows], vendor_id=body.vendor_id)
    return BulkTrackingResponse(**result.to_dict())


@order_router.post("/{order_id}/route", response_model=StatusResponse)
async def override_route(
    order_id: str,
    body: OverrideRouteRequest,
    x_actor_id: str | None = Header(default=None),
) -> StatusResponse:
    command = OverrideRoute(
        order_id=order_id,
        fulfillment_type=body.fulfillment_type,
        vendor_id=body.vendor_id,
        actor_id=x_actor_id,
    )
    process_exclusively(command, [order_key(order_id)])
    return StatusResponse()


# ---------------------------------------------------------------------------
# Inventory Router
# ---------------------------------------------------------------------------
inventory_router = APIRouter(prefix="/inventory", tags=["inventory"])


@inventory_router.post("/items", status_code=201, response_model=IdResponse)
async def register_stock_item(body: RegisterStockItemRequest) -> IdResponse:
    command = RegisterStockItem(
        item_code=body.item_code,
        item_kind=body.item_kind,
        name=body.name,
        initial_quantity=body.initial_quantity,
    )
    result = process_exclusively(command, [item_key(body.item_code)])
    return IdResponse(id=result)


@inventory_router.get("/items/{item_code}", response_model=StockItemResponse)
async def get_stock_item_detail(item_code: str) -> StockItemResponse:
    item = get_stock_item(item_code)
    return StockItemResponse(
        item_code=item.item_code,
        item_kind=item.item_kind,
        name=item.name,
        initial_quantity=item.initial_quantity,
        current_quantity=item.current_quantity,
    )


@inventory_router.post("/items/{item_code}/receive", status_code=201, response_model=IdResponse)
async def receive_stock(
    item_code: str,
    body: ReceiveStockRequest,
    x_actor_id: str | None = Header(default=None),
) -> IdResponse:
    command = ReceiveStock(item_code=item_code, quantity=body.quantity, note=body.note, actor_id=x_actor_id)
    return IdResponse(id=process_exclusively(command, [item_key(item_code)]))


@inventory_router.post("/items/{item_code}/adjust", status_code=201, response_model=IdResponse)
async def adjust_stock(
    item_code: str,
    body: AdjustStockRequest,
    x_actor_id: str | None = Header(default=None),
) -> IdResponse:
    command = AdjustStock(
        item_code=item_code,
        delta=body.delta,
        reason=body.reason,
        allow_negative=body.allow_negative,
        actor_id=x_actor_id,
    )
    return IdResponse(id=process_exclusively(command, [item_key(item_code)]))


@inventory_router.get("/movements", response_model=MovementPageResponse)
async def movement_history(
    item_kind: str | None = None,
    action_kind: str | None = None,
    source: str | None = None,
    actor_id: str | None = None,
    item_code: str | None = None,
    start_date: date | None = None,
    end_date: date | None = None,
    keyword: str | None = None,
    page: int = Query(default=1, ge=1),
    page_size: int = Query(default=50, ge=1, le=200),
) -> MovementPageResponse:
    filters = HistoryFilter(
        item_kind=item_kind,
        action_kind=action_kind,
        source=source,
        actor_id=actor_id,
        item_code=item_code,
        start_date=start_date,
        end_date=end_date,
        keyword=keyword,
    )
    result = query_history(filters, page=page, page_size=page_size)
    return MovementPageResponse(
        items=[
            StockMovementResponse(
                movement_id=str(m.id),
                item_kind=m.item_kind,
                item_code=m.item_code,
                item_name=m.item_name,
                delta=m.delta,
                before_balance=m.before_balance,
                after_balance=m.after_balance,
                action_kind=m.action_kind,
                source=m.source,
                related_order_id=str(m.related_order_id) if m.related_order_id else None,
                actor_id=m.actor_id,
                reason=m.reason,
                note=m.note,
                created_at=m.created_at,
            )
            for m in result.items
        ],
        total=result.total,
        page=result.page,
        page_size=result.page_size,
        has_next=result.has_next,
    )


@inventory_router.get("/movements/actors", response_model=list[str])
async def movement_actors() -> list[str]:
    return list_actors()


# ---------------------------------------------------------------------------
# Allocations Router
# ---------------------------------------------------------------------------
allocation_router = APIRouter(prefix="/allocations", tags=["allocations"])


@allocation_router.post("", status_code=201, response_model=IdResponse)
async def request_allocation(
    body: RequestAllocationRequest,
    x_actor_id: str | None = Header(default=None),
) -> IdResponse:
    command = RequestAllocation(
        allocation_date=body.allocation_date,
        product_code=body.product_code,
        vendor_id=body.vendor_id,
        requested_quantity=body.requested_quantity,
        actor_id=x_actor_id,
    )
    return IdResponse(id=current_domain.process(command, asynchronous=False))


@allocation_router.get("", response_model=list[AllocationResponseSchema])
async def get_allocations(
    vendor_id: str | None = None,
    view: str | None = None,
    allocation_date: date | None = None,
    product_code: str | None = None,
) -> list[AllocationResponseSchema]:
    rows = list_allocations(
        vendor_id=vendor_id,
        view=view,
        allocation_date=allocation_date,
        product_code=product_code,
    )
    return [AllocationResponseSchema(**row) for row in rows]


@allocation_router.post("/{response_id}/respond", response_model=StatusResponse)
async def respond_to_allocation(response_id: str, body: RespondAllocationRequest) -> StatusResponse:
    command = RespondToAllocation(
        response_id=response_id,
        available_quantity=body.available_quantity,
        memo=body.memo,
        vendor_id=body.vendor_id,
    )
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@allocation_router.post("/{response_id}/confirm", response_model=StatusResponse)
async def confirm_allocation(response_id: str) -> StatusResponse:
    current_domain.process(ConfirmAllocation(response_id=response_id), asynchronous=False)
    return StatusResponse()


@allocation_router.post("/{response_id}/reject", response_model=StatusResponse)
async def reject_allocation(response_id: str, body: RejectAllocationRequest) -> StatusResponse:
    current_domain.process(RejectAllocation(response_id=response_id, reason=body.reason), asynchronous=False)
    return StatusResponse()


# ---------------------------------------------------------------------------
# Catalog Router
# ---------------------------------------------------------------------------
catalog_router = APIRouter(prefix="/catalog", tags=["catalog"])


@catalog_router.post("/products", status_code=201, response_model=IdResponse)
async def register_product(body: RegisterProductRequest) -> IdResponse:
    command = RegisterProduct(
        product_code=body.product_code,
        name=body.name,
        materials=json.dumps([m.model_dump() for m in body.materials]),
    )
    return IdResponse(id=current_domain.process(command, asynchronous=False))


@catalog_router.put("/products/{product_code}/materials", response_model=StatusResponse)
async def define_materials(product_code: str, body: DefineMaterialsRequest) -> StatusResponse:
    command = DefineMaterialMapping(
        product_code=product_code,
        materials=json.dumps([m.model_dump() for m in body.materials]),
    )
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@catalog_router.post("/products/{product_code}/supply-status", response_model=StatusResponse)
async def change_supply_status(product_code: str, body: SupplyStatusRequest) -> StatusResponse:
    command = ChangeSupplyStatus(product_code=product_code, supply_status=body.supply_status)
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@catalog_router.post("/vendor-products", status_code=201, response_model=IdResponse)
async def map_vendor_product(body: MapVendorProductRequest) -> IdResponse:
    command = MapVendorProduct(vendor_id=body.vendor_id, product_code=body.product_code)
    return IdResponse(id=current_domain.process(command, asynchronous=False))


@catalog_router.delete("/vendor-products/{vendor_id}/{product_code}", response_model=StatusResponse)
async def unmap_vendor_product(vendor_id: str, product_code: str) -> StatusResponse:
    command = UnmapVendorProduct(vendor_id=vendor_id, product_code=product_code)
    current_domain.process(command, asynchronous=False)
    return StatusResponse()
