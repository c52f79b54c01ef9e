"""Pydantic request/response schemas for the OrderDesk API.

These are external contracts (anti-corruption layer) — separate from
internal Protean commands.
"""

from datetime import date, datetime
from typing import Any

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Shared
# ---------------------------------------------------------------------------
class StatusResponse(BaseModel):
    status: str = "ok"


class IdResponse(BaseModel):
    id: str


# ---------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------
class MaterialUsageSchema(BaseModel):
    material_code: str
    units_per_order: int = Field(ge=1)


class RegisterProductRequest(BaseModel):
    product_code: str
    name: str
    materials: list[MaterialUsageSchema] = []


class DefineMaterialsRequest(BaseModel):
    materials: list[MaterialUsageSchema]


class SupplyStatusRequest(BaseModel):
    supply_status: str


class MapVendorProductRequest(BaseModel):
    vendor_id: str
    product_code: str


# ---------------------------------------------------------------------------
# Inventory
# ---------------------------------------------------------------------------
class RegisterStockItemRequest(BaseModel):
    item_code: str
    item_kind: str
    name: str | None = None
    initial_quantity: int = Field(ge=0, default=0)


class ReceiveStockRequest(BaseModel):
    quantity: int = Field(ge=1)
    note: str | None = None


class AdjustStockRequest(BaseModel):
    delta: int
    reason: str
    allow_negative: bool = False


class StockItemResponse(BaseModel):
    item_code: str
    item_kind: str
    name: str | None = None
    initial_quantity: int
    current_quantity: int


class StockMovementResponse(BaseModel):
    movement_id: str
    item_kind: str
    item_code: str
    item_name: str | None = None
    delta: int
    before_balance: int
    after_balance: int
    action_kind: str
    source: str
    related_order_id: str | None = None
    actor_id: str | None = None
    reason: str | None = None
    note: str | None = None
    created_at: datetime


class MovementPageResponse(BaseModel):
    items: list[StockMovementResponse]
    total: int
    page: int
    page_size: int
    has_next: bool


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------
class IngestOrdersRequest(BaseModel):
    rows: list[dict[str, Any]] = Field(min_length=1)
    confirm_partial: bool = False
    confirm_duplicate: bool = False
    upload_format: str = "default"
    skip_address_validation: bool = False
    member_id: str | None = None


class RowResultSchema(BaseModel):
    row_number: int
    external_order_number: str | None = None
    order_id: str | None = None
    reason: str | None = None
    original_data: dict[str, Any] = {}


class IngestionReportResponse(BaseModel):
    status: str
    total: int
    created: int
    skipped: int
    duplicates: int
    insufficient_stock: int
    created_rows: list[RowResultSchema]
    skipped_rows: list[RowResultSchema]
    duplicate_rows: list[RowResultSchema]
    insufficient_stock_rows: list[RowResultSchema]


class ChangeStatusRequest(BaseModel):
    to_status: str


class BulkChangeStatusRequest(BaseModel):
    order_ids: list[str] = Field(min_length=1)
    to_status: str


class RestoreMatchingRequest(BaseModel):
    product_code: str | None = None
    member_id: str | None = None
    upload_format: str | None = None


class OrderOutcomeSchema(BaseModel):
    order_id: str
    success: bool
    status: str | None = None
    reason: str | None = None
    message: str | None = None


class BulkResultResponse(BaseModel):
    total: int
    succeeded: int
    failed: int
    outcomes: list[OrderOutcomeSchema]


class RegisterTrackingRequest(BaseModel):
    tracking_number: str
    courier_company: str
    vendor_id: str | None = None


class TrackingRowSchema(BaseModel):
    order_id: str | None = None
    tracking_number: str | None = None
    courier_company: str | None = None


class BulkTrackingRequest(BaseModel):
    rows: list[TrackingRowSchema] = Field(min_length=1)
    vendor_id: str | None = None


class TrackingFailureSchema(BaseModel):
    row_number: int
    order_id: str | None = None
    reason: str


class BulkTrackingResponse(BaseModel):
    success: int
    failed: int
    failures: list[TrackingFailureSchema]


class OverrideRouteRequest(BaseModel):
    fulfillment_type: str
    vendor_id: str | None = None


class OrderResponse(BaseModel):
    order_id: str
    external_order_number: str
    product_code: str
    product_name: str | None = None
    quantity: int
    status: str
    member_id: str | None = None
    upload_format: str | None = None
    fulfillment_type: str | None = None
    vendor_id: str | None = None
    routed_on: date | None = None
    tracking_number: str | None = None
    courier_company: str | None = None
    stock_restored: bool = False
    stock_restored_at: datetime | None = None
    recipient_name: str
    recipient_address: str
    delivery_message: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


# ---------------------------------------------------------------------------
# Allocations
# ---------------------------------------------------------------------------
class RequestAllocationRequest(BaseModel):
    allocation_date: date
    product_code: str
    vendor_id: str
    requested_quantity: int = Field(ge=1)


class RespondAllocationRequest(BaseModel):
    available_quantity: int = Field(ge=0)
    memo: str | None = None
    vendor_id: str | None = None


class RejectAllocationRequest(BaseModel):
    reason: str | None = None


class AllocationResponseSchema(BaseModel):
    response_id: str
    request_id: str
    allocation_date: date
    product_code: str
    vendor_id: str
    requested_quantity: int
    confirmed_quantity: int | None = None
    memo: str | None = None
    status: str
    notified_at: datetime | None = None
    responded_at: datetime | None = None
    confirmed_at: datetime | None = None
