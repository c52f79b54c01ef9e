"""Bulk order ingestion.

A batch goes through two passes. The first validates every row and sorts it
into new, duplicate or invalid without writing anything; the batch flags then
decide whether the batch may proceed. The second pass commits each new row
as its own PlaceOrder command (order + material reservations in one Unit of
Work), so a row that runs out of stock is excluded without affecting the
rows around it.
"""

from dataclasses import dataclass
from uuid import uuid4

import structlog
from protean.exceptions import ValidationError
from protean.utils.globals import current_domain

from orderdesk.address import get_address_validator
from orderdesk.address.port import AddressVerdict
from orderdesk.catalog.management import find_product
from orderdesk.errors import ConcurrencyConflict, DuplicateOrderError, InsufficientStockError, NotFoundError
from orderdesk.ingestion.columns import missing_fields, normalize_row, parse_quantity
from orderdesk.ingestion.report import IngestionReport, IngestionStatus, RowResult
from orderdesk.inventory.ledger import find_stock_item
from orderdesk.ordering.order import Order, UploadFormat
from orderdesk.ordering.placement import PlaceOrder, place_order
from orderdesk.utils.logging import add_context, clear_context

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class IngestionFlags:
    confirm_partial: bool = False
    confirm_duplicate: bool = False
    upload_format: str = UploadFormat.DEFAULT.value
    skip_address_validation: bool = False


@dataclass
class _Candidate:
    row_number: int
    original: dict
    fields: dict


class _RowRejected(Exception):
    """Internal signal carrying the reason a row failed validation."""


def _validate(row: dict, flags: IngestionFlags) -> dict:
    """Return PlaceOrder fields for a valid row or raise _RowRejected."""
    missing = missing_fields(row)
    if missing:
        raise _RowRejected(f"Missing required fields: {', '.join(missing)}")

    try:
        quantity = parse_quantity(row["quantity"])
    except ValueError as exc:
        raise _RowRejected("Quantity must be a positive whole number") from exc

    product = find_product(row["product_code"])
    if product is None:
        raise _RowRejected(f"Unknown product code {row['product_code']}")
    if not product.is_orderable:
        raise _RowRejected(f"Product {row['product_code']} is suspended")

    unregistered = [code for code in product.material_requirements(quantity) if find_stock_item(code) is None]
    if unregistered:
        raise _RowRejected(f"Materials not tracked in inventory: {', '.join(sorted(unregistered))}")

    delivery_message = row["delivery_message"]
    if not flags.skip_address_validation:
        check = get_address_validator().check(row["recipient_address"])
        if check.verdict == AddressVerdict.INVALID:
            raise _RowRejected(f"Invalid recipient address: {check.message or row['recipient_address']}")
        if check.verdict == AddressVerdict.WARNING:
            warning = f"[Address warning: {check.message or 'please verify'}]"
            delivery_message = f"{delivery_message} {warning}" if delivery_message else warning

    return {
        **row,
        "quantity": quantity,
        "product_name": row["product_name"] or product.name,
        "delivery_message": delivery_message,
        "upload_format": flags.upload_format,
    }


def _classify(rows: list[dict], flags: IngestionFlags, report: IngestionReport) -> list[_Candidate]:
    """First pass: fill ``skipped`` and ``duplicates``, return the new rows."""
    orders = current_domain.repository_for(Order)
    candidates = []
    seen: dict[str, int] = {}

    for index, raw in enumerate(rows):
        row_number = index + 2  # row 1 is the sheet header
        row = normalize_row(raw)
        number = row["external_order_number"]

        try:
            fields = _validate(row, flags)
        except _RowRejected as exc:
            report.skipped.append(RowResult(row_number, number, reason=str(exc), original_data=raw))
            continue

        if number in seen:
            report.duplicates.append(
                RowResult(row_number, number, reason=f"Duplicate of row {seen[number]} in this batch", original_data=raw)
            )
            continue

        existing = orders.find_active_by_external_number(number)
        if existing is not None:
            report.duplicates.append(
                RowResult(row_number, number, order_id=str(existing.id), reason="Order already exists", original_data=raw)
            )
            continue

        seen[number] = row_number
        candidates.append(_Candidate(row_number, raw, fields))

    return candidates


def _commit(candidate: _Candidate, actor_id: str | None, member_id: str | None, report: IngestionReport) -> None:
    number = candidate.fields["external_order_number"]
    command = PlaceOrder(**candidate.fields, member_id=member_id, actor_id=actor_id)
    try:
        order_id = place_order(command)
    except InsufficientStockError as exc:
        report.insufficient_stock.append(
            RowResult(
                candidate.row_number,
                number,
                reason=f"Insufficient stock for {exc.item_code}: available {exc.available}, needed {exc.requested}",
                original_data=candidate.original,
            )
        )
    except DuplicateOrderError as exc:
        report.duplicates.append(
            RowResult(
                candidate.row_number,
                number,
                order_id=exc.existing_order_id,
                reason="Order already exists",
                original_data=candidate.original,
            )
        )
    except (NotFoundError, ValidationError) as exc:
        report.skipped.append(RowResult(candidate.row_number, number, reason=str(exc), original_data=candidate.original))
    except ConcurrencyConflict as exc:
        logger.warning("Order row lost a concurrent write", row_number=candidate.row_number, external_order_number=number)
        report.skipped.append(
            RowResult(candidate.row_number, number, reason=f"Concurrency conflict: {exc}", original_data=candidate.original)
        )
    else:
        report.created.append(RowResult(candidate.row_number, number, order_id=order_id, original_data=candidate.original))


def ingest_orders(
    rows: list[dict],
    flags: IngestionFlags | None = None,
    actor_id: str | None = None,
    member_id: str | None = None,
) -> IngestionReport:
    flags = flags or IngestionFlags()
    if not rows:
        raise ValidationError({"rows": ["The batch contains no rows"]})
    if flags.upload_format not in {f.value for f in UploadFormat}:
        raise ValidationError({"upload_format": [f"Unknown upload format: {flags.upload_format}"]})

    add_context(ingestion_batch=uuid4().hex[:12])
    try:
        report = IngestionReport(total=len(rows))
        candidates = _classify(rows, flags, report)

        if report.skipped and not flags.confirm_partial:
            report.status = IngestionStatus.VALIDATION_FAILED
        elif report.duplicates and not flags.confirm_duplicate:
            report.status = IngestionStatus.DUPLICATES_FOUND
        else:
            for candidate in candidates:
                _commit(candidate, actor_id, member_id, report)
            report.settle()

        logger.info("Order batch ingested", status=report.status.value, actor_id=actor_id, **report.counts())
        return report
    finally:
        clear_context("ingestion_batch")
