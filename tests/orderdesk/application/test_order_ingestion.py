"""Application tests for bulk order ingestion."""

import pytest
from orderdesk.address import get_address_validator
from orderdesk.address.port import AddressVerdict
from orderdesk.errors import ConcurrencyConflict
from orderdesk.ingestion import pipeline
from orderdesk.ingestion.pipeline import IngestionFlags, ingest_orders
from orderdesk.ingestion.report import IngestionStatus
from orderdesk.inventory.movement import StockMovement
from orderdesk.inventory.stock_item import StockItem
from orderdesk.ordering.order import Order, OrderStatus
from protean import current_domain
from protean.exceptions import ValidationError


def _balance(item_code):
    return current_domain.repository_for(StockItem).get(item_code).current_quantity


def _orders():
    return current_domain.repository_for(Order).find_matching()


@pytest.mark.usefixtures("apple_jam")
class TestSuccessfulBatch:
    def test_ten_orders_reserve_twenty_units(self, make_row):
        rows = [make_row(f"EXT-{n:03d}") for n in range(1, 11)]

        report = ingest_orders(rows, actor_id="admin-1")

        assert report.status == IngestionStatus.SUCCESS
        assert len(report.created) == 10
        assert _balance("APPLE-RAW") == 80

        movements = current_domain.repository_for(StockMovement).for_item("APPLE-RAW")
        assert len(movements) == 10
        assert all(m.delta == -2 for m in movements)
        order_ids = {str(o.id) for o in _orders()}
        assert {m.related_order_id for m in movements} == order_ids
        assert all(m.actor_id == "admin-1" for m in movements)

    def test_orders_start_waiting(self, make_row):
        ingest_orders([make_row("EXT-001")], member_id="member-7")

        (order,) = _orders()
        assert order.status == OrderStatus.WAITING.value
        assert order.member_id == "member-7"
        assert order.product_name == "Apple jam"
        assert order.upload_format == "default"

    def test_quantity_multiplies_material_usage(self, make_row):
        ingest_orders([make_row("EXT-001", quantity="5")])
        assert _balance("APPLE-RAW") == 90

    def test_korean_sheet(self):
        row = {
            "상품코드": "P1",
            "자체주문번호": "EXT-KR-1",
            "수량": "1",
            "주문자명": "김민지",
            "주문자전화번호": "02-555-0100",
            "수령자명": "이지수",
            "수령자휴대폰번호": "010-5555-0101",
            "수령자주소": "서울시 강남구 테헤란로 12",
        }
        report = ingest_orders([row], IngestionFlags(upload_format="postoffice"))

        assert report.status == IngestionStatus.SUCCESS
        (order,) = _orders()
        assert order.external_order_number == "EXT-KR-1"
        assert order.upload_format == "postoffice"

    def test_report_rows_are_numbered_from_two(self, make_row):
        report = ingest_orders([make_row("EXT-001"), make_row("EXT-002")])
        assert [r.row_number for r in report.created] == [2, 3]
        assert report.created[0].external_order_number == "EXT-001"
        assert report.created[0].order_id is not None


@pytest.mark.usefixtures("apple_jam")
class TestValidationFailures:
    def _batch_with_unknown_products(self, make_row):
        rows = [make_row(f"EXT-{n:03d}") for n in range(1, 8)]
        rows += [make_row(f"EXT-X{n}", product_code="UNKNOWN") for n in range(1, 4)]
        return rows

    def test_partial_batch_blocked_without_confirmation(self, make_row):
        report = ingest_orders(self._batch_with_unknown_products(make_row))

        assert report.status == IngestionStatus.VALIDATION_FAILED
        assert len(report.skipped) == 3
        assert report.created == []
        assert _orders() == []
        assert _balance("APPLE-RAW") == 100

    def test_partial_batch_with_confirmation(self, make_row):
        report = ingest_orders(self._batch_with_unknown_products(make_row), IngestionFlags(confirm_partial=True))

        assert report.status == IngestionStatus.PARTIAL_SUCCESS
        assert len(report.created) == 7
        assert len(report.skipped) == 3
        assert all("Unknown product code" in r.reason for r in report.skipped)
        assert _balance("APPLE-RAW") == 86

    def test_skipped_rows_keep_original_data(self, make_row):
        raw = make_row("EXT-X1", product_code="UNKNOWN")
        report = ingest_orders([make_row("EXT-001"), raw], IngestionFlags(confirm_partial=True))

        (skipped,) = report.skipped
        assert skipped.row_number == 3
        assert skipped.original_data == raw

    def test_missing_required_fields(self, make_row):
        report = ingest_orders([make_row("EXT-001", recipientMobile="")])
        assert report.status == IngestionStatus.VALIDATION_FAILED
        assert "recipient_mobile" in report.skipped[0].reason

    def test_invalid_quantity(self, make_row):
        report = ingest_orders([make_row("EXT-001", quantity="0")])
        assert report.status == IngestionStatus.VALIDATION_FAILED
        assert "Quantity" in report.skipped[0].reason

    def test_suspended_product(self, make_row):
        from orderdesk.catalog.management import ChangeSupplyStatus

        current_domain.process(ChangeSupplyStatus(product_code="P1", supply_status="Suspended"), asynchronous=False)
        report = ingest_orders([make_row("EXT-001")])
        assert "suspended" in report.skipped[0].reason

    def test_untracked_material(self, make_row, register_product):
        register_product("P9", {"GHOST-RAW": 1})
        report = ingest_orders([make_row("EXT-001", product_code="P9")])
        assert "GHOST-RAW" in report.skipped[0].reason

    def test_every_row_rejected_fails_the_batch(self, make_row):
        report = ingest_orders([make_row("EXT-X1", product_code="UNKNOWN")], IngestionFlags(confirm_partial=True))
        assert report.status == IngestionStatus.FAILED

    def test_empty_batch_rejected(self):
        with pytest.raises(ValidationError):
            ingest_orders([])

    def test_unknown_upload_format_rejected(self, make_row):
        with pytest.raises(ValidationError):
            ingest_orders([make_row("EXT-001")], IngestionFlags(upload_format="fax"))


@pytest.mark.usefixtures("apple_jam")
class TestDuplicates:
    def test_existing_order_blocks_batch(self, make_row):
        ingest_orders([make_row("EXT-001")])

        report = ingest_orders([make_row("EXT-001"), make_row("EXT-002")])

        assert report.status == IngestionStatus.DUPLICATES_FOUND
        (duplicate,) = report.duplicates
        assert duplicate.external_order_number == "EXT-001"
        assert duplicate.order_id is not None
        assert len(_orders()) == 1
        assert _balance("APPLE-RAW") == 98

    def test_confirmed_duplicates_are_skipped(self, make_row):
        ingest_orders([make_row("EXT-001")])

        report = ingest_orders(
            [make_row("EXT-001"), make_row("EXT-002")],
            IngestionFlags(confirm_duplicate=True),
        )

        assert report.status == IngestionStatus.PARTIAL_SUCCESS
        assert [r.external_order_number for r in report.created] == ["EXT-002"]
        numbers = sorted(o.external_order_number for o in _orders())
        assert numbers == ["EXT-001", "EXT-002"]
        assert _balance("APPLE-RAW") == 96

    def test_duplicate_within_batch(self, make_row):
        report = ingest_orders([make_row("EXT-001"), make_row("EXT-001")], IngestionFlags(confirm_duplicate=True))

        assert len(report.created) == 1
        (duplicate,) = report.duplicates
        assert duplicate.row_number == 3
        assert "row 2" in duplicate.reason

    def test_cancelled_order_is_not_a_duplicate(self, make_row):
        from orderdesk.ordering.transitions import change_order_status

        ingest_orders([make_row("EXT-001")])
        (order,) = _orders()
        change_order_status(str(order.id), OrderStatus.MEMBER_CANCELLED)

        report = ingest_orders([make_row("EXT-001")])
        assert report.status == IngestionStatus.SUCCESS


class TestInsufficientStock:
    def test_rows_beyond_stock_are_excluded(self, register_item, register_product, make_row):
        register_item("APPLE-RAW", 5)
        register_product("P1", {"APPLE-RAW": 2})

        report = ingest_orders([make_row(f"EXT-{n}") for n in range(1, 4)])

        assert report.status == IngestionStatus.PARTIAL_SUCCESS
        assert len(report.created) == 2
        (short,) = report.insufficient_stock
        assert short.external_order_number == "EXT-3"
        assert "available 1" in short.reason
        assert _balance("APPLE-RAW") == 1
        assert len(_orders()) == 2


@pytest.mark.usefixtures("apple_jam")
class TestAddressValidation:
    def test_warning_is_appended_to_delivery_message(self, make_row):
        get_address_validator().configure(
            "12 Teheran-ro, Gangnam-gu, Seoul", AddressVerdict.WARNING, "Unit number missing"
        )

        ingest_orders([make_row("EXT-001")])

        (order,) = _orders()
        assert order.delivery_message == "Leave at the door [Address warning: Unit number missing]"

    def test_invalid_address_is_skipped(self, make_row):
        report = ingest_orders([make_row("EXT-001", recipientAddress="Seo")])
        assert report.status == IngestionStatus.VALIDATION_FAILED
        assert "address" in report.skipped[0].reason

    def test_validation_can_be_skipped(self, make_row):
        report = ingest_orders(
            [make_row("EXT-001", recipientAddress="Seo")],
            IngestionFlags(skip_address_validation=True),
        )
        assert report.status == IngestionStatus.SUCCESS


@pytest.mark.usefixtures("apple_jam")
class TestConcurrencyConflicts:
    def test_conflicting_row_is_reported_and_batch_continues(self, make_row, monkeypatch):
        real_place_order = pipeline.place_order

        def _place_order(command):
            if command.external_order_number == "EXT-002":
                raise ConcurrencyConflict("Order EXT-002 was written concurrently")
            return real_place_order(command)

        monkeypatch.setattr(pipeline, "place_order", _place_order)

        report = ingest_orders([make_row("EXT-001"), make_row("EXT-002"), make_row("EXT-003")])

        assert report.status == IngestionStatus.PARTIAL_SUCCESS
        assert [r.external_order_number for r in report.created] == ["EXT-001", "EXT-003"]
        (conflict,) = report.skipped
        assert conflict.external_order_number == "EXT-002"
        assert conflict.row_number == 3
        assert "Concurrency conflict" in conflict.reason
        assert _balance("APPLE-RAW") == 96
