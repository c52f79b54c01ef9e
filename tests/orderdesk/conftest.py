import json

import pytest
from protean.integrations.pytest import DomainFixture
from protean.utils.globals import current_domain


@pytest.fixture(scope="session")
def orderdesk_bed():
    from orderdesk.domain import orderdesk

    bed = DomainFixture(orderdesk)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(orderdesk_bed):
    with orderdesk_bed.domain_context():
        yield


@pytest.fixture
def register_item():
    """Register a stock item: ``register_item("APPLE-RAW", 100)``."""
    from orderdesk.inventory.registration import RegisterStockItem

    def _register(item_code, initial_quantity=0, item_kind="material", name=None):
        return current_domain.process(
            RegisterStockItem(
                item_code=item_code,
                item_kind=item_kind,
                name=name or item_code.title(),
                initial_quantity=initial_quantity,
            ),
            asynchronous=False,
        )

    return _register


@pytest.fixture
def register_product():
    """Register a product with its material mapping: ``register_product("P1", {"APPLE-RAW": 2})``."""
    from orderdesk.catalog.management import RegisterProduct

    def _register(product_code, materials=None, name=None):
        mapping = [{"material_code": code, "units_per_order": units} for code, units in (materials or {}).items()]
        return current_domain.process(
            RegisterProduct(
                product_code=product_code,
                name=name or f"Product {product_code}",
                materials=json.dumps(mapping),
            ),
            asynchronous=False,
        )

    return _register


@pytest.fixture
def apple_jam(register_item, register_product):
    """APPLE-RAW with 100 units; product P1 consumes 2 of them per order."""
    register_item("APPLE-RAW", 100, name="Raw apple")
    register_product("P1", {"APPLE-RAW": 2}, name="Apple jam")


@pytest.fixture
def make_row():
    """Build a raw ingestion row with sensible defaults."""

    def _row(external_order_number, product_code="P1", **overrides):
        row = {
            "productCode": product_code,
            "customOrderNumber": external_order_number,
            "ordererName": "Kim Minji",
            "ordererPhone": "02-555-0100",
            "recipientName": "Lee Jisoo",
            "recipientMobile": "010-5555-0101",
            "recipientAddress": "12 Teheran-ro, Gangnam-gu, Seoul",
            "deliveryMessage": "Leave at the door",
        }
        row.update(overrides)
        return row

    return _row
