import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from orderdesk.api import (
    allocation_router,
    catalog_router,
    inventory_router,
    order_router,
    register_error_handlers,
)


@pytest.fixture()
def client():
    app = FastAPI()
    app.include_router(order_router)
    app.include_router(inventory_router)
    app.include_router(allocation_router)
    app.include_router(catalog_router)
    register_error_handlers(app)
    return TestClient(app)


@pytest.fixture()
def stocked(client):
    """APPLE-RAW with 100 units and product P1 consuming 2 per order, set up over HTTP."""
    response = client.post(
        "/inventory/items",
        json={"item_code": "APPLE-RAW", "item_kind": "material", "name": "Raw apple", "initial_quantity": 100},
    )
    assert response.status_code == 201
    response = client.post(
        "/catalog/products",
        json={
            "product_code": "P1",
            "name": "Apple jam",
            "materials": [{"material_code": "APPLE-RAW", "units_per_order": 2}],
        },
    )
    assert response.status_code == 201
