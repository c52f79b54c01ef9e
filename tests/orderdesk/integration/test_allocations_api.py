"""Integration tests for the allocation endpoints via TestClient."""

import pytest
from orderdesk.notifier import get_notifier


def _request(client, vendor_id="vendor-a", quantity=50):
    response = client.post(
        "/allocations",
        json={
            "allocation_date": "2026-03-02",
            "product_code": "P1",
            "vendor_id": vendor_id,
            "requested_quantity": quantity,
        },
        headers={"X-Actor-Id": "admin-1"},
    )
    assert response.status_code == 201
    return response.json()["id"]


@pytest.mark.usefixtures("stocked")
class TestAllocationFlow:
    def test_request_respond_confirm(self, client):
        response_id = _request(client)
        assert get_notifier().notices_for("vendor-a")[0].response_id == response_id

        client.post(f"/allocations/{response_id}/respond", json={"available_quantity": 40, "vendor_id": "vendor-a"})
        client.post(f"/allocations/{response_id}/respond", json={"available_quantity": 30, "vendor_id": "vendor-a"})
        confirmed = client.post(f"/allocations/{response_id}/confirm")
        assert confirmed.status_code == 200

        (row,) = client.get("/allocations", params={"vendor_id": "vendor-a"}).json()
        assert row["confirmed_quantity"] == 30
        assert row["status"] == "Confirmed"

    def test_repeated_request_returns_same_allocation(self, client):
        assert _request(client) == _request(client)

    def test_views(self, client):
        pending = _request(client, vendor_id="vendor-a")
        answered = _request(client, vendor_id="vendor-b")
        client.post(f"/allocations/{answered}/respond", json={"available_quantity": 10})

        pending_rows = client.get("/allocations", params={"view": "pending"}).json()
        responded_rows = client.get("/allocations", params={"view": "responded"}).json()
        assert [r["response_id"] for r in pending_rows] == [pending]
        assert [r["response_id"] for r in responded_rows] == [answered]

    def test_reject(self, client):
        response_id = _request(client)
        response = client.post(f"/allocations/{response_id}/reject", json={"reason": "Harvest delayed"})
        assert response.status_code == 200

        (row,) = client.get("/allocations").json()
        assert row["status"] == "Rejected"

    def test_negative_answer_rejected(self, client):
        response_id = _request(client)
        response = client.post(f"/allocations/{response_id}/respond", json={"available_quantity": -1})
        assert response.status_code == 422

    def test_other_vendor_cannot_answer(self, client):
        response_id = _request(client, vendor_id="vendor-a")
        response = client.post(
            f"/allocations/{response_id}/respond",
            json={"available_quantity": 10, "vendor_id": "vendor-b"},
        )
        assert response.status_code == 404
