"""
HTTP surface: status codes and the error envelope.
"""

import asyncio

import pytest

from axleworks.auth import Actor, get_current_actor


@pytest.fixture
def estimate_payload(customer, vehicle):
    return {
        "customer_id": customer.id,
        "vehicle_id": vehicle.id,
        "line_items": [
            {"description": "Brake pads", "kind": "part", "quantity": 2, "unit_price": 45},
            {"description": "Brake labour", "kind": "labour", "quantity": 1.5, "unit_price": 80},
        ],
    }


@pytest.fixture
def created_estimate(client, estimate_payload):
    response = client.post("/estimates", json=estimate_payload)
    assert response.status_code == 201
    return response.json()


# =============================================================================
# Envelope
# =============================================================================


class TestErrorEnvelope:
    def test_not_found(self, client):
        response = client.get("/estimates/999")

        assert response.status_code == 404
        assert response.json() == {"error": "not_found", "message": "Estimate not found"}

    def test_invalid_transition_carries_states(self, client, created_estimate):
        response = client.post(f"/estimates/{created_estimate['id']}/approve")

        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "invalid_transition"
        assert body["current_state"] == "draft"
        assert body["target_state"] == "approved"

    def test_conflict(self, client, created_estimate):
        estimate_id = created_estimate["id"]
        client.post(f"/estimates/{estimate_id}/send")
        client.post(f"/estimates/{estimate_id}/approve")
        assert client.post(f"/estimates/{estimate_id}/convert", json={"mileage_in": 5}).status_code == 201

        response = client.post(f"/estimates/{estimate_id}/convert", json={"mileage_in": 5})

        assert response.status_code == 409
        assert response.json()["error"] == "conflict"

    def test_missing_actor_is_unauthorized(self, anonymous_client):
        response = anonymous_client.get("/invoices")

        assert response.status_code == 401
        assert response.json()["error"] == "unauthorized"

    def test_malformed_actor_is_unauthorized(self, anonymous_client):
        response = anonymous_client.get("/invoices", headers={"X-Actor-Id": "front-desk"})

        assert response.status_code == 401
        assert response.json()["message"] == "Invalid actor identity"

    def test_actor_is_identified_by_id_alone(self):
        assert asyncio.run(get_current_actor(x_actor_id="12")) == Actor(id=12)

    def test_validation_error(self, client, customer, vehicle):
        response = client.post(
            "/payments", json={"invoice_id": 1, "amount": -5, "method": "cash"}
        )

        assert response.status_code == 422
        body = response.json()
        assert body["error"] == "validation_error"
        assert body["detail"]

    def test_unknown_route(self, client):
        response = client.get("/no-such-thing")

        assert response.status_code == 404
        assert response.json()["error"] == "not_found"


# =============================================================================
# Flows
# =============================================================================


class TestDocumentFlow:
    def test_estimate_to_paid_invoice(self, client, created_estimate):
        estimate_id = created_estimate["id"]
        assert created_estimate["total"] == pytest.approx(237.30)

        client.post(f"/estimates/{estimate_id}/send")
        client.post(f"/estimates/{estimate_id}/approve")
        work_order = client.post(f"/estimates/{estimate_id}/convert", json={"mileage_in": 5}).json()
        assert work_order["estimate_id"] == estimate_id

        invoice_response = client.post(
            f"/work-orders/{work_order['id']}/generate-invoice", json={"send": True}
        )
        assert invoice_response.status_code == 201
        invoice = invoice_response.json()
        assert invoice["status"] == "sent"
        assert invoice["total"] == pytest.approx(237.30)

        payment_response = client.post(
            "/payments", json={"invoice_id": invoice["id"], "amount": 100, "method": "debit_card"}
        )
        assert payment_response.status_code == 201
        assert payment_response.json()["invoice"]["status"] == "partial"

        result = client.post(
            "/payments",
            json={"invoice_id": invoice["id"], "amount": 137.30, "method": "credit_card"},
        ).json()
        assert result["invoice"]["status"] == "paid"
        assert result["invoice"]["amount_due"] == 0

        overpay = client.post(
            "/payments", json={"invoice_id": invoice["id"], "amount": 1, "method": "cash"}
        )
        assert overpay.status_code == 400

    def test_work_order_status_endpoint(self, client, customer, vehicle):
        work_order = client.post(
            "/work-orders",
            json={"customer_id": customer.id, "vehicle_id": vehicle.id, "mileage_in": 42000},
        ).json()

        response = client.patch(f"/work-orders/{work_order['id']}/status", json={"status": "completed"})
        assert response.status_code == 400
        assert response.json()["error"] == "invalid_transition"

        response = client.patch(f"/work-orders/{work_order['id']}/status", json={"status": "in_progress"})
        assert response.status_code == 200
        assert response.json()["started_at"] is not None

    def test_delete_work_order(self, client, customer, vehicle):
        work_order = client.post(
            "/work-orders",
            json={"customer_id": customer.id, "vehicle_id": vehicle.id, "mileage_in": 42000},
        ).json()

        response = client.delete(f"/work-orders/{work_order['id']}")

        assert response.status_code == 200
        assert client.get(f"/work-orders/{work_order['id']}").status_code == 404


class TestSchedulingEndpoints:
    def test_book_and_list_slots(self, client, customer, vehicle, next_monday):
        booking = {
            "customer_id": customer.id,
            "vehicle_id": vehicle.id,
            "service_type": "oil_change",
            "scheduled_date": next_monday.isoformat(),
            "scheduled_time": "10:00",
        }

        assert client.post("/appointments", json=booking).status_code == 201
        taken = client.post("/appointments", json=booking)
        assert taken.status_code == 400
        assert taken.json()["message"] == "This time slot is not available"

        slots = client.get("/appointments/slots", params={"date": next_monday.isoformat()}).json()
        assert "10:00" not in slots["slots"]
        assert len(slots["slots"]) == 19

    def test_cancel_without_body(self, client, customer, vehicle, next_monday):
        appointment = client.post(
            "/appointments",
            json={
                "customer_id": customer.id,
                "vehicle_id": vehicle.id,
                "service_type": "inspection",
                "scheduled_date": next_monday.isoformat(),
                "scheduled_time": "09:00",
            },
        ).json()

        response = client.post(f"/appointments/{appointment['id']}/cancel")

        assert response.status_code == 200
        assert response.json()["status"] == "cancelled"


class TestOperationalEndpoints:
    def test_health(self, client):
        assert client.get("/health").json() == {"status": "healthy"}

    def test_run_automation(self, client):
        response = client.post("/status/automation/run")

        assert response.status_code == 200
        assert response.json() == {
            "invoices_to_overdue": 0,
            "estimates_to_expired": 0,
            "total_updated": 0,
        }

    def test_status_analytics(self, client, created_estimate):
        response = client.get("/status/analytics")

        assert response.status_code == 200
        assert response.json()["estimates"] == {"draft": 1}
