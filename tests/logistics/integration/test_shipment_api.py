"""Integration tests for the shipment and user API via TestClient."""

NEW_YORK = {"lat": 40.7128, "lng": -74.0060, "city": "New York"}
LOS_ANGELES = {"lat": 34.0522, "lng": -118.2437, "city": "Los Angeles"}


def _create(client, customer_id, **overrides):
    body = {
        "customer_id": customer_id,
        "weight": 25,
        "origin": NEW_YORK,
        "destination": LOS_ANGELES,
        "urgency": "standard",
    }
    body.update(overrides)
    return client.post("/shipments", json=body)


class TestUsersAPI:
    def test_register_returns_201(self, client):
        response = client.post(
            "/users",
            json={"name": "Dee", "email": "dee@example.com", "role": "DRIVER", "license_number": "DL-1"},
        )
        assert response.status_code == 201
        assert "user_id" in response.json()

    def test_invalid_role_returns_400(self, client):
        response = client.post("/users", json={"name": "X", "email": "x@example.com", "role": "PIRATE"})
        assert response.status_code == 400


class TestCreateShipmentAPI:
    def test_sync_creation_returns_201(self, client, api_customer):
        response = _create(client, api_customer)
        assert response.status_code == 201
        body = response.json()
        assert body["job_id"] is None
        assert body["shipment"]["status"] == "ASSIGNED"
        assert body["shipment"]["cost"] > 0
        assert len(body["shipment"]["tracking_history"]) >= 1

    def test_async_creation_returns_202(self, client, api_customer, executor):
        executor.configure(available=True)
        response = _create(client, api_customer)
        assert response.status_code == 202
        body = response.json()
        assert body["job_id"].startswith("job_")
        assert body["shipment"]["status"] == "PENDING"

    def test_zero_weight_returns_400(self, client, api_customer):
        assert _create(client, api_customer, weight=0).status_code == 400

    def test_out_of_range_latitude_returns_400(self, client, api_customer):
        response = _create(client, api_customer, origin={"lat": 91, "lng": 0})
        assert response.status_code == 400

    def test_missing_coordinates_return_400(self, client, api_customer):
        response = _create(client, api_customer, destination={"city": "Nowhere"})
        assert response.status_code == 400

    def test_unknown_urgency_returns_400(self, client, api_customer):
        assert _create(client, api_customer, urgency="whenever").status_code == 400

    def test_unknown_customer_returns_404(self, client):
        assert _create(client, "no-such-customer").status_code == 404


class TestShipmentLifecycleAPI:
    def test_get_shipment(self, client, api_customer):
        shipment_id = _create(client, api_customer).json()["shipment"]["id"]
        response = client.get(f"/shipments/{shipment_id}")
        assert response.status_code == 200
        assert response.json()["current_location"]["city"] == "New York"

    def test_get_unknown_shipment_returns_404(self, client):
        assert client.get("/shipments/does-not-exist").status_code == 404

    def test_dispatch_then_cancel(self, client, api_customer):
        shipment_id = _create(client, api_customer).json()["shipment"]["id"]
        assert client.put(f"/shipments/{shipment_id}/dispatch").json()["status"] == "IN_TRANSIT"
        response = client.put(f"/shipments/{shipment_id}/cancel", json={"reason": "Lost pallet"})
        assert response.status_code == 200
        assert response.json()["status"] == "CANCELLED"

    def test_invalid_transition_returns_400(self, client, api_customer):
        shipment_id = _create(client, api_customer).json()["shipment"]["id"]
        client.put(f"/shipments/{shipment_id}/cancel", json={})
        assert client.put(f"/shipments/{shipment_id}/dispatch").status_code == 400

    def test_assign_ship(self, client, api_customer, executor):
        executor.configure(available=True)
        shipment_id = _create(client, api_customer, weight=30000, urgency="low").json()["shipment"]["id"]
        ship = client.post("/vehicles", json={"vehicle_type": "SHIP", "position": NEW_YORK}).json()
        response = client.put(f"/shipments/{shipment_id}/assign", json={"vehicle_id": ship["id"]})
        assert response.status_code == 200
        assert response.json()["recommended_vehicle_type"] == "SHIP"

    def test_capacity_exceeded_returns_400(self, client, api_customer, executor):
        executor.configure(available=True)
        shipment_id = _create(client, api_customer, weight=100).json()["shipment"]["id"]
        drone = client.post("/vehicles", json={"vehicle_type": "DRONE"}).json()
        response = client.put(f"/shipments/{shipment_id}/assign", json={"vehicle_id": drone["id"]})
        assert response.status_code == 400


class TestShipmentAdjustmentsAPI:
    def test_insurance_on_pending_shipment(self, client, api_customer, executor):
        executor.configure(available=True)
        shipment_id = _create(client, api_customer).json()["shipment"]["id"]
        response = client.put(f"/shipments/{shipment_id}/insurance", json={"insurance_value": 500})
        assert response.status_code == 200
        assert client.get(f"/shipments/{shipment_id}").json()["is_insured"] is True

    def test_negative_insurance_returns_400(self, client, api_customer, executor):
        executor.configure(available=True)
        shipment_id = _create(client, api_customer).json()["shipment"]["id"]
        response = client.put(f"/shipments/{shipment_id}/insurance", json={"insurance_value": -1})
        assert response.status_code == 400

    def test_add_note(self, client, api_customer):
        shipment_id = _create(client, api_customer).json()["shipment"]["id"]
        response = client.post(f"/shipments/{shipment_id}/notes", json={"note": "Leave at dock 3"})
        assert response.status_code == 201
        assert response.json()["note"].endswith("Leave at dock 3")

    def test_empty_note_returns_400(self, client, api_customer):
        shipment_id = _create(client, api_customer).json()["shipment"]["id"]
        assert client.post(f"/shipments/{shipment_id}/notes", json={"note": "  "}).status_code == 400

    def test_payment_and_refund(self, client, api_customer):
        shipment_id = _create(client, api_customer).json()["shipment"]["id"]
        payment = client.post(f"/shipments/{shipment_id}/payments", json={"amount": 99.5})
        assert payment.status_code == 201
        txn = payment.json()["transaction_id"]
        refund = client.post(f"/shipments/{shipment_id}/refunds", json={"transaction_id": txn, "amount": 9.5})
        assert refund.status_code == 201
        assert refund.json()["transaction_id"].startswith("REF-")

    def test_refund_too_much_returns_400(self, client, api_customer):
        shipment_id = _create(client, api_customer).json()["shipment"]["id"]
        txn = client.post(f"/shipments/{shipment_id}/payments", json={"amount": 10}).json()["transaction_id"]
        response = client.post(f"/shipments/{shipment_id}/refunds", json={"transaction_id": txn, "amount": 11})
        assert response.status_code == 400

    def test_refund_unknown_payment_returns_404(self, client, api_customer):
        shipment_id = _create(client, api_customer).json()["shipment"]["id"]
        response = client.post(f"/shipments/{shipment_id}/refunds", json={"transaction_id": "TXN-nope"})
        assert response.status_code == 404

    def test_signature_before_delivery_returns_400(self, client, api_customer):
        shipment_id = _create(client, api_customer).json()["shipment"]["id"]
        response = client.put(f"/shipments/{shipment_id}/signature", json={"signature": "J. Doe"})
        assert response.status_code == 400
