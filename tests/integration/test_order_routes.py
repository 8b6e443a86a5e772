"""Integration tests for order and admin endpoints."""

from typing import Any

from fastapi.testclient import TestClient

CHECKOUT_BODY = {
    "shipping_address": "12 Harbour Road",
    "phone": "0900000000",
    "name": "Jane Buyer",
}


def place_order(client: TestClient, headers: dict, product_id: str, **overrides: Any) -> dict[str, Any]:
    client.post("/api/v1/cart", json={"product_id": product_id, "quantity": 2}, headers=headers)
    response = client.post("/api/v1/checkout", json={**CHECKOUT_BODY, **overrides}, headers=headers)
    assert response.status_code == 201
    return response.json()


class TestOrderQueries:
    """Tests for GET /api/v1/orders."""

    def test_list_and_get(self, client: TestClient, user_headers: dict, product: dict) -> None:
        order = place_order(client, user_headers, product["id"])

        listed = client.get("/api/v1/orders", headers=user_headers)
        single = client.get(f"/api/v1/orders/{order['id']}", headers=user_headers)

        assert listed.status_code == 200
        assert [o["id"] for o in listed.json()["items"]] == [order["id"]]
        assert single.json()["items"][0]["product_id"] == product["id"]

    def test_other_user_cannot_view(
        self, client: TestClient, user_headers: dict, other_headers: dict, product: dict
    ) -> None:
        order = place_order(client, user_headers, product["id"])

        response = client.get(f"/api/v1/orders/{order['id']}", headers=other_headers)

        assert response.status_code == 403
        assert client.get("/api/v1/orders", headers=other_headers).json()["items"] == []

    def test_missing_order_is_404(self, client: TestClient, user_headers: dict) -> None:
        response = client.get("/api/v1/orders/00000000-0000-0000-0000-000000000000", headers=user_headers)

        assert response.status_code == 404


class TestStatusUpdates:
    """Tests for PUT /api/v1/orders/{id}/status."""

    def test_owner_cancel_restores_stock(
        self, client: TestClient, user_headers: dict, product: dict, store: Any
    ) -> None:
        """Test checkout 2 of 5 then cancel: stock 3 then 5."""
        order = place_order(client, user_headers, product["id"])
        assert store.products[product["id"]]["stock"] == 3

        response = client.put(
            f"/api/v1/orders/{order['id']}/status", json={"status": "cancelled"}, headers=user_headers
        )

        assert response.status_code == 200
        assert response.json()["order"]["status"] == "cancelled"
        assert store.products[product["id"]]["stock"] == 5

    def test_bank_cancel_returns_refund_instruction(
        self, client: TestClient, user_headers: dict, product: dict
    ) -> None:
        order = place_order(client, user_headers, product["id"], payment_method="bank")

        response = client.put(
            f"/api/v1/orders/{order['id']}/status", json={"status": "cancelled"}, headers=user_headers
        )

        assert response.status_code == 200
        assert "refund" in response.json()["message"]

    def test_bank_with_proof_is_403_for_owner_but_admin_can_cancel(
        self, client: TestClient, user_headers: dict, admin_headers: dict, product: dict
    ) -> None:
        order = place_order(
            client, user_headers, product["id"], payment_method="bank", payment_proof_ref="uploads/p.png"
        )

        denied = client.put(
            f"/api/v1/orders/{order['id']}/status", json={"status": "cancelled"}, headers=user_headers
        )
        allowed = client.put(
            f"/api/v1/admin/orders/{order['id']}/status", json={"status": "cancelled"}, headers=admin_headers
        )

        assert denied.status_code == 403
        assert allowed.status_code == 200
        assert allowed.json()["order"]["status"] == "cancelled"

    def test_cancel_delivered_is_409(
        self, client: TestClient, user_headers: dict, admin_headers: dict, product: dict
    ) -> None:
        order = place_order(client, user_headers, product["id"])
        client.put(
            f"/api/v1/admin/orders/{order['id']}/status", json={"status": "delivered"}, headers=admin_headers
        )

        response = client.put(
            f"/api/v1/orders/{order['id']}/status", json={"status": "cancelled"}, headers=user_headers
        )

        assert response.status_code == 409
        assert response.json()["error"] == "illegal_transition"

    def test_owner_cannot_ship(self, client: TestClient, user_headers: dict, product: dict) -> None:
        order = place_order(client, user_headers, product["id"])

        response = client.put(
            f"/api/v1/orders/{order['id']}/status", json={"status": "shipped"}, headers=user_headers
        )

        assert response.status_code == 403

    def test_unknown_status_is_400(self, client: TestClient, user_headers: dict, product: dict) -> None:
        order = place_order(client, user_headers, product["id"])

        response = client.put(
            f"/api/v1/orders/{order['id']}/status", json={"status": "lost"}, headers=user_headers
        )

        assert response.status_code == 400

    def test_attach_payment_proof(self, client: TestClient, user_headers: dict, product: dict) -> None:
        order = place_order(client, user_headers, product["id"], payment_method="bank")

        response = client.put(
            f"/api/v1/orders/{order['id']}/payment-proof",
            json={"payment_proof_ref": "uploads/transfer.jpg"},
            headers=user_headers,
        )

        assert response.status_code == 200
        assert response.json()["payment_proof"] == "uploads/transfer.jpg"


class TestAdminRoutes:
    """Tests for /api/v1/admin."""

    def test_admin_lists_all_orders(
        self, client: TestClient, user_headers: dict, other_headers: dict, admin_headers: dict, store: Any
    ) -> None:
        first = store.add_product("Chair", "20.00", 10)
        a = place_order(client, user_headers, first["id"])
        b = place_order(client, other_headers, first["id"])

        response = client.get("/api/v1/admin/orders", headers=admin_headers)

        assert response.status_code == 200
        assert [o["id"] for o in response.json()["items"]] == [b["id"], a["id"]]

    def test_admin_cancel_of_delivered_order_keeps_stock(
        self, client: TestClient, user_headers: dict, admin_headers: dict, product: dict, store: Any
    ) -> None:
        order = place_order(client, user_headers, product["id"])
        for target in ("delivered", "cancelled"):
            response = client.put(
                f"/api/v1/admin/orders/{order['id']}/status", json={"status": target}, headers=admin_headers
            )
            assert response.status_code == 200

        assert response.json()["order"]["status"] == "cancelled"
        assert store.products[product["id"]]["stock"] == 3

    def test_non_admin_forbidden(self, client: TestClient, user_headers: dict) -> None:
        assert client.get("/api/v1/admin/orders", headers=user_headers).status_code == 403
