"""Integration tests for cart and checkout endpoints."""

from typing import Any

from fastapi.testclient import TestClient

CHECKOUT_BODY = {
    "shipping_address": "12 Harbour Road",
    "phone": "0900000000",
    "name": "Jane Buyer",
    "payment_method": "cod",
}


class TestCartRoutes:
    """Tests for /api/v1/cart."""

    def test_requires_auth(self, client: TestClient) -> None:
        assert client.get("/api/v1/cart").status_code == 401

    def test_empty_cart(self, client: TestClient, user_headers: dict) -> None:
        response = client.get("/api/v1/cart", headers=user_headers)

        assert response.status_code == 200
        assert response.json()["items"] == []
        assert response.json()["cart_id"] is None

    def test_add_update_remove(self, client: TestClient, user_headers: dict, product: dict) -> None:
        added = client.post(
            "/api/v1/cart", json={"product_id": product["id"], "quantity": 2}, headers=user_headers
        )
        assert added.status_code == 201
        assert added.json()["items"][0]["quantity"] == 2
        assert added.json()["items"][0]["product"]["name"] == "Desk lamp"

        updated = client.put(f"/api/v1/cart/{product['id']}", json={"quantity": 4}, headers=user_headers)
        assert updated.status_code == 200
        assert updated.json()["items"][0]["quantity"] == 4

        removed = client.delete(f"/api/v1/cart/{product['id']}", headers=user_headers)
        assert removed.status_code == 200
        assert removed.json()["items"] == []

    def test_add_beyond_stock_is_409(self, client: TestClient, user_headers: dict, product: dict) -> None:
        response = client.post(
            "/api/v1/cart", json={"product_id": product["id"], "quantity": 6}, headers=user_headers
        )

        assert response.status_code == 409
        assert response.json()["error"] == "insufficient_stock"

    def test_zero_quantity_is_422(self, client: TestClient, user_headers: dict, product: dict) -> None:
        response = client.post(
            "/api/v1/cart", json={"product_id": product["id"], "quantity": 0}, headers=user_headers
        )

        assert response.status_code == 422

    def test_clear(self, client: TestClient, user_headers: dict, product: dict) -> None:
        client.post("/api/v1/cart", json={"product_id": product["id"]}, headers=user_headers)

        assert client.delete("/api/v1/cart", headers=user_headers).status_code == 204
        assert client.get("/api/v1/cart", headers=user_headers).json()["items"] == []


class TestCheckoutRoute:
    """Tests for POST /api/v1/checkout."""

    def test_checkout_creates_order(
        self, client: TestClient, user_headers: dict, product: dict, store: Any
    ) -> None:
        client.post("/api/v1/cart", json={"product_id": product["id"], "quantity": 2}, headers=user_headers)

        response = client.post("/api/v1/checkout", json=CHECKOUT_BODY, headers=user_headers)

        assert response.status_code == 201
        data = response.json()
        assert data["status"] == "pending"
        assert data["total_amount"] == "200.00"
        assert data["items"][0]["quantity"] == 2
        assert store.products[product["id"]]["stock"] == 3
        assert client.get("/api/v1/cart", headers=user_headers).json()["items"] == []

    def test_empty_cart_is_400(self, client: TestClient, user_headers: dict) -> None:
        response = client.post("/api/v1/checkout", json=CHECKOUT_BODY, headers=user_headers)

        assert response.status_code == 400
        assert response.json()["message"] == "Cart is empty"

    def test_blank_shipping_field_is_400(
        self, client: TestClient, user_headers: dict, product: dict, store: Any
    ) -> None:
        client.post("/api/v1/cart", json={"product_id": product["id"]}, headers=user_headers)

        response = client.post(
            "/api/v1/checkout", json={**CHECKOUT_BODY, "phone": " "}, headers=user_headers
        )

        assert response.status_code == 400
        assert response.json()["error"] == "validation_error"
        assert store.orders == {}

    def test_stock_gone_is_409_and_nothing_changes(
        self, client: TestClient, user_headers: dict, product: dict, store: Any
    ) -> None:
        client.post("/api/v1/cart", json={"product_id": product["id"], "quantity": 3}, headers=user_headers)
        store.products[product["id"]]["stock"] = 2
        before = store.snapshot()

        response = client.post("/api/v1/checkout", json=CHECKOUT_BODY, headers=user_headers)

        assert response.status_code == 409
        assert response.json()["error"] == "insufficient_stock"
        assert store.snapshot() == before
