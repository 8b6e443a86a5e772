"""Supabase repository adapter.

Plain reads and writes go through PostgREST table queries. Anything that
must be atomic goes through a SQL function (see supabase/migrations) or a
filtered UPDATE so the check and the write happen in one statement:

- reserve_stock / release_stock: the only writers of products.stock
- create_order_with_items: order header and lines in one transaction
- status changes: UPDATE ... WHERE id = ? AND status = ?
"""

import logging
from datetime import datetime
from decimal import Decimal
from typing import Any

from supabase import Client

from src.core.supabase import get_supabase_client
from src.models.cart import Cart, CartItem, CartItemWithProduct
from src.models.order import Order, OrderCreate, OrderItem, OrderItemCreate, OrderUpdate
from src.models.payment import Payment, PaymentCreate, PaymentUpdate
from src.models.product import Product
from src.repositories.base import (
    CartRepository,
    OrderRepository,
    PaymentRepository,
    ProductRepository,
    Repositories,
)

logger = logging.getLogger(__name__)

_DECIMAL_COLUMNS = ("price", "total_amount", "amount", "refund_amount")
_TIMESTAMP_COLUMNS = ("created_at", "updated_at")


def _to_db(data: dict[str, Any]) -> dict[str, Any]:
    """Make a row JSON-safe for PostgREST (numeric columns as strings)."""
    return {
        key: str(value) if isinstance(value, Decimal) else value
        for key, value in data.items()
    }


def _from_db(row: dict[str, Any]) -> dict[str, Any]:
    """Convert JSON numbers back to Decimal and ISO strings to datetime."""
    result = dict(row)
    for column in _DECIMAL_COLUMNS:
        if result.get(column) is not None:
            result[column] = Decimal(str(result[column]))
    for column in _TIMESTAMP_COLUMNS:
        if isinstance(result.get(column), str):
            result[column] = datetime.fromisoformat(result[column])
    return result


def _first(data: Any) -> dict[str, Any] | None:
    if isinstance(data, list):
        return _from_db(data[0]) if data else None
    if isinstance(data, dict):
        return _from_db(data)
    return None


class SupabaseProductRepository(ProductRepository):
    def __init__(self, client: Client) -> None:
        self.client = client

    async def get(self, product_id: str) -> Product | None:
        response = (
            self.client.table("products")
            .select("id, name, price, stock, image_url, created_at, updated_at")
            .eq("id", str(product_id))
            .limit(1)
            .execute()
        )
        return _first(response.data)  # type: ignore[return-value]

    async def reserve_stock(self, product_id: str, quantity: int) -> int | None:
        response = self.client.rpc(
            "reserve_stock",
            {"p_product_id": str(product_id), "p_quantity": quantity},
        ).execute()
        return response.data if isinstance(response.data, int) else None

    async def release_stock(self, product_id: str, quantity: int) -> int | None:
        response = self.client.rpc(
            "release_stock",
            {"p_product_id": str(product_id), "p_quantity": quantity},
        ).execute()
        return response.data if isinstance(response.data, int) else None


class SupabaseCartRepository(CartRepository):
    def __init__(self, client: Client) -> None:
        self.client = client

    async def get_cart(self, user_id: str) -> Cart | None:
        response = (
            self.client.table("carts")
            .select("*")
            .eq("user_id", str(user_id))
            .limit(1)
            .execute()
        )
        return _first(response.data)  # type: ignore[return-value]

    async def get_or_create_cart(self, user_id: str) -> Cart:
        # carts.user_id is unique, so concurrent first-adds converge on one row
        response = (
            self.client.table("carts")
            .upsert({"user_id": str(user_id)}, on_conflict="user_id", ignore_duplicates=True)
            .execute()
        )
        cart = _first(response.data)
        if cart is None:
            cart = await self.get_cart(user_id)
        if cart is None:
            raise RuntimeError(f"Failed to create cart for user {user_id}")
        return cart  # type: ignore[return-value]

    async def list_items(self, cart_id: str) -> list[CartItemWithProduct]:
        response = (
            self.client.table("cart_items")
            .select("*, product:products(id, name, price, stock, image_url, created_at, updated_at)")
            .eq("cart_id", str(cart_id))
            .order("created_at")
            .execute()
        )
        items: list[CartItemWithProduct] = []
        for row in response.data or []:
            item = _from_db(row)
            if item.get("product"):
                item["product"] = _from_db(item["product"])
            items.append(item)  # type: ignore[arg-type]
        return items

    async def get_item(self, cart_id: str, product_id: str) -> CartItem | None:
        response = (
            self.client.table("cart_items")
            .select("*")
            .eq("cart_id", str(cart_id))
            .eq("product_id", str(product_id))
            .limit(1)
            .execute()
        )
        return _first(response.data)  # type: ignore[return-value]

    async def upsert_item(self, cart_id: str, product_id: str, quantity: int, price: Decimal) -> CartItem:
        response = (
            self.client.table("cart_items")
            .upsert(
                _to_db(
                    {
                        "cart_id": str(cart_id),
                        "product_id": str(product_id),
                        "quantity": quantity,
                        "price": price,
                    }
                ),
                on_conflict="cart_id,product_id",
            )
            .execute()
        )
        return _first(response.data)  # type: ignore[return-value]

    async def remove_item(self, cart_id: str, product_id: str) -> bool:
        response = (
            self.client.table("cart_items")
            .delete()
            .eq("cart_id", str(cart_id))
            .eq("product_id", str(product_id))
            .execute()
        )
        return bool(response.data)

    async def clear(self, cart_id: str) -> int:
        response = self.client.table("cart_items").delete().eq("cart_id", str(cart_id)).execute()
        return len(response.data or [])


class SupabaseOrderRepository(OrderRepository):
    def __init__(self, client: Client) -> None:
        self.client = client

    async def create_with_items(self, order: OrderCreate, items: list[OrderItemCreate]) -> Order:
        response = self.client.rpc(
            "create_order_with_items",
            {
                "p_order": _to_db(dict(order)),
                "p_items": [_to_db(dict(item)) for item in items],
            },
        ).execute()
        row = _first(response.data)
        if row is None:
            raise RuntimeError("create_order_with_items returned no row")
        return row  # type: ignore[return-value]

    async def get(self, order_id: str) -> Order | None:
        response = self.client.table("orders").select("*").eq("id", str(order_id)).limit(1).execute()
        return _first(response.data)  # type: ignore[return-value]

    async def get_items(self, order_id: str) -> list[OrderItem]:
        response = self.client.table("order_items").select("*").eq("order_id", str(order_id)).execute()
        return [_from_db(row) for row in response.data or []]  # type: ignore[misc]

    async def list_for_user(self, user_id: str) -> list[Order]:
        response = (
            self.client.table("orders")
            .select("*")
            .eq("user_id", str(user_id))
            .order("created_at", desc=True)
            .execute()
        )
        return [_from_db(row) for row in response.data or []]  # type: ignore[misc]

    async def list_all(self) -> list[Order]:
        response = self.client.table("orders").select("*").order("created_at", desc=True).execute()
        return [_from_db(row) for row in response.data or []]  # type: ignore[misc]

    async def compare_and_set_status(
        self, order_id: str, expected_status: str, update: OrderUpdate
    ) -> Order | None:
        response = (
            self.client.table("orders")
            .update(_to_db(dict(update)))
            .eq("id", str(order_id))
            .eq("status", expected_status)
            .execute()
        )
        return _first(response.data)  # type: ignore[return-value]


class SupabasePaymentRepository(PaymentRepository):
    def __init__(self, client: Client) -> None:
        self.client = client

    async def create(self, payment: PaymentCreate) -> Payment:
        response = self.client.table("payments").insert(_to_db(dict(payment))).execute()
        row = _first(response.data)
        if row is None:
            raise RuntimeError("Payment insert returned no row")
        return row  # type: ignore[return-value]

    async def get_latest_for_order(self, order_id: str) -> Payment | None:
        response = (
            self.client.table("payments")
            .select("*")
            .eq("order_id", str(order_id))
            .order("created_at", desc=True)
            .limit(1)
            .execute()
        )
        return _first(response.data)  # type: ignore[return-value]

    async def get_by_transaction_ref(self, transaction_ref: str) -> Payment | None:
        response = (
            self.client.table("payments")
            .select("*")
            .eq("transaction_ref", transaction_ref)
            .limit(1)
            .execute()
        )
        return _first(response.data)  # type: ignore[return-value]

    async def transition_status(
        self, payment_id: str, expected_status: str, update: PaymentUpdate
    ) -> Payment | None:
        response = (
            self.client.table("payments")
            .update(_to_db(dict(update)))
            .eq("id", str(payment_id))
            .eq("status", expected_status)
            .execute()
        )
        return _first(response.data)  # type: ignore[return-value]


def create_supabase_repositories(client: Client | None = None) -> Repositories:
    """Build a repository bundle over the shared Supabase client."""
    client = client or get_supabase_client()
    return Repositories(
        products=SupabaseProductRepository(client),
        carts=SupabaseCartRepository(client),
        orders=SupabaseOrderRepository(client),
        payments=SupabasePaymentRepository(client),
    )
