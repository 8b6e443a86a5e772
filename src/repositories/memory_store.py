"""In-memory repository adapter for development and testing.

All tables live in one InMemoryStore guarded by a single lock, so every
repository call is atomic with respect to concurrent requests. Rows are
copied on the way in and out so callers cannot mutate stored state.
"""

import copy
import logging
from datetime import datetime, timezone
from decimal import Decimal
from threading import Lock
from typing import Any
from uuid import uuid4

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


def _now() -> datetime:
    return datetime.now(timezone.utc)


class InMemoryStore:
    """Shared table storage for the in-memory repositories."""

    def __init__(self) -> None:
        self.lock = Lock()
        self.products: dict[str, Product] = {}
        self.carts: dict[str, Cart] = {}
        self.cart_items: dict[str, CartItem] = {}
        self.orders: dict[str, Order] = {}
        self.order_items: dict[str, OrderItem] = {}
        self.payments: dict[str, Payment] = {}
        self._sequence = 0

    def next_sequence(self) -> int:
        """Monotonic counter used to keep newest-first ordering stable."""
        self._sequence += 1
        return self._sequence

    def add_product(
        self,
        name: str,
        price: Decimal | str | int,
        stock: int,
        product_id: str | None = None,
        image_url: str | None = None,
    ) -> Product:
        """Insert a product row. Catalog management lives elsewhere; this is for seeding."""
        now = _now()
        product: Product = {
            "id": product_id or str(uuid4()),
            "name": name,
            "price": Decimal(str(price)),
            "stock": stock,
            "image_url": image_url,
            "created_at": now,
            "updated_at": now,
        }
        with self.lock:
            self.products[product["id"]] = product
        return copy.deepcopy(product)

    def set_price(self, product_id: str, price: Decimal | str | int) -> None:
        with self.lock:
            self.products[product_id]["price"] = Decimal(str(price))
            self.products[product_id]["updated_at"] = _now()

    def snapshot(self) -> dict[str, Any]:
        """Deep copy of every table, for before/after comparisons."""
        with self.lock:
            return copy.deepcopy(
                {
                    "products": self.products,
                    "carts": self.carts,
                    "cart_items": self.cart_items,
                    "orders": self.orders,
                    "order_items": self.order_items,
                    "payments": self.payments,
                }
            )


class InMemoryProductRepository(ProductRepository):
    def __init__(self, store: InMemoryStore) -> None:
        self.store = store

    async def get(self, product_id: str) -> Product | None:
        with self.store.lock:
            product = self.store.products.get(str(product_id))
            return copy.deepcopy(product) if product else None

    async def reserve_stock(self, product_id: str, quantity: int) -> int | None:
        with self.store.lock:
            product = self.store.products.get(str(product_id))
            if product is None or product["stock"] < quantity:
                return None
            product["stock"] -= quantity
            product["updated_at"] = _now()
            return product["stock"]

    async def release_stock(self, product_id: str, quantity: int) -> int | None:
        with self.store.lock:
            product = self.store.products.get(str(product_id))
            if product is None:
                return None
            product["stock"] += quantity
            product["updated_at"] = _now()
            return product["stock"]


class InMemoryCartRepository(CartRepository):
    def __init__(self, store: InMemoryStore) -> None:
        self.store = store

    async def get_cart(self, user_id: str) -> Cart | None:
        with self.store.lock:
            for cart in self.store.carts.values():
                if cart["user_id"] == str(user_id):
                    return copy.deepcopy(cart)
        return None

    async def get_or_create_cart(self, user_id: str) -> Cart:
        with self.store.lock:
            for cart in self.store.carts.values():
                if cart["user_id"] == str(user_id):
                    return copy.deepcopy(cart)
            now = _now()
            cart: Cart = {
                "id": str(uuid4()),
                "user_id": str(user_id),
                "created_at": now,
                "updated_at": now,
            }
            self.store.carts[cart["id"]] = cart
            return copy.deepcopy(cart)

    async def list_items(self, cart_id: str) -> list[CartItemWithProduct]:
        with self.store.lock:
            items = [
                item for item in self.store.cart_items.values() if item["cart_id"] == str(cart_id)
            ]
            items.sort(key=lambda item: item["created_at"])
            result: list[CartItemWithProduct] = []
            for item in items:
                joined = copy.deepcopy(item)
                product = self.store.products.get(item["product_id"])
                joined["product"] = copy.deepcopy(product) if product else None
                result.append(joined)
            return result

    async def get_item(self, cart_id: str, product_id: str) -> CartItem | None:
        with self.store.lock:
            item = self._find(str(cart_id), str(product_id))
            return copy.deepcopy(item) if item else None

    async def upsert_item(self, cart_id: str, product_id: str, quantity: int, price: Decimal) -> CartItem:
        with self.store.lock:
            now = _now()
            item = self._find(str(cart_id), str(product_id))
            if item is None:
                item = {
                    "id": str(uuid4()),
                    "cart_id": str(cart_id),
                    "product_id": str(product_id),
                    "quantity": quantity,
                    "price": price,
                    "created_at": now,
                    "updated_at": now,
                }
                self.store.cart_items[item["id"]] = item
            else:
                item["quantity"] = quantity
                item["price"] = price
                item["updated_at"] = now
            return copy.deepcopy(item)

    async def remove_item(self, cart_id: str, product_id: str) -> bool:
        with self.store.lock:
            item = self._find(str(cart_id), str(product_id))
            if item is None:
                return False
            del self.store.cart_items[item["id"]]
            return True

    async def clear(self, cart_id: str) -> int:
        with self.store.lock:
            doomed = [
                item_id
                for item_id, item in self.store.cart_items.items()
                if item["cart_id"] == str(cart_id)
            ]
            for item_id in doomed:
                del self.store.cart_items[item_id]
            return len(doomed)

    def _find(self, cart_id: str, product_id: str) -> CartItem | None:
        for item in self.store.cart_items.values():
            if item["cart_id"] == cart_id and item["product_id"] == product_id:
                return item
        return None


class InMemoryOrderRepository(OrderRepository):
    def __init__(self, store: InMemoryStore) -> None:
        self.store = store
        self._created_seq: dict[str, int] = {}

    async def create_with_items(self, order: OrderCreate, items: list[OrderItemCreate]) -> Order:
        with self.store.lock:
            now = _now()
            row: Order = {
                "id": str(uuid4()),
                "user_id": str(order["user_id"]),
                "total_amount": order["total_amount"],
                "shipping_address": order["shipping_address"],
                "name": order["name"],
                "phone": order["phone"],
                "note": order.get("note"),
                "payment_method": order["payment_method"],
                "payment_proof": order.get("payment_proof"),
                "status": order["status"],
                "stock_released": False,
                "created_at": now,
                "updated_at": now,
            }
            self.store.orders[row["id"]] = row
            self._created_seq[row["id"]] = self.store.next_sequence()
            for item in items:
                line: OrderItem = {
                    "id": str(uuid4()),
                    "order_id": row["id"],
                    "product_id": str(item["product_id"]),
                    "quantity": item["quantity"],
                    "price": item["price"],
                    "created_at": now,
                }
                self.store.order_items[line["id"]] = line
            return copy.deepcopy(row)

    async def get(self, order_id: str) -> Order | None:
        with self.store.lock:
            row = self.store.orders.get(str(order_id))
            return copy.deepcopy(row) if row else None

    async def get_items(self, order_id: str) -> list[OrderItem]:
        with self.store.lock:
            return [
                copy.deepcopy(item)
                for item in self.store.order_items.values()
                if item["order_id"] == str(order_id)
            ]

    async def list_for_user(self, user_id: str) -> list[Order]:
        with self.store.lock:
            rows = [row for row in self.store.orders.values() if row["user_id"] == str(user_id)]
            return self._newest_first(rows)

    async def list_all(self) -> list[Order]:
        with self.store.lock:
            return self._newest_first(list(self.store.orders.values()))

    async def compare_and_set_status(
        self, order_id: str, expected_status: str, update: OrderUpdate
    ) -> Order | None:
        with self.store.lock:
            row = self.store.orders.get(str(order_id))
            if row is None or row["status"] != expected_status:
                return None
            self._apply(row, update)
            return copy.deepcopy(row)

    def _apply(self, row: Order, update: OrderUpdate) -> None:
        for key in ("status", "note", "payment_proof", "stock_released"):
            if key in update:
                row[key] = update[key]  # type: ignore[literal-required]
        row["updated_at"] = _now()

    def _newest_first(self, rows: list[Order]) -> list[Order]:
        rows = sorted(rows, key=lambda row: self._created_seq.get(row["id"], 0), reverse=True)
        return copy.deepcopy(rows)


class InMemoryPaymentRepository(PaymentRepository):
    def __init__(self, store: InMemoryStore) -> None:
        self.store = store
        self._created_seq: dict[str, int] = {}

    async def create(self, payment: PaymentCreate) -> Payment:
        with self.store.lock:
            now = _now()
            row: Payment = {
                "id": str(uuid4()),
                "order_id": str(payment["order_id"]),
                "method": payment["method"],
                "transaction_ref": payment["transaction_ref"],
                "amount": payment["amount"],
                "status": payment.get("status", "pending"),
                "gateway_transaction_no": None,
                "refund_transaction_no": None,
                "refund_amount": None,
                "refund_reason": None,
                "created_at": now,
                "updated_at": now,
            }
            self.store.payments[row["id"]] = row
            self._created_seq[row["id"]] = self.store.next_sequence()
            return copy.deepcopy(row)

    async def get_latest_for_order(self, order_id: str) -> Payment | None:
        with self.store.lock:
            rows = [row for row in self.store.payments.values() if row["order_id"] == str(order_id)]
            if not rows:
                return None
            latest = max(rows, key=lambda row: self._created_seq.get(row["id"], 0))
            return copy.deepcopy(latest)

    async def get_by_transaction_ref(self, transaction_ref: str) -> Payment | None:
        with self.store.lock:
            for row in self.store.payments.values():
                if row["transaction_ref"] == transaction_ref:
                    return copy.deepcopy(row)
        return None

    async def transition_status(
        self, payment_id: str, expected_status: str, update: PaymentUpdate
    ) -> Payment | None:
        with self.store.lock:
            row = self.store.payments.get(str(payment_id))
            if row is None or row["status"] != expected_status:
                return None
            for key in (
                "status",
                "gateway_transaction_no",
                "refund_transaction_no",
                "refund_amount",
                "refund_reason",
            ):
                if key in update:
                    row[key] = update[key]  # type: ignore[literal-required]
            row["updated_at"] = _now()
            return copy.deepcopy(row)


def create_memory_repositories(store: InMemoryStore | None = None) -> Repositories:
    """Build a repository bundle over a (new or given) in-memory store."""
    store = store or InMemoryStore()
    logger.info("Using in-memory storage backend")
    return Repositories(
        products=InMemoryProductRepository(store),
        carts=InMemoryCartRepository(store),
        orders=InMemoryOrderRepository(store),
        payments=InMemoryPaymentRepository(store),
    )
