"""Repository ports for the storefront tables.

Services depend on these interfaces only. The Supabase adapter is used in
deployed environments; the in-memory adapter backs local development and
the test suite. Both must keep the stock check-and-decrement and the order
status compare-and-set atomic.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from decimal import Decimal

from src.models.cart import Cart, CartItem, CartItemWithProduct
from src.models.order import Order, OrderCreate, OrderItem, OrderItemCreate, OrderUpdate
from src.models.payment import Payment, PaymentCreate, PaymentUpdate
from src.models.product import Product


class ProductRepository(ABC):
    """Read access to products plus the atomic stock counter."""

    @abstractmethod
    async def get(self, product_id: str) -> Product | None:
        """Fetch the current product row."""
        ...

    @abstractmethod
    async def reserve_stock(self, product_id: str, quantity: int) -> int | None:
        """Decrement stock by quantity only if stock >= quantity.

        Returns:
            int | None: Remaining stock, or None when the product is missing
            or has too little stock. Nothing is written in the None case.
        """
        ...

    @abstractmethod
    async def release_stock(self, product_id: str, quantity: int) -> int | None:
        """Increment stock by quantity.

        Returns:
            int | None: New stock level, or None if the product is missing.
        """
        ...


class CartRepository(ABC):
    """Per-user cart storage."""

    @abstractmethod
    async def get_cart(self, user_id: str) -> Cart | None:
        ...

    @abstractmethod
    async def get_or_create_cart(self, user_id: str) -> Cart:
        ...

    @abstractmethod
    async def list_items(self, cart_id: str) -> list[CartItemWithProduct]:
        """List cart lines joined with their current product rows."""
        ...

    @abstractmethod
    async def get_item(self, cart_id: str, product_id: str) -> CartItem | None:
        ...

    @abstractmethod
    async def upsert_item(self, cart_id: str, product_id: str, quantity: int, price: Decimal) -> CartItem:
        """Insert a line or overwrite quantity and price of the existing one."""
        ...

    @abstractmethod
    async def remove_item(self, cart_id: str, product_id: str) -> bool:
        ...

    @abstractmethod
    async def clear(self, cart_id: str) -> int:
        """Delete every line of the cart. Returns the number removed."""
        ...


class OrderRepository(ABC):
    """Order header and line storage."""

    @abstractmethod
    async def create_with_items(self, order: OrderCreate, items: list[OrderItemCreate]) -> Order:
        """Write the header and all lines as one unit."""
        ...

    @abstractmethod
    async def get(self, order_id: str) -> Order | None:
        ...

    @abstractmethod
    async def get_items(self, order_id: str) -> list[OrderItem]:
        ...

    @abstractmethod
    async def list_for_user(self, user_id: str) -> list[Order]:
        """Orders for one user, newest first."""
        ...

    @abstractmethod
    async def list_all(self) -> list[Order]:
        """All orders, newest first."""
        ...

    @abstractmethod
    async def compare_and_set_status(
        self, order_id: str, expected_status: str, update: OrderUpdate
    ) -> Order | None:
        """Apply update only if the stored status still equals expected_status.

        Returns:
            Order | None: The updated row, or None if the status moved on.
        """
        ...


class PaymentRepository(ABC):
    """Gateway payment records."""

    @abstractmethod
    async def create(self, payment: PaymentCreate) -> Payment:
        ...

    @abstractmethod
    async def get_latest_for_order(self, order_id: str) -> Payment | None:
        ...

    @abstractmethod
    async def get_by_transaction_ref(self, transaction_ref: str) -> Payment | None:
        ...

    @abstractmethod
    async def transition_status(
        self, payment_id: str, expected_status: str, update: PaymentUpdate
    ) -> Payment | None:
        """Apply update only if the stored status still equals expected_status."""
        ...


@dataclass
class Repositories:
    """Bundle of repositories sharing one backend."""

    products: ProductRepository
    carts: CartRepository
    orders: OrderRepository
    payments: PaymentRepository
