"""Order model type definitions for database operations."""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import TypedDict


class OrderStatus(str, Enum):
    """Order status values matching the database enum."""

    PENDING = "pending"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class PaymentMethod(str, Enum):
    """How the customer pays for an order."""

    COD = "cod"
    BANK = "bank"


class OrderItem(TypedDict):
    """Order item row. Immutable once written."""

    id: str
    order_id: str
    product_id: str
    quantity: int
    price: Decimal
    created_at: datetime


class Order(TypedDict):
    """Order table row representation.

    total_amount is frozen at creation; status, note, payment_proof and
    stock_released are the only columns changed afterwards. stock_released
    is set when a cancellation returned the order's stock to inventory.
    """

    id: str
    user_id: str
    total_amount: Decimal
    shipping_address: str
    name: str
    phone: str
    note: str | None
    payment_method: str
    payment_proof: str | None
    status: str
    stock_released: bool
    created_at: datetime
    updated_at: datetime


class OrderItemCreate(TypedDict):
    """Data for one order line written together with its order."""

    product_id: str
    quantity: int
    price: Decimal


class OrderCreate(TypedDict, total=False):
    """Data required to create a new order."""

    user_id: str
    total_amount: Decimal
    shipping_address: str
    name: str
    phone: str
    note: str | None
    payment_method: str
    payment_proof: str | None
    status: str


class OrderUpdate(TypedDict, total=False):
    """Columns that may change after an order is created."""

    status: str
    note: str | None
    payment_proof: str | None
    stock_released: bool
