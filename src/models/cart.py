"""Cart model type definitions for database operations."""

from datetime import datetime
from decimal import Decimal
from typing import TypedDict

from src.models.product import Product


class Cart(TypedDict):
    """Cart table row representation. One cart per user."""

    id: str
    user_id: str
    created_at: datetime
    updated_at: datetime


class CartItem(TypedDict):
    """Cart item row.

    The price is the product price at the time the line was added; checkout
    never trusts it.
    """

    id: str
    cart_id: str
    product_id: str
    quantity: int
    price: Decimal
    created_at: datetime
    updated_at: datetime


class CartItemWithProduct(CartItem):
    """Cart item joined with the current product row."""

    product: Product | None
