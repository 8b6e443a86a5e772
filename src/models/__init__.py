"""Database model type definitions."""

from src.models.cart import Cart, CartItem, CartItemWithProduct
from src.models.order import (
    Order,
    OrderCreate,
    OrderItem,
    OrderItemCreate,
    OrderStatus,
    OrderUpdate,
    PaymentMethod,
)
from src.models.payment import Payment, PaymentCreate, PaymentStatus, PaymentUpdate
from src.models.product import Product

__all__ = [
    "Cart",
    "CartItem",
    "CartItemWithProduct",
    "Order",
    "OrderCreate",
    "OrderItem",
    "OrderItemCreate",
    "OrderStatus",
    "OrderUpdate",
    "Payment",
    "PaymentCreate",
    "PaymentMethod",
    "PaymentStatus",
    "PaymentUpdate",
    "Product",
]
