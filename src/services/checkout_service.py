"""Checkout: turns a cart into a pending order."""

import logging
from decimal import Decimal
from typing import Any

from src.api.middleware.error_handler import (
    InsufficientStockError,
    NotFoundError,
    ValidationError,
)
from src.core.storage import get_repositories
from src.models.order import OrderCreate, OrderItemCreate, OrderStatus, PaymentMethod
from src.repositories.base import Repositories
from src.schemas.auth import UserContext
from src.services.inventory_service import InventoryService, StockLine

logger = logging.getLogger(__name__)


class CheckoutService:
    """Orchestrates cart snapshot, stock reservation and order creation.

    The sequence is:

    1. snapshot the cart and re-validate every line against the live product
    2. price every line at the live product price
    3. reserve all lines (all or nothing)
    4. write the order header and lines as one unit
    5. clear the cart

    A failure before step 4 completes leaves stock, orders and the cart as
    they were. If writing the order fails, the reservations are released.
    """

    def __init__(
        self,
        repositories: Repositories | None = None,
        inventory: InventoryService | None = None,
    ) -> None:
        """Initialize checkout service with repositories and the inventory ledger."""
        repositories = repositories or get_repositories()
        self.carts = repositories.carts
        self.products = repositories.products
        self.orders = repositories.orders
        self.inventory = inventory or InventoryService(repositories)

    async def checkout(
        self,
        user: UserContext,
        shipping_address: str,
        phone: str,
        name: str,
        payment_method: str,
        note: str | None = None,
        payment_proof_ref: str | None = None,
    ) -> dict[str, Any]:
        """Place an order for everything in the user's cart.

        Args:
            user: Authenticated buyer.
            shipping_address: Delivery address.
            phone: Contact phone.
            name: Recipient name.
            payment_method: "cod" or "bank".
            note: Optional note for the shop.
            payment_proof_ref: Optional uploaded proof-of-payment reference.

        Returns:
            dict: The created order with its lines.

        Raises:
            ValidationError: If shipping fields are missing or the cart is empty.
            NotFoundError: If a product in the cart no longer exists.
            InsufficientStockError: If any line cannot be fulfilled.
        """
        fields = {
            "shipping_address": shipping_address,
            "phone": phone,
            "name": name,
        }
        missing = [field for field, value in fields.items() if not value or not value.strip()]
        if missing:
            raise ValidationError(
                "Shipping address, phone and recipient name are required",
                details=[
                    {"loc": ["body", field], "msg": "Field required", "type": "missing"}
                    for field in missing
                ],
            )

        try:
            method = PaymentMethod(payment_method)
        except ValueError as e:
            raise ValidationError(f"Unsupported payment method '{payment_method}'") from e

        user_id = str(user.user_id)
        cart = await self.carts.get_cart(user_id)
        items = await self.carts.list_items(cart["id"]) if cart else []
        if not cart or not items:
            raise ValidationError("Cart is empty")

        # Price and availability come from the live product row, never the cart.
        order_items: list[OrderItemCreate] = []
        for item in items:
            product = await self.products.get(item["product_id"])
            if not product:
                raise NotFoundError(f"Product {item['product_id']} no longer exists")
            if product["stock"] < item["quantity"]:
                raise InsufficientStockError(item["product_id"], item["quantity"], product["stock"])
            order_items.append(
                {
                    "product_id": item["product_id"],
                    "quantity": item["quantity"],
                    "price": product["price"],
                }
            )

        total = sum((line["price"] * line["quantity"] for line in order_items), Decimal("0"))
        stock_lines = [StockLine(line["product_id"], line["quantity"]) for line in order_items]

        await self.inventory.reserve_all(stock_lines)

        order_data: OrderCreate = {
            "user_id": user_id,
            "total_amount": total,
            "shipping_address": shipping_address.strip(),
            "name": name.strip(),
            "phone": phone.strip(),
            "note": note,
            "payment_method": method.value,
            "payment_proof": payment_proof_ref or None,
            "status": OrderStatus.PENDING.value,
        }
        try:
            order = await self.orders.create_with_items(order_data, order_items)
        except Exception as e:
            logger.error("Order write failed for user %s, releasing stock: %s", user_id, str(e))
            await self.inventory.release_all(stock_lines)
            raise

        # The order is committed at this point; a failed removal must not
        # report the checkout as failed. Lines added after the snapshot stay.
        for item in items:
            try:
                await self.carts.remove_item(cart["id"], item["product_id"])
            except Exception as e:
                logger.error(
                    "Failed to remove product %s from cart %s after order %s: %s",
                    item["product_id"],
                    cart["id"],
                    order["id"],
                    str(e),
                )

        logger.info(
            "Order %s created for user %s: %d line(s), total %s, %s",
            order["id"],
            user_id,
            len(order_items),
            total,
            method.value,
        )
        return {**order, "items": await self.orders.get_items(order["id"])}
