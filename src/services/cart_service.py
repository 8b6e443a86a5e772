"""Cart business logic service."""

import logging
from decimal import Decimal
from typing import Any

from src.api.middleware.error_handler import InsufficientStockError, NotFoundError, ValidationError
from src.core.storage import get_repositories
from src.repositories.base import Repositories

logger = logging.getLogger(__name__)


class CartService:
    """Service for the per-user shopping cart."""

    def __init__(self, repositories: Repositories | None = None) -> None:
        """Initialize cart service with repositories."""
        repositories = repositories or get_repositories()
        self.carts = repositories.carts
        self.products = repositories.products

    async def get_cart(self, user_id: str) -> dict[str, Any]:
        """Get the user's cart with lines and a display total.

        The total uses the cart's stored prices and is informational only;
        checkout recomputes from live product prices.

        Args:
            user_id: Owner of the cart.

        Returns:
            dict: cart_id (None if no cart yet), items, total.
        """
        cart = await self.carts.get_cart(user_id)
        if not cart:
            return {"cart_id": None, "items": [], "total": Decimal("0")}

        items = await self.carts.list_items(cart["id"])
        total = sum((item["price"] * item["quantity"] for item in items), Decimal("0"))
        return {"cart_id": cart["id"], "items": items, "total": total}

    async def add_item(self, user_id: str, product_id: str, quantity: int) -> None:
        """Add quantity of a product, merging with an existing line.

        The cart is created on first add. New lines capture the current
        product price; existing lines keep theirs.

        Raises:
            ValidationError: If quantity is not positive.
            NotFoundError: If the product does not exist.
            InsufficientStockError: If stock is below the combined quantity.
        """
        if quantity <= 0:
            raise ValidationError("Quantity must be positive")

        product = await self.products.get(product_id)
        if not product:
            raise NotFoundError("Product not found")
        if product["stock"] < quantity:
            raise InsufficientStockError(product_id, quantity, product["stock"])

        cart = await self.carts.get_or_create_cart(user_id)
        existing = await self.carts.get_item(cart["id"], product_id)

        if existing:
            new_quantity = existing["quantity"] + quantity
            if product["stock"] < new_quantity:
                raise InsufficientStockError(product_id, new_quantity, product["stock"])
            await self.carts.upsert_item(cart["id"], product_id, new_quantity, existing["price"])
        else:
            await self.carts.upsert_item(cart["id"], product_id, quantity, product["price"])

        logger.info("Added %d of product %s to cart of user %s", quantity, product_id, user_id)

    async def update_item(self, user_id: str, product_id: str, quantity: int) -> None:
        """Set the quantity of an existing line.

        Raises:
            ValidationError: If quantity is not positive.
            NotFoundError: If the cart, product or line does not exist.
            InsufficientStockError: If stock is below quantity.
        """
        if quantity <= 0:
            raise ValidationError("Quantity must be positive")

        cart = await self.carts.get_cart(user_id)
        if not cart:
            raise NotFoundError("Cart not found")

        product = await self.products.get(product_id)
        if not product:
            raise NotFoundError("Product not found")
        if product["stock"] < quantity:
            raise InsufficientStockError(product_id, quantity, product["stock"])

        existing = await self.carts.get_item(cart["id"], product_id)
        if not existing:
            raise NotFoundError("Cart item not found")

        await self.carts.upsert_item(cart["id"], product_id, quantity, existing["price"])

    async def remove_item(self, user_id: str, product_id: str) -> None:
        """Remove one line from the cart.

        Raises:
            NotFoundError: If the cart or line does not exist.
        """
        cart = await self.carts.get_cart(user_id)
        if not cart:
            raise NotFoundError("Cart not found")

        if not await self.carts.remove_item(cart["id"], product_id):
            raise NotFoundError("Cart item not found")

    async def clear(self, user_id: str) -> int:
        """Remove every line from the user's cart.

        Returns:
            int: Number of lines removed (0 if the user has no cart).
        """
        cart = await self.carts.get_cart(user_id)
        if not cart:
            return 0
        removed = await self.carts.clear(cart["id"])
        logger.info("Cleared %d line(s) from cart of user %s", removed, user_id)
        return removed
