"""Unit tests for the cart service."""

from decimal import Decimal
from typing import Any

import pytest

from src.api.middleware.error_handler import InsufficientStockError, NotFoundError, ValidationError
from src.services.cart_service import CartService

USER = "550e8400-e29b-41d4-a716-446655440000"


class TestAddItem:
    """Tests for CartService.add_item."""

    @pytest.mark.asyncio
    async def test_first_add_creates_cart_with_current_price(self, repositories: Any, product: dict) -> None:
        service = CartService(repositories)

        await service.add_item(USER, product["id"], 2)
        cart = await service.get_cart(USER)

        assert cart["cart_id"] is not None
        assert len(cart["items"]) == 1
        assert cart["items"][0]["quantity"] == 2
        assert cart["items"][0]["price"] == Decimal("100.00")
        assert cart["items"][0]["product"]["name"] == "Desk lamp"
        assert cart["total"] == Decimal("200.00")

    @pytest.mark.asyncio
    async def test_repeat_add_merges_and_keeps_original_price(
        self, store: Any, repositories: Any, product: dict
    ) -> None:
        """Test adding an existing product increments quantity at the cached price."""
        service = CartService(repositories)
        await service.add_item(USER, product["id"], 1)
        store.set_price(product["id"], "150.00")

        await service.add_item(USER, product["id"], 2)
        cart = await service.get_cart(USER)

        assert len(cart["items"]) == 1
        assert cart["items"][0]["quantity"] == 3
        assert cart["items"][0]["price"] == Decimal("100.00")

    @pytest.mark.asyncio
    async def test_combined_quantity_checked_against_stock(self, repositories: Any, product: dict) -> None:
        service = CartService(repositories)
        await service.add_item(USER, product["id"], 4)

        with pytest.raises(InsufficientStockError):
            await service.add_item(USER, product["id"], 2)

    @pytest.mark.asyncio
    async def test_unknown_product(self, repositories: Any) -> None:
        service = CartService(repositories)

        with pytest.raises(NotFoundError):
            await service.add_item(USER, "00000000-0000-0000-0000-000000000000", 1)

    @pytest.mark.asyncio
    async def test_non_positive_quantity(self, repositories: Any, product: dict) -> None:
        service = CartService(repositories)

        with pytest.raises(ValidationError):
            await service.add_item(USER, product["id"], 0)


class TestUpdateRemoveClear:
    """Tests for quantity changes, removal and clearing."""

    @pytest.mark.asyncio
    async def test_update_sets_quantity(self, repositories: Any, product: dict) -> None:
        service = CartService(repositories)
        await service.add_item(USER, product["id"], 1)

        await service.update_item(USER, product["id"], 5)

        cart = await service.get_cart(USER)
        assert cart["items"][0]["quantity"] == 5

    @pytest.mark.asyncio
    async def test_update_beyond_stock(self, repositories: Any, product: dict) -> None:
        service = CartService(repositories)
        await service.add_item(USER, product["id"], 1)

        with pytest.raises(InsufficientStockError):
            await service.update_item(USER, product["id"], 6)

    @pytest.mark.asyncio
    async def test_update_missing_line(self, store: Any, repositories: Any, product: dict) -> None:
        other = store.add_product("Rug", "30.00", 3)
        service = CartService(repositories)
        await service.add_item(USER, product["id"], 1)

        with pytest.raises(NotFoundError):
            await service.update_item(USER, other["id"], 1)

    @pytest.mark.asyncio
    async def test_remove_item(self, repositories: Any, product: dict) -> None:
        service = CartService(repositories)
        await service.add_item(USER, product["id"], 1)

        await service.remove_item(USER, product["id"])

        assert (await service.get_cart(USER))["items"] == []

    @pytest.mark.asyncio
    async def test_remove_without_cart(self, repositories: Any, product: dict) -> None:
        service = CartService(repositories)

        with pytest.raises(NotFoundError):
            await service.remove_item(USER, product["id"])

    @pytest.mark.asyncio
    async def test_clear_returns_count(self, store: Any, repositories: Any, product: dict) -> None:
        other = store.add_product("Rug", "30.00", 3)
        service = CartService(repositories)
        await service.add_item(USER, product["id"], 1)
        await service.add_item(USER, other["id"], 1)

        assert await service.clear(USER) == 2
        assert await service.clear(USER) == 0

    @pytest.mark.asyncio
    async def test_get_cart_without_cart(self, repositories: Any) -> None:
        cart = await CartService(repositories).get_cart(USER)

        assert cart == {"cart_id": None, "items": [], "total": Decimal("0")}
