"""Unit tests for the Supabase repository adapter."""

from decimal import Decimal
from unittest.mock import MagicMock

import pytest

from src.repositories.supabase_store import create_supabase_repositories


def response(data: object) -> MagicMock:
    mock = MagicMock()
    mock.data = data
    return mock


class TestProductRepository:
    """Stock changes go through SQL functions."""

    @pytest.mark.asyncio
    async def test_reserve_calls_rpc(self) -> None:
        client = MagicMock()
        client.rpc.return_value.execute.return_value = response(3)
        repos = create_supabase_repositories(client)

        remaining = await repos.products.reserve_stock("p-1", 2)

        assert remaining == 3
        client.rpc.assert_called_once_with("reserve_stock", {"p_product_id": "p-1", "p_quantity": 2})

    @pytest.mark.asyncio
    async def test_reserve_refused_returns_none(self) -> None:
        client = MagicMock()
        client.rpc.return_value.execute.return_value = response(None)
        repos = create_supabase_repositories(client)

        assert await repos.products.reserve_stock("p-1", 99) is None

    @pytest.mark.asyncio
    async def test_get_converts_price_to_decimal(self) -> None:
        client = MagicMock()
        chain = client.table.return_value.select.return_value.eq.return_value.limit.return_value
        chain.execute.return_value = response(
            [{"id": "p-1", "name": "Lamp", "price": 19.9, "stock": 4, "created_at": "2026-10-18T07:05:09+00:00"}]
        )
        repos = create_supabase_repositories(client)

        product = await repos.products.get("p-1")

        assert product["price"] == Decimal("19.9")
        assert product["created_at"].year == 2026


class TestOrderRepository:
    """Order writes."""

    @pytest.mark.asyncio
    async def test_create_with_items_single_rpc(self) -> None:
        client = MagicMock()
        client.rpc.return_value.execute.return_value = response(
            {"id": "o-1", "status": "pending", "total_amount": "30.00"}
        )
        repos = create_supabase_repositories(client)

        order = await repos.orders.create_with_items(
            {"user_id": "u-1", "total_amount": Decimal("30.00"), "status": "pending"},
            [{"product_id": "p-1", "quantity": 3, "price": Decimal("10.00")}],
        )

        assert order["total_amount"] == Decimal("30.00")
        name, args = client.rpc.call_args.args
        assert name == "create_order_with_items"
        assert args["p_order"]["total_amount"] == "30.00"
        assert args["p_items"] == [{"product_id": "p-1", "quantity": 3, "price": "10.00"}]

    @pytest.mark.asyncio
    async def test_compare_and_set_filters_on_status(self) -> None:
        client = MagicMock()
        update = client.table.return_value.update
        update.return_value.eq.return_value.eq.return_value.execute.return_value = response([])
        repos = create_supabase_repositories(client)

        result = await repos.orders.compare_and_set_status("o-1", "pending", {"status": "cancelled"})

        assert result is None
        update.assert_called_once_with({"status": "cancelled"})
        update.return_value.eq.assert_called_once_with("id", "o-1")
        update.return_value.eq.return_value.eq.assert_called_once_with("status", "pending")
