"""Inventory ledger: the only writer of product stock."""

import logging
from dataclasses import dataclass

from src.api.middleware.error_handler import InsufficientStockError
from src.core.storage import get_repositories
from src.repositories.base import Repositories

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StockLine:
    """A product and quantity to reserve or release."""

    product_id: str
    quantity: int


class InventoryService:
    """Atomic stock reservation and release.

    Every decrement is a single conditional write at the storage layer, so
    two concurrent reservations of the same product can never both succeed
    when only one fits.
    """

    def __init__(self, repositories: Repositories | None = None) -> None:
        """Initialize inventory service with the product repository."""
        self.products = (repositories or get_repositories()).products

    async def reserve(self, product_id: str, quantity: int) -> int:
        """Reserve stock for one product.

        Args:
            product_id: Product to decrement.
            quantity: Units to reserve (must be positive).

        Returns:
            int: Remaining stock after the reservation.

        Raises:
            InsufficientStockError: If current stock is below quantity.
        """
        if quantity <= 0:
            raise ValueError("quantity must be positive")

        remaining = await self.products.reserve_stock(product_id, quantity)
        if remaining is None:
            product = await self.products.get(product_id)
            available = product["stock"] if product else 0
            logger.info(
                "Reservation refused for product %s: requested %d, available %d",
                product_id,
                quantity,
                available,
            )
            raise InsufficientStockError(product_id, quantity, available)

        logger.info("Reserved %d of product %s (remaining %d)", quantity, product_id, remaining)
        return remaining

    async def release(self, product_id: str, quantity: int) -> int | None:
        """Return previously reserved stock.

        Returns:
            int | None: New stock level, or None if the product no longer exists.
        """
        if quantity <= 0:
            raise ValueError("quantity must be positive")

        restored = await self.products.release_stock(product_id, quantity)
        if restored is None:
            logger.warning("Cannot release %d of missing product %s", quantity, product_id)
        else:
            logger.info("Released %d of product %s (stock %d)", quantity, product_id, restored)
        return restored

    async def reserve_all(self, lines: list[StockLine]) -> None:
        """Reserve every line or none of them.

        Lines already reserved in this call are released again if a later
        line fails, and the original error is re-raised.

        Raises:
            InsufficientStockError: If any line cannot be reserved.
        """
        reserved: list[StockLine] = []
        try:
            for line in lines:
                await self.reserve(line.product_id, line.quantity)
                reserved.append(line)
        except Exception:
            if reserved:
                logger.warning("Rolling back %d reservation(s)", len(reserved))
                await self.release_all(reserved)
            raise

    async def release_all(self, lines: list[StockLine]) -> None:
        """Release every line, continuing past individual failures."""
        for line in lines:
            try:
                await self.release(line.product_id, line.quantity)
            except Exception as e:
                logger.error(
                    "Failed to release %d of product %s: %s",
                    line.quantity,
                    line.product_id,
                    str(e),
                )
