"""Product model type definitions for database operations."""

from datetime import datetime
from decimal import Decimal
from typing import TypedDict


class Product(TypedDict):
    """Product table row representation.

    Only the columns the checkout path reads are listed; the catalog owns
    the rest of the row.
    """

    id: str
    name: str
    price: Decimal
    stock: int
    image_url: str | None
    created_at: datetime
    updated_at: datetime
