"""Cart Pydantic schemas for API request/response models."""

from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class CartItemAdd(BaseModel):
    """Schema for adding a product via POST /cart."""

    model_config = ConfigDict(from_attributes=True)

    product_id: UUID = Field(description="Product UUID")
    quantity: int = Field(default=1, ge=1, description="Units to add")


class CartItemUpdate(BaseModel):
    """Schema for setting a line quantity via PUT /cart/{product_id}."""

    model_config = ConfigDict(from_attributes=True)

    quantity: int = Field(ge=1, description="New quantity")


class CartProduct(BaseModel):
    """Current product snapshot shown with a cart line."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    price: Decimal
    stock: int
    image_url: str | None = None


class CartItemResponse(BaseModel):
    """Schema for a single cart line."""

    model_config = ConfigDict(from_attributes=True)

    product_id: UUID = Field(description="Product UUID")
    quantity: int = Field(description="Quantity in cart")
    price: Decimal = Field(description="Price when the line was added")
    product: CartProduct | None = Field(default=None, description="Current product data")


class CartResponse(BaseModel):
    """Schema for GET /cart."""

    model_config = ConfigDict(from_attributes=True)

    cart_id: UUID | None = Field(default=None, description="Cart ID, absent until first add")
    items: list[CartItemResponse] = Field(default_factory=list, description="Cart lines")
    total: Decimal = Field(description="Informational total at cart prices")
