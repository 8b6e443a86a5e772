"""Checkout and order Pydantic schemas for API request/response models."""

from datetime import datetime
from decimal import Decimal
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

# Order status literal type for responses
OrderStatus = Literal["pending", "processing", "shipped", "delivered", "completed", "cancelled"]
PaymentMethod = Literal["cod", "bank"]


class CheckoutRequest(BaseModel):
    """Schema for placing an order via POST /checkout."""

    model_config = ConfigDict(from_attributes=True)

    shipping_address: str = Field(description="Delivery address")
    phone: str = Field(description="Contact phone number")
    name: str = Field(description="Recipient name")
    note: str | None = Field(default=None, max_length=1000, description="Note for the shop")
    payment_method: PaymentMethod = Field(default="cod", description="cod or bank")
    payment_proof_ref: str | None = Field(
        default=None,
        description="Reference to an uploaded proof of bank transfer",
    )


class OrderItemResponse(BaseModel):
    """Schema for a single order line."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID = Field(description="Order line unique identifier")
    product_id: UUID = Field(description="Product UUID")
    quantity: int = Field(ge=1, description="Quantity ordered")
    price: Decimal = Field(description="Unit price at the time of purchase")


class OrderResponse(BaseModel):
    """Schema for order API responses."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID = Field(description="Order unique identifier")
    user_id: UUID = Field(description="Buyer user ID")
    status: OrderStatus = Field(description="Order status")
    total_amount: Decimal = Field(description="Order total frozen at checkout")
    shipping_address: str = Field(description="Delivery address")
    name: str = Field(description="Recipient name")
    phone: str = Field(description="Contact phone number")
    note: str | None = Field(default=None, description="Note for the shop")
    payment_method: PaymentMethod = Field(description="Payment method")
    payment_proof: str | None = Field(default=None, description="Proof of payment reference")
    items: list[OrderItemResponse] = Field(default_factory=list, description="Order lines")
    created_at: datetime = Field(description="Creation timestamp")
    updated_at: datetime = Field(description="Last update timestamp")


class OrderListResponse(BaseModel):
    """Schema for order list API responses."""

    model_config = ConfigDict(from_attributes=True)

    items: list[OrderResponse] = Field(description="List of orders, newest first")


class OrderStatusUpdate(BaseModel):
    """Schema for PUT /orders/{id}/status."""

    model_config = ConfigDict(from_attributes=True)

    status: str = Field(description="Requested order status")
    note: str | None = Field(default=None, max_length=1000, description="Optional note stored on the order")


class OrderStatusUpdateResponse(BaseModel):
    """Schema for status update responses."""

    model_config = ConfigDict(from_attributes=True)

    order: OrderResponse = Field(description="The updated order")
    message: str | None = Field(default=None, description="Instruction for the requester, if any")


class PaymentProofUpdate(BaseModel):
    """Schema for PUT /orders/{id}/payment-proof."""

    model_config = ConfigDict(from_attributes=True)

    payment_proof_ref: str = Field(min_length=1, description="Reference to the uploaded proof")
