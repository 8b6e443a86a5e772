"""Payment Pydantic schemas for API request/response models."""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class PaymentCreateRequest(BaseModel):
    """Schema for POST /payment/create."""

    model_config = ConfigDict(from_attributes=True)

    order_id: UUID = Field(description="Order to pay")
    bank_code: str | None = Field(default=None, max_length=20, description="Optional bank preselection")
    order_info: str | None = Field(default=None, max_length=255, description="Description shown by the gateway")


class PaymentCreateResponse(BaseModel):
    """Schema for payment creation responses."""

    model_config = ConfigDict(from_attributes=True)

    payment_url: str = Field(description="Signed hosted payment page URL to redirect to")
    payment_id: UUID = Field(description="Created payment record ID")
    transaction_ref: str = Field(description="Reference sent to the gateway")
    amount: Decimal = Field(description="Amount to be paid")


class PaymentCallbackResponse(BaseModel):
    """Schema for the browser return endpoint."""

    model_config = ConfigDict(from_attributes=True)

    success: bool = Field(description="Whether the payment completed")
    order_id: UUID = Field(description="Paid order ID")
    transaction_ref: str = Field(description="Gateway transaction reference")
    payment_status: str = Field(description="Payment status after processing")
    order_status: str | None = Field(default=None, description="Order status after processing")
    response_code: str | None = Field(default=None, description="Gateway response code")
    already_processed: bool = Field(default=False, description="True if an earlier callback settled it")


class IpnResponse(BaseModel):
    """Acknowledgement body expected by the gateway's IPN caller."""

    RspCode: str = Field(description="Acknowledgement code")
    Message: str = Field(description="Acknowledgement message")


class RefundRequest(BaseModel):
    """Schema for POST /admin/payments/{order_id}/refund."""

    model_config = ConfigDict(from_attributes=True)

    reason: str = Field(min_length=1, max_length=255, description="Refund reason")
    amount: Decimal | None = Field(default=None, gt=0, description="Partial amount (defaults to full)")


class PaymentResponse(BaseModel):
    """Schema for payment records."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    order_id: UUID
    method: str
    transaction_ref: str
    amount: Decimal
    status: str
    gateway_transaction_no: str | None = None
    refund_transaction_no: str | None = None
    refund_amount: Decimal | None = None
    refund_reason: str | None = None
    created_at: datetime
    updated_at: datetime
