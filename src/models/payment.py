"""Payment model type definitions for database operations."""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import TypedDict


class PaymentStatus(str, Enum):
    """Gateway payment status values."""

    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    REFUNDED = "refunded"


class Payment(TypedDict):
    """Payment table row representation.

    Represents one gateway payment attempt for an order. transaction_ref is
    the unique reference sent to the gateway and echoed back in callbacks.
    """

    id: str
    order_id: str
    method: str
    transaction_ref: str
    amount: Decimal
    status: str
    gateway_transaction_no: str | None
    refund_transaction_no: str | None
    refund_amount: Decimal | None
    refund_reason: str | None
    created_at: datetime
    updated_at: datetime


class PaymentCreate(TypedDict, total=False):
    """Data required to start a gateway payment."""

    order_id: str
    method: str
    transaction_ref: str
    amount: Decimal
    status: str


class PaymentUpdate(TypedDict, total=False):
    """Columns written by callbacks and refunds."""

    status: str
    gateway_transaction_no: str | None
    refund_transaction_no: str | None
    refund_amount: Decimal | None
    refund_reason: str | None
