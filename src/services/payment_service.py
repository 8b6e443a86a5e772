"""Gateway payments: redirect creation, callback settlement and refunds."""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Any
from uuid import uuid4

from src.api.middleware.error_handler import (
    ConflictError,
    ForbiddenError,
    NotFoundError,
    SignatureError,
    UpstreamError,
    ValidationError,
)
from src.core.payment_gateway import (
    GatewayConfig,
    GatewayUnavailableError,
    PaymentGatewayClient,
)
from src.core.storage import get_repositories
from src.models.order import Order, OrderStatus, PaymentMethod
from src.models.payment import Payment, PaymentStatus, PaymentUpdate
from src.repositories.base import Repositories
from src.schemas.auth import UserContext
from src.services.order_service import OrderService
from src.services.payment_signature import PaymentSigner, scale_amount

logger = logging.getLogger(__name__)

GATEWAY_SUCCESS_CODE = "00"

# IPN acknowledgement codes expected by the gateway
IPN_SUCCESS = {"RspCode": "00", "Message": "Confirm Success"}
IPN_ORDER_NOT_FOUND = {"RspCode": "01", "Message": "Order not found"}
IPN_ALREADY_CONFIRMED = {"RspCode": "02", "Message": "Order already confirmed"}
IPN_INVALID_AMOUNT = {"RspCode": "04", "Message": "Invalid amount"}
IPN_INVALID_SIGNATURE = {"RspCode": "97", "Message": "Invalid signature"}
IPN_UNKNOWN_ERROR = {"RspCode": "99", "Message": "Unknown error"}


class AmountMismatchError(ValidationError):
    """Callback amount differs from the amount that was requested."""

    def __init__(self, message: str = "Payment amount mismatch") -> None:
        super().__init__(message=message)
        self.error_type = "amount_mismatch"


@dataclass(frozen=True)
class Settlement:
    """Outcome of applying a verified gateway callback."""

    payment: Payment
    order_status: str | None
    already_processed: bool


class PaymentService:
    """Service for hosted-page payments on bank transfer orders."""

    def __init__(
        self,
        repositories: Repositories | None = None,
        order_service: OrderService | None = None,
        config: GatewayConfig | None = None,
        gateway: PaymentGatewayClient | None = None,
    ) -> None:
        """Initialize payment service with repositories, signer and gateway client."""
        repositories = repositories or get_repositories()
        self.orders = repositories.orders
        self.payments = repositories.payments
        self.order_service = order_service or OrderService(repositories)
        self.config = config or GatewayConfig.from_settings()
        self.signer = PaymentSigner(self.config)
        self.gateway = gateway or PaymentGatewayClient(self.config)

    async def create_payment_url(
        self,
        order_id: str,
        user: UserContext,
        client_ip: str,
        bank_code: str | None = None,
        order_info: str | None = None,
    ) -> dict[str, Any]:
        """Start a gateway payment for a pending bank order.

        A fresh transaction reference is issued for every attempt so the
        gateway never sees a reused reference.

        Args:
            order_id: Order to pay.
            user: Authenticated requester.
            client_ip: Customer IP forwarded to the gateway.
            bank_code: Optional bank preselection.
            order_info: Optional description shown on the payment page.

        Returns:
            dict: payment_url, payment_id, transaction_ref, amount.

        Raises:
            UpstreamError: If gateway credentials are not configured.
            NotFoundError: If the order does not exist.
            ForbiddenError: If the requester neither owns the order nor is an admin.
            ValidationError: If the order is not a bank transfer order.
            ConflictError: If the order is not pending or already paid.
        """
        if not self._is_configured():
            raise UpstreamError("Payment gateway is not configured")

        order = await self._load_order(order_id)
        if not user.is_admin and order["user_id"] != str(user.user_id):
            raise ForbiddenError("Not authorized to pay for this order")
        if order["payment_method"] != PaymentMethod.BANK.value:
            raise ValidationError("Online payment is only available for bank transfer orders")
        if order["status"] != OrderStatus.PENDING.value:
            raise ConflictError(f"Order is {order['status']} and can no longer be paid")

        latest = await self.payments.get_latest_for_order(order_id)
        if latest and latest["status"] == PaymentStatus.COMPLETED.value:
            raise ConflictError("Order has already been paid", error_type="already_paid")

        transaction_ref = uuid4().hex
        payment = await self.payments.create(
            {
                "order_id": order_id,
                "method": PaymentMethod.BANK.value,
                "transaction_ref": transaction_ref,
                "amount": order["total_amount"],
                "status": PaymentStatus.PENDING.value,
            }
        )

        signed = self.signer.build_payment_request(
            transaction_ref=transaction_ref,
            amount=order["total_amount"],
            order_info=order_info or f"Payment for order {order_id}",
            ip_address=client_ip,
            bank_code=bank_code,
        )
        logger.info(
            "Payment %s created for order %s (ref %s, amount %s)",
            payment["id"],
            order_id,
            transaction_ref,
            order["total_amount"],
        )
        return {
            "payment_url": self.signer.build_payment_url(signed),
            "payment_id": payment["id"],
            "transaction_ref": transaction_ref,
            "amount": order["total_amount"],
        }

    async def handle_callback(self, params: dict[str, str]) -> dict[str, Any]:
        """Apply the browser return from the gateway.

        Raises:
            SignatureError: If the signature does not verify.
            NotFoundError: If no payment matches the transaction reference.
            AmountMismatchError: If the amount differs from the payment amount.
        """
        settlement = await self._settle(params)
        payment = settlement.payment
        return {
            "order_id": payment["order_id"],
            "transaction_ref": payment["transaction_ref"],
            "payment_status": payment["status"],
            "order_status": settlement.order_status,
            "response_code": params.get("vnp_ResponseCode"),
            "success": payment["status"] == PaymentStatus.COMPLETED.value,
            "already_processed": settlement.already_processed,
        }

    async def handle_ipn(self, params: dict[str, str]) -> dict[str, str]:
        """Apply a server-to-server payment notification.

        Never raises; every outcome maps to the gateway's acknowledgement codes.
        """
        try:
            settlement = await self._settle(params)
        except SignatureError:
            return IPN_INVALID_SIGNATURE
        except NotFoundError:
            return IPN_ORDER_NOT_FOUND
        except AmountMismatchError:
            return IPN_INVALID_AMOUNT
        except Exception as e:
            logger.error("IPN processing failed: %s", str(e), exc_info=True)
            return IPN_UNKNOWN_ERROR

        if settlement.already_processed:
            return IPN_ALREADY_CONFIRMED
        return IPN_SUCCESS

    async def refund(
        self,
        order_id: str,
        admin: UserContext,
        reason: str,
        client_ip: str,
        amount: Decimal | None = None,
    ) -> Payment:
        """Refund a completed gateway payment through the merchant API.

        Args:
            order_id: Order whose latest payment is refunded.
            admin: Administrator requesting the refund.
            reason: Reason recorded on the payment and sent to the gateway.
            client_ip: Requester IP forwarded to the gateway.
            amount: Partial amount; defaults to the full payment amount.

        Returns:
            Payment: The refunded payment row.

        Raises:
            NotFoundError: If the order has no payment.
            ConflictError: If the payment is not completed or the gateway declines.
            ValidationError: If the amount is out of range.
            UpstreamError: If the gateway cannot be reached. Nothing is changed.
        """
        if not reason or not reason.strip():
            raise ValidationError("Refund reason is required")
        if not self._is_configured():
            raise UpstreamError("Payment gateway is not configured")

        payment = await self.payments.get_latest_for_order(order_id)
        if not payment:
            raise NotFoundError("Payment not found")
        if payment["status"] != PaymentStatus.COMPLETED.value:
            raise ConflictError(f"Payment is {payment['status']} and cannot be refunded")

        refund_amount = payment["amount"] if amount is None else Decimal(amount)
        if refund_amount <= 0 or refund_amount > payment["amount"]:
            raise ValidationError("Refund amount must be positive and at most the paid amount")

        request = self.signer.build_refund_request(
            request_id=uuid4().hex,
            transaction_ref=payment["transaction_ref"],
            amount=refund_amount,
            full_refund=refund_amount == payment["amount"],
            gateway_transaction_no=payment["gateway_transaction_no"],
            transaction_date=payment["created_at"],
            requested_by=str(admin.email or admin.user_id),
            reason=reason.strip(),
            ip_address=client_ip,
        )

        try:
            response = await self.gateway.post(request)
        except GatewayUnavailableError as e:
            raise UpstreamError("Payment gateway unavailable, please retry") from e

        code = str(response.get("vnp_ResponseCode", ""))
        if code != GATEWAY_SUCCESS_CODE:
            logger.warning(
                "Gateway declined refund for payment %s: code %s",
                payment["id"],
                code or "missing",
            )
            raise ConflictError(
                f"Gateway declined the refund (code {code or 'missing'})",
                error_type="refund_declined",
            )

        update: PaymentUpdate = {
            "status": PaymentStatus.REFUNDED.value,
            "refund_transaction_no": response.get("vnp_TransactionNo"),
            "refund_amount": refund_amount,
            "refund_reason": reason.strip(),
        }
        refunded = await self.payments.transition_status(
            payment["id"], PaymentStatus.COMPLETED.value, update
        )
        if refunded is None:
            raise ConflictError("Payment changed concurrently, please retry")

        logger.info(
            "Refunded %s of payment %s for order %s by admin %s",
            refund_amount,
            payment["id"],
            order_id,
            admin.user_id,
        )
        return refunded

    async def _settle(self, params: dict[str, str]) -> Settlement:
        verified = self.signer.verify_callback(params)

        transaction_ref = verified.get("vnp_TxnRef", "")
        payment = await self.payments.get_by_transaction_ref(transaction_ref)
        if not payment:
            logger.warning("Callback for unknown transaction %s", transaction_ref)
            raise NotFoundError("Payment not found")

        if verified.get("vnp_Amount") != str(scale_amount(payment["amount"])):
            logger.warning(
                "Callback amount %s does not match payment %s",
                verified.get("vnp_Amount"),
                payment["id"],
            )
            raise AmountMismatchError()

        if payment["status"] != PaymentStatus.PENDING.value:
            return Settlement(payment, await self._order_status(payment["order_id"]), True)

        succeeded = verified.get("vnp_ResponseCode") == GATEWAY_SUCCESS_CODE
        target = PaymentStatus.COMPLETED if succeeded else PaymentStatus.FAILED
        update: PaymentUpdate = {
            "status": target.value,
            "gateway_transaction_no": verified.get("vnp_TransactionNo"),
        }
        settled = await self.payments.transition_status(
            payment["id"], PaymentStatus.PENDING.value, update
        )
        if settled is None:
            # Another callback for the same reference got there first.
            current = await self.payments.get_by_transaction_ref(transaction_ref)
            return Settlement(current or payment, await self._order_status(payment["order_id"]), True)

        logger.info(
            "Payment %s for order %s %s (gateway code %s)",
            payment["id"],
            payment["order_id"],
            target.value,
            verified.get("vnp_ResponseCode"),
        )

        if succeeded:
            await self.order_service.advance_for_payment(payment["order_id"])

        return Settlement(settled, await self._order_status(payment["order_id"]), False)

    async def _order_status(self, order_id: str) -> str | None:
        order = await self.orders.get(order_id)
        return order["status"] if order else None

    async def _load_order(self, order_id: str) -> Order:
        order = await self.orders.get(order_id)
        if not order:
            raise NotFoundError("Order not found")
        return order

    def _is_configured(self) -> bool:
        return bool(self.config.merchant_code and self.config.hash_secret)
