"""Hosted payment page request signing and callback verification.

Both sides sign the same canonical string: the parameters sorted by key,
joined as raw ``key=value`` pairs with ``&`` and no percent-encoding. The
HMAC hex digest travels as ``vnp_SecureHash``. Only the redirect URL is
percent-encoded.
"""

import hashlib
import hmac
import logging
from collections.abc import Mapping
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from urllib.parse import urlencode

from src.api.middleware.error_handler import SignatureError
from src.core.payment_gateway import GatewayConfig

logger = logging.getLogger(__name__)

SECURE_HASH_FIELD = "vnp_SecureHash"
SECURE_HASH_TYPE_FIELD = "vnp_SecureHashType"
GATEWAY_TIMESTAMP_FORMAT = "%Y%m%d%H%M%S"

_DIGESTS = {
    "sha256": hashlib.sha256,
    "sha512": hashlib.sha512,
}


def canonical_query(params: Mapping[str, str]) -> str:
    """Build the unencoded signing input from params sorted by key."""
    return "&".join(f"{key}={params[key]}" for key in sorted(params))


def format_gateway_timestamp(moment: datetime | None = None) -> str:
    """Format a moment as UTC yyyyMMddHHmmss."""
    moment = moment or datetime.now(timezone.utc)
    if moment.tzinfo is not None:
        moment = moment.astimezone(timezone.utc)
    return moment.strftime(GATEWAY_TIMESTAMP_FORMAT)


def scale_amount(amount: Decimal) -> int:
    """Encode an amount as the gateway's integer (amount x 100)."""
    return int((Decimal(amount) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


class PaymentSigner:
    """Signs outgoing gateway requests and verifies incoming callbacks."""

    def __init__(self, config: GatewayConfig) -> None:
        if config.hash_algorithm not in _DIGESTS:
            raise ValueError(f"Unsupported hash algorithm: {config.hash_algorithm}")
        self.config = config

    def sign(self, params: Mapping[str, str]) -> str:
        """HMAC hex digest of the canonical string for params."""
        return hmac.new(
            self.config.hash_secret.encode("utf-8"),
            canonical_query(params).encode("utf-8"),
            _DIGESTS[self.config.hash_algorithm],
        ).hexdigest()

    def build_payment_request(
        self,
        transaction_ref: str,
        amount: Decimal,
        order_info: str,
        ip_address: str,
        created_at: datetime | None = None,
        bank_code: str | None = None,
    ) -> dict[str, str]:
        """Assemble and sign the parameters for the hosted payment page.

        Args:
            transaction_ref: Unique reference for this payment attempt.
            amount: Order total in major units.
            order_info: Human-readable description shown by the gateway.
            ip_address: Customer IP address.
            created_at: Request time (defaults to now).
            bank_code: Optional bank preselection.

        Returns:
            dict: All request parameters plus vnp_SecureHash.
        """
        params = {
            "vnp_Version": self.config.version,
            "vnp_Command": "pay",
            "vnp_TmnCode": self.config.merchant_code,
            "vnp_Locale": self.config.locale,
            "vnp_CurrCode": self.config.currency,
            "vnp_TxnRef": transaction_ref,
            "vnp_OrderInfo": order_info,
            "vnp_OrderType": "billpayment",
            "vnp_Amount": str(scale_amount(amount)),
            "vnp_ReturnUrl": self.config.return_url,
            "vnp_IpAddr": ip_address,
            "vnp_CreateDate": format_gateway_timestamp(created_at),
        }
        if bank_code:
            params["vnp_BankCode"] = bank_code

        params[SECURE_HASH_FIELD] = self.sign(params)
        return params

    def build_refund_request(
        self,
        request_id: str,
        transaction_ref: str,
        amount: Decimal,
        full_refund: bool,
        gateway_transaction_no: str | None,
        transaction_date: datetime,
        requested_by: str,
        reason: str,
        ip_address: str,
        created_at: datetime | None = None,
    ) -> dict[str, str]:
        """Assemble and sign a refund call for the merchant API."""
        params = {
            "vnp_RequestId": request_id,
            "vnp_Version": self.config.version,
            "vnp_Command": "refund",
            "vnp_TmnCode": self.config.merchant_code,
            # 02 = full refund, 03 = partial refund
            "vnp_TransactionType": "02" if full_refund else "03",
            "vnp_TxnRef": transaction_ref,
            "vnp_Amount": str(scale_amount(amount)),
            "vnp_TransactionNo": gateway_transaction_no or "",
            "vnp_TransactionDate": format_gateway_timestamp(transaction_date),
            "vnp_CreateBy": requested_by,
            "vnp_CreateDate": format_gateway_timestamp(created_at),
            "vnp_IpAddr": ip_address,
            "vnp_OrderInfo": reason,
        }
        params[SECURE_HASH_FIELD] = self.sign(params)
        return params

    def build_payment_url(self, signed_params: Mapping[str, str]) -> str:
        """Percent-encoded redirect URL for already signed params."""
        ordered = [(key, signed_params[key]) for key in sorted(signed_params)]
        return f"{self.config.payment_url}?{urlencode(ordered)}"

    def verify_callback(self, raw_params: Mapping[str, str]) -> dict[str, str]:
        """Check the signature on decoded callback parameters.

        Args:
            raw_params: Query parameters as received (already URL-decoded).

        Returns:
            dict: The parameters without the hash fields.

        Raises:
            SignatureError: If the hash is missing or does not match.
        """
        params = dict(raw_params)
        provided = params.pop(SECURE_HASH_FIELD, None)
        params.pop(SECURE_HASH_TYPE_FIELD, None)

        if not provided:
            logger.warning("Gateway callback without signature rejected")
            raise SignatureError("Missing payment signature")

        expected = self.sign(params)
        # Hex digests compare exactly; an upper-cased digest is a mismatch.
        # Compared as bytes since the provided value is untrusted text.
        if not hmac.compare_digest(expected.encode(), provided.encode("utf-8", "surrogatepass")):
            logger.warning(
                "Gateway callback signature mismatch for transaction %s",
                params.get("vnp_TxnRef"),
            )
            raise SignatureError("Invalid payment signature")

        return params
