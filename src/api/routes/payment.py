"""Hosted payment page routes: payment creation, browser return and IPN."""

import logging

from fastapi import APIRouter, Request

from src.api.deps import ClientIP, CurrentUser
from src.schemas.payment import (
    IpnResponse,
    PaymentCallbackResponse,
    PaymentCreateRequest,
    PaymentCreateResponse,
)
from src.services.payment_service import PaymentService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/payment", tags=["payment"])


@router.post(
    "/create",
    response_model=PaymentCreateResponse,
    summary="Create payment URL",
    description="Creates a pending payment for a bank order and returns the signed gateway redirect URL.",
    responses={
        409: {"description": "Order not payable or already paid"},
        503: {"description": "Gateway not configured or unavailable"},
    },
)
async def create_payment(
    data: PaymentCreateRequest,
    user: CurrentUser,
    client_ip: ClientIP,
) -> PaymentCreateResponse:
    """Start a gateway payment for an order.

    Args:
        data: Order to pay and optional gateway hints.
        user: Authenticated requester.
        client_ip: Requester IP forwarded to the gateway.

    Returns:
        PaymentCreateResponse: Signed redirect URL and payment reference.
    """
    result = await PaymentService().create_payment_url(
        str(data.order_id),
        user,
        client_ip,
        bank_code=data.bank_code,
        order_info=data.order_info,
    )
    return PaymentCreateResponse.model_validate(result)


@router.get(
    "/callback",
    response_model=PaymentCallbackResponse,
    summary="Gateway return",
    description="Browser redirect target after payment. Verifies the signature before applying the result.",
    responses={400: {"description": "Signature mismatch or amount mismatch"}},
)
async def payment_callback(request: Request) -> PaymentCallbackResponse:
    """Verify and apply the gateway's browser return."""
    params = dict(request.query_params)
    result = await PaymentService().handle_callback(params)
    return PaymentCallbackResponse.model_validate(result)


@router.get(
    "/ipn",
    response_model=IpnResponse,
    summary="Gateway IPN",
    description="Server-to-server payment notification. Always answers 200 with an acknowledgement code.",
)
async def payment_ipn(request: Request) -> IpnResponse:
    """Verify and apply a server-to-server payment notification."""
    params = dict(request.query_params)
    ack = await PaymentService().handle_ipn(params)
    logger.info("IPN for %s acknowledged with %s", params.get("vnp_TxnRef"), ack["RspCode"])
    return IpnResponse(**ack)
