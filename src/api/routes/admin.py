"""Admin API routes for order management and refunds."""

from uuid import UUID

from fastapi import APIRouter, BackgroundTasks

from src.api.deps import AdminUser, ClientIP
from src.api.routes.checkout import apply_status_update
from src.schemas.checkout import (
    OrderListResponse,
    OrderResponse,
    OrderStatusUpdate,
    OrderStatusUpdateResponse,
)
from src.schemas.payment import PaymentResponse, RefundRequest
from src.services.order_service import OrderService
from src.services.payment_service import PaymentService

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get(
    "/orders",
    response_model=OrderListResponse,
    summary="List all orders",
    description="Returns every order, newest first. Requires admin role.",
)
async def list_all_orders(admin: AdminUser) -> OrderListResponse:
    """List all orders across users."""
    orders = await OrderService().list_all_orders()
    return OrderListResponse(items=[OrderResponse.model_validate(order) for order in orders])


@router.put(
    "/orders/{order_id}/status",
    response_model=OrderStatusUpdateResponse,
    summary="Set order status",
    description="Sets any order status. Requires admin role.",
)
async def set_order_status(
    order_id: UUID,
    data: OrderStatusUpdate,
    admin: AdminUser,
    background_tasks: BackgroundTasks,
) -> OrderStatusUpdateResponse:
    """Change an order's status as an admin."""
    return await apply_status_update(order_id, data, admin, background_tasks)


@router.post(
    "/payments/{order_id}/refund",
    response_model=PaymentResponse,
    summary="Refund payment",
    description="Refunds the completed gateway payment of an order. Requires admin role.",
    responses={
        409: {"description": "Payment not refundable or refund declined"},
        503: {"description": "Gateway unavailable, retry later"},
    },
)
async def refund_payment(
    order_id: UUID,
    data: RefundRequest,
    admin: AdminUser,
    client_ip: ClientIP,
) -> PaymentResponse:
    """Refund an order's gateway payment.

    Args:
        order_id: Order whose payment is refunded.
        data: Reason and optional partial amount.
        admin: Authenticated administrator.
        client_ip: Requester IP forwarded to the gateway.

    Returns:
        PaymentResponse: The refunded payment.
    """
    payment = await PaymentService().refund(
        str(order_id),
        admin,
        reason=data.reason,
        client_ip=client_ip,
        amount=data.amount,
    )
    return PaymentResponse.model_validate(payment)
