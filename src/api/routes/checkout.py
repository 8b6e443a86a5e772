"""Checkout and order API routes."""

from uuid import UUID

from fastapi import APIRouter, BackgroundTasks, status

from src.api.deps import CurrentUser
from src.models.order import OrderStatus
from src.schemas.auth import UserContext
from src.schemas.checkout import (
    CheckoutRequest,
    OrderListResponse,
    OrderResponse,
    OrderStatusUpdate,
    OrderStatusUpdateResponse,
    PaymentProofUpdate,
)
from src.services.checkout_service import CheckoutService
from src.services.email_service import EmailService
from src.services.order_service import OrderService

router = APIRouter(prefix="/checkout", tags=["checkout"])


@router.post(
    "",
    response_model=OrderResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Place order",
    description="Turns the current cart into a pending order, reserving stock for every line.",
    responses={
        400: {"description": "Missing shipping fields or empty cart"},
        404: {"description": "A product in the cart no longer exists"},
        409: {"description": "Insufficient stock"},
    },
)
async def checkout(
    data: CheckoutRequest,
    user: CurrentUser,
    background_tasks: BackgroundTasks,
) -> OrderResponse:
    """Place an order for the cart contents.

    The confirmation email is sent after the response and never affects
    the outcome.

    Args:
        data: Shipping and payment details.
        user: Authenticated buyer.
        background_tasks: FastAPI background task queue.

    Returns:
        OrderResponse: The created order with its lines.
    """
    order = await CheckoutService().checkout(
        user=user,
        shipping_address=data.shipping_address,
        phone=data.phone,
        name=data.name,
        payment_method=data.payment_method,
        note=data.note,
        payment_proof_ref=data.payment_proof_ref,
    )

    if user.email:
        background_tasks.add_task(EmailService().send_order_confirmation, user.email, order)

    return OrderResponse.model_validate(order)


# Orders router - mounted separately at /orders
orders_router = APIRouter(prefix="/orders", tags=["orders"])


async def apply_status_update(
    order_id: UUID,
    data: OrderStatusUpdate,
    user: UserContext,
    background_tasks: BackgroundTasks,
) -> OrderStatusUpdateResponse:
    """Run a status change and queue the cancellation email when relevant."""
    order, message = await OrderService().update_status(
        str(order_id), data.status, user, note=data.note
    )

    if order["status"] == OrderStatus.CANCELLED.value and user.email and not user.is_admin:
        background_tasks.add_task(EmailService().send_order_cancelled, user.email, order, message)

    return OrderStatusUpdateResponse(order=OrderResponse.model_validate(order), message=message)


@orders_router.get(
    "",
    response_model=OrderListResponse,
    summary="List my orders",
    description="Returns the authenticated user's orders, newest first.",
)
async def list_orders(user: CurrentUser) -> OrderListResponse:
    """List all orders for the current user."""
    orders = await OrderService().list_orders_for_user(str(user.user_id))
    return OrderListResponse(items=[OrderResponse.model_validate(order) for order in orders])


@orders_router.get(
    "/{order_id}",
    response_model=OrderResponse,
    summary="Get order",
    description="Returns one order. Only the owner or an admin may view it.",
)
async def get_order(order_id: UUID, user: CurrentUser) -> OrderResponse:
    """Get a single order with its lines."""
    order = await OrderService().get_order(str(order_id), user)
    return OrderResponse.model_validate(order)


@orders_router.put(
    "/{order_id}/status",
    response_model=OrderStatusUpdateResponse,
    summary="Update order status",
    description="Owners may cancel their own open orders; admins may set any status.",
    responses={
        403: {"description": "Not allowed for this requester"},
        404: {"description": "Order not found"},
        409: {"description": "Illegal transition from the current status"},
    },
)
async def update_order_status(
    order_id: UUID,
    data: OrderStatusUpdate,
    user: CurrentUser,
    background_tasks: BackgroundTasks,
) -> OrderStatusUpdateResponse:
    """Change an order's status.

    Args:
        order_id: Order to update.
        data: Requested status and optional note.
        user: Authenticated requester.
        background_tasks: FastAPI background task queue.

    Returns:
        OrderStatusUpdateResponse: Updated order and optional instruction message.
    """
    return await apply_status_update(order_id, data, user, background_tasks)


@orders_router.put(
    "/{order_id}/payment-proof",
    response_model=OrderResponse,
    summary="Attach payment proof",
    description="Records an uploaded proof-of-transfer reference on an open bank order.",
)
async def attach_payment_proof(order_id: UUID, data: PaymentProofUpdate, user: CurrentUser) -> OrderResponse:
    """Attach a proof-of-payment reference to a bank transfer order."""
    order = await OrderService().attach_payment_proof(str(order_id), data.payment_proof_ref, user)
    return OrderResponse.model_validate(order)
