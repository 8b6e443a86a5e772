"""Order status state machine.

    pending -> processing -> shipped -> delivered -> completed
    pending | processing -> cancelled

Legality is decided by evaluate_transition(), a pure function of the
current state and the actor, evaluated before anything is written. Admins
may set any status. Owners may only cancel, and only while the order is
pending or processing. A bank-transfer order with payment proof on file
cannot be self-cancelled. The payment gateway may only move an order
forward along the graph.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Literal

from src.api.middleware.error_handler import ValidationError
from src.models.order import OrderStatus, PaymentMethod


class ActorRole(str, Enum):
    """Who is requesting a status change."""

    USER = "user"
    ADMIN = "admin"
    SYSTEM = "system"


FORWARD_TRANSITIONS: dict[OrderStatus, frozenset[OrderStatus]] = {
    OrderStatus.PENDING: frozenset({OrderStatus.PROCESSING, OrderStatus.CANCELLED}),
    OrderStatus.PROCESSING: frozenset({OrderStatus.SHIPPED, OrderStatus.CANCELLED}),
    OrderStatus.SHIPPED: frozenset({OrderStatus.DELIVERED}),
    OrderStatus.DELIVERED: frozenset({OrderStatus.COMPLETED}),
    OrderStatus.COMPLETED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
}

SELF_CANCELLABLE_STATES = frozenset({OrderStatus.PENDING, OrderStatus.PROCESSING})

BANK_REFUND_MESSAGE = (
    "Order cancelled. If you already transferred the payment, "
    "please contact support to arrange a refund."
)
PROOF_FREEZE_MESSAGE = (
    "Payment proof has already been submitted for this order. "
    "Please contact the shop to cancel and request a refund."
)


@dataclass(frozen=True)
class Allow:
    """Transition accepted. message is shown to the requester when set."""

    message: str | None = None


@dataclass(frozen=True)
class Deny:
    """Transition rejected."""

    reason: str
    kind: Literal["forbidden", "illegal_transition"]


TransitionDecision = Allow | Deny


def parse_status(value: str) -> OrderStatus:
    """Parse a requested status literal.

    Raises:
        ValidationError: If value is not a known order status.
    """
    try:
        return OrderStatus(value)
    except ValueError as e:
        allowed = ", ".join(status.value for status in OrderStatus)
        raise ValidationError(f"Invalid status '{value}'. Expected one of: {allowed}") from e


def evaluate_transition(
    current_status: OrderStatus,
    target_status: OrderStatus,
    actor_role: ActorRole,
    is_owner: bool,
    payment_method: PaymentMethod,
    has_proof: bool,
) -> TransitionDecision:
    """Decide whether a status change is allowed.

    Args:
        current_status: Status read in the same operation as the write.
        target_status: Requested status.
        actor_role: Role of the requester.
        is_owner: Whether the requester placed the order.
        payment_method: Order payment method.
        has_proof: Whether a payment proof reference is on file.

    Returns:
        TransitionDecision: Allow (with optional user message) or Deny.
    """
    if actor_role == ActorRole.ADMIN:
        return Allow()

    if actor_role == ActorRole.SYSTEM:
        if target_status in FORWARD_TRANSITIONS[current_status]:
            return Allow()
        return Deny(
            reason=f"Cannot move order from {current_status.value} to {target_status.value}",
            kind="illegal_transition",
        )

    if not is_owner:
        return Deny(reason="Forbidden", kind="forbidden")

    if target_status != OrderStatus.CANCELLED:
        return Deny(reason="Only administrators can change order status", kind="forbidden")

    if current_status not in SELF_CANCELLABLE_STATES:
        return Deny(
            reason="Orders can only be cancelled while pending or processing",
            kind="illegal_transition",
        )

    if payment_method == PaymentMethod.BANK:
        if has_proof:
            return Deny(reason=PROOF_FREEZE_MESSAGE, kind="forbidden")
        return Allow(message=BANK_REFUND_MESSAGE)

    return Allow()


def stock_effect(
    current_status: OrderStatus, target_status: OrderStatus, stock_released: bool
) -> Literal["release", "reserve"] | None:
    """Inventory side effect of a status change.

    Stock goes back to the shelf only when an order that has not shipped is
    cancelled. Goods of a shipped, delivered or completed order have left
    the warehouse, so cancelling it leaves stock alone. Reviving a cancelled
    order re-reserves only what its cancellation released.

    Args:
        current_status: Status read in the same operation as the write.
        target_status: Requested status.
        stock_released: Whether this order's stock was returned on cancellation.
    """
    if target_status == OrderStatus.CANCELLED and current_status in SELF_CANCELLABLE_STATES:
        return "release"
    if current_status == OrderStatus.CANCELLED and target_status != OrderStatus.CANCELLED and stock_released:
        return "reserve"
    return None
