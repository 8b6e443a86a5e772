"""Order queries and status changes."""

import logging
from typing import Any

from src.api.middleware.error_handler import (
    ForbiddenError,
    IllegalTransitionError,
    NotFoundError,
    ValidationError,
)
from src.core.storage import get_repositories
from src.models.order import Order, OrderStatus, OrderUpdate, PaymentMethod
from src.repositories.base import Repositories
from src.schemas.auth import UserContext
from src.services.inventory_service import InventoryService, StockLine
from src.services.order_transitions import (
    ActorRole,
    Deny,
    evaluate_transition,
    parse_status,
    stock_effect,
)

logger = logging.getLogger(__name__)


class OrderService:
    """Service for reading orders and driving the status state machine."""

    def __init__(
        self,
        repositories: Repositories | None = None,
        inventory: InventoryService | None = None,
    ) -> None:
        """Initialize order service with repositories and the inventory ledger."""
        repositories = repositories or get_repositories()
        self.orders = repositories.orders
        self.inventory = inventory or InventoryService(repositories)

    async def get_order(self, order_id: str, user: UserContext) -> dict[str, Any]:
        """Get an order with its lines.

        Raises:
            NotFoundError: If the order does not exist.
            ForbiddenError: If the user neither owns the order nor is an admin.
        """
        order = await self._load(order_id)
        if not user.is_admin and order["user_id"] != str(user.user_id):
            raise ForbiddenError("Not authorized to view this order")
        return await self._with_items(order)

    async def list_orders_for_user(self, user_id: str) -> list[dict[str, Any]]:
        """List a user's orders, newest first, with lines."""
        orders = await self.orders.list_for_user(user_id)
        return [await self._with_items(order) for order in orders]

    async def list_all_orders(self) -> list[dict[str, Any]]:
        """List every order, newest first, with lines."""
        orders = await self.orders.list_all()
        return [await self._with_items(order) for order in orders]

    async def update_status(
        self,
        order_id: str,
        status: str,
        user: UserContext,
        note: str | None = None,
    ) -> tuple[dict[str, Any], str | None]:
        """Change an order's status on behalf of a user or admin.

        Args:
            order_id: Order to update.
            status: Requested status literal.
            user: Authenticated requester.
            note: Optional note stored on the order.

        Returns:
            tuple: (order with lines, optional message for the requester).

        Raises:
            ValidationError: If status is not a known literal.
            NotFoundError: If the order does not exist.
            ForbiddenError: If the requester may not make this change.
            IllegalTransitionError: If the change is not legal from the current status.
        """
        target = parse_status(status)
        order = await self._load(order_id)
        role = ActorRole.ADMIN if user.is_admin else ActorRole.USER
        is_owner = order["user_id"] == str(user.user_id)

        updated, message = await self._transition(order, target, role, is_owner, note)
        logger.info(
            "Order %s status %s -> %s by %s %s",
            order_id,
            order["status"],
            target.value,
            role.value,
            user.user_id,
        )
        return await self._with_items(updated), message

    async def advance_for_payment(self, order_id: str) -> Order | None:
        """Move an order forward after a verified gateway payment.

        The gateway is a system actor and only follows the forward graph, so
        an order that was cancelled or already advanced is left untouched.

        Returns:
            Order | None: The updated order, or None if the move was not legal.
        """
        order = await self._load(order_id)
        try:
            updated, _ = await self._transition(
                order, OrderStatus.PROCESSING, ActorRole.SYSTEM, is_owner=False, note=None
            )
        except IllegalTransitionError as e:
            logger.warning("Paid order %s not advanced: %s", order_id, e.message)
            return None
        logger.info("Order %s advanced to processing after payment", order_id)
        return updated

    async def attach_payment_proof(
        self, order_id: str, proof_ref: str, user: UserContext
    ) -> dict[str, Any]:
        """Record an uploaded proof-of-payment reference on a bank order.

        Raises:
            ValidationError: If proof_ref is empty or the order is not a bank order.
            NotFoundError: If the order does not exist.
            ForbiddenError: If the requester is not the owner or an admin.
            IllegalTransitionError: If the order is no longer pending or processing.
        """
        if not proof_ref or not proof_ref.strip():
            raise ValidationError("Payment proof reference is required")

        order = await self._load(order_id)
        if not user.is_admin and order["user_id"] != str(user.user_id):
            raise ForbiddenError("Not authorized to modify this order")
        if order["payment_method"] != PaymentMethod.BANK.value:
            raise ValidationError("Payment proof only applies to bank transfer orders")
        if OrderStatus(order["status"]) not in (OrderStatus.PENDING, OrderStatus.PROCESSING):
            raise IllegalTransitionError("Payment proof can only be attached to open orders")

        update: OrderUpdate = {"payment_proof": proof_ref.strip()}
        updated = await self.orders.compare_and_set_status(order_id, order["status"], update)
        if updated is None:
            raise IllegalTransitionError("Order status changed concurrently, please retry")

        logger.info("Payment proof attached to order %s", order_id)
        return await self._with_items(updated)

    async def _transition(
        self,
        order: Order,
        target: OrderStatus,
        role: ActorRole,
        is_owner: bool,
        note: str | None,
    ) -> tuple[Order, str | None]:
        current = OrderStatus(order["status"])
        decision = evaluate_transition(
            current_status=current,
            target_status=target,
            actor_role=role,
            is_owner=is_owner,
            payment_method=PaymentMethod(order["payment_method"]),
            has_proof=bool(order.get("payment_proof")),
        )
        if isinstance(decision, Deny):
            if decision.kind == "forbidden":
                raise ForbiddenError(decision.reason)
            raise IllegalTransitionError(decision.reason)

        effect = stock_effect(current, target, bool(order.get("stock_released")))
        lines: list[StockLine] = []
        if effect:
            items = await self.orders.get_items(order["id"])
            lines = [StockLine(item["product_id"], item["quantity"]) for item in items]

        if effect == "reserve":
            await self.inventory.reserve_all(lines)

        update: OrderUpdate = {"status": target.value}
        if note is not None:
            update["note"] = note
        if effect == "release":
            update["stock_released"] = True
        elif effect == "reserve":
            update["stock_released"] = False

        updated = await self.orders.compare_and_set_status(order["id"], current.value, update)
        if updated is None:
            if effect == "reserve":
                await self.inventory.release_all(lines)
            raise IllegalTransitionError("Order status changed concurrently, please retry")

        # Only the writer that won the compare-and-set releases, so stock
        # is returned exactly once.
        if effect == "release":
            await self.inventory.release_all(lines)

        return updated, decision.message

    async def _load(self, order_id: str) -> Order:
        order = await self.orders.get(order_id)
        if not order:
            raise NotFoundError("Order not found")
        return order

    async def _with_items(self, order: Order) -> dict[str, Any]:
        items = await self.orders.get_items(order["id"])
        return {**order, "items": items}
