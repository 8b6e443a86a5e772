"""Cart API routes."""

from uuid import UUID

from fastapi import APIRouter, status

from src.api.deps import CurrentUser
from src.schemas.cart import CartItemAdd, CartItemUpdate, CartResponse
from src.services.cart_service import CartService

router = APIRouter(prefix="/cart", tags=["cart"])


async def _cart_response(service: CartService, user_id: str) -> CartResponse:
    return CartResponse.model_validate(await service.get_cart(user_id))


@router.get(
    "",
    response_model=CartResponse,
    summary="Get my cart",
    description="Returns the current user's cart lines with current product data.",
)
async def get_cart(user: CurrentUser) -> CartResponse:
    """Get the authenticated user's cart."""
    return await _cart_response(CartService(), str(user.user_id))


@router.post(
    "",
    response_model=CartResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add to cart",
    description="Adds a product to the cart, merging with an existing line.",
)
async def add_to_cart(data: CartItemAdd, user: CurrentUser) -> CartResponse:
    """Add a product to the cart.

    Args:
        data: Product and quantity to add.
        user: Authenticated user.

    Returns:
        CartResponse: The updated cart.
    """
    service = CartService()
    await service.add_item(str(user.user_id), str(data.product_id), data.quantity)
    return await _cart_response(service, str(user.user_id))


@router.put(
    "/{product_id}",
    response_model=CartResponse,
    summary="Set line quantity",
)
async def update_cart_item(product_id: UUID, data: CartItemUpdate, user: CurrentUser) -> CartResponse:
    """Set the quantity of an existing cart line."""
    service = CartService()
    await service.update_item(str(user.user_id), str(product_id), data.quantity)
    return await _cart_response(service, str(user.user_id))


@router.delete(
    "/{product_id}",
    response_model=CartResponse,
    summary="Remove line",
)
async def remove_cart_item(product_id: UUID, user: CurrentUser) -> CartResponse:
    """Remove one product from the cart."""
    service = CartService()
    await service.remove_item(str(user.user_id), str(product_id))
    return await _cart_response(service, str(user.user_id))


@router.delete(
    "",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Clear cart",
)
async def clear_cart(user: CurrentUser) -> None:
    """Remove every line from the cart."""
    await CartService().clear(str(user.user_id))
