"""Cart API routes

Thin proxy onto the Shopify cart. The remote cart id travels in an
HTTP-only cookie so repeated requests extend the same remote cart.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Callable, Optional

from fastapi import APIRouter, Cookie, Depends, HTTPException, Response
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from pydantic.alias_generators import to_camel

from ..core.config import settings
from ..database.carts import CartStore
from ..models.cart import Cart
from ..models.checkout import CheckoutRequest
from ..models.remote_cart import RemoteCart
from ..services.cart_sync import RemoteCartService
from ..services.checkout import CheckoutService
from ..services.storefront_client import StorefrontClient

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/cart", tags=["Cart"])

ClientFactory = Callable[[Optional[str]], Optional[StorefrontClient]]


class AddLineRequest(BaseModel):
    """Request to add a variant to the remote cart"""
    variant_id: Optional[str] = None
    quantity: int = 1
    tenant: Optional[str] = None

    class Config:
        alias_generator = to_camel
        populate_by_name = True


class UpdateLineRequest(BaseModel):
    """Request to set a remote line's quantity"""
    line_id: Optional[str] = None
    quantity: int = 1
    tenant: Optional[str] = None

    class Config:
        alias_generator = to_camel
        populate_by_name = True


class CartResponse(BaseModel):
    """Cart API response"""
    success: bool = True
    cart: Optional[Cart] = None
    checkout_url: Optional[str] = None
    cart_id: Optional[str] = None

    class Config:
        alias_generator = to_camel
        populate_by_name = True

    @classmethod
    def from_remote(cls, remote: RemoteCart) -> "CartResponse":
        return cls(cart=remote.to_cart(), checkout_url=remote.checkout_url, cart_id=remote.id)


def build_storefront_client(tenant: Optional[str]) -> Optional[StorefrontClient]:
    """Create a client for the tenant, None if Shopify is not configured"""
    if settings.get_shopify_config(tenant) is None:
        return None
    return StorefrontClient.from_settings(tenant=tenant)


def get_client_factory() -> ClientFactory:
    return build_storefront_client


@asynccontextmanager
async def open_cart_service(
    factory: ClientFactory,
    tenant: Optional[str],
    cart_id: Optional[str] = None,
) -> AsyncIterator[RemoteCartService]:
    """Yield a cart service bound to the cookie's cart id"""
    client = factory(tenant)
    if client is None:
        raise HTTPException(status_code=400, detail="Shopify not configured")

    try:
        yield RemoteCartService(client, cart_id=cart_id)
    finally:
        await client.close()


def set_cart_cookie(response: Response, cart_id: str) -> None:
    response.set_cookie(
        settings.cart_cookie_name,
        cart_id,
        max_age=settings.cart_cookie_max_age,
        httponly=True,
        secure=not settings.debug,
        samesite="lax",
    )


def get_cart_id(
    cart_id: Optional[str] = Cookie(None, alias=settings.cart_cookie_name),
) -> Optional[str]:
    """Extract remote cart ID from cookie"""
    return cart_id


@router.get("", response_model=CartResponse)
async def get_cart(
    tenant: Optional[str] = None,
    cart_id: Optional[str] = Depends(get_cart_id),
    factory: ClientFactory = Depends(get_client_factory),
):
    """Get the current remote cart"""
    async with open_cart_service(factory, tenant, cart_id) as service:
        remote = await service.get_cart()

    if not remote:
        return CartResponse(success=False)
    return CartResponse.from_remote(remote)


@router.post("", response_model=CartResponse)
async def add_to_cart(
    request: AddLineRequest,
    response: Response,
    cart_id: Optional[str] = Depends(get_cart_id),
    factory: ClientFactory = Depends(get_client_factory),
):
    """Add an item to the remote cart, creating the cart if needed"""
    if not request.variant_id:
        raise HTTPException(status_code=400, detail="variantId is required")

    async with open_cart_service(factory, request.tenant, cart_id) as service:
        remote = await service.add_line(request.variant_id, request.quantity)

    if not remote:
        raise HTTPException(status_code=500, detail="Failed to add item to cart")

    set_cart_cookie(response, remote.id)
    return CartResponse.from_remote(remote)


@router.patch("", response_model=CartResponse)
async def update_cart_line(
    request: UpdateLineRequest,
    cart_id: Optional[str] = Depends(get_cart_id),
    factory: ClientFactory = Depends(get_client_factory),
):
    """Update a remote line's quantity"""
    if not request.line_id:
        raise HTTPException(status_code=400, detail="lineId is required")

    async with open_cart_service(factory, request.tenant, cart_id) as service:
        if not cart_id:
            raise HTTPException(status_code=404, detail="No cart found")
        remote = await service.update_line_quantity(request.line_id, request.quantity)

    if not remote:
        raise HTTPException(status_code=500, detail="Failed to update cart")
    return CartResponse.from_remote(remote)


@router.delete("", response_model=CartResponse)
async def remove_cart_line(
    lineId: Optional[str] = None,
    tenant: Optional[str] = None,
    cart_id: Optional[str] = Depends(get_cart_id),
    factory: ClientFactory = Depends(get_client_factory),
):
    """Remove a line from the remote cart"""
    if not lineId:
        raise HTTPException(status_code=400, detail="lineId is required")

    async with open_cart_service(factory, tenant, cart_id) as service:
        if not cart_id:
            raise HTTPException(status_code=404, detail="No cart found")
        remote = await service.remove_line(lineId)

    if not remote:
        raise HTTPException(status_code=500, detail="Failed to remove item")
    return CartResponse.from_remote(remote)


@router.post("/checkout")
async def checkout(
    request: CheckoutRequest,
    cart_id: Optional[str] = Depends(get_cart_id),
    factory: ClientFactory = Depends(get_client_factory),
):
    """Reconcile submitted local cart lines and return the checkout URL"""
    if not request.items:
        raise HTTPException(status_code=400, detail="Cart is empty")

    store = CartStore.from_lines(request.items)

    async with open_cart_service(factory, request.tenant, cart_id) as service:
        result = await CheckoutService(service).checkout(store)

    body = result.model_dump(mode="json", by_alias=True)
    if result.success:
        response = JSONResponse(content=body)
    else:
        logger.warning(f"Checkout failed: {result.error_message}")
        response = JSONResponse(status_code=502, content=body)

    # A retry must extend the same remote cart
    if result.cart_id:
        set_cart_cookie(response, result.cart_id)
    return response
