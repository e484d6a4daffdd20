"""
Remote Cart Service

Mirrors local cart operations onto the Shopify cart resource and
surfaces the hosted checkout URL. Every operation returns the updated
RemoteCart, or None when the provider call failed for any reason.
"""

import logging
from typing import Optional

import httpx
from pydantic import ValidationError

from ..models.remote_cart import CartLineInput, RemoteCart, RemoteCartState, UserError
from . import queries
from .storefront_client import StorefrontClient, StorefrontClientError

logger = logging.getLogger(__name__)


class RemoteCartService:
    """Holds at most one remote cart id and mutates that cart"""

    def __init__(self, client: StorefrontClient, cart_id: Optional[str] = None):
        self.client = client
        self._cart_id = cart_id
        self._checkout_url: Optional[str] = None
        self.state = RemoteCartState.UNKNOWN
        self.last_errors: list[str] = []

    @property
    def cart_id(self) -> Optional[str]:
        return self._cart_id

    @property
    def checkout_url(self) -> Optional[str]:
        """Checkout URL from the last successful response"""
        return self._checkout_url

    def set_cart_id(self, cart_id: Optional[str]) -> None:
        """Resume a cart whose id was stored elsewhere (e.g. a cookie)"""
        self._cart_id = cart_id
        self._checkout_url = None
        self.state = RemoteCartState.UNKNOWN

    # ==================== Cart lifecycle ====================

    async def get_cart(self) -> Optional[RemoteCart]:
        """Fetch the known cart"""
        if not self._cart_id:
            return None

        data = await self._call("get cart", queries.GET_CART, {"cartId": self._cart_id})
        if data is None:
            return None

        if not data.get("cart"):
            # Expired or unknown cart id
            logger.info(f"Remote cart {self._cart_id} no longer exists")
            return None

        return self._accept(data["cart"], RemoteCartState.SYNCED)

    async def get_or_create_cart(self) -> Optional[RemoteCart]:
        """Fetch the known cart, or create a new one"""
        if self._cart_id:
            cart = await self.get_cart()
            if cart:
                return cart

        return await self.create_cart()

    async def create_cart(
        self,
        lines: Optional[list[CartLineInput]] = None,
    ) -> Optional[RemoteCart]:
        """Create a cart, optionally seeded with lines"""
        variables = {"lines": [line.to_variables() for line in lines or []]}
        cart = await self._mutate("cartCreate", queries.CREATE_CART, variables)
        if cart is None:
            return None

        self._cart_id = cart.id
        self.state = RemoteCartState.CREATED
        logger.info(f"Created remote cart {cart.id}")
        return cart

    # ==================== Lines ====================

    async def add_line(self, merchandise_id: str, quantity: int = 1) -> Optional[RemoteCart]:
        """Add a line to the cart, creating the cart if needed"""
        try:
            line = CartLineInput(merchandise_id=merchandise_id, quantity=quantity)
        except ValidationError as e:
            return self._fail("cartLinesAdd", [str(e)])

        cart = await self.get_or_create_cart()
        if not cart:
            return None

        return await self._mutate(
            "cartLinesAdd",
            queries.ADD_TO_CART,
            {"cartId": self._cart_id, "lines": [line.to_variables()]},
        )

    async def update_line_quantity(self, line_id: str, quantity: int) -> Optional[RemoteCart]:
        """Set a remote line's quantity"""
        if not self._cart_id:
            logger.debug("No remote cart yet, cannot update line")
            return None

        return await self._mutate(
            "cartLinesUpdate",
            queries.UPDATE_CART,
            {"cartId": self._cart_id, "lines": [{"id": line_id, "quantity": quantity}]},
        )

    async def remove_line(self, line_id: str) -> Optional[RemoteCart]:
        """Delete a remote line"""
        if not self._cart_id:
            logger.debug("No remote cart yet, cannot remove line")
            return None

        return await self._mutate(
            "cartLinesRemove",
            queries.REMOVE_FROM_CART,
            {"cartId": self._cart_id, "lineIds": [line_id]},
        )

    # ==================== Helpers ====================

    async def _mutate(self, name: str, document: str, variables: dict) -> Optional[RemoteCart]:
        """Run a cart mutation; userErrors count as failure"""
        data = await self._call(name, document, variables)
        if data is None:
            return None

        result = data.get(name) or {}
        if not isinstance(result, dict):
            return self._fail(name, ["Malformed mutation payload"])

        raw_errors = result.get("userErrors") or []
        if raw_errors:
            return self._fail(name, self._user_error_messages(raw_errors))

        if not result.get("cart"):
            return self._fail(name, ["No cart returned"])

        return self._accept(result["cart"], RemoteCartState.SYNCED)

    @staticmethod
    def _user_error_messages(raw_errors: list) -> list[str]:
        try:
            return [UserError.model_validate(e).message for e in raw_errors]
        except ValidationError:
            return [str(e.get("message", e)) if isinstance(e, dict) else str(e) for e in raw_errors]

    async def _call(self, name: str, document: str, variables: dict) -> Optional[dict]:
        try:
            return await self.client.request(document, variables)
        except (httpx.HTTPError, StorefrontClientError, ValueError) as e:
            return self._fail(name, [str(e)])

    def _accept(self, payload: dict, state: RemoteCartState) -> Optional[RemoteCart]:
        try:
            cart = RemoteCart.model_validate(payload)
        except ValidationError as e:
            return self._fail("parse cart", [str(e)])

        self._checkout_url = cart.checkout_url
        self.state = state
        self.last_errors = []
        return cart

    def _fail(self, name: str, errors: list[str]) -> None:
        logger.error(f"Shopify cart errors ({name}): {errors}")
        self.state = RemoteCartState.FAILED
        self.last_errors = errors
        return None
