"""
Checkout

Walks the local cart, adds each line to the remote cart one call at a
time, and hands back the hosted checkout URL. The local cart is cleared
only when the whole sequence succeeds.
"""

import logging
from typing import Optional

from ..database.carts import CartStore
from ..models.cart import CartLine
from ..models.checkout import CheckoutResult
from ..models.remote_cart import RemoteCart
from .cart_sync import RemoteCartService

logger = logging.getLogger(__name__)


class CheckoutError(Exception):
    """A checkout step failed; the local cart is left untouched"""

    def __init__(self, message: str, added_line_ids: list[str], skipped_line_ids: list[str]):
        super().__init__(message)
        self.message = message
        self.added_line_ids = added_line_ids
        self.skipped_line_ids = skipped_line_ids


class CheckoutService:
    """Reconciles a CartStore with the remote cart at checkout time"""

    def __init__(self, cart_service: RemoteCartService):
        self.cart_service = cart_service

    async def checkout(self, store: CartStore) -> CheckoutResult:
        """
        Build the remote cart from the store's lines.

        Lines without a resolvable variant are skipped with a warning. The
        first failed provider call aborts the sequence. On success the store
        is cleared and closed; on failure it is left as is and opened so the
        shopper can retry.
        """
        lines = store.items
        if not lines:
            return CheckoutResult(success=False, error_message="Cart is empty")

        try:
            remote, added, skipped = await self._reconcile(lines)
        except CheckoutError as e:
            logger.error(f"Checkout error: {e.message}")
            store.open_cart()
            return CheckoutResult(
                success=False,
                cart_id=self.cart_service.cart_id,
                error_message=e.message,
                added_line_ids=e.added_line_ids,
                skipped_line_ids=e.skipped_line_ids,
            )

        if remote is None or not remote.checkout_url:
            logger.error("Checkout error: no checkout URL received")
            store.open_cart()
            return CheckoutResult(
                success=False,
                error_message="No checkout URL received",
                added_line_ids=added,
                skipped_line_ids=skipped,
            )

        # Clear local cart before handing off to the hosted checkout
        store.clear_cart()
        store.close_cart()
        logger.info(f"Checkout ready for remote cart {remote.id}: {len(added)} line(s)")

        return CheckoutResult(
            success=True,
            checkout_url=remote.checkout_url,
            cart_id=remote.id,
            added_line_ids=added,
            skipped_line_ids=skipped,
        )

    async def _reconcile(
        self,
        lines: tuple[CartLine, ...],
    ) -> tuple[Optional[RemoteCart], list[str], list[str]]:
        """
        Fold the lines onto the remote cart.

        Each call is awaited before the next: the first one establishes the
        remote cart id that every later one extends.
        """
        remote: Optional[RemoteCart] = None
        added: list[str] = []
        skipped: list[str] = []

        for line in lines:
            variant_id = line.resolved_variant_id
            if not variant_id:
                logger.warning(f"No variant ID for product {line.product.name}, skipping...")
                skipped.append(line.id)
                continue

            remote = await self.cart_service.add_line(variant_id, line.quantity)
            if remote is None:
                raise CheckoutError("Failed to add item to cart", added, skipped)
            added.append(line.id)

        return remote, added, skipped
