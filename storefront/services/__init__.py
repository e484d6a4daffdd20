# Storefront services

from .storefront_client import StorefrontClient, StorefrontClientError, StorefrontAPIError
from .cart_sync import RemoteCartService
from .checkout import CheckoutService, CheckoutError

__all__ = [
    "StorefrontClient",
    "StorefrontClientError",
    "StorefrontAPIError",
    "RemoteCartService",
    "CheckoutService",
    "CheckoutError",
]
