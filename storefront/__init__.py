# Storefront cart: local cart store and Shopify checkout reconciliation

from .database import CartStore, MemoryStorage, FileStorage, calculate_totals
from .services import RemoteCartService, CheckoutService, StorefrontClient

__all__ = [
    "CartStore",
    "MemoryStorage",
    "FileStorage",
    "calculate_totals",
    "RemoteCartService",
    "CheckoutService",
    "StorefrontClient",
]
