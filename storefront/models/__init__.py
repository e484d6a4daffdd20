# Storefront Models

from .product import Product, ProductVariant, ProductBadge
from .cart import (
    Cart,
    CartLine,
    CartTotals,
    LocalCartState,
    MutationOutcome,
    PersistedCart,
)
from .checkout import CheckoutResult, CheckoutRequest
from .remote_cart import (
    RemoteCart,
    RemoteCartLine,
    RemoteCartState,
    CartLineInput,
    Money,
    UserError,
)

__all__ = [
    "Product",
    "ProductVariant",
    "ProductBadge",
    "Cart",
    "CartLine",
    "CartTotals",
    "LocalCartState",
    "MutationOutcome",
    "PersistedCart",
    "CheckoutResult",
    "CheckoutRequest",
    "RemoteCart",
    "RemoteCartLine",
    "RemoteCartState",
    "CartLineInput",
    "Money",
    "UserError",
]
