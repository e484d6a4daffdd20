"""Cart models for the local shopping cart"""

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel
from typing import Optional
from enum import Enum

from .product import Product


class LocalCartState(str, Enum):
    """Whether the local cart has changed since it was loaded or cleared"""
    IDLE = "idle"
    MODIFIED = "modified"


class MutationOutcome(str, Enum):
    """Result of a local cart mutation"""
    ADDED = "added"
    MERGED = "merged"
    UPDATED = "updated"
    REMOVED = "removed"
    CLEARED = "cleared"
    NOT_FOUND = "not_found"
    INVALID = "invalid"


class CartLine(BaseModel):
    """One product + variant entry in the cart"""
    id: str
    product: Product
    quantity: int = Field(ge=1)
    variant_id: Optional[str] = None

    class Config:
        alias_generator = to_camel
        populate_by_name = True

    @property
    def resolved_variant_id(self) -> Optional[str]:
        """Variant sent to the provider at checkout"""
        return self.variant_id or self.product.default_variant_id


class CartTotals(BaseModel):
    """Totals derived from the cart lines"""
    item_count: int = 0
    subtotal: float = 0.0
    tax: float = 0.0
    shipping: float = 0.0
    total: float = 0.0

    class Config:
        alias_generator = to_camel
        populate_by_name = True


class Cart(BaseModel):
    """Cart view: lines plus money totals"""
    items: list[CartLine] = []
    subtotal: float = 0.0
    tax: float = 0.0
    shipping: float = 0.0
    total: float = 0.0


class PersistedCartState(BaseModel):
    """The part of the store that survives restarts"""
    items: list[dict] = []


class PersistedCart(BaseModel):
    """Storage envelope written under the cart storage key"""
    state: PersistedCartState = PersistedCartState()
    version: int = 0
