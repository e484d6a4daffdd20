"""Product models for the storefront catalog"""

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel
from typing import Optional
from enum import Enum


class ProductBadge(str, Enum):
    SALE = "sale"
    NEW = "new"
    BESTSELLER = "bestseller"
    TRAVEL = "travel"


class ProductVariant(BaseModel):
    """Purchasable configuration of a product (e.g. a size)"""
    id: str
    name: str
    price: float = Field(ge=0)
    compare_at_price: Optional[float] = None
    in_stock: bool = True

    class Config:
        alias_generator = to_camel
        populate_by_name = True


class Product(BaseModel):
    """Product snapshot as supplied by the catalog provider"""
    id: str
    name: str
    description: Optional[str] = None
    price: float = Field(ge=0)
    compare_at_price: Optional[float] = None
    images: list[str] = []
    rating: Optional[float] = None
    review_count: Optional[int] = None
    badge: Optional[ProductBadge] = None
    in_stock: bool = True
    low_stock: Optional[bool] = None
    variants: Optional[list[ProductVariant]] = None

    class Config:
        alias_generator = to_camel
        populate_by_name = True

    @property
    def default_variant_id(self) -> Optional[str]:
        """ID of the first variant, if the product has any"""
        if self.variants:
            return self.variants[0].id
        return None
