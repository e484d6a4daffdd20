"""Shopify Storefront cart models"""

from pydantic import BaseModel, Field, field_validator
from pydantic.alias_generators import to_camel
from typing import Optional
from enum import Enum

from .cart import Cart, CartLine
from .product import Product


class RemoteCartState(str, Enum):
    """What we know about the provider-side cart"""
    UNKNOWN = "unknown"
    CREATED = "created"
    SYNCED = "synced"
    FAILED = "failed"


class _StorefrontModel(BaseModel):
    class Config:
        alias_generator = to_camel
        populate_by_name = True


class Money(_StorefrontModel):
    """Amount as returned by the Storefront API (decimal string)"""
    amount: str
    currency_code: str = "USD"

    @property
    def value(self) -> float:
        return float(self.amount)


class CartCost(_StorefrontModel):
    total_amount: Money
    subtotal_amount: Money
    total_tax_amount: Optional[Money] = None


class Image(_StorefrontModel):
    url: str
    alt_text: Optional[str] = None


class MerchandiseProduct(_StorefrontModel):
    id: str
    title: str
    handle: Optional[str] = None
    featured_image: Optional[Image] = None


class Merchandise(_StorefrontModel):
    """A ProductVariant as referenced from a cart line"""
    id: str
    title: str
    price: Money
    product: MerchandiseProduct


class RemoteCartLine(_StorefrontModel):
    id: str
    quantity: int
    merchandise: Merchandise


class RemoteCart(_StorefrontModel):
    """Provider-owned cart"""
    id: str
    checkout_url: str
    total_quantity: int = 0
    cost: CartCost
    lines: list[RemoteCartLine] = []

    @field_validator("lines", mode="before")
    @classmethod
    def flatten_edges(cls, value):
        # Storefront connections arrive as {"edges": [{"node": {...}}]}
        if isinstance(value, dict):
            return [edge["node"] for edge in value.get("edges", [])]
        return value

    def to_cart(self) -> Cart:
        """Transform into the local cart view"""
        items = [
            CartLine(
                id=line.id,
                product=Product(
                    id=line.merchandise.product.id,
                    name=line.merchandise.product.title,
                    price=line.merchandise.price.value,
                    images=(
                        [line.merchandise.product.featured_image.url]
                        if line.merchandise.product.featured_image
                        else []
                    ),
                    in_stock=True,
                ),
                quantity=line.quantity,
                variant_id=line.merchandise.id,
            )
            for line in self.lines
        ]

        return Cart(
            items=items,
            subtotal=self.cost.subtotal_amount.value,
            tax=self.cost.total_tax_amount.value if self.cost.total_tax_amount else 0.0,
            shipping=0.0,  # Calculated at checkout
            total=self.cost.total_amount.value,
        )


class UserError(_StorefrontModel):
    """Validation error returned alongside a successful response"""
    field: Optional[list[str]] = None
    message: str = ""


class CartLineInput(_StorefrontModel):
    """Line request sent to cartCreate / cartLinesAdd"""
    merchandise_id: str
    quantity: int = Field(default=1, gt=0)

    def to_variables(self) -> dict:
        return self.model_dump(by_alias=True)
