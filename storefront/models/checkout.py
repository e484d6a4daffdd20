"""Checkout models"""

from pydantic import BaseModel
from pydantic.alias_generators import to_camel
from typing import Optional

from .cart import CartLine


class CheckoutResult(BaseModel):
    """Outcome of reconciling the local cart with the remote cart"""
    success: bool
    checkout_url: Optional[str] = None
    cart_id: Optional[str] = None
    error_message: Optional[str] = None
    added_line_ids: list[str] = []
    skipped_line_ids: list[str] = []

    class Config:
        alias_generator = to_camel
        populate_by_name = True


class CheckoutRequest(BaseModel):
    """Local cart lines submitted for checkout"""
    items: list[CartLine]
    tenant: Optional[str] = None
