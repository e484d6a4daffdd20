"""Local cart store"""

import uuid
import logging
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Callable, Iterable, Optional, Union

from pydantic import ValidationError

from ..core.config import settings
from ..models.cart import (
    CartLine,
    CartTotals,
    LocalCartState,
    MutationOutcome,
    PersistedCart,
    PersistedCartState,
)
from ..models.product import Product
from .storage import CartStorage, MemoryStorage

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")

Listener = Callable[["CartStore"], None]


def round_money(value: float) -> float:
    """Round to cents, half away from zero"""
    return float(Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP))


def calculate_totals(
    lines: Iterable[CartLine],
    tax_rate: float = settings.tax_rate,
    free_shipping_threshold: float = settings.free_shipping_threshold,
    shipping_fee: float = settings.shipping_fee,
) -> CartTotals:
    """
    Compute cart totals from scratch.

    Subtotal, tax and shipping are each rounded to cents before being
    summed into the total.
    """
    item_count = 0
    subtotal = 0.0
    for line in lines:
        item_count += line.quantity
        subtotal += line.product.price * line.quantity

    if item_count == 0:
        return CartTotals()

    subtotal = round_money(subtotal)
    # Tax is charged on the subtotal as displayed, not the raw sum
    tax = round_money(subtotal * tax_rate)
    shipping = round_money(0.0 if subtotal >= free_shipping_threshold else shipping_fee)

    return CartTotals(
        item_count=item_count,
        subtotal=subtotal,
        tax=tax,
        shipping=shipping,
        total=round_money(subtotal + tax + shipping),
    )


class CartStore:
    """
    Shopping cart state container.

    Holds the cart lines, the drawer visibility flag and the derived
    totals. Every line mutation recomputes totals, writes the lines to
    storage and notifies subscribers. Mutations never raise: bad input
    yields MutationOutcome.INVALID and an unknown line id yields
    MutationOutcome.NOT_FOUND.
    """

    def __init__(
        self,
        storage: Optional[CartStorage] = None,
        storage_key: str = settings.cart_storage_key,
        tax_rate: float = settings.tax_rate,
        free_shipping_threshold: float = settings.free_shipping_threshold,
        shipping_fee: float = settings.shipping_fee,
    ):
        self.storage = storage if storage is not None else MemoryStorage()
        self.storage_key = storage_key
        self.tax_rate = tax_rate
        self.free_shipping_threshold = free_shipping_threshold
        self.shipping_fee = shipping_fee

        self._items: list[CartLine] = []
        self._totals = CartTotals()
        self._is_open = False
        self._state = LocalCartState.IDLE
        self._listeners: list[Listener] = []

        self.rehydrate()

    @classmethod
    def from_lines(cls, lines: Iterable[CartLine], **kwargs) -> "CartStore":
        """Build a store over in-memory storage seeded with lines"""
        storage = MemoryStorage()
        key = kwargs.pop("storage_key", settings.cart_storage_key)
        record = PersistedCart(
            state=PersistedCartState(
                items=[line.model_dump(mode="json", by_alias=True, exclude_none=True) for line in lines]
            )
        )
        storage.set_item(key, record.model_dump_json())
        return cls(storage=storage, storage_key=key, **kwargs)

    # ==================== State ====================

    @property
    def items(self) -> tuple[CartLine, ...]:
        return tuple(self._items)

    @property
    def is_open(self) -> bool:
        return self._is_open

    @property
    def state(self) -> LocalCartState:
        return self._state

    @property
    def totals(self) -> CartTotals:
        return self._totals

    @property
    def item_count(self) -> int:
        return self._totals.item_count

    @property
    def subtotal(self) -> float:
        return self._totals.subtotal

    @property
    def tax(self) -> float:
        return self._totals.tax

    @property
    def shipping(self) -> float:
        return self._totals.shipping

    @property
    def total(self) -> float:
        return self._totals.total

    def find_line(self, line_id: str) -> Optional[CartLine]:
        return next((line for line in self._items if line.id == line_id), None)

    # ==================== Line mutations ====================

    def add_item(
        self,
        product: Union[Product, dict],
        quantity: int = 1,
        variant_id: Optional[str] = None,
    ) -> MutationOutcome:
        """Add a product, merging with an existing line for the same variant"""
        product = self._coerce_product(product)
        if product is None:
            return MutationOutcome.INVALID

        if variant_id is not None and not isinstance(variant_id, str):
            logger.warning(f"Rejected variant id {variant_id!r} for product {product.id}")
            return MutationOutcome.INVALID

        quantity = self._coerce_quantity(quantity)
        effective_variant_id = variant_id or product.default_variant_id

        for index, line in enumerate(self._items):
            if line.product.id == product.id and line.variant_id == effective_variant_id:
                self._items[index] = line.model_copy(
                    update={"quantity": line.quantity + quantity}
                )
                self._commit()
                return MutationOutcome.MERGED

        try:
            new_line = CartLine(
                id=f"cart-item-{uuid.uuid4().hex}",
                product=product.model_copy(deep=True),
                quantity=quantity,
                variant_id=effective_variant_id,
            )
        except ValidationError as e:
            logger.warning(f"Rejected cart line for product {product.id}: {e}")
            return MutationOutcome.INVALID

        self._items.append(new_line)
        self._commit()
        return MutationOutcome.ADDED

    def update_quantity(self, line_id: str, quantity: int) -> MutationOutcome:
        """Set a line's quantity; zero or less removes the line"""
        if isinstance(quantity, bool) or not isinstance(quantity, int):
            logger.warning(f"Ignoring non-integer quantity {quantity!r} for {line_id}")
            return MutationOutcome.INVALID

        if quantity <= 0:
            return self.remove_item(line_id)

        for index, line in enumerate(self._items):
            if line.id == line_id:
                self._items[index] = line.model_copy(update={"quantity": quantity})
                self._commit()
                return MutationOutcome.UPDATED

        logger.debug(f"Cart line {line_id} not found, nothing to update")
        return MutationOutcome.NOT_FOUND

    def remove_item(self, line_id: str) -> MutationOutcome:
        """Remove a line"""
        remaining = [line for line in self._items if line.id != line_id]
        if len(remaining) == len(self._items):
            logger.debug(f"Cart line {line_id} not found, nothing to remove")
            return MutationOutcome.NOT_FOUND

        self._items = remaining
        self._commit()
        return MutationOutcome.REMOVED

    def clear_cart(self) -> MutationOutcome:
        """Remove every line and reset totals"""
        self._items = []
        self._totals = CartTotals()
        self._state = LocalCartState.IDLE
        self._persist()
        self._notify()
        return MutationOutcome.CLEARED

    # ==================== Visibility ====================

    def open_cart(self) -> bool:
        return self._set_open(True)

    def close_cart(self) -> bool:
        return self._set_open(False)

    def toggle_cart(self) -> bool:
        return self._set_open(not self._is_open)

    def _set_open(self, is_open: bool) -> bool:
        self._is_open = is_open
        self._notify()
        return is_open

    # ==================== Subscribers ====================

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call listener after every change; returns an unsubscribe function"""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self)
            except Exception as e:
                logger.error(f"Cart listener failed: {e}", exc_info=True)

    # ==================== Persistence ====================

    def rehydrate(self) -> None:
        """Load lines from storage and recompute totals"""
        self._items = self._load_lines()
        self._totals = self._calculate_totals()
        self._state = LocalCartState.IDLE
        if self._items:
            logger.info(f"Restored {len(self._items)} cart line(s) from '{self.storage_key}'")

    def _load_lines(self) -> list[CartLine]:
        try:
            raw = self.storage.get_item(self.storage_key)
        except Exception as e:
            logger.error(f"Could not read cart storage: {e}", exc_info=True)
            return []

        if not raw:
            return []

        try:
            record = PersistedCart.model_validate_json(raw)
        except ValidationError as e:
            logger.warning(f"Discarding unreadable cart record: {e}")
            return []

        lines = []
        for data in record.state.items:
            try:
                lines.append(CartLine.model_validate(data))
            except ValidationError as e:
                logger.warning(f"Dropping invalid persisted cart line: {e}")
        return lines

    def _persist(self) -> None:
        record = PersistedCart(
            state=PersistedCartState(
                items=[
                    line.model_dump(mode="json", by_alias=True, exclude_none=True)
                    for line in self._items
                ]
            )
        )
        try:
            self.storage.set_item(self.storage_key, record.model_dump_json())
        except Exception as e:
            logger.error(f"Could not write cart storage: {e}", exc_info=True)

    # ==================== Helpers ====================

    def _commit(self) -> None:
        self._totals = self._calculate_totals()
        self._state = LocalCartState.MODIFIED
        self._persist()
        self._notify()

    def _calculate_totals(self) -> CartTotals:
        return calculate_totals(
            self._items,
            tax_rate=self.tax_rate,
            free_shipping_threshold=self.free_shipping_threshold,
            shipping_fee=self.shipping_fee,
        )

    @staticmethod
    def _coerce_product(product: Any) -> Optional[Product]:
        if isinstance(product, Product):
            return product
        try:
            return Product.model_validate(product)
        except ValidationError as e:
            logger.warning(f"Ignoring invalid product: {e}")
            return None

    @staticmethod
    def _coerce_quantity(quantity: Any) -> int:
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
            return 1
        return quantity
