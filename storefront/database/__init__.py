# Cart persistence

from .carts import CartStore, calculate_totals, round_money
from .storage import CartStorage, MemoryStorage, FileStorage

__all__ = [
    "CartStore",
    "calculate_totals",
    "round_money",
    "CartStorage",
    "MemoryStorage",
    "FileStorage",
]
