"""SQLModel table exports."""

from .account import Account
from .category import Category
from .transaction import Transaction

__all__ = [
    "Account",
    "Category",
    "Transaction",
]
