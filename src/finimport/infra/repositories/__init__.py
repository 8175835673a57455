"""Concrete repository implementations using SQLModel."""

from .transaction import SQLModelTransactionRepository

__all__ = ["SQLModelTransactionRepository"]
