"""SQLModel definitions for ledger transactions."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, ClassVar, Optional

from sqlalchemy import JSON, Column
from sqlalchemy.orm import relationship
from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:  # pragma: no cover - import guard for circular dependency
    from .account import Account
    from .category import Category


class Transaction(SQLModel, table=True):
    """A single ledger transaction imported or hand-entered."""

    __tablename__: ClassVar[str] = "transaction"

    id: Optional[int] = Field(default=None, primary_key=True)
    occurred_at: datetime = Field(nullable=False, index=True)
    txn_type: str = Field(default="expense", nullable=False, max_length=16)
    amount: float = Field(nullable=False, description="Positive for inflow, negative for outflow")
    description: str = Field(default="", max_length=500)
    tags: Optional[list[str]] = Field(default=None, sa_column=Column(JSON, nullable=True))
    is_recurring: bool = Field(default=False, nullable=False)

    category_id: Optional[int] = Field(default=None, foreign_key="category.id")
    category: "Category | None" = Relationship(
        back_populates="transactions",
        sa_relationship=relationship("Category", back_populates="transactions"),
    )

    account_id: Optional[int] = Field(default=None, foreign_key="account.id")
    account: "Account | None" = Relationship(
        back_populates="transactions",
        sa_relationship=relationship("Account", back_populates="transactions"),
    )
