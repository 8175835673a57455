"""SQLModel implementation of the Transaction repository."""

from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Any, Callable, ContextManager, Mapping, Optional

from sqlmodel import Session, select

from ...logging_config import get_logger
from ...models.account import Account
from ...models.category import Category
from ...models.transaction import Transaction

logger = get_logger(__name__)

SessionFactory = Callable[[], ContextManager[Session]]

TRANSACTION_TYPES = ("income", "expense")
MAX_DESCRIPTION_LENGTH = 500

_SLUG_PATTERN = re.compile(r"[^a-z0-9]+")


def _slugify(label: str) -> str:
    cleaned = _SLUG_PATTERN.sub("-", label.strip().lower())
    cleaned = cleaned.strip("-")
    return cleaned or "uncategorized"


def _parse_datetime(raw: object) -> Optional[datetime]:
    if raw in (None, ""):
        return None
    if isinstance(raw, datetime):
        parsed = raw
    else:
        parsed = _parse_iso(raw)
        if parsed is None:
            return None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def _parse_iso(raw: object) -> Optional[datetime]:
    text = str(raw).strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        return None


class SQLModelTransactionRepository:
    """SQLModel-based transaction repository implementation."""

    def __init__(self, session_factory: SessionFactory):
        """Initialize with a session factory."""
        self.session_factory = session_factory

    def list_all(self, *, limit: int = 100, offset: int = 0) -> list[Transaction]:
        """List transactions, most recent first."""
        with self.session_factory() as session:
            statement = (
                select(Transaction)
                .order_by(Transaction.occurred_at.desc(), Transaction.id)  # type: ignore
                .offset(offset)
                .limit(limit)
            )
            rows = list(session.exec(statement).all())
            session.expunge_all()
            return rows

    def bulk_import(self, records: list[Mapping[str, Any]]) -> int:
        """Persist import payloads, skipping those that break storage constraints.

        Accounts and categories are resolved by name and created on demand. The
        whole batch runs in one session: a database failure rolls every record
        back and propagates. Returns the number of transactions stored.
        """

        stored = 0
        with self.session_factory() as session:
            for position, record in enumerate(records, start=1):
                problem = self._reject_reason(record)
                if problem:
                    logger.warning(
                        "Skipping import record",
                        extra={"position": position, "reason": problem},
                    )
                    continue

                txn_type = record["type"]
                amount = float(record["amount"])
                signed = -abs(amount) if txn_type == "expense" else abs(amount)
                account = self._resolve_account(session, str(record.get("account_name") or ""))
                category = self._resolve_category(
                    session, str(record.get("category") or ""), txn_type
                )
                tags = record.get("tags")

                session.add(
                    Transaction(
                        occurred_at=_parse_datetime(record["date"]),
                        txn_type=txn_type,
                        amount=signed,
                        description=str(record["description"]).strip(),
                        tags=list(tags) if tags else None,
                        is_recurring=bool(record.get("recurring", False)),
                        account_id=account.id if account else None,
                        category_id=category.id if category else None,
                    )
                )
                if account is not None:
                    account.balance = (account.balance or 0.0) + signed
                    session.add(account)
                stored += 1

            session.flush()

        logger.info("Bulk import stored", extra={"received": len(records), "stored": stored})
        return stored

    @staticmethod
    def _reject_reason(record: Mapping[str, Any]) -> Optional[str]:
        if not isinstance(record, Mapping):
            return "record is not an object"
        if record.get("type") not in TRANSACTION_TYPES:
            return "type must be income or expense"
        amount = record.get("amount")
        if isinstance(amount, bool) or not isinstance(amount, (int, float)) or amount <= 0:
            return "amount must be a positive number"
        description = record.get("description")
        if not isinstance(description, str) or not description.strip():
            return "description is required"
        if len(description) > MAX_DESCRIPTION_LENGTH:
            return "description is too long"
        if _parse_datetime(record.get("date")) is None:
            return "date is not valid"
        tags = record.get("tags")
        if tags is not None and not isinstance(tags, list):
            return "tags must be a list"
        return None

    @staticmethod
    def _resolve_account(session: Session, name: str) -> Optional[Account]:
        name = name.strip()
        if not name:
            return None
        existing = session.exec(select(Account).where(Account.name == name)).first()
        if existing:
            return existing
        account = Account(name=name)
        session.add(account)
        session.flush()
        return account

    @staticmethod
    def _resolve_category(session: Session, label: str, txn_type: str) -> Optional[Category]:
        label = label.strip()
        if not label:
            return None
        slug = _slugify(label)
        existing = session.exec(select(Category).where(Category.slug == slug)).first()
        if existing:
            return existing
        category = Category(name=label, slug=slug, category_type=txn_type)
        session.add(category)
        session.flush()
        return category
