"""Coerce and validate raw rows into :class:`ParsedTransaction` records.

Every canonical field is checked by its own pure function returning a
:class:`FieldResult`. A row's results are concatenated without short-circuiting,
so a single bad cell never hides problems in the others. Records with errors are
kept (for reporting) but are never eligible for commit.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, Optional, Sequence

from ..logging_config import get_logger
from .mapping import FieldMapping
from .schema import JsonRow, RawRow, field_value

logger = get_logger(__name__)

MAX_DESCRIPTION_LENGTH = 200
DEFAULT_CATEGORY = "Otros"
DEFAULT_ACCOUNT = "Principal"

INCOME_WORDS = ("ingreso", "income")
INCOME_SYMBOLS = ("+", "1")
EXPENSE_WORDS = ("gasto", "expense")
EXPENSE_SYMBOLS = ("-", "0")

_CURRENCY_NOISE = re.compile(r"[$€£¥,\s]")
_TRUE_STRINGS = {"1", "true", "yes", "on", "si", "sí", "y"}
_FALSE_STRINGS = {"0", "false", "no", "off", "n", ""}
_DATE_FORMATS = (
    "%Y-%m-%d",
    "%Y/%m/%d",
    "%d/%m/%Y",
    "%d-%m-%Y",
    "%m/%d/%Y",
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%d %H:%M",
    "%d/%m/%Y %H:%M:%S",
    "%d/%m/%Y %H:%M",
)


@dataclass(frozen=True)
class FieldResult:
    """Outcome of validating a single field."""

    value: Any
    errors: tuple[str, ...] = ()
    warnings: tuple[str, ...] = ()


@dataclass(frozen=True)
class ParsedTransaction:
    """One normalized import record with its validation messages."""

    type: str
    amount: Decimal
    description: str
    category: str
    account_name: str
    date: str
    tags: Optional[tuple[str, ...]] = None
    recurring: Optional[bool] = None
    errors: tuple[str, ...] = ()
    warnings: tuple[str, ...] = ()
    row_number: int = 0

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def to_payload(self) -> dict[str, Any]:
        """Wire representation sent to the bulk-commit endpoint."""

        payload: dict[str, Any] = {
            "type": self.type,
            "amount": float(self.amount),
            "description": self.description,
            "category": self.category,
            "account_name": self.account_name,
            "date": self.date,
        }
        if self.tags is not None:
            payload["tags"] = list(self.tags)
        if self.recurring is not None:
            payload["recurring"] = self.recurring
        return payload


@dataclass(frozen=True)
class RecordDefaults:
    """Fallback values for the optional cosmetic fields."""

    category: str = DEFAULT_CATEGORY
    account_name: str = DEFAULT_ACCOUNT

    @classmethod
    def from_config(cls, config) -> "RecordDefaults":
        return cls(
            category=getattr(config, "DEFAULT_CATEGORY", DEFAULT_CATEGORY),
            account_name=getattr(config, "DEFAULT_ACCOUNT", DEFAULT_ACCOUNT),
        )


def _text(raw: Any) -> str:
    if raw is None:
        return ""
    return str(raw).strip()


def validate_type(raw: Any) -> FieldResult:
    text = _text(raw)
    if not text:
        return FieldResult("expense", warnings=("Type not specified, assuming expense",))

    lowered = text.lower()
    if any(word in lowered for word in INCOME_WORDS) or lowered in INCOME_SYMBOLS:
        return FieldResult("income")
    if any(word in lowered for word in EXPENSE_WORDS) or lowered in EXPENSE_SYMBOLS:
        return FieldResult("expense")
    return FieldResult("expense", errors=(f"Unrecognized type: {raw}",))


def validate_amount(raw: Any) -> FieldResult:
    text = _text(raw)
    if not text:
        return FieldResult(Decimal(0), errors=("Amount required",))

    cleaned = _CURRENCY_NOISE.sub("", text)
    try:
        amount = Decimal(cleaned)
    except InvalidOperation:
        return FieldResult(Decimal(0), errors=(f"Invalid amount: {raw}",))
    if not amount.is_finite() or amount < 0:
        return FieldResult(Decimal(0), errors=(f"Invalid amount: {raw}",))
    return FieldResult(amount)


def validate_description(raw: Any) -> FieldResult:
    text = _text(raw)
    if not text:
        return FieldResult("", errors=("Description required",))
    if len(text) > MAX_DESCRIPTION_LENGTH:
        return FieldResult(
            text[:MAX_DESCRIPTION_LENGTH],
            warnings=("Description too long, will be truncated",),
        )
    return FieldResult(text)


def parse_date(text: str) -> Optional[datetime]:
    """Parse a calendar date in any of the accepted layouts; ``None`` if impossible."""

    candidate = text.strip()
    if candidate.endswith(("Z", "z")):
        candidate = candidate[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(candidate)
    except ValueError:
        parsed = None
    if parsed is None:
        for fmt in _DATE_FORMATS:
            try:
                parsed = datetime.strptime(candidate, fmt)
                break
            except ValueError:
                continue
    if parsed is None:
        return None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def format_timestamp(moment: datetime) -> str:
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc).isoformat(timespec="seconds")


def validate_date(raw: Any, *, now: datetime) -> FieldResult:
    text = _text(raw)
    if not text:
        return FieldResult(
            format_timestamp(now),
            warnings=("Date not specified, using current date",),
        )
    parsed = parse_date(text)
    if parsed is None:
        return FieldResult(format_timestamp(now), errors=(f"Invalid date: {raw}",))
    return FieldResult(format_timestamp(parsed))


def coerce_label(raw: Any, default: str) -> FieldResult:
    # Defaults for category/account are applied silently.
    text = _text(raw)
    return FieldResult(text or default)


def coerce_tags(raw: Any) -> FieldResult:
    if raw is None:
        return FieldResult(None)
    if isinstance(raw, str):
        parts: Iterable[Any] = raw.split(";")
    elif isinstance(raw, (list, tuple)):
        parts = raw
    else:
        parts = [raw]
    return FieldResult(tuple(tag for tag in (_text(part) for part in parts) if tag))


def coerce_recurring(raw: Any) -> FieldResult:
    if raw is None:
        return FieldResult(None)
    if isinstance(raw, str):
        lowered = raw.strip().lower()
        if lowered in _TRUE_STRINGS:
            return FieldResult(True)
        if lowered in _FALSE_STRINGS:
            return FieldResult(False)
    return FieldResult(bool(raw))


def normalize_row(
    row: RawRow,
    mapping: FieldMapping,
    *,
    now: datetime,
    defaults: RecordDefaults = RecordDefaults(),
    row_number: int = 0,
) -> ParsedTransaction:
    """Validate every field of ``row`` and build exactly one record."""

    def raw(name: str) -> Any:
        return field_value(row, name, mapping)

    txn_type = validate_type(raw("type"))
    amount = validate_amount(raw("amount"))
    description = validate_description(raw("description"))
    date = validate_date(raw("date"), now=now)
    category = coerce_label(raw("category"), defaults.category)
    account = coerce_label(raw("account_name"), defaults.account_name)
    # Tags and recurring only come from JSON objects; mappings cover the six canonical fields.
    extras = row.fields if isinstance(row, JsonRow) else {}
    tags = coerce_tags(extras.get("tags"))
    recurring = coerce_recurring(extras.get("recurring"))

    results = (txn_type, amount, description, date, category, account, tags, recurring)
    errors: tuple[str, ...] = ()
    warnings: tuple[str, ...] = ()
    for result in results:
        errors += result.errors
        warnings += result.warnings

    return ParsedTransaction(
        type=txn_type.value,
        amount=amount.value,
        description=description.value,
        category=category.value,
        account_name=account.value,
        date=date.value,
        tags=tags.value,
        recurring=recurring.value,
        errors=errors,
        warnings=warnings,
        row_number=row_number,
    )


def normalize_rows(
    rows: Sequence[RawRow],
    mapping: FieldMapping,
    *,
    now: Optional[datetime] = None,
    defaults: Optional[RecordDefaults] = None,
) -> list[ParsedTransaction]:
    """Normalize a batch in source order; deterministic for a fixed ``now``."""

    moment = now or datetime.now(timezone.utc)
    record_defaults = defaults or RecordDefaults()
    records = [
        normalize_row(row, mapping, now=moment, defaults=record_defaults, row_number=index)
        for index, row in enumerate(rows, start=1)
    ]
    invalid = sum(1 for record in records if record.errors)
    logger.info(
        "Normalized import batch",
        extra={
            "total": len(records),
            "valid": len(records) - invalid,
            "invalid": invalid,
            "with_warnings": sum(1 for record in records if record.warnings),
        },
    )
    return records


def valid_records(records: Iterable[ParsedTransaction]) -> list[ParsedTransaction]:
    return [record for record in records if not record.errors]


def invalid_records(records: Iterable[ParsedTransaction]) -> list[ParsedTransaction]:
    return [record for record in records if record.errors]
