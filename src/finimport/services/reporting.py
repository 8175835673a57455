"""Aggregate import outcomes for display."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

import pandas as pd

from .normalizer import ParsedTransaction

REPORT_COLUMNS = [
    "row",
    "status",
    "date",
    "type",
    "amount",
    "description",
    "category",
    "account_name",
    "errors",
    "warnings",
]


@dataclass(frozen=True)
class BatchSummary:
    """Counters shown while previewing a batch, before anything is committed."""

    total: int
    valid: int
    invalid: int
    with_warnings: int


@dataclass(frozen=True)
class ImportReport:
    """Terminal artifact of one import attempt."""

    total: int
    success: int
    warnings: int
    errors: int
    transactions: tuple[ParsedTransaction, ...]

    def failed(self) -> list[tuple[int, ParsedTransaction]]:
        """Return ``(row_number, record)`` for every record that was not committed."""

        return [(record.row_number, record) for record in self.transactions if record.errors]

    def as_dict(self) -> dict[str, int]:
        return {
            "total": self.total,
            "success": self.success,
            "warnings": self.warnings,
            "errors": self.errors,
        }

    def to_frame(self) -> pd.DataFrame:
        """Itemized view of every record, failed rows included."""

        return records_frame(self.transactions)


def record_status(record: ParsedTransaction) -> str:
    if record.errors:
        return "error"
    if record.warnings:
        return "warning"
    return "ok"


def records_frame(records: Sequence[ParsedTransaction]) -> pd.DataFrame:
    rows = [
        {
            "row": record.row_number,
            "status": record_status(record),
            "date": record.date,
            "type": record.type,
            "amount": float(record.amount),
            "description": record.description,
            "category": record.category,
            "account_name": record.account_name,
            "errors": "; ".join(record.errors),
            "warnings": "; ".join(record.warnings),
        }
        for record in records
    ]
    return pd.DataFrame(rows, columns=REPORT_COLUMNS)


def summarize(records: Sequence[ParsedTransaction]) -> BatchSummary:
    invalid = sum(1 for record in records if record.errors)
    return BatchSummary(
        total=len(records),
        valid=len(records) - invalid,
        invalid=invalid,
        with_warnings=sum(1 for record in records if record.warnings),
    )


def build_report(records: Sequence[ParsedTransaction], imported: int) -> ImportReport:
    """Combine the normalized batch with the collaborator's imported count."""

    summary = summarize(records)
    return ImportReport(
        total=summary.total,
        success=imported,
        warnings=summary.with_warnings,
        errors=summary.invalid,
        transactions=tuple(records),
    )
