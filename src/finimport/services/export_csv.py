"""CSV export of import reports."""

from __future__ import annotations

import csv
from pathlib import Path

from .reporting import REPORT_COLUMNS, ImportReport, record_status


def export_report_csv(*, report: ImportReport, output_path: Path) -> Path:
    """Write every record of ``report`` to CSV at ``output_path``.

    Columns are deterministic (see ``REPORT_COLUMNS``); errors and warnings are
    joined with ``"; "``. Returns the path written.
    """

    output_path.parent.mkdir(parents=True, exist_ok=True)

    # Use newline='' for csv on Windows
    with output_path.open("w", newline="", encoding="utf-8") as fh:
        writer = csv.DictWriter(fh, fieldnames=REPORT_COLUMNS, quoting=csv.QUOTE_MINIMAL)
        writer.writeheader()
        for record in report.transactions:
            writer.writerow(
                {
                    "row": record.row_number,
                    "status": record_status(record),
                    "date": record.date,
                    "type": record.type,
                    "amount": str(record.amount),
                    "description": record.description,
                    "category": record.category,
                    "account_name": record.account_name,
                    "errors": "; ".join(record.errors),
                    "warnings": "; ".join(record.warnings),
                }
            )

    return output_path
