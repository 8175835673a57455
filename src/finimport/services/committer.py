"""Send the valid subset of a normalized batch to the bulk-commit collaborator."""

from __future__ import annotations

from typing import Any, Protocol, Sequence

from ..logging_config import get_logger
from .errors import CommitFailedError, NoValidRecordsError
from .normalizer import ParsedTransaction, valid_records
from .reporting import ImportReport, build_report

logger = get_logger(__name__)


class BulkCommitClient(Protocol):
    """Persists a batch of transaction payloads and returns how many were stored."""

    def commit(self, transactions: list[dict[str, Any]]) -> int:
        ...


class BatchCommitter:
    """Commit valid records in a single round trip; no retries."""

    def __init__(self, client: BulkCommitClient) -> None:
        self.client = client

    def commit(self, records: Sequence[ParsedTransaction]) -> ImportReport:
        """Commit the records without errors and build the final report.

        Raises:
            NoValidRecordsError: no record is valid; the client is not called.
            CommitFailedError: the client failed; nothing is assumed persisted.
        """

        valid = valid_records(records)
        if not valid:
            logger.warning("Import aborted: no valid records", extra={"total": len(records)})
            raise NoValidRecordsError(len(records))

        payload = [record.to_payload() for record in valid]
        logger.info("Committing import batch", extra={"valid": len(valid), "total": len(records)})
        try:
            imported = self.client.commit(payload)
        except CommitFailedError:
            logger.error("Bulk commit failed", exc_info=True)
            raise
        except Exception as exc:
            logger.error("Bulk commit failed", exc_info=True)
            raise CommitFailedError(f"Bulk commit failed: {exc}") from exc

        # The collaborator may persist fewer records than it was sent, never more.
        success = max(0, min(int(imported), len(valid)))
        report = build_report(records, success)
        logger.info("Import committed", extra=report.as_dict())
        return report


def commit_records(records: Sequence[ParsedTransaction], client: BulkCommitClient) -> ImportReport:
    return BatchCommitter(client).commit(records)
