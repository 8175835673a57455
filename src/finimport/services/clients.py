"""Bulk-commit collaborators: remote HTTP backend and in-process repository."""

from __future__ import annotations

import numbers
from typing import TYPE_CHECKING, Any, Optional

import requests

from ..logging_config import get_logger
from .errors import CommitFailedError

if TYPE_CHECKING:  # pragma: no cover
    from ..infra.repositories.transaction import SQLModelTransactionRepository

logger = get_logger(__name__)

IMPORT_ENDPOINT = "/api/transactions/import"


class HttpBulkCommitClient:
    """POST ``{"transactions": [...]}`` to the backend's bulk import endpoint."""

    def __init__(
        self,
        base_url: str,
        *,
        session: Optional[requests.Session] = None,
        timeout: float = 30,
    ) -> None:
        self.url = base_url.rstrip("/") + IMPORT_ENDPOINT
        self.session = session or requests.Session()
        self.timeout = timeout

    def commit(self, transactions: list[dict[str, Any]]) -> int:
        try:
            resp = self.session.post(
                self.url,
                json={"transactions": transactions},
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            raise CommitFailedError(f"Could not reach import endpoint: {exc}") from exc

        try:
            data = resp.json()
        except ValueError:
            data = None

        if not resp.ok:
            message = None
            if isinstance(data, dict):
                message = data.get("error")
            raise CommitFailedError(
                message or f"Import endpoint returned HTTP {resp.status_code}",
                status_code=resp.status_code,
            )

        imported = data.get("imported") if isinstance(data, dict) else None
        if isinstance(imported, bool) or not isinstance(imported, numbers.Real):
            raise CommitFailedError("Import endpoint returned an unexpected response")

        logger.debug("Bulk commit response", extra={"imported": imported, "url": self.url})
        return int(imported)


class RepositoryBulkCommitClient:
    """Commit straight into the local database through the transaction repository."""

    def __init__(self, repository: "SQLModelTransactionRepository") -> None:
        self.repository = repository

    def commit(self, transactions: list[dict[str, Any]]) -> int:
        try:
            return self.repository.bulk_import(transactions)
        except Exception as exc:
            raise CommitFailedError(f"Database commit failed: {exc}") from exc
