"""Fatal errors raised by the import pipeline.

Per-record validation problems are never raised; they are collected on each
``ParsedTransaction`` instead. The exceptions below abort the current stage.
"""

from __future__ import annotations


class ImportPipelineError(Exception):
    """Base class for errors that halt an import attempt."""


class DecodeError(ImportPipelineError):
    """The raw bytes could not be decoded with the declared encoding."""

    def __init__(self, message: str, *, encoding: str | None = None) -> None:
        super().__init__(message)
        self.encoding = encoding


class SourceTooLargeError(ImportPipelineError):
    """The uploaded file exceeds the configured size limit."""

    def __init__(self, size: int, limit: int) -> None:
        super().__init__(f"File is {size} bytes; the import limit is {limit} bytes")
        self.size = size
        self.limit = limit


class MalformedSourceError(ImportPipelineError):
    """The decoded text is not valid for its declared format (e.g. broken JSON)."""


class IncompleteMappingError(ImportPipelineError):
    """Required canonical fields have no source column assigned."""

    def __init__(self, missing: tuple[str, ...]) -> None:
        super().__init__(f"Required fields are not mapped: {', '.join(missing)}")
        self.missing = missing


class NoValidRecordsError(ImportPipelineError):
    """Every record in the batch carries errors; nothing can be committed."""

    def __init__(self, total: int) -> None:
        super().__init__(f"No valid transactions to import ({total} rows, all invalid)")
        self.total = total


class CommitFailedError(ImportPipelineError):
    """The bulk-commit collaborator failed or rejected the batch."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
