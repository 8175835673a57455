"""Import pipeline facade: read, detect, map, normalize, commit."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Union

from ..config import BaseConfig
from ..logging_config import get_logger
from .committer import BatchCommitter, BulkCommitClient
from .mapping import FieldMapping, auto_map, identity_mapping
from .normalizer import ParsedTransaction, RecordDefaults, normalize_rows
from .readers import read_source
from .reporting import BatchSummary, ImportReport, summarize
from .schema import DetectedSchema, detect, normalize_separator

logger = get_logger(__name__)


@dataclass(frozen=True)
class ImportOptions:
    """How to read an uploaded file."""

    format: str = "csv"
    separator: str = ","
    has_headers: bool = True
    encoding: str = "utf-8"

    def __post_init__(self) -> None:
        fmt = self.format.lower()
        if fmt not in ("csv", "json"):
            raise ValueError(f"Unsupported import format: {self.format!r}")
        object.__setattr__(self, "format", fmt)
        object.__setattr__(self, "separator", normalize_separator(self.separator))

    @classmethod
    def from_config(cls, config: BaseConfig, **overrides) -> "ImportOptions":
        values = {
            "separator": config.DEFAULT_SEPARATOR,
            "encoding": config.DEFAULT_ENCODING,
        }
        values.update({key: value for key, value in overrides.items() if value is not None})
        return cls(**values)


@dataclass
class ImportSession:
    """State of one import attempt, owned by a single caller.

    The mapping step is the only pause: callers inspect ``columns`` and
    ``mapping``, adjust it with ``update_mapping`` and then ``normalize``. A
    failed ``commit`` can be retried without normalizing again. Dropping the
    session before ``commit`` cancels the import with no side effects.
    """

    options: ImportOptions = field(default_factory=ImportOptions)
    max_bytes: Optional[int] = None
    defaults: RecordDefaults = field(default_factory=RecordDefaults)
    schema: Optional[DetectedSchema] = None
    mapping: FieldMapping = field(default_factory=FieldMapping)
    records: Optional[list[ParsedTransaction]] = None
    report: Optional[ImportReport] = None

    @classmethod
    def from_config(cls, config: BaseConfig, options: Optional[ImportOptions] = None) -> "ImportSession":
        return cls(
            options=options or ImportOptions.from_config(config),
            max_bytes=config.MAX_IMPORT_BYTES,
            defaults=RecordDefaults.from_config(config),
        )

    @property
    def columns(self) -> tuple[str, ...]:
        return self.schema.columns if self.schema else ()

    @property
    def row_count(self) -> int:
        return len(self.schema.rows) if self.schema else 0

    def load(self, data: Union[bytes, str]) -> DetectedSchema:
        """Decode and detect ``data``; pre-populates the mapping from the header."""

        source = read_source(
            data,
            format=self.options.format,
            encoding=self.options.encoding,
            max_bytes=self.max_bytes,
        )
        self.schema = detect(
            source,
            separator=self.options.separator,
            has_headers=self.options.has_headers,
        )
        self.mapping = identity_mapping() if self.schema.is_json else auto_map(self.schema.columns)
        self.records = None
        self.report = None
        return self.schema

    def update_mapping(self, **columns) -> FieldMapping:
        if self.records is not None:
            raise RuntimeError("Mapping is read-only once records have been normalized")
        self.mapping = self.mapping.with_changes(**columns)
        return self.mapping

    def normalize(self, *, now: Optional[datetime] = None) -> list[ParsedTransaction]:
        """Freeze the mapping and validate every row.

        Raises:
            IncompleteMappingError: date, amount or description is unmapped.
        """

        if self.schema is None:
            raise RuntimeError("No source loaded; call load() first")
        self.mapping = self.mapping.freeze()
        self.records = normalize_rows(self.schema.rows, self.mapping, now=now, defaults=self.defaults)
        return self.records

    def summary(self) -> BatchSummary:
        if self.records is None:
            raise RuntimeError("Nothing normalized yet; call normalize() first")
        return summarize(self.records)

    def commit(self, client: BulkCommitClient) -> ImportReport:
        if self.records is None:
            raise RuntimeError("Nothing normalized yet; call normalize() first")
        self.report = BatchCommitter(client).commit(self.records)
        return self.report


def _prepare(
    data: Union[bytes, str],
    *,
    options: Optional[ImportOptions],
    mapping: Optional[FieldMapping],
    config: Optional[BaseConfig],
) -> ImportSession:
    if config is not None:
        session = ImportSession.from_config(config, options)
    else:
        session = ImportSession(options=options or ImportOptions())
    session.load(data)
    if mapping is not None and not session.schema.is_json:
        # Only explicitly mapped fields override the auto-mapped guess.
        overrides = {name: column for name, column in mapping.as_dict().items() if column is not None}
        session.update_mapping(**overrides)
    return session


def preview(
    data: Union[bytes, str],
    *,
    options: Optional[ImportOptions] = None,
    mapping: Optional[FieldMapping] = None,
    now: Optional[datetime] = None,
    config: Optional[BaseConfig] = None,
) -> list[ParsedTransaction]:
    """Normalize ``data`` without committing anything."""

    session = _prepare(data, options=options, mapping=mapping, config=config)
    return session.normalize(now=now)


def run_import(
    data: Union[bytes, str],
    client: BulkCommitClient,
    *,
    options: Optional[ImportOptions] = None,
    mapping: Optional[FieldMapping] = None,
    now: Optional[datetime] = None,
    config: Optional[BaseConfig] = None,
) -> ImportReport:
    """Run the whole pipeline non-interactively and return the report."""

    session = _prepare(data, options=options, mapping=mapping, config=config)
    session.normalize(now=now)
    return session.commit(client)
