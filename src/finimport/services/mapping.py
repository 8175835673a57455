"""Field mapping between canonical transaction fields and source columns."""

from __future__ import annotations

from dataclasses import dataclass, fields, replace
from typing import Iterable, Mapping, Optional

from ..logging_config import get_logger
from .errors import IncompleteMappingError
from .schema import ColumnRef

logger = get_logger(__name__)

CANONICAL_FIELDS: tuple[str, ...] = (
    "date",
    "type",
    "amount",
    "description",
    "category",
    "account_name",
)
REQUIRED_FIELDS: tuple[str, ...] = ("date", "amount", "description")

# Lower-cased substrings that identify a column for each canonical field.
FIELD_SYNONYMS: dict[str, tuple[str, ...]] = {
    "date": ("fecha", "date"),
    "type": ("tipo", "type"),
    "amount": ("monto", "amount", "valor"),
    "description": ("descripcion", "description", "concepto"),
    "category": ("categoria", "category"),
    "account_name": ("cuenta", "account"),
}


@dataclass(frozen=True)
class FieldMapping:
    """Source column chosen for each canonical field (``None`` = unmapped).

    Instances are immutable; editing returns a new mapping. ``freeze()`` is the
    single transition into the read-only state normalization requires.
    """

    date: Optional[ColumnRef] = None
    type: Optional[ColumnRef] = None
    amount: Optional[ColumnRef] = None
    description: Optional[ColumnRef] = None
    category: Optional[ColumnRef] = None
    account_name: Optional[ColumnRef] = None
    frozen: bool = False

    @classmethod
    def from_dict(cls, values: Mapping[str, Optional[ColumnRef]]) -> "FieldMapping":
        unknown = set(values) - set(CANONICAL_FIELDS)
        if unknown:
            raise ValueError(f"Unknown mapping fields: {', '.join(sorted(unknown))}")
        return cls(**{name: _clean(value) for name, value in values.items()})

    def column_for(self, canonical_field: str) -> Optional[ColumnRef]:
        if canonical_field not in CANONICAL_FIELDS:
            return None
        return getattr(self, canonical_field)

    def with_field(self, canonical_field: str, column: Optional[ColumnRef]) -> "FieldMapping":
        return self.with_changes(**{canonical_field: column})

    def with_changes(self, **columns: Optional[ColumnRef]) -> "FieldMapping":
        if self.frozen:
            raise RuntimeError("FieldMapping is frozen; build a new mapping instead")
        unknown = set(columns) - set(CANONICAL_FIELDS)
        if unknown:
            raise ValueError(f"Unknown mapping fields: {', '.join(sorted(unknown))}")
        return replace(self, **{name: _clean(value) for name, value in columns.items()})

    def missing_required(self) -> tuple[str, ...]:
        return tuple(name for name in REQUIRED_FIELDS if self.column_for(name) is None)

    def freeze(self) -> "FieldMapping":
        """Validate required fields and return a read-only copy."""

        if self.frozen:
            return self
        missing = self.missing_required()
        if missing:
            raise IncompleteMappingError(missing)
        return replace(self, frozen=True)

    def as_dict(self) -> dict[str, Optional[ColumnRef]]:
        return {f.name: getattr(self, f.name) for f in fields(self) if f.name != "frozen"}


def _clean(value: Optional[ColumnRef]) -> Optional[ColumnRef]:
    if value is None:
        return None
    if isinstance(value, str):
        value = value.strip()
        return value or None
    return value


def match_field(column: str) -> Optional[str]:
    """Return the canonical field whose synonyms match ``column``, if any."""

    lowered = column.lower()
    for canonical_field in CANONICAL_FIELDS:
        if any(synonym in lowered for synonym in FIELD_SYNONYMS[canonical_field]):
            return canonical_field
    return None


def auto_map(columns: Iterable[str], base: Optional[FieldMapping] = None) -> FieldMapping:
    """Guess a mapping from header names using the synonym lists."""

    guesses: dict[str, str] = {}
    for column in columns:
        canonical_field = match_field(column)
        if canonical_field is None:
            logger.debug("Column left unmapped", extra={"column": column})
            continue
        guesses[canonical_field] = column

    mapping = (base or FieldMapping()).with_changes(**guesses)
    logger.info("Auto-mapped columns", extra={"mapping": mapping.as_dict()})
    return mapping


def identity_mapping() -> FieldMapping:
    """Mapping used for JSON sources, whose keys already are canonical names."""

    return FieldMapping(**{name: name for name in CANONICAL_FIELDS}).freeze()
