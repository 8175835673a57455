"""Service module exports."""

from . import (
    clients,
    committer,
    errors,
    export_csv,
    importers,
    mapping,
    normalizer,
    readers,
    reporting,
    schema,
)

__all__ = [
    "clients",
    "committer",
    "errors",
    "export_csv",
    "importers",
    "mapping",
    "normalizer",
    "readers",
    "reporting",
    "schema",
]
