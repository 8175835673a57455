"""Command-line entry points for FinImport (console script and Flask CLI)."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import click
from flask import current_app, has_app_context

from .config import BaseConfig
from .infra.database import bootstrap_database
from .infra.repositories.transaction import SQLModelTransactionRepository
from .logging_config import setup_logging
from .services.clients import HttpBulkCommitClient, RepositoryBulkCommitClient
from .services.errors import ImportPipelineError
from .services.export_csv import export_report_csv
from .services.importers import ImportOptions, ImportSession
from .services.mapping import CANONICAL_FIELDS
from .services.reporting import records_frame


def _parse_mapping(values: tuple[str, ...]) -> dict[str, str]:
    mapping: dict[str, str] = {}
    for item in values:
        field_name, sep, column = item.partition("=")
        field_name = field_name.strip()
        if not sep or field_name not in CANONICAL_FIELDS:
            raise click.BadParameter(
                f"expected FIELD=COLUMN with FIELD in {', '.join(CANONICAL_FIELDS)}; got {item!r}",
                param_hint="--map",
            )
        mapping[field_name] = column.strip()
    return mapping


def _local_client(config: BaseConfig) -> RepositoryBulkCommitClient:
    if has_app_context():
        factory = current_app.extensions["finimport.session_factory"]
    else:
        _, factory = bootstrap_database(config)
    return RepositoryBulkCommitClient(SQLModelTransactionRepository(factory))


@click.command("import-file")
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--format", "fmt", type=click.Choice(["csv", "json"]), default=None,
              help="File format (defaults from the file suffix).")
@click.option("--separator", default=None, help="Column separator: , ; | or \\t.")
@click.option("--no-headers", is_flag=True, default=False, help="First line is data, not headers.")
@click.option("--encoding", default=None, help="Text encoding of the file.")
@click.option("--map", "mappings", multiple=True, metavar="FIELD=COLUMN",
              help="Assign a source column to a canonical field (repeatable).")
@click.option("--api-url", default=None, help="Commit to a remote backend instead of the local database.")
@click.option("--dry-run", is_flag=True, default=False, help="Validate only; commit nothing.")
@click.option("--report-csv", type=click.Path(dir_okay=False, path_type=Path), default=None,
              help="Write the itemized result to this CSV file.")
def import_file_command(
    path: Path,
    fmt: Optional[str],
    separator: Optional[str],
    no_headers: bool,
    encoding: Optional[str],
    mappings: tuple[str, ...],
    api_url: Optional[str],
    dry_run: bool,
    report_csv: Optional[Path],
) -> None:
    """Import transactions from a CSV or JSON file."""

    config = current_app.config["FINIMPORT_CONFIG"] if has_app_context() else BaseConfig()
    options = ImportOptions.from_config(
        config,
        format=fmt or ("json" if path.suffix.lower() == ".json" else "csv"),
        separator=separator,
        has_headers=not no_headers,
        encoding=encoding,
    )
    session = ImportSession.from_config(config, options)

    try:
        schema = session.load(path.read_bytes())
        if schema.columns:
            click.echo(f"Columns: {', '.join(schema.columns)}")
        overrides = _parse_mapping(mappings)
        if overrides and not schema.is_json:
            session.update_mapping(**overrides)
        records = session.normalize()
    except ImportPipelineError as exc:
        raise click.ClickException(str(exc)) from exc

    summary = session.summary()
    click.echo(
        f"Rows: {summary.total}  valid: {summary.valid}  "
        f"invalid: {summary.invalid}  with warnings: {summary.with_warnings}"
    )
    failed = [record for record in records if record.errors]
    if failed:
        frame = records_frame(failed)[["row", "description", "errors"]]
        click.echo(frame.to_string(index=False))

    if dry_run:
        click.echo("Dry run: nothing committed.")
        return

    target = api_url or config.API_URL
    client = (
        HttpBulkCommitClient(target, timeout=config.COMMIT_TIMEOUT)
        if target
        else _local_client(config)
    )
    try:
        report = session.commit(client)
    except ImportPipelineError as exc:
        raise click.ClickException(str(exc)) from exc

    click.echo(
        f"Imported {report.success} of {report.total} "
        f"({report.errors} with errors, {report.warnings} with warnings)"
    )
    if report_csv is not None:
        written = export_report_csv(report=report, output_path=report_csv)
        click.echo(f"Report written: {written}")


def init_app(app) -> None:
    """Register CLI commands on the Flask app."""

    app.cli.add_command(import_file_command)


@click.group()
def main() -> None:
    """FinImport command line."""

    setup_logging(BaseConfig())


main.add_command(import_file_command)
