"""Tests for the import-file command."""

from __future__ import annotations

import csv
import logging

from click.testing import CliRunner

from finimport.cli import import_file_command, main
from finimport.infra.database import bootstrap_database
from finimport.infra.repositories.transaction import SQLModelTransactionRepository


def _write_csv(tmp_path, text: str, name: str = "movimientos.csv"):
    path = tmp_path / name
    path.write_text(text, encoding="utf-8")
    return path


def test_dry_run_lists_failures(config, tmp_path):
    path = _write_csv(
        tmp_path,
        "Fecha,Tipo,Monto,Descripcion\n2024-01-15,ingreso,10,Pago\n2024-01-16,gasto,abc,Cafe\n",
    )
    result = CliRunner().invoke(import_file_command, [str(path), "--dry-run"])

    assert result.exit_code == 0, result.output
    assert "Rows: 2  valid: 1  invalid: 1" in result.output
    assert "Invalid amount: abc" in result.output
    assert "Dry run" in result.output


def test_commits_to_local_database_and_writes_report(config, tmp_path):
    path = _write_csv(
        tmp_path,
        "Dia;Importe;Detalle\n2024-01-15;10;Pago\n2024-01-16;;Cafe\n",
    )
    report_path = tmp_path / "report.csv"
    result = CliRunner().invoke(
        import_file_command,
        [
            str(path),
            "--separator", ";",
            "--map", "date=Dia",
            "--map", "amount=Importe",
            "--map", "description=Detalle",
            "--report-csv", str(report_path),
        ],
    )

    assert result.exit_code == 0, result.output
    assert "Imported 1 of 2" in result.output
    with report_path.open(newline="", encoding="utf-8") as fh:
        rows = list(csv.DictReader(fh))
    assert [row["status"] for row in rows] == ["warning", "error"]

    _, factory = bootstrap_database(config)
    stored = SQLModelTransactionRepository(factory).list_all()
    assert [txn.description for txn in stored] == ["Pago"]


def test_incomplete_mapping_is_reported(config, tmp_path):
    path = _write_csv(tmp_path, "Dia,Importe\n2024-01-15,10\n")
    result = CliRunner().invoke(import_file_command, [str(path)])
    assert result.exit_code != 0
    assert "Required fields are not mapped" in result.output


def test_bad_mapping_option(config, tmp_path):
    path = _write_csv(tmp_path, "Fecha,Monto,Descripcion\n2024-01-15,10,Pago\n")
    result = CliRunner().invoke(import_file_command, [str(path), "--map", "currency=Moneda"])
    assert result.exit_code != 0


def test_all_invalid_rows_abort_commit(config, tmp_path):
    path = _write_csv(tmp_path, "Fecha,Monto,Descripcion\n2024-01-15,abc,Pago\n")
    result = CliRunner().invoke(import_file_command, [str(path)])
    assert result.exit_code != 0
    assert "No valid transactions" in result.output


def test_json_file_through_console_group(config, tmp_path):
    path = tmp_path / "export.json"
    path.write_text('{"data": [{"amount": 5, "description": "Tea", "type": "gasto"}]}', encoding="utf-8")
    result = CliRunner().invoke(main, ["import-file", str(path), "--dry-run"])
    assert result.exit_code == 0, result.output
    assert "Rows: 1  valid: 1" in result.output


def test_console_group_commits_with_logging_configured(config, tmp_path):
    path = _write_csv(
        tmp_path,
        "Fecha,Tipo,Monto,Descripcion\n2024-01-15,ingreso,10,Pago\n2024-01-16,gasto,abc,Cafe\n",
    )
    result = CliRunner().invoke(main, ["import-file", str(path)])

    assert result.exit_code == 0, result.output
    assert "Imported 1 of 2" in result.output
    assert logging.getLogger("finimport").handlers

    _, factory = bootstrap_database(config)
    stored = SQLModelTransactionRepository(factory).list_all()
    assert [txn.description for txn in stored] == ["Pago"]

    log_file = config.DATA_DIR / "logs" / "finimport.log"
    assert "Bulk import stored" in log_file.read_text(encoding="utf-8")
