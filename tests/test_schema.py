"""Tests for column catalog and raw row detection."""

from __future__ import annotations

import pytest

from finimport.services.errors import MalformedSourceError
from finimport.services.mapping import FieldMapping
from finimport.services.readers import read_source
from finimport.services.schema import (
    DelimitedRow,
    JsonRow,
    detect,
    field_value,
    normalize_separator,
    split_cells,
)


def _detect_csv(text: str, **kwargs):
    return detect(read_source(text, format="csv"), **kwargs)


class TestDelimited:
    def test_header_row_becomes_catalog(self):
        schema = _detect_csv('"Fecha" , Tipo ,Monto,Descripcion\n2024-01-15,ingreso,1500.50,Salario\n')
        assert schema.columns == ("Fecha", "Tipo", "Monto", "Descripcion")
        assert len(schema.rows) == 1
        assert schema.rows[0].get("Monto") == "1500.50"

    def test_semicolon_separator(self):
        schema = _detect_csv("Fecha;Monto\n2024-01-15;10\n", separator=";")
        assert schema.columns == ("Fecha", "Monto")
        assert schema.rows[0].get("Fecha") == "2024-01-15"

    def test_tab_alias(self):
        assert normalize_separator("\\t") == "\t"
        assert normalize_separator("tab") == "\t"
        schema = _detect_csv("Fecha\tMonto\n2024-01-15\t10\n", separator="\\t")
        assert schema.rows[0].get("Monto") == "10"

    def test_unsupported_separator(self):
        with pytest.raises(ValueError):
            normalize_separator(":")

    def test_quoted_cells_keep_separator(self):
        assert split_cells('2024-01-01,"1,500.50", Salario ', ",") == [
            "2024-01-01",
            "1,500.50",
            "Salario",
        ]

    def test_headerless_catalog_is_empty_and_positional(self):
        schema = _detect_csv("2024-01-15,10,Coffee\n", has_headers=False)
        assert schema.columns == ()
        row = schema.rows[0]
        assert row.get(0) == "2024-01-15"
        assert row.get("2") == "Coffee"
        assert row.get(7) is None

    def test_duplicate_headers_keep_first_occurrence(self):
        schema = _detect_csv("Monto,Monto,Descripcion\n10,20,Coffee\n")
        assert schema.columns == ("Monto", "Descripcion")
        assert schema.rows[0].get("Monto") == "10"
        assert schema.rows[0].get("Descripcion") == "Coffee"

    def test_short_rows_yield_missing_values(self):
        schema = _detect_csv("Fecha,Monto,Descripcion\n2024-01-15\n")
        assert schema.rows[0].get("Descripcion") is None

    def test_empty_source(self):
        schema = _detect_csv("\n\n")
        assert schema.columns == ()
        assert schema.rows == ()


class TestJson:
    def test_top_level_array(self):
        schema = detect(read_source('[{"amount": 1}, {"amount": 2}]', format="json"))
        assert schema.is_json
        assert [row.get("amount") for row in schema.rows] == [1, 2]

    def test_data_wrapper(self):
        schema = detect(read_source('{"data": [{"description": "Coffee"}]}', format="json"))
        assert schema.rows == (JsonRow(fields={"description": "Coffee"}),)

    @pytest.mark.parametrize("text", ['{"items": []}', '"hello"', "42", '{"data": {}}'])
    def test_unexpected_shapes_are_empty(self, text):
        assert detect(read_source(text, format="json")).rows == ()

    def test_non_object_items_keep_position(self):
        schema = detect(read_source('[1, {"amount": 5}]', format="json"))
        assert len(schema.rows) == 2
        assert schema.rows[0].get("amount") is None

    def test_malformed_json(self):
        with pytest.raises(MalformedSourceError):
            detect(read_source("{not json", format="json"))


def test_field_value_reads_json_keys_directly():
    row = JsonRow(fields={"amount": 10})
    mapping = FieldMapping(amount="Monto")
    assert field_value(row, "amount", mapping) == 10


def test_field_value_follows_mapping_for_delimited_rows():
    row = DelimitedRow(cells=("10", "Coffee"), columns=("Monto", "Concepto"))
    mapping = FieldMapping(amount="Monto", description="Concepto")
    assert field_value(row, "description", mapping) == "Coffee"
    assert field_value(row, "date", mapping) is None
