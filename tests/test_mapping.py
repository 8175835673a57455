"""Tests for the field mapper."""

from __future__ import annotations

import pytest

from finimport.services.errors import IncompleteMappingError
from finimport.services.mapping import (
    CANONICAL_FIELDS,
    FieldMapping,
    auto_map,
    identity_mapping,
    match_field,
)


class TestAutoMap:
    def test_spanish_headers(self):
        mapping = auto_map(["Fecha", "Tipo", "Monto", "Descripcion", "Categoria", "Cuenta"])
        assert mapping.as_dict() == {
            "date": "Fecha",
            "type": "Tipo",
            "amount": "Monto",
            "description": "Descripcion",
            "category": "Categoria",
            "account_name": "Cuenta",
        }

    def test_english_headers_and_substrings(self):
        mapping = auto_map(["Transaction Date", "Amount (USD)", "Long Description", "Account Name"])
        assert mapping.date == "Transaction Date"
        assert mapping.amount == "Amount (USD)"
        assert mapping.description == "Long Description"
        assert mapping.account_name == "Account Name"

    @pytest.mark.parametrize("column", ["Valor", "monto total", "AMOUNT"])
    def test_amount_synonyms(self, column):
        assert match_field(column) == "amount"

    def test_concepto_maps_to_description(self):
        assert match_field("Concepto") == "description"

    def test_first_matching_synonym_set_wins(self):
        # "date" is tested before "type", so a column mentioning both is a date.
        assert match_field("Date Type") == "date"

    def test_unmatched_columns_stay_unmapped(self):
        mapping = auto_map(["Referencia", "Notas"])
        assert all(value is None for value in mapping.as_dict().values())

    def test_missing_required_after_partial_guess(self):
        mapping = auto_map(["Fecha", "Notas"])
        assert mapping.missing_required() == ("amount", "description")


class TestFieldMapping:
    def test_with_field_returns_new_value(self):
        original = FieldMapping()
        updated = original.with_field("amount", "Importe")
        assert original.amount is None
        assert updated.amount == "Importe"

    def test_blank_assignment_means_unmapped(self):
        mapping = FieldMapping(amount="Monto").with_changes(amount="  ")
        assert mapping.amount is None

    def test_unknown_field_rejected(self):
        with pytest.raises(ValueError):
            FieldMapping().with_changes(currency="Moneda")

    def test_freeze_requires_date_amount_description(self):
        with pytest.raises(IncompleteMappingError) as excinfo:
            FieldMapping(amount="Monto").freeze()
        assert excinfo.value.missing == ("date", "description")

    def test_frozen_mapping_rejects_edits(self):
        frozen = FieldMapping(date="F", amount="M", description="D").freeze()
        assert frozen.frozen
        with pytest.raises(RuntimeError):
            frozen.with_field("type", "T")

    def test_optional_fields_may_stay_unmapped(self):
        frozen = FieldMapping(date=0, amount=1, description=2).freeze()
        assert frozen.type is None
        assert frozen.category is None

    def test_from_dict(self):
        mapping = FieldMapping.from_dict({"date": "Fecha", "amount": ""})
        assert mapping.date == "Fecha"
        assert mapping.amount is None


def test_identity_mapping_is_frozen_and_complete():
    mapping = identity_mapping()
    assert mapping.frozen
    assert mapping.as_dict() == {name: name for name in CANONICAL_FIELDS}
