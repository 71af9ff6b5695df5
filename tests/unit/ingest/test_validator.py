"""Tests for RowValidator state transitions and findings."""

from __future__ import annotations

from decimal import Decimal

import pytest

from ledgerport.core.config import ImportConfig
from ledgerport.ingest.validator import RowState, RowValidator, as_text
from ledgerport.models.issues import ErrorCode, Severity

VALID = {"customerName": "Acme", "itemName": "Widget", "quantity": "2", "price": "$10,50"}


@pytest.fixture
def validator():
    return RowValidator()


class TestAcceptedRow:
    def test_typed_values(self, validator):
        result = validator.validate(2, VALID)
        assert result.accepted
        assert result.values["price"] == Decimal("10.50")
        assert result.values["quantity"] == Decimal("2")
        assert result.issues == []

    def test_state_history(self, validator):
        result = validator.validate(2, VALID)
        assert result.history == [
            RowState.UNVALIDATED, RowState.FIELDS_RESOLVED, RowState.TYPE_VALID,
            RowState.RANGE_VALID, RowState.ACCEPTED,
        ]

    def test_optional_defaults(self, validator):
        values = validator.validate(2, VALID).values
        assert values["unit"] == ""
        assert values["discountPercent"] == Decimal("0")
        assert values["invoiceDate"] is None

    def test_provided_tracks_source_values(self, validator):
        result = validator.validate(2, {**VALID, "lineTotal": "21.00", "notes": "  "})
        assert result.provided == {"customerName", "itemName", "quantity", "price", "lineTotal"}

    def test_numeric_cell_in_text_field(self, validator):
        result = validator.validate(2, {**VALID, "invoiceNumber": 1001.0, "itemId": 77})
        assert result.values["invoiceNumber"] == "1001"
        assert result.values["itemId"] == "77"

    def test_date_field(self, validator):
        assert validator.validate(2, {**VALID, "invoiceDate": 44927}).values["invoiceDate"] == "2023-01-01"

    def test_day_first_config(self):
        validator = RowValidator(config=ImportConfig(day_first=True))
        result = validator.validate(2, {**VALID, "invoiceDate": "03/04/2024"})
        assert result.values["invoiceDate"] == "2024-04-03"

    def test_negative_quantity_allowed(self, validator):
        result = validator.validate(2, {**VALID, "quantity": "-3"})
        assert result.accepted
        assert result.issues == []


class TestMissingRequired:
    def test_one_critical_per_missing_field(self, validator):
        row = {k: v for k, v in VALID.items() if k != "itemName"}
        result = validator.validate(3, row)
        assert result.state is RowState.REJECTED
        assert len(result.issues) == 1
        issue = result.issues[0]
        assert issue.code is ErrorCode.MISSING_REQUIRED
        assert issue.severity is Severity.CRITICAL
        assert issue.field == "itemName"
        assert issue.row_index == 3

    def test_blank_counts_as_missing(self, validator):
        result = validator.validate(3, {**VALID, "customerName": "   ", "price": None})
        assert [i.field for i in result.issues] == ["customerName", "price"]

    def test_halts_further_checks(self, validator):
        result = validator.validate(3, {"quantity": "abc"})
        assert result.history == [RowState.UNVALIDATED, RowState.MISSING_REQUIRED, RowState.REJECTED]
        assert {i.code for i in result.issues} == {ErrorCode.MISSING_REQUIRED}


class TestTypeAndRange:
    def test_bad_number_is_warning_and_zero(self, validator):
        result = validator.validate(2, {**VALID, "quantity": "lots"})
        assert result.accepted
        assert RowState.TYPE_INVALID in result.history
        assert result.values["quantity"] == Decimal("0")
        assert [(i.code, i.severity, i.field) for i in result.issues] == [
            (ErrorCode.INVALID_FORMAT, Severity.WARNING, "quantity"),
        ]

    def test_bad_date_is_warning_and_none(self, validator):
        result = validator.validate(2, {**VALID, "invoiceDate": "someday"})
        assert result.values["invoiceDate"] is None
        assert result.issues[0].code is ErrorCode.INVALID_FORMAT

    def test_out_of_range_year_is_format_warning(self, validator):
        result = validator.validate(2, {**VALID, "invoiceDate": "1995-05-05"})
        assert result.issues[0].code is ErrorCode.INVALID_FORMAT

    def test_percentage_above_max(self, validator):
        result = validator.validate(2, {**VALID, "discountPercent": "150"})
        assert result.accepted
        assert RowState.RANGE_INVALID in result.history
        assert result.issues[0].code is ErrorCode.OUT_OF_RANGE
        assert result.issues[0].field == "discountPercent"

    def test_negative_price(self, validator):
        result = validator.validate(2, {**VALID, "price": "-5"})
        assert [i.code for i in result.issues] == [ErrorCode.OUT_OF_RANGE]

    def test_text_too_long(self, validator):
        result = validator.validate(2, {**VALID, "notes": "x" * 501})
        assert result.issues[0].code is ErrorCode.OUT_OF_RANGE
        assert result.issues[0].field == "notes"


class TestAsText:
    def test_renders(self):
        assert as_text(1001.0) == "1001"
        assert as_text(10.5) == "10.5"
        assert as_text(Decimal("12.000")) == "12"
        assert as_text("abc") == "abc"
