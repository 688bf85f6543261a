"""Tests for CSV export."""

import csv
import io
from datetime import date, datetime

import pytest

from insights.core import ModuleKey
from insights.services import DataFetcher, export_csv, export_filename, format_cell


class TestExportCsv:
    """Test CSV text generation."""

    def test_empty_rows(self):
        assert export_csv([]) == ""

    def test_header_and_rows(self):
        rows = [{"id": 1, "name": "Bolt"}, {"id": 2, "name": "Nut"}]
        assert export_csv(rows) == "id,name\n1,Bolt\n2,Nut"

    def test_timestamps_excluded(self):
        rows = [{"id": 1, "created_at": "2024-01-01", "status": "open", "updated_at": "2024-01-02"}]
        assert export_csv(rows) == "id,status\n1,open"

    def test_extra_exclusions(self):
        assert export_csv([{"id": 1, "secret": "x"}], exclude=["secret"]) == "id\n1"

    def test_quoting_round_trip(self):
        rows = [
            {"id": 1, "name": "Widget, Pro", "notes": 'Said "hi"'},
            {"id": 2, "name": "Line\nbreak", "notes": None},
        ]
        text = export_csv(rows)

        assert '"Widget, Pro"' in text
        assert '"Said ""hi"""' in text
        parsed = list(csv.DictReader(io.StringIO(text)))
        assert parsed == [
            {"id": "1", "name": "Widget, Pro", "notes": 'Said "hi"'},
            {"id": "2", "name": "Line\nbreak", "notes": ""},
        ]

    def test_header_from_first_row_only(self):
        rows = [{"id": 1}, {"id": 2, "extra": "ignored"}]
        assert export_csv(rows) == "id\n1\n2"

    def test_missing_keys_are_empty(self):
        rows = [{"id": 1, "name": "Bolt"}, {"id": 2}]
        assert export_csv(rows) == "id,name\n1,Bolt\n2,"

    def test_no_trailing_newline(self):
        assert not export_csv([{"id": 1}]).endswith("\n")

    def test_single_column_null_is_empty(self):
        assert export_csv([{"id": 1}, {"id": None}]) == "id\n1\n"

    def test_single_column_empty_string_is_empty(self):
        assert export_csv([{"note": ""}, {"note": "x"}]) == "note\n\nx"


class TestFormatCell:
    """Test rendering of individual values."""

    @pytest.mark.parametrize("value, expected", [
        (None, ""),
        (0, "0"),
        (12.5, "12.5"),
        (True, "True"),
        ({"name": "Mouse ROG"}, "Mouse ROG"),
        ({"customer_name": "Acme"}, "Acme"),
        ({"id": 4, "sku": "X"}, "4"),
        ({"sku": "X"}, '{"sku":"X"}'),
        ([1, "a"], '[1,"a"]'),
        (date(2024, 5, 1), "2024-05-01"),
        (datetime(2024, 5, 1, 9, 30), "2024-05-01T09:30:00"),
    ])
    def test_values(self, value, expected):
        assert format_cell(value) == expected


class TestExportFromStore:
    """Test exporting fetched module rows."""

    def test_inventory_export(self, seeded_db, registry):
        result = DataFetcher(seeded_db, registry).fetch("inventory")
        text = export_csv(result.rows)
        lines = text.split("\n")

        assert lines[0] == "id,items,warehouses,quantity,available_quantity"
        assert lines[1] == "3,Mouse ROG,,5,5"

    def test_customer_names_are_quoted(self, seeded_db, registry):
        result = DataFetcher(seeded_db, registry).fetch("finance")
        text = export_csv(result.rows)

        assert '"Bob ""The Builder"""' in text
        assert '"Acme, Inc."' in text


def test_export_filename():
    assert export_filename(ModuleKey.SALES, date(2024, 5, 1)) == "sales_export_2024-05-01.csv"
    assert export_filename("hr", date(2024, 12, 31)) == "hr_export_2024-12-31.csv"
