"""
Tests for date helpers, currency formatting and the bootstrap config file.
"""
import json
from datetime import date

import pytest

from utils import app_config
from utils.currency import format_currency, format_signed
from utils.date_helpers import (
    format_display_date, friendly_month, month_range, next_month, parse_date,
    parse_display_date, prev_month, shift_month,
)


class TestDateHelpers:
    """Tests for date parsing and month arithmetic."""

    def test_parse_date_accepts_timestamps(self):
        assert parse_date("2024-01-15 10:30:00") == date(2024, 1, 15)
        assert parse_date("2024-01-15T10:30:00") == date(2024, 1, 15)

    def test_parse_date_rejects_garbage(self):
        assert parse_date("") is None
        assert parse_date("15.01.2024") is None
        assert parse_date("2024-02-30") is None
        assert parse_date("2024-01-15garbage") is None
        assert parse_date("2024-01-15 later") is None

    def test_parse_date_accepts_zoned_iso(self):
        assert parse_date("2024-01-15T10:30:00.123+01:00") == date(2024, 1, 15)
        assert parse_date("2024-01-15T10:30Z") == date(2024, 1, 15)

    @pytest.mark.parametrize("year, month, n, expected", [
        (2024, 1, 1, (2024, 2)),
        (2024, 12, 1, (2025, 1)),
        (2024, 1, -1, (2023, 12)),
        (2024, 3, -15, (2022, 12)),
    ])
    def test_shift_month(self, year, month, n, expected):
        assert shift_month(year, month, n) == expected

    def test_month_navigation(self):
        assert prev_month("2024-01") == "2023-12"
        assert next_month("2024-12") == "2025-01"
        assert month_range("2024-02") == ("2024-02-01", "2024-02-29")
        assert friendly_month("2024-02") == "February 2024"

    def test_month_range_invalid(self):
        with pytest.raises(ValueError):
            month_range("2024-13")

    def test_display_round_trip(self):
        assert format_display_date("2024-03-07", "DD.MM.YYYY") == "07.03.2024"
        assert format_display_date("2024-03-07", "MM/DD/YYYY") == "03/07/2024"
        assert parse_display_date("07.03.2024", "DD.MM.YYYY") == date(2024, 3, 7)
        assert parse_display_date("2024-03-07", "DD.MM.YYYY") == date(2024, 3, 7)


class TestCurrency:
    """Tests for amount formatting."""

    def test_format_currency(self):
        assert format_currency(1234.5) == "1,234.50 CZK"
        assert format_currency(-3, "EUR") == "-3.00 EUR"

    def test_format_signed(self):
        assert format_signed(10) == "+10.00 CZK"
        assert format_signed(-10, "USD") == "-10.00 USD"


class TestAppConfig:
    """Tests for the pre-database config file."""

    def test_missing_file_is_empty(self, tmp_path):
        assert app_config.load_config(tmp_path / "none.json") == {}

    def test_corrupt_file_is_empty(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text("{broken", encoding="utf-8")
        assert app_config.load_config(path) == {}

    def test_save_creates_folder(self, tmp_path):
        path = tmp_path / "nested" / "config.json"
        app_config.save_config({"db_folder": "/data"}, path)
        assert json.loads(path.read_text(encoding="utf-8")) == {"db_folder": "/data"}
        assert not path.with_suffix(".tmp").exists()

    def test_db_folder_round_trip(self, tmp_path, monkeypatch):
        monkeypatch.setattr(app_config, "CONFIG_FILE", tmp_path / "config.json")
        monkeypatch.setattr(app_config, "CONFIG_DIR", tmp_path)

        assert app_config.get_db_folder() is None
        app_config.set_db_folder(str(tmp_path / "db"))
        assert app_config.get_db_folder() == str(tmp_path / "db")
        app_config.set_db_folder(None)
        assert app_config.get_db_folder() is None

    def test_resolve_db_path(self, tmp_path):
        path = app_config.resolve_db_path(str(tmp_path / "ledger"))
        assert path == str(tmp_path / "ledger" / "finance.db")
        assert (tmp_path / "ledger").is_dir()
