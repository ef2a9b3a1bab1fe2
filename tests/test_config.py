"""Tests for settings persistence."""

from __future__ import annotations

from decimal import Decimal
from unittest.mock import patch

from dealflow.core.config import Settings


class TestSettings:
    """Tests for Settings."""

    def test_defaults(self):
        settings = Settings()
        assert settings.budget.total_budget == Decimal("156750.00")
        assert settings.budget.profit_window_days == 30
        assert settings.listings.sku_max_length == 40
        assert settings.web.performance_weeks == 4

    def test_format_currency(self):
        settings = Settings()
        assert settings.format_currency(Decimal("1234.5")) == "€1,234.50"
        assert settings.format_currency(Decimal("-20")) == "€-20.00"

    def test_save_and_load(self, tmp_path):
        with patch("dealflow.core.config.get_config_dir", return_value=tmp_path):
            settings = Settings()
            settings.budget.total_budget = Decimal("50000.00")
            settings.sheets.spreadsheet_id = "sheet-1"
            settings.save()

            assert (tmp_path / "settings.json").exists()
            loaded = Settings.load()

        assert loaded.budget.total_budget == Decimal("50000.00")
        assert loaded.sheets.spreadsheet_id == "sheet-1"

    def test_env_file_overrides_secrets(self, tmp_path):
        (tmp_path / ".env").write_text(
            "DFD_SHEETS_API_KEY=from-env\nDFD_MOCK_MODE=yes\n", encoding="utf-8"
        )
        with patch("dealflow.core.config.get_config_dir", return_value=tmp_path):
            loaded = Settings.load()

        assert loaded.sheets.api_key == "from-env"
        assert loaded.sheets.mock_mode is True
