"""Configuration management for Dealflow Dashboard."""

from __future__ import annotations

import json
from decimal import Decimal
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def get_config_dir() -> Path:
    """Get the configuration directory path."""
    config_dir = Path.home() / ".dealflow-dashboard"
    config_dir.mkdir(parents=True, exist_ok=True)
    return config_dir


def get_data_dir() -> Path:
    """Get the data directory path."""
    data_dir = get_config_dir() / "data"
    data_dir.mkdir(parents=True, exist_ok=True)
    return data_dir


def get_db_path() -> Path:
    """Get the SQLite database file path."""
    return get_data_dir() / "dealflow.db"


class BudgetConfig(BaseModel):
    """Budget and currency configuration for the dashboard KPIs."""

    total_budget: Decimal = Decimal("156750.00")
    currency: str = "EUR"
    currency_symbol: str = "€"
    profit_window_days: int = 30  # Trailing window for the profit KPI


class PurchasingConfig(BaseModel):
    """Purchasing plan configuration."""

    margin_warning_threshold: Decimal = Decimal("0.15")  # Expected profit / revenue
    default_list_limit: int = 50


class ListingConfig(BaseModel):
    """Listing and SKU configuration."""

    sku_max_length: int = 40
    unknown_brand: str = "UNKNOWN"
    default_category: str = "HOME"


class SheetsConfig(BaseModel):
    """Google Sheets mirror configuration."""

    spreadsheet_id: str = ""
    sourcing_range: str = "Sourcing!A1:P"
    api_key: str = ""
    access_token: str = ""
    timeout_seconds: int = 30
    mock_mode: bool = False


class WebConfig(BaseModel):
    """Web server configuration."""

    host: str = "0.0.0.0"
    port: int = 5050
    activity_feed_limit: int = 20
    performance_weeks: int = 4
    max_performance_weeks: int = 520


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_file=str(get_config_dir() / ".env"),
        env_file_encoding="utf-8",
        env_prefix="DFD_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    # Empty means the SQLite file in the data directory
    database_url: str = ""

    budget: BudgetConfig = Field(default_factory=BudgetConfig)
    purchasing: PurchasingConfig = Field(default_factory=PurchasingConfig)
    listings: ListingConfig = Field(default_factory=ListingConfig)
    sheets: SheetsConfig = Field(default_factory=SheetsConfig)
    web: WebConfig = Field(default_factory=WebConfig)

    log_level: str = "INFO"

    def format_currency(self, amount: Decimal) -> str:
        """Format an amount with the configured currency symbol."""
        return f"{self.budget.currency_symbol}{amount:,.2f}"

    def save(self) -> None:
        """Save settings to the config file."""
        config_path = get_config_dir() / "settings.json"
        data = self.model_dump(mode="json")
        data = self._convert_decimals(data)
        with open(config_path, "w") as f:
            json.dump(data, f, indent=2)

    def _convert_decimals(self, obj: Any) -> Any:
        """Recursively convert Decimal to string for JSON serialization."""
        if isinstance(obj, Decimal):
            return str(obj)
        elif isinstance(obj, dict):
            return {k: self._convert_decimals(v) for k, v in obj.items()}
        elif isinstance(obj, list):
            return [self._convert_decimals(item) for item in obj]
        return obj

    @classmethod
    def load(cls) -> "Settings":
        """Load settings from the config file or create defaults."""
        config_path = get_config_dir() / "settings.json"
        env_path = get_config_dir() / ".env"

        settings = cls()

        if config_path.exists():
            with open(config_path) as f:
                data = json.load(f)
            settings = cls.model_validate(data)

        # Secrets from .env take precedence over the saved JSON
        if env_path.exists():
            from dotenv import dotenv_values

            env_vars = dotenv_values(env_path)
            if env_vars.get("DFD_SHEETS_API_KEY"):
                settings.sheets.api_key = env_vars["DFD_SHEETS_API_KEY"]
            if env_vars.get("DFD_SHEETS_ACCESS_TOKEN"):
                settings.sheets.access_token = env_vars["DFD_SHEETS_ACCESS_TOKEN"]
            if env_vars.get("DFD_SHEETS_SPREADSHEET_ID"):
                settings.sheets.spreadsheet_id = env_vars["DFD_SHEETS_SPREADSHEET_ID"]
            if env_vars.get("DFD_MOCK_MODE"):
                settings.sheets.mock_mode = env_vars["DFD_MOCK_MODE"].lower() in (
                    "true",
                    "1",
                    "yes",
                )

        return settings


# Global settings instance
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get the global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings.load()
    return _settings
