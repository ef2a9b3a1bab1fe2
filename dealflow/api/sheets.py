"""Google Sheets values API client for the sourcing sheet."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import quote

import requests

from dealflow.core.config import Settings
from dealflow.core.errors import DealflowError

logger = logging.getLogger(__name__)


@dataclass
class ConnectionStatus:
    """Result of a Sheets connection test."""

    success: bool = False
    title: str = ""
    sheet_names: list[str] = field(default_factory=list)
    headers: list[str] = field(default_factory=list)
    error_message: str = ""


class SheetsApiError(DealflowError):
    """Raised when the Sheets API cannot be reached or returns an error."""

    kind = "sheets_error"
    http_status = 502

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message, {"status_code": status_code} if status_code else None)
        self.status_code = status_code


class GoogleSheetsClient:
    """Reads sourcing rows from a Google spreadsheet."""

    BASE_URL = "https://sheets.googleapis.com/v4/spreadsheets"

    def __init__(self, settings: Settings) -> None:
        """Initialize the Sheets client."""
        self.settings = settings
        self.spreadsheet_id = settings.sheets.spreadsheet_id
        self.api_key = settings.sheets.api_key
        self.access_token = settings.sheets.access_token
        self.timeout = settings.sheets.timeout_seconds
        self.mock_mode = settings.sheets.mock_mode

        self.session = requests.Session()
        self.session.headers.update({"Accept": "application/json"})
        if self.access_token:
            self.session.headers["Authorization"] = f"Bearer {self.access_token}"

    @property
    def is_configured(self) -> bool:
        return self.mock_mode or bool(self.spreadsheet_id and (self.api_key or self.access_token))

    def _make_request(self, path: str, params: dict[str, Any] | None = None) -> dict:
        """GET a Sheets API resource and return the decoded JSON."""
        if not self.spreadsheet_id:
            raise SheetsApiError("No spreadsheet ID configured")

        params = dict(params or {})
        if self.api_key and not self.access_token:
            params["key"] = self.api_key

        url = f"{self.BASE_URL}/{self.spreadsheet_id}{path}"

        start_time = time.time()
        try:
            response = self.session.get(url, params=params, timeout=self.timeout)
        except requests.RequestException as e:
            raise SheetsApiError(f"Sheets request failed: {e}") from e
        duration_ms = int((time.time() - start_time) * 1000)
        logger.debug(f"Sheets GET {path} -> {response.status_code} in {duration_ms}ms")

        if response.status_code != 200:
            try:
                message = response.json().get("error", {}).get("message", response.text)
            except ValueError:
                message = response.text
            raise SheetsApiError(
                f"Sheets API error {response.status_code}: {message}", response.status_code
            )

        return response.json()

    def get_values(self, range_a1: str) -> list[list[str]]:
        """Raw cell values for an A1 range."""
        if self.mock_mode:
            from dealflow.utils.mock_data import get_mock_sheet_values

            return get_mock_sheet_values()

        data = self._make_request(f"/values/{quote(range_a1, safe='!:')}")
        return data.get("values", [])

    def read_sourcing_sheet(self) -> tuple[list[str], list[list[str]]]:
        """Header row and data rows of the configured sourcing range."""
        values = self.get_values(self.settings.sheets.sourcing_range)
        if not values:
            return [], []

        headers = [str(h) for h in values[0]]
        rows = values[1:]
        logger.info(f"Read {len(rows)} rows from sourcing sheet")
        return headers, rows

    def test_connection(self) -> ConnectionStatus:
        """Check that the spreadsheet and its sourcing header row can be read."""
        if self.mock_mode:
            headers, _ = self.read_sourcing_sheet()
            return ConnectionStatus(
                success=True, title="Mock Sourcing Sheet", sheet_names=["Sourcing"], headers=headers
            )

        try:
            metadata = self._make_request("", {"fields": "properties.title,sheets.properties.title"})
            headers, _ = self.read_sourcing_sheet()
        except SheetsApiError as e:
            logger.warning(f"Sheets connection test failed: {e}")
            return ConnectionStatus(success=False, error_message=str(e))

        return ConnectionStatus(
            success=True,
            title=metadata.get("properties", {}).get("title", ""),
            sheet_names=[
                s.get("properties", {}).get("title", "") for s in metadata.get("sheets", [])
            ],
            headers=headers,
        )
