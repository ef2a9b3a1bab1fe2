"""API clients for Dealflow Dashboard."""

from .sheets import ConnectionStatus, GoogleSheetsClient, SheetsApiError

__all__ = [
    "GoogleSheetsClient",
    "ConnectionStatus",
    "SheetsApiError",
]
