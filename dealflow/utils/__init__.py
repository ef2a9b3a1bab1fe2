"""Utility modules for Dealflow Dashboard."""

from .export import Exporter
from .mock_data import get_mock_sheet_values

__all__ = [
    "Exporter",
    "get_mock_sheet_values",
]
