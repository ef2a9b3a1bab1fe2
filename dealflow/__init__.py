"""Dealflow Dashboard: sourcing, purchasing and listing pipeline for resale teams."""

__version__ = "0.3.0"
