"""Dynamic inventory report builder service."""

__version__ = "0.1.0"
