"""Lifecycle, filtering and statistics engine for real-estate brokerage data."""

__version__ = "0.1.0"
