"""Authenticated HTTP resource fetching and JSON attribute parsing."""

__version__ = "0.1.0"
