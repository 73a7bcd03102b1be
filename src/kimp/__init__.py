"""Domestic/international premium tracker with adaptive threshold signals."""

__version__ = "0.1.0"
