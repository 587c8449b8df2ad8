"""Ag Mortgage Bank client portal: session, loans and savings over the bank's REST API."""

__version__ = "0.1.0"
