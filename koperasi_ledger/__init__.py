"""Microfinance loan-schedule and ledger-reconciliation engine."""

__version__ = "0.1.0"
