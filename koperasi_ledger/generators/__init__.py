"""Synthetic backend sheets and an in-memory backend."""

from koperasi_ledger.generators.backend import InMemoryBackend
from koperasi_ledger.generators.base import BaseGenerator
from koperasi_ledger.generators.sheets import SheetGenerator, installment_for, interest_rate_for

__all__ = [
    "BaseGenerator",
    "InMemoryBackend",
    "SheetGenerator",
    "installment_for",
    "interest_rate_for",
]
