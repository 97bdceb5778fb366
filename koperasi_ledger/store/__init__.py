"""In-memory derived state shared with the presentation layer."""

from koperasi_ledger.store.snapshot import LedgerSnapshot

__all__ = ["LedgerSnapshot"]
