"""Output sinks for exporting ledger snapshots."""

from koperasi_ledger.sinks.console import ConsoleSink
from koperasi_ledger.sinks.json_file import JsonFileSink
from koperasi_ledger.sinks.snapshot import export_snapshot, ticket_rows

__all__ = ["ConsoleSink", "JsonFileSink", "export_snapshot", "ticket_rows"]
