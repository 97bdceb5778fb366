"""Export a ledger snapshot through any batch sink."""

from __future__ import annotations

from datetime import date
from typing import Any, Protocol

from koperasi_ledger.sinks.serialization import dataclass_to_dict
from koperasi_ledger.store import LedgerSnapshot


class BatchSink(Protocol):
    def write_batch(self, entity_type: str, records: list[Any]) -> Any: ...


def ticket_rows(snapshot: LedgerSnapshot, today: date | None = None) -> list[dict[str, Any]]:
    """Flatten the ticket allocation of every contract."""
    rows = []
    for loan_id in snapshot.contracts:
        for ticket in snapshot.tickets(loan_id, today):
            row = dataclass_to_dict(ticket)
            row["loan_id"] = loan_id
            row["state"] = ticket.state.value
            row["outstanding"] = ticket.outstanding
            rows.append(row)
    return rows


def export_snapshot(sink: BatchSink, snapshot: LedgerSnapshot, today: date | None = None) -> dict[str, int]:
    """Write contracts, mutations, submissions, customers and tickets.

    Returns
    -------
    dict[str, int]
        Records written per entity type.
    """
    batches: dict[str, list[Any]] = {
        "contracts": list(snapshot.contracts.values()),
        "mutations": snapshot.mutations,
        "submissions": snapshot.submissions,
        "customers": list(snapshot.customers.values()),
        "tickets": ticket_rows(snapshot, today),
    }
    for entity_type, records in batches.items():
        sink.write_batch(entity_type, records)
    return {entity_type: len(records) for entity_type, records in batches.items()}
