"""Unified ledger line synthesized from backend sheets."""

from dataclasses import dataclass
from datetime import datetime

from koperasi_ledger.models.enums import MutationKind


@dataclass
class Mutation:
    """One financial event, recomputed on every refresh and never persisted.

    ``timestamp`` is ``None`` when the source value could not be parsed;
    ``raw_timestamp`` keeps the original text for display and for the
    deduplication key in that case.
    """

    timestamp: datetime | None
    raw_timestamp: str
    description: str
    amount: float
    collector: str
    kind: MutationKind
    customer_ref: str = ""
    loan_ref: str = ""
    source: str = ""
    proof_photo: str = ""

    @property
    def dedup_key(self) -> tuple[str, str, float]:
        """Content key: timestamp to the second, description, amount."""
        if self.timestamp is not None:
            moment = self.timestamp.replace(microsecond=0).isoformat()
        else:
            moment = self.raw_timestamp
        return (moment, self.description, self.amount)
