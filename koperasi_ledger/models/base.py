"""Base models shared across ledger entities."""

from dataclasses import dataclass


@dataclass
class GeoLocation:
    """Last recorded position of a borrower's home or stall."""

    latitude: float
    longitude: float
    accuracy: float | None = None
