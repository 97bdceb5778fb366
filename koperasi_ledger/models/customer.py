"""Borrower (nasabah) model."""

from dataclasses import dataclass

from koperasi_ledger.models.base import GeoLocation


@dataclass
class Customer:
    """Cooperative member who borrows and saves."""

    customer_id: str
    name: str
    location: GeoLocation | None = None
    savings_balance: float = 0.0
    photo: str = ""
    phone: str = ""
