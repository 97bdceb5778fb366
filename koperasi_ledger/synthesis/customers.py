"""Borrower roster resolution."""

from __future__ import annotations

from typing import Any, Iterable, Mapping

from koperasi_ledger.extract import clean_number, find_value
from koperasi_ledger.models import Customer, GeoLocation, LoanContract

ROSTER_KEYS = ("nasabah", "nasabah_list", "customers", "borrowers")


def roster_records(data: Mapping[str, Any]) -> list[Mapping[str, Any]]:
    """All borrower rows found under any roster-like sheet name."""
    rows: list[Mapping[str, Any]] = []
    for key, records in data.items():
        if key.lower() in ROSTER_KEYS and isinstance(records, list):
            rows.extend(r for r in records if isinstance(r, Mapping))
    return rows


def customer_name_index(data: Mapping[str, Any]) -> dict[str, str]:
    """Map upper-cased borrower id to borrower name."""
    index: dict[str, str] = {}
    for row in roster_records(data):
        customer_id = str(row.get("id_nasabah") or row.get("id") or "").upper()
        if customer_id:
            index[customer_id] = str(row.get("nama") or find_value(row, ["nama", "name"]) or customer_id)
    return index


def normalize_customers(data: Mapping[str, Any]) -> list[Customer]:
    """Borrowers from every roster sheet, first occurrence of an id wins."""
    customers: dict[str, Customer] = {}
    for row in roster_records(data):
        customer_id = str(find_value(row, ["id_nasabah", "id"]) or "").strip()
        if not customer_id or customer_id in customers:
            continue

        latitude = clean_number(find_value(row, ["latitude", "lat"]))
        longitude = clean_number(find_value(row, ["longitude", "lng", "lon"]))
        location = GeoLocation(latitude, longitude) if latitude and longitude else None

        customers[customer_id] = Customer(
            customer_id=customer_id,
            name=str(find_value(row, ["nama", "name"]) or customer_id),
            location=location,
            savings_balance=float(clean_number(find_value(row, ["saldo_simpanan", "saldo"]))),
            photo=str(find_value(row, ["foto", "photo"]) or ""),
            phone=str(find_value(row, ["no_hp", "telp", "phone"]) or ""),
        )
    return list(customers.values())


def active_customers(
    customers: Iterable[Customer],
    contracts: Iterable[LoanContract],
) -> list[Customer]:
    """Borrowers with positive savings or any loan history, active or settled."""
    with_loans = {c.customer_id.strip().lower() for c in contracts}
    return [
        customer
        for customer in customers
        if customer.savings_balance > 0 or customer.customer_id.strip().lower() in with_loans
    ]
