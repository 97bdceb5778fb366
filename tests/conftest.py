"""Pytest configuration and fixtures."""

from datetime import date, datetime
from typing import Any, Callable

import pytest

from koperasi_ledger.models import LoanContract, LoanStatus


@pytest.fixture
def seed() -> int:
    """Fixed seed for reproducible tests."""
    return 42


@pytest.fixture
def friday() -> date:
    """Disbursement day used by most schedule fixtures (2024-03-08)."""
    return date(2024, 3, 8)


@pytest.fixture
def wednesday() -> date:
    """Third working day after ``friday``'s disbursement (2024-03-13)."""
    return date(2024, 3, 13)


@pytest.fixture
def now() -> datetime:
    """Fixed refresh time."""
    return datetime(2024, 3, 13, 16, 0, 0)


@pytest.fixture
def make_contract(friday: date) -> Callable[..., LoanContract]:
    """Factory for a daily 20-ticket contract of 50,000 per ticket."""

    def _make(
        loan_id: str = "CTR00001",
        paid: float = 0.0,
        total: float = 1_000_000,
        tenor: int = 20,
        installment: float = 50_000,
        customer_id: str = "NSB00001",
        disbursed_on: date | None = None,
        status: LoanStatus | None = None,
    ) -> LoanContract:
        remaining = max(0.0, total - paid)
        return LoanContract(
            loan_id=loan_id,
            disbursed_on=disbursed_on or friday,
            customer_id=customer_id,
            customer_name="Siti Aminah",
            principal=total / 1.25,
            interest_rate=25.0,
            total_payable=total,
            tenor=tenor,
            installment_amount=installment,
            remaining_balance=remaining,
            status=status or (LoanStatus.SETTLED if remaining <= 0 else LoanStatus.ACTIVE),
        )

    return _make


@pytest.fixture
def sample_sheets() -> dict[str, list[dict[str, Any]]]:
    """Small hand-written backend payload with drifting formats."""
    return {
        "nasabah": [
            {"id_nasabah": "NSB00001", "nama": "Siti Aminah", "saldo_simpanan": 50_000,
             "latitude": -6.2, "longitude": 106.8, "no_hp": "0812"},
            {"id_nasabah": "NSB00002", "nama": "Joko Susilo", "saldo_simpanan": 0},
            {"id_nasabah": "NSB00003", "nama": "Rina Wati", "saldo_simpanan": "Rp 10.000"},
        ],
        "PINJAMAN_AKTIF": [
            {
                "id_pinjaman": "CTR00001",
                "tanggal": "08/03/2024",
                "id_nasabah": "NSB00001",
                "nama": "Siti Aminah",
                "pokok": 800_000,
                "bunga_persen": 25,
                "total_hutang": 1_000_000,
                "tenor": 20,
                "cicilan": 50_000,
                "sisa_hutang": 900_000,
                "status": "Aktif",
                "petugas": "Budi",
            },
        ],
        "ANGSURAN": [
            {"tanggal": "2024-03-11 10:00:00", "id_pinjaman": "CTR00001", "id_nasabah": "NSB00001",
             "jumlah": "Rp 50.000", "petugas": "Budi"},
            {"Tanggal": datetime(2024, 3, 12, 11, 30), "id_pinjaman": "CTR00001", "id_nasabah": "NSB00001",
             "jumlah": 50_000, "petugas": "Budi"},
        ],
        "PENGELUARAN": [
            {"tanggal": "2024-03-12T17:00:00", "jenis": "Uang Transport", "keterangan": "Transport Budi",
             "jumlah": 20_000, "petugas": "Budi"},
        ],
        "MODAL AWAL": [
            {"tanggal": "2024-01-02T08:00:00", "keterangan": "Modal awal koperasi", "jumlah": 50_000_000,
             "admin": "Admin"},
        ],
        "PENGAJUAN_PINJAMAN": [
            {"id_pengajuan": "REQ00001", "tanggal": "2024-03-13", "id_nasabah": "NSB00002",
             "nama": "Joko Susilo", "jumlah": 500_000, "tenor": 10, "petugas": "Budi", "status": ""},
        ],
    }
