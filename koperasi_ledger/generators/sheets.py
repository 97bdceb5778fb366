"""Synthetic spreadsheet tabs shaped like the cooperative backend's.

The rows imitate what the field app actually receives: headers drift
between sheets, dates come as ISO strings, slash dates or native
objects, and amounts are sometimes plain numbers and sometimes
formatted rupiah strings.
"""

from __future__ import annotations

import math
from datetime import date, datetime, time, timedelta
from typing import Any

from koperasi_ledger.generators.base import BaseGenerator
from koperasi_ledger.schedule import generate_loan_schedule

LOAN_AMOUNTS = (300_000, 400_000, 500_000, 1_000_000, 2_000_000)
TENORS = (4, 10, 20, 24)
DEFAULT_INTEREST_RATE = 20.0
DISBURSEMENT_FEE_RATE = 0.05


def interest_rate_for(amount: float) -> float:
    """Flat interest percent the cooperative charges for a principal."""
    if amount == 300_000:
        return 33.33
    if amount == 400_000:
        return 25.0
    return DEFAULT_INTEREST_RATE


def installment_for(total_payable: float, tenor: int) -> int:
    """Fixed installment, rounded up to whole rupiah."""
    return math.ceil(total_payable / (tenor or 1))


class SheetGenerator(BaseGenerator):
    """Generate a consistent set of backend sheets for a small portfolio."""

    def __init__(self, seed: int | None = None, collector: str = "Budi Kolektor") -> None:
        super().__init__(seed)
        self.collector = collector
        self._sequence = 0

    def _next_id(self, prefix: str) -> str:
        self._sequence += 1
        return f"{prefix}{self._sequence:05d}"

    def format_amount(self, amount: float) -> Any:
        """Render an amount as a number or a formatted rupiah string."""
        style = self.rng.choice(("number", "idr", "us"))
        if style == "number":
            return amount
        whole = f"{int(round(amount)):,}"
        if style == "idr":
            return "Rp " + whole.replace(",", ".")
        return whole

    def format_timestamp(self, moment: datetime) -> Any:
        """Render a timestamp the way different sheet writers do."""
        style = self.rng.choice(("iso", "native", "slash"))
        if style == "iso":
            return moment.isoformat()
        if style == "native":
            return moment
        return moment.strftime("%Y/%m/%d %H:%M:%S")

    def customer(self) -> dict[str, Any]:
        """One borrower roster row."""
        return {
            "id_nasabah": self._next_id("NSB"),
            "nik": self.fake.numerify("################"),
            "nama": self.fake.name(),
            "no_hp": self.fake.phone_number(),
            "pin": self.fake.numerify("######"),
            "foto": "",
            "latitude": round(self.rng.uniform(-6.30, -6.10), 6),
            "longitude": round(self.rng.uniform(106.70, 106.95), 6),
            "update_lokasi": datetime.now().isoformat(),
            "saldo_simpanan": self.rng.choice((0, 0, 25_000, 50_000, 100_000)),
        }

    def contract(
        self,
        customer: dict[str, Any],
        disbursed_on: date,
        amount: float,
        tenor: int,
        paid: float = 0.0,
    ) -> dict[str, Any]:
        """One ``PINJAMAN_AKTIF`` row."""
        rate = interest_rate_for(amount)
        total = amount * (1 + rate / 100)
        remaining = max(0.0, total - paid)
        loan_id = self._next_id("CTR")
        return {
            "id_pinjaman": loan_id,
            "tanggal": disbursed_on.strftime("%d/%m/%Y") if self.rng.random() < 0.5 else disbursed_on.isoformat(),
            "id_nasabah": customer["id_nasabah"],
            "nama": customer["nama"],
            "pokok": amount,
            "bunga_persen": rate,
            "total_hutang": total,
            "tenor": tenor,
            "cicilan": installment_for(total, tenor),
            "sisa_hutang": remaining,
            "status": "Lunas" if remaining <= 0 else "Aktif",
            "petugas": self.collector,
            "update_terakhir": datetime.now().isoformat(),
            "foto_bukti": "",
            "qr_code": loan_id,
        }

    def installment(self, contract: dict[str, Any], paid_at: datetime, amount: float, remaining: float) -> dict[str, Any]:
        """One ``ANGSURAN`` row with a drifting date header."""
        date_key = self.rng.choice(("tanggal", "Tanggal", "tgl_bayar"))
        return {
            "id_angsuran": self._next_id("PAY"),
            date_key: self.format_timestamp(paid_at),
            "id_pinjaman": contract["id_pinjaman"],
            "id_nasabah": contract["id_nasabah"],
            "jumlah": self.format_amount(amount),
            "sisa_hutang": remaining,
            "petugas": self.collector,
            "foto_bukti": "",
        }

    def savings(self, customer: dict[str, Any], at: datetime, deposit: float, withdrawal: float, note: str) -> dict[str, Any]:
        """One ``SIMPANAN`` row."""
        return {
            "id_simpanan": self._next_id("SV"),
            "tanggal": self.format_timestamp(at),
            "id_nasabah": customer["id_nasabah"],
            "setor": deposit,
            "tarik": withdrawal,
            "saldo": max(0.0, customer["saldo_simpanan"] + deposit - withdrawal),
            "petugas": self.collector,
            "keterangan": note,
        }

    def generate_sheets(self, num_customers: int = 20, today: date | None = None) -> dict[str, list[dict[str, Any]]]:
        """Generate every sheet for ``num_customers`` borrowers.

        Parameters
        ----------
        num_customers : int
            Number of borrowers.
        today : date | None
            Reference day; loans are disbursed up to 40 days before it.

        Returns
        -------
        dict[str, list[dict[str, Any]]]
            Sheet name to rows, ready to serve from a backend.
        """
        today = today or date.today()
        sheets: dict[str, list[dict[str, Any]]] = {
            "nasabah": [],
            "PINJAMAN_AKTIF": [],
            "ANGSURAN": [],
            "SIMPANAN": [],
            "PEMASUKAN": [],
            "PENGELUARAN": [],
            "MODAL AWAL": [],
            "PENGAJUAN_PINJAMAN": [],
        }

        opened = datetime.combine(today - timedelta(days=60), time(8, 0))
        sheets["MODAL AWAL"].append(
            {"tanggal": opened.isoformat(), "keterangan": "Modal awal koperasi", "jumlah": 50_000_000, "admin": "Admin"}
        )

        for _ in range(num_customers):
            customer = self.customer()
            sheets["nasabah"].append(customer)

            if self.rng.random() < 0.7:
                self._add_loan(sheets, customer, today)
            else:
                sheets["PENGAJUAN_PINJAMAN"].append(
                    {
                        "id_pengajuan": self._next_id("REQ"),
                        "tanggal": today.isoformat(),
                        "id_nasabah": customer["id_nasabah"],
                        "nama": customer["nama"],
                        "jumlah": self.rng.choice(LOAN_AMOUNTS),
                        "tenor": self.rng.choice(TENORS),
                        "petugas": self.collector,
                        "status": self.rng.choice(("Pending", "Approved", "")),
                    }
                )

            if customer["saldo_simpanan"] > 0:
                self._add_savings(sheets, customer, today)

        for offset in range(1, 4):
            day = today - timedelta(days=offset)
            sheets["PENGELUARAN"].append(
                {
                    "tanggal": datetime.combine(day, time(17, 0)).isoformat(),
                    "jenis": "Uang Transport",
                    "keterangan": f"Transport {self.collector}",
                    "jumlah": 20_000,
                    "petugas": self.collector,
                }
            )
        return sheets

    def _add_loan(self, sheets: dict[str, list[dict[str, Any]]], customer: dict[str, Any], today: date) -> None:
        amount = self.rng.choice(LOAN_AMOUNTS)
        tenor = self.rng.choice(TENORS)
        disbursed_on = today - timedelta(days=self.rng.randint(1, 40))
        total = amount * (1 + interest_rate_for(amount) / 100)
        installment = installment_for(total, tenor)

        schedule = generate_loan_schedule(disbursed_on, tenor)
        due = sum(1 for day in schedule if day <= today)
        payments = max(0, due - self.rng.choice((0, 0, 0, 1, 2)))

        contract = self.contract(customer, disbursed_on, amount, tenor, paid=min(total, payments * installment))
        sheets["PINJAMAN_AKTIF"].append(contract)

        disbursed_at = datetime.combine(disbursed_on, time(9, 0))
        sheets["PEMASUKAN"].append(
            {
                "tanggal": disbursed_at.isoformat(),
                "id_nasabah": customer["id_nasabah"],
                "keterangan": "Admin Cair 5%",
                "jumlah": amount * DISBURSEMENT_FEE_RATE,
                "petugas": self.collector,
            }
        )

        remaining = total
        for k in range(payments):
            paid_now = min(installment, remaining)
            if paid_now <= 0:
                break
            remaining -= paid_now
            paid_at = datetime.combine(schedule[k], time(10, 0)) + timedelta(minutes=self.rng.randint(0, 420))
            sheets["ANGSURAN"].append(self.installment(contract, paid_at, paid_now, remaining))

    def _add_savings(self, sheets: dict[str, list[dict[str, Any]]], customer: dict[str, Any], today: date) -> None:
        deposited_at = datetime.combine(today - timedelta(days=self.rng.randint(5, 30)), time(11, 0))
        sheets["SIMPANAN"].append(
            self.savings(customer, deposited_at, customer["saldo_simpanan"], 0, "Setoran simpanan")
        )

        if self.rng.random() < 0.3:
            # Withdrawals are booked on both the savings and the expense ledger
            amount = customer["saldo_simpanan"] / 2
            withdrawn_at = datetime.combine(today - timedelta(days=1), time(14, 30))
            sheets["SIMPANAN"].append(self.savings(customer, withdrawn_at, 0, amount, "Tarik simpanan"))
            sheets["PENGELUARAN"].append(
                {
                    "tanggal": withdrawn_at.isoformat(),
                    "id_nasabah": customer["id_nasabah"],
                    "keterangan": f"Pencairan simpanan {customer['nama']}",
                    "jumlah": amount,
                    "petugas": self.collector,
                }
            )
