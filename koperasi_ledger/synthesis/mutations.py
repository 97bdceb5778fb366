"""Mutation synthesis: heterogeneous sheets into one deduplicated ledger.

Every refresh rebuilds the ledger from scratch. Each record of each
visible sheet is resolved through the field extractor, classified into a
``MutationKind`` with a display description, and appended unless an
entry with the same (second, description, amount) key already exists.
Malformed records are recovered or dropped, never raised.
"""

from __future__ import annotations

import logging
from collections import Counter
from datetime import datetime
from functools import cmp_to_key
from typing import Any, Iterable, Mapping

from koperasi_ledger.calendar import parse_timestamp
from koperasi_ledger.extract import clean_number, find_value, looks_like_date
from koperasi_ledger.models import Mutation, MutationKind, Role
from koperasi_ledger.synthesis.access import (
    is_ledger_sheet,
    sheet_is_visible,
    visible_texts,
)

logger = logging.getLogger(__name__)

DATE_FIELDS = [
    "tanggal", "tgl", "date", "time", "waktu", "timestamp", "created", "update",
    "input", "hari", "tanggal_transaksi", "tanggal_acc", "tanggal_cair",
]
AMOUNT_FIELDS = [
    "jumlah", "nominal", "bayar", "setor", "tarik", "pokok", "total", "masuk",
    "keluar", "biaya", "value", "amount", "bayaran", "setoran", "tagihan",
    "piutang", "saldo", "nominal_transaksi", "jumlah_bayar", "jumlah_pinjaman",
    "setoran_modal", "total_bayar",
]
CUSTOMER_ID_FIELDS = [
    "idnasabah", "nasabahid", "idmember", "memberid", "iduser", "userid",
    "idpelanggan", "norekening", "idpinjam", "penerima", "penyetor", "nama_nasabah",
]
LOAN_ID_FIELDS = ["id_pinjam", "id_pinjaman", "loan_id", "pinjaman_id", "id_pinj"]
TRANSACTION_ID_FIELDS = ["id", "no", "kode", "nik", "ref", "invoice", "transaksi"]
NAME_FIELDS = ["nama", "nasabah", "member", "customer", "user", "nama_nasabah", "penerima", "penyetor"]
COLLECTOR_FIELDS = ["petugas", "admin", "kolektor", "operator", "userinput", "staf"]
PHOTO_FIELDS = ["foto", "bukti", "gambar", "image", "foto_bukti", "foto_bayar", "bukti_cair"]
DESCRIPTION_FIELDS = [
    "keterangan", "deskripsi", "catatan", "memo", "info", "uraian", "ket",
    "keterangan_transaksi", "jenis_transaksi", "detail",
]
KIND_FIELDS = ["jenis", "tipe", "category", "status"]
SOURCE_FIELDS = ["source", "sumber"]
STATUS_FIELDS = ["status", "state"]
DEPOSIT_FIELDS = ["setor", "setoran", "masuk"]
WITHDRAWAL_FIELDS = ["tarik", "tarikan", "keluar", "wd"]

# Header fragments that never hold a transaction amount
NON_AMOUNT_KEY_FRAGMENTS = ("id", "no", "nik", "tenor", "telp", "tgl", "date", "tahun", "year")
YEAR_LIKE_RANGE = (2020, 2035)

# Sheets whose records are kept even with a zero amount
UNCONDITIONAL_SHEETS = ("mutasi", "ledger", "pengeluaran", "expense", "pemasukan", "income", "modal", "capital")

INSTALLMENT_SHEETS = ("angsuran", "bayar", "pay", "installment")
INSTALLMENT_KINDS = ("angsuran", "installment")
SAVINGS_WORDS = ("simpanan", "savings")
SUBMISSION_SHEETS = ("pengajuan", "submission")
EXPENSE_WORDS = ("pengeluaran", "expense", "keluar")
INCOME_WORDS = ("pemasukan", "income", "masuk")
CAPITAL_WORDS = ("modal", "capital")
ROSTER_SHEETS = ("jadwal_global", "pinjaman_aktif", "penagihan_list", "loan")
ROSTER_STATUSES = ("", "aktif", "lunas", "active", "settled")
WITHDRAWAL_VERBS = ("cair", "tarik", "ambil", "keluar")

SAVINGS_WITHDRAWAL_PREFIX = "Pencairan Simpanan"


def _mentions(text: str, words: Iterable[str]) -> bool:
    return any(word in text for word in words)


def _is_year_like(amount: float) -> bool:
    return YEAR_LIKE_RANGE[0] <= amount <= YEAR_LIKE_RANGE[1]


class MutationSynthesizer:
    """Accumulate sheets into a deduplicated, role-filtered mutation feed.

    One synthesizer corresponds to one refresh; feed it every fetched
    ``data`` mapping (primary, secondary and any admin-scoped pull) and
    read the sorted result from ``mutations()``.

    Parameters
    ----------
    role : Role
        Role of the officer the feed is built for.
    customer_names : Mapping[str, str] | None
        Borrower id (upper-case) to display name.
    default_collector : str
        Label used when a record names no acting officer.
    amount_ceiling : float
        Largest value the amount re-scan accepts.
    now : datetime | None
        Timestamp for records without any date (default: at synthesis time).
    """

    def __init__(
        self,
        role: Role = Role.ADMIN,
        customer_names: Mapping[str, str] | None = None,
        *,
        default_collector: str = "Petugas",
        amount_ceiling: float = 1_000_000_000,
        now: datetime | None = None,
    ) -> None:
        self.role = Role.parse(role)
        self.customer_names = dict(customer_names or {})
        self.default_collector = default_collector
        self.amount_ceiling = amount_ceiling
        self._now = now
        self._mutations: list[Mutation] = []
        self._seen: set[tuple[str, str, float]] = set()
        self._counts: Counter[str] = Counter()

    def add_sheets(self, data: Mapping[str, Any]) -> int:
        """Process every visible sheet of a fetched ``data`` mapping.

        Returns
        -------
        int
            Number of mutations added.
        """
        added = 0
        for sheet_key, records in data.items():
            if not isinstance(records, list):
                continue
            if not sheet_is_visible(sheet_key, self.role):
                logger.debug("Sheet %s not visible for %s", sheet_key, self.role.value)
                continue
            added += self.add_sheet(sheet_key, records)
        return added

    def add_sheet(self, sheet_key: str, records: Iterable[Any]) -> int:
        """Synthesize mutations from one sheet's records."""
        added = 0
        for record in records:
            if not isinstance(record, Mapping):
                self._counts["malformed"] += 1
                continue
            mutation = self._synthesize(record, sheet_key)
            if mutation is not None and self._append(mutation):
                added += 1
        return added

    def mutations(self) -> list[Mutation]:
        """Feed ordered most recent first.

        Entries with unparseable timestamps compare equal to everything.
        """
        return sorted(self._mutations, key=cmp_to_key(_compare_desc))

    def summary(self) -> dict[str, int]:
        """Counts of added, duplicate and dropped records."""
        return {"added": len(self._mutations), **self._counts}

    def display_name(self, customer_ref: Any, fallback: Any) -> str:
        """Roster name for a borrower id, else whatever the record carried."""
        sid = str(customer_ref or "").upper()
        if sid in self.customer_names:
            return self.customer_names[sid]
        return str(fallback or customer_ref or "Nasabah")

    def _append(self, mutation: Mutation) -> bool:
        key = mutation.dedup_key
        if key in self._seen:
            self._counts["duplicate"] += 1
            return False

        self._seen.add(key)
        self._mutations.append(mutation)
        return True

    def _synthesize(self, record: Mapping[str, Any], sheet_key: str) -> Mutation | None:
        sheet = sheet_key.lower()

        if self.role == Role.COLLECTOR and is_ledger_sheet(sheet):
            own_texts = (
                find_value(record, SOURCE_FIELDS),
                find_value(record, KIND_FIELDS),
                find_value(record, DESCRIPTION_FIELDS),
            )
            if not visible_texts(self.role, own_texts):
                self._counts["restricted"] += 1
                return None

        raw_date = self._resolve_date(record)
        timestamp = parse_timestamp(raw_date)
        raw_text = raw_date.isoformat() if isinstance(raw_date, datetime) else str(raw_date)

        amount = self._resolve_amount(record)
        if amount == 0 and not _mentions(sheet, UNCONDITIONAL_SHEETS):
            self._counts["zero_amount"] += 1
            return None

        customer_ref = find_value(record, CUSTOMER_ID_FIELDS)
        loan_ref = find_value(record, LOAN_ID_FIELDS)
        transaction_id = find_value(record, TRANSACTION_ID_FIELDS)
        name = find_value(record, NAME_FIELDS)
        collector = find_value(record, COLLECTOR_FIELDS) or self.default_collector
        photo = find_value(record, PHOTO_FIELDS)

        description = str(
            find_value(record, DESCRIPTION_FIELDS) or name or customer_ref or transaction_id or "Transaksi"
        )
        kind_text = str(find_value(record, KIND_FIELDS) or "").lower()
        display = self.display_name(customer_ref, name)

        classified = self._classify(record, sheet, kind_text, description, display, amount)
        if classified is None:
            return None
        kind, description, amount = classified

        # Category texts only; synthesized descriptions carry borrower names
        record_texts = (kind.value, sheet_key, kind_text, find_value(record, DESCRIPTION_FIELDS))
        if not visible_texts(self.role, record_texts):
            self._counts["restricted"] += 1
            return None

        return Mutation(
            timestamp=timestamp,
            raw_timestamp=raw_text,
            description=description,
            amount=amount,
            collector=str(collector),
            kind=kind,
            customer_ref=str(customer_ref or name or transaction_id or ""),
            loan_ref=str(loan_ref or ""),
            source=sheet_key,
            proof_photo=str(photo or ""),
        )

    def _resolve_date(self, record: Mapping[str, Any]) -> Any:
        raw_date = find_value(record, DATE_FIELDS)
        if not raw_date:
            raw_date = next(
                (value for value in record.values() if value and looks_like_date(value)),
                None,
            )
        if not raw_date:
            logger.debug("No date in record, defaulting to now: %s", dict(record))
            raw_date = self._now or datetime.now()
        return raw_date

    def _resolve_amount(self, record: Mapping[str, Any]) -> float:
        amount = abs(clean_number(find_value(record, AMOUNT_FIELDS)))
        if amount != 0 and not _is_year_like(amount):
            return amount

        for key, value in record.items():
            lowered = str(key).lower()
            if any(fragment in lowered for fragment in NON_AMOUNT_KEY_FRAGMENTS):
                continue
            candidate = abs(clean_number(value))
            if 0 < candidate < self.amount_ceiling and not _is_year_like(candidate):
                return candidate
        return amount

    def _classify(
        self,
        record: Mapping[str, Any],
        sheet: str,
        kind_text: str,
        description: str,
        display: str,
        amount: float,
    ) -> tuple[MutationKind, str, float] | None:
        """Decide kind and final description; ``None`` drops the record."""
        if _mentions(sheet, INSTALLMENT_SHEETS) or _mentions(kind_text, INSTALLMENT_KINDS):
            return MutationKind.INSTALLMENT, f"Angsuran: {display}", amount

        if (_mentions(sheet, SAVINGS_WORDS) or _mentions(kind_text, SAVINGS_WORDS)) and not _mentions(
            sheet, SUBMISSION_SHEETS
        ):
            return self._classify_savings(record, kind_text, description, display, amount)

        if _mentions(sheet, EXPENSE_WORDS) or _mentions(kind_text, EXPENSE_WORDS):
            text = f"{description} {kind_text}".lower()
            if "transport" in text:
                return MutationKind.TRANSPORT, description, amount
            if "simpanan" in text and _mentions(text, WITHDRAWAL_VERBS):
                # Same wording as the savings branch so both ledgers merge
                return MutationKind.SAVINGS_WITHDRAWAL, f"{SAVINGS_WITHDRAWAL_PREFIX}: {display}", amount
            return MutationKind.EXPENSE, description, amount

        if _mentions(sheet, INCOME_WORDS) or _mentions(kind_text, INCOME_WORDS):
            return MutationKind.INCOME, description, amount

        if _mentions(sheet, CAPITAL_WORDS) or _mentions(kind_text, CAPITAL_WORDS):
            return MutationKind.CAPITAL, description, amount

        if _mentions(sheet, ROSTER_SHEETS):
            status = str(find_value(record, STATUS_FIELDS) or "").strip().lower()
            if status in ROSTER_STATUSES:
                return MutationKind.DISBURSEMENT, f"Pencairan: {display}", amount
            self._counts["inactive_contract"] += 1
            return None

        # Submissions would duplicate roster disbursements; anything else is unknown
        self._counts["unclassified"] += 1
        return None

    def _classify_savings(
        self,
        record: Mapping[str, Any],
        kind_text: str,
        description: str,
        display: str,
        amount: float,
    ) -> tuple[MutationKind, str, float]:
        deposit = abs(clean_number(find_value(record, DEPOSIT_FIELDS)))
        withdrawal = abs(clean_number(find_value(record, WITHDRAWAL_FIELDS)))

        if deposit > 0:
            return MutationKind.SAVINGS_DEPOSIT, f"Simpanan (Setor): {display}", deposit
        if withdrawal > 0:
            return MutationKind.SAVINGS_WITHDRAWAL, f"{SAVINGS_WITHDRAWAL_PREFIX}: {display}", withdrawal
        if "tarik" in description.lower() or "tarik" in kind_text:
            return MutationKind.SAVINGS_WITHDRAWAL, f"{SAVINGS_WITHDRAWAL_PREFIX}: {display}", amount
        return MutationKind.SAVINGS_DEPOSIT, f"Simpanan: {display}", amount


def _compare_desc(a: Mutation, b: Mutation) -> int:
    if a.timestamp is None or b.timestamp is None:
        return 0
    if a.timestamp > b.timestamp:
        return -1
    if a.timestamp < b.timestamp:
        return 1
    return 0
