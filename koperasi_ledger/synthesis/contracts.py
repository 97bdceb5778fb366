"""Loan-roster normalization.

Contracts reach the client under several sheet names and with drifting
headers. They are gathered from the known roster sheets first, then from
any other contract-shaped sheet, deduplicated by loan id and mapped onto
``LoanContract``.
"""

from __future__ import annotations

import logging
import math
from datetime import date
from typing import Any, Iterable, Mapping

from koperasi_ledger.calendar import parse_safe_date, parse_timestamp
from koperasi_ledger.extract import clean_number, find_key, find_value
from koperasi_ledger.models import LoanContract, LoanStatus

logger = logging.getLogger(__name__)

LOAN_SHEETS = ("penagihan_list", "jadwal_global", "PINJAMAN_AKTIF", "pinjaman")
LOAN_ID_NAMES = ("loan_id", "pinjaman_id", "id_pinj")
DISBURSEMENT_DATE_NAMES = ("tanggal", "tgl_cair", "tgl", "tanggal_pinjam", "date", "tanggal_acc")
SETTLED_LABELS = ("lunas", "settled")


def _pick(record: Mapping[str, Any], names: Iterable[str]) -> Any:
    """First non-empty value, trying ``names`` in priority order."""
    for name in names:
        value = find_value(record, [name])
        if value not in (None, ""):
            return value
    return None


def _loan_id(record: Mapping[str, Any]) -> str:
    return str(record.get("id_pinjaman") or record.get("id") or record.get("id_pinjam") or "").strip()


def _is_contract_shaped(record: Any) -> bool:
    return (
        isinstance(record, Mapping)
        and bool(record.get("id_nasabah") or record.get("id_nasabah_list"))
        and bool(record.get("id_pinjaman") or record.get("id_pinjam"))
        and "tenor" in record
    )


def collect_loan_records(data: Mapping[str, Any]) -> list[Mapping[str, Any]]:
    """Gather raw contract rows, first occurrence of a loan id wins."""
    seen: set[str] = set()
    rows: list[Mapping[str, Any]] = []

    def add(records: Any) -> None:
        if not isinstance(records, list):
            return
        for record in records:
            if not isinstance(record, Mapping):
                continue
            loan_id = _loan_id(record)
            if loan_id and loan_id not in seen:
                seen.add(loan_id)
                rows.append(record)

    for key in LOAN_SHEETS:
        if key in data:
            add(data[key])

    for records in data.values():
        if isinstance(records, list) and records and _is_contract_shaped(records[0]):
            add(records)

    return rows


def normalize_contract(record: Mapping[str, Any], today: date | None = None) -> LoanContract | None:
    """Map one raw roster row onto a ``LoanContract``.

    Parameters
    ----------
    record : Mapping[str, Any]
        Raw contract row.
    today : date | None
        Fallback for an unreadable disbursement date.

    Returns
    -------
    LoanContract | None
        ``None`` when the row has no loan id.
    """
    loan_id = _loan_id(record) or str(_pick(record, LOAN_ID_NAMES) or "").strip()
    if not loan_id:
        return None

    principal = float(clean_number(_pick(record, ["pokok", "principal"])))
    rate = float(clean_number(_pick(record, ["bunga_persen", "bunga", "interest"])))
    if principal > 0:
        total_payable = principal * (1 + rate / 100)
    else:
        total_payable = float(clean_number(_pick(record, ["total_hutang", "total"])))

    tenor = int(clean_number(_pick(record, ["tenor"])))
    installment = float(clean_number(_pick(record, ["cicilan", "angsuran", "installment"])))
    if installment <= 0 and tenor > 0:
        installment = float(math.ceil(total_payable / tenor))

    if find_key(record, ["sisa_hutang", "sisa"]) is not None:
        remaining = float(clean_number(_pick(record, ["sisa_hutang", "sisa"])))
    else:
        remaining = total_payable

    status_text = str(_pick(record, ["status"]) or "").strip().lower()
    status = LoanStatus.SETTLED if status_text in SETTLED_LABELS or remaining <= 0 else LoanStatus.ACTIVE

    return LoanContract(
        loan_id=loan_id,
        disbursed_on=parse_safe_date(_pick(record, DISBURSEMENT_DATE_NAMES), today),
        customer_id=str(_pick(record, ["id_nasabah"]) or "").strip(),
        customer_name=str(_pick(record, ["nama", "nama_nasabah"]) or ""),
        principal=principal,
        interest_rate=rate,
        total_payable=total_payable,
        tenor=tenor,
        installment_amount=installment,
        remaining_balance=remaining,
        status=status,
        collector=str(_pick(record, ["petugas"]) or ""),
        updated_at=parse_timestamp(_pick(record, ["update_terakhir"])),
        proof_photo=str(_pick(record, ["foto_bukti", "foto"]) or ""),
    )


def normalize_contracts(data: Mapping[str, Any], today: date | None = None) -> list[LoanContract]:
    """All contracts found in a fetched ``data`` mapping."""
    contracts = []
    for record in collect_loan_records(data):
        contract = normalize_contract(record, today)
        if contract is None:
            logger.debug("Skipping contract row without id: %s", dict(record))
            continue
        contracts.append(contract)
    return contracts
