"""Reconciliation of loan and savings submissions across fetches."""

from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping

from koperasi_ledger.calendar import parse_safe_date
from koperasi_ledger.extract import clean_number
from koperasi_ledger.models import LoanSubmission, SubmissionStatus, SubmissionType

logger = logging.getLogger(__name__)

SUBMISSION_SHEET_WORDS = ("pengajuan", "submission", "simpanan")


def is_submission_sheet(sheet_key: str) -> bool:
    lowered = sheet_key.lower()
    return any(word in lowered for word in SUBMISSION_SHEET_WORDS)


def parse_status(raw: Any) -> SubmissionStatus | str:
    """Known statuses become enum members, anything else is kept verbatim."""
    if not raw:
        return SubmissionStatus.PENDING
    text = str(raw).strip()
    for status in SubmissionStatus:
        if status.value.lower() == text.lower():
            return status
    return text


class SubmissionReconciler:
    """Merge submissions from several role-scoped fetches by submission id.

    A collector's own fetch and an admin-scoped fetch made on the
    collector's behalf overlap; the record seen last for an id replaces
    the earlier one.
    """

    def __init__(self) -> None:
        self._by_id: dict[str, LoanSubmission] = {}

    def merge_sheets(self, data: Mapping[str, Any]) -> int:
        """Merge every submission-like sheet of a fetched ``data`` mapping."""
        merged = 0
        for sheet_key, records in data.items():
            if isinstance(records, list) and is_submission_sheet(sheet_key):
                merged += self.merge(records, sheet_key)
        return merged

    def merge(self, records: Iterable[Any], source_key: str) -> int:
        """Merge one sheet; returns the number of records taken."""
        submission_type = (
            SubmissionType.SAVINGS_WITHDRAWAL
            if "simpanan" in source_key.lower()
            else SubmissionType.LOAN
        )
        merged = 0
        for record in records:
            if not isinstance(record, Mapping):
                continue
            submission_id = record.get("id_pengajuan") or record.get("id")
            if not submission_id:
                continue
            submission_id = str(submission_id)
            raw_date = record.get("tanggal")

            self._by_id[submission_id] = LoanSubmission(
                submission_id=submission_id,
                requested_on=parse_safe_date(raw_date) if raw_date else None,
                customer_id=str(record.get("id_nasabah") or ""),
                customer_name=str(record.get("nama") or ""),
                amount=float(clean_number(record.get("jumlah"))),
                tenor=int(clean_number(record.get("tenor"))),
                collector=str(record.get("petugas") or ""),
                status=parse_status(record.get("status")),
                submission_type=submission_type,
                extra=dict(record),
            )
            merged += 1
        logger.debug("Merged %d submissions from %s", merged, source_key, extra={"sheet": source_key})
        return merged

    def submissions(self) -> list[LoanSubmission]:
        return list(self._by_id.values())
