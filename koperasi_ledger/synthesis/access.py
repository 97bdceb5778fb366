"""Role-based visibility of ledger sheets and records.

Collectors never see expense, capital, cost or investment entries; those
belong to administrators. The checks are keyword based because sheet
names and record categories are free-form text.
"""

from __future__ import annotations

from typing import Iterable

from koperasi_ledger.models.enums import Role

RESTRICTED_KEYWORDS = (
    "pengeluaran",
    "modal",
    "biaya",
    "investasi",
    "expense",
    "capital",
    "cost",
    "investment",
)

# Sheets that feed the mutation ledger, by role
COLLECTOR_SHEETS = (
    "angsuran",
    "pemasukan",
    "simpanan",
    "mutasi",
    "history",
    "record",
    "pinjaman",
    "loan",
    "pengajuan",
    "payment",
    "installment",
    "savings",
    "income",
    "ledger",
)
ADMIN_SHEETS = COLLECTOR_SHEETS + ("pengeluaran", "modal", "expense", "capital")

# Combined ledgers whose records carry their own category
LEDGER_SHEETS = ("mutasi", "history", "ledger")


def is_restricted(*texts: object) -> bool:
    """True if any text mentions an admin-only category."""
    for text in texts:
        lowered = str(text or "").lower()
        if any(word in lowered for word in RESTRICTED_KEYWORDS):
            return True
    return False


def is_ledger_sheet(sheet_key: str) -> bool:
    lowered = sheet_key.lower()
    return any(word in lowered for word in LEDGER_SHEETS)


def authorized_sheets(role: Role) -> tuple[str, ...]:
    """Sheet-name keywords that may feed the mutation ledger for ``role``."""
    return ADMIN_SHEETS if role == Role.ADMIN else COLLECTOR_SHEETS


def sheet_is_visible(sheet_key: str, role: Role) -> bool:
    """Whether a sheet feeds the mutation ledger for ``role`` at all.

    Parameters
    ----------
    sheet_key : str
        Backend sheet name, any case.
    role : Role
        Role of the officer the ledger is built for.

    Returns
    -------
    bool
        False for sheets outside the role's list and, for collectors,
        for any sheet whose name signals restricted content.
    """
    lowered = sheet_key.lower()
    if not any(word in lowered for word in authorized_sheets(role)):
        return False
    if role == Role.COLLECTOR and is_restricted(lowered):
        return False
    return True


def visible_texts(role: Role, texts: Iterable[object]) -> bool:
    """Record-level check: admins see everything, collectors nothing restricted."""
    if role == Role.ADMIN:
        return True
    return not is_restricted(*texts)
