"""Enumeration types for ledger entities."""

from enum import Enum

from koperasi_ledger.exceptions import ConfigurationError


class Role(str, Enum):
    ADMIN = "ADMIN"
    COLLECTOR = "KOLEKTOR"

    @classmethod
    def parse(cls, value: "Role | str") -> "Role":
        """Resolve a role from its backend label or English name."""
        if isinstance(value, cls):
            return value
        label = str(value or "").strip().upper()
        if label in ("ADMIN", "ADMINISTRATOR"):
            return cls.ADMIN
        if label in ("KOLEKTOR", "COLLECTOR", "PETUGAS"):
            return cls.COLLECTOR
        raise ConfigurationError(f"Unknown role: {value!r}")


class LoanStatus(str, Enum):
    ACTIVE = "Aktif"
    SETTLED = "Lunas"


class SubmissionStatus(str, Enum):
    PENDING = "Pending"
    APPROVED = "Approved"
    DISBURSED = "Disbursed"

    @property
    def rank(self) -> int:
        """Position in the forward-only lifecycle."""
        return list(SubmissionStatus).index(self)


class SubmissionType(str, Enum):
    LOAN = "LOAN"
    SAVINGS_WITHDRAWAL = "SAVINGS_WITHDRAWAL"


class MutationKind(str, Enum):
    INSTALLMENT = "installment"
    SAVINGS_DEPOSIT = "savings_deposit"
    SAVINGS_WITHDRAWAL = "savings_withdrawal"
    EXPENSE = "expense"
    INCOME = "income"
    CAPITAL = "capital"
    DISBURSEMENT = "disbursement"
    TRANSPORT = "transport"


class TicketState(str, Enum):
    PAID = "PAID"
    PARTIAL = "PARTIAL"
    OVERDUE = "OVERDUE"
    DUE_TODAY = "DUE_TODAY"
    FUTURE = "FUTURE"


class MapStatus(str, Enum):
    """Marker colouring for a borrower on the collection map."""

    SETTLED = "SETTLED"
    OVERDUE = "OVERDUE"
    PARTIAL_TODAY = "PARTIAL_TODAY"
    DUE_TODAY = "DUE_TODAY"
    PAID_TODAY = "PAID_TODAY"
    CLEAR = "CLEAR"


class CustomerStatus(str, Enum):
    """Row status in the customer overview, in display order."""

    DEBT = "DEBT"
    DUE_TODAY = "DUE_TODAY"
    SAFE = "SAFE"
    SETTLED = "SETTLED"
    NO_LOAN = "NO_LOAN"


class BackendAction(str, Enum):
    """Server-side operations reachable through the command envelope."""

    LOGIN = "LOGIN"
    GET_DASHBOARD_DATA = "GET_DASHBOARD_DATA"
    REGISTER_NASABAH = "REGISTER_NASABAH"
    UPDATE_LOKASI_NASABAH = "UPDATE_LOKASI_NASABAH"
    AJUKAN_PINJAMAN = "AJUKAN_PINJAMAN"
    APPROVE_PINJAMAN = "APPROVE_PINJAMAN"
    CAIRKAN_PINJAMAN = "CAIRKAN_PINJAMAN"
    BAYAR_ANGSURAN = "BAYAR_ANGSURAN"
    AMBIL_TRANSPORT = "AMBIL_TRANSPORT"
    GET_MEMBER_BALANCE = "GET_MEMBER_BALANCE"
    CAIRKAN_SIMPANAN = "CAIRKAN_SIMPANAN"
