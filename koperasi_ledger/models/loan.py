"""Loan models: disbursed contracts, pending submissions and installment tickets."""

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any

from koperasi_ledger.exceptions import InvalidEntityStateError
from koperasi_ledger.models.enums import (
    LoanStatus,
    SubmissionStatus,
    SubmissionType,
    TicketState,
)


@dataclass
class LoanContract:
    """Disbursed loan (pinjaman aktif).

    ``total_payable`` is principal plus flat interest; the remaining balance
    only ever decreases and the contract settles when it reaches zero.
    """

    loan_id: str
    disbursed_on: date
    customer_id: str
    customer_name: str
    principal: float
    interest_rate: float  # Percent of principal (e.g. 20.0)
    total_payable: float
    tenor: int
    installment_amount: float
    remaining_balance: float
    status: LoanStatus
    collector: str = ""
    updated_at: datetime | None = None
    proof_photo: str = ""

    @property
    def cumulative_paid(self) -> float:
        """Amount repaid so far."""
        return self.total_payable - self.remaining_balance

    @property
    def is_settled(self) -> bool:
        return self.status == LoanStatus.SETTLED or self.remaining_balance <= 0

    @property
    def paid_percentage(self) -> int:
        """Repayment progress, capped at 100."""
        if self.is_settled:
            return 100
        if self.total_payable <= 0:
            return 0
        return min(100, round(self.cumulative_paid / self.total_payable * 100))

    def apply_payment(self, amount: float, when: datetime | None = None) -> None:
        """Record an installment payment against the contract.

        Parameters
        ----------
        amount : float
            Amount paid, in IDR.
        when : datetime | None
            Payment time (default: now).

        Raises
        ------
        InvalidEntityStateError
            If the contract is already settled or the amount is not positive.
        """
        if self.is_settled:
            raise InvalidEntityStateError(f"Loan {self.loan_id} is already settled")
        if amount <= 0:
            raise InvalidEntityStateError(f"Payment amount must be positive, got {amount}")

        self.remaining_balance = max(0.0, self.remaining_balance - amount)
        if self.remaining_balance <= 0:
            self.status = LoanStatus.SETTLED
        self.updated_at = when or datetime.now()


@dataclass
class LoanSubmission:
    """Loan or savings-withdrawal request awaiting approval and disbursement."""

    submission_id: str
    requested_on: date | None
    customer_id: str
    customer_name: str
    amount: float
    tenor: int
    collector: str
    status: SubmissionStatus | str
    submission_type: SubmissionType = SubmissionType.LOAN
    extra: dict[str, Any] = field(default_factory=dict)

    def advance(self, target: SubmissionStatus) -> None:
        """Move the submission forward in its lifecycle.

        Raises
        ------
        InvalidEntityStateError
            If the current status is unknown or the move is not forward.
        """
        if not isinstance(self.status, SubmissionStatus):
            raise InvalidEntityStateError(
                f"Submission {self.submission_id} has unrecognised status {self.status!r}"
            )
        if target.rank <= self.status.rank:
            raise InvalidEntityStateError(
                f"Submission {self.submission_id} cannot move from "
                f"{self.status.value} to {target.value}"
            )
        self.status = target


@dataclass
class InstallmentTicket:
    """One scheduled installment with its share of the amount repaid."""

    index: int  # 0-based position in the schedule
    due_date: date
    installment_amount: float
    allocated: float
    is_paid: bool
    is_partial: bool
    is_overdue: bool
    is_due_today: bool
    remaining_after: float = 0.0  # Contract balance once this ticket is paid

    @property
    def outstanding(self) -> float:
        return max(0.0, self.installment_amount - self.allocated)

    @property
    def state(self) -> TicketState:
        """Single display state; a partial ticket past due stays PARTIAL."""
        if self.is_paid:
            return TicketState.PAID
        if self.is_partial:
            return TicketState.PARTIAL
        if self.is_overdue:
            return TicketState.OVERDUE
        if self.is_due_today:
            return TicketState.DUE_TODAY
        return TicketState.FUTURE
