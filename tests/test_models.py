"""Tests for ledger domain models."""

from datetime import date, datetime
from typing import Callable

import pytest

from koperasi_ledger.exceptions import ConfigurationError, InvalidEntityStateError
from koperasi_ledger.models import (
    InstallmentTicket,
    LoanContract,
    LoanStatus,
    LoanSubmission,
    Mutation,
    MutationKind,
    Role,
    SubmissionStatus,
    TicketState,
)


class TestRole:
    """Tests for Role parsing."""

    @pytest.mark.parametrize("label", ["ADMIN", "admin", " Administrator "])
    def test_admin_labels(self, label: str) -> None:
        assert Role.parse(label) is Role.ADMIN

    @pytest.mark.parametrize("label", ["KOLEKTOR", "collector", "Petugas", Role.COLLECTOR])
    def test_collector_labels(self, label: object) -> None:
        assert Role.parse(label) is Role.COLLECTOR

    def test_unknown_role(self) -> None:
        with pytest.raises(ConfigurationError):
            Role.parse("nasabah")


class TestLoanContract:
    """Tests for LoanContract."""

    def test_progress(self, make_contract: Callable[..., LoanContract]) -> None:
        contract = make_contract(paid=250_000)

        assert contract.cumulative_paid == 250_000
        assert contract.paid_percentage == 25
        assert not contract.is_settled

    def test_zero_total(self, make_contract: Callable[..., LoanContract]) -> None:
        contract = make_contract(total=0)
        contract.status = LoanStatus.ACTIVE
        contract.remaining_balance = 10

        assert contract.paid_percentage == 0

    def test_overpayment_floors_at_zero(self, make_contract: Callable[..., LoanContract]) -> None:
        contract = make_contract(paid=980_000)
        when = datetime(2024, 3, 13, 9, 0)
        contract.apply_payment(50_000, when)

        assert contract.remaining_balance == 0
        assert contract.status is LoanStatus.SETTLED
        assert contract.updated_at == when

    @pytest.mark.parametrize("amount", [0, -5_000])
    def test_rejects_non_positive_payment(self, make_contract: Callable[..., LoanContract], amount: float) -> None:
        contract = make_contract()

        with pytest.raises(InvalidEntityStateError, match="positive"):
            contract.apply_payment(amount)
        assert contract.remaining_balance == 1_000_000


class TestLoanSubmission:
    """Tests for LoanSubmission lifecycle."""

    def _submission(self, status: SubmissionStatus | str = SubmissionStatus.PENDING) -> LoanSubmission:
        return LoanSubmission("REQ00001", date(2024, 3, 13), "NSB00001", "Siti", 500_000, 10, "Budi", status)

    def test_forward_moves(self) -> None:
        submission = self._submission()
        submission.advance(SubmissionStatus.APPROVED)
        submission.advance(SubmissionStatus.DISBURSED)

        assert submission.status is SubmissionStatus.DISBURSED

    def test_pending_may_skip_to_disbursed(self) -> None:
        submission = self._submission()
        submission.advance(SubmissionStatus.DISBURSED)

        assert submission.status is SubmissionStatus.DISBURSED

    def test_backward_move_rejected(self) -> None:
        submission = self._submission(SubmissionStatus.APPROVED)

        with pytest.raises(InvalidEntityStateError):
            submission.advance(SubmissionStatus.PENDING)
        with pytest.raises(InvalidEntityStateError):
            submission.advance(SubmissionStatus.APPROVED)

    def test_unknown_status_cannot_advance(self) -> None:
        with pytest.raises(InvalidEntityStateError, match="unrecognised"):
            self._submission("Ditolak").advance(SubmissionStatus.APPROVED)

    def test_rank_order(self) -> None:
        assert SubmissionStatus.PENDING.rank < SubmissionStatus.APPROVED.rank < SubmissionStatus.DISBURSED.rank


class TestInstallmentTicket:
    """Tests for InstallmentTicket."""

    def _ticket(self, allocated: float = 0.0, **flags: bool) -> InstallmentTicket:
        values = {"is_paid": False, "is_partial": False, "is_overdue": False, "is_due_today": False}
        values.update(flags)
        return InstallmentTicket(
            index=0, due_date=date(2024, 3, 11), installment_amount=50_000, allocated=allocated, **values
        )

    def test_state_precedence(self) -> None:
        assert self._ticket(is_paid=True).state is TicketState.PAID
        assert self._ticket(is_partial=True, is_overdue=True).state is TicketState.PARTIAL
        assert self._ticket(is_overdue=True).state is TicketState.OVERDUE
        assert self._ticket(is_due_today=True).state is TicketState.DUE_TODAY
        assert self._ticket().state is TicketState.FUTURE

    def test_outstanding(self) -> None:
        assert self._ticket(allocated=20_000).outstanding == 30_000


class TestMutation:
    """Tests for Mutation deduplication keys."""

    def test_key_truncated_to_second(self) -> None:
        a = Mutation(datetime(2024, 3, 5, 10, 0, 0, 100), "", "Angsuran: Siti", 50_000, "Budi", MutationKind.INSTALLMENT)
        b = Mutation(datetime(2024, 3, 5, 10, 0, 0, 900), "", "Angsuran: Siti", 50_000, "Ani", MutationKind.INSTALLMENT)

        assert a.dedup_key == b.dedup_key == ("2024-03-05T10:00:00", "Angsuran: Siti", 50_000)

    def test_key_uses_raw_text_without_timestamp(self) -> None:
        mutation = Mutation(None, "kemarin", "Iuran", 5_000, "Budi", MutationKind.INCOME)

        assert mutation.dedup_key == ("kemarin", "Iuran", 5_000)
