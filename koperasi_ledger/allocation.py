"""Installment allocation and delinquency assessment.

Two overdue policies coexist and are kept apart:

* per ticket: the cumulative amount paid is poured into tickets in order
  and any past ticket left short is overdue;
* per contract: the contract is overdue when the amount paid is below
  ``installment * number of past tickets``.

They agree for regular payment histories but can differ for uneven
ones. The collection queue and the map use the contract policy, the
customer overview uses the ticket policy.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Iterable, Sequence

from koperasi_ledger.calendar import is_working_day
from koperasi_ledger.models import (
    Customer,
    CustomerStatus,
    InstallmentTicket,
    LoanContract,
    MapStatus,
    Mutation,
    MutationKind,
)
from koperasi_ledger.schedule import generate_loan_schedule

PAID_TOLERANCE = 1  # IDR
COLLECTED_KINDS = (MutationKind.INSTALLMENT, MutationKind.SAVINGS_DEPOSIT)
COLLECTED_WORDS = ("bayar", "setor", "angsuran")


def allocated_amount(cumulative_paid: float, index: int, installment_amount: float) -> float:
    """Share of ``cumulative_paid`` that lands on ticket ``index`` (0-based)."""
    return max(0.0, min(installment_amount, cumulative_paid - index * installment_amount))


def build_tickets(
    schedule: Sequence[date],
    cumulative_paid: float,
    installment_amount: float,
    today: date | None = None,
    total_payable: float | None = None,
) -> list[InstallmentTicket]:
    """Allocate a cumulative payment over a schedule.

    Parameters
    ----------
    schedule : Sequence[date]
        Due dates from ``generate_loan_schedule``.
    cumulative_paid : float
        Total repaid on the contract so far.
    installment_amount : float
        Fixed installment amount.
    today : date | None
        Reference day (default: current local date).
    total_payable : float | None
        Contract total, used for the balance after each ticket
        (default: ``installment_amount * len(schedule)``).

    Returns
    -------
    list[InstallmentTicket]
        One ticket per due date, in schedule order.
    """
    today = today or date.today()
    if total_payable is None:
        total_payable = installment_amount * len(schedule)

    tickets = []
    for i, due in enumerate(schedule):
        allocated = allocated_amount(cumulative_paid, i, installment_amount)
        is_paid = allocated >= installment_amount - PAID_TOLERANCE
        tickets.append(
            InstallmentTicket(
                index=i,
                due_date=due,
                installment_amount=installment_amount,
                allocated=allocated,
                is_paid=is_paid,
                is_partial=0 < allocated < installment_amount and not is_paid,
                is_overdue=not is_paid and due < today,
                is_due_today=not is_paid and due == today,
                remaining_after=max(0.0, total_payable - (i + 1) * installment_amount),
            )
        )
    return tickets


def contract_tickets(contract: LoanContract, today: date | None = None) -> list[InstallmentTicket]:
    """Ticket states of one contract, recomputed from its schedule."""
    schedule = generate_loan_schedule(contract.disbursed_on, contract.tenor)
    return build_tickets(
        schedule,
        contract.cumulative_paid,
        contract.installment_amount,
        today=today,
        total_payable=contract.total_payable,
    )


@dataclass
class ContractStanding:
    """Delinquency picture of one contract on one day."""

    contract: LoanContract
    past_count: int
    expected_paid: float
    is_overdue: bool  # Contract policy
    is_scheduled_today: bool
    is_still_owed_today: bool
    has_partial_payment_today: bool
    has_overdue_ticket: bool  # Ticket policy
    has_ticket_due_today: bool

    @property
    def map_status(self) -> MapStatus:
        if self.contract.is_settled:
            return MapStatus.SETTLED
        if self.is_overdue:
            return MapStatus.OVERDUE
        if self.is_scheduled_today:
            if self.has_partial_payment_today:
                return MapStatus.PARTIAL_TODAY
            if self.is_still_owed_today:
                return MapStatus.DUE_TODAY
            return MapStatus.PAID_TODAY
        return MapStatus.CLEAR

    @property
    def customer_status(self) -> CustomerStatus:
        contract = self.contract
        if contract.is_settled:
            return CustomerStatus.SETTLED
        if self.has_overdue_ticket:
            return CustomerStatus.DEBT
        if self.has_ticket_due_today or 0 < contract.remaining_balance < contract.total_payable:
            return CustomerStatus.DUE_TODAY
        return CustomerStatus.SAFE


def assess_contract(contract: LoanContract, today: date | None = None) -> ContractStanding:
    """Evaluate both overdue policies and today's collection state."""
    today = today or date.today()
    schedule = generate_loan_schedule(contract.disbursed_on, contract.tenor)
    paid = contract.cumulative_paid
    installment = contract.installment_amount

    past_count = sum(1 for due in schedule if due < today)
    expected_paid = installment * past_count
    expected_with_today = installment * (past_count + 1)
    still_owed_today = paid < expected_with_today

    tickets = build_tickets(schedule, paid, installment, today=today, total_payable=contract.total_payable)

    return ContractStanding(
        contract=contract,
        past_count=past_count,
        expected_paid=expected_paid,
        is_overdue=paid < expected_paid,
        is_scheduled_today=today in schedule,
        is_still_owed_today=still_owed_today,
        has_partial_payment_today=paid > expected_paid and still_owed_today,
        has_overdue_ticket=any(t.is_overdue for t in tickets),
        has_ticket_due_today=any(t.is_due_today for t in tickets),
    )


def collection_queue(contracts: Iterable[LoanContract], today: date | None = None) -> list[ContractStanding]:
    """Active contracts to visit today: overdue first, then scheduled today."""
    today = today or date.today()
    queue = [
        standing
        for standing in (assess_contract(c, today) for c in contracts if not c.is_settled)
        if standing.is_overdue or standing.is_scheduled_today
    ]
    # sort is stable, so ties keep roster order
    queue.sort(key=lambda s: not s.is_overdue)
    return queue


def daily_target(contracts: Iterable[LoanContract], today: date | None = None) -> float:
    """Sum of installments scheduled today, settled-today contracts included."""
    today = today or date.today()
    if not is_working_day(today):
        return 0.0
    return sum(
        contract.installment_amount
        for contract in contracts
        if today in generate_loan_schedule(contract.disbursed_on, contract.tenor)
    )


def collected_today(mutations: Iterable[Mutation], today: date | None = None) -> float:
    """Installments and savings deposits recorded today."""
    today = today or date.today()
    total = 0.0
    for mutation in mutations:
        if mutation.timestamp is None or mutation.timestamp.date() != today:
            continue
        description = mutation.description.lower()
        if mutation.kind in COLLECTED_KINDS or any(word in description for word in COLLECTED_WORDS):
            total += mutation.amount
    return total


def target_percentage(collected: float, target: float) -> int:
    """Progress toward the daily target, capped at 100."""
    if target <= 0:
        return 100 if collected > 0 else 0
    return min(100, round(collected / target * 100))


@dataclass
class CustomerOverviewRow:
    """One borrower/contract line of the customer list."""

    customer_id: str
    loan_id: str | None
    name: str
    percentage: int
    remaining: float
    status: CustomerStatus


def customer_overview(
    customers: Iterable[Customer],
    contracts: Iterable[LoanContract],
    today: date | None = None,
) -> list[CustomerOverviewRow]:
    """List every borrower with each of their contracts, most urgent first."""
    today = today or date.today()
    by_customer: dict[str, list[LoanContract]] = {}
    for contract in contracts:
        by_customer.setdefault(contract.customer_id, []).append(contract)

    rows = []
    for customer in customers:
        loans = by_customer.get(customer.customer_id, [])
        if not loans:
            rows.append(
                CustomerOverviewRow(customer.customer_id, None, customer.name, 0, 0.0, CustomerStatus.NO_LOAN)
            )
            continue
        for contract in loans:
            standing = assess_contract(contract, today)
            rows.append(
                CustomerOverviewRow(
                    customer_id=customer.customer_id,
                    loan_id=contract.loan_id,
                    name=customer.name,
                    percentage=contract.paid_percentage,
                    remaining=contract.remaining_balance,
                    status=standing.customer_status,
                )
            )

    order = list(CustomerStatus)
    rows.sort(key=lambda row: order.index(row.status))
    return rows
