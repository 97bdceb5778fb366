"""Derived ledger state produced by one successful refresh."""

from dataclasses import dataclass, field
from datetime import date, datetime

from koperasi_ledger.allocation import (
    ContractStanding,
    assess_contract,
    collected_today,
    collection_queue,
    contract_tickets,
    daily_target,
)
from koperasi_ledger.exceptions import EntityNotFoundError
from koperasi_ledger.models import (
    Customer,
    InstallmentTicket,
    LoanContract,
    LoanSubmission,
    Mutation,
    MutationKind,
    Role,
)


@dataclass
class LedgerSnapshot:
    """Read-only view handed to the presentation layer between refreshes.

    A snapshot is rebuilt wholesale on every refresh and never patched in
    place; consumers hold a reference to the latest one.
    """

    role: Role
    refreshed_at: datetime
    contracts: dict[str, LoanContract] = field(default_factory=dict)
    mutations: list[Mutation] = field(default_factory=list)
    submissions: list[LoanSubmission] = field(default_factory=list)
    customers: dict[str, Customer] = field(default_factory=dict)
    active_customer_ids: list[str] = field(default_factory=list)

    # Relationship index
    _customer_contracts: dict[str, list[str]] = field(default_factory=dict)

    def __post_init__(self) -> None:
        for contract in self.contracts.values():
            self._customer_contracts.setdefault(contract.customer_id, []).append(contract.loan_id)

    def get_contract(self, loan_id: str) -> LoanContract:
        """Look up a contract by loan id."""
        try:
            return self.contracts[loan_id]
        except KeyError:
            raise EntityNotFoundError(f"Loan {loan_id} not found") from None

    def get_customer(self, customer_id: str) -> Customer:
        """Look up a borrower by id."""
        try:
            return self.customers[customer_id]
        except KeyError:
            raise EntityNotFoundError(f"Customer {customer_id} not found") from None

    def get_customer_contracts(self, customer_id: str) -> list[LoanContract]:
        """All contracts of a borrower, active and settled."""
        loan_ids = self._customer_contracts.get(customer_id, [])
        return [self.contracts[lid] for lid in loan_ids]

    def get_active_contract(self, customer_id: str) -> LoanContract | None:
        """The borrower's first unsettled contract, if any."""
        return next((c for c in self.get_customer_contracts(customer_id) if not c.is_settled), None)

    def get_active_customers(self) -> list[Customer]:
        """Borrowers surfaced to collectors."""
        return [self.customers[cid] for cid in self.active_customer_ids if cid in self.customers]

    def get_loan_installments(self, loan_id: str) -> list[Mutation]:
        """Installment mutations recorded against a loan, oldest first."""
        found = [
            m for m in self.mutations
            if m.kind == MutationKind.INSTALLMENT and m.loan_ref == loan_id
        ]
        return list(reversed(found))

    def tickets(self, loan_id: str, today: date | None = None) -> list[InstallmentTicket]:
        """Per-ticket allocation for one contract, computed on demand."""
        return contract_tickets(self.get_contract(loan_id), today)

    def standing(self, loan_id: str, today: date | None = None) -> ContractStanding:
        return assess_contract(self.get_contract(loan_id), today)

    def collection_queue(self, today: date | None = None) -> list[ContractStanding]:
        return collection_queue(self.contracts.values(), today)

    def daily_target(self, today: date | None = None) -> float:
        return daily_target(self.contracts.values(), today)

    def collected_today(self, today: date | None = None) -> float:
        return collected_today(self.mutations, today)

    def summary(self) -> dict[str, int]:
        """Return summary counts of all entities."""
        return {
            "contracts": len(self.contracts),
            "active_contracts": sum(1 for c in self.contracts.values() if not c.is_settled),
            "mutations": len(self.mutations),
            "submissions": len(self.submissions),
            "customers": len(self.customers),
        }
