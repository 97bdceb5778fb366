"""Ledger domain models."""

from koperasi_ledger.models.base import GeoLocation
from koperasi_ledger.models.customer import Customer
from koperasi_ledger.models.enums import (
    BackendAction,
    CustomerStatus,
    LoanStatus,
    MapStatus,
    MutationKind,
    Role,
    SubmissionStatus,
    SubmissionType,
    TicketState,
)
from koperasi_ledger.models.loan import InstallmentTicket, LoanContract, LoanSubmission
from koperasi_ledger.models.mutation import Mutation

__all__ = [
    "BackendAction",
    "Customer",
    "CustomerStatus",
    "GeoLocation",
    "InstallmentTicket",
    "LoanContract",
    "LoanStatus",
    "LoanSubmission",
    "MapStatus",
    "Mutation",
    "MutationKind",
    "Role",
    "SubmissionStatus",
    "SubmissionType",
    "TicketState",
]
