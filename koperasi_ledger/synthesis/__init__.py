"""Turn fetched backend sheets into canonical ledger entities."""

from koperasi_ledger.synthesis.contracts import collect_loan_records, normalize_contract, normalize_contracts
from koperasi_ledger.synthesis.customers import active_customers, customer_name_index, normalize_customers
from koperasi_ledger.synthesis.mutations import MutationSynthesizer
from koperasi_ledger.synthesis.submissions import SubmissionReconciler

__all__ = [
    "MutationSynthesizer",
    "SubmissionReconciler",
    "active_customers",
    "collect_loan_records",
    "customer_name_index",
    "normalize_contract",
    "normalize_contracts",
    "normalize_customers",
]
