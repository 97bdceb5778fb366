"""Refresh routine: fetch sheets, recompute derived state, publish a snapshot.

The backend is a spreadsheet exposed through a command envelope
(``{"action", "payload"}``) and a secondary no-argument fetch. Transport,
retries and timeouts belong to the backend client; this module only
decides what to fetch and how to combine it.
"""

from __future__ import annotations

import logging
import time
from datetime import date, datetime
from typing import Any, Callable, Protocol

from koperasi_ledger.config import LedgerConfig
from koperasi_ledger.exceptions import FetchError
from koperasi_ledger.models import BackendAction, Role
from koperasi_ledger.store import LedgerSnapshot
from koperasi_ledger.synthesis import (
    MutationSynthesizer,
    SubmissionReconciler,
    active_customers,
    customer_name_index,
    normalize_contracts,
    normalize_customers,
)

logger = logging.getLogger(__name__)


class LedgerBackend(Protocol):
    """Client for the spreadsheet backend."""

    def call(self, action: str, payload: dict[str, Any] | None = None) -> dict[str, Any]:
        """Send a command envelope and return the decoded response."""
        ...

    def get_data(self) -> dict[str, Any]:
        """Secondary fetch returning ``{"success", "data"}``."""
        ...


class LedgerRefresher:
    """Single writer of the ledger snapshot.

    Every ``refresh()`` recomputes everything from the latest fetch and
    replaces ``snapshot``; a refresh finishing after a newer one simply
    overwrites it.

    Parameters
    ----------
    backend : LedgerBackend
        Backend client.
    config : LedgerConfig | None
        Configuration (default: ``LedgerConfig()``).
    """

    def __init__(self, backend: LedgerBackend, config: LedgerConfig | None = None) -> None:
        self.backend = backend
        self.config = config or LedgerConfig()
        self.snapshot: LedgerSnapshot | None = None

    def _fetch_dashboard(self, role: Role) -> dict[str, Any]:
        payload = {"role": role.value, "id_user": self.config.sync.user_id}
        return self.backend.call(BackendAction.GET_DASHBOARD_DATA.value, payload) or {}

    def _fetch_secondary(self) -> dict[str, Any]:
        try:
            return self.backend.get_data() or {}
        except Exception as exc:
            logger.warning("Secondary fetch failed: %s", exc)
            return {"success": False, "data": {}}

    def _fetch_admin_scope(self) -> dict[str, Any]:
        """Admin-scoped pull on a collector's behalf, to surface pending items."""
        try:
            response = self._fetch_dashboard(Role.ADMIN)
        except Exception as exc:
            logger.warning("Admin-scoped fetch failed: %s", exc)
            return {}
        if not response.get("success"):
            return {}
        return response.get("data") or {}

    def fetch(self) -> dict[str, Any]:
        """Fetch and merge the primary and secondary ``data`` mappings.

        Raises
        ------
        FetchError
            If the primary call raises, or neither fetch reports success.
        """
        try:
            primary = self._fetch_dashboard(self.config.sync.role)
        except Exception as exc:
            raise FetchError(f"Dashboard fetch failed: {exc}") from exc

        secondary = self._fetch_secondary()

        if not primary.get("success") and not secondary.get("success"):
            message = primary.get("message") or secondary.get("message") or "Backend returned no data"
            raise FetchError(message)

        return {**(primary.get("data") or {}), **(secondary.get("data") or {})}

    def refresh(self, today: date | None = None, now: datetime | None = None) -> LedgerSnapshot:
        """Run one full reload-and-recompute pass.

        Parameters
        ----------
        today : date | None
            Fallback day for unreadable contract dates.
        now : datetime | None
            Refresh time, also used for undated records.

        Returns
        -------
        LedgerSnapshot
            The newly published snapshot.
        """
        sync = self.config.sync
        synthesis = self.config.synthesis
        now = now or datetime.now()
        data = self.fetch()

        synthesizer = MutationSynthesizer(
            sync.role,
            customer_name_index(data),
            default_collector=synthesis.default_collector,
            amount_ceiling=synthesis.amount_ceiling,
            now=now,
        )
        reconciler = SubmissionReconciler()

        reconciler.merge_sheets(data)
        synthesizer.add_sheets(data)

        if sync.is_collector and sync.admin_fetch_for_collectors:
            admin_data = self._fetch_admin_scope()
            reconciler.merge_sheets(admin_data)
            synthesizer.add_sheets(admin_data)

        contracts = normalize_contracts(data, today)
        customers = normalize_customers(data)

        snapshot = LedgerSnapshot(
            role=sync.role,
            refreshed_at=now,
            contracts={c.loan_id: c for c in contracts},
            mutations=synthesizer.mutations(),
            submissions=reconciler.submissions(),
            customers={c.customer_id: c for c in customers},
            active_customer_ids=[c.customer_id for c in active_customers(customers, contracts)],
        )
        self.snapshot = snapshot

        context = {"role": sync.role.value, "user_id": sync.user_id}
        counts = snapshot.summary()
        logger.info("Ledger refreshed: %s", counts, extra={**context, "counts": counts})
        logger.debug("Mutation synthesis: %s", synthesizer.summary(), extra=context)
        return snapshot

    def poll(
        self,
        max_refreshes: int | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> int:
        """Refresh repeatedly at the configured interval.

        A failed refresh is logged and the previous snapshot is kept.

        Returns
        -------
        int
            Number of refresh attempts made.
        """
        interval = self.config.sync.refresh_interval_seconds
        attempts = 0
        while max_refreshes is None or attempts < max_refreshes:
            try:
                self.refresh()
            except FetchError as exc:
                logger.error("Refresh failed, keeping previous snapshot: %s", exc)
            attempts += 1
            if max_refreshes is None or attempts < max_refreshes:
                sleep(interval)
        return attempts

    def submit_payment(
        self,
        loan_id: str,
        customer_id: str,
        amount: float,
        collector: str,
        proof_photo: str = "",
    ) -> dict[str, Any]:
        """Send an installment payment and refresh on success."""
        response = self.backend.call(
            BackendAction.BAYAR_ANGSURAN.value,
            {
                "id_pinjam": loan_id,
                "id_nasabah": customer_id,
                "jumlah": amount,
                "petugas": collector,
                "fotoBayar": proof_photo,
                "pakaiSimpanan": False,
                "jumlahSimpananDiterapkan": 0,
            },
        ) or {}
        if response.get("success"):
            self.refresh()
        else:
            logger.warning(
                "Payment for loan %s rejected: %s", loan_id, response.get("message"), extra={"loan_id": loan_id}
            )
        return response
