"""Tests for the refresh routine."""

import copy
import logging
from datetime import date, datetime
from typing import Any
from unittest.mock import MagicMock, call

import pytest

from koperasi_ledger.config import LedgerConfig, SyncConfig
from koperasi_ledger.exceptions import FetchError
from koperasi_ledger.generators import InMemoryBackend, SheetGenerator
from koperasi_ledger.models import MutationKind, Role, SubmissionStatus
from koperasi_ledger.refresh import LedgerRefresher
from koperasi_ledger.synthesis.access import is_restricted

RESTRICTED_KINDS = {MutationKind.EXPENSE, MutationKind.CAPITAL, MutationKind.TRANSPORT}


def config(role: str = "ADMIN", **sync: Any) -> LedgerConfig:
    return LedgerConfig(sync=SyncConfig(role=role, user_id="U1", **sync))


def mock_backend(data: dict[str, Any], secondary: dict[str, Any] | None = None) -> MagicMock:
    backend = MagicMock()
    backend.call.return_value = {"success": True, "data": data}
    backend.get_data.return_value = secondary if secondary is not None else {"success": False}
    return backend


def collector_view(sheets: dict[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in sheets.items() if not is_restricted(k) and "PENGAJUAN" not in k}


class TestFetch:
    """Tests for fetching and merging backend data."""

    def test_primary_payload(self, sample_sheets: dict[str, Any]) -> None:
        backend = mock_backend(sample_sheets)
        LedgerRefresher(backend, config()).fetch()

        backend.call.assert_called_once_with("GET_DASHBOARD_DATA", {"role": "ADMIN", "id_user": "U1"})

    def test_primary_exception_becomes_fetch_error(self) -> None:
        backend = MagicMock()
        backend.call.side_effect = ConnectionError("offline")

        with pytest.raises(FetchError, match="offline"):
            LedgerRefresher(backend, config()).fetch()

    def test_both_unsuccessful(self) -> None:
        backend = MagicMock()
        backend.call.return_value = {"success": False, "message": "Sesi habis"}
        backend.get_data.return_value = {"success": False}

        with pytest.raises(FetchError, match="Sesi habis"):
            LedgerRefresher(backend, config()).fetch()

    def test_secondary_alone_is_enough(self, sample_sheets: dict[str, Any]) -> None:
        backend = MagicMock()
        backend.call.return_value = {"success": False}
        backend.get_data.return_value = {"success": True, "data": sample_sheets}

        assert "PINJAMAN_AKTIF" in LedgerRefresher(backend, config()).fetch()

    def test_secondary_failure_tolerated(self, sample_sheets: dict[str, Any]) -> None:
        backend = mock_backend(sample_sheets)
        backend.get_data.side_effect = RuntimeError("timeout")

        assert LedgerRefresher(backend, config()).fetch() == sample_sheets

    def test_secondary_overrides_primary_keys(self, sample_sheets: dict[str, Any]) -> None:
        newer = copy.deepcopy(sample_sheets["PINJAMAN_AKTIF"])
        newer[0]["sisa_hutang"] = 500_000
        backend = mock_backend(sample_sheets, {"success": True, "data": {"PINJAMAN_AKTIF": newer}})

        snapshot = LedgerRefresher(backend, config()).refresh(date(2024, 3, 13))

        assert snapshot.get_contract("CTR00001").remaining_balance == 500_000


class TestRefresh:
    """Tests for snapshot construction."""

    def test_admin_snapshot(self, sample_sheets: dict[str, Any], now: datetime) -> None:
        refresher = LedgerRefresher(mock_backend(sample_sheets), config())
        snapshot = refresher.refresh(date(2024, 3, 13), now)

        assert refresher.snapshot is snapshot
        assert snapshot.refreshed_at == now
        assert list(snapshot.contracts) == ["CTR00001"]
        assert [c.customer_id for c in snapshot.get_active_customers()] == ["NSB00001", "NSB00003"]
        assert [s.status for s in snapshot.submissions] == [SubmissionStatus.PENDING]
        assert {m.kind for m in snapshot.mutations} == {
            MutationKind.INSTALLMENT,
            MutationKind.TRANSPORT,
            MutationKind.CAPITAL,
            MutationKind.DISBURSEMENT,
        }

    def test_collector_uses_admin_scope_for_pending_items(self, sample_sheets: dict[str, Any]) -> None:
        backend = MagicMock()
        backend.call.side_effect = lambda action, payload: {
            "success": True,
            "data": collector_view(sample_sheets) if payload["role"] == "KOLEKTOR" else sample_sheets,
        }
        backend.get_data.return_value = {"success": False}

        snapshot = LedgerRefresher(backend, config("KOLEKTOR")).refresh(date(2024, 3, 13))

        assert backend.call.call_args_list == [
            call("GET_DASHBOARD_DATA", {"role": "KOLEKTOR", "id_user": "U1"}),
            call("GET_DASHBOARD_DATA", {"role": "ADMIN", "id_user": "U1"}),
        ]
        assert len(snapshot.submissions) == 1
        assert not RESTRICTED_KINDS & {m.kind for m in snapshot.mutations}
        assert sum(m.kind == MutationKind.INSTALLMENT for m in snapshot.mutations) == 2

    def test_admin_scope_never_feeds_contracts(self, sample_sheets: dict[str, Any]) -> None:
        own = {k: v for k, v in collector_view(sample_sheets).items() if k != "PINJAMAN_AKTIF"}
        backend = MagicMock()
        backend.call.side_effect = lambda action, payload: {
            "success": True,
            "data": own if payload["role"] == "KOLEKTOR" else sample_sheets,
        }
        backend.get_data.return_value = {"success": False}

        snapshot = LedgerRefresher(backend, config("KOLEKTOR")).refresh(date(2024, 3, 13))

        assert snapshot.contracts == {}
        assert any(m.kind == MutationKind.DISBURSEMENT for m in snapshot.mutations)

    def test_admin_scope_can_be_disabled(self, sample_sheets: dict[str, Any]) -> None:
        backend = mock_backend(collector_view(sample_sheets))
        snapshot = LedgerRefresher(backend, config("KOLEKTOR", admin_fetch_for_collectors=False)).refresh()

        assert backend.call.call_count == 1
        assert snapshot.submissions == []

    def test_admin_scope_failure_tolerated(self, sample_sheets: dict[str, Any]) -> None:
        def respond(action: str, payload: dict[str, Any]) -> dict[str, Any]:
            if payload["role"] == "ADMIN":
                raise ConnectionError("admin fetch refused")
            return {"success": True, "data": collector_view(sample_sheets)}

        backend = MagicMock()
        backend.call.side_effect = respond
        backend.get_data.return_value = {"success": False}

        snapshot = LedgerRefresher(backend, config("KOLEKTOR")).refresh()

        assert list(snapshot.contracts) == ["CTR00001"]


class TestPoll:
    """Tests for the polling loop."""

    def test_failed_refresh_keeps_previous_snapshot(self, sample_sheets: dict[str, Any]) -> None:
        backend = MagicMock()
        backend.call.side_effect = [{"success": True, "data": sample_sheets}, ConnectionError("offline")]
        backend.get_data.return_value = {"success": False}
        sleep = MagicMock()
        refresher = LedgerRefresher(backend, config(refresh_interval_seconds=5))

        attempts = refresher.poll(max_refreshes=2, sleep=sleep)

        assert attempts == 2
        sleep.assert_called_once_with(5)
        assert list(refresher.snapshot.contracts) == ["CTR00001"]


class TestSubmitPayment:
    """Tests for payment submission against the in-memory backend."""

    def test_success_refreshes(self, sample_sheets: dict[str, Any]) -> None:
        backend = InMemoryBackend(copy.deepcopy(sample_sheets))
        refresher = LedgerRefresher(backend, config())
        refresher.refresh(date(2024, 3, 13))

        response = refresher.submit_payment("CTR00001", "NSB00001", 50_000, "Budi")

        assert response["success"]
        assert refresher.snapshot.get_contract("CTR00001").remaining_balance == 850_000
        action, payload = backend.calls[1]
        assert action == "BAYAR_ANGSURAN"
        assert payload["id_pinjam"] == "CTR00001"
        assert payload["jumlah"] == 50_000
        assert payload["pakaiSimpanan"] is False

    def test_rejection_does_not_refresh(self, sample_sheets: dict[str, Any]) -> None:
        backend = InMemoryBackend(copy.deepcopy(sample_sheets))
        refresher = LedgerRefresher(backend, config())

        response = refresher.submit_payment("CTR09999", "NSB00001", 50_000, "Budi")

        assert not response["success"]
        assert refresher.snapshot is None
        assert len(backend.calls) == 1

    def test_rejection_logged_with_loan_context(
        self, sample_sheets: dict[str, Any], caplog: pytest.LogCaptureFixture
    ) -> None:
        refresher = LedgerRefresher(InMemoryBackend(copy.deepcopy(sample_sheets)), config())

        with caplog.at_level(logging.WARNING, logger="koperasi_ledger.refresh"):
            refresher.submit_payment("CTR09999", "NSB00001", 50_000, "Budi")

        (record,) = caplog.records
        assert record.loan_id == "CTR09999"

    def test_refresh_logged_with_role_context(
        self, sample_sheets: dict[str, Any], caplog: pytest.LogCaptureFixture
    ) -> None:
        refresher = LedgerRefresher(mock_backend(sample_sheets), config())

        with caplog.at_level(logging.INFO, logger="koperasi_ledger.refresh"):
            refresher.refresh(date(2024, 3, 13))

        record = next(r for r in caplog.records if r.getMessage().startswith("Ledger refreshed"))
        assert record.role == "ADMIN"
        assert record.user_id == "U1"
        assert record.counts == refresher.snapshot.summary()


class TestGeneratedPortfolio:
    """Refresh invariants over a generated portfolio."""

    @pytest.fixture
    def sheets(self, seed: int) -> dict[str, Any]:
        return SheetGenerator(seed=seed).generate_sheets(15, today=date(2024, 3, 13))

    def test_admin_feed(self, sheets: dict[str, Any]) -> None:
        snapshot = LedgerRefresher(InMemoryBackend(sheets), config()).refresh(date(2024, 3, 13))

        assert len(snapshot.contracts) == len(sheets["PINJAMAN_AKTIF"])
        for contract in snapshot.contracts.values():
            assert 0 <= contract.remaining_balance <= contract.total_payable
        keys = [m.dedup_key for m in snapshot.mutations]
        assert len(keys) == len(set(keys))
        stamps = [m.timestamp for m in snapshot.mutations]
        assert all(a >= b for a, b in zip(stamps, stamps[1:]))
        installments = [m for m in snapshot.mutations if m.kind == MutationKind.INSTALLMENT]
        assert len(installments) <= len(sheets["ANGSURAN"])

    def test_collector_feed(self, sheets: dict[str, Any]) -> None:
        snapshot = LedgerRefresher(InMemoryBackend(sheets), config("KOLEKTOR")).refresh(date(2024, 3, 13))

        assert snapshot.role is Role.COLLECTOR
        for mutation in snapshot.mutations:
            assert mutation.kind not in RESTRICTED_KINDS
            assert not is_restricted(mutation.kind.value, mutation.source)
