"""In-memory stand-in for the spreadsheet backend."""

from __future__ import annotations

import copy
import logging
from datetime import datetime
from typing import Any, Callable

from koperasi_ledger.extract import clean_number
from koperasi_ledger.models import BackendAction, Role
from koperasi_ledger.synthesis.access import is_restricted

logger = logging.getLogger(__name__)

LOAN_SHEET = "PINJAMAN_AKTIF"
INSTALLMENT_SHEET = "ANGSURAN"
ROSTER_SHEET = "nasabah"


class InMemoryBackend:
    """Serve generated sheets through the command envelope.

    Implements the dashboard fetch, installment payments and member
    balance lookups. Every call is recorded in ``calls``.

    Parameters
    ----------
    sheets : dict[str, list[dict[str, Any]]]
        Sheet name to rows; mutated by payment commands.
    secondary : dict[str, Any] | None
        Data returned by ``get_data``; ``None`` makes that fetch fail.
    clock : Callable[[], datetime]
        Source of timestamps for recorded payments.
    """

    def __init__(
        self,
        sheets: dict[str, list[dict[str, Any]]],
        secondary: dict[str, Any] | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.sheets = sheets
        self.secondary = secondary
        self.clock = clock
        self.calls: list[tuple[str, dict[str, Any]]] = []
        self._payment_seq = 0

    def call(self, action: str, payload: dict[str, Any] | None = None) -> dict[str, Any]:
        payload = payload or {}
        self.calls.append((action, payload))
        handlers = {
            BackendAction.GET_DASHBOARD_DATA.value: self._dashboard,
            BackendAction.BAYAR_ANGSURAN.value: self._pay_installment,
            BackendAction.GET_MEMBER_BALANCE.value: self._member_balance,
        }
        handler = handlers.get(action)
        if handler is None:
            return {"success": False, "message": f"Unsupported action: {action}"}
        return handler(payload)

    def get_data(self) -> dict[str, Any]:
        if self.secondary is None:
            return {"success": False, "message": "Secondary source not configured"}
        return {"success": True, "data": copy.deepcopy(self.secondary)}

    def _dashboard(self, payload: dict[str, Any]) -> dict[str, Any]:
        role = Role.parse(payload.get("role") or Role.ADMIN)
        data = {
            name: copy.deepcopy(rows)
            for name, rows in self.sheets.items()
            if role == Role.ADMIN or not is_restricted(name)
        }
        return {"success": True, "data": data}

    def _find_loan(self, loan_id: str) -> dict[str, Any] | None:
        for row in self.sheets.get(LOAN_SHEET, []):
            if str(row.get("id_pinjaman")) == loan_id:
                return row
        return None

    def _pay_installment(self, payload: dict[str, Any]) -> dict[str, Any]:
        loan_id = str(payload.get("id_pinjam") or "")
        amount = clean_number(payload.get("jumlah"))
        loan = self._find_loan(loan_id)
        if loan is None:
            return {"success": False, "message": f"Pinjaman {loan_id} tidak ditemukan"}
        if amount <= 0:
            return {"success": False, "message": "Jumlah bayar harus lebih dari 0"}
        if str(loan.get("status", "")).lower() == "lunas":
            return {"success": False, "message": f"Pinjaman {loan_id} sudah lunas"}

        remaining = max(0.0, clean_number(loan.get("sisa_hutang")) - amount)
        now = self.clock()
        loan["sisa_hutang"] = remaining
        loan["update_terakhir"] = now.isoformat()
        if remaining <= 0:
            loan["status"] = "Lunas"

        self._payment_seq += 1
        self.sheets.setdefault(INSTALLMENT_SHEET, []).append(
            {
                "id_angsuran": f"PAYM{self._payment_seq:05d}",
                "tanggal": now.isoformat(),
                "id_pinjaman": loan_id,
                "id_nasabah": payload.get("id_nasabah") or loan.get("id_nasabah"),
                "jumlah": amount,
                "sisa_hutang": remaining,
                "petugas": payload.get("petugas") or "",
                "foto_bukti": payload.get("fotoBayar") or "",
            }
        )
        logger.debug("Recorded payment of %s on %s, remaining %s", amount, loan_id, remaining)
        return {"success": True, "message": "Pembayaran berhasil", "data": {"sisa_hutang": remaining}}

    def _member_balance(self, payload: dict[str, Any]) -> dict[str, Any]:
        customer_id = str(payload.get("id_nasabah") or "")
        for row in self.sheets.get(ROSTER_SHEET, []):
            if str(row.get("id_nasabah")) == customer_id:
                return {"success": True, "data": {"saldo": clean_number(row.get("saldo_simpanan"))}}
        return {"success": False, "message": f"Nasabah {customer_id} tidak ditemukan"}
