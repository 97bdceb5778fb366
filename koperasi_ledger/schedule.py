"""Loan due-date schedule generation.

Billing assumes a nominal cycle of twenty working days. The cadence
between tickets is derived from the tenor so that the schedule fits that
cycle: four tickets are weekly, twenty or more are daily, anything else
is spread evenly.
"""

from __future__ import annotations

from datetime import date
from typing import Any

from koperasi_ledger.calendar import next_working_day, parse_safe_date

BILLING_CYCLE_WORKING_DAYS = 20
WEEKLY_TENOR = 4
WEEKLY_INTERVAL = 5


def cadence_interval(tenor: int) -> int:
    """Working days between two consecutive due dates.

    Parameters
    ----------
    tenor : int
        Number of installments (must be positive).

    Returns
    -------
    int
        Interval in working days, never below 1.
    """
    if tenor == WEEKLY_TENOR:
        return WEEKLY_INTERVAL
    if tenor >= BILLING_CYCLE_WORKING_DAYS:
        return 1
    return max(1, BILLING_CYCLE_WORKING_DAYS // tenor)


def generate_loan_schedule(disbursed_on: Any, tenor: int) -> list[date]:
    """Build the ordered due dates of a loan.

    Billing never starts on the disbursement day: the first ticket falls
    on the next working day, and each later ticket is ``interval`` working
    days after the previous one.

    Parameters
    ----------
    disbursed_on : Any
        Disbursement date in any form accepted by ``parse_safe_date``.
    tenor : int
        Number of installments. Zero or negative yields an empty schedule.

    Returns
    -------
    list[date]
        ``tenor`` strictly increasing working days.
    """
    tenor = int(tenor or 0)
    if tenor <= 0:
        return []

    interval = cadence_interval(tenor)
    current = next_working_day(parse_safe_date(disbursed_on))

    schedule: list[date] = []
    for _ in range(tenor):
        schedule.append(current)
        for _ in range(interval):
            current = next_working_day(current)
    return schedule
