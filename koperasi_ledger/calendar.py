"""Calendar helpers: day-precision date normalization and working days.

Sheet dates arrive as ISO strings, ``dd/mm/yyyy`` strings, native date
objects or garbage. Everything here works at calendar-day precision so
that time-of-day and timezone offsets can never shift a due date.
"""

from __future__ import annotations

import re
from datetime import date, datetime, time, timedelta
from typing import Any

from dateutil import parser as date_parser
from dateutil.relativedelta import relativedelta

YEAR_FIRST_RE = re.compile(r"^(\d{4})[-/](\d{1,2})[-/](\d{1,2})")
DAY_FIRST_RE = re.compile(r"^(\d{1,2})[-/](\d{1,2})[-/](\d{4})")

SATURDAY = 5
SUNDAY = 6


def parse_safe_date(value: Any, today: date | None = None) -> date:
    """Normalize a loosely-typed date value to a calendar day.

    Resolution order:

    1. ``date``/``datetime`` objects are rendered to ISO-8601 first so the
       calendar fields are locked in before any reinterpretation.
    2. A leading ``YYYY-M-D`` or ``YYYY/M/D`` is read year first.
    3. A leading ``D-M-YYYY`` or ``D/M/YYYY`` is read day first.
    4. Anything else goes through the generic parser and is truncated.
    5. If all of that fails the result is ``today``.

    Out-of-range month or day components in steps 2 and 3 roll over into
    the following month or year, so ``31/04/2024`` is 1 May 2024.

    Parameters
    ----------
    value : Any
        Raw value from a sheet cell.
    today : date | None
        Fallback day (default: the current local date).

    Returns
    -------
    date
        Always a valid date; this function never raises.
    """
    fallback = today or date.today()
    if value is None or value == "":
        return fallback

    if isinstance(value, (date, datetime)):
        text = value.isoformat()
    else:
        text = str(value).strip()

    match = YEAR_FIRST_RE.match(text)
    if match:
        year, month, day = (int(g) for g in match.groups())
        return _rolled_date(year, month, day, fallback)
    match = DAY_FIRST_RE.match(text)
    if match:
        day, month, year = (int(g) for g in match.groups())
        return _rolled_date(year, month, day, fallback)

    try:
        return date_parser.parse(text).date()
    except (ValueError, OverflowError, TypeError):
        return fallback


def _rolled_date(year: int, month: int, day: int, fallback: date) -> date:
    try:
        return date(year, 1, 1) + relativedelta(months=month - 1, days=day - 1)
    except (ValueError, OverflowError):
        return fallback


def parse_timestamp(value: Any) -> datetime | None:
    """Parse a full timestamp for ledger ordering.

    Timezone-aware values are converted to naive local time so every
    timestamp in a feed is comparable. Returns ``None`` when the value
    cannot be read as a date.
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        return datetime.combine(value, time())
    elif isinstance(value, str) and value.strip():
        try:
            parsed = date_parser.parse(value.strip())
        except (ValueError, OverflowError):
            return None
    else:
        return None

    if parsed.tzinfo is not None:
        parsed = parsed.astimezone().replace(tzinfo=None)
    return parsed


def is_working_day(day: date) -> bool:
    """Monday to Friday."""
    return day.weekday() not in (SATURDAY, SUNDAY)


def next_working_day(day: date) -> date:
    """Advance at least one day, skipping Saturday and Sunday."""
    nxt = day + timedelta(days=1)
    while not is_working_day(nxt):
        nxt += timedelta(days=1)
    return nxt
