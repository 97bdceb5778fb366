"""Field resolution over loosely-typed sheet records.

Sheet headers drift (``id_nasabah``, ``ID Nasabah``, ``nasabah.id`` ...),
so every lookup goes through ``find_value`` with a list of candidate
patterns instead of fixed attribute access.
"""

from __future__ import annotations

import re
from typing import Any, Mapping, Sequence

KEY_SEPARATORS_RE = re.compile(r"[\s_.]")
CURRENCY_MARKER_RE = re.compile(r"Rp|IDR", re.IGNORECASE)
NON_NUMERIC_RE = re.compile(r"[^0-9.\-]")
NUMERIC_PREFIX_RE = re.compile(r"-?(?:\d+\.?\d*|\.\d+)")
DOT_THOUSANDS_RE = re.compile(r"\.\d{3}(?!\d)")
COMMA_THOUSANDS_RE = re.compile(r",\d{3}(?!\d)")

DATE_LIKE_RE = re.compile(r"^\d{1,4}[-/]\d{1,2}[-/]\d{1,4}")
RECENT_YEAR_RE = re.compile(r"(?<!\d)20[2-3]\d(?!\d)")
MONTH_TOKEN_RE = re.compile(r"\b(?:Jan|Feb|Mar|Apr|May|Jun|Jul|Aug|Sep|Oct|Nov|Dec)\b")


def normalize_key(key: Any) -> str:
    """Lower-case a header and drop whitespace, underscores and dots."""
    return KEY_SEPARATORS_RE.sub("", str(key).lower())


def find_key(record: Mapping[str, Any], patterns: Sequence[str]) -> str | None:
    """Return the record key matching any pattern, or ``None``.

    An exact normalized match anywhere in the record beats a partial
    (substring either way) match, regardless of key order.
    """
    wanted = [normalize_key(p) for p in patterns]
    normalized = [(key, normalize_key(key)) for key in record.keys()]

    for key, nk in normalized:
        if nk and nk in wanted:
            return key

    for key, nk in normalized:
        if nk and any(nk in np or np in nk for np in wanted):
            return key

    return None


def find_value(record: Mapping[str, Any], patterns: Sequence[str]) -> Any:
    """Resolve the value of the first key matching ``patterns``.

    Parameters
    ----------
    record : Mapping[str, Any]
        Raw sheet row.
    patterns : Sequence[str]
        Candidate field names, most specific first.

    Returns
    -------
    Any
        The matched value, or ``None`` when no key matches.
    """
    key = find_key(record, patterns)
    return record[key] if key is not None else None


def clean_number(value: Any) -> float:
    """Parse a currency amount written with Indonesian or US separators.

    ``"Rp 1.250.000"`` -> 1250000, ``"1,250,000.50"`` -> 1250000.5.
    Numeric input is returned unchanged; anything unparseable is 0.
    """
    if value is None or value == "":
        return 0
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return value

    s = CURRENCY_MARKER_RE.sub("", str(value)).strip()

    if "." in s and "," in s:
        # The more frequent separator groups thousands; a tie strips commas
        if s.count(".") > s.count(","):
            s = s.replace(".", "").replace(",", ".", 1)
        else:
            s = s.replace(",", "")
    elif DOT_THOUSANDS_RE.search(s):
        s = s.replace(".", "")
    elif COMMA_THOUSANDS_RE.search(s):
        s = s.replace(",", "")

    match = NUMERIC_PREFIX_RE.match(NON_NUMERIC_RE.sub("", s))
    if not match:
        return 0
    return float(match.group(0))


def looks_like_date(value: Any) -> bool:
    """Heuristic used when no date-like header exists in a record."""
    text = str(value)
    return bool(
        DATE_LIKE_RE.match(text)
        or RECENT_YEAR_RE.search(text)
        or MONTH_TOKEN_RE.search(text)
    )
