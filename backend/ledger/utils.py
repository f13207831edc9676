from __future__ import annotations

import datetime as dt
from typing import Any, Iterable, List, Optional, Tuple


def normalize_category(value: Any) -> Optional[str]:
    """Return a category label without surrounding whitespace, or None if blank."""
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def normalize_category_selection(values: Iterable[Any]) -> List[str]:
    seen: set[str] = set()
    normalized: List[str] = []
    for value in values:
        candidate = normalize_category(value)
        if not candidate or candidate in seen:
            continue
        normalized.append(candidate)
        seen.add(candidate)
    return normalized


def clean_notes(text: str) -> str:
    """Escape quotes and backslashes and flatten newlines to a literal ``\\n``."""
    cleaned = text.replace("'", "''").replace('"', '""').replace("\\", "\\\\")
    return cleaned.replace("\r\n", "\n").replace("\n", "\\n")


def default_report_range(today: dt.date) -> Tuple[str, str]:
    """Billing period ending on the 15th of ``today``'s month.

    The period starts on the 16th of the previous month.
    """
    if today.month == 1:
        start = dt.date(today.year - 1, 12, 16)
    else:
        start = dt.date(today.year, today.month - 1, 16)
    end = today.replace(day=15)
    return start.isoformat(), end.isoformat()


def report_filename(start_date: str, end_date: str, extension: str) -> str:
    return f"LedgerReport_{start_date}_to_{end_date}.{extension}"
