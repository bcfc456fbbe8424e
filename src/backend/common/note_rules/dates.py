"""Local-calendar date parsing and sortable timestamp formatting.

Every datetime returned here is naive and expressed in local wall-clock time.
Date-only values ("2026-02-12") are local midnight, never UTC midnight shifted
into the local zone.
"""

from __future__ import annotations

import re
from datetime import date, datetime, time, timedelta
from typing import Any, Optional

DATE_SORT_FIELDS = frozenset(
    {
        "scheduled",
        "due",
        "date",
        "start",
        "startdate",
        "end",
        "enddate",
        "deadline",
        "created",
        "datecreated",
        "modified",
        "datemodified",
        "updated",
        "dateupdated",
    }
)

_EPOCH_MILLIS = re.compile(r"^\d{13}$")
_EPOCH_SECONDS = re.compile(r"^\d{10}$")
_LOCAL_DATE = re.compile(r"^(\d{4})[-/](\d{2})[-/](\d{2})$")
_LOCAL_DATETIME = re.compile(r"^(\d{4})[-/](\d{2})[-/](\d{2})[ T](\d{2}):(\d{2})(?::(\d{2}))?$")
_DAY_COUNT = re.compile(r"^-?\d+(?:\.\d+)?")
_DATE_PREFIX = re.compile(r"^\d{4}(?:-\d{2}-\d{2}|/\d{2}/\d{2})")
_TIME_MARKER = re.compile(r"t\d{2}:\d{2}", re.IGNORECASE)

# Last-resort formats tried after ISO parsing fails.
_FALLBACK_FORMATS = (
    "%Y%m%d",
    "%d %b %Y",
    "%b %d %Y",
    "%b %d, %Y",
    "%B %d, %Y",
    "%d %B %Y",
)


def _unquote(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] and value[0] in ("'", '"'):
        return value[1:-1].strip()
    return value


def to_local_naive(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone().replace(tzinfo=None)


def parse_date_like(raw: Any, *, allow_epoch: bool = True) -> Optional[datetime]:
    """Parse a frontmatter/file value into a local naive datetime, or None."""
    if isinstance(raw, datetime):
        return to_local_naive(raw)
    if isinstance(raw, date):
        return datetime.combine(raw, time.min)

    value = _unquote(str(raw if raw is not None else "").strip())
    if not value:
        return None

    if allow_epoch:
        if _EPOCH_MILLIS.match(value):
            return datetime.fromtimestamp(int(value) / 1000)
        if _EPOCH_SECONDS.match(value):
            return datetime.fromtimestamp(int(value))

    m = _LOCAL_DATE.match(value)
    if m:
        try:
            return datetime(int(m.group(1)), int(m.group(2)), int(m.group(3)))
        except ValueError:
            return None

    m = _LOCAL_DATETIME.match(value)
    if m:
        try:
            return datetime(
                int(m.group(1)),
                int(m.group(2)),
                int(m.group(3)),
                int(m.group(4)),
                int(m.group(5)),
                int(m.group(6) or 0),
            )
        except ValueError:
            return None

    candidate = value
    if candidate[-1] in ("Z", "z"):
        candidate = candidate[:-1] + "+00:00"
    try:
        return to_local_naive(datetime.fromisoformat(candidate))
    except ValueError:
        pass

    for fmt in _FALLBACK_FORMATS:
        try:
            return datetime.strptime(value, fmt)
        except ValueError:
            continue
    return None


def looks_like_date_value(raw: Any) -> bool:
    value = str(raw if raw is not None else "").strip()
    if not value:
        return False
    normalized = value.strip("'\"")
    return bool(_DATE_PREFIX.match(normalized) or _TIME_MARKER.search(normalized))


def is_date_field(field: str) -> bool:
    return str(field or "").strip().lower() in DATE_SORT_FIELDS


def is_modified_field(field: str) -> bool:
    lowered = str(field or "").strip().lower()
    return "modified" in lowered or "updated" in lowered


def parse_day_count(raw: Any) -> Optional[float]:
    text = str(raw if raw is not None else "").strip()
    if not text:
        return None
    m = _DAY_COUNT.match(text)
    if not m:
        return None
    return max(0.0, float(m.group(0)))


def start_of_day(value: datetime) -> datetime:
    return datetime.combine(value.date(), time.min)


def end_of_day(value: datetime) -> datetime:
    return datetime.combine(value.date(), time.max)


def day_window(now: datetime, days: float) -> tuple[datetime, datetime]:
    """Inclusive window from the start of today to the end of the day `days` from now."""
    return start_of_day(now), end_of_day(now + timedelta(days=days))


def format_sort_timestamp(value: datetime) -> str:
    return (
        f"{value.year:04d}-{value.month:02d}-{value.day:02d}"
        f"-{value.hour:02d}-{value.minute:02d}-{value.second:02d}"
    )


def format_iso_timestamp(value: datetime) -> str:
    """ISO-8601 text with the local UTC offset, e.g. 2026-02-12T14:45:00+01:00."""
    return value.astimezone().isoformat(timespec="seconds")
