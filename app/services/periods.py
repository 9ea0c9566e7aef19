# app/services/periods.py
#
# Date Window Helpers
# Parses caller-supplied date bounds into naive-UTC datetimes and computes the
# half-open [start, end) windows used by every summary and listing query.

from datetime import date, datetime, timedelta, timezone

from config import SUMMARY_DEFAULT_DAYS
from errors import InvalidRange
from models import utcnow


# ---- Bound Parsing ----

def parse_bound(value, field: str = "date") -> datetime | None:
    """
    Turn a query bound into a naive UTC datetime.

    Accepts None (no bound), date/datetime objects, or ISO 8601 strings such as
    '2024-05-01' or '2024-05-01T10:00:00+02:00'. Anything else raises
    InvalidRange.
    """
    if value is None:
        return None

    if isinstance(value, str):
        s = value.strip()
        if not s:
            return None
        try:
            value = datetime.fromisoformat(s)
        except ValueError:
            raise InvalidRange(f"'{field}' is not a valid date: {s!r}")

    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc).replace(tzinfo=None)
        return value

    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)

    raise InvalidRange(f"'{field}' is not a valid date: {value!r}")


def resolve_window(start=None, end=None, default_days: int | None = None):
    """
    Resolve optional bounds into a concrete (start, end) pair.

    Defaults: end = now, start = end - SUMMARY_DEFAULT_DAYS days.
    Raises InvalidRange for unparsable bounds or start > end.
    """
    start_dt = parse_bound(start, "from")
    end_dt = parse_bound(end, "to")

    if end_dt is None:
        end_dt = utcnow()
    if start_dt is None:
        days = SUMMARY_DEFAULT_DAYS if default_days is None else default_days
        start_dt = end_dt - timedelta(days=days)

    if start_dt > end_dt:
        raise InvalidRange(
            f"'from' ({start_dt.isoformat()}) must not be after 'to' ({end_dt.isoformat()})"
        )
    return start_dt, end_dt


# ---- Month Ranges ----

def get_month_range(month_str: str | None):
    """
    month_str: 'YYYY-MM' or None.
    Returns (start, end_exclusive, normalized_month_str) as naive datetimes.
    If month_str is None, uses the CURRENT month. Malformed values raise
    InvalidRange.
    """
    if month_str:
        try:
            year_str, month_only_str = month_str.strip().split("-")
            year = int(year_str)
            month = int(month_only_str)
            if not (1 <= month <= 12):
                raise ValueError
        except ValueError:
            raise InvalidRange(f"month must look like YYYY-MM, got {month_str!r}")
    else:
        today = utcnow().date()
        year, month = today.year, today.month

    start = datetime(year, month, 1)
    if month == 12:
        end_exclusive = datetime(year + 1, 1, 1)
    else:
        end_exclusive = datetime(year, month + 1, 1)

    normalized = f"{year:04d}-{month:02d}"
    return start, end_exclusive, normalized
