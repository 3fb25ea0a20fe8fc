"""Shared utility functions.

utcnow:               timezone-aware "now" used as the default report clock
as_utc:               normalise naive/aware datetimes to aware UTC
parse_datetime_input: ISO-8601 parsing for query args (raises ValueError)
round_pct:            integer percentage with half-up rounding, 0 on empty denominators
"""
from datetime import date, datetime, time, timezone


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime | None) -> datetime | None:
    """Return *value* as an aware UTC datetime.

    SQLite hands back naive datetimes even for ``DateTime(timezone=True)``
    columns; those are stored in UTC, so a naive value is tagged as UTC
    rather than converted from local time.
    """
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_datetime_input(value):
    """Parse an ISO date or datetime string into an aware UTC datetime.

    Supports:
    - YYYY-MM-DD            → midnight UTC of that day
    - YYYY-MM-DDTHH:MM[:SS] → naive values are read as UTC
    - trailing ``Z`` or an explicit offset

    Returns None for empty input; raises ValueError on anything else
    that does not parse. Callers turn the ValueError into a 400.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return as_utc(value)
    if isinstance(value, date):
        return datetime.combine(value, time.min, tzinfo=timezone.utc)

    text = str(value).strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        if len(text) == 10:
            return datetime.combine(date.fromisoformat(text), time.min, tzinfo=timezone.utc)
        return as_utc(datetime.fromisoformat(text))
    except ValueError as exc:
        raise ValueError(
            f"Invalid date {value!r}. Use YYYY-MM-DD or an ISO-8601 datetime."
        ) from exc


def round_pct(part: int, whole: int) -> int:
    """``part / whole`` as a whole-number percentage, halves rounded up.

    Integer arithmetic keeps 12.5% → 13 exact. A zero or negative
    denominator yields 0.
    """
    if whole <= 0:
        return 0
    return (200 * part + whole) // (2 * whole)
