import re
from datetime import date, datetime, timezone

_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def utcnow() -> datetime:
    """Return the current UTC time as a timezone-aware datetime."""
    return datetime.now(timezone.utc)


def ensure_utc(dt: datetime) -> datetime:
    """Make a naive datetime timezone-aware (UTC). Already-aware datetimes pass through.

    MongoDB hands datetimes back without tzinfo. Wrap them with ensure_utc()
    before comparing against utcnow(), otherwise Python raises
    "can't compare offset-naive and offset-aware datetimes".
    """
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def parse_utc(value: str | datetime) -> datetime:
    """Parse a date string or datetime into a tz-aware UTC datetime.

    Handles ISO 8601 strings (with or without Z/offset), the space-separated
    "YYYY-MM-DD HH:MM:SS" form some providers emit, and bare datetimes.
    """
    if isinstance(value, datetime):
        return ensure_utc(value)
    text = str(value).strip().replace("Z", "+00:00")
    if len(text) >= 19 and text[10] == " ":
        text = f"{text[:10]}T{text[11:]}"
    return ensure_utc(datetime.fromisoformat(text))


def validate_fixture_date(value: str) -> str:
    """Return ``value`` if it is a real calendar date in YYYY-MM-DD form."""
    text = str(value or "").strip()
    if not _DATE_RE.match(text):
        raise ValueError(f"Invalid date format: {value!r}. Use YYYY-MM-DD.")
    date.fromisoformat(text)
    return text


def to_float(value) -> float | None:
    """Lenient float conversion; returns None for missing or unparseable values."""
    if value is None or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def to_int(value) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def today_utc() -> str:
    return utcnow().strftime("%Y-%m-%d")
