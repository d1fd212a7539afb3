from datetime import datetime
import pytz


def utcnow() -> datetime:
    return datetime.now(pytz.UTC)


def ensure_utc(value: datetime):
    """Treat naive datetimes (SQLite drops tzinfo) as UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return pytz.UTC.localize(value)
    return value.astimezone(pytz.UTC)


def parse_iso(value: str) -> datetime:
    """Parse an ISO-8601 string from a client; raises ValueError when malformed."""
    if not isinstance(value, str):
        raise ValueError("Expected an ISO-8601 date string")
    return ensure_utc(datetime.fromisoformat(value.strip().replace("Z", "+00:00")))


def isoformat(value: datetime):
    return ensure_utc(value).isoformat() if value else None
