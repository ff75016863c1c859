# src/utils/time_utils.py
from datetime import datetime, timezone
from dateutil.parser import parse as parse_datetime

SECONDS_PER_DAY = 24 * 60 * 60


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(dt: datetime) -> datetime:
    """Naive datetimes are treated as UTC."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def format_timestamp(dt: datetime) -> str:
    """RFC 3339 in UTC, second precision, e.g. 2025-01-01T00:00:00Z."""
    return ensure_utc(dt).strftime("%Y-%m-%dT%H:%M:%SZ")


def parse_timestamp(value):
    if not value:
        return None
    if isinstance(value, datetime):
        return ensure_utc(value)
    return ensure_utc(parse_datetime(value))
