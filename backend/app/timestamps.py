"""
Timestamp helpers shared by the models and the timing engine.

Timestamps are stored as text in ``YYYY-MM-DD HH:MM:SS`` form (UTC), the
same shape SQL ``CURRENT_TIMESTAMP`` produces. Reading is stricter than
``datetime.fromisoformat``: only date, time, optional fractional seconds
and an optional zone marker are accepted.
"""

import re
from datetime import datetime, timezone

STORAGE_FORMAT = "%Y-%m-%d %H:%M:%S"

TIMESTAMP_PATTERN = re.compile(
    r"^(?P<date>\d{4}-\d{2}-\d{2})[ T]"
    r"(?P<time>\d{2}:\d{2}:\d{2})"
    r"(?P<fraction>\.\d{1,6})?"
    r"(?P<zone>Z|[+-]\d{2}:?\d{2})?$"
)

# What an HTML datetime-local input submits; seconds are optional there.
DATEPICKER_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}(:\d{2})?$")


def now_timestamp() -> str:
    """Current UTC time in storage format."""
    return datetime.now(timezone.utc).strftime(STORAGE_FORMAT)


def parse_timestamp(value: str | None) -> datetime:
    """
    Parse a stored timestamp into an aware datetime.

    Naive values are taken as UTC.

    Raises:
        ValueError: if the value is missing or does not match the pattern.
    """
    if not value:
        raise ValueError("timestamp is empty")
    match = TIMESTAMP_PATTERN.match(value.strip())
    if match is None:
        raise ValueError(f"timestamp {value!r} does not match the storage pattern")

    text = f"{match['date']}T{match['time']}{match['fraction'] or ''}"
    zone = match["zone"]
    if zone == "Z":
        zone = "+00:00"
    elif zone and ":" not in zone:
        zone = f"{zone[:3]}:{zone[3:]}"

    parsed = datetime.fromisoformat(text + (zone or ""))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def normalize_datepicker(value: str) -> str:
    """
    Convert datepicker input ("2020-01-01T00:00:00") to storage format
    ("2020-01-01 00:00:00").

    Raises:
        ValueError: if the input is not a valid datepicker value.
    """
    value = value.strip()
    if not DATEPICKER_PATTERN.match(value):
        raise ValueError(f"{value!r} is not a datepicker value")
    return datetime.fromisoformat(value).strftime(STORAGE_FORMAT)


def seconds_between(start: datetime, end: datetime) -> int:
    """Whole seconds from start to end, truncated toward zero."""
    return int((end - start).total_seconds())
