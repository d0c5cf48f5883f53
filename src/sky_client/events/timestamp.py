"""Wire format for event timestamps.

Sky keys events by the literal timestamp string, so the rendering must be
stable: whole seconds carry no fractional part at all, and fractions are
trimmed of trailing zeros (``1970-01-01T00:00:01.5Z``).
"""

from __future__ import annotations

import re
from datetime import UTC, datetime

from sky_client.errors import TimestampFormatError

_TIMESTAMP_PATTERN = re.compile(
    r"^(\d{4})-(\d{2})-(\d{2})T(\d{2}):(\d{2}):(\d{2})(?:\.(\d{1,9}))?Z$"
)


def to_utc(instant: datetime) -> datetime:
    """Return *instant* in UTC; naive datetimes are taken to be UTC already."""
    if instant.tzinfo is None:
        return instant.replace(tzinfo=UTC)
    return instant.astimezone(UTC)


def format_timestamp(instant: datetime) -> str:
    """Render an instant as ``YYYY-MM-DDTHH:MM:SS[.ffffff]Z``.

    Naive datetimes are taken to be UTC, so parsing the result gives back
    an aware datetime rather than the naive input.
    """
    utc = to_utc(instant)
    text = (
        f"{utc.year:04d}-{utc.month:02d}-{utc.day:02d}"
        f"T{utc.hour:02d}:{utc.minute:02d}:{utc.second:02d}"
    )
    if utc.microsecond:
        text += "." + f"{utc.microsecond:06d}".rstrip("0")
    return text + "Z"


def parse_timestamp(text: str) -> datetime:
    """Parse a wire timestamp into a UTC-aware datetime.

    Up to nine fractional digits are accepted; anything below microsecond
    precision is truncated.
    """
    match = _TIMESTAMP_PATTERN.match(text)
    if match is None:
        msg = f"Invalid timestamp: {text!r}"
        raise TimestampFormatError(msg)

    year, month, day, hour, minute, second, fraction = match.groups()
    microsecond = int((fraction or "").ljust(6, "0")[:6])
    try:
        return datetime(
            int(year),
            int(month),
            int(day),
            int(hour),
            int(minute),
            int(second),
            microsecond,
            tzinfo=UTC,
        )
    except ValueError as exc:
        msg = f"Invalid timestamp: {text!r}: {exc}"
        raise TimestampFormatError(msg) from exc
