"""
ISO-8601 timestamps used by the sync protocol.

Every stamp is UTC at millisecond precision and rendered as
``2025-01-30T10:00:05.000Z``. Comparisons always happen on parsed values
truncated to the millisecond, so a server column with microseconds and the
rendered string compare equal.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional, Union

EPOCH = '1970-01-01T00:00:00.000Z'
EPOCH_DATETIME = datetime(1970, 1, 1, tzinfo=timezone.utc)

ONE_MILLISECOND = timedelta(milliseconds=1)

TimestampLike = Union[str, datetime, None]


def _truncate(value: datetime) -> datetime:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)
    return value.replace(microsecond=(value.microsecond // 1000) * 1000)


def utc_now() -> datetime:
    """Current UTC time truncated to milliseconds."""
    return _truncate(datetime.now(timezone.utc))


def parse_timestamp(value: TimestampLike) -> datetime:
    """
    Parse an ISO-8601 string (``Z`` or offset form) or datetime.

    ``None`` and empty strings are the epoch sentinel.

    Raises:
        ValueError: If the string is not ISO-8601.
    """
    if value is None or value == '':
        return EPOCH_DATETIME
    if isinstance(value, datetime):
        return _truncate(value)
    if not isinstance(value, str):
        raise ValueError(f'Invalid timestamp: {value!r}')

    text = value.strip()
    if text.endswith('Z') or text.endswith('z'):
        text = text[:-1] + '+00:00'
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        raise ValueError(f'Invalid timestamp: {value!r}')
    return _truncate(parsed)


def format_timestamp(value: TimestampLike) -> str:
    """Render a timestamp as ``YYYY-MM-DDTHH:MM:SS.mmmZ``."""
    parsed = parse_timestamp(value)
    return parsed.strftime('%Y-%m-%dT%H:%M:%S.') + f'{parsed.microsecond // 1000:03d}Z'


def now_iso() -> str:
    return format_timestamp(utc_now())


def compare_timestamps(first: TimestampLike, second: TimestampLike) -> int:
    """Return -1, 0 or 1 as ``first`` is older, equal or newer than ``second``."""
    a = parse_timestamp(first)
    b = parse_timestamp(second)
    if a < b:
        return -1
    if a > b:
        return 1
    return 0


def max_timestamp(first: TimestampLike, second: TimestampLike) -> str:
    if compare_timestamps(first, second) >= 0:
        return format_timestamp(first)
    return format_timestamp(second)


def advance_timestamp(previous: TimestampLike = None, now: Optional[datetime] = None) -> datetime:
    """
    Stamp for a new write that follows ``previous``.

    Returns ``max(now, previous + 1ms)`` so two consecutive writes to the same
    entity never share a stamp, even under a coarse or skewed clock.
    """
    current = _truncate(now) if now is not None else utc_now()
    if previous is None or previous == '':
        return current
    floor = parse_timestamp(previous) + ONE_MILLISECOND
    return current if current >= floor else floor
