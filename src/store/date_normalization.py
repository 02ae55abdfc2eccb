"""Date and time granularity normalization for rule comparisons.

Both sides of a ``date:`` or ``time:`` comparison are reduced to a strict
canonical string (``YYYY-MM-DD[ HH:MM[:SS]]`` or ``HH:MM[:SS]``), then cut to
the same precision so that plain string ordering equals chronological
ordering. The rule with the coarser precision decides the scale of the
check: ``date:eq 2014-12-02`` matches any moment during that day.
"""

from __future__ import annotations

from datetime import datetime, timezone
import re
from typing import Any, Callable, Mapping

from dateutil import parser as date_parser

DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
TIME_FORMAT = "%H:%M:%S"

_DATE_PATTERN = re.compile(r"\d{4}-\d{2}-\d{2}(?:[ T]\d{2}:\d{2}(?::\d{2})?)?")
_TIME_PATTERN = re.compile(r"\d{2}:\d{2}(?::\d{2})?")

# (shorter length, longer length) -> suffix appended to the shorter side
_DATE_PADDING: Mapping[tuple[int, int], str] = {(18, 24): ":00", (12, 24): " 00:00:00"}
_TIME_PADDING: Mapping[tuple[int, int], str] = {}


def resolve_datetime(value: Any) -> datetime | None:
    """Resolve an epoch number or free-form date string to a UTC datetime.

    Naive date strings are read as UTC.

    Args:
        value: Epoch seconds, digit-only string, or date/time text.

    Returns:
        Aware UTC datetime, or None when the value cannot be resolved.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)) or (isinstance(value, str) and value.strip().isdigit()):
        try:
            return datetime.fromtimestamp(int(value), tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    if not isinstance(value, str) or not value.strip():
        return None
    try:
        parsed = date_parser.parse(value)
        if parsed.tzinfo is None:
            return parsed.replace(tzinfo=timezone.utc)
        return parsed.astimezone(timezone.utc)
    except (ValueError, OverflowError):
        return None


def normalize_dates(left: Any, right: Any) -> tuple[str, str] | None:
    """Bring two date values to the same canonical precision.

    Args:
        left: Record-side value.
        right: Rule-side operand.

    Returns:
        Pair of comparable strings, or None if either side is not a date.
    """
    return _normalize_pair(left, right, _as_date_string, _DATE_PADDING)


def normalize_times(left: Any, right: Any) -> tuple[str, str] | None:
    """Bring two time-of-day values to the same canonical precision.

    Args:
        left: Record-side value.
        right: Rule-side operand.

    Returns:
        Pair of comparable strings, or None if either side is not a time.
    """
    return _normalize_pair(left, right, _as_time_string, _TIME_PADDING)


def _normalize_pair(
    left: Any,
    right: Any,
    canonicalize: Callable[[Any], str | None],
    padding: Mapping[tuple[int, int], str],
) -> tuple[str, str] | None:
    """Canonicalize both sides and equalize their lengths."""
    left_text = canonicalize(left)
    right_text = canonicalize(right)
    if not left_text or not right_text:
        return None
    if len(left_text) == len(right_text):
        return left_text, right_text
    shorter, longer = sorted((len(left_text), len(right_text)))
    suffix = padding.get((shorter, longer))
    if suffix is not None:
        if len(left_text) == shorter:
            return left_text + suffix, right_text
        return left_text, right_text + suffix
    return left_text[:shorter], right_text[:shorter]


def _as_date_string(value: Any) -> str | None:
    """Extract or render ``YYYY-MM-DD[ HH:MM[:SS]]`` from a value."""
    if value is None or isinstance(value, bool):
        return None
    match = _DATE_PATTERN.search(str(value))
    if match is not None:
        return match.group(0).replace("T", " ")
    moment = resolve_datetime(value)
    return moment.strftime(DATE_FORMAT) if moment else None


def _as_time_string(value: Any) -> str | None:
    """Extract or render ``HH:MM[:SS]`` from a value."""
    if value is None or isinstance(value, bool):
        return None
    match = _TIME_PATTERN.search(str(value))
    if match is not None:
        return match.group(0)
    moment = resolve_datetime(value)
    return moment.strftime(TIME_FORMAT) if moment else None
