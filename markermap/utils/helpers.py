"""Shared helper functions for timestamps and payload coercion."""

from __future__ import annotations

from datetime import UTC, datetime

# Reduced-precision forms KML allows for ``<when>`` (xsd:gYear, xsd:gYearMonth).
_PARTIAL_DATE_FORMATS = ("%Y", "%Y-%m")


def utc_now() -> datetime:
    """Return the current time as a timezone-aware UTC ``datetime``."""
    return datetime.now(UTC)


def parse_timestamp(timestamp: str | None, *, default: datetime | None = None) -> datetime:
    """Parse an ISO 8601 timestamp string, defaulting to current UTC time.

    Accepts full datetimes (with or without a trailing ``Z``), dates, and the
    reduced ``YYYY`` / ``YYYY-MM`` forms. Naive values are treated as UTC.

    Args:
        timestamp: ISO 8601 timestamp string, or empty string / ``None``.
        default: Value returned when parsing fails. ``utc_now()`` if omitted.

    Returns:
        A timezone-aware ``datetime``. Never raises on bad input.
    """
    text = (timestamp or "").strip()
    if not text:
        return default or utc_now()

    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"

    parsed: datetime | None = None
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        for fmt in _PARTIAL_DATE_FORMATS:
            try:
                parsed = datetime.strptime(text, fmt)
                break
            except ValueError:
                continue

    if parsed is None:
        return default or utc_now()
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def to_iso(value: datetime) -> str:
    """Serialise a ``datetime`` as ISO 8601 (UTC offset preserved)."""
    return value.isoformat()


def coerce_timestamp(value: object) -> datetime:
    """Convert a JSON timestamp (ISO string, epoch millis, datetime) to ``datetime``.

    Falls back to the current time for anything unrecognised.
    """
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=UTC)
    if isinstance(value, bool):
        return utc_now()
    if isinstance(value, int | float):
        try:
            return datetime.fromtimestamp(value / 1000, tz=UTC)
        except (OverflowError, OSError, ValueError):
            return utc_now()
    if isinstance(value, str):
        return parse_timestamp(value)
    return utc_now()
