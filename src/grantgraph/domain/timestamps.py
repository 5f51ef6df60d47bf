"""UTC timestamps as stored and as accepted from callers.

The database keeps ISO 8601 strings; everything above it works with
aware ``datetime`` values. Naive input is taken to be UTC.
"""

from __future__ import annotations

from datetime import UTC, datetime

from grantgraph.domain.errors import ValidationError


def utc_now() -> datetime:
    return datetime.now(UTC)


def now_iso() -> str:
    """Current UTC time as ISO 8601, the format of every stored timestamp."""
    return utc_now().isoformat()


def to_iso(value: datetime | None) -> str | None:
    """Normalize *value* to a UTC ISO 8601 string for storage."""
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(UTC).isoformat()


def parse_timestamp(value: str | datetime | None) -> datetime | None:
    """Parse a stored or caller-supplied timestamp into an aware datetime.

    Examples:
        >>> parse_timestamp("2030-01-01T00:00:00").isoformat()
        '2030-01-01T00:00:00+00:00'

    Raises:
        ValidationError: *value* is not ISO 8601.
    """
    if value is None or value == "":
        return None
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value)
        except ValueError as exc:
            raise ValidationError(f"Invalid timestamp: {value!r}") from exc
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value
