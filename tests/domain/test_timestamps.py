"""Tests for the shared timestamp helpers."""

from datetime import UTC, datetime, timedelta, timezone

import pytest

from grantgraph.domain.errors import ValidationError
from grantgraph.domain.timestamps import now_iso, parse_timestamp, to_iso


class TestParseTimestamp:
    def test_naive_is_utc(self) -> None:
        parsed = parse_timestamp("2030-01-01T00:00:00")
        assert parsed == datetime(2030, 1, 1, tzinfo=UTC)

    def test_offset_kept(self) -> None:
        parsed = parse_timestamp("2030-01-01T02:00:00+02:00")
        assert parsed == datetime(2030, 1, 1, tzinfo=UTC)

    def test_datetime_passthrough(self) -> None:
        value = datetime(2030, 1, 1, 12, 0)
        assert parse_timestamp(value) == datetime(2030, 1, 1, 12, 0, tzinfo=UTC)

    def test_empty(self) -> None:
        assert parse_timestamp(None) is None
        assert parse_timestamp("") is None

    def test_invalid(self) -> None:
        with pytest.raises(ValidationError, match="Invalid timestamp"):
            parse_timestamp("next tuesday")


class TestToIso:
    def test_normalizes_to_utc(self) -> None:
        value = datetime(2030, 1, 1, 2, 0, tzinfo=timezone(timedelta(hours=2)))
        assert to_iso(value) == "2030-01-01T00:00:00+00:00"

    def test_naive_and_none(self) -> None:
        assert to_iso(datetime(2030, 1, 1)) == "2030-01-01T00:00:00+00:00"
        assert to_iso(None) is None

    def test_now_iso_round_trips(self) -> None:
        parsed = parse_timestamp(now_iso())
        assert parsed is not None
        assert parsed.tzinfo is not None
        assert abs(datetime.now(UTC) - parsed) < timedelta(minutes=1)
