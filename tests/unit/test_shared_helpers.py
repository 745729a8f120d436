"""Tests for timestamp helpers and id generation."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta, timezone

import pytest

from markermap.utils.helpers import coerce_timestamp, parse_timestamp, to_iso, utc_now
from markermap.utils.ids import generate_id


class TestUtcNow:
    def test_is_timezone_aware(self) -> None:
        assert utc_now().tzinfo is not None


class TestParseTimestamp:
    def test_zulu(self) -> None:
        assert parse_timestamp("2024-03-01T12:00:00Z") == datetime(2024, 3, 1, 12, tzinfo=UTC)

    def test_naive_treated_as_utc(self) -> None:
        """Test that naive timestamps are treated as UTC."""
        assert parse_timestamp("2024-03-01T12:00:00") == datetime(2024, 3, 1, 12, tzinfo=UTC)

    def test_offset_kept(self) -> None:
        parsed = parse_timestamp("2024-03-01T12:00:00+05:00")
        assert parsed.utcoffset() == timedelta(hours=5)

    def test_year_only(self) -> None:
        assert parse_timestamp("2001") == datetime(2001, 1, 1, tzinfo=UTC)

    def test_default_returned_on_failure(self) -> None:
        fallback = datetime(2000, 1, 1, tzinfo=UTC)
        assert parse_timestamp("not a date", default=fallback) is fallback

    @pytest.mark.parametrize("value", [None, "", "   "])
    def test_empty_uses_default(self, value: str | None) -> None:
        fallback = datetime(2000, 1, 1, tzinfo=UTC)
        assert parse_timestamp(value, default=fallback) is fallback

    def test_no_default_returns_now(self) -> None:
        before = utc_now()
        assert parse_timestamp("garbage") >= before


class TestToIso:
    def test_utc(self) -> None:
        assert to_iso(datetime(2024, 1, 2, 3, 4, 5, tzinfo=UTC)) == "2024-01-02T03:04:05+00:00"

    def test_offset_preserved(self) -> None:
        value = datetime(2024, 1, 2, tzinfo=timezone(timedelta(hours=-7)))
        assert to_iso(value).endswith("-07:00")


class TestCoerceTimestamp:
    def test_iso_string(self) -> None:
        assert coerce_timestamp("2024-01-01T00:00:00Z") == datetime(2024, 1, 1, tzinfo=UTC)

    def test_epoch_millis(self) -> None:
        """Test epoch milliseconds from the client."""
        assert coerce_timestamp(1_700_000_000_000) == datetime.fromtimestamp(1_700_000_000, tz=UTC)

    def test_naive_datetime_made_aware(self) -> None:
        assert coerce_timestamp(datetime(2024, 1, 1)).tzinfo is UTC

    @pytest.mark.parametrize("value", [None, True, {"a": 1}, 1e30])
    def test_unrecognised_falls_back_to_now(self, value: object) -> None:
        before = utc_now()
        assert coerce_timestamp(value) >= before


class TestGenerateId:
    def test_hex_uuid(self) -> None:
        value = generate_id()
        assert len(value) == 32
        int(value, 16)

    def test_unique(self) -> None:
        """Test that generated ids do not repeat."""
        assert len({generate_id() for _ in range(100)}) == 100
