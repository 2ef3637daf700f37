"""
Tests for timestamp parsing and normalization.
"""

from datetime import datetime, timezone

import pytest

from app.timestamps import (
    STORAGE_FORMAT,
    normalize_datepicker,
    now_timestamp,
    parse_timestamp,
    seconds_between,
)


class TestParseTimestamp:

    def test_storage_format_is_read_as_utc(self):
        parsed = parse_timestamp("2024-01-01 00:05:30")
        assert parsed == datetime(2024, 1, 1, 0, 5, 30, tzinfo=timezone.utc)

    @pytest.mark.parametrize("value", [
        "2024-01-01T00:05:30",
        "2024-01-01 00:05:30.250",
        "2024-01-01 00:05:30Z",
        "2024-01-01 00:05:30+00:00",
        "2024-01-01 02:05:30+0200",
    ])
    def test_accepted_variants(self, value):
        parsed = parse_timestamp(value)
        assert parsed.replace(microsecond=0) == datetime(2024, 1, 1, 0, 5, 30, tzinfo=timezone.utc)

    @pytest.mark.parametrize("value", [
        None,
        "",
        "yesterday",
        "2024-01-01",
        "01/01/2024 00:00:00",
        "2024-13-01 00:00:00",
        "2024-01-01 00:00:00 UTC",
    ])
    def test_rejected_values(self, value):
        with pytest.raises(ValueError):
            parse_timestamp(value)

    def test_now_timestamp_round_trips(self):
        stamp = now_timestamp()
        assert datetime.strptime(stamp, STORAGE_FORMAT)
        assert parse_timestamp(stamp).tzinfo is not None


class TestNormalizeDatepicker:

    def test_seconds_present(self):
        assert normalize_datepicker("2020-01-01T00:00:00") == "2020-01-01 00:00:00"

    def test_seconds_omitted(self):
        assert normalize_datepicker("2020-06-15T17:30") == "2020-06-15 17:30:00"

    @pytest.mark.parametrize("value", ["2020-01-01", "2020-01-01 00:00:00", "soon"])
    def test_rejects_other_shapes(self, value):
        with pytest.raises(ValueError):
            normalize_datepicker(value)


class TestSecondsBetween:

    def test_whole_seconds(self):
        start = parse_timestamp("2024-01-01 00:00:00")
        end = parse_timestamp("2024-01-01 00:05:30.900")
        assert seconds_between(start, end) == 330

    def test_negative_when_out_of_order(self):
        start = parse_timestamp("2024-01-01 00:05:30")
        end = parse_timestamp("2024-01-01 00:00:00")
        assert seconds_between(start, end) == -330
