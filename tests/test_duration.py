"""Tests for canonical duration rendering and parsing."""

import pytest
from alertsync.rules.duration import (
    MILLISECOND,
    SECOND,
    format_duration,
    format_nanoseconds,
    normalize_duration,
    parse_duration_to_seconds,
    parse_nanoseconds,
)


class TestFormatDuration:
    """Test rendering seconds as duration strings."""

    @pytest.mark.parametrize(
        "seconds,expected",
        [
            (1, "1s"),
            (60, "1m0s"),
            (90, "1m30s"),
            (3600, "1h0m0s"),
            (9900, "2h45m0s"),
            (0, "0s"),
        ],
    )
    def test_canonical_table(self, seconds, expected):
        assert format_duration(seconds) == expected

    def test_hours_do_not_roll_into_days(self):
        assert format_duration(86400) == "24h0m0s"

    def test_negative(self):
        assert format_duration(-90) == "-1m30s"

    def test_fractional_seconds(self):
        assert format_duration(1.5) == "1.5s"

    def test_bool_rejected(self):
        with pytest.raises(TypeError):
            format_duration(True)


class TestFormatNanoseconds:
    """Test sub-second rendering."""

    def test_milliseconds(self):
        assert format_nanoseconds(500 * MILLISECOND) == "500ms"

    def test_microseconds(self):
        assert format_nanoseconds(1500) == "1.5µs"

    def test_nanoseconds(self):
        assert format_nanoseconds(42) == "42ns"

    def test_seconds_with_fraction(self):
        assert format_nanoseconds(61 * SECOND + 250 * MILLISECOND) == "1m1.25s"


class TestParseDuration:
    """Test parsing duration strings."""

    @pytest.mark.parametrize(
        "text,seconds",
        [
            ("1s", 1),
            ("1m", 60),
            ("1m0s", 60),
            ("2h45m", 9900),
            ("1h30m15s", 5415),
            ("1d", 86400),
            ("1w", 604800),
            ("0", 0),
            ("0s", 0),
            ("1.5m", 90),
            ("-30s", -30),
        ],
    )
    def test_parse_to_seconds(self, text, seconds):
        assert parse_duration_to_seconds(text) == seconds

    def test_sub_second_truncates(self):
        assert parse_duration_to_seconds("1500ms") == 1

    def test_micro_sign_variants(self):
        assert parse_nanoseconds("3µs") == parse_nanoseconds("3μs") == parse_nanoseconds("3us")

    @pytest.mark.parametrize("text", ["", "   ", "5", "m", "5x", "1m junk", "1.2.3s"])
    def test_invalid(self, text):
        with pytest.raises(ValueError):
            parse_nanoseconds(text)


class TestNormalizeDuration:
    """Test re-rendering duration strings in canonical form."""

    @pytest.mark.parametrize(
        "text,expected",
        [
            ("1m", "1m0s"),
            ("90s", "1m30s"),
            ("2h45m", "2h45m0s"),
            ("0s", "0s"),
            ("1h0m0s", "1h0m0s"),
        ],
    )
    def test_normalize(self, text, expected):
        assert normalize_duration(text) == expected

    def test_round_trip_with_format(self):
        for seconds in (1, 59, 60, 61, 3599, 3600, 86399):
            assert parse_duration_to_seconds(format_duration(seconds)) == seconds
