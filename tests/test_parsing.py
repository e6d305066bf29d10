"""Tests for the duration parser."""

import re
from datetime import datetime, timezone

import pytest

from time_interval.parsing import (
    INTERVAL_RE,
    MS_PER_DAY,
    MS_PER_HOUR,
    MS_PER_MINUTE,
    MS_PER_WEEK,
    build_interval_pattern,
    parse_components,
    parse_interval,
)
from time_interval.utcdate import to_epoch_ms

Y1900 = datetime(1900, 1, 1, tzinfo=timezone.utc)
Y1950 = datetime(1950, 1, 1, tzinfo=timezone.utc)
Y2000 = datetime(2000, 1, 1, tzinfo=timezone.utc)


class TestParseIntervalAbsent:
    """Empty and malformed text give None, never a partial result."""

    @pytest.mark.parametrize("text", ["", "   ", "\t\n"])
    def test_empty_text(self, text: str) -> None:
        assert parse_interval(text) is None

    @pytest.mark.parametrize("text", ["5a", "abc", "5d 3y", "1h 1h", "3 -", "5d!", "y"])
    def test_malformed_text(self, text: str) -> None:
        assert parse_interval(text) is None

    @pytest.mark.parametrize("text", ["0.5 year -6 months", "2.9 months", "-2.9 months", "1.5y"])
    def test_fractional_years_and_months_rejected(self, text: str) -> None:
        assert parse_interval(text, Y2000) is None

    def test_zero_is_not_absent(self) -> None:
        assert parse_interval("0s") == 0
        assert parse_interval("0s") is not None


class TestParseIntervalFixedUnits:
    """Weeks through seconds use fixed lengths."""

    def test_days(self) -> None:
        assert parse_interval("5d") == 432000000

    def test_fraction_without_leading_digit(self) -> None:
        assert parse_interval(".5s") == 500

    def test_all_fixed_units(self) -> None:
        expected = 2 * MS_PER_WEEK + 3 * MS_PER_DAY + 4 * MS_PER_HOUR + 5 * MS_PER_MINUTE + 6000
        assert parse_interval("2w 3d 4h 5m 6s") == expected

    def test_long_spelling(self) -> None:
        assert parse_interval("578 days 16 hours 53 minutes 20 seconds") == 50000000000

    @pytest.mark.parametrize("spelling", ["h", "hr", "hrs", "hour", "hours", "H", "HOURS"])
    def test_hour_spellings(self, spelling: str) -> None:
        assert parse_interval(f"2{spelling}") == 2 * MS_PER_HOUR

    @pytest.mark.parametrize("spelling", ["m", "min", "mins", "minute", "minutes"])
    def test_minute_spellings(self, spelling: str) -> None:
        assert parse_interval(f"3 {spelling}") == 3 * MS_PER_MINUTE

    @pytest.mark.parametrize("spelling", ["s", "sec", "secs", "second", "seconds"])
    def test_second_spellings(self, spelling: str) -> None:
        assert parse_interval(f"7{spelling}") == 7000

    def test_surrounding_whitespace_trimmed(self) -> None:
        assert parse_interval("  1w  ") == MS_PER_WEEK

    def test_unit_without_space(self) -> None:
        assert parse_interval("1h30m") == MS_PER_HOUR + 30 * MS_PER_MINUTE

    def test_anchor_independent(self) -> None:
        a = datetime(1999, 2, 28, tzinfo=timezone.utc)
        b = datetime(2024, 2, 29, 12, 30, tzinfo=timezone.utc)
        assert parse_interval("3w 2d 1.5h", a) == parse_interval("3w 2d 1.5h", b) == parse_interval("3w 2d 1.5h")


class TestParseIntervalSigns:
    """A minus flips the sign for its component and every one after it.

    This is deliberate: "1 week -8 days 2h" subtracts the 2 hours too, and a
    second minus flips back.
    """

    def test_week_minus_days(self) -> None:
        assert parse_interval("1 week -8 days") == -86400000

    def test_minus_carries_forward(self) -> None:
        assert parse_interval("1d -1h 30m") == MS_PER_DAY - MS_PER_HOUR - 30 * MS_PER_MINUTE

    def test_two_minuses_cancel(self) -> None:
        assert parse_interval("-1d -1h") == -MS_PER_DAY + MS_PER_HOUR

    def test_minus_with_space(self) -> None:
        assert parse_interval("- 4h") == -4 * MS_PER_HOUR

    @pytest.mark.parametrize(
        "signed, factor",
        [
            ("-0w -1d 2h 3m", 1),
            ("-0w 1d 2h 3m", -1),
            ("-0y -0mo 1d 2h 3m", 1),
            ("-0y -0mo -0w 1d 2h 3m", -1),
        ],
    )
    def test_sign_toggle_parity(self, signed: str, factor: int) -> None:
        plain = parse_interval("1d 2h 3m")
        assert parse_interval(signed) == factor * plain

    def test_running_sign_components(self) -> None:
        assert parse_components("1d -2h 3m -4s") == (0, 0, 0, 1.0, -2.0, -3.0, 4.0)


class TestParseIntervalCalendarUnits:
    """Years and months are calendar steps from the anchor in UTC."""

    def test_century_minus_seconds(self) -> None:
        assert parse_interval("100y -10s", Y1900) == 3155673590000

    def test_mixed_case_and_running_sign(self) -> None:
        assert parse_interval(" 1 YEAR 4 mo -4 h -30.5 min 100s ", Y1900) == 41891530000

    def test_spaced_minus(self) -> None:
        assert parse_interval(" 3 y 1 months - 4 hour 15 mins -100s ", Y1950) == 97357600000

    def test_leap_year(self) -> None:
        assert parse_interval("1y", datetime(2020, 1, 1, tzinfo=timezone.utc)) == 366 * MS_PER_DAY
        assert parse_interval("1y", datetime(2021, 1, 1, tzinfo=timezone.utc)) == 365 * MS_PER_DAY

    def test_month_lengths(self) -> None:
        assert parse_interval("1mo", datetime(2021, 2, 1, tzinfo=timezone.utc)) == 28 * MS_PER_DAY
        assert parse_interval("1mo", datetime(2021, 3, 1, tzinfo=timezone.utc)) == 31 * MS_PER_DAY

    def test_month_end_rolls_forward(self) -> None:
        assert parse_interval("1mo", datetime(2021, 1, 31, tzinfo=timezone.utc)) == 31 * MS_PER_DAY

    def test_leap_day_plus_year(self) -> None:
        assert parse_interval("1y", datetime(2024, 2, 29, tzinfo=timezone.utc)) == 366 * MS_PER_DAY

    def test_years_past_9999(self) -> None:
        # 400 Gregorian years are exactly 146097 days
        assert parse_interval("9600y", Y2000) == 24 * 146097 * MS_PER_DAY
        assert parse_interval("-2400y", Y2000) == -6 * 146097 * MS_PER_DAY

    def test_far_anchor_as_epoch_ms(self) -> None:
        far = to_epoch_ms(Y2000) + parse_interval("8000y", Y2000)
        assert parse_interval("400y", far) == 146097 * MS_PER_DAY

    def test_months_roll_into_years(self) -> None:
        assert parse_interval("14mo", Y2000) == parse_interval("1y 2mo", Y2000)

    def test_negative_months_roll_back(self) -> None:
        assert parse_interval("-1mo", datetime(2000, 1, 1, tzinfo=timezone.utc)) == -31 * MS_PER_DAY

    def test_zero_years_skips_calendar(self) -> None:
        assert parse_interval("0y 0mo 1d") == MS_PER_DAY

    def test_naive_anchor_is_utc(self) -> None:
        assert parse_interval("1y", datetime(1900, 1, 1)) == parse_interval("1y", Y1900)

    def test_epoch_ms_anchor(self) -> None:
        assert parse_interval("1mo", 0) == 31 * MS_PER_DAY

    def test_anchor_not_mutated(self) -> None:
        anchor = datetime(2000, 1, 31, 12, tzinfo=timezone.utc)
        parse_interval("3y 5mo", anchor)
        assert anchor == datetime(2000, 1, 31, 12, tzinfo=timezone.utc)


class TestIntervalPattern:
    """The grammar is built once from the unit table."""

    def test_pattern_is_anchored(self) -> None:
        source = build_interval_pattern()
        assert source.startswith("^") and source.endswith("$")

    def test_compiled_pattern_matches_source(self) -> None:
        assert INTERVAL_RE.pattern == build_interval_pattern()
        assert INTERVAL_RE.flags & re.IGNORECASE

    def test_fourteen_groups(self) -> None:
        assert INTERVAL_RE.groups == 14


class TestParseIntervalRounding:
    """Fractional milliseconds round half up."""

    @pytest.mark.parametrize(
        "text, expected",
        [("0.0625s", 63), ("0.1875s", 188), ("-0.0625s", -62), ("0.0624s", 62)],
    )
    def test_ties_round_up(self, text: str, expected: int) -> None:
        assert parse_interval(text) == expected

    def test_result_is_int(self) -> None:
        assert type(parse_interval("1.5s")) is int
        assert type(parse_interval("1y", Y2000)) is int
