"""Tests for date expression parsing."""

from datetime import datetime, timezone

import pytest

from tatl.core.dates import parse_date_expr, parse_interval, to_epoch
from tatl.core.errors import (
    AmbiguousOrInvalidLocalTime,
    FormatError,
    InvalidCalendarDate,
    InvalidInterval,
    SemanticError,
    UnrecognizedDateFormat,
)
from tatl.core.tasks import Interval


def ts(dt: datetime) -> int:
    return int(dt.timestamp())


class TestAbsolute:
    def test_date_only_is_local_midnight(self, now_local, now_utc, tz):
        assert parse_date_expr("2025-01-10", now_local, now_utc) == ts(datetime(2025, 1, 10, tzinfo=tz))

    def test_date_and_time(self, now_local, now_utc, tz):
        result = parse_date_expr("2025-01-10T14:30", now_local, now_utc)
        assert result == ts(datetime(2025, 1, 10, 14, 30, tzinfo=tz))

    def test_leap_day(self, now_local, now_utc, tz):
        assert parse_date_expr("2024-02-29", now_local, now_utc) == ts(datetime(2024, 2, 29, tzinfo=tz))

    @pytest.mark.parametrize("text", ["2025-13-01", "2025-02-30", "2023-02-29", "2025-01-10T25:00", "2025-01-10T10:60"])
    def test_invalid_calendar_values(self, text, now_local, now_utc):
        with pytest.raises(InvalidCalendarDate):
            parse_date_expr(text, now_local, now_utc)

    def test_invalid_calendar_date_is_semantic(self, now_local, now_utc):
        with pytest.raises(SemanticError):
            parse_date_expr("2025-02-30", now_local, now_utc)


class TestRelative:
    def test_days_forward(self, now_local, now_utc, tz):
        assert parse_date_expr("+2d", now_local, now_utc) == ts(datetime(2025, 1, 17, 10, 30, tzinfo=tz))

    def test_sign_is_optional(self, now_local, now_utc):
        assert parse_date_expr("3d", now_local, now_utc) == parse_date_expr("+3d", now_local, now_utc)

    def test_days_back(self, now_local, now_utc, tz):
        assert parse_date_expr("-3d", now_local, now_utc) == ts(datetime(2025, 1, 12, 10, 30, tzinfo=tz))

    def test_weeks(self, now_local, now_utc, tz):
        assert parse_date_expr("+1w", now_local, now_utc) == ts(datetime(2025, 1, 22, 10, 30, tzinfo=tz))
        assert parse_date_expr("-1w", now_local, now_utc) == ts(datetime(2025, 1, 8, 10, 30, tzinfo=tz))

    def test_offset_is_in_wall_clock_days(self, make_clock):
        # 2025-03-09 is 23 hours long in New York
        clock = make_clock(2025, 3, 8, 10, 30)
        now = to_epoch(clock.now_utc())
        assert parse_date_expr("+1d", clock.now_local(), clock.now_utc()) - now == 23 * 3600


class TestNamedDays:
    def test_today_is_local_midnight(self, now_local, now_utc, tz):
        assert parse_date_expr("today", now_local, now_utc) == ts(datetime(2025, 1, 15, tzinfo=tz))

    def test_tomorrow_is_one_day_after_today(self, now_local, now_utc):
        today = parse_date_expr("today", now_local, now_utc)
        tomorrow = parse_date_expr("tomorrow", now_local, now_utc)
        assert tomorrow - today == 86400

    def test_today_in_utc(self):
        now = datetime(2025, 1, 15, 10, 30, tzinfo=timezone.utc)
        assert parse_date_expr("today", now, now) == ts(datetime(2025, 1, 15, tzinfo=timezone.utc))

    def test_now_is_current_instant(self, now_local, now_utc):
        assert parse_date_expr("now", now_local, now_utc) == to_epoch(now_utc)


class TestEndOfPeriod:
    def test_eod(self, now_local, now_utc, tz):
        assert parse_date_expr("eod", now_local, now_utc) == ts(datetime(2025, 1, 15, 23, 59, 59, tzinfo=tz))

    def test_eow_is_sunday_by_default(self, now_local, now_utc, tz):
        # Wednesday -> Sunday
        assert parse_date_expr("eow", now_local, now_utc) == ts(datetime(2025, 1, 19, 23, 59, 59, tzinfo=tz))

    def test_eow_on_last_day_of_week_is_same_day(self, make_clock, tz):
        clock = make_clock(2025, 1, 19, 9, 0)
        result = parse_date_expr("eow", clock.now_local(), clock.now_utc())
        assert result == ts(datetime(2025, 1, 19, 23, 59, 59, tzinfo=tz))

    def test_eow_with_sunday_week_start(self, now_local, now_utc, tz):
        result = parse_date_expr("eow", now_local, now_utc, week_start=6)
        assert result == ts(datetime(2025, 1, 18, 23, 59, 59, tzinfo=tz))

    def test_eom(self, now_local, now_utc, tz):
        assert parse_date_expr("eom", now_local, now_utc) == ts(datetime(2025, 1, 31, 23, 59, 59, tzinfo=tz))

    def test_eom_february_leap_year(self, make_clock, tz):
        clock = make_clock(2024, 2, 10)
        result = parse_date_expr("eom", clock.now_local(), clock.now_utc())
        assert result == ts(datetime(2024, 2, 29, 23, 59, 59, tzinfo=tz))


class TestTimeOnly:
    def test_clock_time_resolves_to_today(self, now_local, now_utc, tz):
        assert parse_date_expr("14:30", now_local, now_utc) == ts(datetime(2025, 1, 15, 14, 30, tzinfo=tz))
        assert parse_date_expr("9:05", now_local, now_utc) == ts(datetime(2025, 1, 15, 9, 5, tzinfo=tz))

    def test_past_time_still_resolves_to_today(self, now_local, now_utc, tz):
        assert parse_date_expr("9am", now_local, now_utc) == ts(datetime(2025, 1, 15, 9, 0, tzinfo=tz))

    @pytest.mark.parametrize(
        "text,hour",
        [("12am", 0), ("1am", 1), ("11am", 11), ("12pm", 12), ("1pm", 13), ("11pm", 23)],
    )
    def test_meridiem(self, text, hour, now_local, now_utc, tz):
        assert parse_date_expr(text, now_local, now_utc) == ts(datetime(2025, 1, 15, hour, tzinfo=tz))

    def test_noon_and_midnight(self, now_local, now_utc, tz):
        assert parse_date_expr("noon", now_local, now_utc) == ts(datetime(2025, 1, 15, 12, tzinfo=tz))
        assert parse_date_expr("midnight", now_local, now_utc) == ts(datetime(2025, 1, 15, tzinfo=tz))

    @pytest.mark.parametrize("text", ["13pm", "0am", "24:00", "12:60"])
    def test_out_of_range(self, text, now_local, now_utc):
        with pytest.raises(InvalidCalendarDate):
            parse_date_expr(text, now_local, now_utc)


class TestUnrecognized:
    @pytest.mark.parametrize("text", ["", "yesterday", "next friday", "2025/01/10", "2025-1-10", "1.5d", "soon"])
    def test_raises(self, text, now_local, now_utc):
        with pytest.raises(UnrecognizedDateFormat):
            parse_date_expr(text, now_local, now_utc)

    def test_is_format_error(self, now_local, now_utc):
        with pytest.raises(FormatError):
            parse_date_expr("whenever", now_local, now_utc)


class TestDaylightSaving:
    def test_skipped_time_is_an_error(self, now_local, now_utc):
        # Clocks jump from 02:00 to 03:00 on 2025-03-09
        with pytest.raises(AmbiguousOrInvalidLocalTime):
            parse_date_expr("2025-03-09T02:30", now_local, now_utc)

    def test_skipped_time_from_time_only(self, make_clock):
        clock = make_clock(2025, 3, 9, 10, 0)
        with pytest.raises(AmbiguousOrInvalidLocalTime):
            parse_date_expr("2:30", clock.now_local(), clock.now_utc())

    def test_skipped_time_from_relative_offset(self, make_clock):
        clock = make_clock(2025, 3, 8, 2, 30)
        with pytest.raises(AmbiguousOrInvalidLocalTime):
            parse_date_expr("+1d", clock.now_local(), clock.now_utc())

    def test_repeated_time_resolves_to_first_occurrence(self, now_local, now_utc):
        # 01:30 happens twice on 2025-11-02; the first is still EDT (UTC-4)
        result = parse_date_expr("2025-11-02T01:30", now_local, now_utc)
        assert result == ts(datetime(2025, 11, 2, 5, 30, tzinfo=timezone.utc))

    def test_time_just_after_gap_is_fine(self, now_local, now_utc):
        result = parse_date_expr("2025-03-09T03:00", now_local, now_utc)
        assert result == ts(datetime(2025, 3, 9, 7, 0, tzinfo=timezone.utc))


class TestPurity:
    def test_same_inputs_same_result(self, now_local, now_utc):
        for text in ("tomorrow", "+2d", "eow", "9am", "2025-06-01T08:00"):
            assert parse_date_expr(text, now_local, now_utc) == parse_date_expr(text, now_local, now_utc)

    def test_naive_now_rejected(self, now_utc):
        with pytest.raises(ValueError):
            parse_date_expr("today", datetime(2025, 1, 15, 10, 30), now_utc)


class TestParseInterval:
    def test_time_range_today(self, now_local, now_utc, tz):
        interval = parse_interval("09:00..10:15", now_local, now_utc)
        assert interval == Interval(
            start_ts=ts(datetime(2025, 1, 15, 9, 0, tzinfo=tz)),
            end_ts=ts(datetime(2025, 1, 15, 10, 15, tzinfo=tz)),
        )
        assert interval.duration() == 75 * 60

    def test_end_can_be_now(self, now_local, now_utc):
        interval = parse_interval("9am..now", now_local, now_utc)
        assert interval.end_ts == to_epoch(now_utc)

    def test_start_after_end(self, now_local, now_utc):
        with pytest.raises(InvalidInterval):
            parse_interval("10:30..09:00", now_local, now_utc)

    def test_empty_interval(self, now_local, now_utc):
        with pytest.raises(InvalidInterval):
            parse_interval("09:00..09:00", now_local, now_utc)

    @pytest.mark.parametrize("text", ["09:00", "..10:00", "09:00..", ""])
    def test_both_sides_required(self, text, now_local, now_utc):
        with pytest.raises(FormatError):
            parse_interval(text, now_local, now_utc)

    def test_bad_side_propagates(self, now_local, now_utc):
        with pytest.raises(UnrecognizedDateFormat):
            parse_interval("09:00..later", now_local, now_utc)
