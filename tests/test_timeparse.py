"""Tests for time expression parsing."""

from datetime import datetime, timedelta, timezone

import pytest

from elastico.core.timeparse import (
    END_OF_DAY,
    FIXED_OFFSET,
    START_OF_DAY,
    TimeExpressionResolver,
    complete_point,
    match_point,
    normalize,
    parse_duration,
    work_on_time_string,
)
from elastico.exceptions import (
    DateParseFailure,
    EmptyTimeWindow,
    MalformedDuration,
    MalformedTimeExpression,
)

from conftest import NOW


def pst(*args) -> datetime:
    return datetime(*args, tzinfo=FIXED_OFFSET)


class TestParseDuration:
    """Test <N><unit> tokens."""

    @pytest.mark.parametrize(
        "token, seconds",
        [("10m", 600), ("5h", 18_000), ("2d", 172_800), ("0m", 0), ("90m", 5_400)],
    )
    def test_valid_tokens(self, token, seconds):
        assert parse_duration(token) == seconds

    @pytest.mark.parametrize("token", ["5x", "abc", "", "-2d", "+2d", "2", "d", "2 d", "2D", "2d\n", "\n2d"])
    def test_malformed_tokens(self, token):
        with pytest.raises(MalformedDuration) as exc_info:
            parse_duration(token)
        assert exc_info.value.value == token


class TestPointMatchers:
    """Test shape recognition of absolute points."""

    def test_most_specific_shape_wins(self):
        partial = match_point("2018-dec-06-10:30")
        assert (partial.year, partial.month, partial.day, partial.hour, partial.minute) == (
            2018, "dec", 6, 10, 30
        )

    def test_day_before_month(self):
        partial = match_point("15-dec")
        assert partial.month == "dec"
        assert partial.day == 15
        assert partial.year is None

    def test_unknown_shape(self):
        assert match_point("2018/12/06") is None
        assert match_point("dec-06\n") is None
        assert match_point("10:30\n") is None
        assert match_point("tomorrow") is None
        assert match_point("") is None

    def test_default_time_is_a_parameter(self):
        partial = match_point("dec-06")
        today = NOW.date()
        assert complete_point(partial, today, START_OF_DAY) == datetime(2024, 12, 6, 0, 0, 0)
        assert complete_point(partial, today, END_OF_DAY) == datetime(2024, 12, 6, 23, 59, 59)

    def test_time_only_uses_today(self):
        partial = match_point("9:05")
        assert complete_point(partial, NOW.date(), END_OF_DAY) == datetime(2024, 3, 10, 9, 5)


class TestNormalize:
    def test_naive_value_gets_fixed_offset(self):
        value = normalize(datetime(2024, 1, 1, 10, 0))
        assert value.utcoffset() == timedelta(hours=-8)
        assert value.hour == 10

    def test_other_offset_is_relabelled_not_converted(self):
        value = normalize(datetime(2024, 1, 1, 10, 0, tzinfo=timezone.utc))
        assert value.utcoffset() == timedelta(hours=-8)
        assert value.hour == 10

    def test_idempotent(self):
        once = normalize(datetime(2024, 1, 1, 10, 0))
        assert normalize(once) is once


class TestRelativeForm:
    def test_two_days(self, resolver):
        window = resolver.resolve("2d")
        assert window.end == pst(2024, 3, 10, 12, 0, 0)
        assert window.duration_seconds == 172_800

    @pytest.mark.parametrize("expression, seconds", [("5h", 18_000), ("10m", 600)])
    def test_other_units(self, resolver, expression, seconds):
        window = resolver.resolve(expression)
        assert window.end - window.start == timedelta(seconds=seconds)

    def test_now_is_truncated_to_the_second(self):
        resolver = TimeExpressionResolver(clock=lambda: datetime(2024, 3, 10, 12, 0, 0, 654_321))
        window = resolver.resolve("1h")
        assert window.end.microsecond == 0
        assert window.end_millis % 1000 == 0

    def test_zero_duration_is_empty(self, resolver):
        with pytest.raises(EmptyTimeWindow):
            resolver.resolve("0d")

    def test_real_clock_window_ends_now(self):
        before = datetime.now().replace(microsecond=0)
        window = work_on_time_string("2d")
        after = datetime.now()
        assert before <= window.end.replace(tzinfo=None) <= after
        assert window.duration_seconds == 172_800


class TestCompoundForm:
    def test_absolute_start_relative_end(self, resolver):
        window = resolver.resolve("2018-dec-06-10:30__+2d")
        assert window.start == pst(2018, 12, 6, 10, 30)
        assert window.end == window.start + timedelta(days=2)

    def test_negative_delta_makes_lhs_the_end(self, resolver):
        window = resolver.resolve("2018-dec-06-10:30__-5h")
        assert window.start == pst(2018, 12, 6, 5, 30)
        assert window.end == pst(2018, 12, 6, 10, 30)

    def test_bare_end_date_includes_whole_day(self, resolver):
        window = resolver.resolve("dec-06__15-dec")
        assert window.start == pst(2024, 12, 6, 0, 0, 0)
        assert window.end == pst(2024, 12, 15, 23, 59, 59)

    def test_full_dates(self, resolver):
        window = resolver.resolve("2018-dec-06-10:30__2018-dec-08")
        assert window.start == pst(2018, 12, 6, 10, 30)
        assert window.end == pst(2018, 12, 8, 23, 59, 59)

    @pytest.mark.parametrize(
        "forward, backward",
        [
            ("06-dec__15-dec", "15-dec__06-dec"),
            ("dec-06__dec-15", "dec-15__dec-06"),
            ("2018-dec-06-10:30__2018-dec-08-11:00", "2018-dec-08-11:00__2018-dec-06-10:30"),
        ],
    )
    def test_order_of_sides_does_not_matter(self, resolver, forward, backward):
        assert resolver.resolve(forward) == resolver.resolve(backward)
        window = resolver.resolve(backward)
        assert window.start < window.end

    def test_same_day_is_the_whole_day(self, resolver):
        window = resolver.resolve("dec-06__dec-06")
        assert window.start == pst(2024, 12, 6, 0, 0, 0)
        assert window.end == pst(2024, 12, 6, 23, 59, 59)

    def test_month_day_with_time(self, resolver):
        window = resolver.resolve("dec-06-10:30__dec-06-12:00")
        assert window.start == pst(2024, 12, 6, 10, 30)
        assert window.end == pst(2024, 12, 6, 12, 0)

    def test_time_only_is_today(self, resolver):
        window = resolver.resolve("10:30__-1h")
        assert window.start == pst(2024, 3, 10, 9, 30)
        assert window.end == pst(2024, 3, 10, 10, 30)

    def test_month_names_are_case_insensitive(self, resolver):
        assert resolver.resolve("2018-DEC-06__2018-Dec-08") == resolver.resolve("2018-dec-06__2018-dec-08")

    def test_whitespace_around_sides_is_ignored(self, resolver):
        assert resolver.resolve(" dec-06 __ dec-07 ") == resolver.resolve("dec-06__dec-07")

    def test_custom_offset(self):
        resolver = TimeExpressionResolver(tz=timezone.utc, clock=lambda: NOW)
        window = resolver.resolve("2018-dec-06-10:30__+1h")
        assert window.start == datetime(2018, 12, 6, 10, 30, tzinfo=timezone.utc)

    def test_epoch_millis(self, resolver):
        window = resolver.resolve("2018-dec-06-10:30__+1m")
        # 2018-12-06T18:30:00Z
        assert window.start_millis == 1_544_121_000_000
        assert window.end_millis == 1_544_121_060_000


class TestErrors:
    @pytest.mark.parametrize(
        "expression",
        ["yesterday", "2x", "2018/12/06__+1d", "dec-06__tomorrow", "2d__", "__dec-06", "dec-06__+2w", ""],
    )
    def test_malformed(self, resolver, expression):
        with pytest.raises(MalformedTimeExpression) as exc_info:
            resolver.resolve(expression)
        assert not isinstance(exc_info.value, DateParseFailure)
        assert exc_info.value.exit_code == 1

    @pytest.mark.parametrize("expression", ["2018-foo-06__+1d", "dec-06__15-xyz", "feb-30__mar-01", "25:10__+1h"])
    def test_date_parse_failure(self, resolver, expression):
        with pytest.raises(DateParseFailure) as exc_info:
            resolver.resolve(expression)
        assert isinstance(exc_info.value, MalformedTimeExpression)
        assert exc_info.value.exit_code == 3
        assert "month" in str(exc_info.value)

    @pytest.mark.parametrize(
        "expression",
        ["1000000d", "99999999999m", "2018-dec-06-10:30__+9999999d", "0001-jan-01__-1d", "9999-dec-31__+1d"],
    )
    def test_offset_past_representable_years(self, resolver, expression):
        with pytest.raises(DateParseFailure) as exc_info:
            resolver.resolve(expression)
        assert exc_info.value.exit_code == 3
        assert exc_info.value.value == expression
        assert isinstance(exc_info.value.__cause__, (OverflowError, ValueError))

    def test_calendar_error_is_chained(self, resolver):
        with pytest.raises(DateParseFailure) as exc_info:
            resolver.resolve("2019-feb-29__+1d")
        assert isinstance(exc_info.value.__cause__, ValueError)

    @pytest.mark.parametrize(
        "expression",
        ["2018-dec-06-10:30__2018-dec-06-10:30", "2018-dec-06-10:30__+0m", "dec-06__dec-06-00:00"],
    )
    def test_identical_endpoints(self, resolver, expression):
        with pytest.raises(EmptyTimeWindow) as exc_info:
            resolver.resolve(expression)
        assert exc_info.value.value == expression
