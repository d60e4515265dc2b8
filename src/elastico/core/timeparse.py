"""Time expression parsing.

A time expression describes the window a search is restricted to. Accepted
forms:

    2d, 5h, 10m                       from now minus the duration, to now
    2018-dec-06-10:30__+2d            absolute start, relative end
    2018-dec-06-10:30__2018-dec-08    absolute start and end
    dec-06__15-dec                    current year, whole days

Absolute points are recognized by an ordered list of matchers, most specific
first. A matcher only recognizes the shape and returns a PartialDate; filling
in the missing year, date or time of day happens in one place
(``complete_point``), with the default time of day passed in by the caller:
midnight for the start of the window, the last second of the day for its end.

Wall-clock values are labelled with a single fixed UTC offset, they are
never converted between zones.
"""

from __future__ import annotations

import logging
import re
from datetime import date, datetime, time, timedelta, timezone, tzinfo
from typing import Callable, List, NamedTuple, Optional, Tuple

from ..exceptions import (
    DateParseFailure,
    EmptyTimeWindow,
    MalformedDuration,
    MalformedTimeExpression,
)
from .models import TimeWindow

logger = logging.getLogger(__name__)

FIXED_OFFSET = timezone(timedelta(hours=-8))

UNIT_SECONDS = {"m": 60, "h": 60 * 60, "d": 60 * 60 * 24}

DURATION_RE = re.compile(r"^(?P<value>\d+)(?P<unit>[mhd])\Z")
SIGNED_DURATION_RE = re.compile(r"^(?P<sign>[+-])(?P<token>\d+[mhd])\Z")

START_OF_DAY = time(0, 0, 0)
END_OF_DAY = time(23, 59, 59)

MONTHS = {
    name: number
    for number, name in enumerate(
        ("jan", "feb", "mar", "apr", "may", "jun",
         "jul", "aug", "sep", "oct", "nov", "dec"),
        start=1,
    )
}


def parse_duration(token: str) -> int:
    """Number of seconds in a ``<N><unit>`` token, unit one of m, h, d.

    The token carries no sign; callers add or subtract the result.

    Raises:
        MalformedDuration: token is not digits followed by a known unit
    """
    m = DURATION_RE.match(token)
    if not m:
        raise MalformedDuration(token)
    return int(m["value"]) * UNIT_SECONDS[m["unit"]]


# ============================================================================
# Absolute point matchers
# ============================================================================

class PartialDate(NamedTuple):
    """Fields found in an absolute point. Missing fields are None."""
    text: str
    year: Optional[int] = None
    month: Optional[str] = None
    day: Optional[int] = None
    hour: Optional[int] = None
    minute: Optional[int] = None


Matcher = Callable[[str], Optional[PartialDate]]

_YEAR = r"(?P<year>\d{4})"
_MONTH = r"(?P<month>[a-z]{3})"
_DAY = r"(?P<day>\d{1,2})"
_HOUR_MINUTE = r"(?P<hour>\d{1,2}):(?P<minute>\d{1,2})"


def _optional_int(value: Optional[str]) -> Optional[int]:
    return int(value) if value is not None else None


def regex_matcher(pattern: str) -> Matcher:
    """Build a matcher from a regex using the year/month/day/hour/minute groups."""
    regex = re.compile(pattern, re.IGNORECASE)

    def match(text: str) -> Optional[PartialDate]:
        m = regex.match(text)
        if not m:
            return None
        groups = m.groupdict()
        return PartialDate(
            text=text,
            year=_optional_int(groups.get("year")),
            month=groups.get("month"),
            day=_optional_int(groups.get("day")),
            hour=_optional_int(groups.get("hour")),
            minute=_optional_int(groups.get("minute")),
        )

    return match


# Tried in order, the first shape that matches wins
POINT_MATCHERS: List[Tuple[str, Matcher]] = [
    ("year-month-day-time", regex_matcher(rf"^{_YEAR}-{_MONTH}-{_DAY}-{_HOUR_MINUTE}\Z")),
    ("month-day-time", regex_matcher(rf"^{_MONTH}-{_DAY}-{_HOUR_MINUTE}\Z")),
    ("year-month-day", regex_matcher(rf"^{_YEAR}-{_MONTH}-{_DAY}\Z")),
    ("month-day", regex_matcher(rf"^{_MONTH}-{_DAY}\Z")),
    ("day-month", regex_matcher(rf"^{_DAY}-{_MONTH}\Z")),
    ("time", regex_matcher(rf"^{_HOUR_MINUTE}\Z")),
]


def match_point(text: str) -> Optional[PartialDate]:
    """Run the matchers in priority order, None when no shape fits."""
    for name, matcher in POINT_MATCHERS:
        partial = matcher(text)
        if partial is not None:
            logger.debug(f"'{text}' matched {name}")
            return partial
    return None


def complete_point(partial: PartialDate, today: date, default_time: time) -> datetime:
    """Fill in the fields a PartialDate leaves out and build a naive datetime.

    Missing year is today's year, missing date is today, missing time of day
    is ``default_time``.

    Raises:
        DateParseFailure: unknown month name or invalid calendar value
    """
    if partial.month is None:
        day = today
    else:
        month = MONTHS.get(partial.month.lower())
        if month is None:
            raise DateParseFailure(partial.text, f"unknown month '{partial.month}'")
        year = partial.year if partial.year is not None else today.year
        try:
            day = date(year, month, partial.day)
        except ValueError as e:
            raise DateParseFailure(partial.text, str(e)) from e

    if partial.hour is None:
        clock = default_time
    else:
        try:
            clock = time(partial.hour, partial.minute)
        except ValueError as e:
            raise DateParseFailure(partial.text, str(e)) from e

    return datetime.combine(day, clock)


def shift(value: datetime, seconds: int, sign: str, expression: str) -> datetime:
    """Move ``value`` forward (``+``) or back (``-``) by ``seconds``.

    Raises:
        DateParseFailure: the result falls outside the representable years
    """
    try:
        delta = timedelta(seconds=seconds)
        return value + delta if sign == "+" else value - delta
    except (OverflowError, ValueError) as e:
        raise DateParseFailure(expression, f"offset out of range: {e}") from e


def normalize(value: datetime, tz: tzinfo = FIXED_OFFSET) -> datetime:
    """Label a wall-clock value with the fixed offset.

    Values already carrying that offset are returned unchanged.
    """
    if value.tzinfo is not None and value.utcoffset() == tz.utcoffset(None):
        return value
    return value.replace(tzinfo=tz)


# ============================================================================
# Resolver
# ============================================================================

class TimeExpressionResolver:
    """Turns a time expression into an ordered TimeWindow.

    Args:
        tz: Fixed offset both endpoints are normalized to.
        clock: Returns the current wall-clock time. Injected by tests.
    """

    def __init__(
        self,
        tz: tzinfo = FIXED_OFFSET,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.tz = tz
        self._clock = clock

    def now(self) -> datetime:
        return self._clock().replace(microsecond=0)

    def resolve(self, expression: str) -> TimeWindow:
        """Resolve ``expression`` to a window with start strictly before end.

        Raises:
            MalformedTimeExpression: no accepted shape
            DateParseFailure: bad month name or calendar value, or an offset
                reaching past the representable years
            EmptyTimeWindow: both endpoints are the same instant
        """
        text = expression.strip()
        now = self.now()

        if DURATION_RE.match(text):
            rhs_time = now
            lhs_time = shift(now, parse_duration(text), "-", expression)
        elif "__" in text:
            lhs, rhs = (part.strip() for part in text.rsplit("__", 1))
            lhs_time, rhs_time = self._compound(lhs, rhs, expression, now.date())
        else:
            raise MalformedTimeExpression(expression)

        lhs_time = normalize(lhs_time, self.tz)
        rhs_time = normalize(rhs_time, self.tz)

        if lhs_time == rhs_time:
            raise EmptyTimeWindow(expression)
        start, end = sorted((lhs_time, rhs_time))

        logger.debug(f"Time window for '{expression}': {start.isoformat()} -> {end.isoformat()}")
        return TimeWindow(start=start, end=end)

    def _match(self, text: str, expression: str) -> PartialDate:
        partial = match_point(text)
        if partial is None:
            raise MalformedTimeExpression(
                expression, f"Time format '{text}' not recognized in '{expression}'."
            )
        return partial

    def _compound(self, lhs: str, rhs: str, expression: str, today: date) -> Tuple[datetime, datetime]:
        lhs_partial = self._match(lhs, expression)
        lhs_time = complete_point(lhs_partial, today, START_OF_DAY)

        m = SIGNED_DURATION_RE.match(rhs)
        if m:
            return lhs_time, shift(lhs_time, parse_duration(m["token"]), m["sign"], expression)

        rhs_partial = self._match(rhs, expression)
        rhs_time = complete_point(rhs_partial, today, END_OF_DAY)
        if rhs_time < lhs_time:
            # Written end first: the defaults follow the role, not the side
            lhs_time = complete_point(lhs_partial, today, END_OF_DAY)
            rhs_time = complete_point(rhs_partial, today, START_OF_DAY)
        return lhs_time, rhs_time


def work_on_time_string(expression: str, resolver: Optional[TimeExpressionResolver] = None) -> TimeWindow:
    """Resolve a time expression with the given (or a default) resolver."""
    return (resolver or TimeExpressionResolver()).resolve(expression)


__all__ = [
    "FIXED_OFFSET",
    "START_OF_DAY",
    "END_OF_DAY",
    "PartialDate",
    "POINT_MATCHERS",
    "TimeExpressionResolver",
    "complete_point",
    "match_point",
    "normalize",
    "parse_duration",
    "shift",
    "work_on_time_string",
]
