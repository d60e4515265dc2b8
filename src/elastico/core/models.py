"""Value objects passed between the resolver, the policy and the orchestrator.

All models are frozen: each invocation builds them once and hands them on.
"""

from __future__ import annotations

import re
from datetime import datetime
from enum import Enum
from typing import List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, model_validator

# Hard ceiling on the number of lines a single invocation may fetch
MAX_RESULTS = 10_000

_EMPHASIS_RE = re.compile(r"</?em>")


def to_epoch_millis(value: datetime) -> int:
    """Epoch milliseconds of an aware datetime, truncated to the second."""
    return int(value.timestamp()) * 1000


class SortMode(str, Enum):
    RELEVANCE = "relevance"
    TIME_DESC = "time_desc"


class LimitSource(str, Enum):
    EXPLICIT = "explicit"
    DEFAULT = "default"
    COUNTED = "counted"


class TimeWindow(BaseModel):
    """Ordered pair of absolute instants bounding a search."""

    model_config = ConfigDict(frozen=True)

    start: datetime
    end: datetime

    @model_validator(mode="after")
    def _check_order(self) -> "TimeWindow":
        if self.start.tzinfo is None or self.end.tzinfo is None:
            raise ValueError("time window endpoints must be timezone-aware")
        if self.start >= self.end:
            raise ValueError("time window start must be strictly before its end")
        return self

    @property
    def start_millis(self) -> int:
        return to_epoch_millis(self.start)

    @property
    def end_millis(self) -> int:
        return to_epoch_millis(self.end)

    @property
    def duration_seconds(self) -> float:
        return (self.end - self.start).total_seconds()


class SearchOptions(BaseModel):
    """Everything one invocation was asked to do, as given on the command line."""

    model_config = ConfigDict(frozen=True)

    query: str = Field(..., min_length=1)
    limit: Optional[int] = None
    time_expression: Optional[str] = None
    sort: SortMode = SortMode.TIME_DESC
    highlight: bool = False


class EffectiveLimit(BaseModel):
    """How many lines to fetch, and how that number was reached."""

    model_config = ConfigDict(frozen=True)

    size: int = Field(..., ge=0, le=MAX_RESULTS)
    source: LimitSource
    # Backend document count, only set for LimitSource.COUNTED
    count: Optional[int] = None


class SearchRequest(BaseModel):
    """A single bounded fetch against the backend.

    The time filter is ``(start_millis, end_millis)`` with exclusive bounds.
    """

    model_config = ConfigDict(frozen=True)

    query: str = Field(..., min_length=1)
    limit: int = Field(..., ge=1, le=MAX_RESULTS)
    sort: SortMode = SortMode.TIME_DESC
    highlight: bool = False
    start_millis: int = 0
    end_millis: int

    @model_validator(mode="after")
    def _check_filter(self) -> "SearchRequest":
        if self.start_millis >= self.end_millis:
            raise ValueError("time filter start must be before its end")
        return self

    @property
    def time_filter(self) -> Tuple[int, int]:
        return self.start_millis, self.end_millis


class LineRecord(BaseModel):
    """One result line, either raw or with ``<em>`` delimited match spans."""

    model_config = ConfigDict(frozen=True)

    text: str
    marked: bool = False

    @property
    def plain(self) -> str:
        if not self.marked:
            return self.text
        return _EMPHASIS_RE.sub("", self.text)


class SearchResult(BaseModel):
    """Lines in the order the backend returned them."""

    model_config = ConfigDict(frozen=True)

    lines: Tuple[LineRecord, ...] = ()

    def __len__(self) -> int:
        return len(self.lines)

    def texts(self) -> List[str]:
        return [line.text for line in self.lines]

    def plain_texts(self) -> List[str]:
        return [line.plain for line in self.lines]


__all__ = [
    "MAX_RESULTS",
    "SortMode",
    "LimitSource",
    "TimeWindow",
    "SearchOptions",
    "EffectiveLimit",
    "SearchRequest",
    "LineRecord",
    "SearchResult",
    "to_epoch_millis",
]
