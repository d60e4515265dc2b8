"""Decides how many lines a search may fetch.

Either the caller names a limit, or the caller names a time window and the
backend is asked how many lines it holds (count-then-fetch). The count is the
limit, unless it reaches the hard ceiling, in which case nothing is fetched.
"""

from __future__ import annotations

import logging
from typing import Optional

from ..exceptions import ConflictingParameters, InvalidLimit, ResultSetTooLarge
from .backend import SearchBackend
from .models import MAX_RESULTS, EffectiveLimit, LimitSource, TimeWindow
from .query import IndexLayout, build_count_body

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 20


class SearchWindowPolicy:
    """Turns an explicit limit or a time window into an EffectiveLimit."""

    def __init__(
        self,
        backend: SearchBackend,
        layout: IndexLayout = IndexLayout(),
        default_limit: int = DEFAULT_LIMIT,
        maximum: int = MAX_RESULTS,
    ):
        self.backend = backend
        self.layout = layout
        self.default_limit = default_limit
        self.maximum = maximum

    @staticmethod
    def check_exclusive(limit: Optional[int], time_expression: Optional[str]) -> None:
        """A limit and a time window are two answers to the same question."""
        if limit is not None and time_expression is not None:
            raise ConflictingParameters()

    def count(self, query: str, window: TimeWindow) -> int:
        """First step of count-then-fetch: documents matching query inside window."""
        body = build_count_body(query, (window.start_millis, window.end_millis), self.layout)
        total = self.backend.count(body)
        logger.debug(f"{total} documents in window [{window.start_millis}, {window.end_millis})")
        return total

    def decide(
        self,
        query: str,
        limit: Optional[int] = None,
        window: Optional[TimeWindow] = None,
    ) -> EffectiveLimit:
        """Resolve the fetch size.

        Raises:
            ConflictingParameters: both limit and window were given
            InvalidLimit: limit outside 1..maximum
            ResultSetTooLarge: the window holds maximum lines or more
        """
        if limit is not None and window is not None:
            raise ConflictingParameters()

        if window is None:
            if limit is None:
                return EffectiveLimit(size=self.default_limit, source=LimitSource.DEFAULT)
            if not 1 <= limit <= self.maximum:
                raise InvalidLimit(limit, self.maximum)
            return EffectiveLimit(size=limit, source=LimitSource.EXPLICIT)

        total = self.count(query, window)
        if total >= self.maximum:
            raise ResultSetTooLarge(total, self.maximum)
        return EffectiveLimit(size=total, source=LimitSource.COUNTED, count=total)


__all__ = ["DEFAULT_LIMIT", "SearchWindowPolicy"]
