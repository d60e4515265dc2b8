"""Runs one search from command line options to result lines.

Steps, strictly in sequence:
1. reject a limit combined with a time expression
2. resolve the time expression, if any
3. decide the fetch size (may count first)
4. issue exactly one bounded _search and extract the lines
"""

from __future__ import annotations

import json
import logging
import time
from typing import Any, Callable, Optional

from ..config import Settings
from ..exceptions import BackendQueryFailure
from .backend import ElasticsearchClient, SearchBackend
from .models import (
    EffectiveLimit,
    LineRecord,
    SearchOptions,
    SearchRequest,
    SearchResult,
    TimeWindow,
)
from .policy import SearchWindowPolicy
from .query import IndexLayout, build_search_body
from .timeparse import TimeExpressionResolver

logger = logging.getLogger(__name__)


def current_millis() -> int:
    return int(time.time()) * 1000


class QueryOrchestrator:
    """Composes the query with the time filter and fetches the lines."""

    def __init__(
        self,
        backend: SearchBackend,
        resolver: Optional[TimeExpressionResolver] = None,
        policy: Optional[SearchWindowPolicy] = None,
        layout: IndexLayout = IndexLayout(),
        now_millis: Callable[[], int] = current_millis,
    ):
        self.backend = backend
        self.layout = layout
        self.resolver = resolver or TimeExpressionResolver()
        self.policy = policy or SearchWindowPolicy(backend, layout=layout)
        self._now_millis = now_millis

    @classmethod
    def from_settings(cls, settings: Settings, backend: Optional[SearchBackend] = None) -> "QueryOrchestrator":
        """Wire an orchestrator to the Elasticsearch server named in settings."""
        backend = backend or ElasticsearchClient(settings.url, settings.index, timeout=settings.timeout)
        layout = IndexLayout(default_field=settings.default_field, date_field=settings.date_field)
        return cls(
            backend,
            resolver=TimeExpressionResolver(tz=settings.tzinfo),
            policy=SearchWindowPolicy(backend, layout=layout, default_limit=settings.default_limit),
            layout=layout,
        )

    def build_request(
        self,
        options: SearchOptions,
        limit: EffectiveLimit,
        window: Optional[TimeWindow] = None,
    ) -> SearchRequest:
        if window is None:
            start_millis, end_millis = 0, self._now_millis()
        else:
            start_millis, end_millis = window.start_millis, window.end_millis
        return SearchRequest(
            query=options.query,
            limit=limit.size,
            sort=options.sort,
            highlight=options.highlight,
            start_millis=start_millis,
            end_millis=end_millis,
        )

    def fetch(self, request: SearchRequest) -> SearchResult:
        """Issue the single bounded search and extract one line per hit."""
        body = build_search_body(request, self.layout)
        hits = self.backend.search(body, request.limit)
        lines = [self._extract_line(hit, request.highlight) for hit in hits]
        logger.debug(f"Fetched {len(lines)} lines (limit {request.limit})")
        return SearchResult(lines=tuple(lines))

    def _extract_line(self, hit: Any, highlight: bool) -> LineRecord:
        field = self.layout.default_field
        source = hit.get("_source") if isinstance(hit, dict) else None
        text = source.get(field) if isinstance(source, dict) else None
        if not isinstance(text, str):
            raise BackendQueryFailure(f"Search hit has no '_source.{field}' field", raw_response=json.dumps(hit))

        if not highlight:
            return LineRecord(text=text)

        marks = hit.get("highlight")
        if marks is None:
            return LineRecord(text=text)
        if not isinstance(marks, dict):
            raise BackendQueryFailure("Search hit has a malformed 'highlight' section", raw_response=json.dumps(hit))
        # Hits matched only through other fields carry no highlight for this one
        if field not in marks:
            return LineRecord(text=text)
        fragments = marks[field]
        if not isinstance(fragments, list) or not fragments or not isinstance(fragments[0], str):
            raise BackendQueryFailure(
                f"Search hit has malformed 'highlight.{field}' fragments", raw_response=json.dumps(hit)
            )
        return LineRecord(text=fragments[0], marked=True)

    def run(self, options: SearchOptions) -> SearchResult:
        """Resolve, count if needed, then fetch.

        Raises:
            ElasticoError: any of its subclasses, the run is aborted
        """
        self.policy.check_exclusive(options.limit, options.time_expression)

        window = None
        if options.time_expression is not None:
            window = self.resolver.resolve(options.time_expression)

        limit = self.policy.decide(options.query, limit=options.limit, window=window)
        logger.debug(f"Effective limit {limit.size} ({limit.source.value})")

        if limit.size == 0:
            return SearchResult()

        request = self.build_request(options, limit, window)
        return self.fetch(request)


__all__ = ["QueryOrchestrator", "current_millis"]
