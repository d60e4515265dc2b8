"""Elasticsearch request bodies for the count and search steps."""

from __future__ import annotations

from typing import Any, Dict, Tuple

from pydantic import BaseModel, ConfigDict

from .models import SearchRequest, SortMode


class IndexLayout(BaseModel):
    """Names of the index fields the queries refer to."""

    model_config = ConfigDict(frozen=True)

    # Holds the raw log line
    default_field: str = "src"
    # Holds the log date, epoch_millis compatible
    date_field: str = "date"


def wrap_query(query: str) -> str:
    return f"* AND ( {query} )"


def build_query(query: str, time_filter: Tuple[int, int], layout: IndexLayout) -> Dict[str, Any]:
    """Lucene query on the default field AND an exclusive range on the date field.

    Unfiltered searches still go through the range clause, with a window
    that admits everything up to now.
    """
    start_millis, end_millis = time_filter
    return {
        "bool": {
            "must": {
                "query_string": {
                    "default_field": layout.default_field,
                    "query": wrap_query(query),
                }
            },
            "filter": {
                "range": {
                    layout.date_field: {
                        "gt": start_millis,
                        "lt": end_millis,
                    }
                }
            },
        }
    }


def build_count_body(query: str, time_filter: Tuple[int, int], layout: IndexLayout) -> Dict[str, Any]:
    """Body for ``_count``: no sort, highlight or size."""
    return {"query": build_query(query, time_filter, layout)}


def build_search_body(request: SearchRequest, layout: IndexLayout) -> Dict[str, Any]:
    """Body for ``_search``. The result size travels as a URL parameter."""
    body: Dict[str, Any] = {"query": build_query(request.query, request.time_filter, layout)}
    if request.sort is SortMode.TIME_DESC:
        body["sort"] = {layout.date_field: {"order": "desc"}}
    if request.highlight:
        # number_of_fragments=0 highlights the whole field instead of snippets
        body["highlight"] = {"fields": {layout.default_field: {"number_of_fragments": 0}}}
    return body


__all__ = [
    "IndexLayout",
    "build_count_body",
    "build_query",
    "build_search_body",
    "wrap_query",
]
