from .backend import ElasticsearchClient, SearchBackend
from .models import (
    MAX_RESULTS,
    EffectiveLimit,
    LimitSource,
    LineRecord,
    SearchOptions,
    SearchRequest,
    SearchResult,
    SortMode,
    TimeWindow,
)
from .orchestrator import QueryOrchestrator
from .policy import SearchWindowPolicy
from .query import IndexLayout
from .timeparse import TimeExpressionResolver, parse_duration, work_on_time_string

__all__ = [
    "MAX_RESULTS",
    "EffectiveLimit",
    "ElasticsearchClient",
    "IndexLayout",
    "LimitSource",
    "LineRecord",
    "QueryOrchestrator",
    "SearchBackend",
    "SearchOptions",
    "SearchRequest",
    "SearchResult",
    "SearchWindowPolicy",
    "SortMode",
    "TimeExpressionResolver",
    "TimeWindow",
    "parse_duration",
    "work_on_time_string",
]
