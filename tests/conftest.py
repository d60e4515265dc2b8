from datetime import datetime
from typing import Any, Dict, List, Optional

import pytest

from elastico import config as config_module
from elastico.core.backend import SearchBackend
from elastico.core.timeparse import TimeExpressionResolver

# Wall clock seen by the resolver in tests
NOW = datetime(2024, 3, 10, 12, 0, 0)
# Epoch millis used as "now" for unfiltered searches
NOW_MILLIS = 1_710_100_800_000


class FakeBackend(SearchBackend):
    """Records every call and answers with canned data."""

    def __init__(self, count: int = 0, hits: Optional[List[Dict[str, Any]]] = None, error: Optional[Exception] = None):
        self.count_result = count
        self.hits = hits or []
        self.error = error
        self.count_calls: List[Dict[str, Any]] = []
        self.search_calls: List[tuple] = []

    def count(self, body: Dict[str, Any]) -> int:
        self.count_calls.append(body)
        if self.error:
            raise self.error
        return self.count_result

    def search(self, body: Dict[str, Any], size: int) -> List[Dict[str, Any]]:
        self.search_calls.append((body, size))
        if self.error:
            raise self.error
        return self.hits[:size]

    @property
    def calls(self) -> int:
        return len(self.count_calls) + len(self.search_calls)


def hit(line: str, highlighted: Optional[str] = None) -> Dict[str, Any]:
    doc: Dict[str, Any] = {"_index": "lclslogs", "_source": {"src": line, "date": 0}}
    if highlighted is not None:
        doc["highlight"] = {"src": [highlighted]}
    return doc


@pytest.fixture()
def resolver() -> TimeExpressionResolver:
    return TimeExpressionResolver(clock=lambda: NOW)


@pytest.fixture()
def fake_backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture(autouse=True)
def restore_settings_cache(monkeypatch):
    """Keep settings from leaking between tests."""
    for key in ("ELASTICO_URL", "ELASTICO_INDEX", "ELASTICO_UTC_OFFSET", "ELASTICO_DEFAULT_LIMIT"):
        monkeypatch.delenv(key, raising=False)
    config_module.reload_settings()
    yield
    config_module.get_settings.cache_clear()
