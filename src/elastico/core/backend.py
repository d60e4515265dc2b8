"""Elasticsearch HTTP client.

The core only needs two calls from the backend: a document count and a
bounded search. ``SearchBackend`` is what the policy and the orchestrator
depend on; ``ElasticsearchClient`` implements it over HTTP with httpx.

Every failure, whether transport, status or body shape, is raised as
BackendQueryFailure with the raw response attached. Nothing is retried.
"""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

import httpx

from ..exceptions import BackendQueryFailure

logger = logging.getLogger(__name__)


class SearchBackend(ABC):
    @abstractmethod
    def count(self, body: Dict[str, Any]) -> int: ...

    @abstractmethod
    def search(self, body: Dict[str, Any], size: int) -> List[Dict[str, Any]]: ...


class ElasticsearchClient(SearchBackend):
    """Synchronous client for the ``_count`` and ``_search`` endpoints of one index.

    Example usage:
        client = ElasticsearchClient("http://psmetric04:9200", "lclslogs")
        total = client.count({"query": {"match_all": {}}})
    """

    def __init__(
        self,
        base_url: str,
        index: str,
        timeout: float = 30.0,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        """Initialize the client.

        Args:
            base_url: Elasticsearch server URL.
            index: Index to query.
            timeout: Request timeout in seconds.
            transport: Custom httpx transport (tests use httpx.MockTransport).
        """
        self.base_url = base_url.rstrip("/")
        self.index = index
        self.timeout = timeout
        self._transport = transport

        logger.debug(f"ElasticsearchClient initialized with base_url={self.base_url} index={self.index}")

    def _url(self, operation: str) -> str:
        return f"{self.base_url}/{self.index}/{operation}"

    def _post(self, operation: str, body: Dict[str, Any], params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        url = self._url(operation)
        logger.debug(f"POST {url} params={params} body={json.dumps(body)}")

        try:
            with httpx.Client(timeout=self.timeout, transport=self._transport) as client:
                response = client.post(
                    url,
                    json=body,
                    params=params,
                    headers={"Accept": "application/json"},
                )
        except httpx.TimeoutException as e:
            raise BackendQueryFailure(f"Request to {url} timed out after {self.timeout}s") from e
        except httpx.RequestError as e:
            raise BackendQueryFailure(f"Request to {url} failed: {e}") from e

        logger.debug(f"{operation} answered {response.status_code}: {response.text[:500]}")

        if response.is_error:
            raise BackendQueryFailure(
                f"Elasticsearch answered {response.status_code} to {operation}",
                raw_response=response.text,
                status_code=response.status_code,
            )

        try:
            data = response.json()
        except ValueError as e:
            raise BackendQueryFailure(
                f"Response to {operation} is not valid JSON",
                raw_response=response.text,
                status_code=response.status_code,
            ) from e

        if not isinstance(data, dict):
            raise BackendQueryFailure(
                f"Response to {operation} is not a JSON object",
                raw_response=response.text,
                status_code=response.status_code,
            )
        return data

    def count(self, body: Dict[str, Any]) -> int:
        """Number of documents matching ``body``."""
        data = self._post("_count", body)
        count = data.get("count")
        if not isinstance(count, int) or isinstance(count, bool):
            raise BackendQueryFailure("Count response has no 'count' field", raw_response=json.dumps(data))
        return count

    def search(self, body: Dict[str, Any], size: int) -> List[Dict[str, Any]]:
        """At most ``size`` hits matching ``body``, in backend order."""
        data = self._post("_search", body, params={"size": size})
        hits = data.get("hits")
        if not isinstance(hits, dict) or not isinstance(hits.get("hits"), list):
            raise BackendQueryFailure("Search response has no 'hits.hits' list", raw_response=json.dumps(data))
        return hits["hits"]


__all__ = ["SearchBackend", "ElasticsearchClient"]
