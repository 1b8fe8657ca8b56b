"""Elasticsearch engine client.

Translates EngineQuery pages into ``_search`` requests using ``search_after``
pagination and maps HTTP failures onto the engine error types.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from typing import Any

import aiohttp

from ...config import DEFAULT_ELASTICSEARCH_URL, DEFAULT_HTTP_TIMEOUT, STREAMS_FIELD, TIMESTAMP_FIELD
from ...core.exceptions import EngineExecutionError, EngineQueryError
from ...utils.http import HTTPClient
from .base import EngineHit, EngineQuery

logger = logging.getLogger(__name__)

TIMESTAMP_FORMAT = "yyyy-MM-dd HH:mm:ss.SSS"


def format_timestamp(value: datetime) -> str:
    """Render ``value`` in the stored message timestamp format."""
    return value.strftime("%Y-%m-%d %H:%M:%S.") + f"{value.microsecond // 1000:03d}"


def build_search_body(
    query: EngineQuery,
    *,
    timestamp_field: str = TIMESTAMP_FIELD,
    streams_field: str = STREAMS_FIELD,
) -> dict[str, Any]:
    """Build the ``_search`` request body for one page."""
    if query.query_string.strip() and query.query_string.strip() != "*":
        must: dict[str, Any] = {
            "query_string": {
                "query": query.query_string,
                "allow_leading_wildcard": query.allow_leading_wildcard,
            }
        }
    else:
        must = {"match_all": {}}

    filters: list[dict[str, Any]] = [
        {
            "range": {
                timestamp_field: {
                    "gte": format_timestamp(query.time_range.from_),
                    "lt": format_timestamp(query.time_range.to),
                    "format": TIMESTAMP_FORMAT,
                }
            }
        }
    ]
    if query.streams is not None:
        filters.append({"terms": {streams_field: sorted(query.streams)}})

    body: dict[str, Any] = {
        "size": query.size,
        "track_total_hits": False,
        "query": {"bool": {"must": [must], "filter": filters}},
        "sort": [{key.field: {"order": key.direction.value}} for key in query.sort],
    }
    if query.fields:
        body["_source"] = list(query.fields)
    if query.search_after is not None:
        body["search_after"] = list(query.search_after)
    return body


def parse_hits(response: dict[str, Any]) -> list[EngineHit]:
    """Extract hits, in engine order, from a ``_search`` response."""
    hits = response.get("hits", {}).get("hits", [])
    return [
        EngineHit(
            index=hit["_index"],
            id=hit["_id"],
            source=hit.get("_source", {}),
            sort=tuple(hit.get("sort", ())),
        )
        for hit in hits
    ]


class ElasticsearchClient:
    """EngineClient talking to an Elasticsearch cluster over HTTP."""

    def __init__(
        self,
        base_url: str = DEFAULT_ELASTICSEARCH_URL,
        *,
        timeout: float = DEFAULT_HTTP_TIMEOUT,
        http: HTTPClient | None = None,
        username: str | None = None,
        password: str | None = None,
        timestamp_field: str = TIMESTAMP_FIELD,
        streams_field: str = STREAMS_FIELD,
    ) -> None:
        self._http = http or HTTPClient(
            base_url=base_url, timeout=timeout, username=username, password=password
        )
        self._timestamp_field = timestamp_field
        self._streams_field = streams_field

    async def search(self, query: EngineQuery) -> list[EngineHit]:
        path = f"/{','.join(sorted(query.indices))}/_search"
        body = build_search_body(
            query,
            timestamp_field=self._timestamp_field,
            streams_field=self._streams_field,
        )
        try:
            response = await self._http.post(path, json_body=body, params={"ignore_unavailable": "true"})
        except aiohttp.ClientResponseError as e:
            if e.status == 400:
                raise EngineQueryError(f"Search request rejected: {e.message}", status_code=e.status) from e
            raise EngineExecutionError(f"Search request failed: {e.message}", status_code=e.status) from e
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise EngineExecutionError(f"Unable to reach search engine: {e}") from e

        if response.get("timed_out"):
            raise EngineExecutionError("Search request timed out on the engine")
        shards = response.get("_shards", {})
        if shards.get("failed"):
            failures = shards.get("failures") or []
            reason = failures[0].get("reason", {}).get("reason") if failures else "unknown"
            raise EngineExecutionError(f"{shards['failed']} shard(s) failed: {reason}")

        hits = parse_hits(response)
        logger.debug("search_page_fetched", extra={"path": path, "hits": len(hits)})
        return hits

    async def close(self) -> None:
        await self._http.close()

    async def __aenter__(self) -> ElasticsearchClient:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()
