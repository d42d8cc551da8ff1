"""MeiliSearch engine — Hosted index search over the MeiliSearch REST API.

Communicates with MeiliSearch via ``httpx``; no MeiliSearch SDK is needed.
Builder criteria are rendered as MeiliSearch filter and sort expressions::

    where("active", True)          → active=true
    where_in("brand", ["a", "b"])  → brand IN ["a", "b"]
    where_not_in("id", [3])        → id NOT IN [3]
    order_by("price", "desc")      → sort: ["price:desc"]

Usage::

    engine = MeiliSearchEngine(host="http://localhost:7700", key="masterKey")
    Product.search_engine = engine
    Product.search("lamp").where("active", True).paginate(per_page=20)

A builder ``callback`` replaces the search request: it receives
``(client, index, query, params)`` and must return the MeiliSearch search
response as a dict.
"""

from __future__ import annotations

import json
import logging
import time
from collections.abc import Sequence
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

import httpx

from openscout.engines.base.engine import EngineHealth, RawResults, SearchEngine
from openscout.engines.base.exceptions import ConnectionError, QueryError

if TYPE_CHECKING:
    from openscout.config.settings import MeiliSearchSettings
    from openscout.core.builder import QueryBuilder
    from openscout.models.searchable import SearchableModel

logger = logging.getLogger(__name__)


class MeiliSearchEngine(SearchEngine):
    """Search engine backed by a MeiliSearch instance.

    Args:
        host: MeiliSearch instance URL, e.g. ``"http://localhost:7700"``.
        key: Master key or API key for authentication.
        timeout: HTTP request timeout in seconds.
        client: Pre-built ``httpx.Client`` (its base URL must point at the instance).
            ``key`` becomes its Authorization header unless it already sets one.
    """

    def __init__(
        self,
        host: str = "http://localhost:7700",
        key: str | None = None,
        timeout: float = 30.0,
        client: httpx.Client | None = None,
    ) -> None:
        self._host = host.rstrip("/")
        self._key = key
        self._timeout = timeout
        self._client = client
        if client is not None and key:
            client.headers.setdefault("Authorization", f"Bearer {key}")

    @classmethod
    def from_settings(cls, settings: MeiliSearchSettings) -> MeiliSearchEngine:
        return cls(host=settings.host, key=settings.key, timeout=settings.timeout)

    @property
    def name(self) -> str:
        return "meilisearch"

    @property
    def client(self) -> httpx.Client:
        """The HTTP client, created on first use."""
        if self._client is None:
            headers: dict[str, str] = {"Content-Type": "application/json"}
            if self._key:
                headers["Authorization"] = f"Bearer {self._key}"
            self._client = httpx.Client(
                base_url=self._host,
                timeout=httpx.Timeout(self._timeout),
                headers=headers,
            )
            logger.info("Created MeiliSearch client for %s", self._host)
        return self._client

    def close(self) -> None:
        """Close the HTTP client."""
        if self._client:
            self._client.close()
            self._client = None

    # ── Indexing ─────────────────────────────────────────────────────────

    def update(self, models: Sequence[SearchableModel]) -> None:
        """Add or replace documents; trashed records are skipped unless soft deletes are indexed."""
        if not models:
            return
        model = type(models[0])
        documents = [m.to_searchable_array() for m in models if m.uses_soft_delete() or not m.trashed()]
        if not documents:
            return
        self._request(
            "POST",
            f"/indexes/{model.searchable_as()}/documents",
            params={"primaryKey": model.get_scout_key_name()},
            json=documents,
        )
        logger.debug("Sent %d %s documents to MeiliSearch", len(documents), model.__name__)

    def delete(self, models: Sequence[SearchableModel]) -> None:
        if not models:
            return
        model = type(models[0])
        self._request(
            "POST",
            f"/indexes/{model.searchable_as()}/documents/delete-batch",
            json=[m.get_scout_key() for m in models],
        )

    def flush(self, model: type[SearchableModel]) -> None:
        self._request("DELETE", f"/indexes/{model.searchable_as()}/documents")

    def create_index(self, name: str, options: dict[str, Any] | None = None) -> dict[str, Any]:
        payload = {"uid": name, **(options or {})}
        return self._request("POST", "/indexes", json=payload)

    def delete_index(self, name: str) -> dict[str, Any]:
        return self._request("DELETE", f"/indexes/{name}")

    def health_check(self) -> EngineHealth:
        """Check MeiliSearch health via the ``/health`` endpoint."""
        try:
            start = time.monotonic()
            resp = self.client.get("/health")
            latency_ms = int((time.monotonic() - start) * 1000)

            if resp.status_code == 200:
                try:
                    status = resp.json().get("status", "unknown")
                except ValueError:
                    status = "unreadable response"
                return EngineHealth(
                    status="healthy" if status == "available" else "degraded",
                    latency_ms=latency_ms,
                    last_check=datetime.now(UTC).isoformat(),
                    message=f"Host: {self._host}, status: {status}",
                )
            return EngineHealth(
                status="degraded",
                latency_ms=latency_ms,
                last_check=datetime.now(UTC).isoformat(),
                message=f"MeiliSearch returned HTTP {resp.status_code}",
            )
        except httpx.HTTPError as e:
            return EngineHealth(status="unhealthy", message=str(e))

    # ── Search ───────────────────────────────────────────────────────────

    def search(self, builder: QueryBuilder) -> RawResults:
        return self.perform_search(
            builder,
            {
                "filter": self.filters(builder),
                "limit": builder.limit,
                "sort": self.sort(builder),
            },
        )

    def paginate(self, builder: QueryBuilder, per_page: int, page: int) -> RawResults:
        return self.perform_search(
            builder,
            {
                "filter": self.filters(builder),
                "hitsPerPage": per_page,
                "page": page,
                "sort": self.sort(builder),
            },
        )

    def perform_search(self, builder: QueryBuilder, options: dict[str, Any]) -> RawResults:
        """Run a search request for the builder, merged with its engine options.

        Empty option values are dropped before sending.
        """
        index = builder.index or builder.model.searchable_as()
        params = {**builder.engine_options.to_params(), **{k: v for k, v in options.items() if v}}

        start = time.monotonic()
        if builder.callback is not None:
            data = builder.callback(self.client, index, builder.query, params)
        else:
            data = self._request("POST", f"/indexes/{index}/search", json={"q": builder.query, **params})
        took_ms = int((time.monotonic() - start) * 1000)

        hits = data.get("hits", [])
        total_hits = data.get("totalHits", data.get("estimatedTotalHits", len(hits)))
        return RawResults(
            total_hits=total_hits,
            hits=hits,
            key_name=builder.model.get_scout_key_name(),
            metadata={
                "processing_time_ms": data.get("processingTimeMs", 0),
                "query": data.get("query", builder.query),
                "index": index,
            },
            took_ms=took_ms,
        )

    def get_total_count(self, results: RawResults) -> int:
        return results.total_hits

    # ── Criteria rendering ───────────────────────────────────────────────

    def filters(self, builder: QueryBuilder) -> str:
        """MeiliSearch filter expression for the builder's where clauses."""
        clauses = [self._where_clause(field, value) for field, value in builder.wheres.items()]
        clauses += [
            f"{field} IN [{', '.join(self._format_value(v) for v in values)}]"
            for field, values in builder.where_ins.items()
        ]
        clauses += [
            f"{field} NOT IN [{', '.join(self._format_value(v) for v in values)}]"
            for field, values in builder.where_not_ins.items()
        ]
        return " AND ".join(clauses)

    @staticmethod
    def sort(builder: QueryBuilder) -> list[str]:
        return [f"{column}:{direction}" for column, direction in builder.orders]

    @classmethod
    def _where_clause(cls, field: str, value: Any) -> str:
        if value is None:
            return f"{field} IS NULL"
        return f"{field}={cls._format_value(value)}"

    @staticmethod
    def _format_value(value: Any) -> str:
        if isinstance(value, bool):
            return "true" if value else "false"
        if isinstance(value, int | float):
            return str(value)
        return json.dumps(str(value))

    # ── Transport ────────────────────────────────────────────────────────

    def _request(self, method: str, url: str, **kwargs: Any) -> dict[str, Any]:
        try:
            resp = self.client.request(method, url, **kwargs)
            resp.raise_for_status()
        except httpx.ConnectError as e:
            raise ConnectionError(f"Failed to connect to MeiliSearch: {e}") from e
        except httpx.HTTPError as e:
            raise QueryError(f"MeiliSearch request failed: {method} {url}: {e}") from e
        return resp.json() if resp.content else {}
