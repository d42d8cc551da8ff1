"""Base search engine — Abstract interface for all search backends.

Every engine must implement this interface to be driven by the
``QueryBuilder``. The engine is responsible for:
  1. Executing search and pagination requests against the backend
  2. Reporting identifiers and total counts of raw results
  3. Keeping the backend index in sync with domain records

Mapping raw hits back to domain records is shared by every engine through
``ResultMapper``; engines override ``map()`` only when their hits carry
something the mapper cannot resolve.

Two optional capabilities let an engine take over page construction
entirely. They are plain protocols checked with ``isinstance``, so an engine
opts in by defining the methods, not by inheriting:
  - ``PaginatesModels``: the engine builds model pages itself
  - ``PaginatesModelsUsingDatabase``: the engine pages through the primary datastore
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterator, Sequence
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from pydantic import BaseModel, Field

from openscout.core.mapper import ResultMapper

if TYPE_CHECKING:
    from openscout.core.builder import QueryBuilder
    from openscout.models.page import SearchResultPage, SimpleResultPage
    from openscout.models.searchable import SearchableModel


class EngineHealth(BaseModel):
    """Health status of a search engine."""

    status: str = Field(description="Health status: healthy, degraded, unhealthy")
    latency_ms: int = Field(default=0, description="Latency of last health check in ms")
    last_check: str | None = Field(default=None, description="ISO timestamp of last health check")
    message: str | None = Field(default=None, description="Additional health message")


class RawResults(BaseModel):
    """Raw search results from a backend before mapping."""

    total_hits: int = Field(default=0, description="Total number of matching documents")
    hits: list[dict[str, Any]] = Field(default_factory=list, description="Raw hit dicts, in engine order")
    key_name: str = Field(default="id", description="Hit field holding the record identifier")
    metadata: dict[str, Any] = Field(default_factory=dict, description="Backend-specific metadata")
    took_ms: int = Field(default=0, description="Backend query execution time in ms")


@runtime_checkable
class PaginatesModels(Protocol):
    """Engines that build model pages themselves."""

    def paginate_models(self, builder: QueryBuilder, per_page: int | None, page: int | None) -> SearchResultPage: ...

    def simple_paginate_models(
        self, builder: QueryBuilder, per_page: int | None, page: int | None
    ) -> SimpleResultPage: ...


@runtime_checkable
class PaginatesModelsUsingDatabase(Protocol):
    """Engines that page through the primary datastore directly."""

    def paginate_using_database(
        self, builder: QueryBuilder, per_page: int | None, page_name: str, page: int | None
    ) -> SearchResultPage: ...

    def simple_paginate_using_database(
        self, builder: QueryBuilder, per_page: int | None, page_name: str, page: int | None
    ) -> SimpleResultPage: ...


class SearchEngine(ABC):
    """Abstract base class for search engines.

    All engines must implement:
      - search(): Execute the builder's query and return raw results
      - paginate(): Execute one page of the builder's query
      - get_total_count(): Report the total match count of raw results
      - update() / delete() / flush(): Keep the index in sync

    Engines are driven synchronously; a single instance may serve many
    builders but holds no per-query state.
    """

    mapper: ResultMapper = ResultMapper()

    @property
    @abstractmethod
    def name(self) -> str:
        """Unique engine name (e.g., 'collection', 'meilisearch')."""

    # ── Indexing ─────────────────────────────────────────────────────────

    @abstractmethod
    def update(self, models: Sequence[SearchableModel]) -> None:
        """Add or replace the given records in the index."""

    @abstractmethod
    def delete(self, models: Sequence[SearchableModel]) -> None:
        """Remove the given records from the index."""

    @abstractmethod
    def flush(self, model: type[SearchableModel]) -> None:
        """Remove every record of the model type from the index."""

    def create_index(self, name: str, options: dict[str, Any] | None = None) -> Any:
        """Create a search index. Engines without index management ignore this."""
        return None

    def delete_index(self, name: str) -> Any:
        """Delete a search index. Engines without index management ignore this."""
        return None

    def health_check(self) -> EngineHealth:
        """Report backend health. Engines without a remote backend are always healthy."""
        return EngineHealth(status="healthy", last_check=datetime.now(UTC).isoformat())

    # ── Searching ────────────────────────────────────────────────────────

    @abstractmethod
    def search(self, builder: QueryBuilder) -> RawResults:
        """Execute the builder's query against the backend.

        Args:
            builder: The configured query builder.

        Returns:
            Raw search results, limited by ``builder.limit`` when set.
        """

    @abstractmethod
    def paginate(self, builder: QueryBuilder, per_page: int, page: int) -> RawResults:
        """Execute one page of the builder's query.

        Args:
            builder: The configured query builder.
            per_page: Page size.
            page: 1-based page number.

        Returns:
            Raw results for that page; ``total_hits`` covers all pages.
        """

    @abstractmethod
    def get_total_count(self, results: RawResults) -> int:
        """Total number of matches the backend reported for ``results``."""

    def map_ids(self, results: RawResults) -> list[Any]:
        """Identifiers of the raw hits, in engine order."""
        return self.map_ids_from(results, results.key_name)

    def map_ids_from(self, results: RawResults, key: str) -> list[Any]:
        """Pluck ``key`` from every raw hit that carries it."""
        return [hit[key] for hit in results.hits if key in hit]

    def map(self, builder: QueryBuilder, results: RawResults, model: type[SearchableModel]) -> list[SearchableModel]:
        """Map raw hits to domain records, preserving engine order."""
        return self.mapper.map(builder, results, model)

    def lazy_map(
        self, builder: QueryBuilder, results: RawResults, model: type[SearchableModel]
    ) -> Iterator[SearchableModel]:
        """Map raw hits to domain records lazily."""
        return self.mapper.lazy_map(builder, results, model)

    # ── Conveniences driven by the builder ───────────────────────────────

    def keys(self, builder: QueryBuilder) -> list[Any]:
        """Identifiers matching the builder's query."""
        return self.map_ids(self.search(builder))

    def get(self, builder: QueryBuilder) -> list[SearchableModel]:
        """Domain records matching the builder's query."""
        return self.map(
            builder,
            builder.apply_after_raw_search_callback(self.search(builder)),
            builder.model,
        )

    def cursor(self, builder: QueryBuilder) -> Iterator[SearchableModel]:
        """Single-pass iterator over the records matching the builder's query."""
        return self.lazy_map(
            builder,
            builder.apply_after_raw_search_callback(self.search(builder)),
            builder.model,
        )
