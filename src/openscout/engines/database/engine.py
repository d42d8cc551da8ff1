"""Database engine — Searches the primary datastore with datastore queries.

Unlike the collection engine, the query string, the builder's query
callback and pagination all run as datastore queries, and the engine builds
model pages itself through the datastore's paginator
(``PaginatesModelsUsingDatabase``).
"""

from __future__ import annotations

import time
from collections.abc import Iterator, Sequence
from typing import TYPE_CHECKING

from openscout.engines.base.criteria import datastore_query_for
from openscout.engines.base.engine import RawResults, SearchEngine

if TYPE_CHECKING:
    from openscout.core.builder import QueryBuilder
    from openscout.datastore.query import ModelQuery
    from openscout.models.page import SearchResultPage, SimpleResultPage
    from openscout.models.searchable import SearchableModel


class DatabaseEngine(SearchEngine):
    """Search executed entirely by the primary datastore."""

    @property
    def name(self) -> str:
        return "database"

    # ── Indexing ─────────────────────────────────────────────────────────

    def update(self, models: Sequence[SearchableModel]) -> None:
        """The datastore is the index; nothing to update."""

    def delete(self, models: Sequence[SearchableModel]) -> None:
        """The datastore is the index; nothing to remove."""

    def flush(self, model: type[SearchableModel]) -> None:
        """The datastore is the index; nothing to flush."""

    # ── Search ───────────────────────────────────────────────────────────

    def search(self, builder: QueryBuilder) -> RawResults:
        start = time.monotonic()
        records = self.build_search_query(builder).limit(builder.limit).get()
        return self._raw(builder, records, len(records), start)

    def paginate(self, builder: QueryBuilder, per_page: int, page: int) -> RawResults:
        start = time.monotonic()
        query = self.build_search_query(builder)
        total = query.count_for_pagination()
        records = query.offset((page - 1) * per_page).limit(per_page).get()
        return self._raw(builder, records, total, start)

    def get_total_count(self, results: RawResults) -> int:
        return results.total_hits

    def map(self, builder: QueryBuilder, results: RawResults, model: type[SearchableModel]) -> list[SearchableModel]:
        return list(self.lazy_map(builder, results, model))

    def lazy_map(
        self, builder: QueryBuilder, results: RawResults, model: type[SearchableModel]
    ) -> Iterator[SearchableModel]:
        """Rebuild records from the hits ``search`` already loaded.

        The hits came from the datastore query, so looking them up again would
        run the query callback a second time.
        """
        for hit in results.hits:
            record = model.from_search_hit(hit)
            for field, value in hit.items():
                if field.startswith("_"):
                    record.with_scout_metadata(field, value)
            yield record

    def paginate_using_database(
        self, builder: QueryBuilder, per_page: int | None, page_name: str, page: int | None
    ) -> SearchResultPage:
        return self.build_search_query(builder).paginate(per_page, page_name, page)

    def simple_paginate_using_database(
        self, builder: QueryBuilder, per_page: int | None, page_name: str, page: int | None
    ) -> SimpleResultPage:
        return self.build_search_query(builder).simple_paginate(per_page, page_name, page)

    # ── Helpers ──────────────────────────────────────────────────────────

    def build_search_query(self, builder: QueryBuilder) -> ModelQuery:
        """Datastore query for the builder: criteria, query string, then query callback."""
        query = datastore_query_for(builder)
        if builder.callback is None:
            query.search(builder.query, builder.model.get_searchable_fields())
        if builder.query_callback is not None:
            query = builder.query_callback(query) or query
        return query

    @staticmethod
    def _raw(builder: QueryBuilder, records: list[SearchableModel], total: int, start: float) -> RawResults:
        return RawResults(
            total_hits=total,
            hits=[record.to_searchable_array() for record in records],
            key_name=builder.model.get_scout_key_name(),
            took_ms=int((time.monotonic() - start) * 1000),
        )
