"""Collection engine — Searches the primary datastore in memory.

Loads the model's records through the datastore (filters, trashed rule and
ordering applied there), then matches the query string against each
record's searchable document. No external index is involved, so the
indexing operations are no-ops. Handy for tests and small data sets.

Usage::

    Product.search_engine = CollectionEngine()
    Product.search("lamp").where("active", True).get()
"""

from __future__ import annotations

import logging
import time
from collections.abc import Sequence
from typing import TYPE_CHECKING, Any

from openscout.engines.base.criteria import datastore_query_for
from openscout.engines.base.engine import RawResults, SearchEngine

if TYPE_CHECKING:
    from openscout.core.builder import QueryBuilder
    from openscout.models.searchable import SearchableModel

logger = logging.getLogger(__name__)


class CollectionEngine(SearchEngine):
    """In-memory search over the primary datastore."""

    @property
    def name(self) -> str:
        return "collection"

    # ── Indexing ─────────────────────────────────────────────────────────

    def update(self, models: Sequence[SearchableModel]) -> None:
        """Records are read from the datastore at search time; nothing to index."""

    def delete(self, models: Sequence[SearchableModel]) -> None:
        """Records are read from the datastore at search time; nothing to remove."""

    def flush(self, model: type[SearchableModel]) -> None:
        """Records are read from the datastore at search time; nothing to flush."""

    # ── Search ───────────────────────────────────────────────────────────

    def search(self, builder: QueryBuilder) -> RawResults:
        start = time.monotonic()
        documents = self._matching_documents(builder)
        hits = documents[: builder.limit] if builder.limit is not None else documents
        return RawResults(
            total_hits=len(hits),
            hits=hits,
            key_name=builder.model.get_scout_key_name(),
            took_ms=int((time.monotonic() - start) * 1000),
        )

    def paginate(self, builder: QueryBuilder, per_page: int, page: int) -> RawResults:
        start = time.monotonic()
        documents = self._matching_documents(builder)
        offset = (page - 1) * per_page
        return RawResults(
            total_hits=len(documents),
            hits=documents[offset : offset + per_page],
            key_name=builder.model.get_scout_key_name(),
            metadata={"page": page, "per_page": per_page},
            took_ms=int((time.monotonic() - start) * 1000),
        )

    def get_total_count(self, results: RawResults) -> int:
        return results.total_hits

    # ── Helpers ──────────────────────────────────────────────────────────

    def _matching_documents(self, builder: QueryBuilder) -> list[dict[str, Any]]:
        records = datastore_query_for(builder).get()
        documents = [record.to_searchable_array() for record in records]

        needle = builder.query.strip().lower()
        if not needle:
            return documents

        fields = builder.model.get_searchable_fields()
        matched = [
            document
            for document in documents
            if any(needle in str(document[f]).lower() for f in fields if document.get(f) is not None)
        ]
        logger.debug(
            "Query %r matched %d of %d %s records", builder.query, len(matched), len(documents), builder.model.__name__
        )
        return matched
