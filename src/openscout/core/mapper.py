"""Result mapper — Turns raw engine hits into domain records.

Records are resolved through the model's primary datastore (so the
builder's query callback and soft-delete rules apply) and returned in the
order the engine ranked them. Hit fields prefixed with an underscore
(``_rankingScore``, ``_formatted``, ...) are attached to each record as
scout metadata. Models with no datastore bound are hydrated from the hits
themselves.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from openscout.core.builder import QueryBuilder
    from openscout.engines.base.engine import RawResults
    from openscout.models.searchable import SearchableModel

logger = logging.getLogger(__name__)


class ResultMapper:
    """Maps ``RawResults`` to ordered lists of ``SearchableModel`` records."""

    def apply_after_raw_search_callback(self, builder: QueryBuilder, results: Any) -> Any:
        """Let the builder's raw-results callback inspect or replace ``results``.

        A callback returning a falsy value leaves the results unchanged.
        """
        callback = builder.after_raw_search_callback
        if callback is None:
            return results
        return callback(results) or results

    def map(self, builder: QueryBuilder, results: RawResults, model: type[SearchableModel]) -> list[SearchableModel]:
        """Map raw hits to records, preserving engine order.

        Args:
            builder: The builder that produced ``results``.
            results: Raw engine results.
            model: The domain model type to materialize.

        Returns:
            Records for every hit that resolves to one, in hit order.
        """
        return list(self.lazy_map(builder, results, model))

    def lazy_map(
        self, builder: QueryBuilder, results: RawResults, model: type[SearchableModel]
    ) -> Iterator[SearchableModel]:
        """Generator form of :meth:`map`; the datastore is queried on first iteration."""
        if not results.hits:
            return

        key = model.get_scout_key_name()
        hits_by_id: dict[str, dict[str, Any]] = {}
        for hit in results.hits:
            if key in hit:
                hits_by_id.setdefault(str(hit[key]), hit)

        if model.datastore is None:
            for hit in hits_by_id.values():
                yield self._attach_metadata(model.from_search_hit(hit), hit)
            return

        positions = {object_id: index for index, object_id in enumerate(hits_by_id)}
        records = model.get_scout_models_by_ids(builder, [hits_by_id[i][key] for i in hits_by_id])
        matched = [record for record in records if str(record.get_scout_key()) in positions]

        if len(matched) < len(positions):
            logger.debug(
                "%d of %d %s hits had no matching record",
                len(positions) - len(matched),
                len(positions),
                model.__name__,
            )

        matched.sort(key=lambda record: positions[str(record.get_scout_key())])
        for record in matched:
            yield self._attach_metadata(record, hits_by_id[str(record.get_scout_key())])

    @staticmethod
    def _attach_metadata(record: SearchableModel, hit: dict[str, Any]) -> SearchableModel:
        for field, value in hit.items():
            if field.startswith("_"):
                record.with_scout_metadata(field, value)
        return record
