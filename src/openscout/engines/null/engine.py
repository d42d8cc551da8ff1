"""Null engine — Disables search: every query matches nothing."""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

from openscout.engines.base.engine import RawResults, SearchEngine

if TYPE_CHECKING:
    from openscout.core.builder import QueryBuilder
    from openscout.models.searchable import SearchableModel


class NullEngine(SearchEngine):
    @property
    def name(self) -> str:
        return "null"

    def update(self, models: Sequence[SearchableModel]) -> None:
        pass

    def delete(self, models: Sequence[SearchableModel]) -> None:
        pass

    def flush(self, model: type[SearchableModel]) -> None:
        pass

    def search(self, builder: QueryBuilder) -> RawResults:
        return RawResults(key_name=builder.model.get_scout_key_name())

    def paginate(self, builder: QueryBuilder, per_page: int, page: int) -> RawResults:
        return RawResults(key_name=builder.model.get_scout_key_name())

    def get_total_count(self, results: RawResults) -> int:
        return 0
