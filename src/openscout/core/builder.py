"""Query builder — Fluent search criteria over a searchable model.

The builder accumulates filters, ordering, limits and callbacks, then hands
itself to the model's engine for execution:

  Model.search(query) → [chained criteria] → engine → raw results
                      → [after-raw callback] → ResultMapper → records / page

Configuration methods mutate the builder and return it. A builder belongs to
one caller; use :meth:`QueryBuilder.clone` to derive an independent query.
"""

from __future__ import annotations

import copy
import logging
from collections.abc import Callable, Iterable, Iterator, Mapping
from typing import TYPE_CHECKING, Any

from openscout.core.pagination import resolve_current_page, resolve_current_path
from openscout.engines.base.engine import PaginatesModels, PaginatesModelsUsingDatabase
from openscout.engines.base.exceptions import ConfigurationError
from openscout.models.page import SearchResultPage, SimpleResultPage
from openscout.models.query import SOFT_DELETED_KEY, OrderClause, SearchOptions, normalize_direction

if TYPE_CHECKING:
    from openscout.engines.base.engine import RawResults, SearchEngine
    from openscout.models.searchable import SearchableModel

logger = logging.getLogger(__name__)


def _as_list(values: Any) -> Any:
    """Normalize array-likes to plain lists; anything else is passed through."""
    if isinstance(values, Mapping):
        return list(values.values())
    if isinstance(values, Iterable) and not isinstance(values, str | bytes):
        return list(values)
    return values


class QueryBuilder:
    """Search criteria for one model, executed by the model's engine.

    Attributes:
        model: The searchable model type.
        query: Full-text query string.
        callback: Engine-specific hook replacing the engine's default request.
        query_callback: Refines the primary-datastore query used to load records.
        after_raw_search_callback: Inspects or replaces raw engine results.
        index: Custom index name (defaults to ``model.searchable_as()``).
        wheres: Equality filters, one value per field.
        where_ins: Inclusion filters, one list per field.
        where_not_ins: Exclusion filters, one list per field.
        limit: Maximum number of results for non-paginated execution.
        orders: Ordered ``(column, direction)`` clauses.
        engine_options: Recognized engine options.
    """

    def __init__(
        self,
        model: type[SearchableModel],
        query: str = "",
        callback: Callable[..., Any] | None = None,
        soft_delete: bool = False,
    ) -> None:
        self.model = model
        self.query = query
        self.callback = callback
        self.query_callback: Callable[[Any], Any] | None = None
        self.after_raw_search_callback: Callable[[Any], Any] | None = None
        self.index: str | None = None
        self.wheres: dict[str, Any] = {}
        self.where_ins: dict[str, Any] = {}
        self.where_not_ins: dict[str, Any] = {}
        self.limit: int | None = None
        self.orders: list[OrderClause] = []
        self.engine_options = SearchOptions()

        if soft_delete:
            self.wheres[SOFT_DELETED_KEY] = 0

    def __repr__(self) -> str:
        model = self.model.__name__ if self.model is not None else None
        return f"<QueryBuilder model={model} query={self.query!r} wheres={self.wheres} limit={self.limit}>"

    # ── Criteria ─────────────────────────────────────────────────────────

    def within(self, index: str) -> QueryBuilder:
        """Search a custom index instead of the model's default one."""
        self.index = index
        return self

    def where(self, field: str, value: Any) -> QueryBuilder:
        self.wheres[field] = value
        return self

    def where_in(self, field: str, values: Any) -> QueryBuilder:
        self.where_ins[field] = _as_list(values)
        return self

    def where_not_in(self, field: str, values: Any) -> QueryBuilder:
        self.where_not_ins[field] = _as_list(values)
        return self

    def with_trashed(self) -> QueryBuilder:
        """Include soft-deleted records."""
        self.wheres.pop(SOFT_DELETED_KEY, None)
        return self

    def only_trashed(self) -> QueryBuilder:
        """Return soft-deleted records only."""
        self.with_trashed()
        self.wheres[SOFT_DELETED_KEY] = 1
        return self

    def take(self, limit: int | None) -> QueryBuilder:
        self.limit = limit
        return self

    def order_by(self, column: str, direction: str = "asc") -> QueryBuilder:
        """Append an ordering; any direction other than "asc" sorts descending."""
        self.orders.append(OrderClause(column, normalize_direction(direction)))
        return self

    def order_by_desc(self, column: str) -> QueryBuilder:
        return self.order_by(column, "desc")

    def latest(self, column: str | None = None) -> QueryBuilder:
        """Newest first, by ``column`` or the model's created-at column."""
        return self.order_by(column or self.model.get_created_at_column() or "created_at", "desc")

    def oldest(self, column: str | None = None) -> QueryBuilder:
        """Oldest first, by ``column`` or the model's created-at column."""
        return self.order_by(column or self.model.get_created_at_column() or "created_at", "asc")

    def options(self, options: SearchOptions | Mapping[str, Any] | None = None, **kwargs: Any) -> QueryBuilder:
        """Replace the engine options.

        Accepts a ``SearchOptions`` instance, a mapping, or keyword arguments
        (snake_case or the engine's camelCase names). Unknown keys raise a
        pydantic ``ValidationError``.
        """
        if isinstance(options, SearchOptions):
            options = options.model_dump(exclude_none=True)
        self.engine_options = SearchOptions.model_validate({**dict(options or {}), **kwargs})
        return self

    def modify_query(self, callback: Callable[[Any], Any]) -> QueryBuilder:
        """Refine the primary-datastore query that loads matched records.

        The callback receives a ``ModelQuery`` and may mutate it or return a
        replacement.
        """
        self.query_callback = callback
        return self

    def with_raw_results(self, callback: Callable[[Any], Any]) -> QueryBuilder:
        """Inspect or replace raw engine results before they are mapped."""
        self.after_raw_search_callback = callback
        return self

    # ── Composition helpers ──────────────────────────────────────────────

    def when(
        self,
        value: Any,
        callback: Callable[[QueryBuilder, Any], Any],
        default: Callable[[QueryBuilder, Any], Any] | None = None,
    ) -> QueryBuilder:
        """Apply ``callback`` when ``value`` (or ``value(self)``) is truthy, else ``default``."""
        value = value(self) if callable(value) else value
        if value:
            return callback(self, value) or self
        if default is not None:
            return default(self, value) or self
        return self

    def unless(
        self,
        value: Any,
        callback: Callable[[QueryBuilder, Any], Any],
        default: Callable[[QueryBuilder, Any], Any] | None = None,
    ) -> QueryBuilder:
        """Apply ``callback`` when ``value`` (or ``value(self)``) is falsy, else ``default``."""
        value = value(self) if callable(value) else value
        if not value:
            return callback(self, value) or self
        if default is not None:
            return default(self, value) or self
        return self

    def tap(self, callback: Callable[[QueryBuilder], Any]) -> QueryBuilder:
        callback(self)
        return self

    def clone(self) -> QueryBuilder:
        """An independent copy; changing it never affects this builder."""
        cloned = copy.copy(self)
        cloned.wheres = dict(self.wheres)
        cloned.where_ins = {field: _as_list(values) for field, values in self.where_ins.items()}
        cloned.where_not_ins = {field: _as_list(values) for field, values in self.where_not_ins.items()}
        cloned.orders = list(self.orders)
        cloned.engine_options = self.engine_options.model_copy(deep=True)
        return cloned

    # ── Execution ────────────────────────────────────────────────────────

    def raw(self) -> RawResults:
        """Raw engine results, unmapped."""
        return self.engine().search(self)

    def keys(self) -> list[Any]:
        """Identifiers of the matching records, in engine order."""
        return self.engine().keys(self)

    def get(self) -> list[SearchableModel]:
        return self.engine().get(self)

    def first(self) -> SearchableModel | None:
        records = self.get()
        return records[0] if records else None

    def cursor(self) -> Iterator[SearchableModel]:
        """Lazily mapped records; the iterator can be consumed once."""
        return self.engine().cursor(self)

    def simple_paginate(
        self, per_page: int | None = None, page_name: str = "page", page: int | None = None
    ) -> SimpleResultPage:
        """Page of records that only knows whether a next page exists."""
        engine = self.engine()
        delegated = self._delegated_page(engine, per_page, page_name, page, simple=True)
        if delegated is not None:
            return delegated

        page, per_page = self._resolve_page(page_name, page, per_page)
        raw = engine.paginate(self, per_page, page)
        items = engine.map(self, self.apply_after_raw_search_callback(raw), self.model)

        result = SimpleResultPage(
            items=items,
            per_page=per_page,
            current_page=page,
            path=resolve_current_path(),
            page_name=page_name,
            has_more=per_page * page < engine.get_total_count(raw),
        )
        return result.appends("query", self.query)

    def simple_paginate_raw(
        self, per_page: int | None = None, page_name: str = "page", page: int | None = None
    ) -> SimpleResultPage:
        """Like :meth:`simple_paginate`, with raw hits as items."""
        engine = self.engine()
        delegated = self._delegated_page(engine, per_page, page_name, page, simple=True)
        if delegated is not None:
            return delegated

        page, per_page = self._resolve_page(page_name, page, per_page)
        raw = self.apply_after_raw_search_callback(engine.paginate(self, per_page, page))

        result = SimpleResultPage(
            items=raw.hits,
            per_page=per_page,
            current_page=page,
            path=resolve_current_path(),
            page_name=page_name,
            has_more=per_page * page < engine.get_total_count(raw),
        )
        return result.appends("query", self.query)

    def paginate(
        self, per_page: int | None = None, page_name: str = "page", page: int | None = None
    ) -> SearchResultPage:
        """Length-aware page of records."""
        engine = self.engine()
        delegated = self._delegated_page(engine, per_page, page_name, page, simple=False)
        if delegated is not None:
            return delegated

        page, per_page = self._resolve_page(page_name, page, per_page)
        raw = engine.paginate(self, per_page, page)
        items = engine.map(self, self.apply_after_raw_search_callback(raw), self.model)

        result = SearchResultPage(
            items=items,
            total=self.get_total_count(raw),
            per_page=per_page,
            current_page=page,
            path=resolve_current_path(),
            page_name=page_name,
        )
        return result.appends("query", self.query)

    def paginate_raw(
        self, per_page: int | None = None, page_name: str = "page", page: int | None = None
    ) -> SearchResultPage:
        """Like :meth:`paginate`, with raw hits as items."""
        engine = self.engine()
        delegated = self._delegated_page(engine, per_page, page_name, page, simple=False)
        if delegated is not None:
            return delegated

        page, per_page = self._resolve_page(page_name, page, per_page)
        raw = self.apply_after_raw_search_callback(engine.paginate(self, per_page, page))

        result = SearchResultPage(
            items=raw.hits,
            total=self.get_total_count(raw),
            per_page=per_page,
            current_page=page,
            path=resolve_current_path(),
            page_name=page_name,
        )
        return result.appends("query", self.query)

    def get_total_count(self, results: RawResults) -> int:
        """Total number of matches for ``results``.

        Without a query callback the engine's count is authoritative. With
        one, the callback may drop records the engine counted, so the count
        is taken from the primary datastore over every matching identifier,
        fetching the remaining identifiers from the engine when the page
        holds fewer than the engine's total.
        """
        engine = self.engine()
        total = engine.get_total_count(results)

        if self.query_callback is None:
            return total

        ids = engine.map_ids_from(results, self.model.get_scout_key_name())

        if len(ids) < total:
            limit = total if self.limit is None else min(self.limit, total)
            ids = engine.keys(self.clone().take(limit))

        count = self.model.query_scout_models_by_ids(self, ids).count_for_pagination()
        logger.debug("Reconciled %s count: engine=%d datastore=%d", self.model.__name__, total, count)
        return count

    def apply_after_raw_search_callback(self, results: Any) -> Any:
        """Run the after-raw callback; a falsy return keeps the original results."""
        return self.engine().mapper.apply_after_raw_search_callback(self, results)

    def engine(self) -> SearchEngine:
        """The engine executing this builder's model searches."""
        if self.model is None:
            raise ConfigurationError("QueryBuilder has no model set.")
        return self.model.searchable_using()

    # ── Internals ────────────────────────────────────────────────────────

    def _resolve_page(self, page_name: str, page: int | None, per_page: int | None) -> tuple[int, int]:
        return page or resolve_current_page(page_name), per_page or self.model.get_per_page()

    def _delegated_page(
        self,
        engine: SearchEngine,
        per_page: int | None,
        page_name: str,
        page: int | None,
        simple: bool,
    ) -> Any:
        """Let engines with a pagination capability build the page themselves."""
        if isinstance(engine, PaginatesModels):
            logger.debug("Engine %s paginates models directly", engine.name)
            if simple:
                result = engine.simple_paginate_models(self, per_page, page)
            else:
                result = engine.paginate_models(self, per_page, page)
        elif isinstance(engine, PaginatesModelsUsingDatabase):
            logger.debug("Engine %s paginates models using the database", engine.name)
            if simple:
                result = engine.simple_paginate_using_database(self, per_page, page_name, page)
            else:
                result = engine.paginate_using_database(self, per_page, page_name, page)
        else:
            return None
        return result.appends("query", self.query)
