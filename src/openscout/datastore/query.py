"""Chainable record query over a primary datastore."""

from __future__ import annotations

import copy
from collections.abc import Callable, Iterable
from typing import TYPE_CHECKING, Any, Literal

from openscout.core.pagination import resolve_current_page, resolve_current_path
from openscout.models.page import SearchResultPage, SimpleResultPage
from openscout.models.query import OrderClause, normalize_direction

if TYPE_CHECKING:
    from openscout.models.searchable import SearchableModel

TrashedMode = Literal["exclude", "include", "only"]


def field_value(record: Any, field: str) -> Any:
    """Read ``field`` from a record or a plain dict; missing fields read as ``None``."""
    if isinstance(record, dict):
        return record.get(field)
    return getattr(record, field, None)


def sort_records(records: list[Any], orders: Iterable[OrderClause]) -> list[Any]:
    """Stable multi-column sort; ``None`` values sort last in ascending order."""
    for column, direction in reversed(list(orders)):
        records.sort(
            key=lambda r, c=column: (field_value(r, c) is None, field_value(r, c)),
            reverse=direction == "desc",
        )
    return records


class ModelQuery:
    """A mutable query over the records of one model type.

    Constraint methods return the query itself so they can be chained::

        store.query(Product).where("active", True).order_by("price", "desc").limit(5).get()

    Args:
        model: The model type being queried.
        source: Callable returning every stored record of ``model``.
    """

    def __init__(self, model: type[SearchableModel], source: Callable[[], Iterable[SearchableModel]]) -> None:
        self.model = model
        self._source = source
        self._predicates: list[Callable[[Any], bool]] = []
        self._orders: list[OrderClause] = []
        self._limit: int | None = None
        self._offset = 0
        self._trashed: TrashedMode = "exclude" if model.soft_deletes else "include"

    # ── Constraints ──────────────────────────────────────────────────────

    def where(self, field: str, value: Any) -> ModelQuery:
        self._predicates.append(lambda r: field_value(r, field) == value)
        return self

    def where_in(self, field: str, values: Iterable[Any]) -> ModelQuery:
        allowed = list(values)
        self._predicates.append(lambda r: field_value(r, field) in allowed)
        return self

    def where_not_in(self, field: str, values: Iterable[Any]) -> ModelQuery:
        excluded = list(values)
        self._predicates.append(lambda r: field_value(r, field) not in excluded)
        return self

    def where_key_in(self, keys: Iterable[Any]) -> ModelQuery:
        """Constrain to records whose scout key is in ``keys`` (compared as strings)."""
        wanted = {str(key) for key in keys}
        self._predicates.append(lambda r: str(r.get_scout_key()) in wanted)
        return self

    def filter(self, predicate: Callable[[Any], bool]) -> ModelQuery:
        """Constrain with an arbitrary predicate over records."""
        self._predicates.append(predicate)
        return self

    def search(self, term: str, fields: Iterable[str]) -> ModelQuery:
        """Case-insensitive substring match of ``term`` against any of ``fields``."""
        needle = term.strip().lower()
        if not needle:
            return self
        columns = list(fields)
        self._predicates.append(
            lambda r: any(
                needle in str(value).lower() for value in (field_value(r, f) for f in columns) if value is not None
            )
        )
        return self

    def order_by(self, column: str, direction: str = "asc") -> ModelQuery:
        self._orders.append(OrderClause(column, normalize_direction(direction)))
        return self

    def limit(self, value: int | None) -> ModelQuery:
        self._limit = value
        return self

    def offset(self, value: int) -> ModelQuery:
        self._offset = max(value, 0)
        return self

    def with_trashed(self) -> ModelQuery:
        self._trashed = "include"
        return self

    def without_trashed(self) -> ModelQuery:
        self._trashed = "exclude"
        return self

    def only_trashed(self) -> ModelQuery:
        self._trashed = "only"
        return self

    def clone(self) -> ModelQuery:
        cloned = copy.copy(self)
        cloned._predicates = list(self._predicates)
        cloned._orders = list(self._orders)
        return cloned

    # ── Execution ────────────────────────────────────────────────────────

    def _matching(self) -> list[SearchableModel]:
        records = []
        for record in self._source():
            trashed = record.trashed()
            if (self._trashed == "exclude" and trashed) or (self._trashed == "only" and not trashed):
                continue
            if all(predicate(record) for predicate in self._predicates):
                records.append(record)
        return sort_records(records, self._orders)

    def get(self) -> list[SearchableModel]:
        """Matching records (as copies), ordered, offset and limited."""
        records = self._matching()[self._offset :]
        if self._limit is not None:
            records = records[: self._limit]
        return [record.model_copy() for record in records]

    def first(self) -> SearchableModel | None:
        records = self.clone().limit(1).get()
        return records[0] if records else None

    def count(self) -> int:
        """Number of records :meth:`get` would return."""
        return len(self.get())

    def count_for_pagination(self) -> int:
        """Number of matching records, ignoring limit and offset."""
        return len(self._matching())

    def exists(self) -> bool:
        return self.count_for_pagination() > 0

    def paginate(
        self, per_page: int | None = None, page_name: str = "page", page: int | None = None
    ) -> SearchResultPage:
        """Length-aware page of matching records."""
        per_page = per_page or self.model.get_per_page()
        page = page or resolve_current_page(page_name)
        total = self.count_for_pagination()
        items = self.clone().offset((page - 1) * per_page).limit(per_page).get()
        return SearchResultPage(
            items=items,
            total=total,
            per_page=per_page,
            current_page=page,
            path=resolve_current_path(),
            page_name=page_name,
        )

    def simple_paginate(
        self, per_page: int | None = None, page_name: str = "page", page: int | None = None
    ) -> SimpleResultPage:
        """Page of matching records that only knows whether a next page exists."""
        per_page = per_page or self.model.get_per_page()
        page = page or resolve_current_page(page_name)
        items = self.clone().offset((page - 1) * per_page).limit(per_page + 1).get()
        return SimpleResultPage(
            items=items[:per_page],
            per_page=per_page,
            current_page=page,
            path=resolve_current_path(),
            page_name=page_name,
            has_more=len(items) > per_page,
        )
