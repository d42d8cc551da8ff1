"""Translate builder criteria into a primary-datastore query.

Shared by the engines that search the primary datastore instead of a
dedicated index (collection and database).
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from openscout.models.query import SOFT_DELETED_KEY

if TYPE_CHECKING:
    from openscout.core.builder import QueryBuilder
    from openscout.datastore.query import ModelQuery


def datastore_query_for(builder: QueryBuilder) -> ModelQuery:
    """Datastore query applying the builder's filters, trashed rule and ordering.

    A builder ``callback`` replaces the filter translation: it receives
    ``(query, builder, query_string)`` and returns the query to run (a falsy
    return keeps the query it was given). Without explicit orders, records
    are returned newest key first.
    """
    model = builder.model
    query = model.new_query()

    soft_deleted = builder.wheres.get(SOFT_DELETED_KEY)
    if soft_deleted == 0:
        query.without_trashed()
    elif soft_deleted == 1:
        query.only_trashed()
    elif model.uses_soft_delete():
        query.with_trashed()

    if builder.callback is not None:
        query = builder.callback(query, builder, builder.query) or query
    else:
        for field, value in builder.wheres.items():
            if field != SOFT_DELETED_KEY:
                query.where(field, value)
        for field, values in builder.where_ins.items():
            query.where_in(field, values)
        for field, values in builder.where_not_ins.items():
            query.where_not_in(field, values)

    for column, direction in builder.orders:
        query.order_by(column, direction)
    if not builder.orders:
        query.order_by(model.get_scout_key_name(), "desc")

    return query
