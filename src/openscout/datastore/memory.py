"""In-memory primary datastore.

Records are stored per model type, keyed by the string form of their scout
key. Useful for tests, demos and the CLI, and as the reference behaviour
for real datastore integrations.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from openscout.datastore.base import Datastore
from openscout.datastore.query import ModelQuery

if TYPE_CHECKING:
    from openscout.models.searchable import SearchableModel

logger = logging.getLogger(__name__)


class InMemoryDatastore(Datastore):
    """Dictionary-backed datastore.

    Example:
        >>> store = InMemoryDatastore()
        >>> Product.datastore = store
        >>> store.save([Product(id=1, name="Desk lamp", price=30)])
        >>> store.query(Product).where("price", 30).count()
        1
    """

    def __init__(self) -> None:
        self._tables: dict[type, dict[str, SearchableModel]] = {}

    def _table(self, model: type[SearchableModel]) -> dict[str, SearchableModel]:
        return self._tables.setdefault(model, {})

    def query(self, model: type[SearchableModel]) -> ModelQuery:
        return ModelQuery(model, lambda: list(self._table(model).values()))

    def save(self, records: Iterable[SearchableModel]) -> None:
        count = 0
        for record in records:
            self._table(type(record))[str(record.get_scout_key())] = record.model_copy()
            count += 1
        logger.debug("Saved %d records", count)

    def delete(self, record: SearchableModel, force: bool = False) -> None:
        table = self._table(type(record))
        key = str(record.get_scout_key())
        if key not in table:
            return
        if record.soft_deletes and not force:
            table[key] = table[key].model_copy(update={"deleted_at": datetime.now(UTC)})
        else:
            del table[key]

    def restore(self, record: SearchableModel) -> None:
        """Clear the soft-delete mark of a record."""
        table = self._table(type(record))
        key = str(record.get_scout_key())
        if key in table:
            table[key] = table[key].model_copy(update={"deleted_at": None})

    def find(self, model: type[SearchableModel], key: Any) -> SearchableModel | None:
        record = self._table(model).get(str(key))
        return record.model_copy() if record is not None else None

    def all(self, model: type[SearchableModel]) -> list[SearchableModel]:
        """Every stored record of ``model``, soft-deleted ones included."""
        return [record.model_copy() for record in self._table(model).values()]

    def truncate(self, model: type[SearchableModel]) -> None:
        self._table(model).clear()
