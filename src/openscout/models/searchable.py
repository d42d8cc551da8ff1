"""Searchable domain models.

Subclass ``SearchableModel`` to make a record type searchable::

    class Product(SearchableModel):
        search_index = "products"
        searchable_fields = ["name", "description"]

        id: int
        name: str
        description: str = ""
        price: float = 0.0

    Product.search("lamp").where("active", True).order_by("price", "desc").take(5).get()

The class attributes bind the model to its search engine and primary
datastore. Unbound models fall back to the engine manager's default engine;
a model with no datastore is hydrated straight from search hits.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Sequence
from datetime import datetime
from typing import TYPE_CHECKING, Any, ClassVar

from pydantic import BaseModel, PrivateAttr

from openscout.config.settings import get_settings
from openscout.engines.base.exceptions import ConfigurationError
from openscout.models.query import SOFT_DELETED_KEY

if TYPE_CHECKING:
    from openscout.core.builder import QueryBuilder
    from openscout.datastore.base import Datastore
    from openscout.datastore.query import ModelQuery
    from openscout.engines.base.engine import SearchEngine

logger = logging.getLogger(__name__)


def _default_index_name(model: type) -> str:
    snake = re.sub(r"(?<!^)(?=[A-Z])", "_", model.__name__).lower()
    return snake if snake.endswith("s") else f"{snake}s"


class SearchableModel(BaseModel):
    """Base class for records that can be indexed and searched."""

    search_engine: ClassVar[SearchEngine | None] = None
    datastore: ClassVar[Datastore | None] = None
    search_index: ClassVar[str | None] = None
    scout_key_name: ClassVar[str] = "id"
    searchable_fields: ClassVar[list[str] | None] = None
    per_page: ClassVar[int | None] = None
    created_at_column: ClassVar[str | None] = "created_at"
    soft_deletes: ClassVar[bool] = False

    _scout_metadata: dict[str, Any] = PrivateAttr(default_factory=dict)

    # ── Searching ────────────────────────────────────────────────────────

    @classmethod
    def search(cls, query: str = "", callback: Callable[..., Any] | None = None) -> QueryBuilder:
        """Start a search over this model.

        Args:
            query: Full-text query string.
            callback: Engine-specific hook invoked in place of the engine's
                default request (see each engine for its signature).
        """
        from openscout.core.builder import QueryBuilder

        return QueryBuilder(cls, query, callback=callback, soft_delete=cls.uses_soft_delete())

    @classmethod
    def searchable_using(cls) -> SearchEngine:
        """The engine this model is searched with."""
        if cls.search_engine is not None:
            return cls.search_engine

        from openscout.engines.manager import get_engine_manager

        return get_engine_manager().engine()

    @classmethod
    def searchable_as(cls) -> str:
        """Index name, with the configured prefix applied."""
        return f"{get_settings().search.prefix}{cls.search_index or _default_index_name(cls)}"

    @classmethod
    def get_scout_key_name(cls) -> str:
        return cls.scout_key_name

    def get_scout_key(self) -> Any:
        return getattr(self, self.get_scout_key_name())

    @classmethod
    def get_per_page(cls) -> int:
        return cls.per_page or get_settings().search.per_page

    @classmethod
    def get_created_at_column(cls) -> str | None:
        return cls.created_at_column

    @classmethod
    def get_searchable_fields(cls) -> list[str]:
        """Fields matched by the query string in the collection and database engines."""
        if cls.searchable_fields is not None:
            return list(cls.searchable_fields)
        return [name for name, info in cls.model_fields.items() if info.annotation in (str, str | None)]

    @classmethod
    def uses_soft_delete(cls) -> bool:
        """Whether soft-deleted records stay in the index, flagged with ``__soft_deleted``."""
        return cls.soft_deletes and get_settings().search.soft_delete

    def trashed(self) -> bool:
        return getattr(self, "deleted_at", None) is not None

    def to_searchable_array(self) -> dict[str, Any]:
        """The document indexed for this record."""
        document = self.model_dump(mode="json")
        if self.uses_soft_delete():
            document[SOFT_DELETED_KEY] = 1 if self.trashed() else 0
        return document

    @classmethod
    def from_search_hit(cls, hit: dict[str, Any]) -> SearchableModel:
        """Hydrate a record from an engine hit, ignoring underscore-prefixed engine fields."""
        return cls.model_validate({k: v for k, v in hit.items() if not k.startswith("_")})

    # ── Scout metadata ───────────────────────────────────────────────────

    @property
    def scout_metadata(self) -> dict[str, Any]:
        """Engine-provided metadata for this hit (ranking score, highlights, ...)."""
        return dict(self._scout_metadata)

    def with_scout_metadata(self, key: str, value: Any) -> SearchableModel:
        self._scout_metadata = {**self._scout_metadata, key: value}
        return self

    # ── Primary datastore ────────────────────────────────────────────────

    @classmethod
    def new_query(cls) -> ModelQuery:
        """A fresh datastore query over this model."""
        if cls.datastore is None:
            raise ConfigurationError(f"No datastore bound to model {cls.__name__}.")
        return cls.datastore.query(cls)

    @classmethod
    def query_scout_models_by_ids(cls, builder: QueryBuilder, ids: Sequence[Any]) -> ModelQuery:
        """Datastore query for the given ids, refined by the builder's query callback."""
        query = cls.new_query()
        if cls.uses_soft_delete():
            query.with_trashed()
        if builder.query_callback is not None:
            query = builder.query_callback(query) or query
        return query.where_key_in(ids)

    @classmethod
    def get_scout_models_by_ids(cls, builder: QueryBuilder, ids: Sequence[Any]) -> list[SearchableModel]:
        return cls.query_scout_models_by_ids(builder, ids).get()

    # ── Indexing ─────────────────────────────────────────────────────────

    def searchable(self) -> None:
        """Add or update this record in the index."""
        self.searchable_using().update([self])

    def unsearchable(self) -> None:
        """Remove this record from the index."""
        self.searchable_using().delete([self])

    @classmethod
    def make_all_searchable(cls, chunk_size: int = 500) -> int:
        """Index every datastore record of this model, in chunks.

        Returns:
            Number of records indexed.
        """
        query = cls.new_query()
        if cls.uses_soft_delete():
            query.with_trashed()
        records = query.order_by(cls.get_scout_key_name()).get()
        engine = cls.searchable_using()
        for start in range(0, len(records), chunk_size):
            engine.update(records[start : start + chunk_size])
        logger.info("Imported %d %s records into %s", len(records), cls.__name__, cls.searchable_as())
        return len(records)

    @classmethod
    def remove_all_from_search(cls) -> None:
        cls.searchable_using().flush(cls)


class SoftDeletableModel(SearchableModel):
    """Searchable model whose deletions only mark ``deleted_at``."""

    soft_deletes: ClassVar[bool] = True

    deleted_at: datetime | None = None
