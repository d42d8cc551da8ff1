"""Primary datastore interface.

The primary datastore is the source of truth for domain records. Search
engines return identifiers; the datastore turns them back into records,
applies query callbacks and produces authoritative counts.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from openscout.datastore.query import ModelQuery
    from openscout.models.searchable import SearchableModel


class Datastore(ABC):
    """Abstract base class for primary datastores."""

    @abstractmethod
    def query(self, model: type[SearchableModel]) -> ModelQuery:
        """Start a new query over the records of ``model``.

        Soft-deleted records are excluded unless the query asks for them.
        """

    @abstractmethod
    def save(self, records: Iterable[SearchableModel]) -> None:
        """Insert or replace records, keyed by their scout key."""

    @abstractmethod
    def delete(self, record: SearchableModel, force: bool = False) -> None:
        """Delete a record.

        Records of soft-deleting models are only marked as deleted unless
        ``force`` is set.
        """

    @abstractmethod
    def find(self, model: type[SearchableModel], key: Any) -> SearchableModel | None:
        """Look up a single record by key, including soft-deleted ones."""
