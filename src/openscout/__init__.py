"""OpenScout — Fluent full-text search over pluggable search engines."""

from openscout.core.builder import QueryBuilder
from openscout.core.mapper import ResultMapper
from openscout.core.pagination import request_context
from openscout.datastore import Datastore, InMemoryDatastore, ModelQuery
from openscout.engines.base import (
    PaginatesModels,
    PaginatesModelsUsingDatabase,
    RawResults,
    SearchEngine,
)
from openscout.engines.manager import EngineManager, get_engine_manager
from openscout.models.page import SearchResultPage, SimpleResultPage
from openscout.models.query import SearchOptions
from openscout.models.searchable import SearchableModel, SoftDeletableModel

__version__ = "0.1.0"

__all__ = [
    "Datastore",
    "EngineManager",
    "InMemoryDatastore",
    "ModelQuery",
    "PaginatesModels",
    "PaginatesModelsUsingDatabase",
    "QueryBuilder",
    "RawResults",
    "ResultMapper",
    "SearchEngine",
    "SearchOptions",
    "SearchResultPage",
    "SearchableModel",
    "SimpleResultPage",
    "SoftDeletableModel",
    "get_engine_manager",
    "request_context",
]
