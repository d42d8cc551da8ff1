"""Base engine interface — Abstract classes for search backends."""

from openscout.engines.base.engine import (
    EngineHealth,
    PaginatesModels,
    PaginatesModelsUsingDatabase,
    RawResults,
    SearchEngine,
)

__all__ = [
    "EngineHealth",
    "PaginatesModels",
    "PaginatesModelsUsingDatabase",
    "RawResults",
    "SearchEngine",
]
