"""MeiliSearch engine."""

from openscout.engines.meilisearch.engine import MeiliSearchEngine

__all__ = ["MeiliSearchEngine"]
