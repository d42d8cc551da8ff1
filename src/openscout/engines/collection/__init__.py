"""Collection engine."""

from openscout.engines.collection.engine import CollectionEngine

__all__ = ["CollectionEngine"]
