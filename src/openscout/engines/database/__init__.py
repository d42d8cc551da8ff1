"""Database engine."""

from openscout.engines.database.engine import DatabaseEngine

__all__ = ["DatabaseEngine"]
