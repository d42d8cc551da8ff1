"""Null engine."""

from openscout.engines.null.engine import NullEngine

__all__ = ["NullEngine"]
