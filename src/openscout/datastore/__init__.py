"""Primary datastore layer — Source of truth for searchable records."""

from openscout.datastore.base import Datastore
from openscout.datastore.memory import InMemoryDatastore
from openscout.datastore.query import ModelQuery

__all__ = ["Datastore", "InMemoryDatastore", "ModelQuery"]
