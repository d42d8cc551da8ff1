"""Shared test fixtures and configuration."""

from __future__ import annotations

from collections.abc import Iterator

import pytest
from catalog import Article, Product, make_products

from openscout.config.settings import Settings, set_settings
from openscout.core.pagination import set_current_page_resolver, set_current_path_resolver
from openscout.datastore.memory import InMemoryDatastore
from openscout.engines.collection.engine import CollectionEngine
from openscout.engines.manager import set_engine_manager


@pytest.fixture(autouse=True)
def settings() -> Iterator[Settings]:
    """Install test settings and reset every global binding afterwards."""
    test_settings = Settings(_env_file=None)  # type: ignore[call-arg]
    set_settings(test_settings)
    yield test_settings
    set_settings(None)
    set_engine_manager(None)
    set_current_page_resolver(None)
    set_current_path_resolver(None)
    for model in (Product, Article):
        model.search_engine = None
        model.datastore = None


@pytest.fixture
def store() -> InMemoryDatastore:
    """Datastore seeded with the product catalog, bound to ``Product`` and ``Article``."""
    datastore = InMemoryDatastore()
    datastore.save(make_products())
    Product.datastore = datastore
    Article.datastore = datastore
    return datastore


@pytest.fixture
def collection(store: InMemoryDatastore) -> CollectionEngine:
    """Collection engine bound to ``Product`` and ``Article``."""
    engine = CollectionEngine()
    Product.search_engine = engine
    Article.search_engine = engine
    return engine


@pytest.fixture
def articles(store: InMemoryDatastore) -> list[Article]:
    """Articles 1-4; article 3 is soft-deleted."""
    records = [Article(id=i, title=f"Release notes {i}") for i in range(1, 5)]
    store.save(records)
    store.delete(records[2])
    return records
