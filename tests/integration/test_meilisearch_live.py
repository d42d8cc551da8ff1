"""Integration tests for MeiliSearchEngine against a real MeiliSearch instance."""

from __future__ import annotations

import time
from collections.abc import Iterator

import httpx
import pytest
from catalog import Product

from openscout.config.settings import Settings
from openscout.datastore.memory import InMemoryDatastore
from openscout.engines.meilisearch.engine import MeiliSearchEngine

pytestmark = [pytest.mark.integration]


def wait_for_tasks(client: httpx.Client, timeout: float = 30.0) -> None:
    """Block until MeiliSearch has processed every enqueued task."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        pending = client.get("/tasks", params={"statuses": "enqueued,processing"}).json()
        if not pending.get("results"):
            return
        time.sleep(0.2)


@pytest.fixture
def meili(
    meilisearch_ready: str, meilisearch_key: str, store: InMemoryDatastore, settings: Settings
) -> Iterator[MeiliSearchEngine]:
    settings.search.prefix = "openscout_it_"
    engine = MeiliSearchEngine(host=meilisearch_ready, key=meilisearch_key)
    Product.search_engine = engine

    index = Product.searchable_as()
    engine.delete_index(index)
    wait_for_tasks(engine.client)
    engine.create_index(index, {"primaryKey": "id"})
    engine.client.patch(
        f"/indexes/{index}/settings",
        json={
            "filterableAttributes": ["active", "brand", "id"],
            "sortableAttributes": ["price", "id"],
            "searchableAttributes": ["name", "description"],
        },
    )
    Product.make_all_searchable()
    wait_for_tasks(engine.client)

    yield engine

    engine.delete_index(index)
    engine.close()


class TestMeiliSearchHealth:
    def test_health_check_returns_healthy(self, meili: MeiliSearchEngine) -> None:
        health = meili.health_check()
        assert health.status == "healthy"
        assert health.latency_ms >= 0


class TestMeiliSearchSearch:
    def test_search_maps_records(self, meili: MeiliSearchEngine) -> None:
        records = Product.search("lamp").where("active", True).get()
        assert {r.id for r in records} == {3, 6, 9, 12}

    def test_filters_and_sort(self, meili: MeiliSearchEngine) -> None:
        builder = Product.search().where_in("brand", ["globex"]).where_not_in("id", [2]).order_by("price").take(3)
        assert builder.keys() == [12, 8, 6]

    def test_paginate(self, meili: MeiliSearchEngine) -> None:
        page = Product.search("chair").order_by("id").paginate(per_page=3, page=2)
        assert page.total == 8
        assert [r.id for r in page.items] == [5, 7, 8]
        assert page.has_more is True

    def test_query_callback_reconciles_total(self, meili: MeiliSearchEngine) -> None:
        page = Product.search("chair").modify_query(lambda q: q.where("brand", "globex")).paginate(per_page=2)
        assert page.total == 4

    def test_ranking_score_metadata(self, meili: MeiliSearchEngine) -> None:
        record = Product.search("warm light").options(show_ranking_score=True).first()
        assert "_rankingScore" in record.scout_metadata

    def test_no_results_for_gibberish(self, meili: MeiliSearchEngine) -> None:
        assert Product.search("xyzzyspoon999qqq").raw().total_hits == 0


class TestMeiliSearchIndexing:
    def test_unsearchable_removes_document(self, meili: MeiliSearchEngine, store: InMemoryDatastore) -> None:
        store.find(Product, 3).unsearchable()
        wait_for_tasks(meili.client)
        assert 3 not in Product.search("lamp").keys()

    def test_flush(self, meili: MeiliSearchEngine) -> None:
        Product.remove_all_from_search()
        wait_for_tasks(meili.client)
        assert Product.search().raw().total_hits == 0
