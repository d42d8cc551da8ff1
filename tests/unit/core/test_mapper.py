"""Tests for mapping raw engine hits to domain records."""

from __future__ import annotations

from catalog import Article, Product, RecordingEngine

from openscout.core.mapper import ResultMapper
from openscout.datastore.memory import InMemoryDatastore
from openscout.engines.base.engine import RawResults


def _raw(hits: list[dict]) -> RawResults:
    return RawResults(total_hits=len(hits), hits=hits, key_name="id")


class TestMap:
    def test_preserves_engine_order(self, store: InMemoryDatastore) -> None:
        records = ResultMapper().map(Product.search(), _raw([{"id": 5}, {"id": 2}, {"id": 9}]), Product)
        assert [r.id for r in records] == [5, 2, 9]

    def test_hits_without_record_are_dropped(self, store: InMemoryDatastore) -> None:
        records = ResultMapper().map(Product.search(), _raw([{"id": 99}, {"id": 1}, {"id": 100}]), Product)
        assert [r.id for r in records] == [1]

    def test_duplicate_hits_map_once(self, store: InMemoryDatastore) -> None:
        records = ResultMapper().map(Product.search(), _raw([{"id": 4}, {"id": 4}, {"id": 1}]), Product)
        assert [r.id for r in records] == [4, 1]

    def test_string_ids_match_integer_keys(self, store: InMemoryDatastore) -> None:
        records = ResultMapper().map(Product.search(), _raw([{"id": "7"}, {"id": "3"}]), Product)
        assert [r.id for r in records] == [7, 3]

    def test_hits_without_key_are_ignored(self, store: InMemoryDatastore) -> None:
        records = ResultMapper().map(Product.search(), _raw([{"name": "orphan"}, {"id": 2}]), Product)
        assert [r.id for r in records] == [2]

    def test_empty_hits(self, store: InMemoryDatastore) -> None:
        assert ResultMapper().map(Product.search(), _raw([]), Product) == []

    def test_query_callback_filters_records(self, store: InMemoryDatastore) -> None:
        builder = Product.search().modify_query(lambda q: q.where("brand", "globex"))
        records = ResultMapper().map(builder, _raw([{"id": i} for i in range(1, 7)]), Product)
        assert [r.id for r in records] == [2, 4, 6]

    def test_soft_deleted_records_resolve_when_kept_in_index(
        self, store: InMemoryDatastore, articles, settings
    ) -> None:
        settings.search.soft_delete = True
        records = ResultMapper().map(Article.search(), _raw([{"id": 3}, {"id": 1}]), Article)
        assert [r.id for r in records] == [3, 1]
        assert records[0].trashed()

    def test_soft_deleted_records_hidden_otherwise(self, store: InMemoryDatastore, articles) -> None:
        records = ResultMapper().map(Article.search(), _raw([{"id": 3}, {"id": 1}]), Article)
        assert [r.id for r in records] == [1]


class TestMetadata:
    def test_underscore_fields_become_metadata(self, store: InMemoryDatastore) -> None:
        hits = [{"id": 3, "_rankingScore": 0.92, "_formatted": {"name": "<em>Lamp</em> 3"}, "name": "Lamp 3"}]

        (record,) = ResultMapper().map(Product.search(), _raw(hits), Product)

        assert record.scout_metadata == {"_rankingScore": 0.92, "_formatted": {"name": "<em>Lamp</em> 3"}}

    def test_metadata_does_not_leak_into_stored_records(self, store: InMemoryDatastore) -> None:
        ResultMapper().map(Product.search(), _raw([{"id": 3, "_rankingScore": 0.5}]), Product)
        assert store.find(Product, 3).scout_metadata == {}


class TestWithoutDatastore:
    def test_records_hydrated_from_hits(self) -> None:
        hits = [
            {"id": 8, "name": "Chair 8", "price": 30, "_rankingScore": 0.3},
            {"id": 6, "name": "Lamp 6", "price": 40},
        ]

        records = ResultMapper().map(Product.search(), _raw(hits), Product)

        assert [(r.id, r.name, r.price) for r in records] == [(8, "Chair 8", 30.0), (6, "Lamp 6", 40.0)]
        assert records[0].scout_metadata == {"_rankingScore": 0.3}


class TestLazyMap:
    def test_yields_in_engine_order(self, store: InMemoryDatastore) -> None:
        iterator = ResultMapper().lazy_map(Product.search(), _raw([{"id": 12}, {"id": 1}]), Product)
        assert next(iterator).id == 12
        assert next(iterator).id == 1

    def test_cursor_uses_lazy_map(self, store: InMemoryDatastore) -> None:
        Product.search_engine = RecordingEngine([{"id": 2}, {"id": 1}])
        cursor = Product.search().cursor()
        assert [r.id for r in cursor] == [2, 1]
        assert list(cursor) == []


class TestAfterRawSearchCallback:
    def test_no_callback_returns_results(self, store: InMemoryDatastore) -> None:
        raw = _raw([{"id": 1}])
        assert ResultMapper().apply_after_raw_search_callback(Product.search(), raw) is raw

    def test_replacement_is_used(self, store: InMemoryDatastore) -> None:
        replacement = _raw([{"id": 2}])
        builder = Product.search().with_raw_results(lambda raw: replacement)
        assert ResultMapper().apply_after_raw_search_callback(builder, _raw([{"id": 1}])) is replacement

    def test_falsy_return_keeps_original(self, store: InMemoryDatastore) -> None:
        seen = []
        raw = _raw([{"id": 1}])
        builder = Product.search().with_raw_results(seen.append)

        assert ResultMapper().apply_after_raw_search_callback(builder, raw) is raw
        assert seen == [raw]
