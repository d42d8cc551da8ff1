"""Tests for the in-memory datastore and its record queries."""

from __future__ import annotations

import pytest
from catalog import Article, Product

from openscout.datastore.memory import InMemoryDatastore
from openscout.datastore.query import field_value, sort_records
from openscout.engines.base.exceptions import ConfigurationError
from openscout.models.query import OrderClause


def _ids(records) -> list[int]:
    return [r.id for r in records]


class TestInMemoryDatastore:
    def test_save_and_find(self, store: InMemoryDatastore) -> None:
        record = store.find(Product, 4)
        assert record.name == "Chair 4"
        assert store.find(Product, "4").id == 4
        assert store.find(Product, 404) is None

    def test_save_replaces_by_key(self, store: InMemoryDatastore) -> None:
        store.save([Product(id=4, name="Armchair 4")])
        assert store.find(Product, 4).name == "Armchair 4"
        assert len(store.all(Product)) == 15

    def test_find_returns_copies(self, store: InMemoryDatastore) -> None:
        store.find(Product, 1).name = "changed"
        assert store.find(Product, 1).name == "Chair 1"

    def test_save_stores_copies(self, store: InMemoryDatastore) -> None:
        record = Product(id=40, name="Stool 40")
        store.save([record])

        record.name = "changed"

        assert store.find(Product, 40).name == "Stool 40"

    def test_tables_are_per_model(self, store: InMemoryDatastore) -> None:
        assert store.all(Article) == []
        assert store.query(Article).count() == 0

    def test_hard_delete(self, store: InMemoryDatastore) -> None:
        store.delete(store.find(Product, 2))
        assert store.find(Product, 2) is None

    def test_soft_delete_and_restore(self, store: InMemoryDatastore, articles) -> None:
        assert store.find(Article, 3).trashed()

        store.restore(articles[2])

        assert not store.find(Article, 3).trashed()

    def test_force_delete(self, store: InMemoryDatastore, articles) -> None:
        store.delete(articles[0], force=True)
        assert store.find(Article, 1) is None

    def test_delete_missing_record_is_noop(self, store: InMemoryDatastore) -> None:
        store.delete(Product(id=404, name="Ghost"))
        assert len(store.all(Product)) == 15

    def test_truncate(self, store: InMemoryDatastore) -> None:
        store.truncate(Product)
        assert store.all(Product) == []

    def test_model_without_datastore(self) -> None:
        with pytest.raises(ConfigurationError, match="No datastore bound to model Product"):
            Product.new_query()


class TestModelQuery:
    def test_constraints(self, store: InMemoryDatastore) -> None:
        query = (
            store.query(Product)
            .where("active", True)
            .where_in("brand", ["acme"])
            .where_not_in("id", [1])
            .order_by("price", "desc")
        )
        assert _ids(query.get()) == [9, 7, 3, 5, 11]

    def test_where_key_in_compares_as_strings(self, store: InMemoryDatastore) -> None:
        assert _ids(store.query(Product).where_key_in(["3", 5]).order_by("id").get()) == [3, 5]

    def test_search(self, store: InMemoryDatastore) -> None:
        query = store.query(Product).search("  WARM ", ["description"]).order_by("id")
        assert _ids(query.get()) == [3, 6, 9, 12]
        assert store.query(Product).search("", ["name"]).count() == 15

    def test_limit_and_offset(self, store: InMemoryDatastore) -> None:
        query = store.query(Product).order_by("id").offset(3).limit(2)
        assert _ids(query.get()) == [4, 5]
        assert query.count() == 2
        assert query.count_for_pagination() == 15

    def test_first_and_exists(self, store: InMemoryDatastore) -> None:
        query = store.query(Product).where("brand", "globex").order_by("price")
        assert query.first().id == 12
        assert query.exists()
        assert not store.query(Product).where("brand", "initech").exists()

    def test_clone_is_independent(self, store: InMemoryDatastore) -> None:
        query = store.query(Product).where("active", False)
        clone = query.clone().where("id", 13)
        assert query.count() == 3
        assert clone.count() == 1

    def test_trashed_modes(self, store: InMemoryDatastore, articles) -> None:
        assert _ids(store.query(Article).order_by("id").get()) == [1, 2, 4]
        assert _ids(store.query(Article).with_trashed().order_by("id").get()) == [1, 2, 3, 4]
        assert _ids(store.query(Article).only_trashed().get()) == [3]
        assert _ids(store.query(Article).with_trashed().without_trashed().order_by("id").get()) == [1, 2, 4]

    def test_paginate(self, store: InMemoryDatastore) -> None:
        page = store.query(Product).where("active", True).order_by("id").paginate(per_page=5, page=2)
        assert _ids(page.items) == [6, 7, 8, 9, 10]
        assert page.total == 12
        assert page.has_more is True

    def test_simple_paginate(self, store: InMemoryDatastore) -> None:
        query = store.query(Product).where("active", True).order_by("id")
        assert query.simple_paginate(per_page=5, page=2).has_more is True
        last = query.simple_paginate(per_page=5, page=3)
        assert _ids(last.items) == [11, 12]
        assert last.has_more is False

    def test_paginate_defaults_to_model_page_size(self, store: InMemoryDatastore) -> None:
        assert store.query(Product).paginate().per_page == 10


class TestSortRecords:
    def test_multi_key_sort_is_stable(self) -> None:
        rows = [{"k": 2, "v": "b"}, {"k": 1, "v": "b"}, {"k": 3, "v": "a"}]
        ordered = sort_records(rows, [OrderClause("v", "asc"), OrderClause("k", "desc")])
        assert [row["k"] for row in ordered] == [3, 2, 1]

    def test_none_sorts_last_ascending(self) -> None:
        rows = [{"v": None}, {"v": 2}, {"v": 1}]
        assert [row["v"] for row in sort_records(rows, [OrderClause("v", "asc")])] == [1, 2, None]

    def test_field_value_reads_dicts_and_attributes(self, store: InMemoryDatastore) -> None:
        assert field_value({"name": "x"}, "name") == "x"
        assert field_value(store.find(Product, 1), "name") == "Chair 1"
        assert field_value({}, "missing") is None
