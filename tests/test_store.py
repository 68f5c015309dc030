import random
import threading

import pytest

from storefront.catalog.query import search
from storefront.catalog.store import CatalogStore, next_product_id
from storefront.errors import NotFound, ValidationFailed

from .conftest import make_product


NEW_PRODUCT = {
    "name": "Green Teapot",
    "description": "Ceramic teapot",
    "price": 40.0,
    "category": "Home",
    "brand": "BrandE",
}


def test_next_product_id_ignores_non_numeric_ids():
    assert next_product_id(["1", "7", "sku-99", "abc"]) == "8"
    assert next_product_id(["sku-1"]) == "1"
    assert next_product_id([]) == "1"


def test_create_assigns_id_and_defaults(catalog):
    product = catalog.create(NEW_PRODUCT)

    assert product.id == "6"
    assert product.stock == 0
    assert product.rating == 0
    assert product.tags == []
    assert product.cost_price == pytest.approx(28.0)
    assert product.supplier == "Unknown"
    assert product.internal_notes == ""
    assert product.admin_only is False
    assert product.created_at is not None


def test_create_keeps_given_restricted_fields(catalog):
    product = catalog.create({**NEW_PRODUCT, "cost_price": 12.5, "supplier": "Kiln Co"})

    assert product.cost_price == 12.5
    assert product.supplier == "Kiln Co"


def test_create_rebuilds_index(catalog):
    product = catalog.create(NEW_PRODUCT)

    assert search(catalog.index, "teapot") == frozenset({product.id})
    assert product.id in catalog.index.category_index["Home"]
    assert catalog.index.brand_index["BrandE"] == frozenset({product.id})


def test_create_with_missing_fields_fails_without_changing_state(catalog):
    before = catalog.index
    with pytest.raises(ValidationFailed):
        catalog.create({"name": "Nameless"})

    assert catalog.index is before
    assert len(catalog) == 5


def test_get_returns_product_or_not_found(catalog):
    assert catalog.get("3").name == "Blue Kettle"
    with pytest.raises(NotFound):
        catalog.get("999")


def test_get_rejects_malformed_id(catalog):
    with pytest.raises(ValidationFailed):
        catalog.get("1; DROP TABLE products")


def test_update_applies_allowed_fields_only(catalog):
    original = catalog.get("1")
    updated = catalog.update("1", {
        "name": "Red Boots",
        "stock": 12,
        "id": "42",
        "created_at": "2000-01-01T00:00:00Z",
        "rating": 5.0,
        "favourite": True,
    })

    assert updated.id == "1"
    assert updated.name == "Red Boots"
    assert updated.stock == 12
    assert updated.created_at == original.created_at
    assert updated.rating == original.rating
    assert catalog.get("1") == updated


def test_update_reindexes_text_and_category(catalog):
    catalog.update("1", {"name": "Blue Boots", "category": "Footwear"})

    assert "1" not in search(catalog.index, "shoes red")
    assert search(catalog.index, "boots") == frozenset({"1"})
    assert catalog.index.category_index["Footwear"] == frozenset({"1"})
    assert "1" not in catalog.index.category_index["Clothing"]


def test_update_does_not_touch_previous_snapshot(catalog):
    before = catalog.index
    catalog.update("2", {"price": 999.0})

    assert before.product_map["2"].price == 200.0
    assert catalog.index.product_map["2"].price == 999.0


def test_update_unknown_product(catalog):
    with pytest.raises(NotFound):
        catalog.update("999", {"name": "Ghost"})


def test_delete_removes_product_from_all_indices(catalog):
    catalog.delete("3")

    assert "3" not in catalog.index.product_map
    assert "kettle" not in catalog.index.inverted_index
    assert "3" not in catalog.index.category_index["Home"]
    assert "3" not in catalog.index.brand_index["BrandA"]
    with pytest.raises(NotFound):
        catalog.delete("3")


def test_ids_continue_after_delete_of_highest(catalog):
    catalog.delete("5")
    assert catalog.create(NEW_PRODUCT).id == "5"


def test_listeners_run_after_each_mutation(catalog):
    calls = []
    catalog.add_listener(lambda: calls.append(len(catalog)))

    product = catalog.create(NEW_PRODUCT)
    catalog.update(product.id, {"stock": 3})
    catalog.delete(product.id)

    assert calls == [6, 6, 5]


def test_failed_mutation_does_not_notify(catalog):
    calls = []
    catalog.add_listener(lambda: calls.append(True))

    with pytest.raises(NotFound):
        catalog.delete("999")
    assert calls == []


def test_list_preserves_catalog_order(catalog):
    assert [p.id for p in catalog.list()] == ["1", "2", "3", "4", "5"]


def test_price_of(catalog):
    assert catalog.price_of("2") == 200.0
    assert catalog.price_of("999") is None


def test_seed_generates_indexed_products():
    store = CatalogStore([make_product("sku-a", "Loose Item")])
    store.seed(50, random.Random(7))

    assert len(store) == 51
    ids = [p.id for p in store.list()]
    assert ids[1:] == [str(i) for i in range(1, 51)]
    assert search(store.index, "amazing features") == frozenset(ids[1:])
    for product in store.list()[1:]:
        assert product.category in store.index.category_index
        assert product.id in store.index.brand_index[product.brand]


def test_snapshot_generation_moves_on_every_mutation(catalog):
    first, index = catalog.snapshot()
    assert index is catalog.index

    catalog.create(NEW_PRODUCT)
    second, _ = catalog.snapshot()
    assert second == first + 1

    with pytest.raises(NotFound):
        catalog.delete("999")
    assert catalog.snapshot()[0] == second


def test_readers_see_consistent_snapshots_during_mutations(catalog):
    stop = threading.Event()
    failures = []

    def read():
        while not stop.is_set():
            index = catalog.index
            indexed = set()
            for ids in index.inverted_index.values():
                indexed |= ids
            categorized = set()
            for ids in index.category_index.values():
                categorized |= ids
            ids = set(index.product_map)
            if indexed != ids or categorized != ids or set(index.positions) != ids:
                failures.append(ids)

    readers = [threading.Thread(target=read) for _ in range(4)]
    for reader in readers:
        reader.start()
    try:
        for _ in range(200):
            product = catalog.create(NEW_PRODUCT)
            catalog.update(product.id, {"name": "Blue Teapot"})
            catalog.delete(product.id)
    finally:
        stop.set()
        for reader in readers:
            reader.join()

    assert failures == []
    assert len(catalog) == 5
