import threading

import pytest

from storefront.cart import calculator
from storefront.cart.schemas import Cart
from storefront.cart.service import CartService
from storefront.errors import InvalidProduct, MaxQuantityExceeded, NotFound, ValidationFailed

PRICES = {"1": 100.0, "2": 200.0, "3": 150.0}


@pytest.fixture
def carts(catalog):
    return CartService(catalog)


def test_compute_total_treats_missing_prices_as_zero():
    cart = Cart()
    calculator.upsert_item(cart, "1", 2)
    calculator.upsert_item(cart, "gone", 4)

    assert calculator.compute_total(cart.items, PRICES.get) == 200.0


def test_mutations_mark_cart_stale_and_read_clears_it():
    cart = Cart()
    calculator.upsert_item(cart, "1", 1)
    assert cart.stale is True
    assert cart.total == 0.0

    assert calculator.refresh_total(cart, PRICES.get) == 100.0
    assert cart.stale is False


def test_refresh_total_skips_work_when_fresh():
    cart = Cart()
    calculator.upsert_item(cart, "1", 1)
    calculator.refresh_total(cart, PRICES.get)

    def exploding_lookup(product_id):
        raise AssertionError("total should not be recomputed")

    assert calculator.refresh_total(cart, exploding_lookup) == 100.0


def test_upsert_merges_lines_and_enforces_limit():
    cart = Cart()
    calculator.upsert_item(cart, "1", 3)
    calculator.upsert_item(cart, "1", 5)

    assert len(cart.items) == 1
    assert cart.items[0].quantity == 8

    with pytest.raises(MaxQuantityExceeded):
        calculator.upsert_item(cart, "1", 95)
    assert cart.items[0].quantity == 8


def test_upsert_allows_exactly_the_limit():
    cart = Cart()
    calculator.upsert_item(cart, "1", 60)
    calculator.upsert_item(cart, "1", 40)
    assert cart.items[0].quantity == 100


def test_set_item_overwrites_and_stamps_update():
    cart = Cart()
    calculator.upsert_item(cart, "1", 3)

    item = calculator.set_item(cart, "1", 7)
    assert item.quantity == 7
    assert item.updated_at is not None


def test_set_item_zero_removes_line():
    cart = Cart()
    calculator.upsert_item(cart, "1", 3)

    assert calculator.set_item(cart, "1", 0) is None
    assert cart.items == []


def test_set_and_remove_missing_line():
    cart = Cart()
    with pytest.raises(NotFound):
        calculator.set_item(cart, "1", 2)
    with pytest.raises(NotFound):
        calculator.remove_item(cart, "1")


@pytest.mark.parametrize("quantity", [-1, 101, 2.5, True, "3"])
def test_bad_quantities_are_rejected(quantity):
    cart = Cart()
    with pytest.raises(ValidationFailed):
        calculator.set_item(cart, "1", quantity)
    assert cart.stale is False


def test_service_add_items_scenario(carts):
    carts.add_item("u1", "1", 3)
    view, item = carts.add_item("u1", "1", 5)

    assert item.quantity == 8
    assert [(i.product_id, i.quantity) for i in view.items] == [("1", 8)]
    assert view.total == 100.0 * 8

    with pytest.raises(MaxQuantityExceeded):
        carts.add_item("u1", "1", 95)
    assert carts.get_cart("u1").items[0].quantity == 8


def test_service_rejects_unknown_product(carts):
    with pytest.raises(InvalidProduct):
        carts.add_item("u1", "999", 1)
    assert carts.get_cart("u1").items == []


def test_service_rejects_malformed_product_id(carts):
    with pytest.raises(ValidationFailed):
        carts.add_item("u1", "<script>", 1)


def test_carts_are_per_user(carts):
    carts.add_item("alice", "1", 1)
    carts.add_item("bob", "2", 2)

    assert carts.get_cart("alice").total == 100.0
    assert carts.get_cart("bob").total == 400.0


def test_new_cart_is_empty(carts):
    view = carts.get_cart("nobody")
    assert view.items == []
    assert view.total == 0.0
    assert view.item_count == 0


def test_total_is_cached_until_next_cart_change(carts, catalog):
    carts.add_item("u1", "1", 2)
    assert carts.get_cart("u1").total == 200.0

    catalog.update("1", {"price": 50.0})
    # Cached total survives the price change until the cart changes
    assert carts.get_cart("u1").total == 200.0

    carts.add_item("u1", "2", 1)
    assert carts.get_cart("u1").total == 50.0 * 2 + 200.0


def test_service_remove_returns_removed_line(carts):
    carts.add_item("u1", "1", 2)
    carts.add_item("u1", "3", 1)

    view, removed = carts.remove_item("u1", "1")
    assert removed.product_id == "1"
    assert removed.quantity == 2
    assert view.total == 150.0
    assert view.item_count == 1


def test_snapshot_is_detached_from_cart(carts):
    view, _ = carts.add_item("u1", "1", 2)
    view.items[0].quantity = 99

    assert carts.get_cart("u1").items[0].quantity == 2


def test_concurrent_adds_for_one_user_are_not_lost(carts):
    workers = 20
    barrier = threading.Barrier(workers)

    def add_one():
        barrier.wait()
        carts.add_item("u1", "1", 1)

    threads = [threading.Thread(target=add_one) for _ in range(workers)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    cart = carts.get_cart("u1")
    assert [(i.product_id, i.quantity) for i in cart.items] == [("1", workers)]
    assert cart.total == workers * 100.0


def test_last_updated_tracks_latest_change(carts):
    carts.add_item("u1", "1", 1)
    view, item = carts.set_item("u1", "1", 3)
    assert carts.last_updated("u1") == item.updated_at
