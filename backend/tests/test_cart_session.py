import logging
from decimal import Decimal

import pytest

from conftest import USER_ID, fixed_clock
from havendrip.core.errors import InvalidInput, LineNotFound, RemoteCallFailed
from havendrip.core.results import Err, RemoteFailure
from havendrip.services.cart_session import CartSession


def load(store, coupons):
    return CartSession.load(USER_ID, store, coupons, clock=fixed_clock)


def test_add_item_inserts_then_merges(cart_store, coupons):
    session = load(cart_store, coupons)
    first = session.add_item("tee", 1, "M", "Black")
    again = session.add_item("tee", 2, "M", "Black")
    assert again.line_id == first.line_id
    assert again.quantity == 3
    assert len(cart_store.lines[USER_ID]) == 1
    assert cart_store.lines[USER_ID][0].quantity == 3


def test_different_variant_gets_its_own_line(cart_store, coupons):
    session = load(cart_store, coupons)
    session.add_item("tee", 1, "M")
    session.add_item("tee", 1, "L")
    assert len(session.lines) == 2


def test_add_unknown_product(cart_store, coupons):
    session = load(cart_store, coupons)
    with pytest.raises(InvalidInput):
        session.add_item("ghost", 1)
    assert session.lines == []


def test_remote_failure_leaves_cart_unchanged(cart_store, coupons):
    session = load(cart_store, coupons)
    line = session.add_item("tee", 1)
    cart_store.failing = True
    with pytest.raises(RemoteCallFailed) as err:
        session.update_quantity(line.line_id, 5)
    assert err.value.failure.operation == "update_cart_line_quantity"
    with pytest.raises(RemoteCallFailed):
        session.add_item("jeans", 1)
    with pytest.raises(RemoteCallFailed):
        session.remove_item(line.line_id)
    assert [(ln.line_id, ln.quantity) for ln in session.lines] == [(line.line_id, 1)]


def test_update_quantity_validation(cart_store, coupons):
    session = load(cart_store, coupons)
    line = session.add_item("tee", 1)
    with pytest.raises(InvalidInput):
        session.update_quantity(line.line_id, 0)
    with pytest.raises(LineNotFound):
        session.update_quantity("nope", 2)
    assert session.update_quantity(line.line_id, 4).quantity == 4


def test_coupon_persists_and_restores(cart_store, coupons):
    session = load(cart_store, coupons)
    session.add_item("tee", 2)
    assert session.apply_coupon("save10").success
    assert cart_store.coupon_codes[USER_ID] == "SAVE10"

    restored = load(cart_store, coupons)
    assert restored.applied_coupon_code == "SAVE10"
    assert restored.engine.compute_coupon_discount() == Decimal("80")


def test_stale_stored_coupon_is_cleared_on_load(cart_store, coupons):
    cart_store.coupon_codes[USER_ID] = "BIG"
    session = load(cart_store, coupons)
    assert session.applied_coupon_code is None
    assert cart_store.coupon_codes[USER_ID] is None


def test_stored_coupon_survives_lookup_outage(cart_store, coupons):
    session = load(cart_store, coupons)
    session.add_item("tee", 1)
    session.apply_coupon("SAVE10")
    coupons.failing = True
    restored = load(cart_store, coupons)
    assert restored.applied_coupon_code is None
    # the code stays stored so the next load can try again
    assert cart_store.coupon_codes[USER_ID] == "SAVE10"


def test_removing_brand_line_drops_brand_coupon(cart_store, coupons):
    session = load(cart_store, coupons)
    tee = session.add_item("tee", 1)
    session.add_item("jeans", 1)
    assert session.apply_coupon("BRANDA20").success
    session.remove_item(tee.line_id)
    assert session.applied_coupon_code is None
    assert cart_store.coupon_codes[USER_ID] is None


def test_failed_apply_clears_stored_code(cart_store, coupons):
    session = load(cart_store, coupons)
    session.add_item("tee", 1)
    session.apply_coupon("SAVE10")
    result = session.apply_coupon("NOPE")
    assert not result.success
    assert cart_store.coupon_codes[USER_ID] is None


def test_clear_empties_cart_and_coupon(cart_store, coupons):
    session = load(cart_store, coupons)
    session.add_item("tee", 1)
    session.apply_coupon("SAVE10")
    session.clear()
    assert session.lines == []
    assert session.applied_coupon_code is None
    assert cart_store.lines[USER_ID] == []


def test_wishlist_add_is_idempotent_per_product(cart_store, coupons):
    session = load(cart_store, coupons)
    first = session.add_to_wishlist("cap", "M")
    second = session.add_to_wishlist("cap", "L")
    assert first.entry_id == second.entry_id
    assert len(session.wishlist()) == 1


def test_move_to_cart_merges_and_removes_entry(cart_store, coupons):
    session = load(cart_store, coupons)
    session.add_item("cap", 1, "M")
    entry = session.add_to_wishlist("cap", "M")
    line = session.move_to_cart(entry.entry_id)
    assert line.quantity == 2
    assert session.wishlist() == []


def test_wishlist_unknown_entry(cart_store, coupons):
    session = load(cart_store, coupons)
    with pytest.raises(LineNotFound):
        session.remove_from_wishlist("nope")
    with pytest.raises(LineNotFound):
        session.move_to_cart("nope")


def test_move_to_cart_keeps_line_when_entry_delete_fails(cart_store, coupons, monkeypatch, caplog):
    session = load(cart_store, coupons)
    entry = session.add_to_wishlist("cap")
    monkeypatch.setattr(
        cart_store, "delete_wishlist_entry",
        lambda entry_id: Err(RemoteFailure("delete_wishlist_entry", "unavailable")),
    )
    with caplog.at_level(logging.WARNING, logger="havendrip.cart"):
        line = session.move_to_cart(entry.entry_id)
    assert line.quantity == 1
    assert [ln.product_id for ln in cart_store.lines[USER_ID]] == ["cap"]
    assert "kept after move to cart" in caplog.text
