from decimal import Decimal

import pytest

from restaurant_ordering import db, errors
from restaurant_ordering.models import CartItem, Cart
from restaurant_ordering.services import cart


def test_get_or_create_cart_is_idempotent(app):
    first = cart.get_or_create_cart("abc")
    second = cart.get_or_create_cart("abc")
    assert first.id == second.id
    assert Cart.query.count() == 1


def test_adding_same_item_twice_merges_the_line(menu):
    first = cart.add_item("s1", menu.margherita.id, 1)
    second = cart.add_item("s1", menu.margherita.id, 2)

    assert first.id == second.id
    assert second.quantity == 3
    assert CartItem.query.count() == 1


def test_readding_refreshes_snapshot_price(menu):
    cart.add_item("s1", menu.margherita.id, 1)
    menu.margherita.price = Decimal("220.00")
    db.session.commit()

    line = cart.add_item("s1", menu.margherita.id, 1)
    assert line.price == Decimal("220.00")
    assert cart.get_cart_summary("s1")["subtotal"] == Decimal("440.00")


def test_snapshot_price_survives_menu_change(menu):
    cart.add_item("s1", menu.cola.id, 2)
    menu.cola.price = Decimal("80.00")
    db.session.commit()
    assert cart.get_cart_summary("s1")["subtotal"] == Decimal("100.00")


@pytest.mark.parametrize("quantity", [0, -1])
def test_non_positive_quantity_is_rejected(menu, quantity):
    with pytest.raises(errors.ValidationError):
        cart.add_item("s1", menu.cola.id, quantity)


def test_missing_and_unavailable_items(menu):
    with pytest.raises(errors.NotFoundError):
        cart.add_item("s1", 999, 1)
    with pytest.raises(errors.UnavailableError):
        cart.add_item("s1", menu.calzone.id, 1)
    assert CartItem.query.count() == 0


def test_summary_counts_quantities_and_subtotal(menu):
    cart.add_item("s1", menu.margherita.id, 2)
    cart.add_item("s1", menu.cola.id, 3)

    summary = cart.get_cart_summary("s1")
    assert summary["item_count"] == 5
    assert summary["subtotal"] == Decimal("550.00")
    assert cart.summary_to_dict(summary)["subtotal"] == 550.0


def test_summary_of_unknown_session_is_empty_and_writes_nothing(app):
    summary = cart.get_cart_summary("nobody")
    assert summary["items"] == []
    assert summary["subtotal"] == Decimal("0.00")
    assert Cart.query.count() == 0


def test_update_to_zero_removes_line(menu):
    line = cart.add_item("s1", menu.cola.id, 2)
    assert cart.update_item(line.id, 5).quantity == 5
    assert cart.update_item(line.id, 0) is None
    assert CartItem.query.count() == 0


def test_update_and_remove_unknown_line(app):
    with pytest.raises(errors.NotFoundError):
        cart.update_item(42, 1)
    with pytest.raises(errors.NotFoundError):
        cart.remove_item(42)


def test_clear_cart(menu):
    cart.add_item("s1", menu.cola.id, 1)
    cart.add_item("s1", menu.pepperoni.id, 1)
    cart.add_item("s2", menu.cola.id, 1)

    cart.clear_cart("s1")
    cart.clear_cart("never-seen")

    assert cart.get_cart_summary("s1")["item_count"] == 0
    assert cart.get_cart_summary("s2")["item_count"] == 1
