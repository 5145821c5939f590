from decimal import Decimal

import pytest

from restaurant_ordering import db, errors
from restaurant_ordering.models import Category, FoodItem, CartItem
from restaurant_ordering.services import catalog, cart, orders


def test_public_listing_hides_inactive_categories(menu):
    names = [category.name for category in catalog.list_categories()]
    assert names == ["Drinks", "Pizza"]
    assert "Archived" in [c.name for c in catalog.list_categories(active_only=False)]


def test_public_category_nests_only_available_items(menu):
    pizza = catalog.get_category(menu.pizza.id)
    public = pizza.to_dict(include_items=True, available_only=True)
    assert [item["name"] for item in public["foodItems"]] == ["Margherita", "Pepperoni"]


def test_duplicate_category_name_conflicts(menu):
    with pytest.raises(errors.ConflictError):
        catalog.create_category({"name": "Pizza"})


def test_category_with_items_cannot_be_deleted(menu):
    with pytest.raises(errors.ConflictError):
        catalog.delete_category(menu.pizza.id)

    assert db.session.get(Category, menu.pizza.id) is not None
    assert FoodItem.query.filter_by(category_id=menu.pizza.id).count() == 3


def test_empty_category_is_deleted(menu):
    catalog.delete_category(menu.archived.id)
    with pytest.raises(errors.NotFoundError):
        catalog.get_category(menu.archived.id)


def test_toggle_flips_flags(menu):
    assert catalog.toggle_category(menu.drinks.id).is_active is False
    assert catalog.toggle_food_item(menu.calzone.id).is_available is True


def test_food_item_requires_existing_category(menu):
    with pytest.raises(errors.NotFoundError):
        catalog.create_food_item({"name": "Ghost", "price": Decimal("10"), "category_id": 999})
    with pytest.raises(errors.NotFoundError):
        catalog.update_food_item(menu.cola.id, {"category_id": 999})


def test_listing_and_search(menu):
    assert [i.name for i in catalog.list_food_items(menu.pizza.id)] == ["Margherita", "Pepperoni"]
    assert len(catalog.list_food_items(menu.pizza.id, available_only=False)) == 3
    assert [i.name for i in catalog.search_food_items("SALAMI")] == ["Pepperoni"]
    assert catalog.search_food_items("calz") == []


def test_deleting_food_item_drops_cart_lines(menu):
    cart.add_item("s1", menu.cola.id, 2)
    catalog.delete_food_item(menu.cola.id)
    assert CartItem.query.count() == 0
    assert cart.get_cart_summary("s1")["item_count"] == 0


def test_ordered_food_item_cannot_be_deleted(menu, customer):
    cart.add_item("s1", menu.cola.id, 1)
    orders.create_order("s1", customer)
    with pytest.raises(errors.ConflictError):
        catalog.delete_food_item(menu.cola.id)
