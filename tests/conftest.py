from datetime import timedelta
from decimal import Decimal

import pytest

from config import TestingConfig
from restaurant_ordering import create_app, db
from restaurant_ordering.models import Category, FoodItem, SpecialDeal, DiscountType
from restaurant_ordering.services.auth import create_admin
from restaurant_ordering.services.helper import utcnow

ADMIN_EMAIL = "admin@example.com"
ADMIN_PASSWORD = "s3cret-pass"


@pytest.fixture
def app():
    app = create_app(TestingConfig)
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


class Menu:
    pass


@pytest.fixture
def menu(app):
    """Two categories; one unavailable item and one inactive category."""
    menu = Menu()
    menu.pizza = Category(name="Pizza")
    menu.drinks = Category(name="Drinks")
    menu.archived = Category(name="Archived", is_active=False)
    db.session.add_all([menu.pizza, menu.drinks, menu.archived])
    db.session.flush()

    menu.margherita = FoodItem(name="Margherita", description="Tomato and mozzarella",
                               price=Decimal("200.00"), category_id=menu.pizza.id)
    menu.pepperoni = FoodItem(name="Pepperoni", description="Spicy salami",
                              price=Decimal("150.00"), category_id=menu.pizza.id)
    menu.calzone = FoodItem(name="Calzone", price=Decimal("300.00"),
                            category_id=menu.pizza.id, is_available=False)
    menu.cola = FoodItem(name="Cola", price=Decimal("50.00"), category_id=menu.drinks.id)
    db.session.add_all([menu.margherita, menu.pepperoni, menu.calzone, menu.cola])
    db.session.commit()
    return menu


@pytest.fixture
def make_deal(app):
    def make(**overrides):
        now = utcnow()
        fields = dict(
            title="Weekend offer",
            description="Money off",
            discount=Decimal("10"),
            discount_type=DiscountType.PERCENTAGE,
            min_order_amount=None,
            valid_from=now - timedelta(days=1),
            valid_to=now + timedelta(days=1),
            is_active=True,
        )
        fields.update(overrides)
        deal = SpecialDeal(**fields)
        db.session.add(deal)
        db.session.commit()
        return deal
    return make


@pytest.fixture
def admin_headers(app, client):
    create_admin(ADMIN_EMAIL, ADMIN_PASSWORD, "Admin")
    response = client.post("/api/admin/login", json={
        "email": ADMIN_EMAIL, "password": ADMIN_PASSWORD})
    token = response.get_json()["data"]["accessToken"]
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def customer():
    return {
        "customer_name": "Jane Doe",
        "customer_phone": "+92 300 1234567",
        "customer_email": "jane@example.com",
        "delivery_address": "12 Canal Road",
    }
