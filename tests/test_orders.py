import re
from decimal import Decimal

import pytest
from sqlalchemy.exc import SQLAlchemyError

from restaurant_ordering import db, errors
from restaurant_ordering.models import (
    Order, OrderItem, CartItem, DiscountType, OrderStatus, PaymentStatus, PaymentMethod
)
from restaurant_ordering.services import cart, orders


@pytest.fixture
def filled_cart(menu):
    cart.add_item("s1", menu.margherita.id, 2)
    cart.add_item("s1", menu.pepperoni.id, 1)
    return "s1"


def test_checkout_builds_order_from_cart(filled_cart, customer):
    order = orders.create_order(filled_cart, customer, distance=5)

    assert order.subtotal == Decimal("550.00")
    assert order.delivery_charges == Decimal("50.00")
    assert order.discount == Decimal("0.00")
    assert order.total == Decimal("600.00")
    assert order.status == OrderStatus.PENDING
    assert order.payment_status == PaymentStatus.PENDING
    assert order.payment_method == PaymentMethod.CASH_ON_DELIVERY
    assert order.estimated_time == 40
    assert sorted(item.total for item in order.items) == [Decimal("150.00"), Decimal("400.00")]
    assert order.to_dict()["items"][0]["foodItem"]["category"]["name"] == "Pizza"


def test_checkout_empties_the_cart(filled_cart, customer):
    orders.create_order(filled_cart, customer)
    assert CartItem.query.count() == 0
    assert cart.get_cart_summary(filled_cart)["item_count"] == 0


def test_order_keeps_prices_after_menu_change(filled_cart, customer, menu):
    order = orders.create_order(filled_cart, customer)
    menu.margherita.price = Decimal("999.00")
    assert orders.get_order(order.id).subtotal == Decimal("550.00")


def test_empty_cart_cannot_check_out(menu, customer):
    with pytest.raises(errors.EmptyCartError):
        orders.create_order("nobody", customer)
    cart.get_or_create_cart("empty")
    with pytest.raises(errors.EmptyCartError):
        orders.create_order("empty", customer)
    assert Order.query.count() == 0


def test_failure_mid_transaction_leaves_nothing_behind(filled_cart, customer, monkeypatch):
    real_delete = db.session.delete
    calls = []

    def delete_then_fail(instance):
        calls.append(instance)
        if len(calls) == 2:
            raise SQLAlchemyError("disk full")
        return real_delete(instance)

    # The first line is already copied and removed when the second one fails
    monkeypatch.setattr(db.session, "delete", delete_then_fail)
    with pytest.raises(errors.InternalError):
        orders.create_order(filled_cart, customer)
    monkeypatch.undo()

    assert len(calls) == 2
    assert Order.query.count() == 0
    assert OrderItem.query.count() == 0
    assert cart.get_cart_summary(filled_cart)["item_count"] == 3


def test_deal_applied_when_eligible(menu, customer, make_deal):
    deal = make_deal(discount=Decimal("10"))
    cart.add_item("s1", menu.margherita.id, 3)
    order = orders.create_order("s1", customer, distance=2, deal_id=deal.id)
    assert order.discount == Decimal("60.00")
    assert order.total == Decimal("540.00")
    assert order.deal_id == deal.id


def test_ineligible_deal_is_ignored(menu, customer, make_deal):
    deal = make_deal(discount=Decimal("10"), min_order_amount=Decimal("500"))
    cart.add_item("s1", menu.pepperoni.id, 2)
    order = orders.create_order("s1", customer, deal_id=deal.id)
    assert order.discount == Decimal("0.00")
    assert order.total == Decimal("300.00")
    assert order.deal_id is None


def test_unknown_deal_is_ignored(filled_cart, customer):
    order = orders.create_order(filled_cart, customer, deal_id=12345)
    assert order.discount == Decimal("0.00")


def test_total_never_negative(menu, customer, make_deal):
    deal = make_deal(discount=Decimal("500"), discount_type=DiscountType.FIXED)
    cart.add_item("s1", menu.cola.id, 1)
    order = orders.create_order("s1", customer, distance=8, deal_id=deal.id)
    assert order.discount == Decimal("50.00")
    assert order.total == Decimal("120.00")


def test_outside_delivery_radius(filled_cart, customer):
    with pytest.raises(errors.ValidationError):
        orders.create_order(filled_cart, customer, distance=25)
    assert cart.get_cart_summary(filled_cart)["item_count"] == 3


def test_order_number_format(app):
    assert re.match(r"^ORD\d{9}$", orders.generate_order_number())


def test_lookup_by_number(filled_cart, customer):
    order = orders.create_order(filled_cart, customer)
    assert orders.get_order_by_number(order.order_number).id == order.id
    with pytest.raises(errors.NotFoundError):
        orders.get_order_by_number("ORD000000000")


def test_status_moves_forward_and_may_skip(filled_cart, customer):
    order = orders.create_order(filled_cart, customer)
    assert orders.update_order_status(order.id, OrderStatus.PREPARING).status == OrderStatus.PREPARING
    assert orders.update_order_status(order.id, OrderStatus.PREPARING).status == OrderStatus.PREPARING
    with pytest.raises(errors.ConflictError):
        orders.update_order_status(order.id, OrderStatus.CONFIRMED)


def test_terminal_orders_stay_terminal(filled_cart, customer):
    order = orders.create_order(filled_cart, customer)
    orders.update_order_status(order.id, OrderStatus.DELIVERED)
    with pytest.raises(errors.ConflictError):
        orders.cancel_order(order.id, "too late")


def test_status_flow_can_be_relaxed(app, filled_cart, customer):
    app.config["ENFORCE_ORDER_STATUS_FLOW"] = False
    order = orders.create_order(filled_cart, customer)
    orders.update_order_status(order.id, OrderStatus.READY)
    assert orders.update_order_status(order.id, OrderStatus.PENDING).status == OrderStatus.PENDING


def test_cancel_records_reason(filled_cart, customer):
    customer = dict(customer, notes="Ring twice")
    order = orders.create_order(filled_cart, customer)
    cancelled = orders.cancel_order(order.id, "Customer request")
    assert cancelled.status == OrderStatus.CANCELLED
    assert cancelled.notes == "Cancellation reason: Customer request. Ring twice"


def test_payment_status_is_independent(filled_cart, customer):
    order = orders.create_order(filled_cart, customer)
    orders.cancel_order(order.id)
    updated = orders.update_payment_status(order.id, PaymentStatus.REFUNDED)
    assert updated.payment_status == PaymentStatus.REFUNDED


def test_list_orders_paginates_newest_first(menu, customer):
    created = []
    for session in ("a", "b", "c"):
        cart.add_item(session, menu.cola.id, 1)
        created.append(orders.create_order(session, customer).id)

    page = orders.list_orders(page=1, limit=2)
    assert page["total"] == 3
    assert page["pages"] == 2
    assert [order.id for order in page["orders"]] == [created[2], created[1]]

    orders.cancel_order(created[0])
    cancelled = orders.list_orders(status=OrderStatus.CANCELLED)
    assert [order.id for order in cancelled["orders"]] == [created[0]]
