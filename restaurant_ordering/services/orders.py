"""Checkout and order lifecycle.

``create_order`` turns a session's cart into an order in one transaction: the
order row, one order line per cart line at the cart's snapshot price, and the
removal of the cart lines either all land or none do.
"""
import random
import time
from decimal import Decimal

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import joinedload, selectinload

from restaurant_ordering import db
from restaurant_ordering import errors
from restaurant_ordering.models import (
    Order, OrderItem, FoodItem, SpecialDeal, OrderStatus, PaymentMethod
)
from restaurant_ordering.middleware.logging_config import get_logger
from restaurant_ordering.middleware.utils import log_function_call
from restaurant_ordering.services.cache import invalidate_cart
from restaurant_ordering.services.cart import find_cart
from restaurant_ordering.services.deals import is_eligible, calculate_discount
from restaurant_ordering.services.helper import commit_or_raise, config_value
from restaurant_ordering.services.pricing import (
    calculate_delivery_charges,
    calculate_estimated_time,
    is_within_delivery_radius,
    estimate_delivery,
)

logger = get_logger(__name__)

STATUS_FLOW = [
    OrderStatus.PENDING,
    OrderStatus.CONFIRMED,
    OrderStatus.PREPARING,
    OrderStatus.READY,
    OrderStatus.OUT_FOR_DELIVERY,
    OrderStatus.DELIVERED,
]
TERMINAL_STATUSES = {OrderStatus.DELIVERED, OrderStatus.CANCELLED}

__all__ = [
    "create_order", "list_orders", "get_order", "get_order_by_number",
    "update_order_status", "update_payment_status", "cancel_order",
    "estimate_delivery", "generate_order_number", "can_transition",
]


def _order_query():
    return Order.query.options(
        selectinload(Order.items)
        .joinedload(OrderItem.food_item)
        .joinedload(FoodItem.category)
    )


def can_transition(current, new):
    """Forward along the flow (skipping allowed), or to CANCELLED while open."""
    if current == new:
        return True
    if current in TERMINAL_STATUSES:
        return False
    if new == OrderStatus.CANCELLED:
        return True
    return STATUS_FLOW.index(new) > STATUS_FLOW.index(current)


def generate_order_number():
    """Prefix, last six digits of the ms clock, three random digits."""
    prefix = config_value("ORDER_NUMBER_PREFIX")
    attempts = config_value("ORDER_NUMBER_MAX_ATTEMPTS")
    for _ in range(attempts):
        millis = str(int(time.time() * 1000))[-6:]
        candidate = f"{prefix}{millis}{random.randint(0, 999):03d}"
        if not db.session.query(Order.id).filter_by(order_number=candidate).first():
            return candidate
    raise errors.InternalError(
        "Could not generate a unique order number", attempts=attempts)


def _resolve_discount(deal_id, subtotal):
    """Return ``(deal_id, discount)``; an unusable deal yields no discount."""
    if deal_id is None:
        return None, Decimal("0.00")

    deal = db.session.get(SpecialDeal, deal_id)
    if deal is None or not is_eligible(deal, subtotal):
        logger.info(
            f"Deal {deal_id} not applied to order with subtotal {subtotal}",
            extra={'event': 'deal_not_applied', 'deal_id': deal_id,
                   'subtotal': float(subtotal)}
        )
        return None, Decimal("0.00")
    return deal.id, calculate_discount(deal, subtotal)


def _copy_cart_lines(order, lines):
    """Add one order line per cart line and drop the cart lines."""
    for line in lines:
        db.session.add(OrderItem(
            order_id=order.id,
            food_item_id=line.food_item_id,
            quantity=line.quantity,
            price=line.price,
            total=line.line_total,
        ))
        db.session.delete(line)


@log_function_call
def create_order(session_id, customer, distance=None, deal_id=None):
    """Place an order from the session's cart.

    ``customer`` carries ``customer_name``, ``customer_phone``,
    ``delivery_address`` and optionally ``customer_email``, ``latitude``,
    ``longitude``, ``payment_method`` and ``notes``.
    """
    cart = find_cart(session_id)
    if cart is None or not cart.items:
        raise errors.EmptyCartError(session_id=session_id)
    lines = list(cart.items)

    if distance is not None and not is_within_delivery_radius(distance):
        raise errors.ValidationError(
            "Delivery address is outside our delivery radius",
            distance=distance, max_radius=config_value("DELIVERY_RADIUS_KM"))

    subtotal = sum((line.line_total for line in lines), Decimal("0.00"))
    delivery_charges = calculate_delivery_charges(distance)
    applied_deal_id, discount = _resolve_discount(deal_id, subtotal)
    discount = min(discount, subtotal)
    total = subtotal + delivery_charges - discount

    order = Order(
        order_number=generate_order_number(),
        customer_name=customer["customer_name"].strip(),
        customer_phone=customer["customer_phone"],
        customer_email=customer.get("customer_email"),
        delivery_address=customer["delivery_address"].strip(),
        latitude=customer.get("latitude"),
        longitude=customer.get("longitude"),
        distance=distance,
        subtotal=subtotal,
        delivery_charges=delivery_charges,
        discount=discount,
        total=total,
        status=OrderStatus.PENDING,
        payment_method=customer.get("payment_method") or PaymentMethod.CASH_ON_DELIVERY,
        notes=customer.get("notes"),
        deal_id=applied_deal_id,
        estimated_time=calculate_estimated_time(distance),
    )

    try:
        db.session.add(order)
        db.session.flush()
        _copy_cart_lines(order, lines)
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error(
            f"Order creation failed for session {session_id}: {str(e)}",
            extra={'event': 'order_creation_failed', 'session_id': session_id}
        )
        raise errors.InternalError("Failed to create order") from e

    invalidate_cart(session_id)
    logger.info(
        f"Order {order.order_number} placed: total {total}",
        extra={'event': 'order_created', 'order_id': order.id,
               'order_number': order.order_number, 'total': float(total)}
    )
    return get_order(order.id)


def list_orders(page=1, limit=None, status=None):
    """Newest first. Returns the page of orders and paging numbers."""
    limit = limit or config_value("ORDERS_PER_PAGE")
    query = Order.query.options(selectinload(Order.items))
    if status is not None:
        query = query.filter(Order.status == status)
    pagination = query.order_by(Order.created_at.desc(), Order.id.desc()).paginate(
        page=page, per_page=limit, error_out=False)
    return {
        "orders": pagination.items,
        "total": pagination.total,
        "page": pagination.page,
        "pages": pagination.pages,
        "limit": limit,
    }


def get_order(order_id):
    order = _order_query().filter(Order.id == order_id).first()
    if not order:
        raise errors.NotFoundError("Order not found", order_id=order_id)
    return order


def get_order_by_number(order_number):
    order = _order_query().filter(Order.order_number == order_number).first()
    if not order:
        raise errors.NotFoundError("Order not found", order_number=order_number)
    return order


def _set_status(order, status):
    if order.status == status:
        return False
    if config_value("ENFORCE_ORDER_STATUS_FLOW") and not can_transition(order.status, status):
        raise errors.ConflictError(
            f"Cannot change order status from {order.status.value} to {status.value}",
            order_id=order.id, current=order.status.value, requested=status.value)
    order.status = status
    return True


@log_function_call
def update_order_status(order_id, status):
    order = get_order(order_id)
    previous = order.status
    if _set_status(order, status):
        commit_or_raise("update order status", order_id=order_id)
        logger.info(
            f"Order {order.order_number}: {previous.value} -> {status.value}",
            extra={'event': 'order_status_changed', 'order_id': order_id}
        )
    return order


@log_function_call
def update_payment_status(order_id, payment_status):
    order = get_order(order_id)
    order.payment_status = payment_status
    commit_or_raise("update payment status", order_id=order_id)
    return order


@log_function_call
def cancel_order(order_id, reason=None):
    order = get_order(order_id)
    if not _set_status(order, OrderStatus.CANCELLED):
        return order

    if reason:
        order.notes = f"Cancellation reason: {reason}. {order.notes or ''}".strip()
    commit_or_raise("cancel order", order_id=order_id)
    logger.info(f"Order {order.order_number} cancelled", extra={
        'event': 'order_cancelled', 'order_id': order_id})
    return order
