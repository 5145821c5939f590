"""Session-keyed carts.

A cart holds at most one line per food item. Re-adding an item folds the new
quantity into the existing line and refreshes its snapshot price, so a cart
always carries the price the customer last saw.

Upserts lock the cart row (``SELECT ... FOR UPDATE``) for the
read-modify-write, and the ``(cart_id, food_item_id)`` unique constraint
catches the remaining case of two first-time inserts racing each other. On
SQLite the lock is a no-op and the constraint alone applies.
"""
from decimal import Decimal

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import joinedload, selectinload

from restaurant_ordering import db
from restaurant_ordering import errors
from restaurant_ordering.models import Cart, CartItem, FoodItem
from restaurant_ordering.middleware.logging_config import get_logger
from restaurant_ordering.middleware.utils import log_function_call
from restaurant_ordering.services.cache import invalidate_cart
from restaurant_ordering.services.helper import commit_or_raise
from restaurant_ordering.services.pricing import calculate_delivery_charges

logger = get_logger(__name__)

__all__ = [
    "get_or_create_cart", "find_cart", "add_item", "update_item",
    "remove_item", "clear_cart", "get_cart_summary", "summary_to_dict",
    "calculate_delivery_charges",
]


def _cart_query():
    return Cart.query.options(
        selectinload(Cart.items)
        .joinedload(CartItem.food_item)
        .joinedload(FoodItem.category)
    )


def find_cart(session_id):
    return _cart_query().filter(Cart.session_id == session_id).first()


def get_or_create_cart(session_id):
    """Fetch the cart for ``session_id``, inserting an empty one if needed."""
    cart = find_cart(session_id)
    if cart:
        return cart

    db.session.add(Cart(session_id=session_id))
    try:
        db.session.commit()
    except IntegrityError:
        # another request created the cart between our read and insert
        db.session.rollback()
    cart = find_cart(session_id)
    if cart is None:
        raise errors.InternalError("Failed to create cart", session_id=session_id)
    return cart


def _lock_cart(cart_id):
    Cart.query.filter(Cart.id == cart_id).with_for_update().first()


def _find_line(cart_id, food_item_id):
    return CartItem.query.filter_by(
        cart_id=cart_id, food_item_id=food_item_id).first()


@log_function_call
def add_item(session_id, food_item_id, quantity=1):
    if quantity is None or quantity <= 0:
        raise errors.ValidationError("Quantity must be greater than 0")

    food_item = db.session.get(FoodItem, food_item_id)
    if not food_item:
        raise errors.NotFoundError("Food item not found", food_item_id=food_item_id)
    if not food_item.is_available:
        raise errors.UnavailableError(
            "Food item is not available", food_item_id=food_item_id)

    cart = get_or_create_cart(session_id)
    cart_id = cart.id
    _lock_cart(cart_id)

    line = _find_line(cart_id, food_item_id)
    if line:
        line.quantity += quantity
        line.price = food_item.price
    else:
        line = CartItem(
            cart_id=cart_id,
            food_item_id=food_item_id,
            quantity=quantity,
            price=food_item.price
        )
        db.session.add(line)

    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        line = _find_line(cart_id, food_item_id)
        if line is None:
            raise errors.InternalError(
                "Failed to add item to cart", session_id=session_id,
                food_item_id=food_item_id)
        line.quantity += quantity
        line.price = db.session.get(FoodItem, food_item_id).price
        commit_or_raise("add item to cart", session_id=session_id,
                        food_item_id=food_item_id)

    invalidate_cart(session_id)
    logger.info(
        f"Cart {cart_id}: food item {food_item_id} now x{line.quantity}",
        extra={'event': 'cart_item_added', 'cart_id': cart_id,
               'food_item_id': food_item_id}
    )
    return line


@log_function_call
def update_item(cart_item_id, quantity):
    """Set a line's quantity; zero or less removes the line and returns None."""
    line = db.session.get(CartItem, cart_item_id)
    if not line:
        raise errors.NotFoundError("Cart item not found", cart_item_id=cart_item_id)
    if quantity <= 0:
        remove_item(cart_item_id)
        return None

    line.quantity = quantity
    line.price = line.food_item.price
    session_id = line.cart.session_id
    commit_or_raise("update cart item", cart_item_id=cart_item_id)
    invalidate_cart(session_id)
    return line


@log_function_call
def remove_item(cart_item_id):
    line = db.session.get(CartItem, cart_item_id)
    if not line:
        raise errors.NotFoundError("Cart item not found", cart_item_id=cart_item_id)

    session_id = line.cart.session_id
    db.session.delete(line)
    commit_or_raise("remove cart item", cart_item_id=cart_item_id)
    invalidate_cart(session_id)


@log_function_call
def clear_cart(session_id):
    """Empty the session's cart. A session without a cart is left alone."""
    cart = Cart.query.filter_by(session_id=session_id).first()
    if cart:
        CartItem.query.filter_by(cart_id=cart.id).delete(synchronize_session=False)
        commit_or_raise("clear cart", session_id=session_id)
        db.session.expire(cart)
    invalidate_cart(session_id)


def get_cart_summary(session_id):
    """Lines, total quantity and subtotal at the stored snapshot prices."""
    cart = find_cart(session_id)
    items = list(cart.items) if cart else []
    return {
        "cart_id": cart.id if cart else None,
        "items": items,
        "item_count": sum(item.quantity for item in items),
        "subtotal": sum((item.line_total for item in items), Decimal("0.00")),
    }


def summary_to_dict(summary):
    return {
        "cartId": summary["cart_id"],
        "items": [item.to_dict() for item in summary["items"]],
        "itemCount": summary["item_count"],
        "subtotal": float(summary["subtotal"]),
    }
