"""Categories and food items.

Customer-facing listings only see active categories and available items;
admin listings see every row.
"""
from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import joinedload, selectinload

from restaurant_ordering import db
from restaurant_ordering import errors
from restaurant_ordering.models import Category, FoodItem, CartItem, OrderItem
from restaurant_ordering.middleware.logging_config import get_logger
from restaurant_ordering.middleware.utils import log_function_call
from restaurant_ordering.services.cache import invalidate_menu
from restaurant_ordering.services.helper import get_or_404, commit_or_raise

logger = get_logger(__name__)

CATEGORY_FIELDS = ("name", "image", "is_active")
FOOD_ITEM_FIELDS = ("name", "description", "price", "image",
                    "category_id", "is_available")


def _commit_category(category):
    name = category.name
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise errors.ConflictError(
            "Category with this name already exists", name=name)


# Categories

def list_categories(active_only=True):
    query = Category.query.options(selectinload(Category.food_items))
    if active_only:
        query = query.filter(Category.is_active.is_(True))
    return query.order_by(Category.name).all()


def get_category(category_id):
    return get_or_404(Category, category_id, "Category")


@log_function_call
def create_category(data):
    category = Category(**{k: data[k] for k in CATEGORY_FIELDS if k in data})
    db.session.add(category)
    _commit_category(category)
    invalidate_menu()
    logger.info(f"Category created: {category.name}", extra={
        'event': 'category_created', 'category_id': category.id})
    return category


@log_function_call
def update_category(category_id, data):
    category = get_category(category_id)
    for field in CATEGORY_FIELDS:
        if field in data:
            setattr(category, field, data[field])
    _commit_category(category)
    invalidate_menu()
    return category


@log_function_call
def delete_category(category_id):
    category = get_category(category_id)
    item_count = FoodItem.query.filter_by(category_id=category.id).count()
    if item_count:
        raise errors.ConflictError(
            "Cannot delete category with food items",
            category_id=category.id, food_item_count=item_count)

    db.session.delete(category)
    commit_or_raise("delete category", category_id=category_id)
    invalidate_menu()
    logger.info(f"Category deleted: {category_id}", extra={
        'event': 'category_deleted', 'category_id': category_id})


@log_function_call
def toggle_category(category_id):
    category = get_category(category_id)
    category.is_active = not category.is_active
    commit_or_raise("toggle category", category_id=category_id)
    invalidate_menu()
    return category


# Food items

def _food_item_query():
    return FoodItem.query.options(joinedload(FoodItem.category))


def _ensure_category(category_id):
    if db.session.get(Category, category_id) is None:
        raise errors.NotFoundError("Category not found", category_id=category_id)


def get_food_item(food_item_id):
    item = _food_item_query().filter(FoodItem.id == food_item_id).first()
    if not item:
        raise errors.NotFoundError("Food item not found", food_item_id=food_item_id)
    return item


def list_food_items(category_id=None, available_only=True):
    query = _food_item_query()
    if available_only:
        query = query.filter(FoodItem.is_available.is_(True))
    if category_id is not None:
        query = query.filter(FoodItem.category_id == category_id)
    return query.order_by(FoodItem.name).all()


def search_food_items(text, available_only=True):
    """Case-insensitive substring match on name or description."""
    pattern = f"%{text.strip()}%"
    query = _food_item_query().filter(or_(
        FoodItem.name.ilike(pattern),
        FoodItem.description.ilike(pattern)
    ))
    if available_only:
        query = query.filter(FoodItem.is_available.is_(True))
    return query.order_by(FoodItem.name).all()


@log_function_call
def create_food_item(data):
    _ensure_category(data["category_id"])
    item = FoodItem(**{k: data[k] for k in FOOD_ITEM_FIELDS if k in data})
    db.session.add(item)
    commit_or_raise("create food item", name=data.get("name"))
    invalidate_menu()
    logger.info(f"Food item created: {item.name}", extra={
        'event': 'food_item_created', 'food_item_id': item.id})
    return item


@log_function_call
def update_food_item(food_item_id, data):
    item = get_food_item(food_item_id)
    if "category_id" in data and data["category_id"] != item.category_id:
        _ensure_category(data["category_id"])
    for field in FOOD_ITEM_FIELDS:
        if field in data:
            setattr(item, field, data[field])
    commit_or_raise("update food item", food_item_id=food_item_id)
    invalidate_menu()
    return item


@log_function_call
def delete_food_item(food_item_id):
    item = get_food_item(food_item_id)
    if OrderItem.query.filter_by(food_item_id=item.id).first():
        raise errors.ConflictError(
            "Cannot delete a food item that appears in orders; mark it unavailable instead",
            food_item_id=item.id)

    # carts holding the item lose the line
    CartItem.query.filter_by(food_item_id=item.id).delete(synchronize_session=False)
    db.session.delete(item)
    commit_or_raise("delete food item", food_item_id=food_item_id)
    invalidate_menu()
    logger.info(f"Food item deleted: {food_item_id}", extra={
        'event': 'food_item_deleted', 'food_item_id': food_item_id})


@log_function_call
def toggle_food_item(food_item_id):
    item = get_food_item(food_item_id)
    item.is_available = not item.is_available
    commit_or_raise("toggle food item", food_item_id=food_item_id)
    invalidate_menu()
    return item
