from flask.views import MethodView
from flask_smorest import Blueprint

from restaurant_ordering.controllers import respond
from restaurant_ordering.schemas import (
    FoodItemSchema, FoodItemUpdateSchema, FoodItemQuerySchema
)
from restaurant_ordering.services import catalog
from restaurant_ordering.services.auth import admin_required, ensure_admin
from restaurant_ordering.services.cache import menu_cache

blp = Blueprint("food_items", __name__, description="Menu items")


def _find_items(category_id=None, text=None, available_only=True):
    if text:
        items = catalog.search_food_items(text, available_only=available_only)
        if category_id is not None:
            items = [item for item in items if item.category_id == category_id]
        return items
    return catalog.list_food_items(category_id, available_only=available_only)


@blp.route("/api/food-items")
class FoodItemList(MethodView):
    @blp.arguments(FoodItemQuerySchema, location="query")
    def get(self, args):
        """Available items, optionally by category or matching ``q``."""
        category_id, text = args.get("category_id"), args.get("q")
        if args["all"]:
            ensure_admin()
            items = [item.to_dict() for item in
                     _find_items(category_id, text, available_only=False)]
            return respond(items)

        key = f"food-items:{category_id}:{(text or '').strip().lower()}"
        items = menu_cache().get_or_fetch(
            key, lambda: [item.to_dict() for item in _find_items(category_id, text)])
        return respond(items)

    @admin_required
    @blp.arguments(FoodItemSchema)
    def post(self, data):
        item = catalog.create_food_item(data)
        return respond(item.to_dict(), "Food item created successfully", 201)


@blp.route("/api/food-items/<int:food_item_id>")
class FoodItemDetail(MethodView):
    def get(self, food_item_id):
        return respond(catalog.get_food_item(food_item_id).to_dict())

    @admin_required
    @blp.arguments(FoodItemUpdateSchema(partial=True))
    def put(self, data, food_item_id):
        item = catalog.update_food_item(food_item_id, data)
        return respond(item.to_dict(), "Food item updated successfully")

    @admin_required
    def delete(self, food_item_id):
        catalog.delete_food_item(food_item_id)
        return respond(message="Food item deleted successfully")


@blp.route("/api/food-items/<int:food_item_id>/toggle")
class FoodItemToggle(MethodView):
    @admin_required
    def patch(self, food_item_id):
        item = catalog.toggle_food_item(food_item_id)
        state = "available" if item.is_available else "unavailable"
        return respond(item.to_dict(), f"Food item marked {state}")
