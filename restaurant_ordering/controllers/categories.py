from flask.views import MethodView
from flask_smorest import Blueprint

from restaurant_ordering.controllers import respond
from restaurant_ordering.schemas import CategorySchema, CategoryUpdateSchema, ListQuerySchema
from restaurant_ordering.services import catalog
from restaurant_ordering.services.auth import admin_required, ensure_admin
from restaurant_ordering.services.cache import menu_cache

blp = Blueprint("categories", __name__, description="Menu categories")


def _public_categories():
    return [category.to_dict(include_items=True, available_only=True)
            for category in catalog.list_categories(active_only=True)]


@blp.route("/api/categories")
class CategoryList(MethodView):
    @blp.arguments(ListQuerySchema, location="query")
    def get(self, args):
        """Active categories with their available items; ``all=true`` for admins."""
        if args["all"]:
            ensure_admin()
            categories = [category.to_dict(include_items=True)
                          for category in catalog.list_categories(active_only=False)]
        else:
            categories = menu_cache().get_or_fetch("categories:active", _public_categories)
        return respond(categories)

    @admin_required
    @blp.arguments(CategorySchema)
    def post(self, data):
        category = catalog.create_category(data)
        return respond(category.to_dict(), "Category created successfully", 201)


@blp.route("/api/categories/<int:category_id>")
class CategoryDetail(MethodView):
    def get(self, category_id):
        category = catalog.get_category(category_id)
        return respond(category.to_dict(include_items=True, available_only=True))

    @admin_required
    @blp.arguments(CategoryUpdateSchema(partial=True))
    def put(self, data, category_id):
        category = catalog.update_category(category_id, data)
        return respond(category.to_dict(), "Category updated successfully")

    @admin_required
    def delete(self, category_id):
        catalog.delete_category(category_id)
        return respond(message="Category deleted successfully")


@blp.route("/api/categories/<int:category_id>/toggle")
class CategoryToggle(MethodView):
    @admin_required
    def patch(self, category_id):
        category = catalog.toggle_category(category_id)
        state = "activated" if category.is_active else "deactivated"
        return respond(category.to_dict(), f"Category {state} successfully")
