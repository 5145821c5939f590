from flask.views import MethodView
from flask_smorest import Blueprint

from restaurant_ordering.controllers import respond
from restaurant_ordering.schemas import (
    SessionQuerySchema, CartAddSchema, CartUpdateSchema, DeliveryChargeQuerySchema
)
from restaurant_ordering.services import cart as cart_service
from restaurant_ordering.services.cache import cart_cache

blp = Blueprint("cart", __name__, description="Session carts")


@blp.route("/api/cart")
class CartView(MethodView):
    @blp.arguments(SessionQuerySchema, location="query")
    def get(self, args):
        """Cart lines, item count and subtotal for a session."""
        session_id = args["session_id"]
        summary = cart_cache().get_or_fetch(
            f"cart:{session_id}",
            lambda: cart_service.summary_to_dict(cart_service.get_cart_summary(session_id))
        )
        return respond(summary)

    @blp.arguments(CartAddSchema)
    def post(self, data):
        line = cart_service.add_item(
            data["session_id"], data["food_item_id"], data["quantity"])
        return respond(line.to_dict(), "Item added to cart", 201)

    @blp.arguments(SessionQuerySchema)
    def delete(self, data):
        cart_service.clear_cart(data["session_id"])
        return respond(message="Cart cleared")


@blp.route("/api/cart/<int:cart_item_id>")
class CartItemView(MethodView):
    @blp.arguments(CartUpdateSchema)
    def put(self, data, cart_item_id):
        line = cart_service.update_item(cart_item_id, data["quantity"])
        if line is None:
            return respond(message="Item removed from cart")
        return respond(line.to_dict(), "Cart item updated")

    def delete(self, cart_item_id):
        cart_service.remove_item(cart_item_id)
        return respond(message="Item removed from cart")


@blp.route("/api/delivery-charges")
class DeliveryCharges(MethodView):
    @blp.arguments(DeliveryChargeQuerySchema, location="query")
    def get(self, args):
        charges = cart_service.calculate_delivery_charges(args["distance"])
        return respond({"distance": args["distance"], "deliveryCharges": float(charges)})
