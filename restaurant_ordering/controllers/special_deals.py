from flask.views import MethodView
from flask_smorest import Blueprint

from restaurant_ordering.controllers import respond
from restaurant_ordering.schemas import (
    SpecialDealSchema, SpecialDealUpdateSchema, ListQuerySchema, ValidDealsQuerySchema
)
from restaurant_ordering.services import deals
from restaurant_ordering.services.auth import admin_required, ensure_admin

blp = Blueprint("special_deals", __name__, description="Special deals")


@blp.route("/api/special-deals")
class DealList(MethodView):
    @blp.arguments(ListQuerySchema, location="query")
    def get(self, args):
        """Deals running now; ``all=true`` lists every deal for admins."""
        if args["all"]:
            ensure_admin()
            found = deals.list_deals()
        else:
            found = deals.list_valid_deals()
        return respond([deal.to_dict() for deal in found])

    @admin_required
    @blp.arguments(SpecialDealSchema)
    def post(self, data):
        deal = deals.create_deal(data)
        return respond(deal.to_dict(), "Special deal created successfully", 201)


@blp.route("/api/special-deals/valid")
class ValidDeals(MethodView):
    @blp.arguments(ValidDealsQuerySchema, location="query")
    def get(self, args):
        """Deals the given order amount qualifies for, biggest saving first."""
        amount = args["amount"]
        return respond([
            dict(deal.to_dict(),
                 discountAmount=float(deals.calculate_discount(deal, amount)))
            for deal in deals.get_valid_deals_for_order(amount)
        ])


@blp.route("/api/special-deals/<int:deal_id>")
class DealDetail(MethodView):
    def get(self, deal_id):
        return respond(deals.get_deal(deal_id).to_dict())

    @admin_required
    @blp.arguments(SpecialDealUpdateSchema(partial=True))
    def put(self, data, deal_id):
        deal = deals.update_deal(deal_id, data)
        return respond(deal.to_dict(), "Special deal updated successfully")

    @admin_required
    def delete(self, deal_id):
        deals.delete_deal(deal_id)
        return respond(message="Special deal deleted successfully")


@blp.route("/api/special-deals/<int:deal_id>/toggle")
class DealToggle(MethodView):
    @admin_required
    def patch(self, deal_id):
        deal = deals.toggle_deal(deal_id)
        state = "activated" if deal.is_active else "deactivated"
        return respond(deal.to_dict(), f"Special deal {state} successfully")
