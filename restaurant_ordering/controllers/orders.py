from flask.views import MethodView
from flask_smorest import Blueprint

from restaurant_ordering.controllers import respond
from restaurant_ordering.schemas import (
    OrderCreateSchema, OrderQuerySchema, OrderStatusSchema, PaymentStatusSchema,
    OrderCancelSchema, DeliveryEstimateSchema, DateRangeQuerySchema
)
from restaurant_ordering.services import orders as order_service
from restaurant_ordering.services import reports
from restaurant_ordering.services.auth import admin_required

blp = Blueprint("orders", __name__, description="Checkout and order management")


@blp.route("/api/orders")
class OrderList(MethodView):
    @blp.arguments(OrderCreateSchema)
    def post(self, data):
        """Place an order from the session's cart."""
        order = order_service.create_order(
            data["session_id"],
            data,
            distance=data.get("distance"),
            deal_id=data.get("deal_id"),
        )
        return respond(order.to_dict(), "Order placed successfully", 201)

    @admin_required
    @blp.arguments(OrderQuerySchema, location="query")
    def get(self, args):
        result = order_service.list_orders(args["page"], args["limit"], args.get("status"))
        return respond({
            "orders": [order.to_dict() for order in result["orders"]],
            "pagination": {
                "page": result["page"],
                "limit": result["limit"],
                "total": result["total"],
                "pages": result["pages"],
            },
        })


@blp.route("/api/orders/<int:order_id>")
class OrderDetail(MethodView):
    @admin_required
    def get(self, order_id):
        return respond(order_service.get_order(order_id).to_dict())


@blp.route("/api/orders/number/<string:order_number>")
class OrderByNumber(MethodView):
    def get(self, order_number):
        return respond(order_service.get_order_by_number(order_number).to_dict())


@blp.route("/api/orders/<int:order_id>/status")
class OrderStatusView(MethodView):
    @admin_required
    @blp.arguments(OrderStatusSchema)
    def patch(self, data, order_id):
        order = order_service.update_order_status(order_id, data["status"])
        return respond(order.to_dict(), "Order status updated")


@blp.route("/api/orders/<int:order_id>/payment-status")
class PaymentStatusView(MethodView):
    @admin_required
    @blp.arguments(PaymentStatusSchema)
    def patch(self, data, order_id):
        order = order_service.update_payment_status(order_id, data["payment_status"])
        return respond(order.to_dict(), "Payment status updated")


@blp.route("/api/orders/<int:order_id>/cancel")
class OrderCancelView(MethodView):
    @admin_required
    @blp.arguments(OrderCancelSchema)
    def patch(self, data, order_id):
        order = order_service.cancel_order(order_id, data.get("reason"))
        return respond(order.to_dict(), "Order cancelled")


@blp.route("/api/orders/calculate-delivery")
class DeliveryEstimate(MethodView):
    @blp.arguments(DeliveryEstimateSchema)
    def post(self, data):
        """Delivery fee, estimated time and radius check before checkout."""
        return respond(order_service.estimate_delivery(data["distance"], data.get("subtotal")))


@blp.route("/api/orders/analytics")
class OrderAnalytics(MethodView):
    @admin_required
    @blp.arguments(DateRangeQuerySchema, location="query")
    def get(self, args):
        return respond(reports.order_analytics(args.get("start_date"), args.get("end_date")))


@blp.route("/api/orders/analytics/status")
class OrderStatusCounts(MethodView):
    @admin_required
    def get(self):
        return respond(reports.status_counts())


@blp.route("/api/orders/analytics/revenue")
class RevenueReport(MethodView):
    @admin_required
    @blp.arguments(DateRangeQuerySchema, location="query")
    def get(self, args):
        return respond(reports.revenue_report(args.get("start_date"), args.get("end_date")))
