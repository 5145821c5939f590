from flask.views import MethodView
from flask_smorest import Blueprint

from restaurant_ordering.controllers import respond
from restaurant_ordering.schemas import CustomReportSchema, WeeklySummaryQuerySchema
from restaurant_ordering.services import reports
from restaurant_ordering.services.auth import admin_required

blp = Blueprint("dashboard", __name__, description="Admin dashboard")


@blp.route("/api/dashboard/stats")
class DashboardStats(MethodView):
    @admin_required
    def get(self):
        """Today's and all-time order figures."""
        return respond(reports.dashboard_stats())


@blp.route("/api/analytics/weekly-summary")
class WeeklySummary(MethodView):
    @admin_required
    @blp.arguments(WeeklySummaryQuerySchema, location="query")
    def get(self, args):
        return respond(reports.weekly_summary(args.get("start_date")))


@blp.route("/api/analytics/custom-report")
class CustomReport(MethodView):
    @admin_required
    @blp.arguments(CustomReportSchema)
    def post(self, data):
        """Chosen metrics over a date range; all of them when ``metrics`` is omitted."""
        report = reports.custom_report(
            data["start_date"], data["end_date"], data.get("metrics"))
        return respond(report)
