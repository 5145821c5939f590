from datetime import date, datetime, timedelta

import pytest

from restaurant_ordering import db, errors
from restaurant_ordering.models import OrderStatus, PaymentMethod
from restaurant_ordering.services import cart, orders, reports
from restaurant_ordering.services.helper import utcnow


@pytest.fixture
def placed(menu, customer):
    def place(session, food_item, quantity=1, phone=None, **kwargs):
        cart.add_item(session, food_item.id, quantity)
        details = dict(customer, customer_phone=phone or customer["customer_phone"], **kwargs)
        return orders.create_order(session, details)

    first = place("a", menu.margherita, 2)
    second = place("b", menu.cola, 1, phone="+92 311 0000000",
                   payment_method=PaymentMethod.CARD)
    third = place("c", menu.pepperoni, 1)
    orders.update_order_status(second.id, OrderStatus.DELIVERED)
    orders.cancel_order(third.id)
    return first, second, third


def test_dashboard_excludes_cancelled_revenue(placed):
    stats = reports.dashboard_stats()
    assert stats["todayOrders"] == 3
    assert stats["totalOrders"] == 3
    assert stats["todayRevenue"] == 450.0
    assert stats["totalRevenue"] == 450.0
    assert stats["averageOrderValue"] == 225.0
    assert stats["totalCustomers"] == 2
    assert stats["pendingOrders"] == 1
    assert stats["completedOrders"] == 1


def test_status_counts_include_cancelled(placed):
    counts = {row["status"]: row["count"] for row in reports.status_counts()}
    assert counts == {"PENDING": 1, "DELIVERED": 1, "CANCELLED": 1}


def test_order_analytics(placed):
    analytics = reports.order_analytics()
    assert analytics["totalOrders"] == 2
    assert analytics["totalRevenue"] == 450.0
    methods = {row["paymentMethod"]: row["count"] for row in analytics["ordersByPaymentMethod"]}
    assert methods == {"CASH_ON_DELIVERY": 1, "CARD": 1}


def test_revenue_report_groups_by_day(placed):
    first = placed[0]
    first.created_at = datetime(2024, 1, 5, 12, 0)
    db.session.commit()

    report = reports.revenue_report()
    assert report[0] == {"date": "2024-01-05", "revenue": 400.0, "orders": 1}
    assert report[1]["revenue"] == 50.0

    only_january = reports.revenue_report(datetime(2024, 1, 1), datetime(2024, 1, 31))
    assert len(only_january) == 1


def test_weekly_summary_runs_sunday_to_saturday(placed):
    first, second, third = placed
    first.created_at = datetime(2024, 1, 9, 10, 0)     # Tuesday
    second.created_at = datetime(2024, 1, 13, 23, 0)   # Saturday
    third.created_at = datetime(2024, 1, 9, 11, 0)     # cancelled
    db.session.commit()

    summary = reports.weekly_summary(date(2024, 1, 10))
    assert summary["weekStart"] == "2024-01-07T00:00:00"
    assert summary["weekEnd"] == "2024-01-14T00:00:00"

    daily = summary["dailyBreakdown"]
    assert daily[0]["day"] == "Sunday"
    assert len(daily) == 7
    assert daily[2] == {"day": "Tuesday", "date": "2024-01-09",
                        "revenue": 400.0, "orders": 1, "items": 2}
    assert daily[6]["revenue"] == 50.0
    assert daily[6]["items"] == 1

    totals = summary["summary"]
    assert totals["totalRevenue"] == 450.0
    assert totals["totalOrders"] == 2
    assert totals["averageOrderValue"] == 225.0
    assert totals["averageDailyRevenue"] == 64.29
    assert totals["busiestDay"]["day"] == "Tuesday"


def test_empty_week_reports_zeroes(app):
    summary = reports.weekly_summary(datetime(2024, 1, 7, 15, 30))
    assert summary["weekStart"] == "2024-01-07T00:00:00"
    assert summary["summary"]["totalOrders"] == 0
    assert summary["summary"]["averageOrderValue"] == 0.0
    assert summary["summary"]["busiestDay"]["day"] == "Sunday"


def test_custom_report_covers_every_metric_by_default(placed):
    now = utcnow()
    report = reports.custom_report(now - timedelta(days=1), now + timedelta(days=1))
    data = report["data"]
    assert set(data) == set(reports.REPORT_METRICS)

    assert data["revenue"] == {"total": 450.0, "subtotal": 450.0, "deliveryCharges": 0.0,
                               "orderCount": 2, "averageOrderValue": 225.0}
    assert data["orders"]["total"] == 3
    assert data["products"]["topSelling"] == [
        {"name": "Margherita", "category": "Pizza", "quantitySold": 2, "revenue": 400.0},
        {"name": "Cola", "category": "Drinks", "quantitySold": 1, "revenue": 50.0},
    ]
    assert data["customers"] == {"unique": 2, "repeat": 1, "repeatRate": 50.0}
    payments = {row["method"]: (row["revenue"], row["orderCount"]) for row in data["payments"]}
    assert payments == {"CASH_ON_DELIVERY": (400.0, 1), "CARD": (50.0, 1)}


def test_custom_report_selected_metrics_and_range(placed):
    now = utcnow()
    report = reports.custom_report(now - timedelta(days=1), now + timedelta(days=1),
                                   metrics=["customers"])
    assert list(report["data"]) == ["customers"]

    old = reports.custom_report(datetime(2020, 1, 1), datetime(2020, 12, 31))
    assert old["data"]["revenue"]["orderCount"] == 0
    assert old["data"]["products"]["topSelling"] == []
    assert old["period"]["start"] == "2020-01-01T00:00:00"


def test_custom_report_rejects_bad_input(app):
    with pytest.raises(errors.ValidationError):
        reports.custom_report(None, datetime(2024, 1, 1))
    with pytest.raises(errors.ValidationError):
        reports.custom_report(datetime(2024, 2, 1), datetime(2024, 1, 1))
    with pytest.raises(errors.ValidationError):
        reports.custom_report(datetime(2024, 1, 1), datetime(2024, 2, 1), metrics=["refunds"])
