"""Admin reporting over orders. Revenue figures never include cancelled orders."""
from collections import OrderedDict
from datetime import datetime, time, timedelta
from decimal import Decimal

from sqlalchemy import func

from restaurant_ordering import db, errors
from restaurant_ordering.models import Category, FoodItem, Order, OrderItem, OrderStatus
from restaurant_ordering.services.helper import to_money, to_naive_utc, utcnow

OPEN_STATUSES = [
    OrderStatus.PENDING,
    OrderStatus.CONFIRMED,
    OrderStatus.PREPARING,
    OrderStatus.READY,
    OrderStatus.OUT_FOR_DELIVERY,
]

WEEKDAYS = ("Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday")
REPORT_METRICS = ("revenue", "orders", "products", "customers", "payments")
TOP_PRODUCTS = 10


def _not_cancelled():
    return Order.status != OrderStatus.CANCELLED


def _in_range(query, start=None, end=None):
    if start is not None:
        query = query.filter(Order.created_at >= to_naive_utc(start))
    if end is not None:
        query = query.filter(Order.created_at <= to_naive_utc(end))
    return query


def _money(value):
    return float(to_money(value or 0))


def dashboard_stats(now=None):
    now = now or utcnow()
    today = now.replace(hour=0, minute=0, second=0, microsecond=0)
    tomorrow = today + timedelta(days=1)
    revenue_query = db.session.query(func.sum(Order.total)).filter(_not_cancelled())
    today_filter = (Order.created_at >= today, Order.created_at < tomorrow)

    return {
        "todayOrders": Order.query.filter(*today_filter).count(),
        "todayRevenue": _money(revenue_query.filter(*today_filter).scalar()),
        "totalOrders": Order.query.count(),
        "totalRevenue": _money(revenue_query.scalar()),
        "totalCustomers": db.session.query(
            func.count(func.distinct(Order.customer_phone))).scalar() or 0,
        "averageOrderValue": _money(db.session.query(func.avg(Order.total))
                                    .filter(_not_cancelled()).scalar()),
        "pendingOrders": Order.query.filter(Order.status.in_(OPEN_STATUSES)).count(),
        "completedOrders": Order.query.filter(
            Order.status == OrderStatus.DELIVERED).count(),
    }


def status_counts(start=None, end=None):
    """Order count per status, cancelled included."""
    query = _in_range(
        db.session.query(Order.status, func.count(Order.id)), start, end)
    rows = query.group_by(Order.status).all()
    return [{"status": status.value, "count": count} for status, count in rows]


def order_analytics(start=None, end=None):
    base = _in_range(db.session.query(Order), start, end).filter(_not_cancelled())
    total_orders = base.count()
    total_revenue, average = _in_range(
        db.session.query(func.sum(Order.total), func.avg(Order.total)), start, end
    ).filter(_not_cancelled()).one()
    by_payment = _in_range(
        db.session.query(Order.payment_method, func.count(Order.id)), start, end
    ).filter(_not_cancelled()).group_by(Order.payment_method).all()

    return {
        "totalOrders": total_orders,
        "totalRevenue": _money(total_revenue),
        "averageOrderValue": _money(average),
        "ordersByStatus": status_counts(start, end),
        "ordersByPaymentMethod": [
            {"paymentMethod": method.value, "count": count}
            for method, count in by_payment
        ],
    }


def revenue_report(start=None, end=None):
    """Revenue and order count per calendar day (UTC), oldest first."""
    rows = _in_range(
        db.session.query(Order.created_at, Order.total), start, end
    ).filter(_not_cancelled()).order_by(Order.created_at.asc()).all()

    days = OrderedDict()
    for created_at, total in rows:
        day = created_at.date().isoformat()
        entry = days.setdefault(day, {"revenue": Decimal("0.00"), "orders": 0})
        entry["revenue"] += Decimal(total)
        entry["orders"] += 1

    return [
        {"date": day, "revenue": _money(entry["revenue"]), "orders": entry["orders"]}
        for day, entry in days.items()
    ]


def _as_datetime(value):
    if isinstance(value, datetime):
        return to_naive_utc(value)
    return datetime.combine(value, time())


def week_start(moment):
    """Midnight of the Sunday on or before ``moment``."""
    day = _as_datetime(moment).replace(hour=0, minute=0, second=0, microsecond=0)
    return day - timedelta(days=(day.weekday() + 1) % 7)


def weekly_summary(start=None):
    """Sunday-to-Saturday figures for the week holding ``start`` (default today)."""
    start = week_start(start or utcnow())
    end = start + timedelta(days=7)

    daily = []
    for offset, name in enumerate(WEEKDAYS):
        day = start + timedelta(days=offset)
        daily.append({"day": name, "date": day.date().isoformat(),
                      "revenue": Decimal("0.00"), "orders": 0, "items": 0})

    rows = (db.session.query(Order.created_at, Order.total,
                             func.coalesce(func.sum(OrderItem.quantity), 0))
            .outerjoin(OrderItem, OrderItem.order_id == Order.id)
            .filter(_not_cancelled(), Order.created_at >= start, Order.created_at < end)
            .group_by(Order.id, Order.created_at, Order.total)
            .all())
    for created_at, total, quantity in rows:
        entry = daily[(created_at - start).days]
        entry["revenue"] += Decimal(total)
        entry["orders"] += 1
        entry["items"] += int(quantity)

    total_revenue = sum((entry["revenue"] for entry in daily), Decimal("0.00"))
    total_orders = sum(entry["orders"] for entry in daily)
    for entry in daily:
        entry["revenue"] = _money(entry["revenue"])
    busiest = max(daily, key=lambda entry: entry["revenue"])

    return {
        "weekStart": start.isoformat(),
        "weekEnd": end.isoformat(),
        "summary": {
            "totalRevenue": _money(total_revenue),
            "totalOrders": total_orders,
            "averageOrderValue": _money(total_revenue / (total_orders or 1)),
            "averageDailyRevenue": _money(total_revenue / 7),
            "busiestDay": busiest,
        },
        "dailyBreakdown": daily,
    }


def _revenue_metric(start, end):
    total, subtotal, delivery, count, average = _in_range(db.session.query(
        func.sum(Order.total), func.sum(Order.subtotal), func.sum(Order.delivery_charges),
        func.count(Order.id), func.avg(Order.total)
    ), start, end).filter(_not_cancelled()).one()
    return {
        "total": _money(total),
        "subtotal": _money(subtotal),
        "deliveryCharges": _money(delivery),
        "orderCount": count,
        "averageOrderValue": _money(average),
    }


def _orders_metric(start, end):
    by_status = status_counts(start, end)
    return {"byStatus": by_status, "total": sum(row["count"] for row in by_status)}


def _products_metric(start, end):
    quantity = func.sum(OrderItem.quantity)
    query = (db.session.query(FoodItem.name, Category.name, quantity, func.sum(OrderItem.total))
             .select_from(OrderItem)
             .join(Order, OrderItem.order_id == Order.id)
             .join(FoodItem, OrderItem.food_item_id == FoodItem.id)
             .join(Category, FoodItem.category_id == Category.id)
             .filter(_not_cancelled()))
    rows = (_in_range(query, start, end)
            .group_by(FoodItem.id, FoodItem.name, Category.name)
            .order_by(quantity.desc(), FoodItem.id.asc())
            .limit(TOP_PRODUCTS)
            .all())
    return {"topSelling": [
        {"name": name, "category": category, "quantitySold": int(sold), "revenue": _money(revenue)}
        for name, category, sold, revenue in rows
    ]}


def _customers_metric(start, end):
    per_phone = _in_range(
        db.session.query(Order.customer_phone, func.count(Order.id)), start, end
    ).group_by(Order.customer_phone).all()
    unique = len(per_phone)
    repeat = sum(1 for _, count in per_phone if count > 1)
    return {
        "unique": unique,
        "repeat": repeat,
        "repeatRate": round(repeat / (unique or 1) * 100, 2),
    }


def _payments_metric(start, end):
    rows = _in_range(
        db.session.query(Order.payment_method, func.sum(Order.total), func.count(Order.id)),
        start, end
    ).filter(_not_cancelled()).group_by(Order.payment_method).all()
    return [{"method": method.value, "revenue": _money(revenue), "orderCount": count}
            for method, revenue, count in rows]


_METRIC_BUILDERS = {
    "revenue": _revenue_metric,
    "orders": _orders_metric,
    "products": _products_metric,
    "customers": _customers_metric,
    "payments": _payments_metric,
}


def custom_report(start, end, metrics=None):
    """Selected metrics over ``start``..``end`` inclusive; every metric when ``metrics`` is empty."""
    if start is None or end is None:
        raise errors.ValidationError("Start date and end date are required")
    start, end = _as_datetime(start), _as_datetime(end)
    if start > end:
        raise errors.ValidationError("Start date must be before end date")

    unknown = sorted(set(metrics or ()) - set(REPORT_METRICS))
    if unknown:
        raise errors.ValidationError(f"Unknown report metrics: {', '.join(unknown)}")
    wanted = [name for name in REPORT_METRICS if not metrics or name in metrics]

    return {
        "period": {"start": start.isoformat(), "end": end.isoformat()},
        "generatedAt": utcnow().isoformat(),
        "data": {name: _METRIC_BUILDERS[name](start, end) for name in wanted},
    }
