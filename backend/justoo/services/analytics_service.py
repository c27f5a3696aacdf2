# Overview: Aggregate queries behind the admin analytics dashboards.

from __future__ import annotations

from datetime import datetime, timedelta

from sqlalchemy import case, func

from ..extensions import db
from ..models import Admin, Customer, Item, Order, OrderItem, Payment, Rider
from ..models.accounts import ADMIN_ROLES
from ..models.orders import ORDER_STATUSES, PAYMENT_METHODS, PAYMENT_STATUSES
from ..time_utils import parse_iso_datetime, to_utc_z, utcnow
from ..validation import ValidationError


DEFAULT_WINDOW_DAYS = 30
MAX_WINDOW_DAYS = 366
TOP_SELLING_LIMIT = 10


def parse_window(args) -> tuple[datetime, datetime]:
    """
    Resolve the reporting window from query args.

    start_date/end_date (ISO-8601) win over days; days defaults to 30.
    A bare end date covers that whole day.
    """
    start_raw = args.get("start_date")
    end_raw = args.get("end_date")
    if start_raw or end_raw:
        try:
            start = parse_iso_datetime(start_raw)
            end = parse_iso_datetime(end_raw)
        except ValueError:
            raise ValidationError("start_date and end_date must be ISO-8601 dates")
        end = end or utcnow()
        if end_raw and len(end_raw.strip()) == 10:
            end = end + timedelta(days=1) - timedelta(microseconds=1)
        start = start or end - timedelta(days=DEFAULT_WINDOW_DAYS)
        if start > end:
            raise ValidationError("start_date must be before end_date")
        return start, end

    try:
        days = int(args.get("days", DEFAULT_WINDOW_DAYS))
    except (TypeError, ValueError):
        raise ValidationError("days must be an integer")
    if not 1 <= days <= MAX_WINDOW_DAYS:
        raise ValidationError(f"days must be between 1 and {MAX_WINDOW_DAYS}")
    end = utcnow()
    return end - timedelta(days=days), end


def _window_dict(start: datetime, end: datetime) -> dict:
    return {"start": to_utc_z(start), "end": to_utc_z(end)}


def _status_counts(query_filter) -> dict:
    rows = dict(
        db.session.query(Order.status, func.count(Order.id))
        .filter(*query_filter)
        .group_by(Order.status)
        .all()
    )
    return {status: rows.get(status, 0) for status in ORDER_STATUSES}


def order_analytics(start: datetime, end: datetime) -> dict:
    in_window = (Order.placed_at >= start, Order.placed_at <= end)

    total_orders = db.session.query(func.count(Order.id)).filter(*in_window).scalar() or 0

    revenue_total, revenue_avg, revenue_max, revenue_min, delivered_count = (
        db.session.query(
            func.coalesce(func.sum(Order.total_cents), 0),
            func.coalesce(func.avg(Order.total_cents), 0),
            func.coalesce(func.max(Order.total_cents), 0),
            func.coalesce(func.min(Order.total_cents), 0),
            func.count(Order.id),
        )
        .filter(*in_window, Order.status == "delivered")
        .one()
    )

    day = func.date(Order.placed_at)
    trend_rows = (
        db.session.query(
            day.label("day"),
            func.count(Order.id),
            func.coalesce(func.sum(Order.total_cents), 0),
        )
        .filter(*in_window)
        .group_by(day)
        .order_by(day)
        .all()
    )

    return {
        "window": _window_dict(start, end),
        "total_orders": total_orders,
        "by_status": _status_counts(in_window),
        "revenue": {
            "delivered_orders": int(delivered_count),
            "total_cents": int(revenue_total),
            "average_cents": int(round(float(revenue_avg))),
            "max_cents": int(revenue_max),
            "min_cents": int(revenue_min),
        },
        "daily_trend": [
            {"date": str(row_day), "orders": count, "total_cents": int(total)}
            for row_day, count, total in trend_rows
        ],
    }


def inventory_analytics() -> dict:
    active = Item.is_active.is_(True)

    low_stock = (
        db.session.query(Item)
        .filter(active, Item.quantity <= Item.min_stock_level)
        .order_by(Item.quantity.asc(), Item.name)
        .all()
    )

    total_items, total_quantity, total_value, out_of_stock = (
        db.session.query(
            func.count(Item.id),
            func.coalesce(func.sum(Item.quantity), 0),
            func.coalesce(func.sum(Item.quantity * Item.price_cents), 0),
            func.coalesce(func.sum(case((Item.quantity <= 0, 1), else_=0)), 0),
        )
        .filter(active)
        .one()
    )

    categories = (
        db.session.query(
            func.coalesce(Item.category, "uncategorized"),
            func.count(Item.id),
            func.coalesce(func.sum(Item.quantity), 0),
            func.coalesce(func.sum(Item.quantity * Item.price_cents), 0),
        )
        .filter(active)
        .group_by(func.coalesce(Item.category, "uncategorized"))
        .order_by(func.count(Item.id).desc())
        .all()
    )

    sold_quantity = func.sum(OrderItem.quantity)
    top_selling = (
        db.session.query(
            OrderItem.item_id,
            OrderItem.item_name,
            sold_quantity.label("sold"),
            func.coalesce(func.sum(OrderItem.total_price_cents), 0),
        )
        .join(Order, Order.id == OrderItem.order_id)
        .filter(Order.status != "cancelled")
        .group_by(OrderItem.item_id, OrderItem.item_name)
        .order_by(sold_quantity.desc())
        .limit(TOP_SELLING_LIMIT)
        .all()
    )

    return {
        "totals": {
            "active_items": int(total_items),
            "total_quantity": int(total_quantity),
            "total_value_cents": int(total_value),
            "out_of_stock_items": int(out_of_stock),
            "low_stock_items": len(low_stock),
        },
        "low_stock_items": [item.to_dict() for item in low_stock],
        "category_distribution": [
            {
                "category": category,
                "item_count": count,
                "total_quantity": int(quantity),
                "total_value_cents": int(value),
            }
            for category, count, quantity, value in categories
        ],
        "top_selling_items": [
            {
                "item_id": item_id,
                "item_name": name,
                "quantity_sold": int(sold),
                "revenue_cents": int(revenue),
            }
            for item_id, name, sold, revenue in top_selling
        ],
    }


def user_analytics(start: datetime, end: datetime) -> dict:
    admin_roles = dict(
        db.session.query(Admin.role, func.count(Admin.id)).group_by(Admin.role).all()
    )
    recent_admins = (
        db.session.query(func.count(Admin.id)).filter(Admin.created_at >= start, Admin.created_at <= end).scalar()
        or 0
    )
    total_customers = db.session.query(func.count(Customer.id)).scalar() or 0
    new_customers = (
        db.session.query(func.count(Customer.id))
        .filter(Customer.created_at >= start, Customer.created_at <= end)
        .scalar()
        or 0
    )
    active_customers = (
        db.session.query(func.count(func.distinct(Order.customer_id)))
        .filter(Order.customer_id.isnot(None), Order.placed_at >= start, Order.placed_at <= end)
        .scalar()
        or 0
    )
    riders_total = db.session.query(func.count(Rider.id)).filter(Rider.is_active.is_(True)).scalar() or 0
    riders_available = (
        db.session.query(func.count(Rider.id))
        .filter(Rider.is_active.is_(True), Rider.status == "active")
        .scalar()
        or 0
    )

    return {
        "window": _window_dict(start, end),
        "admins": {
            "by_role": {role: admin_roles.get(role, 0) for role in ADMIN_ROLES},
            "recent_registrations": recent_admins,
        },
        "customers": {
            "total": total_customers,
            "new_in_window": new_customers,
            "active_in_window": active_customers,
        },
        "riders": {
            "total": riders_total,
            "available": riders_available,
        },
    }


def payment_analytics(start: datetime, end: datetime) -> dict:
    in_window = (Payment.created_at >= start, Payment.created_at <= end)

    by_method_rows = (
        db.session.query(
            Payment.method,
            func.count(Payment.id),
            func.coalesce(func.sum(Payment.amount_cents), 0),
        )
        .filter(*in_window, Payment.status == "completed")
        .group_by(Payment.method)
        .all()
    )
    by_method = {method: {"count": 0, "total_cents": 0} for method in PAYMENT_METHODS}
    for method, count, total in by_method_rows:
        by_method[method] = {"count": count, "total_cents": int(total)}

    status_rows = dict(
        db.session.query(Payment.status, func.count(Payment.id))
        .filter(*in_window)
        .group_by(Payment.status)
        .all()
    )

    return {
        "window": _window_dict(start, end),
        "completed_by_method": by_method,
        "completed_total_cents": sum(row["total_cents"] for row in by_method.values()),
        "payments_by_status": {status: status_rows.get(status, 0) for status in PAYMENT_STATUSES},
        "orders_by_status": _status_counts((Order.placed_at >= start, Order.placed_at <= end)),
    }


def dashboard(start: datetime, end: datetime) -> dict:
    orders = order_analytics(start, end)
    return {
        "window": _window_dict(start, end),
        "orders": {
            "total": orders["total_orders"],
            "by_status": orders["by_status"],
            "revenue": orders["revenue"],
            "daily_trend": orders["daily_trend"],
        },
        "inventory": inventory_analytics()["totals"],
        "users": user_analytics(start, end),
        "payments": payment_analytics(start, end)["completed_by_method"],
    }
