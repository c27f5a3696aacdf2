# Overview: Admin order listing, analytics and detail routes.

from flask import Blueprint, request

from ...decorators import require_auth, require_role
from ...models.accounts import ADMIN_ROLES
from ...responses import success_response
from ...services import analytics_service, order_service
from ...validation import parse_pagination


orders_bp = Blueprint("orders", __name__, url_prefix="/orders")


@orders_bp.get("")
@require_auth("admin")
@require_role(*ADMIN_ROLES)
def list_orders_route():
    """Filters: status, customer_id, rider_id, search (order number), start_date, end_date."""
    page, per_page = parse_pagination(request.args)
    orders, pagination = order_service.list_orders(
        status=request.args.get("status"),
        customer_id=request.args.get("customer_id"),
        rider_id=request.args.get("rider_id"),
        search=request.args.get("search"),
        start_date=request.args.get("start_date"),
        end_date=request.args.get("end_date"),
        sort_by=request.args.get("sort_by"),
        sort_order=request.args.get("sort_order"),
        page=page,
        per_page=per_page,
    )
    return success_response(
        "Orders retrieved successfully",
        {"orders": [order.to_dict() for order in orders], "pagination": pagination},
    )


@orders_bp.get("/analytics")
@require_auth("admin")
@require_role(*ADMIN_ROLES)
def order_analytics_route():
    start, end = analytics_service.parse_window(request.args)
    return success_response("Order analytics retrieved successfully", analytics_service.order_analytics(start, end))


@orders_bp.get("/<int:order_id>")
@require_auth("admin")
@require_role(*ADMIN_ROLES)
def get_order_route(order_id: int):
    order = order_service.get_order(order_id)
    return success_response("Order retrieved successfully", order_service.order_detail(order))
