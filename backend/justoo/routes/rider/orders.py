# Overview: Rider order queues and order acceptance.

from flask import Blueprint, g, request

from ...decorators import require_auth
from ...responses import get_json_body, success_response
from ...services import delivery_service, order_service
from ...validation import parse_pagination


orders_bp = Blueprint("orders", __name__, url_prefix="/order")


def _page(orders, pagination, message):
    return success_response(
        message,
        {"orders": [order.to_dict(include_items=True) for order in orders], "pagination": pagination},
    )


@orders_bp.get("/available")
@require_auth("rider")
def available_orders_route():
    page, per_page = parse_pagination(request.args)
    orders, pagination = delivery_service.available_orders(page=page, per_page=per_page)
    return _page(orders, pagination, "Available orders retrieved successfully")


@orders_bp.get("/current")
@require_auth("rider")
def current_orders_route():
    orders = delivery_service.current_orders(g.current_user.id)
    return success_response(
        "Current orders retrieved successfully",
        [order_service.order_detail(order) for order in orders],
    )


@orders_bp.get("/assigned")
@require_auth("rider")
def assigned_orders_route():
    page, per_page = parse_pagination(request.args)
    orders, pagination = delivery_service.assigned_orders(
        g.current_user.id, status=request.args.get("status"), page=page, per_page=per_page
    )
    return _page(orders, pagination, "Assigned orders retrieved successfully")


@orders_bp.get("/completed")
@require_auth("rider")
def completed_orders_route():
    page, per_page = parse_pagination(request.args)
    orders, pagination = delivery_service.completed_orders(g.current_user.id, page=page, per_page=per_page)
    return _page(orders, pagination, "Completed orders retrieved successfully")


@orders_bp.get("/<int:order_id>")
@require_auth("rider")
def get_order_route(order_id: int):
    order = delivery_service.get_rider_order(g.current_user.id, order_id)
    return success_response("Order retrieved successfully", order_service.order_detail(order))


@orders_bp.post("/<int:order_id>/accept")
@require_auth("rider")
def accept_order_route(order_id: int):
    order = delivery_service.accept_order(g.current_user, order_id)
    return success_response("Order accepted successfully", order_service.order_detail(order))


@orders_bp.put("/<int:order_id>/status")
@require_auth("rider")
def update_status_route(order_id: int):
    data = get_json_body()
    order = delivery_service.update_order_status(
        g.current_user, order_id, data.get("status"), reason=data.get("reason")
    )
    return success_response("Order status updated successfully", order_service.order_detail(order))
