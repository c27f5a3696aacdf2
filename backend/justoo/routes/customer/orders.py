# Overview: Customer order routes (checkout, history, cancellation).

from flask import Blueprint, current_app, g, request

from ...decorators import require_auth
from ...responses import get_json_body, success_response
from ...services import order_service
from ...validation import parse_pagination


orders_bp = Blueprint("orders", __name__, url_prefix="/orders")


@orders_bp.post("")
@require_auth("customer")
def create_order_route():
    """
    Place an order from the current cart.

    Body: delivery_address_id (required), payment_method, notes, special_instructions
    """
    data = get_json_body()
    order = order_service.place_order(
        g.current_user.id,
        delivery_address_id=data.get("delivery_address_id"),
        payment_method=data.get("payment_method") or "cash",
        notes=data.get("notes"),
        special_instructions=data.get("special_instructions"),
    )

    return success_response(
        "Order placed successfully",
        {
            "order": order_service.order_detail(order),
            "order_number": order.order_number,
            "estimated_delivery": current_app.config["ESTIMATED_DELIVERY_MINUTES"],
        },
        201,
    )


@orders_bp.get("")
@require_auth("customer")
def list_orders_route():
    page, per_page = parse_pagination(request.args)
    orders, pagination = order_service.list_customer_orders(
        g.current_user.id,
        status=request.args.get("status"),
        sort_by=request.args.get("sort_by"),
        sort_order=request.args.get("sort_order"),
        page=page,
        per_page=per_page,
    )
    return success_response(
        "Orders retrieved successfully",
        {"orders": [order.to_dict() for order in orders], "pagination": pagination},
    )


@orders_bp.get("/stats")
@require_auth("customer")
def order_stats_route():
    return success_response(
        "Order statistics retrieved successfully",
        order_service.customer_order_stats(g.current_user.id),
    )


@orders_bp.get("/<int:order_id>")
@require_auth("customer")
def get_order_route(order_id: int):
    order = order_service.get_customer_order(g.current_user.id, order_id)
    return success_response("Order retrieved successfully", order_service.order_detail(order))


@orders_bp.put("/<int:order_id>/cancel")
@require_auth("customer")
def cancel_order_route(order_id: int):
    """Customers may cancel while the order is placed or confirmed."""
    order = order_service.get_customer_order(g.current_user.id, order_id)
    order = order_service.cancel_order(
        order,
        reason=get_json_body().get("reason") or "Cancelled by customer",
        allowed_from=order_service.CUSTOMER_CANCELLABLE,
    )
    return success_response("Order cancelled successfully", order_service.order_detail(order))
