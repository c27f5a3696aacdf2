# Overview: Inventory-side order routes (stock orders, cancellation, bulk stock updates).

from flask import Blueprint, request

from ...decorators import require_auth
from ...responses import get_json_body, success_response
from ...services import inventory_service, order_service
from ...validation import parse_pagination


orders_bp = Blueprint("orders", __name__, url_prefix="/orders")


@orders_bp.get("")
@require_auth("inventory")
def list_orders_route():
    page, per_page = parse_pagination(request.args)
    orders, pagination = order_service.list_orders(
        status=request.args.get("status"),
        customer_id=request.args.get("customer_id"),
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
        {"orders": [order.to_dict(include_items=True) for order in orders], "pagination": pagination},
    )


@orders_bp.get("/<int:order_id>")
@require_auth("inventory")
def get_order_route(order_id: int):
    order = order_service.get_order(order_id)
    return success_response("Order retrieved successfully", order_service.order_detail(order))


@orders_bp.get("/external/<external_id>")
@require_auth("inventory")
def get_external_order_route(external_id: str):
    order = order_service.find_by_external_id(external_id)
    return success_response("Order retrieved successfully", order_service.order_detail(order))


@orders_bp.post("/place-order")
@require_auth("inventory")
def place_order_route():
    """
    Place a stock order.

    Body: items [{item_id, quantity}], notes, customer_id, external_order_id.
    Lines that fail are reported in errors; the rest are still ordered.
    """
    data = get_json_body()
    result = order_service.place_stock_order(
        data.get("items"),
        notes=data.get("notes"),
        customer_id=data.get("customer_id"),
        external_order_id=data.get("external_order_id"),
    )
    order = result["order"]
    message = "Order placed successfully"
    if result["errors"]:
        message = "Order placed with some errors"
    return success_response(
        message,
        {
            "order": order_service.order_detail(order),
            "processed_items": result["processed"],
            "errors": result["errors"],
        },
        201,
    )


@orders_bp.post("/<int:order_id>/cancel")
@require_auth("inventory")
def cancel_order_route(order_id: int):
    order = order_service.get_order(order_id)
    order = order_service.cancel_order(order, reason=get_json_body().get("reason") or "Cancelled by inventory")
    return success_response("Order cancelled successfully and stock restored", order_service.order_detail(order))


@orders_bp.post("/bulk-update")
@require_auth("inventory")
def bulk_update_route():
    """Body: updates [{item_id, quantity, operation: set|add|subtract}]."""
    result = inventory_service.bulk_update_stock(get_json_body().get("updates"))
    return success_response("Bulk stock update processed", result)


@orders_bp.post("/check-availability")
@require_auth("inventory")
def check_availability_route():
    result = inventory_service.check_availability(get_json_body().get("items"))
    return success_response("Availability checked", result)
