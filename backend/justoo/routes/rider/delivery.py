# Overview: Rider delivery actions, progress and statistics.

from flask import Blueprint, g, request

from ...decorators import require_auth
from ...responses import get_json_body, success_response
from ...services import delivery_service, order_service
from ...validation import parse_pagination


delivery_bp = Blueprint("delivery", __name__, url_prefix="/delivery")


@delivery_bp.post("/<int:order_id>/start")
@require_auth("rider")
def start_delivery_route(order_id: int):
    order = delivery_service.start_delivery(g.current_user, order_id)
    return success_response("Delivery started successfully", order_service.order_detail(order))


@delivery_bp.post("/<int:order_id>/complete")
@require_auth("rider")
def complete_delivery_route(order_id: int):
    order = delivery_service.complete_delivery(g.current_user, order_id, notes=get_json_body().get("notes"))
    return success_response("Delivery completed successfully", order_service.order_detail(order))


@delivery_bp.post("/<int:order_id>/fail")
@require_auth("rider")
def fail_delivery_route(order_id: int):
    order = delivery_service.fail_delivery(g.current_user, order_id, get_json_body().get("reason"))
    return success_response("Delivery marked as failed", order_service.order_detail(order))


@delivery_bp.get("/<int:order_id>/progress")
@require_auth("rider")
def progress_route(order_id: int):
    return success_response(
        "Delivery progress retrieved successfully",
        delivery_service.delivery_progress(g.current_user, order_id),
    )


@delivery_bp.put("/<int:order_id>/progress")
@require_auth("rider")
def update_progress_route(order_id: int):
    """Body: progress_notes, latitude, longitude (all optional)."""
    order = delivery_service.update_delivery_progress(g.current_user, order_id, get_json_body())
    return success_response("Delivery progress updated successfully", order_service.order_detail(order))


@delivery_bp.get("/history")
@require_auth("rider")
def history_route():
    page, per_page = parse_pagination(request.args)
    orders, pagination = delivery_service.delivery_history(g.current_user.id, page=page, per_page=per_page)
    return success_response(
        "Delivery history retrieved successfully",
        {"orders": [order.to_dict() for order in orders], "pagination": pagination},
    )


@delivery_bp.get("/stats")
@require_auth("rider")
def stats_route():
    stats = delivery_service.delivery_stats(g.current_user, request.args.get("period"))
    return success_response("Delivery statistics retrieved successfully", stats)
