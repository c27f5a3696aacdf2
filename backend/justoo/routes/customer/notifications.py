# Overview: Customer notification inbox routes.

from flask import Blueprint, g, request

from ...decorators import require_auth
from ...responses import success_response
from ...services import notification_service
from ...validation import parse_pagination


notifications_bp = Blueprint("notifications", __name__, url_prefix="/notifications")


@notifications_bp.get("")
@require_auth("customer")
def list_notifications_route():
    page, per_page = parse_pagination(request.args)
    rows, pagination = notification_service.list_notifications(
        "customer",
        g.current_user.id,
        unread_only=request.args.get("unread_only", "false").lower() == "true",
        page=page,
        per_page=per_page,
    )
    return success_response(
        "Notifications retrieved successfully",
        {
            "notifications": [row.to_dict() for row in rows],
            "unread_count": notification_service.unread_count("customer", g.current_user.id),
            "pagination": pagination,
        },
    )


@notifications_bp.put("/<int:notification_id>/read")
@require_auth("customer")
def mark_read_route(notification_id: int):
    notification = notification_service.mark_read("customer", g.current_user.id, notification_id)
    return success_response("Notification marked as read", notification.to_dict())
