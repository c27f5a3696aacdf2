# Overview: Rider notification inbox routes.

from flask import Blueprint, g, request

from ...decorators import require_auth
from ...responses import success_response
from ...services import notification_service
from ...validation import parse_pagination


notifications_bp = Blueprint("notifications", __name__, url_prefix="/notifications")


@notifications_bp.get("")
@require_auth("rider")
def list_notifications_route():
    page, per_page = parse_pagination(request.args)
    rows, pagination = notification_service.list_notifications(
        "rider",
        g.current_user.id,
        unread_only=request.args.get("unread_only", "false").lower() == "true",
        page=page,
        per_page=per_page,
    )
    return success_response(
        "Notifications retrieved successfully",
        {"notifications": [row.to_dict() for row in rows], "pagination": pagination},
    )


@notifications_bp.get("/count")
@require_auth("rider")
def unread_count_route():
    count = notification_service.unread_count("rider", g.current_user.id)
    return success_response("Unread count retrieved successfully", {"unread_count": count})


@notifications_bp.put("/read-all")
@require_auth("rider")
def mark_all_read_route():
    updated = notification_service.mark_all_read("rider", g.current_user.id)
    return success_response("All notifications marked as read", {"updated": updated})


@notifications_bp.put("/<int:notification_id>/read")
@require_auth("rider")
def mark_read_route(notification_id: int):
    notification = notification_service.mark_read("rider", g.current_user.id, notification_id)
    return success_response("Notification marked as read", notification.to_dict())


@notifications_bp.delete("/<int:notification_id>")
@require_auth("rider")
def delete_notification_route(notification_id: int):
    notification_service.delete_notification("rider", g.current_user.id, notification_id)
    return success_response("Notification deleted successfully")
