# Overview: Admin account management and analytics routes.

from flask import Blueprint, g, request

from ...decorators import require_auth, require_role
from ...models.accounts import ADMIN_ROLES
from ...responses import get_json_body, success_response
from ...services import admin_service, analytics_service
from ...validation import parse_pagination


admins_bp = Blueprint("admins", __name__, url_prefix="/admin")


@admins_bp.get("/")
@require_auth("admin")
@require_role(*ADMIN_ROLES)
def list_admins_route():
    admins = admin_service.list_admins()
    return success_response("Admins retrieved successfully", [admin.to_dict() for admin in admins])


@admins_bp.post("/add")
@require_auth("admin")
@require_role("superadmin")
def add_admin_route():
    admin = admin_service.create_admin(get_json_body())
    return success_response("Admin created successfully", admin.to_dict(), 201)


@admins_bp.delete("/<int:admin_id>")
@require_auth("admin")
@require_role("superadmin")
def delete_admin_route(admin_id: int):
    admin_service.delete_admin(g.current_user, admin_id)
    return success_response("Admin deleted successfully")


@admins_bp.get("/users")
@require_auth("admin")
@require_role(*ADMIN_ROLES)
def list_users_route():
    page, per_page = parse_pagination(request.args)
    users, pagination = admin_service.list_users(role=request.args.get("role"), page=page, per_page=per_page)
    return success_response(
        "Users retrieved successfully",
        {"users": [user.to_dict() for user in users], "pagination": pagination},
    )


@admins_bp.delete("/users/<int:admin_id>")
@require_auth("admin")
@require_role("superadmin")
def delete_user_route(admin_id: int):
    admin_service.delete_admin(g.current_user, admin_id)
    return success_response("User deleted successfully")


# -----------------------------------------------------------------------------
# Analytics (window: ?days=N or ?start_date=&end_date=)
# -----------------------------------------------------------------------------

@admins_bp.get("/analytics/orders")
@require_auth("admin")
@require_role(*ADMIN_ROLES)
def order_analytics_route():
    start, end = analytics_service.parse_window(request.args)
    return success_response("Order analytics retrieved successfully", analytics_service.order_analytics(start, end))


@admins_bp.get("/analytics/inventory")
@require_auth("admin")
@require_role(*ADMIN_ROLES)
def inventory_analytics_route():
    return success_response("Inventory analytics retrieved successfully", analytics_service.inventory_analytics())


@admins_bp.get("/analytics/users")
@require_auth("admin")
@require_role(*ADMIN_ROLES)
def user_analytics_route():
    start, end = analytics_service.parse_window(request.args)
    return success_response("User analytics retrieved successfully", analytics_service.user_analytics(start, end))


@admins_bp.get("/analytics/payments")
@require_auth("admin")
@require_role(*ADMIN_ROLES)
def payment_analytics_route():
    start, end = analytics_service.parse_window(request.args)
    return success_response("Payment analytics retrieved successfully", analytics_service.payment_analytics(start, end))


@admins_bp.get("/analytics/dashboard")
@require_auth("admin")
@require_role(*ADMIN_ROLES)
def dashboard_route():
    start, end = analytics_service.parse_window(request.args)
    return success_response("Dashboard analytics retrieved successfully", analytics_service.dashboard(start, end))
