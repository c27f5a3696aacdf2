# Overview: Superadmin management of inventory-surface accounts.

from flask import Blueprint, g, request

from ...decorators import require_auth, require_role
from ...responses import get_json_body, success_response
from ...services import admin_service
from ...validation import parse_pagination


inventory_admins_bp = Blueprint("inventory_admins", __name__, url_prefix="/admin/inventory-admins")


@inventory_admins_bp.get("")
@require_auth("admin")
@require_role("superadmin")
def list_inventory_admins_route():
    page, per_page = parse_pagination(request.args)
    users, pagination = admin_service.list_inventory_users(
        role=request.args.get("role"),
        search=request.args.get("search"),
        page=page,
        per_page=per_page,
    )
    return success_response(
        "Inventory admins retrieved successfully",
        {"inventory_admins": [user.to_dict() for user in users], "pagination": pagination},
    )


@inventory_admins_bp.get("/<int:user_id>")
@require_auth("admin")
@require_role("superadmin")
def get_inventory_admin_route(user_id: int):
    user = admin_service.get_inventory_user(user_id)
    return success_response("Inventory admin retrieved successfully", user.to_dict())


@inventory_admins_bp.post("")
@require_auth("admin")
@require_role("superadmin")
def create_inventory_admin_route():
    user = admin_service.create_inventory_user(get_json_body(), created_by=g.current_user.id)
    return success_response("Inventory admin created successfully", user.to_dict(), 201)


@inventory_admins_bp.put("/<int:user_id>")
@require_auth("admin")
@require_role("superadmin")
def update_inventory_admin_route(user_id: int):
    user = admin_service.update_inventory_user(user_id, get_json_body())
    return success_response("Inventory admin updated successfully", user.to_dict())


@inventory_admins_bp.delete("/<int:user_id>")
@require_auth("admin")
@require_role("superadmin")
def delete_inventory_admin_route(user_id: int):
    admin_service.delete_inventory_user(user_id)
    return success_response("Inventory admin deleted successfully")


@inventory_admins_bp.route("/<int:user_id>/toggle-status", methods=["PATCH", "PUT"])
@require_auth("admin")
@require_role("superadmin")
def toggle_inventory_admin_route(user_id: int):
    user = admin_service.toggle_inventory_user_status(user_id)
    state = "activated" if user.is_active else "deactivated"
    return success_response(f"Inventory admin {state} successfully", user.to_dict())
