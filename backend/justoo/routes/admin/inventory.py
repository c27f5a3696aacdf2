# Overview: Read-only inventory views for the admin surface.

from flask import Blueprint, request

from ...decorators import require_auth, require_role
from ...models.accounts import ADMIN_ROLES
from ...responses import success_response
from ...services import analytics_service, inventory_service
from ...validation import parse_pagination


inventory_bp = Blueprint("inventory", __name__, url_prefix="/inventory")


@inventory_bp.get("")
@require_auth("admin")
@require_role(*ADMIN_ROLES)
def list_inventory_route():
    page, per_page = parse_pagination(request.args)
    items, pagination = inventory_service.list_items(
        page=page,
        per_page=per_page,
        category=request.args.get("category"),
        search=request.args.get("search"),
        stock_status=request.args.get("stock_status"),
        include_inactive=request.args.get("include_inactive", "false").lower() == "true",
        sort_by=request.args.get("sort_by") or "name",
        sort_order=request.args.get("sort_order") or "asc",
    )
    return success_response(
        "Inventory retrieved successfully",
        {"items": [item.to_dict() for item in items], "pagination": pagination},
    )


@inventory_bp.get("/analytics")
@require_auth("admin")
@require_role(*ADMIN_ROLES)
def inventory_analytics_route():
    return success_response("Inventory analytics retrieved successfully", analytics_service.inventory_analytics())


@inventory_bp.get("/low-stock")
@require_auth("admin")
@require_role(*ADMIN_ROLES)
def low_stock_route():
    items = inventory_service.stock_list("low_stock")
    return success_response("Low stock items retrieved successfully", [item.to_dict() for item in items])


@inventory_bp.get("/<int:item_id>")
@require_auth("admin")
@require_role(*ADMIN_ROLES)
def get_inventory_item_route(item_id: int):
    item = inventory_service.get_item(item_id)
    return success_response("Item retrieved successfully", item.to_dict())
