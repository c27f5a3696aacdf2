# Overview: Inventory item and stock routes.

from flask import Blueprint, request

from ...decorators import require_auth, require_role
from ...responses import get_json_body, success_response
from ...services import inventory_service
from ...validation import parse_pagination


items_bp = Blueprint("items", __name__, url_prefix="/inventory")


def _as_flag(name: str) -> bool:
    return request.args.get(name, "false").lower() == "true"


@items_bp.get("/units")
@require_auth("inventory")
def units_route():
    return success_response("Units retrieved successfully", inventory_service.list_units())


@items_bp.get("/items")
@require_auth("inventory")
def list_items_route():
    page, per_page = parse_pagination(request.args)
    items, pagination = inventory_service.list_items(
        page=page,
        per_page=per_page,
        category=request.args.get("category"),
        search=request.args.get("search"),
        stock_status=request.args.get("stock_status"),
        include_inactive=_as_flag("include_inactive"),
        sort_by=request.args.get("sort_by") or "name",
        sort_order=request.args.get("sort_order") or "asc",
    )
    return success_response(
        "Items retrieved successfully",
        {"items": [item.to_dict() for item in items], "pagination": pagination},
    )


@items_bp.get("/items/<int:item_id>")
@require_auth("inventory")
def get_item_route(item_id: int):
    item = inventory_service.get_item(item_id)
    return success_response("Item retrieved successfully", item.to_dict())


@items_bp.get("/stock/in-stock")
@items_bp.get("/stock/in")
@require_auth("inventory")
def in_stock_route():
    items = inventory_service.stock_list("in_stock")
    return success_response("In-stock items retrieved successfully", [item.to_dict() for item in items])


@items_bp.get("/stock/out-of-stock")
@items_bp.get("/stock/out")
@require_auth("inventory")
def out_of_stock_route():
    items = inventory_service.stock_list("out_of_stock")
    return success_response("Out-of-stock items retrieved successfully", [item.to_dict() for item in items])


@items_bp.get("/stock/low-stock")
@items_bp.get("/stock/low")
@require_auth("inventory")
def low_stock_route():
    items = inventory_service.stock_list("low_stock")
    return success_response("Low-stock items retrieved successfully", [item.to_dict() for item in items])


@items_bp.get("/dashboard/stats")
@items_bp.get("/dashboard")
@require_auth("inventory")
def dashboard_route():
    return success_response("Dashboard statistics retrieved successfully", inventory_service.dashboard_stats())


# -----------------------------------------------------------------------------
# Item management (inventory role "admin" only)
# -----------------------------------------------------------------------------

@items_bp.post("/items")
@require_auth("inventory")
@require_role("admin")
def create_item_route():
    """
    Create an item.

    Body: name, price_cents, unit (required); quantity, discount_percent,
    min_stock_level, category, description, image_url (optional).
    """
    item = inventory_service.create_item(get_json_body())
    return success_response("Item created successfully", item.to_dict(), 201)


@items_bp.put("/items/<int:item_id>")
@require_auth("inventory")
@require_role("admin")
def update_item_route(item_id: int):
    item = inventory_service.update_item(item_id, get_json_body())
    return success_response("Item updated successfully", item.to_dict())


@items_bp.delete("/items/<int:item_id>")
@require_auth("inventory")
@require_role("admin")
def delete_item_route(item_id: int):
    """Soft delete by default; ?permanent=true removes the row."""
    permanent = _as_flag("permanent")
    inventory_service.delete_item(item_id, permanent=permanent)
    message = "Item permanently deleted" if permanent else "Item deactivated successfully"
    return success_response(message)
