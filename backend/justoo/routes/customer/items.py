# Overview: Customer catalog routes (browse, search, categories).

from flask import Blueprint, g, request

from ...decorators import require_auth
from ...responses import success_response
from ...services import item_service
from ...validation import parse_pagination


items_bp = Blueprint("items", __name__, url_prefix="/items")


@items_bp.get("")
def list_items_route():
    page, per_page = parse_pagination(request.args)
    items, pagination = item_service.list_items(request.args, page=page, per_page=per_page)
    return success_response(
        "Items retrieved successfully",
        {"items": [item.to_dict() for item in items], "pagination": pagination},
    )


@items_bp.get("/categories")
def categories_route():
    return success_response("Categories retrieved successfully", item_service.list_categories())


@items_bp.get("/featured")
def featured_route():
    items = item_service.featured_items(limit=request.args.get("limit", 10, type=int))
    return success_response("Featured items retrieved successfully", [item.to_dict() for item in items])


@items_bp.get("/search")
def search_route():
    items = item_service.search_items(request.args.get("q"), limit=request.args.get("limit", 20, type=int))
    return success_response("Search results retrieved successfully", [item.to_dict() for item in items])


@items_bp.get("/suggestions")
@require_auth("customer")
def suggestions_route():
    """Items from categories the customer already buys from."""
    items = item_service.suggestions(g.current_user.id, limit=request.args.get("limit", 10, type=int))
    return success_response("Suggestions retrieved successfully", [item.to_dict() for item in items])


@items_bp.get("/category/<category>")
def category_items_route(category: str):
    page, per_page = parse_pagination(request.args)
    items, pagination = item_service.items_by_category(category, page=page, per_page=per_page)
    return success_response(
        "Items retrieved successfully",
        {"items": [item.to_dict() for item in items], "pagination": pagination},
    )


@items_bp.get("/<int:item_id>")
def get_item_route(item_id: int):
    item = item_service.get_visible_item(item_id)
    return success_response("Item retrieved successfully", item.to_dict())
