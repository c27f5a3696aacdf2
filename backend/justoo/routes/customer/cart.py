# Overview: Customer cart routes.

from flask import Blueprint, g

from ...decorators import require_auth
from ...responses import get_json_body, success_response
from ...services import cart_service


cart_bp = Blueprint("cart", __name__, url_prefix="/cart")


@cart_bp.get("")
@require_auth("customer")
def get_cart_route():
    cart = cart_service.get_cart(g.current_user.id)
    return success_response("Cart retrieved successfully", cart)


@cart_bp.get("/summary")
@require_auth("customer")
def cart_summary_route():
    summary = cart_service.get_summary(g.current_user.id)
    return success_response("Cart summary retrieved successfully", summary)


@cart_bp.post("/add")
@require_auth("customer")
def add_to_cart_route():
    data = get_json_body()
    cart = cart_service.add_item(g.current_user.id, data.get("item_id"), data.get("quantity", 1))
    return success_response("Item added to cart successfully", cart)


@cart_bp.put("/item/<int:item_id>")
@require_auth("customer")
def update_cart_item_route(item_id: int):
    data = get_json_body()
    cart = cart_service.update_item(g.current_user.id, item_id, data.get("quantity"))
    return success_response("Cart updated successfully", cart)


@cart_bp.delete("/item/<int:item_id>")
@require_auth("customer")
def remove_cart_item_route(item_id: int):
    cart = cart_service.remove_item(g.current_user.id, item_id)
    return success_response("Item removed from cart successfully", cart)


@cart_bp.delete("")
@cart_bp.delete("/clear")
@require_auth("customer")
def clear_cart_route():
    cart_service.clear_cart(g.current_user.id)
    return success_response("Cart cleared successfully")
