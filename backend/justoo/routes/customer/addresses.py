# Overview: Customer delivery address routes.

from flask import Blueprint, g, request

from ...decorators import require_auth
from ...responses import get_json_body, success_response
from ...services import address_service


addresses_bp = Blueprint("addresses", __name__, url_prefix="/addresses")


@addresses_bp.get("")
@require_auth("customer")
def list_addresses_route():
    addresses = address_service.list_addresses(g.current_user.id)
    return success_response("Addresses retrieved successfully", [a.to_dict() for a in addresses])


@addresses_bp.get("/default")
@require_auth("customer")
def default_address_route():
    address = address_service.get_default_address(g.current_user.id)
    return success_response("Default address retrieved successfully", address.to_dict())


@addresses_bp.route("/validate", methods=["GET", "POST"])
@require_auth("customer")
def validate_location_route():
    """Check coordinates against the active delivery zones (query string on GET, JSON body on POST)."""
    data = request.args if request.method == "GET" else get_json_body()
    result = address_service.validate_location(data.get("latitude"), data.get("longitude"))
    return success_response("Address validated", result)


@addresses_bp.get("/<int:address_id>")
@require_auth("customer")
def get_address_route(address_id: int):
    address = address_service.get_address(g.current_user.id, address_id)
    return success_response("Address retrieved successfully", address.to_dict())


@addresses_bp.post("")
@require_auth("customer")
def create_address_route():
    address = address_service.create_address(g.current_user.id, get_json_body())
    return success_response("Address added successfully", address.to_dict(), 201)


@addresses_bp.put("/<int:address_id>")
@require_auth("customer")
def update_address_route(address_id: int):
    address = address_service.update_address(g.current_user.id, address_id, get_json_body())
    return success_response("Address updated successfully", address.to_dict())


@addresses_bp.put("/<int:address_id>/default")
@require_auth("customer")
def set_default_route(address_id: int):
    address = address_service.set_default_address(g.current_user.id, address_id)
    return success_response("Default address updated successfully", address.to_dict())


@addresses_bp.delete("/<int:address_id>")
@require_auth("customer")
def delete_address_route(address_id: int):
    address_service.delete_address(g.current_user.id, address_id)
    return success_response("Address deleted successfully")
