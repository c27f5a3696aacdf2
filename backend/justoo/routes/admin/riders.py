# Overview: Admin management of delivery riders.

from flask import Blueprint, request

from ...decorators import require_auth, require_role
from ...models.accounts import ADMIN_ROLES
from ...responses import get_json_body, success_response
from ...services import rider_service
from ...validation import parse_pagination


riders_bp = Blueprint("riders", __name__, url_prefix="/riders")

RIDER_WRITE_ROLES = ("superadmin", "admin")


@riders_bp.get("")
@require_auth("admin")
@require_role(*ADMIN_ROLES)
def list_riders_route():
    page, per_page = parse_pagination(request.args)
    riders, pagination = rider_service.list_riders(
        status=request.args.get("status"),
        search=request.args.get("search"),
        include_inactive=request.args.get("include_inactive", "false").lower() == "true",
        page=page,
        per_page=per_page,
    )
    return success_response(
        "Riders retrieved successfully",
        {"riders": [rider.to_dict() for rider in riders], "pagination": pagination},
    )


@riders_bp.get("/analytics")
@require_auth("admin")
@require_role(*ADMIN_ROLES)
def rider_analytics_route():
    return success_response("Rider analytics retrieved successfully", rider_service.rider_analytics())


@riders_bp.get("/<int:rider_id>")
@require_auth("admin")
@require_role(*ADMIN_ROLES)
def get_rider_route(rider_id: int):
    rider = rider_service.get_rider(rider_id)
    return success_response("Rider retrieved successfully", rider.to_dict())


@riders_bp.post("")
@require_auth("admin")
@require_role(*RIDER_WRITE_ROLES)
def create_rider_route():
    """
    Create a rider account.

    Body: name, phone, vehicle_type, vehicle_number, password (required);
    email, license_number, status (optional). The username is generated.
    """
    rider = rider_service.create_rider(get_json_body())
    return success_response("Rider created successfully", rider.to_dict(), 201)


@riders_bp.put("/<int:rider_id>")
@require_auth("admin")
@require_role(*RIDER_WRITE_ROLES)
def update_rider_route(rider_id: int):
    rider = rider_service.update_rider(rider_id, get_json_body())
    return success_response("Rider updated successfully", rider.to_dict())


@riders_bp.put("/<int:rider_id>/password")
@require_auth("admin")
@require_role(*RIDER_WRITE_ROLES)
def reset_password_route(rider_id: int):
    rider_service.reset_rider_password(rider_id, get_json_body().get("new_password"))
    return success_response("Rider password updated successfully")


@riders_bp.delete("/<int:rider_id>")
@require_auth("admin")
@require_role(*RIDER_WRITE_ROLES)
def delete_rider_route(rider_id: int):
    rider_service.delete_rider(rider_id)
    return success_response("Rider deleted successfully")
