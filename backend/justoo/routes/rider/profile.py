# Overview: Rider self-service profile, password and availability routes.

from flask import Blueprint, g

from ...decorators import require_auth
from ...responses import get_json_body, success_response
from ...services import auth_service, rider_service


profile_bp = Blueprint("profile", __name__, url_prefix="/rider")


@profile_bp.get("/profile")
@require_auth("rider")
def get_profile_route():
    return success_response("Profile retrieved successfully", g.current_user.to_dict())


@profile_bp.put("/profile")
@require_auth("rider")
def update_profile_route():
    rider = rider_service.update_own_profile(g.current_user, get_json_body())
    return success_response("Profile updated successfully", rider.to_dict())


@profile_bp.put("/password")
@require_auth("rider")
def change_password_route():
    data = get_json_body()
    auth_service.change_password(
        g.current_user,
        "rider",
        data.get("current_password"),
        data.get("new_password"),
        keep_session_id=g.session_context.session.id,
    )
    return success_response("Password changed successfully")


@profile_bp.put("/status")
@require_auth("rider")
def update_status_route():
    """Riders toggle between active, busy and inactive; suspension is admin-only."""
    rider = rider_service.update_own_status(g.current_user, get_json_body().get("status"))
    return success_response("Status updated successfully", {"status": rider.status})


@profile_bp.get("/stats")
@require_auth("rider")
def stats_route():
    return success_response("Statistics retrieved successfully", rider_service.rider_stats(g.current_user))
