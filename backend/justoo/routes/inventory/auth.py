# Overview: Inventory-user authentication routes.

from flask import Blueprint, g

from ...decorators import require_auth
from ...responses import (
    client_info,
    error_response,
    get_json_body,
    logout_response,
    success_response,
    token_response,
)
from ...services import auth_service, session_service
from ...validation import clean_string


auth_bp = Blueprint("auth", __name__, url_prefix="/auth")


@auth_bp.post("/login")
def login_route():
    """Login with username or email."""
    data = get_json_body()
    identifier = clean_string(data.get("username") or data.get("email"), "username")
    password = data.get("password")
    if not identifier or not password:
        return error_response("Username/email and password are required", 400)

    user = auth_service.authenticate_inventory_user(identifier, password)
    if not user:
        return error_response("Invalid credentials", 401)

    _, token = session_service.create_session("inventory", user.id, **client_info())
    return token_response("Login successful", {"user": user.to_dict(), "token": token}, token)


@auth_bp.post("/logout")
@require_auth("inventory")
def logout_route():
    session_service.revoke_session(g.auth_token)
    return logout_response()


@auth_bp.get("/profile")
@require_auth("inventory")
def profile_route():
    return success_response("Profile retrieved successfully", {"user": g.current_user.to_dict()})
