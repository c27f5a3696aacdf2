# Overview: Admin authentication and own-profile routes.

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
from ...services import admin_service, auth_service, session_service
from ...validation import clean_string


auth_bp = Blueprint("auth", __name__, url_prefix="/auth")


@auth_bp.post("/login")
def login_route():
    """
    Login with username and password.

    Returns the admin profile and an opaque token; the token is also set
    as an httpOnly cookie.
    """
    data = get_json_body()
    username = clean_string(data.get("username"), "username")
    password = data.get("password")
    if not username or not password:
        return error_response("Username and password are required", 400)

    admin = auth_service.authenticate_admin(username, password)
    if not admin:
        return error_response("Invalid credentials", 401)

    _, token = session_service.create_session("admin", admin.id, **client_info())
    return token_response("Login successful", {"admin": admin.to_dict(), "token": token}, token)


@auth_bp.post("/logout")
@require_auth("admin")
def logout_route():
    session_service.revoke_session(g.auth_token)
    return logout_response()


@auth_bp.get("/me")
@require_auth("admin")
def me_route():
    return success_response("Current admin retrieved successfully", {"admin": g.current_user.to_dict()})


@auth_bp.get("/profile")
@require_auth("admin")
def profile_route():
    return success_response("Profile retrieved successfully", {"admin": g.current_user.to_dict()})


@auth_bp.put("/profile")
@require_auth("admin")
def update_profile_route():
    admin = admin_service.update_own_profile(g.current_user, get_json_body())
    return success_response("Profile updated successfully", {"admin": admin.to_dict()})


@auth_bp.put("/password")
@require_auth("admin")
def change_password_route():
    """Change the password; every other session of this admin is revoked."""
    data = get_json_body()
    auth_service.change_password(
        g.current_user,
        "admin",
        data.get("current_password"),
        data.get("new_password"),
        keep_session_id=g.session_context.session.id,
    )
    return success_response("Password changed successfully")


@auth_bp.post("/refresh")
@require_auth("admin")
def refresh_route():
    token = session_service.rotate_session(g.session_context, **client_info())
    return token_response("Token refreshed successfully", {"admin": g.current_user.to_dict(), "token": token}, token)
