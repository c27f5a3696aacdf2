# Overview: Customer registration, login and profile routes.

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
from ...services import auth_service, customer_service, session_service


auth_bp = Blueprint("auth", __name__, url_prefix="/auth")


@auth_bp.post("/register")
def register_route():
    """Create a customer account and log it in."""
    customer = customer_service.register_customer(get_json_body())
    _, token = session_service.create_session("customer", customer.id, **client_info())
    return token_response(
        "Customer registered successfully",
        {"customer": customer.to_dict(), "token": token},
        token,
        201,
    )


@auth_bp.post("/login")
def login_route():
    data = get_json_body()
    if not data.get("phone") or not data.get("password"):
        return error_response("Phone and password are required", 400)

    customer = auth_service.authenticate_customer(data["phone"], data["password"])
    if not customer:
        return error_response("Invalid phone number or password", 401)

    _, token = session_service.create_session("customer", customer.id, **client_info())
    return token_response("Login successful", {"customer": customer.to_dict(), "token": token}, token)


@auth_bp.post("/logout")
@require_auth("customer")
def logout_route():
    session_service.revoke_session(g.auth_token)
    return logout_response()


@auth_bp.get("/profile")
@require_auth("customer")
def profile_route():
    return success_response("Profile retrieved successfully", {"customer": g.current_user.to_dict()})


@auth_bp.put("/profile")
@require_auth("customer")
def update_profile_route():
    customer = customer_service.update_profile(g.current_user, get_json_body())
    return success_response("Profile updated successfully", {"customer": customer.to_dict()})


@auth_bp.put("/change-password")
@require_auth("customer")
def change_password_route():
    data = get_json_body()
    auth_service.change_password(
        g.current_user,
        "customer",
        data.get("current_password"),
        data.get("new_password"),
        keep_session_id=g.session_context.session.id,
    )
    return success_response("Password changed successfully")
