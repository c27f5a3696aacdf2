# Overview: JSON envelope helpers shared by every surface.

from __future__ import annotations

from flask import current_app, jsonify, request

from .validation import ValidationError


def success_response(message: str, data=None, status: int = 200):
    body = {"success": True, "message": message}
    if data is not None:
        body["data"] = data
    return jsonify(body), status


def error_response(message: str, status: int = 400, errors=None):
    body = {"success": False, "message": message}
    if errors:
        body["errors"] = errors
    return jsonify(body), status


def set_auth_cookie(response, token: str):
    """Attach the session token as an httpOnly cookie."""
    max_age = current_app.config["SESSION_ABSOLUTE_HOURS"] * 3600
    response.set_cookie(
        current_app.config["AUTH_COOKIE_NAME"],
        token,
        max_age=max_age,
        httponly=True,
        secure=current_app.config["AUTH_COOKIE_SECURE"],
        samesite="Lax",
    )
    return response


def clear_auth_cookie(response):
    response.delete_cookie(current_app.config["AUTH_COOKIE_NAME"])
    return response


def get_json_body() -> dict:
    """Request JSON as a dict; anything else is a 400."""
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def token_response(message: str, data: dict, token: str, status: int = 200):
    """Envelope carrying a freshly issued token, also set as the auth cookie."""
    response, status = success_response(message, data, status)
    set_auth_cookie(response, token)
    return response, status


def logout_response(message: str = "Logout successful"):
    response, status = success_response(message)
    clear_auth_cookie(response)
    return response, status


def client_info() -> dict:
    return {
        "user_agent": request.headers.get("User-Agent"),
        "ip_address": request.remote_addr,
    }
