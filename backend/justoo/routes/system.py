# Overview: Gateway health endpoint and app-wide error handlers.

from flask import Blueprint, current_app
from werkzeug.exceptions import HTTPException

from ..extensions import db
from ..responses import error_response
from ..time_utils import to_utc_z, utcnow
from ..validation import ServiceError


SURFACES = ("admin", "customer", "inventory", "rider")

system_bp = Blueprint("system", __name__)


@system_bp.get("/health")
def health():
    """Gateway liveness check (no envelope, matches load balancer checks)."""
    return {
        "status": "OK",
        "message": "Gateway is running",
        "services": [f"/{surface}" for surface in SURFACES],
        "timestamp": to_utc_z(utcnow()),
    }, 200


@system_bp.get("/<surface>/health")
def surface_health(surface: str):
    if surface not in SURFACES:
        return error_response(f"Route /{surface}/health not found", 404)
    return {
        "status": "OK",
        "service": surface,
        "timestamp": to_utc_z(utcnow()),
    }, 200


def register_error_handlers(app) -> None:
    """Render every error in the {success: false, message, errors?} envelope."""

    @app.errorhandler(ServiceError)
    def handle_service_error(exc: ServiceError):
        db.session.rollback()
        return error_response(exc.message, exc.status_code, exc.errors)

    @app.errorhandler(HTTPException)
    def handle_http_error(exc: HTTPException):
        if exc.code == 404:
            return error_response("Route not found", 404)
        if exc.code == 405:
            return error_response("Method not allowed", 405)
        if exc.code == 400:
            return error_response("Invalid request body", 400)
        return error_response(exc.description or exc.name, exc.code)

    @app.errorhandler(Exception)
    def handle_unexpected_error(exc: Exception):
        db.session.rollback()
        current_app.logger.exception("Unhandled error")
        return error_response("Internal server error", 500)
