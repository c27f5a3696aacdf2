# Overview: Request authentication and role decorators for API routes.

from functools import wraps

from flask import current_app, g, request

from .responses import error_response
from .services import session_service


def extract_token() -> str | None:
    """Bearer header first, then the httpOnly auth cookie."""
    auth_header = request.headers.get("Authorization")
    if auth_header and auth_header.startswith("Bearer "):
        token = auth_header.split(" ", 1)[1].strip()
        if token:
            return token
    return request.cookies.get(current_app.config["AUTH_COOKIE_NAME"]) or None


def require_auth(principal_type: str):
    """
    Require a valid session issued for the given surface.

    Sets the following Flask g attributes:
    - g.current_user: the authenticated account (Admin, InventoryUser, Rider or Customer)
    - g.principal_type: the surface the session belongs to
    - g.session_context: the full SessionContext object
    - g.auth_token: the raw token (used by logout/refresh)

    Returns 401 if the token is missing, invalid, expired, issued for
    another surface, or the account is deactivated.
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            token = extract_token()
            if not token:
                return error_response("Access denied. No token provided.", 401)

            context = session_service.validate_session(token, principal_type)
            if not context:
                return error_response("Invalid or expired token", 401)

            g.current_user = context.principal
            g.principal_type = context.principal_type
            g.session_context = context
            g.auth_token = token

            return f(*args, **kwargs)

        return decorated_function
    return decorator


def require_role(*roles: str):
    """Require g.current_user.role to be one of roles. Must follow require_auth."""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            user = getattr(g, "current_user", None)
            if user is None:
                return error_response("Authentication required", 401)

            if getattr(user, "role", None) not in roles:
                current_app.logger.info(
                    "Role check failed: %s %s requires %s (has %s)",
                    request.method,
                    request.path,
                    ",".join(roles),
                    getattr(user, "role", None),
                )
                return error_response(
                    "Access denied. Insufficient permissions.",
                    403,
                    errors=[{"required_roles": list(roles)}],
                )

            return f(*args, **kwargs)

        return decorated_function
    return decorator
