# Overview: Request and capability decorators for API routes.

from functools import wraps
from flask import request, jsonify, g, current_app

from .permissions import role_has_capability
from .services import session_service


def _is_authenticated() -> bool:
    return hasattr(g, 'current_user') and hasattr(g, 'role')


def unauthorized():
    return jsonify({"error": "Unauthorized"}), 401


def forbidden():
    return jsonify({"error": "Forbidden"}), 403


def require_auth(f):
    """
    Require a valid bearer session.

    Sets the following Flask g attributes:
    - g.current_user: The authenticated User object
    - g.role: The caller's role string
    - g.company_id: The caller's company (None for platform staff)
    - g.session_context: The full SessionContext object

    Returns 401 {"error": "Unauthorized"} if the header is missing, the
    token is unknown, expired or revoked, or the user is deactivated.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        auth_header = request.headers.get("Authorization")

        if not auth_header or not auth_header.startswith("Bearer "):
            current_app.logger.warning("Unauthenticated request to %s", request.path)
            return unauthorized()

        token = auth_header.split(" ", 1)[1]
        context = session_service.validate_session(token)

        if not context:
            current_app.logger.warning("Invalid or expired session for %s", request.path)
            return unauthorized()

        g.current_user = context.user
        g.role = context.role
        g.company_id = context.company_id
        g.session_context = context

        return f(*args, **kwargs)

    return decorated_function


def require_capability(capability_code: str):
    """Require the caller's role to grant a capability; 403 otherwise."""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            # Ensure @require_auth was called first
            if not _is_authenticated():
                return unauthorized()

            if not role_has_capability(g.role, capability_code):
                current_app.logger.warning(
                    "Forbidden: role %s lacks %s for %s",
                    g.role, capability_code, request.path,
                )
                return forbidden()

            return f(*args, **kwargs)

        return decorated_function
    return decorator
