from functools import wraps
from flask import g
from flask_jwt_extended import get_jwt_identity
from classcraft.extensions import db
from classcraft.errors import AuthenticationError, AuthorizationError
from classcraft.models import User
from classcraft.utils.access_control import AccessContext


def get_current_caller():
    """Loads the JWT identity's user and turns it into an AccessContext, once per request."""
    if "caller" in g:
        return g.caller

    user_id = get_jwt_identity()
    if not user_id:
        raise AuthenticationError("Missing or invalid JWT token")

    try:
        user = db.session.get(User, int(user_id))
    except (TypeError, ValueError):
        user = None
    if not user:
        raise AuthenticationError("User not found")

    g.caller = AccessContext.for_user(user)
    return g.caller


def role_required(*allowed_roles):
    """
    Restrict access to users with specific roles.
    Usage: @role_required("admin", "teacher")
    """
    allowed_roles = set(role.lower() for role in allowed_roles)

    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            caller = get_current_caller()
            if caller.role.value not in allowed_roles:
                raise AuthorizationError("Access forbidden: insufficient permissions")

            return fn(*args, **kwargs)
        return wrapper
    return decorator
