"""
Authentication utilities and decorators.
"""
from functools import wraps

from flask_jwt_extended import get_jwt, get_jwt_identity


def admin_required():
    """
    Decorator to check if the current user has admin privileges.
    Must be used after jwt_required() decorator.

    Returns:
        function: Decorator function
    """
    def wrapper(fn):
        @wraps(fn)
        def decorator(*args, **kwargs):
            claims = get_jwt()
            if not claims.get('is_admin', False):
                return {"message": "Admin privileges required"}, 403
            return fn(*args, **kwargs)
        return decorator
    return wrapper


def current_staff_id():
    """Return the authenticated staff identity used for audit fields."""
    identity = get_jwt_identity()
    return str(identity) if identity is not None else None
