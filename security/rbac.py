from functools import wraps

from flask import g, jsonify


def require_roles(*role_names: str):
    """
    Usage: @require_roles("ADMIN", "OPERATOR")
    """
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            staff = getattr(g, "staff", None)
            if staff is None:
                return jsonify(error="Authentication required"), 401

            if staff.role.value not in role_names:
                return jsonify(error="Forbidden"), 403

            return fn(*args, **kwargs)
        return wrapper
    return decorator
