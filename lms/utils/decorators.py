from functools import wraps

from flask_jwt_extended import verify_jwt_in_request, get_jwt

from lms.errors import json_error
from lms.utils.identity import STAFF_ROLES


def role_required(*roles):
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            verify_jwt_in_request()
            claims = get_jwt()
            role = claims.get("role")
            if role not in roles:
                return json_error("Forbidden", 403, "AccessDenied")
            return fn(*args, **kwargs)
        return wrapper
    return decorator


def staff_required(fn):
    return role_required(*STAFF_ROLES)(fn)
