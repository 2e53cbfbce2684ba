from flask_jwt_extended import get_jwt, get_jwt_identity

STAFF_ROLES = ("librarian", "admin")


def current_user():
    """(user_id, role) of the authenticated caller."""
    user_id = int(get_jwt_identity())
    role = (get_jwt() or {}).get("role")
    return user_id, role


def is_staff(role) -> bool:
    return role in STAFF_ROLES
