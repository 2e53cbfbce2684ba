from datetime import datetime, timezone

from lms.errors import ValidationError


def pick(data: dict, *keys):
    """(found, value) for the first key present; clients send camelCase or snake_case."""
    for k in keys:
        if k in data:
            return True, data[k]
    return False, None


def get_value(data: dict, *keys, default=None):
    found, value = pick(data, *keys)
    return value if found else default


def parse_int(value, field: str) -> int:
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be an integer")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field} must be an integer")


def parse_datetime(value, field: str):
    """Accepts ISO dates (2025-01-31) and datetimes; returns naive UTC or None."""
    if value in (None, ""):
        return None
    try:
        parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        raise ValidationError(f"{field} must be an ISO date")
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def parse_bool(value) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ("1", "true", "yes", "on")
