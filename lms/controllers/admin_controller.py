from flask import Blueprint, request, jsonify

from lms.errors import ValidationError
from lms.services.book_service import BookService
from lms.services.bulk_service import BulkService
from lms.utils.decorators import role_required, staff_required
from lms.utils.identity import current_user
from lms.utils.payload import get_value, parse_int

admin_bp = Blueprint("admin", __name__, url_prefix="/api/admin")


@admin_bp.get("/book-stats")
@staff_required
def book_stats():
    return jsonify({"success": True, "data": BookService.stats()})


@admin_bp.post("/bulk-approve")
@role_required("admin")
def bulk_approve():
    data = request.get_json(silent=True) or {}
    ids = get_value(data, "requestIds", "request_ids", "ids")
    if not isinstance(ids, list):
        raise ValidationError("requestIds must be a list")

    user_id, _role = current_user()
    result = BulkService.bulk_approve([parse_int(i, "requestIds") for i in ids], processed_by_id=user_id)
    return jsonify({"success": True, "data": result})
