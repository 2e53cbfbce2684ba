from flask import Blueprint, request, jsonify
from flask_jwt_extended import jwt_required

from lms.errors import ValidationError
from lms.services.issue_request_service import IssueRequestService
from lms.utils.decorators import role_required, staff_required
from lms.utils.identity import current_user, is_staff
from lms.utils.payload import get_value, parse_datetime, parse_int

issue_request_bp = Blueprint("issue_requests", __name__, url_prefix="/api/issue-requests")


@issue_request_bp.post("")
@role_required("student")
def create_request():
    data = request.get_json(silent=True) or {}
    book_id = get_value(data, "bookId", "book_id")
    if book_id is None:
        raise ValidationError("bookId is required")

    user_id, _role = current_user()
    result = IssueRequestService.create(user_id, parse_int(book_id, "bookId"))
    # waitlisted is accepted but not a request
    return jsonify({"success": True, "data": result.to_dict()}), (202 if result.waitlisted else 201)


@issue_request_bp.get("")
@jwt_required()
def list_requests():
    user_id, role = current_user()
    rows = IssueRequestService.list_requests(
        status=request.args.get("status"),
        student_id=None if is_staff(role) else user_id,
    )
    return jsonify({"success": True, "data": [r.to_dict() for r in rows]})


@issue_request_bp.patch("/<int:request_id>/approve")
@staff_required
def approve_request(request_id: int):
    data = request.get_json(silent=True) or {}
    user_id, _role = current_user()
    due = parse_datetime(get_value(data, "expectedDueDate", "expected_due_date"), "expectedDueDate")
    req = IssueRequestService.approve(request_id, processed_by_id=user_id, expected_due_date=due)
    return jsonify({"success": True, "data": req.to_dict()})


@issue_request_bp.patch("/<int:request_id>/reject")
@staff_required
def reject_request(request_id: int):
    data = request.get_json(silent=True) or {}
    user_id, _role = current_user()
    req = IssueRequestService.reject(request_id, processed_by_id=user_id, reason=data.get("reason"))
    return jsonify({"success": True, "data": req.to_dict()})
