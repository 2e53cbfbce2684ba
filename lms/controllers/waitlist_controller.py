from flask import Blueprint, request, jsonify
from flask_jwt_extended import jwt_required

from lms.errors import ValidationError
from lms.services.book_service import BookService
from lms.services.waitlist_service import WaitlistService
from lms.utils.decorators import role_required, staff_required
from lms.utils.identity import current_user
from lms.utils.payload import get_value, parse_int

waitlist_bp = Blueprint("waitlist", __name__, url_prefix="/api/library/waitlist")


@waitlist_bp.post("")
@role_required("student")
def join_waitlist():
    data = request.get_json(silent=True) or {}
    book_id = get_value(data, "bookId", "book_id")
    if book_id is None:
        raise ValidationError("bookId is required")
    book_id = parse_int(book_id, "bookId")

    user_id, _role = current_user()
    entry = WaitlistService.join(book_id, user_id)
    return jsonify({
        "success": True,
        "data": {**WaitlistService.entry_dict(entry), "position": WaitlistService.position(book_id, user_id)},
    }), 201


@waitlist_bp.get("")
@jwt_required()
def my_waitlist():
    user_id, _role = current_user()
    return jsonify({"success": True, "data": WaitlistService.list_for_student(user_id)})


@waitlist_bp.get("/<int:book_id>/position")
@jwt_required()
def waitlist_position(book_id: int):
    user_id, _role = current_user()
    return jsonify({"success": True, "data": {"bookId": book_id, "position": WaitlistService.position(book_id, user_id)}})


@waitlist_bp.delete("/<int:book_id>")
@jwt_required()
def leave_waitlist(book_id: int):
    user_id, _role = current_user()
    WaitlistService.leave(book_id, user_id)
    return jsonify({"success": True})


@waitlist_bp.get("/book/<int:book_id>")
@staff_required
def book_waitlist(book_id: int):
    return jsonify({"success": True, "data": WaitlistService.list_for_book(book_id)})


@waitlist_bp.post("/<int:book_id>/promote")
@staff_required
def promote_head(book_id: int):
    BookService.get_book(book_id)
    promoted = WaitlistService.promote_head(book_id)
    return jsonify({"success": True, "data": promoted})
