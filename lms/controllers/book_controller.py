from flask import Blueprint, request, jsonify
from flask_jwt_extended import jwt_required

from lms.services.book_service import BookService
from lms.services.membership_service import MembershipService
from lms.utils.decorators import staff_required
from lms.utils.identity import current_user, is_staff
from lms.utils.payload import parse_bool

book_bp = Blueprint("books", __name__, url_prefix="/api/library/books")


@book_bp.get("")
@jwt_required()
def search_books():
    user_id, role = current_user()
    args = request.args

    access_level = args.get("accessLevel") or args.get("access_level")
    # premium titles are listed only to premium members and staff, unless asked for explicitly
    visible = None
    if not access_level and not is_staff(role) and not MembershipService.is_premium(user_id):
        visible = ["NORMAL"]

    books = BookService.search(
        title=args.get("title") or args.get("q"),
        genre=args.get("genre"),
        access_level=access_level,
        available_only=parse_bool(args.get("available", "false")),
        access_levels=visible,
    )
    return jsonify({"success": True, "data": [b.to_dict() for b in books]})


@book_bp.get("/<int:book_id>")
@jwt_required()
def get_book(book_id: int):
    b = BookService.get_book(book_id)
    return jsonify({"success": True, "data": b.to_dict()})


@book_bp.post("")
@staff_required
def create_book():
    data = request.get_json(silent=True) or {}
    b = BookService.create_book(data)
    return jsonify({"success": True, "data": b.to_dict()}), 201


@book_bp.put("/<int:book_id>")
@staff_required
def update_book(book_id: int):
    data = request.get_json(silent=True) or {}
    b = BookService.update_book(book_id, data)
    return jsonify({"success": True, "data": b.to_dict()})


@book_bp.delete("/<int:book_id>")
@staff_required
def delete_book(book_id: int):
    BookService.delete_book(book_id)
    return jsonify({"success": True})
