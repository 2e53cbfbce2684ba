from flask import Blueprint, request, jsonify
from flask_jwt_extended import jwt_required

from lms.services.borrow_service import BorrowService
from lms.utils.decorators import staff_required
from lms.utils.identity import current_user
from lms.utils.payload import parse_bool

borrow_bp = Blueprint("borrow", __name__, url_prefix="/api/borrows")


@borrow_bp.post("/<int:borrow_id>/return")
@jwt_required()
def return_book(borrow_id):
    data = request.get_json(silent=True) or {}
    user_id, role = current_user()
    b = BorrowService.return_book(
        borrow_id, user_id, role,
        damaged=parse_bool(data.get("damaged", False)),
        lost=parse_bool(data.get("lost", False)),
    )
    penalty = b.penalty.to_dict() if b.penalty else None
    return jsonify({"success": True, "data": {**b.to_dict(), "penalty": penalty}})


@borrow_bp.get("/my")
@jwt_required()
def my_borrows():
    user_id, _role = current_user()
    borrows = BorrowService.list_for_user(user_id)
    return jsonify({"success": True, "data": [x.to_dict() for x in borrows]})


@borrow_bp.get("")
@staff_required
def all_borrows():
    borrows = BorrowService.list_all()
    return jsonify({"success": True, "data": [
        {**x.to_dict(), "user": x.user.username if x.user else None} for x in borrows
    ]})
