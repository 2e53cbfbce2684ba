from flask import Blueprint, jsonify
from flask_jwt_extended import jwt_required

from lms.services.borrow_service import PenaltyService
from lms.utils.decorators import staff_required
from lms.utils.identity import current_user

penalty_bp = Blueprint("penalties", __name__, url_prefix="/api/penalties")


@penalty_bp.get("/my")
@jwt_required()
def my_penalties():
    user_id, _role = current_user()
    rows = PenaltyService.list_for_user(user_id)
    return jsonify({"success": True, "data": [p.to_dict() for p in rows]})


@penalty_bp.get("")
@staff_required
def all_penalties():
    rows = PenaltyService.list_all()
    return jsonify({"success": True, "data": [p.to_dict() for p in rows]})


@penalty_bp.post("/<int:penalty_id>/pay")
@jwt_required()
def pay_penalty(penalty_id: int):
    user_id, role = current_user()
    p = PenaltyService.pay(penalty_id, user_id, role)
    return jsonify({"success": True, "data": p.to_dict()})
