from flask import Blueprint, request, jsonify
from flask_jwt_extended import jwt_required

from lms.services.membership_service import MembershipService
from lms.services.quota_service import QuotaService
from lms.utils.identity import current_user
from lms.utils.payload import get_value

membership_bp = Blueprint("membership", __name__, url_prefix="/api/library")


@membership_bp.get("/subscription")
@jwt_required()
def subscription_status():
    user_id, _role = current_user()
    return jsonify({"success": True, "data": MembershipService.status(user_id)})


@membership_bp.post("/subscription/activate")
@jwt_required()
def activate_subscription():
    data = request.get_json(silent=True) or {}
    user_id, _role = current_user()
    MembershipService.activate(user_id, get_value(data, "package", "subscriptionPackage", "membershipPackage"))
    return jsonify({"success": True, "data": MembershipService.status(user_id)})


@membership_bp.post("/subscription/extend")
@jwt_required()
def extend_subscription():
    data = request.get_json(silent=True) or {}
    user_id, _role = current_user()
    MembershipService.extend(user_id, get_value(data, "package", "subscriptionPackage", "membershipPackage"))
    return jsonify({"success": True, "data": MembershipService.status(user_id)})


@membership_bp.get("/monthly-request-count")
@jwt_required()
def monthly_request_count():
    user_id, _role = current_user()
    return jsonify({"success": True, "data": QuotaService.summary(user_id)})
