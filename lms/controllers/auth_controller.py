from flask import Blueprint, request, jsonify
from flask_jwt_extended import jwt_required

from lms.errors import NotFound, json_error
from lms.services.auth_service import AuthService, InvalidCredentials
from lms.repositories.user_repo import UserRepo
from lms.utils.identity import current_user

auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


@auth_bp.post("/register")
def register():
    data = request.get_json(silent=True) or {}

    username = (data.get("username") or "").strip()
    email = (data.get("email") or "").strip()
    password = (data.get("password") or "").strip()

    # self-registration is always a student account
    user = AuthService.register(username=username, email=email, password=password, role="student")
    return jsonify({"success": True, "data": user.to_dict()}), 201


@auth_bp.post("/login")
def login():
    data = request.get_json(silent=True) or {}
    try:
        token, user = AuthService.login(
            (data.get("username") or "").strip(),
            (data.get("password") or "").strip()
        )
    except InvalidCredentials as e:
        return json_error(str(e), 401, "Unauthorized")

    return jsonify({"success": True, "access_token": token, "user": user.to_dict()})


@auth_bp.get("/me")
@jwt_required()
def me():
    user_id, role = current_user()
    user = UserRepo.get_by_id(user_id)
    if not user:
        raise NotFound("User not found")
    return jsonify({"success": True, "user": {**user.to_dict(), "role": role or user.role}})
