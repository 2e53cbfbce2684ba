from flask import Blueprint, jsonify
from flask_jwt_extended import jwt_required

from lms.repositories.notification_repo import NotificationRepo
from lms.utils.identity import current_user

notif_bp = Blueprint("notifications", __name__, url_prefix="/api/notifications")


@notif_bp.get("/my")
@jwt_required()
def my_notifications():
    user_id, _role = current_user()
    rows = NotificationRepo.list_for_user(user_id)
    return jsonify({"success": True, "data": [
        {
            "id": n.id,
            "type": n.type,
            "message": n.message,
            "success": bool(n.success),
            "sentAt": n.sent_at.isoformat(),
        } for n in rows
    ]})
