from lms.models.notification_log import NotificationLog
from lms.extensions import db

class NotificationRepo:
    @staticmethod
    def list_for_user(user_id: int):
        return NotificationLog.query.filter_by(user_id=user_id).order_by(NotificationLog.id.desc()).all()

    @staticmethod
    def log(entry: NotificationLog):
        db.session.add(entry)
        db.session.commit()
        return entry
