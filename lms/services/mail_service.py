from __future__ import annotations

from flask import current_app
from flask_mail import Message

from lms.extensions import db, mail
from lms.models.notification_log import NotificationLog
from lms.repositories.notification_repo import NotificationRepo
from lms.repositories.user_repo import UserRepo
from lms.utils.clock import utcnow


class MailService:
    @staticmethod
    def send_email(to_email: str, subject: str, body: str) -> tuple[bool, str | None]:
        """
        return: (success, error_text)
        """
        if not current_app.config.get("MAIL_ENABLED"):
            current_app.logger.info(f"[MailService] mail disabled, not sent to {to_email}: {subject}")
            return True, None
        try:
            msg = Message(subject=subject, recipients=[to_email], body=body)
            mail.send(msg)
            return True, None
        except Exception as e:
            current_app.logger.warning(f"[MailService] could not send mail: {e}")
            return False, str(e)

    @staticmethod
    def log_notification(
        user_id: int | None,
        notif_type: str,
        to_email: str | None,
        message: str,
        success: bool,
        error: str | None = None,
        commit: bool = True,
    ) -> NotificationLog:
        row = NotificationLog(
            user_id=user_id,
            type=notif_type,
            email=to_email,
            message=message,
            success=bool(success),
            error_message=error,
            sent_at=utcnow(),
        )
        if commit:
            return NotificationRepo.log(row)
        db.session.add(row)
        return row

    @staticmethod
    def notify_user(user_id: int, notif_type: str, subject: str, body: str) -> bool:
        """Best effort: a failed mail is logged, never raised to the caller."""
        user = UserRepo.get_by_id(user_id)
        to_email = user.email if user else None
        if not to_email:
            MailService.log_notification(user_id, notif_type, None, body, False, "user has no e-mail")
            return False

        ok, err = MailService.send_email(to_email, subject, body)
        MailService.log_notification(user_id, notif_type, to_email, body, ok, err)
        return ok
