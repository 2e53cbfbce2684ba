from datetime import datetime
from typing import Optional

from flask import current_app

from lms.errors import InvalidPackage, NotFound
from lms.models.membership import PACKAGE_DURATIONS
from lms.repositories.membership_repo import MembershipRepo
from lms.repositories.user_repo import UserRepo
from lms.services.mail_service import MailService
from lms.utils.clock import utcnow


def _duration(package):
    key = (str(package).strip().upper() if package is not None else "")
    if key not in PACKAGE_DURATIONS:
        raise InvalidPackage(f"Unknown subscription package: {package!r}")
    return key, PACKAGE_DURATIONS[key]


class MembershipService:
    """NORMAL/PREMIUM tier and subscription window.

    Premium status is never stored as a flag: it is recomputed from
    ``subscription_end`` on every read, so an expired subscription simply
    stops counting without any job having to flip it back to NORMAL.
    """

    @staticmethod
    def _require_user(user_id: int):
        user = UserRepo.get_by_id(user_id)
        if not user:
            raise NotFound("User not found")
        return user

    @staticmethod
    def is_premium(user_id: int, now: Optional[datetime] = None) -> bool:
        m = MembershipRepo.get_for_user(user_id)
        return bool(m and m.is_premium_at(now or utcnow()))

    @staticmethod
    def status(user_id: int, now: Optional[datetime] = None) -> dict:
        now = now or utcnow()
        m = MembershipRepo.get_for_user(user_id)
        if not m:
            return {
                "type": "NORMAL",
                "isPremium": False,
                "subscriptionPackage": None,
                "subscriptionStart": None,
                "subscriptionEnd": None,
                "daysRemaining": 0,
            }

        premium = m.is_premium_at(now)
        days_remaining = (m.subscription_end - now).days if premium else 0
        return {
            "type": "PREMIUM" if premium else "NORMAL",
            "isPremium": premium,
            "subscriptionPackage": m.subscription_package,
            "subscriptionStart": m.subscription_start.isoformat() if m.subscription_start else None,
            "subscriptionEnd": m.subscription_end.isoformat() if m.subscription_end else None,
            "daysRemaining": max(0, days_remaining),
        }

    @staticmethod
    def activate(user_id: int, package, now: Optional[datetime] = None):
        key, length = _duration(package)
        user = MembershipService._require_user(user_id)
        now = now or utcnow()

        m = MembershipRepo.get_or_create(user_id)
        m.type = "PREMIUM"
        m.subscription_package = key
        m.subscription_start = now
        m.subscription_end = now + length
        MembershipRepo.commit()

        current_app.logger.info(f"[MembershipService] user {user_id} activated {key} until {m.subscription_end}")
        MailService.notify_user(
            user.id,
            "subscription_activated",
            "Premium subscription activated",
            f"Hello {user.username},\n\nYour {key} premium subscription is active until {m.subscription_end:%B %d, %Y}.",
        )
        return m

    @staticmethod
    def extend(user_id: int, package, now: Optional[datetime] = None):
        key, length = _duration(package)
        user = MembershipService._require_user(user_id)
        now = now or utcnow()

        m = MembershipRepo.get_or_create(user_id)
        if m.is_premium_at(now):
            # stack on the remaining balance
            m.subscription_end = m.subscription_end + length
        else:
            m.subscription_start = now
            m.subscription_end = now + length
        m.type = "PREMIUM"
        m.subscription_package = key
        MembershipRepo.commit()

        current_app.logger.info(f"[MembershipService] user {user_id} extended by {key} until {m.subscription_end}")
        MailService.notify_user(
            user.id,
            "subscription_extended",
            "Premium subscription extended",
            f"Hello {user.username},\n\nYour premium subscription now runs until {m.subscription_end:%B %d, %Y}.",
        )
        return m
