from datetime import datetime
from typing import Optional

from flask import current_app

from lms.repositories.issue_request_repo import IssueRequestRepo
from lms.services.membership_service import MembershipService
from lms.utils.clock import month_bounds, utcnow


class QuotaService:
    @staticmethod
    def limit() -> int:
        return int(current_app.config.get("MONTHLY_REQUEST_LIMIT", 3))

    @staticmethod
    def count_this_month(user_id: int, now: Optional[datetime] = None) -> int:
        # recounted every time, no stored counter
        start, end = month_bounds(now or utcnow())
        return IssueRequestRepo.count_between(user_id, start, end)

    @staticmethod
    def remaining(user_id: int, now: Optional[datetime] = None) -> Optional[int]:
        """None means unlimited (premium)."""
        now = now or utcnow()
        if MembershipService.is_premium(user_id, now):
            return None
        return max(0, QuotaService.limit() - QuotaService.count_this_month(user_id, now))

    @staticmethod
    def summary(user_id: int, now: Optional[datetime] = None) -> dict:
        now = now or utcnow()
        remaining = QuotaService.remaining(user_id, now)
        return {
            "count": QuotaService.count_this_month(user_id, now),
            "limit": None if remaining is None else QuotaService.limit(),
            "remaining": remaining,
            "unlimited": remaining is None,
        }
