from datetime import datetime, timedelta
from typing import Optional

from flask import current_app

from lms.errors import (
    AccessDenied,
    AlreadyExists,
    InvalidStateTransition,
    NotFound,
    Overdue,
    QuotaExceeded,
    ValidationError,
)
from lms.extensions import db
from lms.models.issue_request import REQUEST_STATUSES, IssueRequest
from lms.repositories.borrow_repo import BorrowRepo
from lms.repositories.issue_request_repo import IssueRequestRepo
from lms.services.book_service import BookService
from lms.services.borrow_service import BorrowService
from lms.services.mail_service import MailService
from lms.services.membership_service import MembershipService
from lms.services.quota_service import QuotaService
from lms.services.waitlist_service import WaitlistService
from lms.utils.clock import utcnow


class CreateResult:
    """Outcome of a student's request: either a PENDING request or a waitlist entry."""

    def __init__(self, request: IssueRequest = None, waitlist_entry=None, position: int = None):
        self.request = request
        self.waitlist_entry = waitlist_entry
        self.position = position

    @property
    def waitlisted(self) -> bool:
        return self.waitlist_entry is not None

    def to_dict(self):
        if self.waitlisted:
            return {
                "result": "waitlisted",
                "waitlist": {**WaitlistService.entry_dict(self.waitlist_entry), "position": self.position},
            }
        return {"result": "requested", "request": self.request.to_dict()}


class IssueRequestService:
    """Approval state machine: PENDING -> APPROVED | REJECTED.

    A copy is reserved only when a request is approved, not when it is
    created, and the reservation is re-validated at decision time. The status
    flip is a compare-and-set on ``status = 'PENDING'`` so that of two
    concurrent decisions on one request only the first can win.
    """

    @staticmethod
    def get(request_id: int) -> IssueRequest:
        req = IssueRequestRepo.get(request_id)
        if not req:
            raise NotFound("Request not found")
        return req

    @staticmethod
    def list_requests(status: Optional[str] = None, student_id: Optional[int] = None):
        if status:
            status = status.strip().upper()
            if status not in REQUEST_STATUSES:
                raise ValidationError(f"Unknown status: {status}")
        return IssueRequestRepo.list(status=status, student_id=student_id)

    @staticmethod
    def create(student_id: int, book_id: int, now: Optional[datetime] = None) -> CreateResult:
        now = now or utcnow()
        book = BookService.get_book(book_id)

        if book.access_level == "PREMIUM" and not MembershipService.is_premium(student_id, now):
            raise AccessDenied("Premium membership required for this book")

        if BorrowService.has_overdue(student_id, now):
            raise Overdue()

        remaining = QuotaService.remaining(student_id, now)
        if remaining is not None and remaining <= 0:
            raise QuotaExceeded(f"Monthly limit of {QuotaService.limit()} requests reached")

        if IssueRequestRepo.has_pending(student_id, book_id):
            raise AlreadyExists("You have already requested this book and it is still being processed")
        if BorrowRepo.has_active(student_id, book_id):
            raise AlreadyExists("You already have this book borrowed. Please return it first.")

        if book.available_copies == 0:
            entry = WaitlistService.join(book_id, student_id, now)
            return CreateResult(waitlist_entry=entry, position=WaitlistService.position(book_id, student_id))

        req = IssueRequest(student_id=student_id, book_id=book_id, status="PENDING", requested_at=now)
        IssueRequestRepo.create(req)
        current_app.logger.info(f"[IssueRequestService] request {req.id} created: student={student_id} book={book_id}")
        return CreateResult(request=req)

    @staticmethod
    def loan_days(student_id: int, now: datetime) -> int:
        if MembershipService.is_premium(student_id, now):
            return int(current_app.config.get("LOAN_DAYS_PREMIUM", 60))
        return int(current_app.config.get("LOAN_DAYS_NORMAL", 14))

    @staticmethod
    def approve(
        request_id: int,
        processed_by_id: Optional[int] = None,
        expected_due_date: Optional[datetime] = None,
        now: Optional[datetime] = None,
    ) -> IssueRequest:
        now = now or utcnow()
        req = IssueRequestService.get(request_id)
        if req.status != "PENDING":
            raise InvalidStateTransition(f"Request already processed: {req.status}")

        student_id, book_id = req.student_id, req.book_id
        due = expected_due_date or now + timedelta(days=IssueRequestService.loan_days(student_id, now))

        try:
            BookService.reserve_copy(book_id)

            changed = IssueRequestRepo.transition_from_pending(request_id, {
                IssueRequest.status: "APPROVED",
                IssueRequest.processed_at: now,
                IssueRequest.processed_by_id: processed_by_id,
                IssueRequest.expected_due_date: due,
            })
            if changed == 0:
                raise InvalidStateTransition("Request already processed")

            borrow = BorrowService.issue(student_id, book_id, request_id, due, now)
            IssueRequestRepo.set_issued_record(request_id, borrow.id)
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise

        db.session.refresh(req)
        current_app.logger.info(
            f"[IssueRequestService] approved request {request_id} -> borrow {req.issued_record_id}, due {due:%Y-%m-%d}"
        )
        MailService.notify_user(
            student_id,
            "request_approved",
            "Library: your book request was approved",
            f"Your request for '{req.book.title}' was approved. Due date: {due:%Y-%m-%d}.",
        )
        return req

    @staticmethod
    def reject(
        request_id: int,
        processed_by_id: Optional[int] = None,
        reason: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> IssueRequest:
        now = now or utcnow()
        req = IssueRequestService.get(request_id)
        if req.status != "PENDING":
            raise InvalidStateTransition(f"Request already processed: {req.status}")

        changed = IssueRequestRepo.transition_from_pending(request_id, {
            IssueRequest.status: "REJECTED",
            IssueRequest.processed_at: now,
            IssueRequest.processed_by_id: processed_by_id,
            IssueRequest.reason: (reason or "").strip() or None,
        })
        if changed == 0:
            db.session.rollback()
            raise InvalidStateTransition("Request already processed")
        db.session.commit()

        db.session.refresh(req)
        current_app.logger.info(f"[IssueRequestService] rejected request {request_id}")
        body = f"Your request for '{req.book.title}' was rejected."
        if req.reason:
            body += f" Reason: {req.reason}"
        MailService.notify_user(req.student_id, "request_rejected", "Library: your book request was rejected", body)
        return req
