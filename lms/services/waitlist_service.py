from datetime import datetime
from typing import Optional

from flask import current_app
from sqlalchemy.exc import IntegrityError

from lms.errors import AccessDenied, AlreadyWaitlisted, NotFound, StateConflict
from lms.extensions import db
from lms.models.waitlist import WaitlistEntry
from lms.repositories.waitlist_repo import WaitlistRepo
from lms.services.book_service import BookService
from lms.services.mail_service import MailService
from lms.services.membership_service import MembershipService
from lms.utils.clock import utcnow


class WaitlistService:
    """FIFO queue of students per exhausted book."""

    @staticmethod
    def join(book_id: int, student_id: int, now: Optional[datetime] = None) -> WaitlistEntry:
        book = BookService.get_book(book_id)
        if book.access_level == "PREMIUM" and not MembershipService.is_premium(student_id, now):
            raise AccessDenied("Premium membership required to queue for this book")

        if WaitlistRepo.get(book_id, student_id):
            raise AlreadyWaitlisted()
        if book.available_copies > 0:
            raise StateConflict("Copies are available; create an issue request instead")

        entry = WaitlistEntry(book_id=book_id, student_id=student_id, joined_at=now or utcnow())
        try:
            WaitlistRepo.add(entry)
        except IntegrityError:
            # lost a race against the same student
            db.session.rollback()
            raise AlreadyWaitlisted()

        current_app.logger.info(f"[WaitlistService] student {student_id} joined waitlist for book {book_id}")
        return entry

    @staticmethod
    def position(book_id: int, student_id: int) -> int:
        for rank, entry in enumerate(WaitlistRepo.list_for_book(book_id), start=1):
            if entry.student_id == student_id:
                return rank
        raise NotFound("Student is not in the waitlist for this book")

    @staticmethod
    def leave(book_id: int, student_id: int):
        entry = WaitlistRepo.get(book_id, student_id)
        if not entry:
            raise NotFound("Student is not in the waitlist for this book")
        WaitlistRepo.delete(entry)

    @staticmethod
    def list_for_student(student_id: int) -> list:
        return [
            {**WaitlistService.entry_dict(e), "position": WaitlistService.position(e.book_id, student_id)}
            for e in WaitlistRepo.list_for_student(student_id)
        ]

    @staticmethod
    def list_for_book(book_id: int) -> list:
        BookService.get_book(book_id)
        return [
            {**WaitlistService.entry_dict(e), "position": rank}
            for rank, e in enumerate(WaitlistRepo.list_for_book(book_id), start=1)
        ]

    @staticmethod
    def promote_head(book_id: int) -> Optional[dict]:
        """Pop the earliest entry and tell that student a copy is free.

        Promotion only notifies; the student still has to file an issue
        request, which goes through the normal quota and access checks.
        """
        entry = WaitlistRepo.head(book_id)
        if not entry:
            return None

        promoted = WaitlistService.entry_dict(entry)
        student_id = promoted["studentId"]
        title = promoted["bookTitle"] or f"Book #{book_id}"
        WaitlistRepo.delete(entry)
        current_app.logger.info(f"[WaitlistService] promoted student {student_id} for book {book_id}")

        MailService.notify_user(
            student_id,
            "waitlist_available",
            "Library: a copy you are waiting for is available",
            f"A copy of '{title}' has been returned. Request it soon, copies are not held.",
        )
        return promoted

    @staticmethod
    def entry_dict(e: WaitlistEntry) -> dict:
        return {
            "id": e.id,
            "bookId": e.book_id,
            "bookTitle": e.book.title if e.book else None,
            "studentId": e.student_id,
            "joinedAt": e.joined_at.isoformat() if e.joined_at else None,
        }
