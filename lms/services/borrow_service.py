from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from flask import current_app

from lms.errors import AccessDenied, NotFound, StateConflict
from lms.extensions import db
from lms.models.borrow import Borrow
from lms.models.penalty import Penalty
from lms.repositories.borrow_repo import BorrowRepo
from lms.services.book_service import BookService
from lms.services.waitlist_service import WaitlistService
from lms.utils.clock import utcnow
from lms.utils.identity import is_staff

CENTS = Decimal("0.01")


class BorrowService:
    """Issued records: created on approval, closed on return."""

    @staticmethod
    def has_overdue(user_id: int, now: Optional[datetime] = None) -> bool:
        return BorrowRepo.has_overdue(user_id, now or utcnow())

    @staticmethod
    def issue(user_id: int, book_id: int, request_id: int, due_date: datetime, now: datetime) -> Borrow:
        """Create the issued record inside the approval transaction.
        The copy has already been reserved by the caller."""
        borrow = Borrow(
            user_id=user_id,
            book_id=book_id,
            request_id=request_id,
            borrowed_at=now,
            due_date=due_date,
            status="active",
        )
        return BorrowRepo.add(borrow)

    @staticmethod
    def _compute_overdue_days(due_date, returned_at) -> int:
        if not due_date:
            return 0
        return max(0, (returned_at.date() - due_date.date()).days)

    @staticmethod
    def _upsert_penalty_for_borrow(borrow: Borrow, now: datetime, damaged: bool = False, lost: bool = False):
        overdue_days = BorrowService._compute_overdue_days(borrow.due_date, now)

        mrp = Decimal(str(borrow.book.mrp)) if borrow.book and borrow.book.mrp is not None else Decimal("0")
        # a damaged or lost copy is charged at full price
        replacement = mrp.quantize(CENTS, rounding=ROUND_HALF_UP) if (damaged or lost) else Decimal("0.00")
        if overdue_days <= 0 and replacement <= 0:
            return None

        rate = Decimal(str(current_app.config.get("LATE_FEE_RATE", 0.10)))
        daily_fee = (mrp * rate).quantize(CENTS, rounding=ROUND_HALF_UP)
        late = daily_fee * overdue_days

        p = Penalty.query.filter_by(borrow_id=borrow.id).first()
        if not p:
            p = Penalty(borrow_id=borrow.id, is_paid=False)
            db.session.add(p)
        elif p.is_paid:
            return p
        p.penalty_type = "LOST" if lost else ("DAMAGE" if damaged else "LATE")
        p.days_overdue = overdue_days
        p.daily_fee = daily_fee
        p.replacement_fee = replacement
        p.amount = (late + replacement).quantize(CENTS, rounding=ROUND_HALF_UP)
        return p

    @staticmethod
    def return_book(
        borrow_id: int,
        user_id: int,
        role: str,
        now: Optional[datetime] = None,
        damaged: bool = False,
        lost: bool = False,
    ) -> Borrow:
        now = now or utcnow()

        borrow = BorrowRepo.get(borrow_id)
        if not borrow:
            raise NotFound("Borrow record not found")

        if not is_staff(role) and borrow.user_id != user_id:
            raise AccessDenied("This borrow record does not belong to you")

        if borrow.returned_at is not None:
            raise StateConflict("This book has already been returned")

        try:
            borrow.returned_at = now
            if lost:
                borrow.status = "lost"
                BookService.write_off_copy(borrow.book_id)
            else:
                borrow.status = "damaged" if damaged else "returned"
                BookService.restock_returned_copy(borrow.book_id)
            BorrowService._upsert_penalty_for_borrow(borrow, now, damaged=damaged, lost=lost)

            # single commit for return + stock + penalty
            BorrowRepo.commit()
        except Exception:
            db.session.rollback()
            raise

        current_app.logger.info(f"[BorrowService] borrow {borrow_id} closed as {borrow.status}, book {borrow.book_id}")

        # a lost copy frees nothing for the queue
        if not lost:
            WaitlistService.promote_head(borrow.book_id)
        return borrow

    @staticmethod
    def list_for_user(user_id: int):
        return BorrowRepo.list_by_user(user_id)

    @staticmethod
    def list_all():
        return BorrowRepo.list_all()


class PenaltyService:
    @staticmethod
    def list_for_user(user_id: int):
        return (
            Penalty.query
            .join(Borrow, Penalty.borrow_id == Borrow.id)
            .filter(Borrow.user_id == user_id)
            .order_by(Penalty.id.desc())
            .all()
        )

    @staticmethod
    def list_all():
        return Penalty.query.order_by(Penalty.id.desc()).all()

    @staticmethod
    def pay(penalty_id: int, user_id: int, role: str) -> Penalty:
        p = db.session.get(Penalty, penalty_id)
        if not p:
            raise NotFound("Penalty not found")

        # students may only pay their own
        if not is_staff(role) and (not p.borrow or p.borrow.user_id != user_id):
            raise AccessDenied("This penalty does not belong to you")

        if p.is_paid:
            raise StateConflict("Penalty already paid")

        p.is_paid = True
        db.session.commit()
        return p
