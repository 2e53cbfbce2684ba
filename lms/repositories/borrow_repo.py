from datetime import datetime
from lms.models.borrow import Borrow
from lms.extensions import db

class BorrowRepo:
    @staticmethod
    def get(borrow_id: int):
        return db.session.get(Borrow, borrow_id)

    @staticmethod
    def list_by_user(user_id: int):
        return Borrow.query.filter_by(user_id=user_id).order_by(Borrow.id.desc()).all()

    @staticmethod
    def list_all():
        return Borrow.query.order_by(Borrow.id.desc()).all()

    @staticmethod
    def add(borrow: Borrow):
        db.session.add(borrow)
        db.session.flush()
        return borrow

    @staticmethod
    def commit():
        db.session.commit()

    @staticmethod
    def has_overdue(user_id: int, now: datetime) -> bool:
        return Borrow.query.filter(
            Borrow.user_id == user_id,
            Borrow.returned_at.is_(None),
            Borrow.due_date < now,
        ).first() is not None

    @staticmethod
    def has_active(user_id: int, book_id: int) -> bool:
        return Borrow.query.filter(
            Borrow.user_id == user_id,
            Borrow.book_id == book_id,
            Borrow.returned_at.is_(None),
        ).first() is not None

    @staticmethod
    def exists_for_book(book_id: int) -> bool:
        return Borrow.query.filter(Borrow.book_id == book_id).first() is not None
