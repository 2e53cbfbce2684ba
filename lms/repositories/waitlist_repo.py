from lms.models.waitlist import WaitlistEntry
from lms.extensions import db


class WaitlistRepo:
    @staticmethod
    def get(book_id: int, student_id: int):
        return WaitlistEntry.query.filter_by(book_id=book_id, student_id=student_id).first()

    @staticmethod
    def list_for_book(book_id: int):
        return (
            WaitlistEntry.query
            .filter_by(book_id=book_id)
            .order_by(WaitlistEntry.joined_at.asc(), WaitlistEntry.id.asc())
            .all()
        )

    @staticmethod
    def list_for_student(student_id: int):
        return WaitlistEntry.query.filter_by(student_id=student_id).order_by(WaitlistEntry.joined_at.asc()).all()

    @staticmethod
    def head(book_id: int):
        return (
            WaitlistEntry.query
            .filter_by(book_id=book_id)
            .order_by(WaitlistEntry.joined_at.asc(), WaitlistEntry.id.asc())
            .first()
        )

    @staticmethod
    def add(entry: WaitlistEntry):
        db.session.add(entry)
        db.session.commit()
        return entry

    @staticmethod
    def delete(entry: WaitlistEntry):
        db.session.delete(entry)
        db.session.commit()

    @staticmethod
    def delete_for_book(book_id: int):
        WaitlistEntry.query.filter_by(book_id=book_id).delete(synchronize_session=False)
