from lms.extensions import db
from lms.utils.clock import utcnow


class WaitlistEntry(db.Model):
    __tablename__ = "waitlist_entries"
    __table_args__ = (
        db.UniqueConstraint("book_id", "student_id", name="uq_waitlist_book_student"),
    )

    id = db.Column(db.Integer, primary_key=True)
    book_id = db.Column(db.Integer, db.ForeignKey("books.id"), nullable=False, index=True)
    student_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    joined_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    book = db.relationship("Book")
    student = db.relationship("User")
