from lms.extensions import db
from lms.utils.clock import utcnow

REQUEST_STATUSES = ("PENDING", "APPROVED", "REJECTED")


class IssueRequest(db.Model):
    __tablename__ = "issue_requests"

    id = db.Column(db.Integer, primary_key=True)

    student_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    book_id = db.Column(db.Integer, db.ForeignKey("books.id"), nullable=False, index=True)

    # PENDING -> APPROVED | REJECTED, both terminal
    status = db.Column(db.String(10), nullable=False, default="PENDING", index=True)

    requested_at = db.Column(db.DateTime, nullable=False, default=utcnow, index=True)
    processed_at = db.Column(db.DateTime, nullable=True)
    processed_by_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    reason = db.Column(db.String(500), nullable=True)
    expected_due_date = db.Column(db.DateTime, nullable=True)
    issued_record_id = db.Column(db.Integer, nullable=True)

    student = db.relationship("User", foreign_keys=[student_id])
    book = db.relationship("Book")

    def to_dict(self):
        return {
            "id": self.id,
            "studentId": self.student_id,
            "studentName": self.student.username if self.student else None,
            "bookId": self.book_id,
            "bookTitle": self.book.title if self.book else None,
            "status": self.status,
            "requestedAt": self.requested_at.isoformat() if self.requested_at else None,
            "processedAt": self.processed_at.isoformat() if self.processed_at else None,
            "processedById": self.processed_by_id,
            "reason": self.reason,
            "expectedDueDate": self.expected_due_date.isoformat() if self.expected_due_date else None,
            "issuedRecordId": self.issued_record_id,
        }
