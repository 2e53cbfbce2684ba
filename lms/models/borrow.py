from lms.extensions import db
from lms.utils.clock import utcnow


class Borrow(db.Model):
    __tablename__ = "borrows"

    id = db.Column(db.Integer, primary_key=True)

    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    book_id = db.Column(db.Integer, db.ForeignKey("books.id"), nullable=False, index=True)
    request_id = db.Column(db.Integer, db.ForeignKey("issue_requests.id"), nullable=True)

    borrowed_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    due_date = db.Column(db.DateTime, nullable=False)
    returned_at = db.Column(db.DateTime, nullable=True)

    status = db.Column(db.String(20), nullable=False, default="active")  # active/returned/damaged/lost

    user = db.relationship("User", backref="borrows")
    book = db.relationship("Book")

    def to_dict(self):
        return {
            "id": self.id,
            "userId": self.user_id,
            "bookId": self.book_id,
            "bookTitle": self.book.title if self.book else None,
            "requestId": self.request_id,
            "borrowedAt": self.borrowed_at.isoformat() if self.borrowed_at else None,
            "dueDate": self.due_date.isoformat() if self.due_date else None,
            "returnedAt": self.returned_at.isoformat() if self.returned_at else None,
            "status": self.status,
        }
