from lms.extensions import db
from lms.utils.clock import utcnow

ACCESS_LEVELS = ("NORMAL", "PREMIUM")


class Book(db.Model):
    __tablename__ = "books"
    __table_args__ = (
        db.CheckConstraint(
            "available_copies >= 0 AND available_copies <= total_copies",
            name="ck_books_copy_bounds",
        ),
        db.CheckConstraint("total_copies >= 0", name="ck_books_total_non_negative"),
    )

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(200), nullable=False, index=True)
    author = db.Column(db.String(200), nullable=False, index=True)
    isbn = db.Column(db.String(32), unique=True, nullable=True, index=True)
    genre = db.Column(db.String(100), nullable=True, index=True)
    publisher = db.Column(db.String(200), nullable=True)
    mrp = db.Column(db.Numeric(10, 2), nullable=False)

    access_level = db.Column(db.String(10), nullable=False, default="NORMAL", index=True)

    total_copies = db.Column(db.Integer, nullable=False, default=1)
    available_copies = db.Column(db.Integer, nullable=False, default=1)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    @property
    def on_loan(self) -> int:
        return self.total_copies - self.available_copies

    def to_dict(self):
        return {
            "id": self.id,
            "title": self.title,
            "author": self.author,
            "isbn": self.isbn,
            "genre": self.genre,
            "publisher": self.publisher,
            "mrp": float(self.mrp) if self.mrp is not None else None,
            "accessLevel": self.access_level,
            "totalCopies": self.total_copies,
            "availableCopies": self.available_copies,
        }
