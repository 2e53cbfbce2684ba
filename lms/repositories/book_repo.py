from sqlalchemy import case, func, or_

from lms.models.book import Book
from lms.extensions import db


class BookRepo:
    @staticmethod
    def get(book_id: int):
        return db.session.get(Book, book_id)

    @staticmethod
    def get_by_isbn(isbn: str):
        return Book.query.filter_by(isbn=isbn).first()

    @staticmethod
    def search(text=None, genre=None, access_level=None, available_only=False, access_levels=None):
        q = Book.query
        if text:
            like = f"%{text.lower()}%"
            q = q.filter(or_(
                func.lower(Book.title).like(like),
                func.lower(Book.author).like(like),
                func.lower(func.coalesce(Book.isbn, "")).like(like),
            ))
        if genre:
            q = q.filter(func.lower(Book.genre) == genre.lower())
        if access_level:
            q = q.filter(Book.access_level == access_level)
        elif access_levels:
            q = q.filter(Book.access_level.in_(access_levels))
        if available_only:
            q = q.filter(Book.available_copies > 0)
        return q.all()

    @staticmethod
    def count_by_access_level():
        rows = db.session.query(Book.access_level, func.count(Book.id)).group_by(Book.access_level).all()
        return {level: count for level, count in rows}

    @staticmethod
    def create(book: Book):
        db.session.add(book)
        db.session.commit()
        return book

    @staticmethod
    def update():
        db.session.commit()

    @staticmethod
    def delete(book: Book):
        db.session.delete(book)
        db.session.commit()

    # Guarded single-statement updates; the caller commits.
    @staticmethod
    def decrement_available_if_any(book_id: int) -> int:
        return Book.query.filter(
            Book.id == book_id,
            Book.available_copies > 0,
        ).update(
            {Book.available_copies: Book.available_copies - 1},
            synchronize_session=False,
        )

    @staticmethod
    def increment_available_if_below_total(book_id: int) -> int:
        return Book.query.filter(
            Book.id == book_id,
            Book.available_copies < Book.total_copies,
        ).update(
            {Book.available_copies: Book.available_copies + 1},
            synchronize_session=False,
        )

    @staticmethod
    def write_off_copy(book_id: int) -> int:
        """Drop one copy from the stock; available is pulled down with total when
        the shelf is already full."""
        return Book.query.filter(
            Book.id == book_id,
            Book.total_copies > 0,
        ).update(
            {
                Book.total_copies: Book.total_copies - 1,
                Book.available_copies: case(
                    (Book.available_copies >= Book.total_copies, Book.total_copies - 1),
                    else_=Book.available_copies,
                ),
            },
            synchronize_session=False,
        )
