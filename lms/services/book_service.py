from decimal import Decimal, InvalidOperation

from flask import current_app
from sqlalchemy.exc import IntegrityError

from lms.errors import AlreadyExists, InsufficientCopies, NotFound, StateConflict, ValidationError
from lms.extensions import db
from lms.models.book import ACCESS_LEVELS, Book
from lms.repositories.book_repo import BookRepo
from lms.repositories.borrow_repo import BorrowRepo
from lms.repositories.issue_request_repo import IssueRequestRepo
from lms.repositories.waitlist_repo import WaitlistRepo
from lms.utils.payload import pick


def _clean_text(value):
    return str(value).strip() if value is not None else ""


def _parse_copies(value) -> int:
    if isinstance(value, bool):
        raise ValidationError("totalCopies must be an integer")
    try:
        copies = int(value)
    except (TypeError, ValueError):
        raise ValidationError("totalCopies must be an integer")
    if copies <= 0:
        raise ValidationError("totalCopies must be at least 1")
    return copies


def _parse_mrp(value) -> Decimal:
    if value is None or isinstance(value, bool):
        raise ValidationError("mrp is required")
    try:
        mrp = Decimal(str(value))
    except InvalidOperation:
        raise ValidationError("mrp must be a number")
    if not mrp.is_finite() or mrp < 0:
        raise ValidationError("mrp cannot be negative")
    return mrp.quantize(Decimal("0.01"))


def _parse_access_level(value) -> str:
    level = _clean_text(value).upper() or "NORMAL"
    if level not in ACCESS_LEVELS:
        raise ValidationError("accessLevel must be NORMAL or PREMIUM")
    return level


class BookService:
    """Book records and the copy-count invariant 0 <= available <= total."""

    @staticmethod
    def get_book(book_id: int) -> Book:
        book = BookRepo.get(book_id)
        if not book:
            raise NotFound("Book not found")
        return book

    @staticmethod
    def create_book(data: dict) -> Book:
        title = _clean_text(data.get("title"))
        author = _clean_text(data.get("author"))
        if not title or not author:
            raise ValidationError("title and author are required")

        _, total = pick(data, "totalCopies", "total_copies")
        total = _parse_copies(total)
        _, mrp = pick(data, "mrp")
        mrp = _parse_mrp(mrp)
        _, level = pick(data, "accessLevel", "access_level")
        level = _parse_access_level(level)

        isbn = _clean_text(data.get("isbn")) or None
        if isbn and BookRepo.get_by_isbn(isbn):
            raise AlreadyExists(f"Book with ISBN already exists: {isbn}")

        book = Book(
            title=title,
            author=author,
            isbn=isbn,
            genre=_clean_text(data.get("genre")) or None,
            publisher=_clean_text(data.get("publisher")) or None,
            mrp=mrp,
            access_level=level,
            total_copies=total,
            available_copies=total,
        )
        BookRepo.create(book)
        current_app.logger.info(f"[BookService] created book {book.id} '{book.title}' x{total}")
        return book

    @staticmethod
    def update_book(book_id: int, data: dict) -> Book:
        book = BookService.get_book(book_id)

        for k in ("title", "author"):
            if k in data:
                value = _clean_text(data[k])
                if not value:
                    raise ValidationError(f"{k} cannot be empty")
                setattr(book, k, value)
        for k in ("genre", "publisher"):
            if k in data:
                setattr(book, k, _clean_text(data[k]) or None)

        if "isbn" in data:
            isbn = _clean_text(data["isbn"]) or None
            if isbn and isbn != book.isbn:
                other = BookRepo.get_by_isbn(isbn)
                if other and other.id != book.id:
                    raise AlreadyExists("ISBN already used by another book")
            book.isbn = isbn

        if "mrp" in data:
            book.mrp = _parse_mrp(data["mrp"])

        found, level = pick(data, "accessLevel", "access_level")
        if found:
            book.access_level = _parse_access_level(level)

        found, total = pick(data, "totalCopies", "total_copies")
        if found:
            total = _parse_copies(total)
            if current_app.config.get("RESTOCK_ON_TOTAL_UPDATE", True):
                # full restock: every copy counts as on the shelf again
                book.total_copies = total
                book.available_copies = total
            else:
                on_loan = book.on_loan
                if total < on_loan:
                    raise ValidationError(f"totalCopies cannot be less than copies on loan ({on_loan})")
                book.total_copies = total
                book.available_copies = total - on_loan

        BookRepo.update()
        return book

    @staticmethod
    def delete_book(book_id: int):
        book = BookService.get_book(book_id)
        if book.available_copies != book.total_copies:
            raise StateConflict("Book is currently borrowed; wait for all copies to be returned")
        if BorrowRepo.exists_for_book(book.id) or IssueRequestRepo.exists_for_book(book.id):
            raise StateConflict("Book has circulation history and cannot be deleted")
        WaitlistRepo.delete_for_book(book.id)
        try:
            BookRepo.delete(book)
        except IntegrityError:
            db.session.rollback()
            raise StateConflict("Book has circulation history and cannot be deleted")
        current_app.logger.info(f"[BookService] deleted book {book_id}")

    @staticmethod
    def search(title=None, genre=None, access_level=None, available_only=False, access_levels=None):
        if access_level:
            access_level = _parse_access_level(access_level)
        return BookRepo.search(
            text=(title or "").strip() or None,
            genre=(genre or "").strip() or None,
            access_level=access_level,
            available_only=bool(available_only),
            access_levels=access_levels,
        )

    @staticmethod
    def stats() -> dict:
        counts = BookRepo.count_by_access_level()
        normal = counts.get("NORMAL", 0)
        premium = counts.get("PREMIUM", 0)
        return {"total": normal + premium, "normal": normal, "premium": premium}

    @staticmethod
    def reserve_copy(book_id: int):
        """Take one copy off the shelf. Part of the caller's transaction."""
        if BookRepo.decrement_available_if_any(book_id) == 0:
            if not BookRepo.get(book_id):
                raise NotFound("Book not found")
            raise InsufficientCopies("Book unavailable: no copies left")

    @staticmethod
    def release_copy(book_id: int):
        """Put one copy back. Part of the caller's transaction."""
        if BookRepo.increment_available_if_below_total(book_id) == 0:
            if not BookRepo.get(book_id):
                raise NotFound("Book not found")
            raise StateConflict("All copies are already on the shelf")

    @staticmethod
    def restock_returned_copy(book_id: int) -> bool:
        """Shelve a copy coming back from a loan. Part of the caller's transaction.

        A shelf already at total (restocked while the copy was out) absorbs
        the return; the loan still closes.
        """
        if BookRepo.increment_available_if_below_total(book_id) == 0:
            if not BookRepo.get(book_id):
                raise NotFound("Book not found")
            current_app.logger.info(f"[BookService] book {book_id} already fully stocked, return absorbed")
            return False
        return True

    @staticmethod
    def write_off_copy(book_id: int):
        """Remove a lost copy from stock. Part of the caller's transaction."""
        if BookRepo.write_off_copy(book_id) == 0:
            if not BookRepo.get(book_id):
                raise NotFound("Book not found")
            raise StateConflict("Book has no copies left to write off")
        current_app.logger.info(f"[BookService] book {book_id} lost copy written off")
