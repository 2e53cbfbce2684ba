from lms.models.issue_request import IssueRequest
from lms.extensions import db


class IssueRequestRepo:
    @staticmethod
    def get(request_id: int):
        return db.session.get(IssueRequest, request_id)

    @staticmethod
    def list(status=None, student_id=None):
        q = IssueRequest.query
        if status:
            q = q.filter(IssueRequest.status == status)
        if student_id is not None:
            q = q.filter(IssueRequest.student_id == student_id)
        return q.order_by(IssueRequest.id.desc()).all()

    @staticmethod
    def count_between(student_id: int, start, end) -> int:
        return IssueRequest.query.filter(
            IssueRequest.student_id == student_id,
            IssueRequest.requested_at >= start,
            IssueRequest.requested_at < end,
        ).count()

    @staticmethod
    def has_pending(student_id: int, book_id: int) -> bool:
        return IssueRequest.query.filter_by(
            student_id=student_id, book_id=book_id, status="PENDING"
        ).first() is not None

    @staticmethod
    def create(req: IssueRequest):
        db.session.add(req)
        db.session.commit()
        return req

    @staticmethod
    def transition_from_pending(request_id: int, values: dict) -> int:
        """Compare-and-set on status; returns the number of rows changed (0 or 1).
        Does not commit."""
        return IssueRequest.query.filter(
            IssueRequest.id == request_id,
            IssueRequest.status == "PENDING",
        ).update(values, synchronize_session=False)

    @staticmethod
    def set_issued_record(request_id: int, borrow_id: int):
        IssueRequest.query.filter(IssueRequest.id == request_id).update(
            {IssueRequest.issued_record_id: borrow_id}, synchronize_session=False
        )

    @staticmethod
    def exists_for_book(book_id: int) -> bool:
        return IssueRequest.query.filter(IssueRequest.book_id == book_id).first() is not None
