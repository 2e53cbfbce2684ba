from datetime import timedelta

import pytest

from lms.errors import AccessDenied, AlreadyWaitlisted, NotFound, StateConflict
from lms.services.book_service import BookService
from lms.services.bulk_service import BulkService
from lms.services.issue_request_service import IssueRequestService
from lms.services.waitlist_service import WaitlistService

from conftest import NOW


def test_waitlist_positions_are_fifo(app, make_user, make_book):
    a, b = make_user(), make_user()
    book = make_book(total_copies=2, available_copies=0)

    WaitlistService.join(book.id, a.id, now=NOW)
    WaitlistService.join(book.id, b.id, now=NOW + timedelta(minutes=1))
    assert WaitlistService.position(book.id, a.id) == 1
    assert WaitlistService.position(book.id, b.id) == 2

    with pytest.raises(AlreadyWaitlisted):
        WaitlistService.join(book.id, a.id, now=NOW + timedelta(minutes=2))


def test_waitlist_only_for_exhausted_books(app, make_user, make_book):
    book = make_book(total_copies=2, available_copies=1)
    with pytest.raises(StateConflict):
        WaitlistService.join(book.id, make_user().id, now=NOW)
    with pytest.raises(NotFound):
        WaitlistService.join(999, make_user().id, now=NOW)


def test_position_for_student_not_waiting(app, make_user, make_book):
    book = make_book(available_copies=0)
    with pytest.raises(NotFound):
        WaitlistService.position(book.id, make_user().id)


def test_promote_head_pops_earliest_and_notifies(app, make_user, make_book):
    from lms.repositories.notification_repo import NotificationRepo

    a, b = make_user(), make_user()
    book = make_book(total_copies=1, available_copies=0)
    WaitlistService.join(book.id, b.id, now=NOW + timedelta(minutes=5))
    WaitlistService.join(book.id, a.id, now=NOW)

    promoted = WaitlistService.promote_head(book.id)
    assert promoted["studentId"] == a.id
    assert WaitlistService.position(book.id, b.id) == 1
    assert [n.type for n in NotificationRepo.list_for_user(a.id)] == ["waitlist_available"]

    WaitlistService.promote_head(book.id)
    assert WaitlistService.promote_head(book.id) is None


def test_leave_and_listings(app, make_user, make_book):
    a, b = make_user(), make_user()
    book = make_book(available_copies=0)
    WaitlistService.join(book.id, a.id, now=NOW)
    WaitlistService.join(book.id, b.id, now=NOW + timedelta(seconds=1))

    assert [e["studentId"] for e in WaitlistService.list_for_book(book.id)] == [a.id, b.id]
    WaitlistService.leave(book.id, a.id)
    assert WaitlistService.list_for_student(b.id)[0]["position"] == 1
    with pytest.raises(NotFound):
        WaitlistService.leave(book.id, a.id)


def test_deleting_book_clears_waitlist(app, make_user, make_book):
    book = make_book(total_copies=1, available_copies=0)
    student = make_user()
    WaitlistService.join(book.id, student.id, now=NOW)

    BookService.update_book(book.id, {"totalCopies": 1})
    BookService.delete_book(book.id)
    assert WaitlistService.list_for_student(student.id) == []


def test_bulk_approve_tolerates_processed_ids(app, make_user, make_book):
    book = make_book(total_copies=5)
    r1, r2, r3 = (IssueRequestService.create(make_user().id, book.id).request for _ in range(3))
    IssueRequestService.approve(r2.id)

    result = BulkService.bulk_approve([r1.id, r2.id, r3.id])
    assert result == {"fulfilled": 2, "rejected": 1}
    assert IssueRequestService.get(r1.id).status == "APPROVED"
    assert IssueRequestService.get(r3.id).status == "APPROVED"
    assert BookService.get_book(book.id).available_copies == 2


def test_bulk_approve_partial_when_book_runs_out(app, make_user, make_book):
    plenty = make_book(title="Plenty", total_copies=3)
    scarce = make_book(title="Scarce", total_copies=1)
    ids = [IssueRequestService.create(make_user().id, plenty.id).request.id for _ in range(3)]
    ids += [IssueRequestService.create(make_user().id, scarce.id).request.id for _ in range(2)]

    result = BulkService.bulk_approve(ids)
    assert result == {"fulfilled": 4, "rejected": 1}

    statuses = [IssueRequestService.get(i).status for i in ids]
    assert statuses.count("APPROVED") == 4
    assert statuses.count("PENDING") == 1
    assert BookService.get_book(scarce.id).available_copies == 0
    assert BookService.get_book(plenty.id).available_copies == 0


def test_bulk_approve_unknown_and_duplicate_ids(app, make_user, make_book):
    book = make_book()
    req = IssueRequestService.create(make_user().id, book.id).request
    assert BulkService.bulk_approve([req.id, req.id, 4242]) == {"fulfilled": 1, "rejected": 2}
    assert BulkService.bulk_approve([]) == {"fulfilled": 0, "rejected": 0}


def test_premium_book_waitlist_requires_membership(app, make_user, make_book, make_premium):
    book = make_book(access_level="PREMIUM", total_copies=1, available_copies=0)
    normal, premium = make_user(), make_user()
    make_premium(premium, now=NOW)

    with pytest.raises(AccessDenied):
        WaitlistService.join(book.id, normal.id, now=NOW)
    WaitlistService.join(book.id, premium.id, now=NOW)
    assert WaitlistService.position(book.id, premium.id) == 1
