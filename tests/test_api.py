from lms.extensions import db
from lms.services.book_service import BookService


def _book_payload(**kw):
    data = {"title": "Refactoring", "author": "Martin Fowler", "mrp": 650, "totalCopies": 2, "accessLevel": "NORMAL"}
    data.update(kw)
    return data


def test_health(client):
    assert client.get("/health").get_json() == {"ok": True}


def test_register_login_me(client):
    r = client.post("/api/auth/register", json={"username": "ayse", "email": "ayse@x.io", "password": "pw12345"})
    assert r.status_code == 201
    assert r.get_json()["data"]["role"] == "student"

    assert client.post("/api/auth/register", json={"username": "ayse", "email": "a2@x.io", "password": "p"}).status_code == 409
    assert client.post("/api/auth/register", json={"username": "", "email": "", "password": ""}).status_code == 400
    assert client.post("/api/auth/login", json={"username": "ayse", "password": "nope"}).status_code == 401

    token = client.post("/api/auth/login", json={"username": "ayse", "password": "pw12345"}).get_json()["access_token"]
    me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"}).get_json()
    assert me["user"]["username"] == "ayse"


def test_endpoints_require_token(client):
    assert client.get("/api/library/books").status_code == 401
    assert client.post("/api/issue-requests", json={"bookId": 1}).status_code == 401


def test_book_crud_and_errors(client, make_user, auth_header):
    librarian, student = make_user("librarian"), make_user()
    staff = auth_header(librarian)

    assert client.post("/api/library/books", json=_book_payload(), headers=auth_header(student)).status_code == 403
    assert client.post("/api/library/books", json=_book_payload(mrp=-5), headers=staff).status_code == 400

    r = client.post("/api/library/books", json=_book_payload(), headers=staff)
    assert r.status_code == 201
    book = r.get_json()["data"]
    assert book["availableCopies"] == 2

    r = client.put(f"/api/library/books/{book['id']}", json={"totalCopies": 4}, headers=staff)
    assert r.get_json()["data"]["availableCopies"] == 4
    assert client.put("/api/library/books/999", json={"title": "x"}, headers=staff).status_code == 404

    BookService.reserve_copy(book["id"])
    db.session.commit()
    r = client.delete(f"/api/library/books/{book['id']}", headers=staff)
    assert r.status_code == 409
    assert r.get_json()["error"] == "StateConflict"


def test_search_hides_premium_books_from_normal_students(client, make_user, make_book, make_premium, auth_header):
    make_book(title="Open Book")
    make_book(title="Gold Book", access_level="PREMIUM", genre="Finance")
    normal, premium = make_user(), make_user()
    make_premium(premium)

    titles = lambda user, qs="": {b["title"] for b in client.get(f"/api/library/books{qs}", headers=auth_header(user)).get_json()["data"]}
    assert titles(normal) == {"Open Book"}
    assert titles(premium) == {"Open Book", "Gold Book"}
    assert titles(normal, "?accessLevel=PREMIUM") == {"Gold Book"}
    assert titles(premium, "?genre=finance") == {"Gold Book"}
    assert titles(premium, "?title=open&available=true") == {"Open Book"}


def test_request_approve_flow(client, make_user, make_book, auth_header):
    student, librarian = make_user(), make_user("librarian")
    book = make_book(total_copies=5)

    r = client.post("/api/issue-requests", json={"bookId": book.id}, headers=auth_header(student))
    assert r.status_code == 201
    req = r.get_json()["data"]["request"]
    assert req["status"] == "PENDING"

    # students cannot decide
    assert client.patch(f"/api/issue-requests/{req['id']}/approve", headers=auth_header(student)).status_code == 403

    r = client.patch(f"/api/issue-requests/{req['id']}/approve", json={}, headers=auth_header(librarian))
    assert r.status_code == 200
    assert r.get_json()["data"]["status"] == "APPROVED"
    assert BookService.get_book(book.id).available_copies == 4

    r = client.patch(f"/api/issue-requests/{req['id']}/reject", json={"reason": "late"}, headers=auth_header(librarian))
    assert r.status_code == 409
    assert r.get_json()["error"] == "InvalidStateTransition"

    mine = client.get("/api/issue-requests?status=APPROVED", headers=auth_header(student)).get_json()["data"]
    assert [x["id"] for x in mine] == [req["id"]]


def test_approve_with_explicit_due_date(client, make_user, make_book, auth_header):
    student, librarian = make_user(), make_user("librarian")
    book = make_book()
    req_id = client.post("/api/issue-requests", json={"bookId": book.id}, headers=auth_header(student)).get_json()["data"]["request"]["id"]

    r = client.patch(f"/api/issue-requests/{req_id}/approve", json={"expectedDueDate": "2030-01-15"}, headers=auth_header(librarian))
    assert r.get_json()["data"]["expectedDueDate"].startswith("2030-01-15")
    bad = client.patch(f"/api/issue-requests/{req_id}/approve", json={"expectedDueDate": "soon"}, headers=auth_header(librarian))
    assert bad.status_code == 400


def test_request_failure_statuses(client, make_user, make_book, auth_header):
    student = make_user()
    premium_book = make_book(access_level="PREMIUM")

    r = client.post("/api/issue-requests", json={"bookId": premium_book.id}, headers=auth_header(student))
    assert r.status_code == 403
    assert r.get_json()["error"] == "AccessDenied"

    assert client.post("/api/issue-requests", json={}, headers=auth_header(student)).status_code == 400
    assert client.post("/api/issue-requests", json={"bookId": 999}, headers=auth_header(student)).status_code == 404

    for i in range(3):
        client.post("/api/issue-requests", json={"bookId": make_book(title=f"T{i}").id}, headers=auth_header(student))
    r = client.post("/api/issue-requests", json={"bookId": make_book(title="T4").id}, headers=auth_header(student))
    assert r.status_code == 409
    assert r.get_json()["error"] == "QuotaExceeded"

    quota = client.get("/api/library/monthly-request-count", headers=auth_header(student)).get_json()["data"]
    assert quota == {"count": 3, "limit": 3, "remaining": 0, "unlimited": False}


def test_exhausted_book_request_is_waitlisted(client, make_user, make_book, auth_header):
    a, b = make_user(), make_user()
    book = make_book(total_copies=2, available_copies=0)

    r = client.post("/api/issue-requests", json={"bookId": book.id}, headers=auth_header(a))
    assert r.status_code == 202
    assert r.get_json()["data"]["waitlist"]["position"] == 1

    r = client.post("/api/library/waitlist", json={"bookId": book.id}, headers=auth_header(b))
    assert r.status_code == 201
    assert r.get_json()["data"]["position"] == 2

    r = client.post("/api/library/waitlist", json={"bookId": book.id}, headers=auth_header(a))
    assert r.status_code == 409
    assert r.get_json()["error"] == "AlreadyWaitlisted"

    pos = client.get(f"/api/library/waitlist/{book.id}/position", headers=auth_header(b)).get_json()["data"]
    assert pos["position"] == 2
    assert client.delete(f"/api/library/waitlist/{book.id}", headers=auth_header(a)).status_code == 200
    assert client.get(f"/api/library/waitlist/{book.id}/position", headers=auth_header(b)).get_json()["data"]["position"] == 1


def test_bulk_approve_endpoint(client, make_user, make_book, auth_header):
    admin, librarian = make_user("admin"), make_user("librarian")
    book = make_book(total_copies=5)
    ids = []
    for _ in range(3):
        student = make_user()
        ids.append(client.post("/api/issue-requests", json={"bookId": book.id}, headers=auth_header(student)).get_json()["data"]["request"]["id"])
    client.patch(f"/api/issue-requests/{ids[1]}/approve", headers=auth_header(librarian))

    assert client.post("/api/admin/bulk-approve", json={"requestIds": ids}, headers=auth_header(librarian)).status_code == 403
    r = client.post("/api/admin/bulk-approve", json={"requestIds": ids}, headers=auth_header(admin))
    assert r.status_code == 200
    assert r.get_json()["data"] == {"fulfilled": 2, "rejected": 1}

    assert client.post("/api/admin/bulk-approve", json={"requestIds": "1,2"}, headers=auth_header(admin)).status_code == 400


def test_book_stats(client, make_user, make_book, auth_header):
    make_book()
    make_book(access_level="PREMIUM")
    r = client.get("/api/admin/book-stats", headers=auth_header(make_user("admin")))
    assert r.get_json()["data"] == {"total": 2, "normal": 1, "premium": 1}


def test_subscription_endpoints(client, make_user, auth_header):
    student = make_user()
    h = auth_header(student)

    assert client.get("/api/library/subscription", headers=h).get_json()["data"]["type"] == "NORMAL"

    r = client.post("/api/library/subscription/activate", json={"package": "FOREVER"}, headers=h)
    assert r.status_code == 400
    assert r.get_json()["error"] == "InvalidPackage"

    r = client.post("/api/library/subscription/activate", json={"package": "ONE_MONTH"}, headers=h)
    data = r.get_json()["data"]
    assert data["isPremium"] is True
    assert data["subscriptionPackage"] == "ONE_MONTH"

    r = client.post("/api/library/subscription/extend", json={"package": "SIX_MONTHS"}, headers=h)
    assert r.get_json()["data"]["daysRemaining"] >= 209

    quota = client.get("/api/library/monthly-request-count", headers=h).get_json()["data"]
    assert quota["unlimited"] is True
    assert quota["remaining"] is None

    notes = client.get("/api/notifications/my", headers=h).get_json()["data"]
    assert {n["type"] for n in notes} == {"subscription_activated", "subscription_extended"}


def test_return_and_penalty_endpoints(client, make_user, make_book, auth_header):
    student, librarian = make_user(), make_user("librarian")
    book = make_book(total_copies=1)
    req_id = client.post("/api/issue-requests", json={"bookId": book.id}, headers=auth_header(student)).get_json()["data"]["request"]["id"]
    borrow_id = client.patch(f"/api/issue-requests/{req_id}/approve", headers=auth_header(librarian)).get_json()["data"]["issuedRecordId"]

    loans = client.get("/api/borrows/my", headers=auth_header(student)).get_json()["data"]
    assert [x["id"] for x in loans] == [borrow_id]
    assert client.get("/api/borrows", headers=auth_header(student)).status_code == 403

    r = client.post(f"/api/borrows/{borrow_id}/return", headers=auth_header(student))
    assert r.status_code == 200
    assert r.get_json()["data"]["penalty"] is None
    assert client.post(f"/api/borrows/{borrow_id}/return", headers=auth_header(student)).status_code == 409
    assert BookService.get_book(book.id).available_copies == 1

    assert client.get("/api/penalties/my", headers=auth_header(student)).get_json()["data"] == []
    assert client.get("/api/penalties", headers=auth_header(librarian)).status_code == 200


def test_lost_return_and_promote_unknown_book(client, make_user, make_book, auth_header):
    student, librarian = make_user(), make_user("librarian")
    book = make_book(total_copies=2, mrp=80)
    req_id = client.post("/api/issue-requests", json={"bookId": book.id}, headers=auth_header(student)).get_json()["data"]["request"]["id"]
    borrow_id = client.patch(f"/api/issue-requests/{req_id}/approve", headers=auth_header(librarian)).get_json()["data"]["issuedRecordId"]

    r = client.post(f"/api/borrows/{borrow_id}/return", json={"lost": True}, headers=auth_header(librarian))
    data = r.get_json()["data"]
    assert data["status"] == "lost"
    assert data["penalty"]["penaltyType"] == "LOST"
    assert data["penalty"]["amount"] == 80.0
    stock = client.get(f"/api/library/books/{book.id}", headers=auth_header(student)).get_json()["data"]
    assert (stock["totalCopies"], stock["availableCopies"]) == (1, 1)

    r = client.post("/api/library/waitlist/999/promote", headers=auth_header(librarian))
    assert r.status_code == 404
    assert r.get_json()["error"] == "NotFound"
