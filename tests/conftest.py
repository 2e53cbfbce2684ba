from datetime import datetime

import pytest

from lms import create_app
from lms.config import TestConfig
from lms.extensions import db
from lms.models.book import Book
from lms.services.auth_service import AuthService
from lms.services.membership_service import MembershipService

NOW = datetime(2025, 3, 10, 12, 0, 0)


@pytest.fixture
def app():
    app = create_app(TestConfig)
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def make_user(app):
    counter = {"n": 0}

    def _make(role="student", username=None):
        counter["n"] += 1
        name = username or f"{role}{counter['n']}"
        return AuthService.register(name, f"{name}@library.test", "secret-pass", role=role)

    return _make


@pytest.fixture
def make_book(app):
    def _make(**kw):
        data = {
            "title": "Clean Code",
            "author": "Robert Martin",
            "mrp": 500,
            "total_copies": 5,
            "access_level": "NORMAL",
        }
        data.update(kw)
        book = Book(
            title=data["title"],
            author=data["author"],
            isbn=data.get("isbn"),
            genre=data.get("genre"),
            mrp=data["mrp"],
            access_level=data["access_level"],
            total_copies=data["total_copies"],
            available_copies=data.get("available_copies", data["total_copies"]),
        )
        db.session.add(book)
        db.session.commit()
        return book

    return _make


@pytest.fixture
def make_premium(app):
    def _make(user, package="ONE_YEAR", now=None):
        return MembershipService.activate(user.id, package, now=now)

    return _make


@pytest.fixture
def auth_header(app):
    def _header(user):
        return {"Authorization": f"Bearer {AuthService.issue_token(user)}"}

    return _header
