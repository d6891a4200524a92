from io import BytesIO

import pytest
from openpyxl import Workbook

from storefront import create_app
from storefront.auth import ActorContext
from storefront.extensions import db as _db
from storefront.models.category import Category


@pytest.fixture(scope="session")
def app():
    """Create application for testing."""
    app = create_app("testing")
    with app.app_context():
        _db.create_all()
        yield app
        _db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def db(app):
    """Database handle; every table is emptied after the test."""
    yield _db
    _db.session.rollback()
    for table in reversed(_db.metadata.sorted_tables):
        _db.session.execute(table.delete())
    _db.session.commit()
    _db.session.remove()


@pytest.fixture
def actor():
    return ActorContext(user_id="u-1", email="editor@essen.sg", role="editor")


@pytest.fixture
def categories(db):
    living = Category(name="Living Room", slug="living-room", display_order=0)
    bedroom = Category(name="Bedroom", slug="bedroom", display_order=1)
    db.session.add_all([living, bedroom])
    db.session.commit()
    return [living, bedroom]


@pytest.fixture
def login(client):
    """Put a signed-in user into the test client's session."""

    def _login(role="editor", user_id="u-1", email="editor@essen.sg"):
        with client.session_transaction() as sess:
            sess["user"] = {"id": user_id, "email": email, "role": role}

    return _login


@pytest.fixture
def workbook_bytes():
    return make_workbook


def make_workbook(*sheets):
    """xlsx bytes from ``(title, rows)`` pairs."""
    workbook = Workbook()
    workbook.remove(workbook.active)
    for title, rows in sheets:
        ws = workbook.create_sheet(title)
        for row in rows:
            ws.append(row)
    buffer = BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()
