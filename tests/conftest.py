from datetime import date
import itertools

import pytest

from lostfound import create_app
from lostfound.extensions import db, mail
from lostfound.models import Category, Item, User


@pytest.fixture
def app():
    app = create_app("testing")
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def outbox(app):
    with mail.record_messages() as messages:
        yield messages


@pytest.fixture
def make_user(app):
    counter = itertools.count(1)

    def _make(**kw):
        n = next(counter)
        kw.setdefault("email", f"user{n}@campus.edu")
        kw.setdefault("first_name", "Test")
        kw.setdefault("last_name", f"User{n}")
        user = User(**kw)
        db.session.add(user)
        db.session.commit()
        return user

    return _make


@pytest.fixture
def admin(make_user):
    return make_user(email="admin@campus.edu", role="admin")


@pytest.fixture
def admin_headers(admin):
    # DEBUG is on under the testing config, so the dev header is accepted
    return {"X-User-Id": str(admin.id)}


@pytest.fixture
def category(app):
    cat = Category(name="Wallets")
    db.session.add(cat)
    db.session.commit()
    return cat


@pytest.fixture
def other_category(app):
    cat = Category(name="Electronics")
    db.session.add(cat)
    db.session.commit()
    return cat


@pytest.fixture
def make_item(app, category):
    def _make(type="lost", **kw):
        fields = dict(
            status="approved",
            item_name="Black Wallet",
            description="leather wallet with cards",
            location="Library",
            date_lost_found=date(2024, 1, 10),
            category_id=category.id,
        )
        fields.update(kw)
        item = Item(type=type, **fields)
        db.session.add(item)
        db.session.commit()
        return item

    return _make
