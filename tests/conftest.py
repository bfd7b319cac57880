# tests/conftest.py

from datetime import date

import pytest

from app import create_app
from config import TestingConfig
from controllers.roster import RosterView
from fakes import FakeDatabase
from utils.store import RecordStore


@pytest.fixture
def fake_db():
    return FakeDatabase()


@pytest.fixture
def attendance_col(fake_db):
    return fake_db["attendance"]


@pytest.fixture
def tusbha_col(fake_db):
    return fake_db["tusbha"]


@pytest.fixture
def children_col(fake_db):
    return fake_db["children"]


@pytest.fixture
def make_view():
    views = []

    def _make(kind, stage, collection, **kwargs):
        kwargs.setdefault("quiet_period", 10)
        kwargs.setdefault("today", date(2024, 3, 5))
        view = RosterView(kind, stage, RecordStore(collection), **kwargs)
        views.append(view)
        return view

    yield _make

    for view in views:
        view.coalescer.cancel_all()


@pytest.fixture
def app(fake_db):
    app = create_app(TestingConfig, database=fake_db)
    yield app
    for view in app.extensions["rosters"]._views.values():
        view.coalescer.cancel_all()


@pytest.fixture
def client(app):
    return app.test_client()
