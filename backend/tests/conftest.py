# backend/tests/conftest.py
import os

# must be set before offday.db builds its engine
os.environ.setdefault("DATABASE_URL", "sqlite://")

import jwt
import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from offday import models  # noqa: F401
from offday.auth import Caller, JWT_ALGORITHM, JWT_SECRET
from offday.db import Base, get_db, make_engine
from offday.main import app
from offday.models import User
from offday.roles import Role
from offday.services.lifecycle import RequestLifecycle
from offday.stores import RequestStore, UserStore

TEACHER = "ada@school.edu"
OTHER_TEACHER = "grace@school.edu"
DIRECTOR = "director@school.edu"
CHAIRMAN = "chairman@school.edu"


@pytest.fixture
def engine():
    eng = make_engine("sqlite://")
    Base.metadata.create_all(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False)


@pytest.fixture
def db(session_factory):
    with session_factory() as s:
        yield s


@pytest.fixture
def people(db):
    db.add_all([
        User(email=TEACHER, name="Ada Lovelace", role=Role.teacher, department="Mathematics"),
        User(email=OTHER_TEACHER, name="Grace Hopper", role=Role.teacher, department="Computing"),
        User(email=DIRECTOR, name="Dana Director", role=Role.director),
        User(email=CHAIRMAN, name="Chris Chairman", role=Role.chairman),
    ])
    db.commit()


@pytest.fixture
def lifecycle(db):
    return RequestLifecycle(RequestStore(db), UserStore(db))


@pytest.fixture
def callers():
    return {
        "teacher": Caller(TEACHER, Role.teacher),
        "other": Caller(OTHER_TEACHER, Role.teacher),
        "director": Caller(DIRECTOR, Role.director),
        "chairman": Caller(CHAIRMAN, Role.chairman),
    }


@pytest.fixture
def client(session_factory):
    def _get_db():
        s = session_factory()
        try:
            yield s
        finally:
            s.close()

    app.dependency_overrides[get_db] = _get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


def _bearer(email, role):
    token = jwt.encode({"email": email, "role": role}, JWT_SECRET, algorithm=JWT_ALGORITHM)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def headers():
    return {
        "teacher": _bearer(TEACHER, "teacher"),
        "other": _bearer(OTHER_TEACHER, "teacher"),
        "director": _bearer(DIRECTOR, "director"),
        "chairman": _bearer(CHAIRMAN, "chairman"),
    }
