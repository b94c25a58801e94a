"""Shared pytest fixtures for the API test suite.

Every test gets a fresh in-memory SQLite database wired into the app through
the `get_db` dependency override, and a document store under `tmp_path`.

Fixture overview
----------------
db          - session on the test database
client      - TestClient talking to the app
org         - master admin plus two departments with an admin and users each
headers_for - builds an Authorization header for a user
user_factory, task_factory - insert rows directly
"""

import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SCHEDULER_ENABLED"] = "false"

from datetime import date, timedelta
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from main import app
from paniyal.database import Base, get_db
from paniyal.models import Task, TaskStatus, User
from paniyal.services.decoy import decoy_service, login_tracker
from paniyal.services.file_storage import file_storage
from paniyal.utils.security import create_access_token, hash_password


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db(engine):
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSessionLocal()
    yield session
    session.close()


@pytest.fixture
def client(engine, tmp_path, monkeypatch):
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    def override_get_db():
        session = TestingSessionLocal()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    monkeypatch.setattr(file_storage, "upload_dir", tmp_path / "uploads")
    login_tracker.clear()
    decoy_service.clear()
    yield TestClient(app)
    app.dependency_overrides.clear()
    login_tracker.clear()
    decoy_service.clear()


def make_user(db, username, password="secret123", department=None, is_admin=False, is_master_admin=False):
    user = User(
        username=username,
        password_hash=hash_password(password),
        department=department,
        is_admin=is_admin,
        is_master_admin=is_master_admin,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def make_task(db, assigner, assignee, status=TaskStatus.PENDING, title="Inspect drain", coordinates="11.5,76.9"):
    task = Task(
        title=title,
        description="Check and report",
        assigned_by=assigner.id,
        assigned_to=assignee.id,
        status=status,
        coordinates=coordinates,
        due_date=date.today() + timedelta(days=2),
    )
    db.add(task)
    db.commit()
    db.refresh(task)
    return task


@pytest.fixture
def headers_for():
    def build(user):
        token = create_access_token(data={"sub": user.username})
        return {"Authorization": f"Bearer {token}"}
    return build


@pytest.fixture
def org(db):
    """Master admin, Roads (admin + two users) and Health (admin + one user)"""
    return SimpleNamespace(
        master=make_user(db, "master", is_master_admin=True),
        roads_admin=make_user(db, "Admin_Roads", department="Roads", is_admin=True),
        anu=make_user(db, "anu", department="Roads"),
        ravi=make_user(db, "ravi", department="Roads"),
        health_admin=make_user(db, "Admin_Health", department="Health", is_admin=True),
        meera=make_user(db, "meera", department="Health"),
    )


@pytest.fixture
def user_factory(db):
    def build(username, **kwargs):
        return make_user(db, username, **kwargs)
    return build


@pytest.fixture
def task_factory(db):
    def build(assigner, assignee, **kwargs):
        return make_task(db, assigner, assignee, **kwargs)
    return build
