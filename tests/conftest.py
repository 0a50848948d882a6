import os

# Force the in-memory SQLite engine before timeline.db.database is imported
os.environ.setdefault("PYTEST_RUNNING", "1")

import pytest
from fastapi.testclient import TestClient

import timeline.db.database as db_module
from timeline.api.auth import fetch_membership_snapshot, resolve_principal
from timeline.api.main import app
from timeline.db import models


@pytest.fixture(scope="session", autouse=True)
def _sqlite_schema():
    db_module.init_sqlite_schema()
    yield


@pytest.fixture(autouse=True)
def _no_admin_emails(monkeypatch):
    monkeypatch.delenv("ADMIN_EMAILS", raising=False)
    yield


def _truncate_all():
    with db_module.engine.begin() as conn:
        for table in reversed(models.Base.metadata.sorted_tables):
            conn.execute(table.delete())


@pytest.fixture
def db_session():
    session = db_module.SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()
        _truncate_all()


# Backwards-compatible alias
@pytest.fixture
def db(db_session):
    return db_session


@pytest.fixture
def client(db_session):
    def _override_get_db():
        yield db_session

    app.dependency_overrides[db_module.get_db] = _override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.pop(db_module.get_db, None)


@pytest.fixture
def user_factory(db_session):
    def _create(email: str, is_superadmin: bool = False, display_name: str = None):
        user = models.User(email=email, display_name=display_name or email.split('@')[0], is_superadmin=is_superadmin)
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user
    return _create


@pytest.fixture
def organization_factory(db_session):
    def _create(name: str, slug: str = None, status: str = "approved", created_by=None):
        org = models.Organization(
            name=name,
            slug=slug or name.lower().replace(" ", "-"),
            status=status,
            created_by=getattr(created_by, "id", created_by),
        )
        db_session.add(org)
        db_session.commit()
        db_session.refresh(org)
        return org
    return _create


@pytest.fixture
def membership_factory(db_session):
    def _create(org, user, role: str = "org_viewer"):
        m = models.OrganizationMembership(organization_id=org.id, user_id=user.id, role=role)
        db_session.add(m)
        db_session.commit()
        db_session.refresh(m)
        return m
    return _create


@pytest.fixture
def topic_factory(db_session):
    def _create(name: str, organization=None, is_public: bool = False, created_by=None):
        topic = models.Topic(
            name=name,
            organization_id=getattr(organization, "id", organization),
            is_public=is_public,
            created_by=getattr(created_by, "id", created_by),
        )
        db_session.add(topic)
        db_session.commit()
        db_session.refresh(topic)
        return topic
    return _create


@pytest.fixture
def event_factory(db_session):
    def _create(topic, title: str = "Event", year: int = None, created_by=None):
        event = models.Event(
            topic_id=topic.id,
            title=title,
            year=year,
            created_by=getattr(created_by, "id", created_by),
        )
        db_session.add(event)
        db_session.commit()
        db_session.refresh(event)
        return event
    return _create


@pytest.fixture
def context_for(db_session):
    """Return (principal, snapshot) for a user row, as a request would build them."""
    def _build(user):
        return resolve_principal(user), fetch_membership_snapshot(db_session, user.id)
    return _build
