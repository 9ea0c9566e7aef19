"""Shared fixtures: an isolated in-memory database per test, plus an API client."""

import os

# Point the app at a throwaway database before config/db are imported
os.environ["DATABASE_URL"] = "sqlite://"

from datetime import datetime

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import models  # noqa: F401  (registers tables on Base.metadata)
from db import Base, build_engine
from app.deps import get_db
from app.services.budgets import create_budget
from app.services.workspaces import create_workspace

DAY0 = datetime(2024, 5, 1)


@pytest.fixture
def engine():
    eng = build_engine("sqlite://", poolclass=StaticPool)
    Base.metadata.create_all(bind=eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def workspace(db):
    return create_workspace(db, "Personal", "personal")


@pytest.fixture
def other_workspace(db):
    return create_workspace(db, "Business", "business")


@pytest.fixture
def groceries(db, workspace):
    return create_budget(db, workspace.id, "Groceries", 200, "monthly")


@pytest.fixture
def dining(db, workspace):
    return create_budget(db, workspace.id, "Dining", 100, "monthly")


@pytest.fixture
def client(session_factory):
    from main import app

    def _override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
