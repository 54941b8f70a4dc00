# tests/conftest.py
"""Shared fixtures: an in-memory SQLite session, a temp storage root and a TestClient."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import app.models  # noqa: F401  registers every table
from app.config import settings
from app.database import Base, get_db
from app.main import app
from app.services.storage import LocalObjectStorage, get_storage


@pytest.fixture
def db_session():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


@pytest.fixture
def storage(tmp_path):
    store = LocalObjectStorage(str(tmp_path / "storage"), "http://files.test/storage")
    store.ensure_buckets(settings.BUCKETS)
    return store


@pytest.fixture
def client(db_session, storage):
    def _db():
        yield db_session

    app.dependency_overrides[get_db] = _db
    app.dependency_overrides[get_storage] = lambda: storage
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
