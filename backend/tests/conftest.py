# ==============================================================================
# Shared Test Fixtures
# ==============================================================================
"""
Pytest fixtures shared across all test modules.

Provides:
- An in-memory SQLite database with the links and clicks tables
- Helpers to seed links and click events
- A TestClient with the database, settings and clock overridden
"""

import os

# Keep the application's own engine off the filesystem
os.environ.setdefault("DATABASE_URL", "sqlite://")

from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from popular_clicks.api.reports import get_now
from popular_clicks.config import Settings, get_settings
from popular_clicks.database import Base, get_db
from popular_clicks.main import app
from popular_clicks.models import Click, Link

# Monday, 6pm
NOW = datetime(2024, 6, 10, 18, 0, 0)


@pytest.fixture()
def engine():
    """A fresh in-memory database shared by every connection of one test."""
    test_engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool
    )
    Base.metadata.create_all(bind=test_engine)
    yield test_engine
    Base.metadata.drop_all(bind=test_engine)
    test_engine.dispose()


@pytest.fixture()
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture()
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture()
def add_link(db):
    """Create a link: add_link("abc", "https://example.com/abc", title=...)."""
    def _add_link(short_code, original_url=None, title=None):
        link = Link(
            short_code=short_code,
            original_url=original_url or f"https://example.com/{short_code}",
            title=title or f"Page {short_code}"
        )
        db.add(link)
        db.commit()
        return link
    return _add_link


@pytest.fixture()
def add_clicks(db):
    """Record clicks for a short code: add_clicks("abc", t1, t2, ...)."""
    def _add_clicks(short_code, *times, ip_address="203.0.113.7", country_code=None, referer=None):
        for clicked_at in times:
            db.add(Click(
                short_code=short_code,
                clicked_at=clicked_at,
                ip_address=ip_address,
                country_code=country_code,
                referer=referer
            ))
        db.commit()
    return _add_clicks


@pytest.fixture()
def test_settings():
    return Settings(DATABASE_URL="sqlite://", BASE_URL="https://sho.rt")


@pytest.fixture()
def client(session_factory, test_settings):
    """TestClient whose clock is frozen at NOW (UTC, no offset)."""
    def _get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_settings] = lambda: test_settings
    app.dependency_overrides[get_now] = lambda: NOW.replace(tzinfo=timezone.utc)

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
