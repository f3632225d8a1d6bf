"""
Test configuration and fixtures for the shortlink service.
Every test gets its own SQLite file, so tests never share rows.
"""

from datetime import datetime
from typing import List, Tuple

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import update

from shortlink_app.app_factory import create_app
from shortlink_app.config import Settings
from shortlink_app.database.connection import Base, create_db_engine, create_session_factory
from shortlink_app.models.link import Link
from shortlink_app.services.link_service import LinkService
from shortlink_app.services.short_code_strategies import UrlSafeShortCodeStrategy
from shortlink_app.storage.strategies import SQLAlchemyLinkStore

BASE_URL = "http://sho.rt"


class RecordingClicks:
    """Stands in for ClickRecorder; remembers every record() call."""

    def __init__(self):
        self.calls: List[Tuple[int, datetime]] = []

    def record(self, link_id: int, occurred_at: datetime) -> None:
        self.calls.append((link_id, occurred_at))


@pytest.fixture(scope="function")
def test_settings(tmp_path):
    return Settings(
        _env_file=None,
        database_url=f"sqlite:///{tmp_path / 'test.db'}",
        base_url=BASE_URL,
        queue_backend="memory",
        queue_block_ms=50,
        click_worker_in_process=True,
    )


@pytest.fixture(scope="function")
def session_factory(test_settings):
    """Session factory on the test database (tables created)."""
    engine = create_db_engine(test_settings.database_url)
    Base.metadata.create_all(bind=engine)
    try:
        yield create_session_factory(engine)
    finally:
        engine.dispose()


@pytest.fixture(scope="function")
def store(session_factory):
    return SQLAlchemyLinkStore(session_factory)


@pytest.fixture(scope="function")
def clicks():
    return RecordingClicks()


@pytest.fixture(scope="function")
def service(store, clicks):
    return LinkService(
        store=store,
        short_code_strategy=UrlSafeShortCodeStrategy(length=8),
        clicks=clicks,
        base_url=BASE_URL
    )


@pytest.fixture(scope="function")
def client(test_settings, session_factory):
    """
    Test client running the full app lifespan (store, queue, click worker).
    Depends on session_factory so tests can edit rows behind the app's back.
    """
    app = create_app(test_settings)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture(scope="function")
def set_link_fields(session_factory):
    """Update a links row directly, like an external admin process would."""
    def _set(short_code: str, **values):
        with session_factory() as session:
            session.execute(update(Link).where(Link.short_code == short_code).values(**values))
            session.commit()
    return _set
