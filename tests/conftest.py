"""Pytest configuration and shared fixtures."""

from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from wcards.app import create_app
from wcards.card_store import CardStore
from wcards.config import Settings
from wcards.database import Database
from wcards.dependencies import AppContext
from wcards.models import CardCreate


class FakeScheduler:
    """Records scheduled callbacks instead of starting timers."""

    class Handle:
        def __init__(self, delay, callback):
            self.delay = delay
            self.callback = callback
            self.cancelled = False

        def cancel(self):
            self.cancelled = True

    def __init__(self):
        self.handles = []

    def __call__(self, delay, callback):
        handle = self.Handle(delay, callback)
        self.handles.append(handle)
        return handle

    @property
    def last(self):
        return self.handles[-1]

    def fire(self, handle=None):
        """Run a scheduled callback the way an expired timer would."""
        handle = handle or self.last
        if not handle.cancelled:
            handle.callback()


@pytest.fixture
def test_settings(tmp_path):
    """Provide settings with every path inside a temporary directory."""
    settings = Settings()
    settings.LOG_DIR = str(tmp_path / "log")
    settings.DB_DIR = str(tmp_path / "db")
    settings.VOCAB_DIR = str(tmp_path / "vocabulary")
    settings.AUDIO_BUCKET = "test-bucket"
    settings.AWS_REGION = "us-east-1"
    return settings


@pytest.fixture
def database(test_settings):
    db = Database.from_settings(test_settings)
    db.init_db()
    return db


@pytest.fixture
def store(database):
    return CardStore(database)


@pytest.fixture
def make_card(store):
    """Factory fixture creating cards in the store with sensible defaults."""

    def _make(english_word="Hello", spanish_translations=("Hola",), note=None):
        return store.create(
            CardCreate(
                english_word=english_word,
                spanish_translations=list(spanish_translations),
                note=note,
            )
        )

    return _make


@pytest.fixture
def fake_scheduler():
    return FakeScheduler()


@pytest.fixture
def audio_cache():
    return MagicMock()


@pytest.fixture
def context(test_settings, database, store, audio_cache, fake_scheduler):
    return AppContext(
        settings=test_settings,
        database=database,
        store=store,
        audio_cache=audio_cache,
        scheduler=fake_scheduler,
    )


@pytest.fixture
def client(context):
    """HTTP client against an app wired to the temporary store.

    The lifespan (and with it vocabulary seeding) is not run.
    """
    return TestClient(create_app(context=context))
