"""Tests for app factory, logging setup and the SQLite log handler."""

import logging
import os

from fastapi.testclient import TestClient

from wcards.app import create_app
from wcards.log_handler import SQLiteHandler
from wcards.vocabulary import SAMPLE_DECK


class TestCreateApp:
    def test_creates_tables_and_log_file(self, test_settings):
        create_app(test_settings)

        assert os.path.exists(os.path.join(test_settings.DB_DIR, test_settings.DB_FILE))
        assert os.path.exists(os.path.join(test_settings.LOG_DIR, test_settings.LOG_FILE))

    def test_startup_seeds_empty_store(self, test_settings):
        app = create_app(test_settings)

        with TestClient(app) as client:
            count = client.get("/api/cards/count").json()["count"]

        assert count == len(SAMPLE_DECK)

    def test_startup_keeps_existing_cards(self, context, make_card):
        make_card()
        app = create_app(context=context)

        with TestClient(app) as client:
            assert client.get("/api/cards/count").json() == {"count": 1}

    def test_handlers_are_replaced_on_rebuild(self, test_settings):
        create_app(test_settings)
        create_app(test_settings)

        handlers = logging.getLogger("wcards").handlers
        assert sum(isinstance(h, SQLiteHandler) for h in handlers) == 1


class TestSQLiteHandler:
    def test_persists_warnings(self, database):
        logger = logging.getLogger("wcards.test_handler")
        handler = SQLiteHandler(database)
        logger.addHandler(handler)
        try:
            logger.warning("Audio file missing")
            logger.info("not stored")
        finally:
            logger.removeHandler(handler)

        conn = database.connect()
        rows = conn.execute("SELECT level, message FROM logs").fetchall()
        conn.close()

        assert [(row["level"], row["message"]) for row in rows] == [
            ("WARNING", "Audio file missing")
        ]
