import os
import sqlite3
from typing import Optional

from .config import Settings, settings as default_settings


class Database:
    """Connection factory for the SQLite file holding cards and logs."""

    def __init__(self, path: str):
        self.path = path

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "Database":
        settings = settings or default_settings
        return cls(os.path.join(settings.DB_DIR, settings.DB_FILE))

    def connect(self) -> sqlite3.Connection:
        """Establishes a connection to the SQLite database."""
        conn = sqlite3.connect(self.path)
        conn.row_factory = sqlite3.Row
        return conn

    def create_card_table(self):
        conn = self.connect()
        with conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS cards (
                    id TEXT PRIMARY KEY,
                    english_word TEXT NOT NULL,
                    english_key TEXT NOT NULL UNIQUE,
                    spanish_translations TEXT NOT NULL,
                    note TEXT,
                    audio_url TEXT,
                    audio_generated_at TEXT,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                );
            """
            )
        conn.close()

    def create_log_table(self):
        """Creates the log table if it doesn't exist."""
        conn = self.connect()
        with conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS logs (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    timestamp DATETIME DEFAULT CURRENT_TIMESTAMP,
                    level TEXT,
                    message TEXT
                );
            """
            )
        conn.close()

    def init_db(self):
        """Initializes the database and creates necessary tables."""
        directory = os.path.dirname(self.path)
        if directory and not os.path.exists(directory):
            os.makedirs(directory)
        self.create_card_table()
        self.create_log_table()
