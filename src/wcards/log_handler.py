import logging

from .database import Database


class SQLiteHandler(logging.Handler):
    """
    A logging handler that writes logs to the application's SQLite database.
    """

    def __init__(self, database: Database, level=logging.WARNING):
        super().__init__(level)
        self.database = database

    def emit(self, record):
        try:
            conn = self.database.connect()
            with conn:
                conn.execute(
                    "INSERT INTO logs (level, message) VALUES (?, ?)",
                    (record.levelname, self.format(record)),
                )
            conn.close()
        except Exception:
            self.handleError(record)
