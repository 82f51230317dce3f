import json
import logging
import sqlite3
import uuid
from datetime import datetime
from typing import List, Optional

from .database import Database
from .exceptions import CardNotFoundError, CardValidationError, DuplicateCardError
from .models import Card, CardCreate, CardUpdate
from .text_utils import normalize_string

logger = logging.getLogger(__name__)

_COLUMNS = (
    "id, english_word, spanish_translations, note, audio_url, "
    "audio_generated_at, created_at, updated_at"
)


def _row_to_card(row: sqlite3.Row) -> Card:
    return Card(
        id=row["id"],
        english_word=row["english_word"],
        spanish_translations=json.loads(row["spanish_translations"]),
        note=row["note"],
        audio_url=row["audio_url"],
        audio_generated_at=row["audio_generated_at"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


class CardStore:
    """CRUD access to the cards table.

    Uniqueness of the English word is enforced on its normalized form, so
    "Hello", " hello " and "HÉLLO" collide.
    """

    def __init__(self, database: Database):
        self.database = database

    def _fetch_one(self, query: str, params: tuple) -> Optional[Card]:
        conn = self.database.connect()
        try:
            row = conn.execute(query, params).fetchone()
        finally:
            conn.close()
        return _row_to_card(row) if row else None

    def _fetch_all(self, query: str, params: tuple = ()) -> List[Card]:
        conn = self.database.connect()
        try:
            rows = conn.execute(query, params).fetchall()
        finally:
            conn.close()
        return [_row_to_card(row) for row in rows]

    def find_by_english_word(self, english_word: str) -> Optional[Card]:
        return self._fetch_one(
            f"SELECT {_COLUMNS} FROM cards WHERE english_key = ?",
            (normalize_string(english_word),),
        )

    def create(self, data: CardCreate) -> Card:
        now = datetime.now().isoformat()
        card_id = str(uuid.uuid4())
        conn = self.database.connect()
        try:
            with conn:
                conn.execute(
                    "INSERT INTO cards (id, english_word, english_key, "
                    "spanish_translations, note, created_at, updated_at) "
                    "VALUES (?, ?, ?, ?, ?, ?, ?)",
                    (
                        card_id,
                        data.english_word,
                        normalize_string(data.english_word),
                        json.dumps(data.spanish_translations, ensure_ascii=False),
                        data.note,
                        now,
                        now,
                    ),
                )
        except sqlite3.IntegrityError:
            logger.info(f"Duplicate card rejected: {data.english_word}")
            raise DuplicateCardError(self.find_by_english_word(data.english_word))
        finally:
            conn.close()

        logger.info(
            f"Created card {card_id} ({data.english_word}, "
            f"{len(data.spanish_translations)} translation(s))"
        )
        return self.get(card_id)

    def get(self, card_id: str) -> Card:
        card = self._fetch_one(
            f"SELECT {_COLUMNS} FROM cards WHERE id = ?", (card_id,)
        )
        if card is None:
            raise CardNotFoundError(card_id)
        return card

    def update(self, card_id: str, data: CardUpdate) -> Card:
        changes = data.changes()
        if not changes:
            raise CardValidationError("No valid fields to update")

        assignments = []
        params = []
        if "english_word" in changes:
            assignments += ["english_word = ?", "english_key = ?"]
            params += [changes["english_word"], normalize_string(changes["english_word"])]
        if "spanish_translations" in changes:
            assignments.append("spanish_translations = ?")
            params.append(
                json.dumps(changes["spanish_translations"], ensure_ascii=False)
            )
        if "note" in changes:
            assignments.append("note = ?")
            params.append(changes["note"])
        assignments.append("updated_at = ?")
        params.append(datetime.now().isoformat())

        conn = self.database.connect()
        try:
            with conn:
                updated = conn.execute(
                    f"UPDATE cards SET {', '.join(assignments)} WHERE id = ?",
                    (*params, card_id),
                ).rowcount
        except sqlite3.IntegrityError:
            raise DuplicateCardError(
                self.find_by_english_word(changes["english_word"])
            )
        finally:
            conn.close()

        if updated == 0:
            raise CardNotFoundError(card_id)
        logger.info(f"Updated card {card_id}: {sorted(changes)}")
        return self.get(card_id)

    def delete(self, card_id: str) -> Card:
        card = self.get(card_id)
        conn = self.database.connect()
        try:
            with conn:
                conn.execute("DELETE FROM cards WHERE id = ?", (card_id,))
        finally:
            conn.close()
        logger.info(f"Deleted card {card_id} ({card.english_word})")
        return card

    def list(self) -> List[Card]:
        return self._fetch_all(
            f"SELECT {_COLUMNS} FROM cards ORDER BY created_at DESC, rowid DESC"
        )

    def count(self) -> int:
        conn = self.database.connect()
        try:
            return conn.execute("SELECT COUNT(*) FROM cards").fetchone()[0]
        finally:
            conn.close()

    def sample_random(self, n: int) -> List[Card]:
        """Return up to n distinct cards in random order."""
        if n <= 0:
            return []
        return self._fetch_all(
            f"SELECT {_COLUMNS} FROM cards ORDER BY RANDOM() LIMIT ?", (n,)
        )

    def set_audio_url(self, card_id: str, audio_url: str) -> Card:
        now = datetime.now().isoformat()
        conn = self.database.connect()
        try:
            with conn:
                updated = conn.execute(
                    "UPDATE cards SET audio_url = ?, audio_generated_at = ? "
                    "WHERE id = ?",
                    (audio_url, now, card_id),
                ).rowcount
        finally:
            conn.close()
        if updated == 0:
            raise CardNotFoundError(card_id)
        return self.get(card_id)
