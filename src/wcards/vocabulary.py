import glob
import logging
import os
from typing import Dict, List

import pandas as pd
from pydantic import ValidationError

from .card_store import CardStore
from .exceptions import DuplicateCardError
from .models import CardCreate

logger = logging.getLogger(__name__)

TRANSLATION_SEPARATOR = "|"
REQUIRED_COLUMNS = ("english_word", "spanish_translations")

SAMPLE_DECK: List[Dict[str, str]] = [
    {"english_word": "Hello", "spanish_translations": "Hola", "note": "Common greeting"},
    {"english_word": "Goodbye", "spanish_translations": "Adiós|Chao", "note": "Farewell greeting"},
    {"english_word": "Thank you", "spanish_translations": "Gracias", "note": "Expression of gratitude"},
    {"english_word": "Please", "spanish_translations": "Por favor", "note": "Polite request"},
    {"english_word": "Yes", "spanish_translations": "Sí", "note": "Affirmative response"},
    {"english_word": "Water", "spanish_translations": "Agua", "note": "Essential beverage"},
    {"english_word": "Food", "spanish_translations": "Comida|Alimento", "note": "General term for nourishment"},
    {"english_word": "Friend", "spanish_translations": "Amigo|Amiga", "note": "Amigo for male, amiga for female"},
    {"english_word": "Family", "spanish_translations": "Familia", "note": "Relatives and close ones"},
    {"english_word": "House", "spanish_translations": "Casa|Hogar", "note": "Place of residence"},
    {"english_word": "Sprinkle", "spanish_translations": "Esparcir|Rociar|Salpicar", "note": ""},
]


class VocabularyLoader:
    """Seeds the card store from CSV files.

    Each file needs an ``english_word`` and a ``spanish_translations``
    column, the latter holding one or more translations separated by
    ``|``. A ``note`` column is optional.
    """

    def __init__(self, directory: str, store: CardStore):
        self.directory = directory
        self.store = store

    def read_records(self) -> List[Dict[str, str]]:
        records: List[Dict[str, str]] = []
        if not os.path.exists(self.directory):
            logger.warning(f"Vocabulary directory {self.directory} does not exist.")
            return records

        csv_files = sorted(glob.glob(os.path.join(self.directory, "*.csv")))
        for file_path in csv_files:
            file_name = os.path.splitext(os.path.basename(file_path))[0]
            try:
                df = pd.read_csv(file_path, encoding="utf-8", dtype=str)
            except Exception as e:
                logger.error(f"Failed to load {file_path}: {e}")
                continue
            if not all(column in df.columns for column in REQUIRED_COLUMNS):
                logger.error(f"Skipping {file_name}: Missing columns.")
                continue
            df = df.fillna("")
            records.extend(df.to_dict("records"))
            logger.info(f"Read {len(df)} rows from {file_name}")
        return records

    def import_records(self, records: List[Dict[str, str]]) -> int:
        created = 0
        for record in records:
            try:
                data = CardCreate(
                    english_word=record["english_word"],
                    spanish_translations=record["spanish_translations"].split(
                        TRANSLATION_SEPARATOR
                    ),
                    note=record.get("note") or None,
                )
            except ValidationError as e:
                logger.warning(
                    f"Skipping row {record.get('english_word')!r}: "
                    f"{e.errors()[0]['msg']}"
                )
                continue
            try:
                self.store.create(data)
            except DuplicateCardError:
                logger.info(f"Skipping duplicate word {data.english_word!r}")
                continue
            created += 1
        return created

    def seed_if_empty(self) -> int:
        """Fill an empty store from the CSV files, or the sample deck."""
        if self.store.count() > 0:
            return 0
        records = self.read_records()
        if not records:
            logger.warning("No CSV vocabulary found. Loading sample deck.")
            records = SAMPLE_DECK
        created = self.import_records(records)
        logger.info(f"Seeded {created} cards")
        return created
