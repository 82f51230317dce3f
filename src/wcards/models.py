from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from .text_utils import validate_length

MAX_WORD_LENGTH = 100
MAX_NOTE_LENGTH = 500
MAX_TRANSLATIONS = 10


# --- Field checks ---
def _check_english_word(value: str) -> str:
    valid, error = validate_length(value, MAX_WORD_LENGTH, "English word")
    if not valid:
        raise ValueError(error)
    return value.strip()


def _check_translations(values: List[str]) -> List[str]:
    translations = [t.strip() for t in values if t and t.strip()]
    if not translations:
        raise ValueError("At least one Spanish translation is required")
    if len(translations) > MAX_TRANSLATIONS:
        raise ValueError(f"A card accepts at most {MAX_TRANSLATIONS} translations")
    for translation in translations:
        valid, error = validate_length(
            translation, MAX_WORD_LENGTH, "Spanish translation"
        )
        if not valid:
            raise ValueError(error)
    return translations


def _check_note(value: Optional[str]) -> Optional[str]:
    if value is None or not value.strip():
        return None
    valid, error = validate_length(value, MAX_NOTE_LENGTH, "Note")
    if not valid:
        raise ValueError(error)
    return value.strip()


# --- Cards ---
class Card(BaseModel):
    id: str
    english_word: str
    spanish_translations: List[str]
    note: Optional[str] = None
    audio_url: Optional[str] = None
    audio_generated_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime


class CardCreate(BaseModel):
    english_word: str
    spanish_translations: List[str]
    note: Optional[str] = None

    @field_validator("english_word")
    @classmethod
    def check_english_word(cls, value: str) -> str:
        return _check_english_word(value)

    @field_validator("spanish_translations")
    @classmethod
    def check_translations(cls, value: List[str]) -> List[str]:
        return _check_translations(value)

    @field_validator("note")
    @classmethod
    def check_note(cls, value: Optional[str]) -> Optional[str]:
        return _check_note(value)


class CardUpdate(BaseModel):
    """Partial update; only fields present in the request are applied."""

    english_word: Optional[str] = None
    spanish_translations: Optional[List[str]] = None
    note: Optional[str] = None

    @field_validator("english_word")
    @classmethod
    def check_english_word(cls, value: Optional[str]) -> str:
        if value is None:
            raise ValueError("English word must be a string")
        return _check_english_word(value)

    @field_validator("spanish_translations")
    @classmethod
    def check_translations(cls, value: Optional[List[str]]) -> List[str]:
        if value is None:
            raise ValueError("Spanish translations must be a list")
        return _check_translations(value)

    @field_validator("note")
    @classmethod
    def check_note(cls, value: Optional[str]) -> Optional[str]:
        return _check_note(value)

    def changes(self) -> dict:
        return {name: getattr(self, name) for name in self.model_fields_set}


# --- Answer checking ---
class ValidationStatus(str, Enum):
    ALL = "all"
    PARTIAL = "partial"
    NONE = "none"


class ValidationResult(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    is_valid: bool
    correct_count: int
    total_provided: int
    total_available: int
    user_answers: List[str]
    correct_answers: List[str]
    missed_answers: List[str]
    status: ValidationStatus


class TestResult(BaseModel):
    __test__ = False
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    card_id: str
    english_word: str = Field(alias="english_word")
    spanish_translations: List[str] = Field(alias="spanish_translations")
    user_answer: str
    user_answers: List[str]
    is_correct: bool
    validation_details: ValidationResult


class TestScore(BaseModel):
    __test__ = False

    total: int
    correct: int
    incorrect: int
    percentage: int
    passed: bool


# --- Requests ---
class ValidateRequest(BaseModel):
    user_input: str
    valid_translations: List[str]


class CheckRequest(BaseModel):
    user_input: str


# --- Audio ---
class AudioResponse(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    audio_url: str
    word: str
    cached: bool
    message: str
