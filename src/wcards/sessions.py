"""Learn-mode and test-mode session state.

Both modes are driven by discrete events so the same logic serves any
client: the HTTP routes in this package, or a test harness.
"""

import logging
import threading
import uuid
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Union

from .config import settings
from .exceptions import InvalidTransitionError, SessionError
from .models import Card, TestResult, TestScore, ValidationResult, ValidationStatus
from .scoring import calculate_score
from .validation import validate_translations

logger = logging.getLogger(__name__)

NO_CARDS_MESSAGE = "No cards available. Please create some cards first."

Scheduler = Callable[[float, Callable[[], None]], Any]


def timer_scheduler(delay: float, callback: Callable[[], None]) -> threading.Timer:
    """Run callback once after delay seconds; the returned timer can be cancelled."""
    timer = threading.Timer(delay, callback)
    timer.daemon = True
    timer.start()
    return timer


# --- Learn mode ---
class LearnState(str, Enum):
    LOADING = "loading"
    ERROR = "error"
    QUESTION = "question"
    FEEDBACK = "feedback"
    COMPLETED = "completed"


class LearningSession:
    """Self-paced practice over a deck of cards.

    A fully correct answer schedules an automatic move to the next card
    after ``auto_advance_delay`` seconds. Any manual navigation cancels it.
    """

    def __init__(
        self,
        auto_advance_delay: float = settings.AUTO_ADVANCE_DELAY,
        scheduler: Scheduler = timer_scheduler,
    ):
        self.auto_advance_delay = auto_advance_delay
        self.scheduler = scheduler
        self.state = LearnState.LOADING
        self.cards: List[Card] = []
        self.current_index = 0
        self.user_answer = ""
        self.validation_result: Optional[ValidationResult] = None
        self.error = ""
        self.created_at = datetime.now()
        self._pending = None
        self._generation = 0
        self._lock = threading.RLock()

    @property
    def current_card(self) -> Optional[Card]:
        if 0 <= self.current_index < len(self.cards):
            return self.cards[self.current_index]
        return None

    @property
    def is_last_card(self) -> bool:
        return self.current_index == len(self.cards) - 1

    def _require(self, event: str, *allowed: LearnState):
        if self.state not in allowed:
            raise InvalidTransitionError(self.state.value, event)

    def _cancel_pending(self):
        self._generation += 1
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None

    def _move_to(self, index: int):
        self._cancel_pending()
        self.current_index = index
        self.user_answer = ""
        self.validation_result = None
        self.state = LearnState.QUESTION

    # --- Events ---
    def cards_loaded(self, cards: List[Card]):
        with self._lock:
            self._require("cards_loaded", LearnState.LOADING)
            if not cards:
                self.error = NO_CARDS_MESSAGE
                self.state = LearnState.ERROR
                return
            self.cards = list(cards)
            self._move_to(0)

    def load_failed(self, message: str):
        with self._lock:
            self._require("load_failed", LearnState.LOADING)
            self.error = message or "Failed to load cards"
            self.state = LearnState.ERROR

    def check_submitted(self, answer: str) -> ValidationResult:
        with self._lock:
            self._require("check_submitted", LearnState.QUESTION)
            if not answer.strip():
                raise SessionError("Answer is required")

            result = validate_translations(
                answer, self.current_card.spanish_translations
            )
            self.user_answer = answer
            self.validation_result = result

            if self.is_last_card:
                self.state = LearnState.COMPLETED
            else:
                self.state = LearnState.FEEDBACK
                if result.status == ValidationStatus.ALL:
                    self._schedule_auto_advance()
            return result

    def next_requested(self):
        with self._lock:
            self._require("next_requested", LearnState.QUESTION, LearnState.FEEDBACK)
            if self.is_last_card:
                raise InvalidTransitionError(self.state.value, "next_requested")
            self._move_to(self.current_index + 1)

    def skip_requested(self):
        with self._lock:
            self._require("skip_requested", LearnState.QUESTION)
            if self.is_last_card:
                raise InvalidTransitionError(self.state.value, "skip_requested")
            self._move_to(self.current_index + 1)

    def previous_requested(self):
        with self._lock:
            self._require(
                "previous_requested",
                LearnState.QUESTION,
                LearnState.FEEDBACK,
                LearnState.COMPLETED,
            )
            if self.current_index == 0:
                raise InvalidTransitionError(self.state.value, "previous_requested")
            self._move_to(self.current_index - 1)

    # --- Auto-advance ---
    def _schedule_auto_advance(self):
        self._cancel_pending()
        generation = self._generation

        def advance():
            with self._lock:
                if generation != self._generation or self.state != LearnState.FEEDBACK:
                    return
                self._pending = None
                logger.debug(f"Auto-advancing from card {self.current_index}")
                self._move_to(self.current_index + 1)

        handle = self.scheduler(self.auto_advance_delay, advance)
        if generation == self._generation:
            self._pending = handle

    @property
    def auto_advance_pending(self) -> bool:
        return self._pending is not None

    def close(self):
        with self._lock:
            self._cancel_pending()

    def snapshot(self) -> Dict[str, Any]:
        with self._lock:
            card = self.current_card
            reveal = self.state in (LearnState.FEEDBACK, LearnState.COMPLETED)
            card_data = None
            if card is not None:
                card_data = {
                    "id": card.id,
                    "english_word": card.english_word,
                    "note": card.note,
                    "spanish_translations": card.spanish_translations if reveal else None,
                }
            result = None
            if self.validation_result is not None:
                result = self.validation_result.model_dump(mode="json", by_alias=True)
            return {
                "state": self.state.value,
                "current_index": self.current_index,
                "total_cards": len(self.cards),
                "card": card_data,
                "user_answer": self.user_answer,
                "validation_result": result,
                "auto_advance_pending": self.auto_advance_pending,
                "error": self.error,
            }


# --- Test mode ---
class TestSession:
    """A fixed deck of questions answered in order, scored at the end."""

    __test__ = False

    def __init__(self, cards: List[Card], pass_threshold: int = settings.PASS_THRESHOLD):
        if not cards:
            raise SessionError(NO_CARDS_MESSAGE)
        self.cards = list(cards)
        self.pass_threshold = pass_threshold
        self.results: List[TestResult] = []
        self.created_at = datetime.now()
        self._lock = threading.Lock()

    @property
    def total_questions(self) -> int:
        return len(self.cards)

    @property
    def is_complete(self) -> bool:
        return len(self.results) == len(self.cards)

    @property
    def progress(self) -> float:
        return len(self.results) / len(self.cards) * 100

    def question(self, index: int) -> Dict[str, Any]:
        if not (0 <= index < self.total_questions):
            raise SessionError("Index error")
        card = self.cards[index]
        record = self.results[index] if index < len(self.results) else None
        return {
            "card_id": card.id,
            "english_word": card.english_word,
            "current_index": index,
            "total_questions": self.total_questions,
            "answer_record": record.model_dump(mode="json", by_alias=True) if record else None,
        }

    def submit(self, index: int, answer: str) -> TestResult:
        with self._lock:
            if not (0 <= index < self.total_questions):
                raise SessionError("Invalid index")
            if index < len(self.results):
                raise SessionError("Already answered")
            if index > len(self.results):
                raise SessionError("Answer the previous questions first")
            if not answer.strip():
                raise SessionError("Answer is required")

            card = self.cards[index]
            details = validate_translations(answer, card.spanish_translations)
            result = TestResult(
                card_id=card.id,
                english_word=card.english_word,
                spanish_translations=card.spanish_translations,
                user_answer=answer.strip(),
                user_answers=details.user_answers,
                is_correct=details.is_valid,
                validation_details=details,
            )
            self.results.append(result)
            return result

    def score(self) -> TestScore:
        return calculate_score(self.results, self.pass_threshold)


# --- Registry ---
Session = Union[LearningSession, TestSession]


class SessionManager:
    """Sessions keyed by cookie id, dropped after a period of inactivity."""

    def __init__(self, timeout_minutes: int = settings.SESSION_TIMEOUT_MINUTES):
        self.timeout = timedelta(minutes=timeout_minutes)
        self._sessions: Dict[str, Session] = {}
        self._lock = threading.Lock()

    def add(self, session: Session) -> str:
        session_id = str(uuid.uuid4())
        with self._lock:
            self._sessions[session_id] = session
        logger.info(f"New session: {session_id} [{type(session).__name__}]")
        return session_id

    def get(self, session_id: Optional[str], kind: type) -> Optional[Session]:
        if not session_id:
            return None
        with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                return None
            if datetime.now() - session.created_at > self.timeout:
                self._discard(session_id)
                logger.info(f"Session expired: {session_id}")
                return None
        return session if isinstance(session, kind) else None

    def remove(self, session_id: Optional[str]):
        with self._lock:
            self._discard(session_id)

    def _discard(self, session_id: Optional[str]):
        session = self._sessions.pop(session_id, None)
        if isinstance(session, LearningSession):
            session.close()

    def __len__(self) -> int:
        return len(self._sessions)
