import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Body, Depends, Form, Response
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from .audio import PronunciationCache
from .card_store import CardStore
from .dependencies import (
    AppContext,
    get_audio_cache,
    get_card_store,
    get_context,
    get_session_id,
    get_session_manager,
)
from .exceptions import (
    AudioGenerationError,
    CardNotFoundError,
    CardValidationError,
    DuplicateCardError,
    InvalidTransitionError,
    SessionError,
)
from .models import (
    AudioResponse,
    Card,
    CardCreate,
    CardUpdate,
    CheckRequest,
    TestResult,
    ValidateRequest,
    ValidationResult,
)
from .sessions import (
    NO_CARDS_MESSAGE,
    LearningSession,
    SessionManager,
    TestSession,
)
from .validation import validate_translations

logger = logging.getLogger(__name__)

router = APIRouter()


def error_response(message: str, status_code: int, **extra: Any) -> JSONResponse:
    return JSONResponse({"error": message, **extra}, status_code=status_code)


def _first_error(error: ValidationError) -> str:
    message = error.errors()[0]["msg"]
    # pydantic prefixes messages raised from validators
    return message.removeprefix("Value error, ")


# --- Cards ---
@router.get("/api/cards", response_model=List[Card])
async def list_cards(store: CardStore = Depends(get_card_store)):
    return store.list()


@router.post("/api/cards", status_code=201, response_model=Card)
async def create_card(
    payload: Dict[str, Any] = Body(...), store: CardStore = Depends(get_card_store)
):
    try:
        data = CardCreate.model_validate(payload)
    except ValidationError as e:
        return error_response(_first_error(e), 400)

    try:
        return store.create(data)
    except DuplicateCardError as e:
        existing = e.existing_card.model_dump(mode="json") if e.existing_card else None
        return error_response(str(e), 409, existingCard=existing)


@router.get("/api/cards/count")
async def count_cards(store: CardStore = Depends(get_card_store)):
    return {"count": store.count()}


@router.get("/api/cards/random", response_model=List[Card])
async def random_cards(
    store: CardStore = Depends(get_card_store),
    context: AppContext = Depends(get_context),
):
    if store.count() == 0:
        return error_response(NO_CARDS_MESSAGE, 404)
    return store.sample_random(context.settings.TEST_SIZE)


@router.get("/api/cards/{card_id}", response_model=Card)
async def get_card(card_id: str, store: CardStore = Depends(get_card_store)):
    try:
        return store.get(card_id)
    except CardNotFoundError:
        return error_response("Card not found", 404)


@router.put("/api/cards/{card_id}", response_model=Card)
async def update_card(
    card_id: str,
    payload: Dict[str, Any] = Body(...),
    store: CardStore = Depends(get_card_store),
):
    try:
        data = CardUpdate.model_validate(payload)
    except ValidationError as e:
        return error_response(_first_error(e), 400)

    try:
        return store.update(card_id, data)
    except CardValidationError as e:
        return error_response(str(e), 400)
    except CardNotFoundError:
        return error_response("Card not found", 404)
    except DuplicateCardError as e:
        return error_response(str(e), 409)


@router.delete("/api/cards/{card_id}", response_model=Card)
async def delete_card(card_id: str, store: CardStore = Depends(get_card_store)):
    try:
        return store.delete(card_id)
    except CardNotFoundError:
        return error_response("Card not found", 404)


@router.get("/api/cards/{card_id}/audio", response_model=AudioResponse)
def get_card_audio(
    card_id: str, audio_cache: PronunciationCache = Depends(get_audio_cache)
):
    # sync route: boto3 calls block, FastAPI runs this in its threadpool
    try:
        return audio_cache.get_audio(card_id)
    except CardNotFoundError:
        return error_response("Card not found", 404)
    except AudioGenerationError as e:
        logger.error(f"Audio error for card {card_id}: {e}")
        return error_response("Failed to generate audio", 500, details=str(e))


# --- Answer checking ---
@router.post("/api/validate", response_model=ValidationResult)
async def validate_answer(payload: ValidateRequest):
    if not payload.user_input.strip():
        return error_response("Answer is required", 400)
    return validate_translations(payload.user_input, payload.valid_translations)


@router.post("/api/cards/{card_id}/check", response_model=ValidationResult)
async def check_card_answer(
    card_id: str, payload: CheckRequest, store: CardStore = Depends(get_card_store)
):
    if not payload.user_input.strip():
        return error_response("Answer is required", 400)
    try:
        card = store.get(card_id)
    except CardNotFoundError:
        return error_response("Card not found", 404)
    return validate_translations(payload.user_input, card.spanish_translations)


# --- Learn mode ---
def _with_session_cookie(
    content: Dict[str, Any], session_id: str, context: AppContext
) -> JSONResponse:
    response = JSONResponse(content)
    response.set_cookie(
        key=context.settings.SESSION_COOKIE_NAME,
        value=session_id,
        httponly=True,
        samesite="Lax",
    )
    return response


@router.post("/learn/start")
async def start_learning_session(context: AppContext = Depends(get_context)):
    session = LearningSession(
        auto_advance_delay=context.settings.AUTO_ADVANCE_DELAY,
        scheduler=context.scheduler,
    )
    try:
        session.cards_loaded(context.store.list())
    except Exception as e:
        logger.error(f"Failed to load cards for learning session: {e}")
        session.load_failed("Failed to load cards")

    session_id = context.sessions.add(session)
    return _with_session_cookie(session.snapshot(), session_id, context)


def _learning_session(
    session_id: Optional[str], sessions: SessionManager
) -> Optional[LearningSession]:
    return sessions.get(session_id, LearningSession)


@router.get("/api/learn/state")
async def get_learning_state(
    session_id: Optional[str] = Depends(get_session_id),
    sessions: SessionManager = Depends(get_session_manager),
):
    session = _learning_session(session_id, sessions)
    if not session:
        return error_response("Session invalid", 401)
    return session.snapshot()


@router.post("/api/learn/check")
async def learning_check(
    answer: str = Form(""),
    session_id: Optional[str] = Depends(get_session_id),
    sessions: SessionManager = Depends(get_session_manager),
):
    return _learning_event(session_id, sessions, "check", answer)


@router.post("/api/learn/next")
async def learning_next(
    session_id: Optional[str] = Depends(get_session_id),
    sessions: SessionManager = Depends(get_session_manager),
):
    return _learning_event(session_id, sessions, "next")


@router.post("/api/learn/previous")
async def learning_previous(
    session_id: Optional[str] = Depends(get_session_id),
    sessions: SessionManager = Depends(get_session_manager),
):
    return _learning_event(session_id, sessions, "previous")


@router.post("/api/learn/skip")
async def learning_skip(
    session_id: Optional[str] = Depends(get_session_id),
    sessions: SessionManager = Depends(get_session_manager),
):
    return _learning_event(session_id, sessions, "skip")


def _learning_event(
    session_id: Optional[str],
    sessions: SessionManager,
    event: str,
    answer: str = "",
):
    session = _learning_session(session_id, sessions)
    if not session:
        return error_response("Session invalid", 401)
    try:
        if event == "check":
            session.check_submitted(answer)
        elif event == "next":
            session.next_requested()
        elif event == "previous":
            session.previous_requested()
        else:
            session.skip_requested()
    except InvalidTransitionError as e:
        return error_response(str(e), 409)
    except SessionError as e:
        return error_response(str(e), 400)
    return session.snapshot()


# --- Test mode ---
@router.post("/test/start")
async def start_test_session(context: AppContext = Depends(get_context)):
    cards = context.store.sample_random(context.settings.TEST_SIZE)
    if not cards:
        return error_response(NO_CARDS_MESSAGE, 404)

    session = TestSession(cards, pass_threshold=context.settings.PASS_THRESHOLD)
    session_id = context.sessions.add(session)
    return _with_session_cookie(session.question(0), session_id, context)


@router.get("/api/test/result")
async def get_test_result(
    session_id: Optional[str] = Depends(get_session_id),
    sessions: SessionManager = Depends(get_session_manager),
):
    session = sessions.get(session_id, TestSession)
    if not session:
        return error_response("Session invalid", 401)
    if not session.is_complete:
        return error_response(
            "Test not complete", 400, next_index=len(session.results)
        )

    return {
        "score": session.score().model_dump(),
        "results": [result.model_dump(by_alias=True) for result in session.results],
    }


@router.get("/api/test/{index}")
async def get_test_question(
    index: int,
    session_id: Optional[str] = Depends(get_session_id),
    sessions: SessionManager = Depends(get_session_manager),
):
    session = sessions.get(session_id, TestSession)
    if not session:
        return error_response("Session invalid", 401)
    try:
        return session.question(index)
    except SessionError as e:
        return error_response(str(e), 404)


@router.post("/api/test/submit", response_model=TestResult)
async def submit_test_answer(
    answer: str = Form(""),
    current_index: int = Form(...),
    session_id: Optional[str] = Depends(get_session_id),
    sessions: SessionManager = Depends(get_session_manager),
):
    session = sessions.get(session_id, TestSession)
    if not session:
        return error_response("Session invalid", 401)
    try:
        return session.submit(current_index, answer)
    except SessionError as e:
        return error_response(str(e), 400)


@router.post("/api/reset")
async def reset_session(
    response: Response,
    session_id: Optional[str] = Depends(get_session_id),
    context: AppContext = Depends(get_context),
):
    context.sessions.remove(session_id)
    response.delete_cookie(context.settings.SESSION_COOKIE_NAME)
    return {"status": "success"}
