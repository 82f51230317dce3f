from typing import Optional

from fastapi import Cookie, Request

from .audio import PronunciationCache
from .card_store import CardStore
from .config import Settings, settings as default_settings
from .database import Database
from .sessions import Scheduler, SessionManager, timer_scheduler


class AppContext:
    """Collaborators shared by the routes of one application instance.

    Built once by ``create_app`` and stored on ``app.state``; nothing in
    the package reaches for module-level clients.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        database: Optional[Database] = None,
        store: Optional[CardStore] = None,
        audio_cache: Optional[PronunciationCache] = None,
        sessions: Optional[SessionManager] = None,
        scheduler: Scheduler = timer_scheduler,
    ):
        self.settings = settings or default_settings
        self.database = database or Database.from_settings(self.settings)
        self.store = store or CardStore(self.database)
        self.sessions = sessions or SessionManager(
            self.settings.SESSION_TIMEOUT_MINUTES
        )
        self.scheduler = scheduler
        self._audio_cache = audio_cache

    @property
    def audio_cache(self) -> PronunciationCache:
        # AWS clients are only built once audio is first requested
        if self._audio_cache is None:
            self._audio_cache = PronunciationCache.from_settings(
                self.store, self.settings
            )
        return self._audio_cache


# --- Dependencies ---
def get_context(request: Request) -> AppContext:
    return request.app.state.context


def get_card_store(request: Request) -> CardStore:
    return get_context(request).store


def get_audio_cache(request: Request) -> PronunciationCache:
    return get_context(request).audio_cache


def get_session_manager(request: Request) -> SessionManager:
    return get_context(request).sessions


def get_session_id(
    session_id: Optional[str] = Cookie(
        None, alias=default_settings.SESSION_COOKIE_NAME
    )
) -> Optional[str]:
    return session_id
