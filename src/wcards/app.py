import logging
import os
from contextlib import asynccontextmanager
from logging.handlers import RotatingFileHandler
from typing import Optional

from fastapi import FastAPI

from .config import Settings, settings as default_settings
from .dependencies import AppContext
from .log_handler import SQLiteHandler
from .router import router
from .vocabulary import VocabularyLoader

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"


# --- Logging Setup ---
def setup_logging(context: AppContext):
    settings = context.settings
    logger = logging.getLogger("wcards")
    logger.setLevel(logging.DEBUG if settings.DEBUG else logging.INFO)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    if not os.path.exists(settings.LOG_DIR):
        os.makedirs(settings.LOG_DIR, exist_ok=True)
    log_path = os.path.join(settings.LOG_DIR, settings.LOG_FILE)
    file_handler = RotatingFileHandler(log_path, maxBytes=5_000_000, backupCount=3)
    file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(file_handler)

    db_handler = SQLiteHandler(context.database)
    db_handler.setFormatter(logging.Formatter("%(name)s - %(message)s"))
    logger.addHandler(db_handler)
    # Also configure root logger to see logs from other libraries
    logging.basicConfig(level=logging.INFO, format=LOG_FORMAT)


# --- Lifecycle ---
@asynccontextmanager
async def lifespan(app: FastAPI):
    context: AppContext = app.state.context
    VocabularyLoader(context.settings.VOCAB_DIR, context.store).seed_if_empty()
    yield


# --- App Factory ---
def create_app(
    settings: Optional[Settings] = None, context: Optional[AppContext] = None
) -> FastAPI:
    context = context or AppContext(settings or default_settings)
    context.database.init_db()
    setup_logging(context)

    app = FastAPI(
        title=context.settings.PROJECT_NAME,
        debug=context.settings.DEBUG,
        lifespan=lifespan,
        root_path=context.settings.ROOT_PATH,
    )
    app.state.context = context

    app.include_router(router)

    return app
