import os


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


class Settings:
    PROJECT_NAME: str = "wcards"
    DEBUG: bool = _env_bool("WCARDS_DEBUG")
    LOG_DIR: str = os.environ.get("WCARDS_LOG_DIR", "log")
    LOG_FILE: str = "wcards.log"
    DB_DIR: str = os.environ.get("WCARDS_DB_DIR", "db")
    DB_FILE: str = os.environ.get("WCARDS_DB_FILE", "wcards.db")
    VOCAB_DIR: str = os.environ.get("WCARDS_VOCAB_DIR", "vocabulary")
    TEST_SIZE: int = 15
    PASS_THRESHOLD: int = 12
    AUTO_ADVANCE_DELAY: float = 2.5
    SESSION_COOKIE_NAME: str = "wcards_session_id"
    SESSION_TIMEOUT_MINUTES: int = 120
    ROOT_PATH: str = os.environ.get("ROOT_PATH", "")
    AWS_REGION: str = os.environ.get("AWS_REGION", "us-east-1")
    AUDIO_BUCKET: str = os.environ.get("AWS_S3_BUCKET", "")
    POLLY_VOICE_ID: str = os.environ.get("POLLY_VOICE_ID", "Joanna")
    POLLY_ENGINE: str = os.environ.get("POLLY_ENGINE", "standard")


settings = Settings()
