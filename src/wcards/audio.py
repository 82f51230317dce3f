import logging
import threading
import weakref
from typing import Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from .card_store import CardStore
from .config import Settings, settings as default_settings
from .exceptions import AudioGenerationError
from .models import AudioResponse, Card

logger = logging.getLogger(__name__)

AUDIO_CONTENT_TYPE = "audio/mpeg"
AUDIO_CACHE_CONTROL = "max-age=31536000"


def build_s3_key(card_id: str, word: str) -> str:
    return f"audio/{card_id}/{word}.mp3"


def build_audio_url(bucket: str, region: str, s3_key: str) -> str:
    return f"https://{bucket}.s3.{region}.amazonaws.com/{s3_key}"


def create_polly_client(settings: Optional[Settings] = None):
    settings = settings or default_settings
    return boto3.client("polly", region_name=settings.AWS_REGION)


def create_s3_client(settings: Optional[Settings] = None):
    settings = settings or default_settings
    return boto3.client("s3", region_name=settings.AWS_REGION)


class PronunciationCache:
    """Fetch-or-generate pronunciation audio for cards.

    Audio is synthesized with Polly, stored in S3 under a key derived from
    the card, and its public URL recorded on the card. Later calls return
    the recorded URL as long as the S3 object still exists. Generation for
    a given card is serialized so concurrent requests synthesize once.
    """

    def __init__(
        self,
        store: CardStore,
        s3_client,
        polly_client,
        bucket: str,
        region: str,
        voice_id: str = "Joanna",
        engine: str = "standard",
    ):
        self.store = store
        self.s3 = s3_client
        self.polly = polly_client
        self.bucket = bucket
        self.region = region
        self.voice_id = voice_id
        self.engine = engine
        # entries vanish once no request holds the lock
        self._locks = weakref.WeakValueDictionary()
        self._locks_guard = threading.Lock()

    @classmethod
    def from_settings(
        cls, store: CardStore, settings: Optional[Settings] = None
    ) -> "PronunciationCache":
        settings = settings or default_settings
        return cls(
            store,
            s3_client=create_s3_client(settings),
            polly_client=create_polly_client(settings),
            bucket=settings.AUDIO_BUCKET,
            region=settings.AWS_REGION,
            voice_id=settings.POLLY_VOICE_ID,
            engine=settings.POLLY_ENGINE,
        )

    def _lock_for(self, card_id: str) -> threading.Lock:
        with self._locks_guard:
            lock = self._locks.get(card_id)
            if lock is None:
                lock = self._locks[card_id] = threading.Lock()
            return lock

    # --- S3 ---
    def audio_exists(self, s3_key: str) -> bool:
        try:
            self.s3.head_object(Bucket=self.bucket, Key=s3_key)
        except (BotoCoreError, ClientError):
            return False
        return True

    def upload_audio(self, s3_key: str, audio: bytes):
        logger.info(f"Uploading to S3: {s3_key}")
        self.s3.put_object(
            Bucket=self.bucket,
            Key=s3_key,
            Body=audio,
            ContentType=AUDIO_CONTENT_TYPE,
            CacheControl=AUDIO_CACHE_CONTROL,
        )

    # --- Polly ---
    def synthesize(self, word: str) -> bytes:
        logger.info(f"Generating audio for word: {word!r}")
        response = self.polly.synthesize_speech(
            Text=word,
            OutputFormat="mp3",
            VoiceId=self.voice_id,
            Engine=self.engine,
        )
        audio = response["AudioStream"].read()
        logger.info(f"Audio generated. Size: {len(audio)} bytes")
        return audio

    # --- Cache ---
    def cached_audio(self, card: Card) -> Optional[AudioResponse]:
        if not card.audio_url or not card.audio_generated_at:
            return None

        s3_key = build_s3_key(card.id, card.english_word)
        if self.audio_exists(s3_key):
            return AudioResponse(
                audio_url=card.audio_url,
                word=card.english_word,
                cached=True,
                message="Audio retrieved from cache",
            )

        logger.warning(f"Audio file missing in S3 for {card.id}. Regenerating...")
        return None

    def generate_audio(self, card: Card) -> AudioResponse:
        s3_key = build_s3_key(card.id, card.english_word)
        try:
            audio = self.synthesize(card.english_word)
            self.upload_audio(s3_key, audio)
        except (BotoCoreError, ClientError) as e:
            raise AudioGenerationError(
                f"Failed to generate audio for {card.english_word!r}: {e}"
            ) from e

        audio_url = build_audio_url(self.bucket, self.region, s3_key)
        self.store.set_audio_url(card.id, audio_url)
        return AudioResponse(
            audio_url=audio_url,
            word=card.english_word,
            cached=False,
            message="Audio generated and cached",
        )

    def get_audio(self, card_id: str) -> AudioResponse:
        with self._lock_for(card_id):
            # reload under the lock; a concurrent call may have stored the URL
            card = self.store.get(card_id)
            cached = self.cached_audio(card)
            if cached:
                return cached
            return self.generate_audio(card)

    def get_audio_url(self, card_id: str) -> str:
        return self.get_audio(card_id).audio_url
