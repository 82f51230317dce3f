"""Tests for audio module."""

import io
import threading
from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError, EndpointConnectionError

from wcards.audio import PronunciationCache, build_audio_url, build_s3_key
from wcards.exceptions import AudioGenerationError, CardNotFoundError


def not_found_error():
    return ClientError({"Error": {"Code": "404", "Message": "Not Found"}}, "HeadObject")


@pytest.fixture
def s3_client():
    return MagicMock()


@pytest.fixture
def polly_client():
    client = MagicMock()
    client.synthesize_speech.side_effect = lambda **kwargs: {
        "AudioStream": io.BytesIO(b"mp3-bytes")
    }
    return client


@pytest.fixture
def cache(store, s3_client, polly_client):
    return PronunciationCache(
        store,
        s3_client=s3_client,
        polly_client=polly_client,
        bucket="test-bucket",
        region="us-east-1",
    )


class TestKeysAndUrls:
    def test_build_s3_key(self):
        assert build_s3_key("abc", "Hello") == "audio/abc/Hello.mp3"

    def test_build_audio_url(self):
        assert (
            build_audio_url("bucket", "eu-west-1", "audio/abc/Hello.mp3")
            == "https://bucket.s3.eu-west-1.amazonaws.com/audio/abc/Hello.mp3"
        )


class TestPronunciationCache:
    """Tests for PronunciationCache class."""

    def test_generates_audio_for_new_card(self, cache, store, make_card, s3_client, polly_client):
        card = make_card("Hello", ["Hola"])

        response = cache.get_audio(card.id)

        assert response.cached is False
        assert response.word == "Hello"
        assert response.message == "Audio generated and cached"
        assert response.audio_url == (
            f"https://test-bucket.s3.us-east-1.amazonaws.com/audio/{card.id}/Hello.mp3"
        )
        polly_client.synthesize_speech.assert_called_once_with(
            Text="Hello", OutputFormat="mp3", VoiceId="Joanna", Engine="standard"
        )
        s3_client.put_object.assert_called_once_with(
            Bucket="test-bucket",
            Key=f"audio/{card.id}/Hello.mp3",
            Body=b"mp3-bytes",
            ContentType="audio/mpeg",
            CacheControl="max-age=31536000",
        )
        assert store.get(card.id).audio_url == response.audio_url

    def test_returns_cached_url_when_object_exists(self, cache, make_card, s3_client, polly_client):
        card = make_card()
        first = cache.get_audio(card.id)

        second = cache.get_audio(card.id)

        assert second.cached is True
        assert second.audio_url == first.audio_url
        assert second.message == "Audio retrieved from cache"
        assert polly_client.synthesize_speech.call_count == 1
        s3_client.head_object.assert_called_once_with(
            Bucket="test-bucket", Key=f"audio/{card.id}/Hello.mp3"
        )

    def test_regenerates_when_object_missing(self, cache, make_card, s3_client, polly_client):
        card = make_card()
        cache.get_audio(card.id)
        s3_client.head_object.side_effect = not_found_error()

        response = cache.get_audio(card.id)

        assert response.cached is False
        assert polly_client.synthesize_speech.call_count == 2

    def test_regenerates_when_head_request_fails(self, cache, make_card, s3_client, polly_client):
        card = make_card()
        cache.get_audio(card.id)
        s3_client.head_object.side_effect = EndpointConnectionError(endpoint_url="https://s3")

        response = cache.get_audio(card.id)

        assert response.cached is False
        assert polly_client.synthesize_speech.call_count == 2

    def test_lock_released_after_request(self, cache, make_card):
        card = make_card()

        cache.get_audio(card.id)

        assert card.id not in cache._locks

    def test_get_audio_url(self, cache, make_card):
        card = make_card()

        assert cache.get_audio_url(card.id).endswith(f"/audio/{card.id}/Hello.mp3")

    def test_unknown_card(self, cache):
        with pytest.raises(CardNotFoundError):
            cache.get_audio("missing")

    def test_service_failure(self, cache, make_card, polly_client):
        card = make_card()
        polly_client.synthesize_speech.side_effect = ClientError(
            {"Error": {"Code": "ServiceFailure", "Message": "boom"}}, "SynthesizeSpeech"
        )

        with pytest.raises(AudioGenerationError):
            cache.get_audio(card.id)

    def test_concurrent_requests_synthesize_once(self, cache, make_card, polly_client):
        card = make_card()
        results = []

        def fetch():
            results.append(cache.get_audio(card.id))

        threads = [threading.Thread(target=fetch) for _ in range(5)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert polly_client.synthesize_speech.call_count == 1
        assert len({r.audio_url for r in results}) == 1
        assert sum(1 for r in results if not r.cached) == 1
