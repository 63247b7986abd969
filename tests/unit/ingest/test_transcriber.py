"""Tests for the audio Transcriber."""

from __future__ import annotations

from datetime import datetime
from unittest.mock import patch

import pytest

from circuitry.errors import (
    AuthError,
    InvalidAudio,
    RateLimited,
    Transient,
    TranscriptionFailed,
    ValidationError,
)
from circuitry.ingest.audio import (
    SUPPORTED_MIME_TYPES,
    TRANSCRIPT_DESCRIPTION,
    Transcriber,
    mime_type_for_extension,
)

_CAPTURED = datetime(2024, 3, 5, 9, 7, 2)


def _transcriber(**kw) -> Transcriber:
    kw.setdefault("api_key", "sk-test")
    return Transcriber(clock=lambda: _CAPTURED, **kw)


def _mock_transcribe(**kw):
    return patch("circuitry.ingest.audio.llm_client.transcribe", **kw)


# ------------------------------------------------------------------
# Validation (before any upstream call)
# ------------------------------------------------------------------


def test_supported_mime_types_present():
    for mime in ("audio/webm", "audio/mpeg", "audio/wav", "audio/mp4", "audio/ogg"):
        assert mime in SUPPORTED_MIME_TYPES


def test_mime_type_for_extension():
    assert mime_type_for_extension(".WEBM") == "audio/webm"
    assert mime_type_for_extension(".mp3") == "audio/mpeg"
    assert mime_type_for_extension(".avi") is None


def test_unsupported_mime_raises_without_call():
    with _mock_transcribe() as mock_call:
        with pytest.raises(ValidationError, match="Unsupported audio format"):
            _transcriber().transcribe(b"\x00" * 10, "video/avi")
    mock_call.assert_not_called()


def test_empty_audio_raises():
    with _mock_transcribe() as mock_call:
        with pytest.raises(ValidationError, match="No audio data"):
            _transcriber().transcribe(b"", "audio/webm")
    mock_call.assert_not_called()


def test_oversized_audio_raises():
    with _mock_transcribe() as mock_call:
        with pytest.raises(ValidationError, match="exceeds"):
            _transcriber(max_bytes=10).transcribe(b"\x00" * 11, "audio/webm")
    mock_call.assert_not_called()


def test_audio_at_limit_is_accepted():
    with _mock_transcribe(return_value="ok"):
        transcript = _transcriber(max_bytes=10).transcribe(b"\x00" * 10, "audio/webm")
    assert transcript.text == "ok"


# ------------------------------------------------------------------
# Successful transcription
# ------------------------------------------------------------------


def test_transcribe_returns_titled_transcript():
    with _mock_transcribe(return_value="Today we covered the water cycle."):
        transcript = _transcriber().transcribe(b"\x1a\x45\xdf\xa3", "audio/webm")

    assert transcript.text == "Today we covered the water cycle."
    assert transcript.title == "Class Recording Transcript - 2024-03-05 09:07:02"
    assert transcript.description == TRANSCRIPT_DESCRIPTION


def test_transcribe_passes_model_key_language_and_filename():
    with _mock_transcribe(return_value="text") as mock_call:
        Transcriber(
            model="groq/whisper-large-v3", api_key="sk-abc", language="es"
        ).transcribe(b"\x00\x01", "audio/webm;codecs=opus")

    args, kwargs = mock_call.call_args
    assert args == ("groq/whisper-large-v3", b"\x00\x01", "recording.webm")
    assert kwargs == {"api_key": "sk-abc", "language": "es"}


def test_transcribe_calls_upstream_once():
    with _mock_transcribe(return_value="text") as mock_call:
        _transcriber().transcribe(b"\x00", "audio/mpeg")
    assert mock_call.call_count == 1


# ------------------------------------------------------------------
# Failures
# ------------------------------------------------------------------


@pytest.mark.parametrize(
    "error",
    [
        InvalidAudio("could not decode audio", status_code=400),
        AuthError("bad key", status_code=401),
        RateLimited("quota", status_code=429),
        Transient("upstream 500", status_code=500),
    ],
)
def test_upstream_failure_raises_transcription_failed(error):
    with _mock_transcribe(side_effect=error) as mock_call:
        with pytest.raises(TranscriptionFailed) as excinfo:
            _transcriber().transcribe(b"\x00garbage", "audio/webm")

    assert excinfo.value.cause is error
    assert excinfo.value.status_code == error.status_code
    assert mock_call.call_count == 1
