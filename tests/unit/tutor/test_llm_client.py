"""Tests for the LiteLLM client wrapper."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest

from circuitry.errors import AuthError, InvalidAudio, RateLimited, Transient
from circuitry.tutor.llm_client import complete, count_tokens, transcribe


class _ProviderError(Exception):
    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


def _completion_response(content):
    message = MagicMock()
    message.content = content
    choice = MagicMock()
    choice.message = message
    response = MagicMock()
    response.choices = [choice]
    return response


# ------------------------------------------------------------------
# complete
# ------------------------------------------------------------------


def test_complete_returns_content():
    with patch(
        "circuitry.tutor.llm_client.litellm.completion",
        return_value=_completion_response("Hello class"),
    ) as mock_call:
        result = complete(
            "openai/gpt-4o", [{"role": "user", "content": "hi"}], api_key="sk-x", max_tokens=50
        )

    assert result == "Hello class"
    kwargs = mock_call.call_args.kwargs
    assert kwargs["model"] == "openai/gpt-4o"
    assert kwargs["api_key"] == "sk-x"
    assert kwargs["max_tokens"] == 50
    assert kwargs["num_retries"] == 0


def test_complete_none_content_returns_empty():
    with patch(
        "circuitry.tutor.llm_client.litellm.completion",
        return_value=_completion_response(None),
    ):
        assert complete("openai/gpt-4o", []) == ""


def test_complete_empty_choices_returns_empty():
    response = MagicMock()
    response.choices = []
    with patch("circuitry.tutor.llm_client.litellm.completion", return_value=response):
        assert complete("openai/gpt-4o", []) == ""


@pytest.mark.parametrize(
    "status, expected",
    [(401, AuthError), (429, RateLimited), (500, Transient), (400, Transient), (None, Transient)],
)
def test_complete_maps_provider_errors(status, expected):
    with patch(
        "circuitry.tutor.llm_client.litellm.completion",
        side_effect=_ProviderError("boom", status),
    ):
        with pytest.raises(expected):
            complete("openai/gpt-4o", [])


# ------------------------------------------------------------------
# transcribe
# ------------------------------------------------------------------


def test_transcribe_sends_named_buffer():
    response = MagicMock()
    response.text = "Lecture text"
    with patch(
        "circuitry.tutor.llm_client.litellm.transcription", return_value=response
    ) as mock_call:
        result = transcribe(
            "openai/whisper-1", b"\x00\x01", "recording.webm", api_key="sk-x", language="en"
        )

    assert result == "Lecture text"
    kwargs = mock_call.call_args.kwargs
    assert kwargs["model"] == "openai/whisper-1"
    assert kwargs["file"].name == "recording.webm"
    assert kwargs["file"].read() == b"\x00\x01"
    assert kwargs["api_key"] == "sk-x"
    assert kwargs["language"] == "en"


def test_transcribe_omits_language_when_none():
    response = MagicMock()
    response.text = ""
    with patch(
        "circuitry.tutor.llm_client.litellm.transcription", return_value=response
    ) as mock_call:
        assert transcribe("openai/whisper-1", b"\x00", "recording.mp3") == ""
    assert "language" not in mock_call.call_args.kwargs


@pytest.mark.parametrize(
    "status, expected",
    [(400, InvalidAudio), (415, InvalidAudio), (401, AuthError), (429, RateLimited), (502, Transient)],
)
def test_transcribe_maps_provider_errors(status, expected):
    with patch(
        "circuitry.tutor.llm_client.litellm.transcription",
        side_effect=_ProviderError("bad", status),
    ):
        with pytest.raises(expected):
            transcribe("openai/whisper-1", b"\x00", "recording.webm")


# ------------------------------------------------------------------
# count_tokens
# ------------------------------------------------------------------


def test_count_tokens():
    assert count_tokens("") == 0
    assert count_tokens("abc") == 1
    assert count_tokens("x" * 400) == 100
