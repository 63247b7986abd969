"""LiteLLM client wrapper for the model and speech-to-text boundaries.

Every provider call routes through this module. No retries are made here
(``num_retries=0``); callers that want resilience re-issue the whole
operation. Provider exceptions are classified into circuitry.errors before
they leave this module.
"""

from __future__ import annotations

import io

import litellm

from circuitry.errors import InvalidAudio, Transient, UpstreamError, map_upstream_error

# Disable LiteLLM verbose logging unless explicitly enabled
litellm.suppress_debug_info = True
litellm.set_verbose = False  # type: ignore[assignment]


def complete(
    model: str,
    messages: list[dict],
    *,
    api_key: str | None = None,
    max_tokens: int = 500,
    temperature: float = 0.7,
    num_retries: int = 0,
) -> str:
    """Call litellm.completion() once and return the content string.

    Args:
        model: LiteLLM model string (provider/model format).
        messages: OpenAI-style message list.
        api_key: Provider key; None lets the provider fall back to its default.
        max_tokens: Maximum output tokens.
        temperature: Sampling temperature.
        num_retries: Provider-level retries (0 = single attempt).

    Returns:
        The text content of the first choice ("" when the model returned none).

    Raises:
        AuthError, RateLimited, Transient: On any provider failure.
    """
    try:
        response = litellm.completion(
            model=model,
            messages=messages,
            api_key=api_key,
            max_tokens=max_tokens,
            temperature=temperature,
            num_retries=num_retries,
        )
    except UpstreamError:
        raise
    except Exception as exc:
        raise map_upstream_error(exc, invalid_input=Transient) from exc
    if not response.choices:
        return ""
    return response.choices[0].message.content or ""


def transcribe(
    model: str,
    audio: bytes,
    filename: str,
    *,
    api_key: str | None = None,
    language: str | None = None,
) -> str:
    """Call litellm.transcription() once and return the transcript text.

    Args:
        model: LiteLLM speech-to-text model string (e.g. "openai/whisper-1").
        audio: Raw audio bytes.
        filename: Name whose extension tells the provider the audio format.
        api_key: Provider key.
        language: ISO-639-1 hint, or None to let the provider detect it.

    Raises:
        AuthError, RateLimited, InvalidAudio, Transient: On any provider failure.
    """
    buffer = io.BytesIO(audio)
    buffer.name = filename
    kwargs: dict = {"model": model, "file": buffer, "api_key": api_key}
    if language:
        kwargs["language"] = language
    try:
        response = litellm.transcription(**kwargs)
    except UpstreamError:
        raise
    except Exception as exc:
        raise map_upstream_error(exc, invalid_input=InvalidAudio) from exc
    return response.text or ""


def count_tokens(text: str) -> int:
    """Approximate token count: 4 characters ≈ 1 token.

    Dependency-free and model-independent, so prompt composition stays a pure
    function of its inputs.
    """
    return max(1, len(text) // 4) if text else 0
