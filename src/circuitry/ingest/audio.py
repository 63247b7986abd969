"""Audio transcriber — class recordings to transcript text via LiteLLM.

Safety:
- Input is validated BEFORE any API call: empty, oversized or unknown-format
  audio is rejected with ValidationError.
- The speech-to-text boundary is invoked exactly once; failures surface as
  TranscriptionFailed and are never retried here.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime

import structlog

from circuitry.errors import TranscriptionFailed, UpstreamError, ValidationError
from circuitry.tutor import llm_client

logger = structlog.get_logger(__name__)

# MIME type → file extension the provider uses to detect the audio format.
_MIME_EXTENSIONS: dict[str, str] = {
    "audio/webm": ".webm",
    "video/webm": ".webm",
    "audio/mpeg": ".mp3",
    "audio/mp3": ".mp3",
    "audio/wav": ".wav",
    "audio/x-wav": ".wav",
    "audio/wave": ".wav",
    "audio/mp4": ".m4a",
    "audio/x-m4a": ".m4a",
    "video/mp4": ".mp4",
    "audio/ogg": ".ogg",
    "audio/flac": ".flac",
    "audio/x-flac": ".flac",
}

SUPPORTED_MIME_TYPES: frozenset[str] = frozenset(_MIME_EXTENSIONS)

_EXTENSION_MIME: dict[str, str] = {
    ".webm": "audio/webm",
    ".mp3": "audio/mpeg",
    ".wav": "audio/wav",
    ".m4a": "audio/mp4",
    ".mp4": "video/mp4",
    ".ogg": "audio/ogg",
    ".flac": "audio/flac",
}

TRANSCRIPT_DESCRIPTION = "Automatically generated transcript from class recording"


@dataclass
class Transcript:
    title: str
    text: str
    description: str = TRANSCRIPT_DESCRIPTION


def mime_type_for_extension(ext: str) -> str | None:
    """Return the MIME type for an audio file extension, or None if unsupported."""
    return _EXTENSION_MIME.get(ext.lower())


class Transcriber:
    """Transcribe one audio clip through the configured speech-to-text model.

    Args:
        model: LiteLLM transcription model string.
        api_key: Provider key, passed explicitly to every call.
        language: Language hint for the provider.
        max_bytes: Largest accepted clip.
        clock: Returns the capture time used in the generated title.
    """

    def __init__(
        self,
        model: str = "openai/whisper-1",
        api_key: str | None = None,
        language: str | None = "en",
        max_bytes: int = 25 * 1024 * 1024,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.model = model
        self.api_key = api_key
        self.language = language
        self.max_bytes = max_bytes
        self.clock = clock

    def transcribe(self, audio: bytes, mime_type: str) -> Transcript:
        """Return the transcript of *audio* and a timestamped title.

        Raises:
            ValidationError: Empty, oversized or unsupported audio.
            TranscriptionFailed: The speech-to-text call failed; ``.cause``
                holds the classified upstream error.
        """
        ext = self._validate(audio, mime_type)
        captured_at = self.clock()

        try:
            text = llm_client.transcribe(
                self.model,
                audio,
                f"recording{ext}",
                api_key=self.api_key,
                language=self.language,
            )
        except UpstreamError as exc:
            logger.error(
                "transcription_failed",
                model=self.model,
                error_type=type(exc).__name__,
                status_code=exc.status_code,
                message=str(exc),
            )
            raise TranscriptionFailed(f"Transcription failed: {exc}", cause=exc) from exc

        logger.info("transcription_succeeded", model=self.model, chars=len(text))
        return Transcript(
            title=f"Class Recording Transcript - {captured_at:%Y-%m-%d %H:%M:%S}",
            text=text,
        )

    def _validate(self, audio: bytes, mime_type: str) -> str:
        """Return the file extension for *mime_type*; raise ValidationError on bad input."""
        base_type = mime_type.split(";", 1)[0].strip().lower()
        ext = _MIME_EXTENSIONS.get(base_type)
        if ext is None:
            raise ValidationError(
                f"Unsupported audio format '{mime_type}'. "
                f"Supported: {', '.join(sorted(SUPPORTED_MIME_TYPES))}"
            )
        if not audio:
            raise ValidationError("No audio data provided.")
        if len(audio) > self.max_bytes:
            raise ValidationError(
                f"Audio clip exceeds the {self.max_bytes / (1024 * 1024):.0f} MB limit "
                f"({len(audio) / (1024 * 1024):.1f} MB). "
                "Split the recording and upload each part separately."
            )
        return ext
