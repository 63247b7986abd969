"""Exception taxonomy for circuit composition and content ingestion.

Validation and not-found errors are the caller's fault and are reported
verbatim. Upstream errors come from the speech-to-text or model boundary and
are scoped to one request; nothing here is fatal to the process.
"""

from __future__ import annotations


class CircuitryError(Exception):
    """Base class for all errors raised by circuitry."""


# ---------------------------------------------------------------------------
# Caller errors
# ---------------------------------------------------------------------------


class ValidationError(CircuitryError, ValueError):
    """Input rejected before any work was done (missing title, bad grade, ...)."""


class NotFoundError(CircuitryError, LookupError):
    """A referenced record does not exist."""


class CircuitNotFound(NotFoundError):
    def __init__(self, circuit_ref: int | str | None = None) -> None:
        super().__init__(
            "Circuit not found" if circuit_ref is None else f"Circuit not found: {circuit_ref!r}"
        )
        self.circuit_ref = circuit_ref


class ContentNotFound(NotFoundError):
    def __init__(self, content_id: int) -> None:
        super().__init__(f"Content item not found: {content_id!r}")
        self.content_id = content_id


# ---------------------------------------------------------------------------
# Upstream errors (speech-to-text / model boundary)
# ---------------------------------------------------------------------------


class UpstreamError(CircuitryError):
    """An external service call failed.

    Attributes:
        status_code: HTTP status reported by the provider, when known.
    """

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class AuthError(UpstreamError):
    """Provider rejected the credentials (401/403)."""


class RateLimited(UpstreamError):
    """Provider quota or rate limit hit (429)."""


class Transient(UpstreamError):
    """Network failure or provider-side error; re-issuing may succeed."""


class InvalidAudio(UpstreamError):
    """Provider could not decode the submitted audio."""


class TranscriptionFailed(UpstreamError):
    """Transcription aborted; nothing was persisted.

    Attributes:
        cause: The classified upstream error (AuthError, RateLimited,
            InvalidAudio or Transient).
    """

    def __init__(self, message: str, cause: UpstreamError) -> None:
        super().__init__(message, status_code=cause.status_code)
        self.cause = cause


# ---------------------------------------------------------------------------
# Soft signals
# ---------------------------------------------------------------------------


class ExtractionDegraded(CircuitryError):
    """Document text could not be extracted; the item is stored with an empty body.

    Raised by extractor strategies and caught by DocumentExtractor. It never
    reaches callers of the ingestion service.
    """


# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------

_AUTH_STATUSES = frozenset({401, 403})
_RATE_LIMIT_STATUSES = frozenset({429})
_INVALID_INPUT_STATUSES = frozenset({400, 413, 415, 422})


def map_upstream_error(
    exc: BaseException,
    invalid_input: type[UpstreamError] = Transient,
) -> UpstreamError:
    """Classify a provider exception into the upstream taxonomy.

    Uses the ``status_code`` attribute litellm (and the OpenAI SDK) attach to
    their exceptions. Exceptions without a status (connection resets,
    timeouts) are Transient. Rejected input (400/413/415/422) is reported as
    *invalid_input*; the transcriber passes InvalidAudio.
    """
    if isinstance(exc, UpstreamError):
        return exc

    status = getattr(exc, "status_code", None)
    if not isinstance(status, int):
        status = None
    message = str(exc) or exc.__class__.__name__

    if status in _AUTH_STATUSES:
        return AuthError(message, status_code=status)
    if status in _RATE_LIMIT_STATUSES:
        return RateLimited(message, status_code=status)
    if status in _INVALID_INPUT_STATUSES:
        return invalid_input(message, status_code=status)
    return Transient(message, status_code=status)
