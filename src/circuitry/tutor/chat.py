"""One chat turn: compose the circuit prompt, ask the model, reply.

Upstream failures end the turn with an apology instead of raising; the
composed prompt is returned either way so callers can inspect it.
"""

from __future__ import annotations

from dataclasses import dataclass

import structlog

from circuitry.db.repository import Repository
from circuitry.errors import AuthError, RateLimited, UpstreamError, ValidationError
from circuitry.tutor import llm_client
from circuitry.tutor.composer import ComposerConfig, PromptContext, compose_for_circuit

logger = structlog.get_logger(__name__)

AUTH_APOLOGY = "I'm sorry, I can't reach the AI service right now. Please ask your teacher to check the AI service configuration."
RATE_LIMIT_APOLOGY = "I'm sorry, the AI tutor is temporarily unavailable. Please try again in a little while."
UPSTREAM_APOLOGY = "I'm sorry, I couldn't process your message. Please try again later."
EMPTY_ANSWER_APOLOGY = (
    "I apologize, but I couldn't generate a response. Please try rephrasing your question."
)


@dataclass
class ChatSettings:
    model: str = "openai/gpt-4o"
    temperature: float = 0.7
    max_tokens: int = 500
    api_key: str | None = None


@dataclass
class ChatReply:
    text: str
    prompt: PromptContext
    error: UpstreamError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def apology_for(error: UpstreamError) -> str:
    if isinstance(error, AuthError):
        return AUTH_APOLOGY
    if isinstance(error, RateLimited):
        return RATE_LIMIT_APOLOGY
    return UPSTREAM_APOLOGY


def reply(
    repo: Repository,
    circuit_id: int,
    message: str,
    settings: ChatSettings | None = None,
    composer: ComposerConfig | None = None,
) -> ChatReply:
    """Answer *message* in the context of circuit *circuit_id*.

    Raises:
        ValidationError: Blank message.
        CircuitNotFound: Unknown circuit.
    """
    if not (message or "").strip():
        raise ValidationError("Message is required")
    settings = settings or ChatSettings()

    prompt = compose_for_circuit(repo, circuit_id, composer)

    try:
        answer = llm_client.complete(
            settings.model,
            [
                {"role": "system", "content": prompt.text},
                {"role": "user", "content": message},
            ],
            api_key=settings.api_key,
            max_tokens=settings.max_tokens,
            temperature=settings.temperature,
        )
    except UpstreamError as exc:
        logger.error(
            "chat_upstream_error",
            circuit_id=circuit_id,
            error_type=type(exc).__name__,
            status_code=exc.status_code,
            message=str(exc),
        )
        return ChatReply(text=apology_for(exc), prompt=prompt, error=exc)

    answer = answer.strip()
    logger.info(
        "chat_turn_completed",
        circuit_id=circuit_id,
        prompt_tokens=prompt.total_tokens,
        excerpts=len(prompt.excerpts),
    )
    return ChatReply(text=answer or EMPTY_ANSWER_APOLOGY, prompt=prompt)
