"""Context composer: directives + knowledge base → one system prompt.

Pipeline:
  1. Map the circuit's settings to directive sentences.
  2. Drop archived content items.
  3. Render each item as "{title}:\\n{content or description}".
  4. Order excerpts oldest first (created_at, then id).
  5. Admit excerpts in that order while they fit the knowledge token budget;
     an excerpt that does not fit is skipped and counted, and admission
     continues with the next one.
  6. Assemble preamble, directives, guidelines, "Knowledge Base:" section and
     the closing "Remember to:" block.

Composition is a pure function of the circuit and the item list passed in.
Nothing is cached; every chat turn composes afresh.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field

import structlog

from circuitry.db.models import Circuit, ContentItem
from circuitry.db.repository import Repository
from circuitry.errors import CircuitNotFound
from circuitry.tutor.llm_client import count_tokens
from circuitry.tutor.mapper import Directives, map_circuit

logger = structlog.get_logger(__name__)

KNOWLEDGE_BASE_HEADER = "Knowledge Base:"
EMPTY_KNOWLEDGE_BASE = "No specific content uploaded yet."
OMITTED_KNOWLEDGE_BASE = (
    "Uploaded material exceeds the configured knowledge size limit and was omitted."
)


@dataclass
class ComposerConfig:
    knowledge_token_budget: int | None = 8_192  # None = unbounded


@dataclass
class PromptContext:
    """One composed prompt. Transient; never persisted."""

    directives: list[str] = field(default_factory=list)
    excerpts: list[str] = field(default_factory=list)
    text: str = ""
    omitted: int = 0
    knowledge_tokens: int = 0

    @property
    def total_tokens(self) -> int:
        return count_tokens(self.text)


def render_excerpt(item: ContentItem) -> str:
    """``"{title}:\\n{content or description}"``; both empty → empty body."""
    return f"{item.title}:\n{item.content or item.description or ''}"


def compose(
    circuit: Circuit | None,
    items: Iterable[ContentItem],
    config: ComposerConfig | None = None,
) -> PromptContext:
    """Compose the system prompt for *circuit* from its content *items*.

    Args:
        circuit: The circuit; None means the reference did not resolve.
        items: The circuit's content items (archived ones are filtered here).
        config: Composer configuration.

    Returns:
        PromptContext with the rendered prompt text.

    Raises:
        CircuitNotFound: If *circuit* is None.
    """
    if circuit is None:
        raise CircuitNotFound()
    config = config or ComposerConfig()

    directives = map_circuit(circuit)

    active = sorted(
        (item for item in items if not item.archived),
        key=lambda item: (item.created_at or "", item.id if item.id is not None else 0),
    )
    rendered = [render_excerpt(item) for item in active]
    excerpts, used = _apply_knowledge_budget(rendered, config.knowledge_token_budget)
    omitted = len(rendered) - len(excerpts)

    if omitted:
        logger.warning(
            "knowledge_budget_exceeded",
            circuit_id=circuit.id,
            budget=config.knowledge_token_budget,
            admitted=len(excerpts),
            omitted=omitted,
        )

    if excerpts:
        knowledge = "\n\n".join(excerpts)
    elif omitted:
        knowledge = OMITTED_KNOWLEDGE_BASE
    else:
        knowledge = EMPTY_KNOWLEDGE_BASE

    return PromptContext(
        directives=directives.sentences,
        excerpts=excerpts,
        text=_render(directives, knowledge),
        omitted=omitted,
        knowledge_tokens=used,
    )


def compose_for_circuit(
    repo: Repository,
    circuit_id: int,
    config: ComposerConfig | None = None,
) -> PromptContext:
    """Read the circuit and its active items from the store, then compose.

    Raises:
        CircuitNotFound: Unknown circuit id.
    """
    circuit = repo.get_circuit(circuit_id)
    if circuit is None:
        raise CircuitNotFound(circuit_id)
    return compose(circuit, repo.list_active(circuit_id), config)


# ------------------------------------------------------------------
# Knowledge budget
# ------------------------------------------------------------------


def _apply_knowledge_budget(
    excerpts: list[str],
    budget: int | None,
) -> tuple[list[str], int]:
    """Admit excerpts oldest first; skip any that no longer fit.

    A skipped excerpt does not stop admission, so one oversized upload cannot
    push every later excerpt out. Returns (admitted, tokens_used).
    """
    selected: list[str] = []
    total = 0
    for excerpt in excerpts:
        tokens = count_tokens(excerpt)
        if budget is not None and total + tokens > budget:
            logger.info("knowledge_excerpt_skipped", tokens=tokens, remaining=budget - total)
            continue
        selected.append(excerpt)
        total += tokens
    return selected, total


# ------------------------------------------------------------------
# Rendering
# ------------------------------------------------------------------


def _render(directives: Directives, knowledge: str) -> str:
    label = directives.grade_label
    lines = list(directives.sentences)
    lines += [
        "",
        "Key Guidelines:",
        f"1. Always communicate at a {label} comprehension level",
        "2. Use age-appropriate examples and analogies",
        "3. Maintain a supportive and encouraging tone",
        "4. Follow the specified teaching styles and response formats",
        "5. Reference relevant uploaded content when applicable",
        "",
        KNOWLEDGE_BASE_HEADER,
        knowledge,
        "",
        "Remember to:",
        f"- Keep explanations appropriate for {label} students",
    ]
    if directives.teaching:
        lines.append(f"- Use the teaching styles specified: {directives.teaching}")
    if directives.homework:
        lines.append(f"- Follow the homework policy: {directives.homework}")
    if directives.response:
        lines.append(f"- Maintain the response style: {directives.response}")
    if directives.state:
        lines.append(f"- Align with {directives.state} educational standards")
    return "\n".join(lines)
