"""Suggest a one-line circuit description from its title and grade.

The model is steered by a grade-banded prompt: each band allows only a few
sentence starters and a matching vocabulary level. Output is trimmed to fit
the circuit description limit so it can be stored as-is.
"""

from __future__ import annotations

import textwrap

import structlog

from circuitry.circuits import validate_grade
from circuitry.db.models import MAX_DESCRIPTION_CHARS, grade_label
from circuitry.errors import Transient, UpstreamError, ValidationError
from circuitry.tutor import llm_client
from circuitry.tutor.chat import ChatSettings

logger = structlog.get_logger(__name__)

DESCRIPTION_MAX_TOKENS = 100
DESCRIPTION_TEMPERATURE = 1.5  # high variation between suggestions

_SYSTEM_PROMPT = """\
You are a specialized education AI focused on generating grade-appropriate course descriptions.

For each grade level, you MUST follow these exact patterns:

Kindergarten (K):
- Use ONLY these sentence starters: "Let's learn", "We will explore", "Come discover"
- Use ONLY 1-2 syllable words
- Focus on fun and play
- Example: "Let's learn about shapes and colors in a fun way!"

Grades 1-3:
- Use ONLY these sentence starters: "Find out", "Learn how", "Discover why"
- Connect to daily life
- Keep words simple
- Example: "Find out how rain helps plants grow in our garden!"

Grades 4-6:
- Use ONLY these sentence starters: "Explore", "Investigate", "Study"
- Include one scientific term
- Link to real examples
- Example: "Explore ecosystems by watching how plants and animals work together!"

Grades 7-8:
- Use ONLY these sentence starters: "Analyze", "Examine", "Discover the science of"
- Include scientific concepts
- Mention experiments
- Example: "Analyze force and motion through exciting physics experiments!"

Grades 9-12:
- Use ONLY these sentence starters: "Master", "Learn to apply", "Study advanced"
- Include complex terminology
- Connect to careers
- Example: "Master calculus concepts used by real engineers and scientists!"

Target grade level: {label}"""


def build_messages(title: str, grade: str) -> list[dict]:
    label = grade_label(grade)
    return [
        {"role": "system", "content": _SYSTEM_PROMPT.format(label=label)},
        {
            "role": "user",
            "content": (
                f'Write a description for "{title}" that matches EXACTLY the pattern and '
                f"complexity shown for {label} level. Use ONLY the allowed sentence "
                "starters for this grade level."
            ),
        },
    ]


def describe_circuit(title: str, grade: str, settings: ChatSettings | None = None) -> str:
    """Ask the model for a description of a circuit called *title*.

    Only ``settings.model`` and ``settings.api_key`` are used; output length
    and temperature are fixed for this task.

    Returns:
        The description, at most MAX_DESCRIPTION_CHARS characters.

    Raises:
        ValidationError: Blank title or unknown grade; no model call is made.
        AuthError, RateLimited, Transient: Provider failure, or
            Transient("No description generated") when the model returns nothing.
    """
    title = (title or "").strip()
    if not title:
        raise ValidationError("Title is required")
    grade = validate_grade(grade)
    settings = settings or ChatSettings()

    try:
        text = llm_client.complete(
            settings.model,
            build_messages(title, grade),
            api_key=settings.api_key,
            max_tokens=DESCRIPTION_MAX_TOKENS,
            temperature=DESCRIPTION_TEMPERATURE,
        ).strip()
        if not text:
            raise Transient("No description generated")
    except UpstreamError as exc:
        logger.error(
            "description_failed",
            title=title,
            grade=grade,
            error_type=type(exc).__name__,
            status_code=exc.status_code,
        )
        raise

    if len(text) > MAX_DESCRIPTION_CHARS:
        text = textwrap.shorten(text, width=MAX_DESCRIPTION_CHARS, placeholder="...")
    logger.info("description_generated", title=title, grade=grade, chars=len(text))
    return text
