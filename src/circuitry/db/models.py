"""Domain models for the Circuitry database layer."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

GRADES: tuple[str, ...] = ("K",) + tuple(str(n) for n in range(1, 13))

MAX_DESCRIPTION_CHARS = 200


class TeachingStyle(str, Enum):
    AUTHORITY = "authority"
    DEMONSTRATOR = "demonstrator"
    FACILITATOR = "facilitator"
    DELEGATOR = "delegator"
    HYBRID = "hybrid"


class HomeworkPolicy(str, Enum):
    GUIDE = "guide"
    VERIFY = "verify"
    EXAMPLES = "examples"
    NO_SOLUTIONS = "no_solutions"


class ResponseType(str, Enum):
    DETAILED = "detailed"
    CONCISE = "concise"
    STEP_BY_STEP = "step_by_step"
    CONCEPTUAL = "conceptual"


class Category(str, Enum):
    SYLLABUS = "syllabus"
    WORKSHEET = "worksheet"
    PACING_GUIDE = "pacing_guide"
    LESSON_PLAN = "lesson_plan"
    REFERENCE_MATERIAL = "reference_material"
    TRANSCRIPT = "transcript"


DEFAULT_TEACHING_STYLES: tuple[str, ...] = (TeachingStyle.HYBRID.value,)
DEFAULT_HOMEWORK_POLICIES: tuple[str, ...] = (HomeworkPolicy.GUIDE.value,)
DEFAULT_RESPONSE_TYPES: tuple[str, ...] = (ResponseType.DETAILED.value,)
DEFAULT_STATE_ALIGNMENT = "California"


@dataclass
class Circuit:
    """A teacher-configured tutoring unit scoped to one subject and grade.

    Setting collections are stored as lists of tag strings in canonical
    order; tags unknown to this version are kept as-is and ignored by the
    mapper.
    """

    name: str
    grade: str
    owner: str
    teaching_styles: list[str] = field(default_factory=lambda: list(DEFAULT_TEACHING_STYLES))
    homework_policies: list[str] = field(default_factory=lambda: list(DEFAULT_HOMEWORK_POLICIES))
    response_types: list[str] = field(default_factory=lambda: list(DEFAULT_RESPONSE_TYPES))
    state_alignment: str = DEFAULT_STATE_ALIGNMENT
    description: str = ""
    code: str = ""
    archived: bool = False
    created_at: str | None = None
    id: int | None = None  # set after insert

    @property
    def grade_label(self) -> str:
        return grade_label(self.grade)


@dataclass
class ContentItem:
    """One ingested knowledge-base artifact (document or transcript)."""

    circuit_id: int
    title: str
    kind: str
    content: str = ""
    description: str = ""
    category: str = Category.REFERENCE_MATERIAL.value
    content_url: str = ""
    archived: bool = False
    created_at: str | None = None
    id: int | None = None  # set after insert


def grade_label(grade: str) -> str:
    """``"K"`` → ``"Kindergarten"``; anything else → ``"Grade {n}"``."""
    return "Kindergarten" if grade == "K" else f"Grade {grade}"
