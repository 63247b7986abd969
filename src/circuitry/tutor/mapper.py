"""Configuration mapper: pedagogical settings → directive sentences.

Pure and total. Each known tag yields one clause from a fixed table; unknown
tags are dropped so that rows written by a newer schema still compose. Clauses
are emitted in canonical tag order, never input order, so the same set of
tags always produces the same sentence.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field

from circuitry.db.models import Circuit, grade_label

# Dict order is the canonical clause order.
TEACHING_STYLE_CLAUSES: dict[str, str] = {
    "authority": "direct and structured instruction",
    "demonstrator": "demonstration and guided practice",
    "facilitator": "guided inquiry and discussion",
    "delegator": "independent learning and group work",
    "hybrid": "flexible combination of teaching methods",
}

HOMEWORK_POLICY_CLAUSES: dict[str, str] = {
    "guide": "provide guidance without direct solutions",
    "verify": "verify and confirm answer correctness",
    "examples": "offer relevant examples",
    "no_solutions": "encourage independent problem-solving",
}

RESPONSE_TYPE_CLAUSES: dict[str, str] = {
    "detailed": "provide comprehensive explanations",
    "concise": "give brief, focused answers",
    "step_by_step": "break down concepts into clear steps",
    "conceptual": "emphasize underlying principles",
}


@dataclass
class Directives:
    """Mapped settings for one circuit.

    Attributes:
        grade_label: "Kindergarten" or "Grade {n}".
        preamble: Fixed opening sentence naming grade and subject.
        teaching: Joined teaching-style clauses ("" if none mapped).
        homework: Joined homework-policy clauses ("" if none mapped).
        response: Joined response-type clauses ("" if none mapped).
        state: Stripped state standard ("" if blank).
    """

    grade_label: str
    preamble: str
    teaching: str = ""
    homework: str = ""
    response: str = ""
    state: str = ""
    directives: list[str] = field(default_factory=list)

    @property
    def sentences(self) -> list[str]:
        """Preamble followed by one sentence per non-empty collection."""
        return [self.preamble, *self.directives]


def map_clauses(tags: Iterable[str], table: dict[str, str]) -> list[str]:
    """Return the clauses for *tags* in *table* order, dropping unknown tags."""
    present = {str(t).strip().lower() for t in tags}
    return [clause for tag, clause in table.items() if tag in present]


def map_settings(
    *,
    subject: str,
    grade: str,
    teaching_styles: Iterable[str] = (),
    homework_policies: Iterable[str] = (),
    response_types: Iterable[str] = (),
    state_alignment: str = "",
) -> Directives:
    """Translate settings into directive sentences. Never raises."""
    label = grade_label(str(grade))
    teaching = ", ".join(map_clauses(teaching_styles, TEACHING_STYLE_CLAUSES))
    homework = ", ".join(map_clauses(homework_policies, HOMEWORK_POLICY_CLAUSES))
    response = ", ".join(map_clauses(response_types, RESPONSE_TYPE_CLAUSES))
    state = (state_alignment or "").strip()

    directives: list[str] = []
    if teaching:
        directives.append(f"Teaching Approach: Utilize {teaching}.")
    if homework:
        directives.append(f"Homework Guidance: {homework}.")
    if response:
        directives.append(f"Communication Style: {response}.")
    if state:
        directives.append(f"State Alignment: Follow {state} educational standards.")

    return Directives(
        grade_label=label,
        preamble=(
            f"You are an educational AI assistant for {label} students, "
            f"specializing in {subject}."
        ),
        teaching=teaching,
        homework=homework,
        response=response,
        state=state,
        directives=directives,
    )


def map_circuit(circuit: Circuit) -> Directives:
    return map_settings(
        subject=circuit.name,
        grade=circuit.grade,
        teaching_styles=circuit.teaching_styles,
        homework_policies=circuit.homework_policies,
        response_types=circuit.response_types,
        state_alignment=circuit.state_alignment,
    )


def directive_sentences(circuit: Circuit) -> list[str]:
    """Ordered sentences for *circuit*: preamble first, then one per collection."""
    return map_circuit(circuit).sentences
