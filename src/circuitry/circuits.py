"""Circuit management — creation, reconfiguration and lifecycle.

Validation happens here, before anything reaches the repository: names and
state alignment are required, grade must be one of the 13 bands, and every
setting collection must hold at least one known tag.
"""

from __future__ import annotations

import secrets
from collections.abc import Iterable
from enum import Enum
from pathlib import Path

import structlog

from circuitry.db.models import (
    DEFAULT_HOMEWORK_POLICIES,
    DEFAULT_RESPONSE_TYPES,
    DEFAULT_STATE_ALIGNMENT,
    DEFAULT_TEACHING_STYLES,
    GRADES,
    MAX_DESCRIPTION_CHARS,
    Circuit,
    HomeworkPolicy,
    ResponseType,
    TeachingStyle,
)
from circuitry.db.repository import Repository
from circuitry.errors import CircuitNotFound, ValidationError

logger = structlog.get_logger(__name__)

# Join codes avoid look-alike characters (0/O, 1/I).
_CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
_CODE_LENGTH = 8
_CODE_ATTEMPTS = 5


def create_circuit(
    repo: Repository,
    *,
    name: str,
    owner: str,
    grade: str = "K",
    description: str = "",
    teaching_styles: Iterable[str] | None = None,
    homework_policies: Iterable[str] | None = None,
    response_types: Iterable[str] | None = None,
    state_alignment: str | None = None,
) -> Circuit:
    """Validate and persist a new circuit with a fresh join code.

    Collections left as None fall back to the defaults (hybrid / guide /
    detailed / California).

    Raises:
        ValidationError: On a missing name, bad grade or bad settings.
    """
    circuit = Circuit(
        name=_require_text(name, "Circuit name"),
        owner=_require_text(owner, "Owner"),
        grade=validate_grade(grade),
        description=_validate_description(description),
        teaching_styles=_validate_tags(
            DEFAULT_TEACHING_STYLES if teaching_styles is None else teaching_styles,
            TeachingStyle,
            "teaching style",
        ),
        homework_policies=_validate_tags(
            DEFAULT_HOMEWORK_POLICIES if homework_policies is None else homework_policies,
            HomeworkPolicy,
            "homework policy",
        ),
        response_types=_validate_tags(
            DEFAULT_RESPONSE_TYPES if response_types is None else response_types,
            ResponseType,
            "response type",
        ),
        state_alignment=_require_text(
            DEFAULT_STATE_ALIGNMENT if state_alignment is None else state_alignment,
            "State alignment",
        ),
        code=_unique_code(repo),
    )
    saved = repo.add_circuit(circuit)
    logger.info("circuit_created", circuit_id=saved.id, code=saved.code, grade=saved.grade)
    return saved


def get_circuit(repo: Repository, circuit_id: int) -> Circuit:
    """Return the circuit or raise CircuitNotFound."""
    circuit = repo.get_circuit(circuit_id)
    if circuit is None:
        raise CircuitNotFound(circuit_id)
    return circuit


def resolve_circuit(repo: Repository, ref: str) -> Circuit:
    """Look a circuit up by numeric id or by join code.

    Raises:
        CircuitNotFound: If neither matches.
    """
    ref = ref.strip()
    if ref.isdigit():
        circuit = repo.get_circuit(int(ref))
        if circuit is not None:
            return circuit
    circuit = repo.get_circuit_by_code(ref)
    if circuit is None:
        raise CircuitNotFound(ref)
    return circuit


def configure_circuit(
    repo: Repository,
    circuit_id: int,
    *,
    name: str | None = None,
    grade: str | None = None,
    description: str | None = None,
    teaching_styles: Iterable[str] | None = None,
    homework_policies: Iterable[str] | None = None,
    response_types: Iterable[str] | None = None,
    state_alignment: str | None = None,
) -> Circuit:
    """Replace any subset of a circuit's settings. None leaves a field unchanged.

    Changes apply to the very next composed prompt; nothing is cached.
    """
    circuit = get_circuit(repo, circuit_id)
    if name is not None:
        circuit.name = _require_text(name, "Circuit name")
    if grade is not None:
        circuit.grade = validate_grade(grade)
    if description is not None:
        circuit.description = _validate_description(description)
    if teaching_styles is not None:
        circuit.teaching_styles = _validate_tags(teaching_styles, TeachingStyle, "teaching style")
    if homework_policies is not None:
        circuit.homework_policies = _validate_tags(
            homework_policies, HomeworkPolicy, "homework policy"
        )
    if response_types is not None:
        circuit.response_types = _validate_tags(response_types, ResponseType, "response type")
    if state_alignment is not None:
        circuit.state_alignment = _require_text(state_alignment, "State alignment")
    updated = repo.update_circuit(circuit)
    logger.info("circuit_configured", circuit_id=updated.id)
    return updated


def archive_circuit(repo: Repository, circuit_id: int) -> Circuit:
    return repo.set_circuit_archived(circuit_id, True)


def unarchive_circuit(repo: Repository, circuit_id: int) -> Circuit:
    return repo.set_circuit_archived(circuit_id, False)


def delete_circuit(repo: Repository, circuit_id: int) -> Circuit:
    """Delete a circuit, its content items and their stored upload files."""
    stored = [
        item.content_url
        for item in repo.list_content(circuit_id, include_archived=True)
        if item.content_url
    ]
    deleted = repo.delete_circuit(circuit_id)
    for content_url in stored:
        try:
            Path(content_url).unlink(missing_ok=True)
        except OSError as exc:
            logger.warning("upload_unlink_failed", path=content_url, error=str(exc))
    logger.info("circuit_deleted", circuit_id=circuit_id, files_removed=len(stored))
    return deleted


# ------------------------------------------------------------------
# Validation helpers
# ------------------------------------------------------------------


def _require_text(value: str | None, label: str) -> str:
    text = (value or "").strip()
    if not text:
        raise ValidationError(f"{label} is required")
    return text


def validate_grade(grade: str | None) -> str:
    """Normalise *grade* to one of GRADES (``"k"`` → ``"K"``); raise ValidationError otherwise."""
    value = str(grade or "").strip().upper()
    if value not in GRADES:
        raise ValidationError(
            f"Invalid grade level {grade!r}. Use one of: {', '.join(GRADES)}"
        )
    return value


def _validate_description(description: str | None) -> str:
    text = (description or "").strip()
    if len(text) > MAX_DESCRIPTION_CHARS:
        raise ValidationError(
            f"Description must not exceed {MAX_DESCRIPTION_CHARS} characters"
        )
    return text


def _validate_tags(tags: Iterable[str], vocabulary: type[Enum], label: str) -> list[str]:
    """Return *tags* deduplicated in canonical (declaration) order.

    Raises:
        ValidationError: If *tags* is empty or contains an unknown tag.
    """
    given = {str(t).strip().lower() for t in tags if str(t).strip()}
    known = [member.value for member in vocabulary]
    unknown = sorted(given - set(known))
    if unknown:
        raise ValidationError(
            f"Unknown {label} {', '.join(repr(u) for u in unknown)}. "
            f"Use one of: {', '.join(known)}"
        )
    if not given:
        raise ValidationError(f"At least one {label} is required")
    return [tag for tag in known if tag in given]


def _unique_code(repo: Repository) -> str:
    for _ in range(_CODE_ATTEMPTS):
        code = "".join(secrets.choice(_CODE_ALPHABET) for _ in range(_CODE_LENGTH))
        if repo.get_circuit_by_code(code) is None:
            return code
    raise RuntimeError("Could not generate a unique circuit code")
