"""Content ingestion — uploads and class recordings into the Content Store.

Failure policy:
  - documents: extraction problems degrade to an empty body; the upload
    still succeeds and the binary stays available as an attachment.
  - recordings: a failed transcription aborts the request and nothing is
    persisted.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from pathlib import Path, PurePath

import structlog

from circuitry.db.models import Category, ContentItem
from circuitry.db.repository import Repository
from circuitry.errors import CircuitNotFound, ValidationError
from circuitry.ingest.audio import Transcriber
from circuitry.ingest.base import FileKind
from circuitry.ingest.documents import DocumentExtractor

logger = structlog.get_logger(__name__)

_DEFAULT_MAX_UPLOAD_BYTES = 10 * 1024 * 1024


@dataclass
class UploadResult:
    item: ContentItem
    degraded: bool = False
    reason: str = ""


def upload_document(
    repo: Repository,
    circuit_id: int,
    filename: str,
    data: bytes,
    *,
    title: str | None = None,
    description: str = "",
    category: str = Category.REFERENCE_MATERIAL.value,
    extractor: DocumentExtractor | None = None,
    uploads_dir: Path | None = None,
    max_bytes: int = _DEFAULT_MAX_UPLOAD_BYTES,
) -> UploadResult:
    """Store an uploaded document and its extracted text.

    Args:
        repo: Content Store.
        circuit_id: Owning circuit.
        filename: Original file name; its extension selects the FileKind.
        data: Raw file bytes.
        title: Display title; defaults to *filename*.
        description: Optional description, used as excerpt fallback.
        category: One of the Category values.
        extractor: Document extractor (default: DocumentExtractor()).
        uploads_dir: If given, the binary is copied here and its path stored
            as ``content_url``.
        max_bytes: Largest accepted upload.

    Returns:
        UploadResult with the stored item and whether extraction degraded.

    Raises:
        ValidationError: Unsupported extension, oversize file, bad category
            or empty title.
        CircuitNotFound: Unknown circuit.
    """
    kind = FileKind.from_filename(filename)
    if len(data) > max_bytes:
        raise ValidationError(
            f"File '{filename}' exceeds the {max_bytes / (1024 * 1024):.0f} MB upload limit"
        )
    category = _validate_category(category)
    resolved_title = (title or "").strip() or PurePath(filename).name
    if not resolved_title:
        raise ValidationError("Content title is required")
    if repo.get_circuit(circuit_id) is None:
        raise CircuitNotFound(circuit_id)

    result = (extractor or DocumentExtractor()).extract(kind, data, filename)

    content_url = ""
    if uploads_dir is not None:
        content_url = str(_store_binary(uploads_dir, filename, data))

    item = repo.append(
        ContentItem(
            circuit_id=circuit_id,
            title=resolved_title,
            description=(description or "").strip(),
            kind=kind.value,
            category=category,
            content=result.text,
            content_url=content_url,
        )
    )
    logger.info(
        "content_appended",
        circuit_id=circuit_id,
        content_id=item.id,
        kind=kind.value,
        chars=len(item.content),
        degraded=result.degraded,
    )
    return UploadResult(item=item, degraded=result.degraded, reason=result.reason)


def record_transcript(
    repo: Repository,
    circuit_id: int,
    audio: bytes,
    mime_type: str,
    transcriber: Transcriber,
) -> ContentItem:
    """Transcribe a class recording and store it as a transcript item.

    Raises:
        CircuitNotFound: Unknown circuit (checked before the upstream call).
        ValidationError: Bad audio input.
        TranscriptionFailed: Speech-to-text failed; nothing was persisted.
    """
    if repo.get_circuit(circuit_id) is None:
        raise CircuitNotFound(circuit_id)

    transcript = transcriber.transcribe(audio, mime_type)

    item = repo.append(
        ContentItem(
            circuit_id=circuit_id,
            title=transcript.title,
            description=transcript.description,
            kind=FileKind.TRANSCRIPT.value,
            category=Category.TRANSCRIPT.value,
            content=transcript.text,
        )
    )
    logger.info(
        "content_appended",
        circuit_id=circuit_id,
        content_id=item.id,
        kind=FileKind.TRANSCRIPT.value,
        chars=len(item.content),
        degraded=False,
    )
    return item


def list_content(
    repo: Repository, circuit_id: int, include_archived: bool = False
) -> list[ContentItem]:
    if repo.get_circuit(circuit_id) is None:
        raise CircuitNotFound(circuit_id)
    return repo.list_content(circuit_id, include_archived=include_archived)


def archive_content(repo: Repository, content_id: int) -> ContentItem:
    """Archive an item; it drops out of the next composed prompt."""
    item = repo.archive(content_id)
    logger.info("content_archived", circuit_id=item.circuit_id, content_id=content_id)
    return item


def _validate_category(category: str) -> str:
    value = (category or "").strip().lower()
    allowed = [c.value for c in Category]
    if value not in allowed:
        raise ValidationError(
            f"Unknown category {category!r}. Use one of: {', '.join(allowed)}"
        )
    return value


def _store_binary(uploads_dir: Path, filename: str, data: bytes) -> Path:
    """Write *data* under a collision-free name and return the path."""
    uploads_dir.mkdir(parents=True, exist_ok=True)
    target = uploads_dir / f"{uuid.uuid4().hex}{PurePath(filename).suffix.lower()}"
    target.write_bytes(data)
    return target
