"""File kinds and the base extractor interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from pathlib import PurePath

from circuitry.errors import ValidationError


class FileKind(str, Enum):
    """Declared media kind of a content item.

    Uploads map onto the first four kinds by extension; TRANSCRIPT is only
    produced by the transcriber.
    """

    TXT = "txt"
    PDF = "pdf"
    DOCX = "docx"
    PPTX = "pptx"
    TRANSCRIPT = "transcript"

    @classmethod
    def from_filename(cls, filename: str) -> FileKind:
        """Resolve an upload's kind from its extension (case-insensitive).

        Raises:
            ValidationError: For extensions outside the accepted set.
        """
        ext = PurePath(filename).suffix.lower()
        try:
            return _EXTENSION_KINDS[ext]
        except KeyError:
            raise ValidationError(
                f"Unsupported file type '{ext or filename}'. "
                f"Supported: {', '.join(sorted(_EXTENSION_KINDS))}"
            ) from None


_EXTENSION_KINDS: dict[str, FileKind] = {
    ".txt": FileKind.TXT,
    ".pdf": FileKind.PDF,
    ".doc": FileKind.DOCX,
    ".docx": FileKind.DOCX,
    ".ppt": FileKind.PPTX,
    ".pptx": FileKind.PPTX,
}

SUPPORTED_EXTENSIONS: frozenset[str] = frozenset(_EXTENSION_KINDS)


@dataclass
class ExtractionResult:
    """Extracted text plus whether extraction degraded to an empty body."""

    text: str
    degraded: bool = False
    reason: str = ""


class BaseExtractor(ABC):
    """Abstract base for all document text extractors.

    Implementations return plain text. They raise ExtractionDegraded when the
    binary cannot be turned into text; the dispatcher converts that into an
    empty, degraded result.
    """

    @abstractmethod
    def extract(self, data: bytes, filename: str) -> str:
        """Return the plain text of *data*.

        Args:
            data: Raw uploaded bytes.
            filename: Original file name (used for metadata / error messages).
        """
