"""Document extraction dispatch — one extractor per FileKind.

  .txt              → PlainTextExtractor (verbatim)
  .pdf              → PdfExtractor (pypdf; soft failure)
  .doc .docx        → OfficeExtractor (stored, empty body)
  .ppt .pptx        → OfficeExtractor (stored, empty body)
  transcript        → not an upload kind

Degradation never raises past this module: the caller gets an empty,
degraded ExtractionResult and the reason is logged.
"""

from __future__ import annotations

from typing import assert_never

import structlog

from circuitry.errors import ExtractionDegraded
from circuitry.ingest.base import BaseExtractor, ExtractionResult, FileKind
from circuitry.ingest.office import OfficeExtractor
from circuitry.ingest.pdf import PdfExtractor
from circuitry.ingest.plaintext import PlainTextExtractor

logger = structlog.get_logger(__name__)


class DocumentExtractor:
    """Turn an uploaded binary into plain text according to its FileKind."""

    def __init__(
        self,
        plaintext: BaseExtractor | None = None,
        pdf: BaseExtractor | None = None,
        office: BaseExtractor | None = None,
    ) -> None:
        self.plaintext = plaintext or PlainTextExtractor()
        self.pdf = pdf or PdfExtractor()
        self.office = office or OfficeExtractor()

    def extractor_for(self, kind: FileKind) -> BaseExtractor:
        """Return the extractor responsible for *kind*.

        Raises:
            ValueError: For FileKind.TRANSCRIPT, which is never uploaded.
        """
        match kind:
            case FileKind.TXT:
                return self.plaintext
            case FileKind.PDF:
                return self.pdf
            case FileKind.DOCX | FileKind.PPTX:
                return self.office
            case FileKind.TRANSCRIPT:
                raise ValueError("Transcripts are produced by the Transcriber, not uploaded.")
            case _:
                assert_never(kind)

    def extract(self, kind: FileKind, data: bytes, filename: str) -> ExtractionResult:
        """Extract text from *data*; degrade to an empty body on failure."""
        extractor = self.extractor_for(kind)
        try:
            text = extractor.extract(data, filename)
        except ExtractionDegraded as exc:
            logger.warning(
                "document_extraction_degraded",
                filename=filename,
                kind=kind.value,
                reason=str(exc),
            )
            return ExtractionResult(text="", degraded=True, reason=str(exc))
        return ExtractionResult(text=text)
