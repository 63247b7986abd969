"""PDF extractor — page-based text extraction via pypdf."""

from __future__ import annotations

import io

import pypdf

from circuitry.errors import ExtractionDegraded
from circuitry.ingest.base import BaseExtractor


class PdfExtractor(BaseExtractor):
    """Extract the text layer of a PDF upload using pypdf.

    Strategy:
    - Read the document from memory with ``pypdf.PdfReader``.
    - Extract text page-by-page; pages that yield no text (scanned images,
      etc.) are silently skipped.
    - Join the remaining pages with a blank line.

    Any failure to read the document, including encrypted or malformed files,
    is reported as ExtractionDegraded so the upload itself still succeeds.
    """

    def extract(self, data: bytes, filename: str) -> str:
        try:
            reader = pypdf.PdfReader(io.BytesIO(data))
            parts: list[str] = []
            for page in reader.pages:
                page_text = page.extract_text() or ""
                stripped = page_text.strip()
                if stripped:
                    parts.append(stripped)
        except Exception as exc:
            raise ExtractionDegraded(f"Could not read PDF '{filename}': {exc}") from exc
        return "\n\n".join(parts)
