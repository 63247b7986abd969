"""Office documents (.doc/.docx/.ppt/.pptx) — stored, not extracted."""

from __future__ import annotations

from circuitry.errors import ExtractionDegraded
from circuitry.ingest.base import BaseExtractor


class OfficeExtractor(BaseExtractor):
    """Accept Word and PowerPoint uploads as attachments with an empty body."""

    def extract(self, data: bytes, filename: str) -> str:
        raise ExtractionDegraded(f"No text extractor for office document '{filename}'")
