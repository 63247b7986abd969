"""Plain text extractor — uploaded bytes decoded verbatim."""

from __future__ import annotations

from circuitry.ingest.base import BaseExtractor


class PlainTextExtractor(BaseExtractor):
    """Decode a ``.txt`` upload as UTF-8.

    A leading BOM is dropped and undecodable bytes are replaced, so this
    extractor never degrades.
    """

    def extract(self, data: bytes, filename: str) -> str:
        return data.decode("utf-8-sig", errors="replace")
