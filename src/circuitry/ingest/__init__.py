"""Circuitry ingest pipeline — document extractors, transcriber, content service."""

from circuitry.ingest.audio import Transcriber, Transcript
from circuitry.ingest.base import BaseExtractor, ExtractionResult, FileKind
from circuitry.ingest.documents import DocumentExtractor
from circuitry.ingest.office import OfficeExtractor
from circuitry.ingest.pdf import PdfExtractor
from circuitry.ingest.plaintext import PlainTextExtractor

__all__ = [
    "BaseExtractor",
    "DocumentExtractor",
    "ExtractionResult",
    "FileKind",
    "OfficeExtractor",
    "PdfExtractor",
    "PlainTextExtractor",
    "Transcriber",
    "Transcript",
]
