"""Document ingestion: extraction, cleaning, language detection and chunking."""

from docwindow.ingest.chunker import AdaptiveChunker, chunk_document
from docwindow.ingest.extractors import BaseExtractor, PdfExtractor, PlainTextExtractor
from docwindow.ingest.models import ExtractedDocument, PageText, RetrievalChunk
from docwindow.ingest.pipeline import FileResult, IngestPipeline, IngestReport

__all__ = [
    "AdaptiveChunker",
    "chunk_document",
    "BaseExtractor",
    "PdfExtractor",
    "PlainTextExtractor",
    "ExtractedDocument",
    "PageText",
    "RetrievalChunk",
    "FileResult",
    "IngestPipeline",
    "IngestReport",
]
