"""Ingest pipeline: extract → chunk → hand chunks to a sink in small batches.

Extractor dispatch by extension:
  .pdf                 → PdfExtractor
  .txt .md .text       → PlainTextExtractor

A failure on one file (unsupported type, unreadable or empty document) is
recorded in its ``FileResult`` and the remaining files are still processed.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol

from docwindow.errors import ExtractionError
from docwindow.ingest.chunker import AdaptiveChunker
from docwindow.ingest.extractors import BaseExtractor, default_extractors
from docwindow.ingest.models import RetrievalChunk
from docwindow.observability import get_logger

logger = get_logger(__name__)

SINK_BATCH_SIZE = 5


class ChunkSink(Protocol):
    """Destination for emitted chunks (e.g. a vector store writer)."""

    def accept(self, chunks: Sequence[RetrievalChunk]) -> None: ...


@dataclass
class FileResult:
    """Outcome of ingesting a single file."""

    path: str
    ok: bool
    language: str | None = None
    pages: int = 0
    chunks: list[RetrievalChunk] = field(default_factory=list)
    error: str | None = None

    @property
    def chunk_count(self) -> int:
        return len(self.chunks)

    @property
    def token_estimate(self) -> int:
        return sum(c.token_estimate for c in self.chunks)


@dataclass
class IngestReport:
    files: list[FileResult] = field(default_factory=list)

    @property
    def succeeded(self) -> list[FileResult]:
        return [f for f in self.files if f.ok]

    @property
    def failed(self) -> list[FileResult]:
        return [f for f in self.files if not f.ok]

    @property
    def total_chunks(self) -> int:
        return sum(f.chunk_count for f in self.files)

    @property
    def total_tokens(self) -> int:
        return sum(f.token_estimate for f in self.files)


class IngestPipeline:
    """Run files through extraction and chunking.

    Args:
        extractors: Candidates tried in order; the first whose ``supports()``
            accepts the path is used. Defaults to PDF + plain text.
        chunker: Chunker applied to each extracted document.
        sink: Optional receiver; chunks are delivered in batches of
            ``SINK_BATCH_SIZE``.
    """

    def __init__(
        self,
        extractors: Sequence[BaseExtractor] | None = None,
        chunker: AdaptiveChunker | None = None,
        sink: ChunkSink | None = None,
    ) -> None:
        self._extractors = list(extractors) if extractors is not None else default_extractors()
        self._chunker = chunker or AdaptiveChunker()
        self._sink = sink

    def extractor_for(self, path: Path) -> BaseExtractor | None:
        for extractor in self._extractors:
            if extractor.supports(path):
                return extractor
        return None

    def ingest(self, paths: Iterable[str | Path]) -> IngestReport:
        report = IngestReport()
        for raw in paths:
            report.files.append(self.ingest_file(Path(raw)))
        logger.info(
            "ingest_finished",
            files=len(report.files),
            failed=len(report.failed),
            chunks=report.total_chunks,
        )
        return report

    def ingest_file(self, path: Path) -> FileResult:
        """Extract and chunk one file; errors are captured, not raised."""
        extractor = self.extractor_for(path)
        if extractor is None:
            logger.warning("ingest_unsupported", path=str(path), suffix=path.suffix)
            return FileResult(
                path=str(path), ok=False, error=f"Unsupported file type: {path.suffix!r}"
            )

        try:
            document = extractor.extract(path)
            if document.is_empty:
                raise ExtractionError(str(path), "no extractable text")
        except ExtractionError as exc:
            logger.warning("ingest_failed", path=str(path), reason=exc.reason)
            return FileResult(path=str(path), ok=False, error=str(exc))

        chunks = self._chunker.chunk(document)
        self._deliver(chunks)
        return FileResult(
            path=str(path),
            ok=True,
            language=document.language,
            pages=len(document.pages),
            chunks=chunks,
        )

    def _deliver(self, chunks: list[RetrievalChunk]) -> None:
        if self._sink is None:
            return
        for start in range(0, len(chunks), SINK_BATCH_SIZE):
            self._sink.accept(chunks[start : start + SINK_BATCH_SIZE])
