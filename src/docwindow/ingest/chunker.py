"""Adaptive semantic chunker: structure-aware, bounded, citation-framed chunks.

Strategy:
- Join the document's pages with blank lines and detect *sections*: text is
  split on blank-line boundaries and a new section starts at anything that
  looks like a header (trailing colon, numbered prefix, short first line
  followed by more text, or an all-caps English line). A section is also
  closed once it reaches the target size.
- Pack sections into chunks by size:
    * below ``min_tokens``      → accumulate in a pending buffer;
    * ``min..max`` (inclusive)  → flush the pending buffer, then emit on its own;
    * above ``max_tokens``      → split at paragraph, then line, then
      sentence boundaries (fixed window as a last resort) targeting
      ``target_tokens``.
- Every chunk after the first starts with up to ``overlap_tokens`` of
  trailing context from the previous chunk (cut at a sentence boundary when
  one falls inside the overlap window), unless the prefixed chunk would
  exceed ``max_tokens``.
- Page numbers are a proportional approximation: characters consumed so far
  divided by the average page length. Chunks near page boundaries can be
  attributed to the neighbouring page.

Token counting uses a fixed chars-per-token ratio (default 4) regardless of
language; no tokenizer dependency is required.
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from dataclasses import dataclass, field

from docwindow.config import ChunkingCfg
from docwindow.ingest.language import detect_language
from docwindow.ingest.models import (
    ExtractedDocument,
    PageText,
    RetrievalChunk,
    Section,
    SectionType,
)
from docwindow.observability import get_logger

logger = get_logger(__name__)

# Downstream citation display parses this header verbatim.
SOURCE_FRAME = "[SOURCE: {filename}, PAGE: {page}]\n\n{text}"

_PART_SPLIT_RE = re.compile(r"(?=\n\n)")
_NUMBERED_RE = re.compile(r"\d+(?:\.\d+)*\.?\s+")
_SENTENCE_END_RE = re.compile(r"[.!?]\s+")
_RTL_MARK = "\u200f"

# Boundaries tried, in order, when a section is too large to emit whole.
_SPLIT_LEVELS: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(r"\n\s*\n+"), "\n\n"),
    (re.compile(r"\n"), "\n"),
    (re.compile(r"(?<=[.!?])\s+"), " "),
)


@dataclass(frozen=True)
class _Layout:
    """Per-document constants needed to frame and attribute chunks."""

    filename: str
    language: str
    page_numbers: tuple[int, ...]
    avg_chars_per_page: int

    def page_for(self, consumed: int) -> int:
        ordinal = min(1 + consumed // self.avg_chars_per_page, len(self.page_numbers))
        return self.page_numbers[ordinal - 1]


@dataclass
class _PackState:
    """Fold state over the section sequence."""

    pending: str = ""
    overlap: str = ""
    consumed: int = 0
    chunks: list[RetrievalChunk] = field(default_factory=list)


class AdaptiveChunker:
    """Split extracted page text into ordered, citation-framed retrieval chunks.

    Args:
        config: Size bounds in estimated tokens. Defaults to 256 / 384 / 512
            with a 100-token overlap.
    """

    def __init__(self, config: ChunkingCfg | None = None) -> None:
        self.config = config or ChunkingCfg()
        cfg = self.config
        if not 0 < cfg.min_tokens <= cfg.target_tokens <= cfg.max_tokens:
            raise ValueError("expected 0 < min_tokens <= target_tokens <= max_tokens")
        if not 0 <= cfg.overlap_tokens < cfg.max_tokens:
            raise ValueError("overlap_tokens must be in [0, max_tokens)")

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def estimate_tokens(self, text: str) -> int:
        return len(text) // self.config.chars_per_token

    def chunk(self, document: ExtractedDocument) -> list[RetrievalChunk]:
        """Chunk an ``ExtractedDocument`` (see ``chunk_document``)."""
        return self.chunk_document(document.pages, document.filename, document.language)

    def chunk_document(
        self,
        pages: Sequence[PageText],
        filename: str,
        language: str | None = None,
    ) -> list[RetrievalChunk]:
        """Turn ordered page text into ordered retrieval chunks.

        Args:
            pages: Pages in reading order, with their real page numbers.
            filename: Source name shown in the citation header.
            language: Two-letter code; detected from the text when omitted.

        Returns:
            Chunks with contiguous ``index`` values and non-decreasing
            ``page_number``. Empty input yields an empty list.
        """
        pages = [p for p in pages if p.text.strip()]
        if not pages:
            return []

        full_text = "\n\n".join(p.text for p in pages)
        language = language or detect_language(full_text)
        layout = _Layout(
            filename=filename,
            language=language,
            page_numbers=tuple(p.page_number for p in pages),
            avg_chars_per_page=max(len(full_text) // len(pages), 1),
        )

        sections = self.detect_sections(full_text, language)
        state = _PackState()
        for section in sections:
            self._fold(state, section, layout)

        # A tiny trailing remainder is dropped rather than emitted degenerate.
        if len(state.pending) > self.config.min_tokens // self.config.chars_per_token:
            self._emit(state, state.pending, layout)
        state.pending = ""

        logger.info(
            "document_chunked",
            filename=filename,
            language=language,
            pages=len(pages),
            chars=len(full_text),
            sections=len(sections),
            chunks=len(state.chunks),
        )
        return state.chunks

    # ------------------------------------------------------------------
    # Section detection
    # ------------------------------------------------------------------

    def detect_sections(self, text: str, language: str) -> list[Section]:
        """Group blank-line separated parts of *text* into sections."""
        cfg = self.config
        flush_chars = cfg.min_tokens // cfg.chars_per_token
        sections: list[Section] = []
        current = ""
        kind = SectionType.PARAGRAPH

        for part in _PART_SPLIT_RE.split(text):
            trimmed = part.strip()
            if not trimmed:
                continue

            if self.is_header(trimmed, language):
                if len(current) > flush_chars:
                    sections.append(Section(current.strip(), kind))
                    current = ""
                kind = SectionType.HEADER

            current += part

            if self.estimate_tokens(current) >= cfg.target_tokens:
                sections.append(Section(current.strip(), kind))
                current = ""
                kind = SectionType.PARAGRAPH

        if current.strip():
            sections.append(Section(current.strip(), kind))
        return sections

    @staticmethod
    def is_header(text: str, language: str) -> bool:
        """Return True if the first line of *text* looks like a section header."""
        lines = text.split("\n")
        first = lines[0].strip()

        if first.endswith(":") or first.endswith(":" + _RTL_MARK):
            return True
        if _NUMBERED_RE.match(first):
            return True
        if len(first) < 80 and len(lines) > 1:
            return True
        return language == "en" and first.isupper() and len(first) < 100

    # ------------------------------------------------------------------
    # Packing
    # ------------------------------------------------------------------

    def _fold(self, state: _PackState, section: Section, layout: _Layout) -> None:
        cfg = self.config
        tokens = self.estimate_tokens(section.content)

        if tokens < cfg.min_tokens:
            if state.pending and (
                self.estimate_tokens(state.pending + section.content) > cfg.max_tokens
            ):
                self._flush_pending(state, layout)
            state.pending += section.content + "\n\n"

        elif tokens <= cfg.max_tokens:
            self._flush_pending(state, layout)
            self._emit(state, section.content, layout)

        else:
            self._flush_pending(state, layout)
            for piece in self.split_large_section(section.content):
                self._emit(state, piece, layout)

        if self.estimate_tokens(state.pending) >= cfg.target_tokens:
            self._flush_pending(state, layout)

    def _flush_pending(self, state: _PackState, layout: _Layout) -> None:
        if state.pending:
            self._emit(state, state.pending, layout)
            state.pending = ""

    def _emit(self, state: _PackState, body: str, layout: _Layout) -> None:
        """Frame *body* as the next chunk and advance the fold state.

        The carried overlap is prefixed only when the result still fits
        ``max_tokens``; otherwise the chunk stands alone.
        """
        page = layout.page_for(state.consumed)
        text = body.strip()
        if state.overlap and text:
            joined = f"{state.overlap}\n\n{text}"
            if self.estimate_tokens(joined) <= self.config.max_tokens:
                text = joined

        state.consumed += len(body)
        state.overlap = self.extract_overlap(body.strip())

        if not text:
            return

        chunk = RetrievalChunk(
            content=SOURCE_FRAME.format(filename=layout.filename, page=page, text=text),
            source_file=layout.filename,
            page_number=page,
            language=layout.language,
            index=len(state.chunks),
            token_estimate=self.estimate_tokens(text),
        )
        state.chunks.append(chunk)
        logger.debug(
            "chunk_emitted", index=chunk.index, tokens=chunk.token_estimate, page=page
        )

    # ------------------------------------------------------------------
    # Splitting and overlap
    # ------------------------------------------------------------------

    def split_large_section(self, text: str, level: int = 0) -> list[str]:
        """Split *text* into pieces of at most ``target_tokens``.

        Paragraph boundaries are preferred; a paragraph that is still too
        large is split by lines, then sentences, then a fixed window.
        """
        target = self.config.target_tokens
        if self.estimate_tokens(text) <= target:
            stripped = text.strip()
            return [stripped] if stripped else []
        if level >= len(_SPLIT_LEVELS):
            return self._split_fixed_window(text)

        pattern, sep = _SPLIT_LEVELS[level]
        pieces: list[str] = []
        current = ""
        for unit in (u.strip() for u in pattern.split(text)):
            if not unit:
                continue
            if self.estimate_tokens(unit) > target:
                if current:
                    pieces.append(current)
                    current = ""
                pieces.extend(self.split_large_section(unit, level + 1))
                continue
            candidate = f"{current}{sep}{unit}" if current else unit
            if current and self.estimate_tokens(candidate) > target:
                pieces.append(current)
                current = unit
            else:
                current = candidate
        if current:
            pieces.append(current)
        return pieces

    def _split_fixed_window(self, text: str) -> list[str]:
        """Cut *text* into ``target_tokens`` windows, preferring word breaks."""
        size = self.config.target_tokens * self.config.chars_per_token
        pieces: list[str] = []
        rest = text.strip()
        while rest:
            if len(rest) <= size:
                pieces.append(rest)
                break
            cut = rest.rfind(" ", size // 2, size)
            if cut <= 0:
                cut = size
            pieces.append(rest[:cut].strip())
            rest = rest[cut:].strip()
        return pieces

    def extract_overlap(self, text: str) -> str:
        """Return up to ``overlap_tokens`` of trailing context from *text*.

        The window is cut just after the first sentence end (``.``, ``!``,
        ``?`` followed by whitespace) that starts strictly inside it and at
        least 10 characters before the end; otherwise the raw trailing
        characters are used.
        """
        window = self.config.overlap_tokens * self.config.chars_per_token
        if window <= 0:
            return ""
        if len(text) <= window:
            return text.strip()

        start = len(text) - window
        match = _SENTENCE_END_RE.search(text, start + 1)
        if match and match.start() < len(text) - 10:
            return text[match.end():].strip()
        return text[start:].strip()


def chunk_document(
    pages: Sequence[PageText],
    filename: str,
    language: str | None = None,
    config: ChunkingCfg | None = None,
) -> list[RetrievalChunk]:
    """Chunk *pages* with a one-off ``AdaptiveChunker``."""
    return AdaptiveChunker(config).chunk_document(pages, filename, language)
