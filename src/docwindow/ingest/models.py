"""Models flowing through the ingest path: extracted pages and retrieval chunks."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


@dataclass(frozen=True)
class PageText:
    """Text of one source page, with its real 1-indexed page number."""

    page_number: int
    text: str


@dataclass
class ExtractedDocument:
    """Ordered non-empty pages of a document plus its dominant language."""

    filename: str
    pages: list[PageText] = field(default_factory=list)
    language: str = "en"

    @property
    def is_empty(self) -> bool:
        return not any(p.text.strip() for p in self.pages)


class SectionType(Enum):
    HEADER = "header"
    PARAGRAPH = "paragraph"


@dataclass(frozen=True)
class Section:
    content: str
    kind: SectionType = SectionType.PARAGRAPH


@dataclass(frozen=True)
class RetrievalChunk:
    """A bounded span of document text plus citation metadata.

    ``content`` carries the ``[SOURCE: <file>, PAGE: <n>]`` citation header;
    ``token_estimate`` is measured on the text after that header.
    """

    content: str
    source_file: str
    page_number: int
    language: str
    index: int
    token_estimate: int

    @property
    def metadata(self) -> dict[str, object]:
        """Metadata dict in the shape vector stores expect."""
        return {
            "filename": self.source_file,
            "language": self.language,
            "chunk_index": self.index,
            "chunk_size_tokens": self.token_estimate,
            "page_number": self.page_number,
        }
