"""Document extractors: file on disk → ordered, cleaned page text.

Each extractor returns an ``ExtractedDocument`` whose pages keep their real
1-indexed page numbers; pages that clean down to nothing are skipped. The
dominant language is detected over the concatenated page text.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path

import pypdf
from pypdf.errors import PyPdfError

from docwindow.errors import ExtractionError
from docwindow.ingest.language import detect_language
from docwindow.ingest.models import ExtractedDocument, PageText
from docwindow.ingest.text import clean_extracted_text, clean_page_text
from docwindow.observability import get_logger

logger = get_logger(__name__)

_FORM_FEED = "\f"


class BaseExtractor(ABC):
    """Abstract base for all extractors.

    ``extensions`` lists the lower-case suffixes (with dot) an extractor
    handles; the ingest pipeline dispatches on it.
    """

    extensions: tuple[str, ...] = ()

    def supports(self, path: Path) -> bool:
        return path.suffix.lower() in self.extensions

    @abstractmethod
    def extract(self, path: Path) -> ExtractedDocument:
        """Read *path* and return its cleaned pages.

        Raises:
            ExtractionError: If the file cannot be read or parsed.
        """

    @staticmethod
    def _build(path: Path, pages: list[PageText]) -> ExtractedDocument:
        language = detect_language("\n".join(p.text for p in pages))
        return ExtractedDocument(filename=path.name, pages=pages, language=language)


class PdfExtractor(BaseExtractor):
    """Page-by-page PDF extraction via ``pypdf.PdfReader``.

    Every page has its running header (first line) and footer (last two
    lines) removed before cleaning. Pages yielding no text (scanned images,
    etc.) are skipped but the remaining pages keep their real numbers.
    """

    extensions = (".pdf",)

    def extract(self, path: Path) -> ExtractedDocument:
        try:
            reader = pypdf.PdfReader(str(path))
            raw_pages = [page.extract_text() or "" for page in reader.pages]
        except (OSError, ValueError, PyPdfError) as exc:
            raise ExtractionError(str(path), str(exc)) from exc

        pages: list[PageText] = []
        for number, raw in enumerate(raw_pages, start=1):
            text = clean_extracted_text(clean_page_text(raw))
            if text:
                pages.append(PageText(page_number=number, text=text))

        logger.debug("pdf_extracted", path=str(path), pages=len(raw_pages), kept=len(pages))
        return self._build(path, pages)


class PlainTextExtractor(BaseExtractor):
    """UTF-8 text and Markdown; form feeds separate pages."""

    extensions = (".txt", ".md", ".text")

    def extract(self, path: Path) -> ExtractedDocument:
        try:
            content = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise ExtractionError(str(path), str(exc)) from exc

        pages: list[PageText] = []
        for number, raw in enumerate(content.split(_FORM_FEED), start=1):
            text = clean_extracted_text(raw)
            if text:
                pages.append(PageText(page_number=number, text=text))
        return self._build(path, pages)


def default_extractors() -> list[BaseExtractor]:
    return [PdfExtractor(), PlainTextExtractor()]
