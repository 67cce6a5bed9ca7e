"""Tests for PDF and plain-text extractors."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from docwindow.errors import ExtractionError
from docwindow.ingest.extractors import PdfExtractor, PlainTextExtractor, default_extractors


# ------------------------------------------------------------------
# Helpers
# ------------------------------------------------------------------


def _mock_reader(page_texts: list[str]):
    """Return a mock PdfReader with pages that yield the given texts."""
    pages = []
    for text in page_texts:
        page = MagicMock()
        page.extract_text.return_value = text
        pages.append(page)
    reader = MagicMock()
    reader.pages = pages
    return reader


def _raw_page(body: str, number: int) -> str:
    return f"Manual v2 header\n{body}\nConfidential\nPage {number}"


# ------------------------------------------------------------------
# PdfExtractor
# ------------------------------------------------------------------


def test_pdf_supports_extension_case_insensitive():
    assert PdfExtractor().supports(Path("a.PDF"))
    assert not PdfExtractor().supports(Path("a.txt"))


def test_pdf_pages_cleaned_and_numbered():
    raw = [_raw_page("Body of page one.", 1), _raw_page("Body of page two.", 2)]
    with patch("docwindow.ingest.extractors.pypdf") as mock_pypdf:
        mock_pypdf.PdfReader.return_value = _mock_reader(raw)
        doc = PdfExtractor().extract(Path("/docs/manual.pdf"))

    assert doc.filename == "manual.pdf"
    assert [p.page_number for p in doc.pages] == [1, 2]
    assert doc.pages[0].text == "Body of page one."
    assert doc.language == "en"


def test_pdf_empty_pages_skipped_but_numbers_kept():
    raw = [_raw_page("First.", 1), "", None, _raw_page("Fourth.", 4)]
    with patch("docwindow.ingest.extractors.pypdf") as mock_pypdf:
        mock_pypdf.PdfReader.return_value = _mock_reader(raw)
        doc = PdfExtractor().extract(Path("doc.pdf"))

    assert [p.page_number for p in doc.pages] == [1, 4]


def test_pdf_hebrew_language_detected():
    raw = [_raw_page("זהו מסמך בעברית עם תוכן רב.", 1)]
    with patch("docwindow.ingest.extractors.pypdf") as mock_pypdf:
        mock_pypdf.PdfReader.return_value = _mock_reader(raw)
        doc = PdfExtractor().extract(Path("he.pdf"))

    assert doc.language == "he"


def test_pdf_read_error_raises_extraction_error():
    with patch("docwindow.ingest.extractors.pypdf") as mock_pypdf:
        mock_pypdf.PdfReader.side_effect = OSError("cannot open")
        with pytest.raises(ExtractionError, match="cannot open") as exc_info:
            PdfExtractor().extract(Path("broken.pdf"))

    assert exc_info.value.path == "broken.pdf"


def test_pdf_missing_file_raises_extraction_error(tmp_path):
    with pytest.raises(ExtractionError):
        PdfExtractor().extract(tmp_path / "missing.pdf")


# ------------------------------------------------------------------
# PlainTextExtractor
# ------------------------------------------------------------------


@pytest.mark.parametrize("name", ["notes.txt", "README.md", "a.text"])
def test_plaintext_supports(name):
    assert PlainTextExtractor().supports(Path(name))


def test_plaintext_form_feed_separates_pages(tmp_path):
    path = tmp_path / "notes.txt"
    path.write_text("Page one text.\fPage two text.", encoding="utf-8")

    doc = PlainTextExtractor().extract(path)

    assert doc.filename == "notes.txt"
    assert [(p.page_number, p.text) for p in doc.pages] == [
        (1, "Page one text."),
        (2, "Page two text."),
    ]


def test_plaintext_single_page_without_form_feed(tmp_path):
    path = tmp_path / "notes.md"
    path.write_text("# Title\n\nSome body text.\n", encoding="utf-8")

    doc = PlainTextExtractor().extract(path)

    assert len(doc.pages) == 1
    assert doc.pages[0].text == "# Title\n\nSome body text."


def test_plaintext_invalid_utf8_raises(tmp_path):
    path = tmp_path / "bad.txt"
    path.write_bytes(b"\xff\xfe\xfa not utf-8")

    with pytest.raises(ExtractionError):
        PlainTextExtractor().extract(path)


def test_plaintext_empty_file_gives_empty_document(tmp_path):
    path = tmp_path / "empty.txt"
    path.write_text("   \n", encoding="utf-8")

    assert PlainTextExtractor().extract(path).is_empty


def test_default_extractors_cover_pdf_and_text():
    kinds = {type(e) for e in default_extractors()}
    assert kinds == {PdfExtractor, PlainTextExtractor}
