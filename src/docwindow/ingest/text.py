"""Text normalisation for extracted document pages.

Removes content that breaks embedding APIs (base64 blobs, control and
zero-width characters) and collapses whitespace, keeping Hebrew, Arabic,
ASCII and Latin-1 text intact.
"""

from __future__ import annotations

import re

from docwindow.observability import get_logger

logger = get_logger(__name__)

_BASE64_RE = re.compile(r"[A-Za-z0-9+/]{50,}={0,2}")
_DATA_URI_RE = re.compile(r"data:image/[^;]+;base64,[A-Za-z0-9+/=\s]+")
_REPEATED_CHAR_RE = re.compile(r"(.)\1{50,}")
_MULTI_SPACE_RE = re.compile(r" {2,}")
_MULTI_NEWLINE_RE = re.compile(r"\n{3,}")


def _keep_char(ch: str) -> bool:
    code = ord(ch)
    return (
        ch in "\n\t\r"
        or 0x20 <= code <= 0x7E  # ASCII printable
        or 0x0590 <= code <= 0x05FF  # Hebrew
        or 0x0600 <= code <= 0x06FF  # Arabic
        or 0xA0 <= code <= 0xFF  # Latin-1 supplement
        or (ch.isspace() and code not in (0x200B, 0x200C, 0x200D, 0xFEFF))
    )


def clean_extracted_text(text: str | None) -> str:
    """Clean raw extracted text so it is safe to chunk and embed.

    Steps: drop inline image data and base64 runs, drop characters outside
    the supported scripts (control, zero-width, symbols), collapse runs of
    spaces, strip every line. A single blank line is kept between paragraphs
    because the chunker splits sections on blank lines.
    """
    if not text:
        return ""

    original_len = len(text)
    text = _DATA_URI_RE.sub(" ", text)
    text = _BASE64_RE.sub(" ", text)
    text = _REPEATED_CHAR_RE.sub(" ", text)
    text = "".join(ch for ch in text if _keep_char(ch))
    text = _MULTI_SPACE_RE.sub(" ", text)

    text = "\n".join(line.strip() for line in text.replace("\r", "").split("\n"))
    cleaned = _MULTI_NEWLINE_RE.sub("\n\n", text).strip()

    removed = original_len - len(cleaned)
    if removed > 100:
        logger.info("text_cleaned", removed=removed, before=original_len, after=len(cleaned))
    return cleaned


def clean_page_text(raw_text: str | None) -> str:
    """Strip the assumed running header (first line) and footer (last two lines).

    Blank lines in the remaining body are dropped. Pages with three lines or
    fewer come back empty, as they hold nothing but header/footer.
    """
    if not raw_text:
        return ""
    lines = re.split(r"\r?\n", raw_text)
    start = min(1, len(lines))
    end = max(len(lines) - 2, start)
    body = [line for line in lines[start:end] if line.strip()]
    return "\n".join(body).strip()
