"""Response verification: confidence extraction, citation check, localized warnings.

Answers produced with chain-of-thought prompting end with a
``[CONFIDENCE: HIGH|MEDIUM|LOW|NONE]`` marker; grounded answers cite chunks
as ``(Source: <file>, Page <n>)``, matching the ``[SOURCE: ..., PAGE: ...]``
header every retrieval chunk carries.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum

from docwindow.observability import get_logger

logger = get_logger(__name__)

_CONFIDENCE_RE = re.compile(r"\[CONFIDENCE:\s*(HIGH|MEDIUM|LOW|NONE)\]", re.IGNORECASE)
_CITATION_RE = re.compile(r"\(Source:\s*[^,]+,\s*Page\s*\d+\)", re.IGNORECASE)


class Confidence(str, Enum):
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"
    NONE = "NONE"
    UNKNOWN = "UNKNOWN"  # chain-of-thought disabled or no marker found


_WARNINGS: dict[str, dict[str, str]] = {
    "low": {
        "en": "⚠️ **Warning:** This response has LOW confidence. "
        "The information may be incomplete or inaccurate.",
        "he": "⚠️ **אזהרה:** רמת הביטחון בתשובה זו נמוכה. ייתכן שהמידע אינו מלא או מדויק.",
    },
    "none": {
        "en": "⚠️ **Warning:** No relevant information was found in the uploaded "
        "documents. This response may not be accurate.",
        "he": "⚠️ **אזהרה:** לא נמצא מידע רלוונטי במסמכים שהועלו. התשובה עשויה להיות לא מדויקת.",
    },
    "no_citations": {
        "en": "ℹ️ **Note:** No specific source citations were found in this response.",
        "he": "ℹ️ **הערה:** לא נמצאו ציטוטים ספציפיים למקורות בתשובה זו.",
    },
    "empty": {
        "en": "⚠️ **Error:** No response was received from the system.",
        "he": "⚠️ **שגיאה:** לא התקבלה תשובה מהמערכת.",
    },
    "no_docs": {
        "en": "ℹ️ **Note:** No documents have been uploaded. "
        "Please upload documents before asking questions.",
        "he": "ℹ️ **הערה:** לא הועלו מסמכים למערכת. אנא העלה מסמכים לפני שאילת שאלות.",
    },
}


def _message(kind: str, language: str) -> str:
    return _WARNINGS[kind]["he" if language == "he" else "en"]


@dataclass(frozen=True)
class VerificationResult:
    response: str
    confidence: Confidence
    has_citations: bool
    warning: str | None = None

    def with_warning(self) -> str:
        """The response, prefixed by the warning and a blank line when there is one."""
        if not self.warning:
            return self.response
        return f"{self.warning}\n\n{self.response}"


def extract_confidence(response: str) -> Confidence:
    match = _CONFIDENCE_RE.search(response)
    return Confidence(match.group(1).upper()) if match else Confidence.UNKNOWN


def has_citations(response: str) -> bool:
    return _CITATION_RE.search(response) is not None


def build_warning(confidence: Confidence, cited: bool, language: str) -> str | None:
    if confidence is Confidence.LOW:
        return _message("low", language)
    if confidence is Confidence.NONE:
        return _message("none", language)
    # Missing citations only count when the model reported a confidence.
    if not cited and confidence is not Confidence.UNKNOWN:
        return _message("no_citations", language)
    return None


def verify(response: str | None, language: str = "en", cot_enabled: bool = True) -> VerificationResult:
    """Check *response* and attach a localized warning when it looks unreliable.

    Args:
        response: Generated answer text.
        language: ``"he"`` for Hebrew warnings, anything else for English.
        cot_enabled: Whether the answer was produced with chain-of-thought
            prompting; the confidence marker is only read when True.
    """
    if not response:
        return VerificationResult(
            response=response or "",
            confidence=Confidence.UNKNOWN,
            has_citations=False,
            warning=_message("empty", language),
        )

    confidence = extract_confidence(response) if cot_enabled else Confidence.UNKNOWN
    cited = has_citations(response)
    warning = build_warning(confidence, cited, language)
    logger.info(
        "response_verified",
        confidence=confidence.value,
        has_citations=cited,
        has_warning=warning is not None,
    )
    return VerificationResult(response, confidence, cited, warning)


def preflight_warning(document_count: int, language: str = "en") -> str | None:
    """Warning to show before answering when no documents are loaded."""
    if document_count == 0:
        return _message("no_docs", language)
    return None
