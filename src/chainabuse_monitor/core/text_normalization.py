"""
Purpose: Normalize scraped report text for previews and fingerprinting.
Constraints: Pure helpers only; no side effects.
"""

# Imports
import re
from textwrap import shorten

# Constants
TIME_AGO_TOKEN = "TIME_AGO"

RECENCY_PATTERN = re.compile(
    r"\b(?:"
    r"just\s+now"
    r"|(?:a\s+few|\d+|an?)\s+(?:second|minute|hour|day|week|month|year)s?\s+ago"
    r")",
    re.IGNORECASE,
)

# Known label words that the listing glues onto neighbouring text
_GLUED_LABELS = ("Reported", "Submitted", "Domain", "Address")

_WHITESPACE = re.compile(r"\s+")
_LOWER_THEN_CAPITAL_WORD = re.compile(r"(?<=[a-z])(?=[A-Z][a-z])")
_AGO_THEN_CAPITAL = re.compile(r"(?<=\bago)(?=[A-Z0-9])")
_DIGIT_THEN_LABEL = re.compile(r"(?<=\d)(?=(?:%s)\b)" % "|".join(_GLUED_LABELS))
_LETTER_THEN_RECENCY = re.compile(
    r"(?<=[A-Za-z])(?=\d+\s+(?:second|minute|hour|day|week|month|year)s?\s+ago)", re.IGNORECASE
)
_DOMAIN_THEN_VALUE = re.compile(r"\b(Domain)(?=[a-z0-9][a-z0-9-]*\.[a-z]{2,})")
_ADDRESS_THEN_VALUE = re.compile(r"\b(Address)(?=(?:0x|bc1|ltc1|addr1|[13LMT])[0-9A-Za-z]{20,})")


# Helpers
def collapse_whitespace(text: str) -> str:
    """Collapse any run of whitespace into a single space and strip the ends."""
    if not text:
        return ""
    return _WHITESPACE.sub(" ", text).strip()


def preview_text(text: str, width: int = 200) -> str:
    """Return a single-line preview of text, trimmed to width."""
    if not text:
        return "(no body text)"
    sanitized = collapse_whitespace(text)
    return shorten(sanitized, width=width, placeholder="...")


def replace_recency_phrases(text: str, token: str = TIME_AGO_TOKEN) -> str:
    return RECENCY_PATTERN.sub(token, text or "")


def repair_concatenation(text: str) -> str:
    """Re-insert the spaces lost when adjacent DOM nodes are flattened to text.

    ``"scam ago1Reported"`` and ``"walletReported Domainexample.com"`` both come
    out of the same card depending on how the markup was rendered; this makes
    them comparable.
    """
    if not text:
        return ""
    repaired = _AGO_THEN_CAPITAL.sub(" ", text)
    repaired = _LETTER_THEN_RECENCY.sub(" ", repaired)
    repaired = _DIGIT_THEN_LABEL.sub(" ", repaired)
    repaired = _DOMAIN_THEN_VALUE.sub(r"\1 ", repaired)
    repaired = _ADDRESS_THEN_VALUE.sub(r"\1 ", repaired)
    repaired = _LOWER_THEN_CAPITAL_WORD.sub(" ", repaired)
    return repaired


def normalize_for_fingerprint(text: str) -> str:
    """Canonical form of a report body used as hash input."""
    normalized = repair_concatenation(text)
    normalized = replace_recency_phrases(normalized)
    return collapse_whitespace(normalized)
