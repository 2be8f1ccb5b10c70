"""
Purpose: Per-field extraction from the flattened text of one report card.
Constraints: Pure helpers only; every function returns a default instead of raising.
"""

# Imports
import re
from typing import Iterable, Optional
from urllib.parse import urlsplit

from chainabuse_monitor.core.extraction.addresses import extract_addresses
from chainabuse_monitor.core.extraction.taxonomy import (
    CATEGORIES,
    KNOWN_TLDS,
    classify_by_keywords,
    is_plausible_category,
    normalize_category,
)
from chainabuse_monitor.core.models import OTHER_CATEGORY, UNKNOWN_AUTHOR
from chainabuse_monitor.core.text_normalization import (
    RECENCY_PATTERN,
    collapse_whitespace,
    repair_concatenation,
)

# Constants
LAW_ENFORCEMENT_NOTICE = (
    "For security reasons and to protect investigations, this report is "
    "currently only shared with Law Enforcement Partners"
)
USD_CURRENCIES = ("USD", "USDT", "USDC")

_AUTHOR_PATTERN = re.compile(
    r"Submitted by\s+(?P<author>[A-Za-z][\w.-]*?)"
    r"(?=\s*\d+\s+(?:second|minute|hour|day|week|month|year)s?\s+ago|\s|$)",
    re.IGNORECASE,
)
_AMOUNT_ANCHOR = re.compile(r"amount\s+lost", re.IGNORECASE)
_AMOUNT_PATTERN = re.compile(
    r"(?P<value>\d[\d,]*(?:\.\d+)?)\s*(?P<currency>USDT|USDC|USD|EUR|GBP|BTC|ETH|TRX)(?![a-z])"
)
_THREAT_DETECTED = re.compile(
    r"Threat detected at\s*(?P<ts>\d{4}-\d{2}-\d{2}T\d{2}:\d{2}(?::\d{2}(?:\.\d+)?)?(?:Z|[+-]\d{2}:?\d{2})?)",
    re.IGNORECASE,
)
_ISO_TIMESTAMP = re.compile(
    r"\d{4}-\d{2}-\d{2}(?:[T ]\d{2}:\d{2}(?::\d{2}(?:\.\d+)?)?(?:Z|[+-]\d{2}:?\d{2})?)?"
)

_LABEL = r"[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?"
_DOMAIN_BODY = rf"{_LABEL}(?:\.{_LABEL})*\.[a-zA-Z]{{2,}}"
_EXPLICIT_DOMAIN = re.compile(rf"(?:Reported\s*)?\bDomain\s*:?\s*(?P<domain>{_DOMAIN_BODY})")
_URL_PATTERN = re.compile(r"https?://[^\s<>\"']+", re.IGNORECASE)
_GENERIC_DOMAIN = re.compile(rf"\b{_DOMAIN_BODY}")
_GLUED_DOMAIN_SUFFIX = re.compile(r"(?:Reported|Submitted)$", re.IGNORECASE)
_GLUED_DOMAIN_PREFIX = re.compile(r"^(?:Domain|Address)", re.IGNORECASE)
_FILE_EXTENSION = re.compile(r"\.(?:jpg|jpeg|png|gif|pdf|doc|txt|zip)$", re.IGNORECASE)
_SENTENCE_JOIN = re.compile(r"^[a-z]+\.[A-Z]")

_LOREM_IPSUM = re.compile(
    r"\bLorem ipsum\b.*?(?=\b(?:Submitted by|Amount lost|Reported|Threat detected)\b|$)",
    re.IGNORECASE | re.DOTALL,
)
_SUBMITTED_BY = re.compile(r"Submitted by\s+[A-Za-z][\w.-]*", re.IGNORECASE)
_AMOUNT_LOST = re.compile(
    r"Amount lost\s*:?\s*(?:\d[\d,]*(?:\.\d+)?\s*(?:USDT|USDC|USD|EUR|GBP|BTC|ETH|TRX)?)?",
    re.IGNORECASE,
)
_FIELD_LABELS = re.compile(r"\b(?:Reported\s+)?(?:Domains?|Address(?:es)?)\b\s*:?(?=\s|$)")
_THREAT_LABEL = re.compile(r"Threat detected(?:\s+at)?", re.IGNORECASE)
_COUNTERS = re.compile(r"\b(?:Votes?|Comments?)\s*\d+\b|\b\d+\s*(?:Votes?|Comments?)\b")


# Public API
def extract_recency_phrase(text: str) -> str:
    """First "N units ago" style phrase on the card, or an empty string."""
    if not text:
        return ""
    match = RECENCY_PATTERN.search(repair_concatenation(text))
    return collapse_whitespace(match.group(0)) if match else ""


def extract_author(text: str) -> str:
    if not text:
        return UNKNOWN_AUTHOR
    match = _AUTHOR_PATTERN.search(repair_concatenation(text))
    if not match:
        return UNKNOWN_AUTHOR
    return match.group("author") or UNKNOWN_AUTHOR


def detect_category(text: str, structural_candidate: Optional[str] = None) -> str:
    """Canonical category from the card's label, falling back to keyword classification."""
    candidate = structural_candidate
    if not candidate and text:
        candidate = text.strip().split(".", 1)[0]
    candidate = collapse_whitespace(candidate or "")
    if is_plausible_category(candidate):
        normalized = normalize_category(candidate)
        if normalized:
            return normalized
    if not text:
        return OTHER_CATEGORY
    return classify_by_keywords(RECENCY_PATTERN.sub(" ", text))


def extract_amount(text: str) -> Optional[str]:
    """Amount lost as ``"<value> <currency>"``; prefers the value after "Amount lost"."""
    if not text:
        return None
    anchor = _AMOUNT_ANCHOR.search(text)
    if anchor:
        match = _AMOUNT_PATTERN.search(text, anchor.end())
        if match:
            return _format_amount(match)
    matches = list(_AMOUNT_PATTERN.finditer(text))
    if not matches:
        return None
    return _format_amount(matches[-1])


def parse_usd_amount(amount: Optional[str]) -> Optional[float]:
    """Numeric value of a USD-denominated amount string, otherwise None."""
    if not amount:
        return None
    match = _AMOUNT_PATTERN.search(amount)
    if not match or match.group("currency") not in USD_CURRENCIES:
        return None
    try:
        return float(match.group("value").replace(",", ""))
    except ValueError:
        return None


def extract_domain(text: str) -> Optional[str]:
    if not text:
        return None

    for match in _EXPLICIT_DOMAIN.finditer(text):
        domain = _clean_domain(match.group("domain"))
        if _is_valid_domain(domain):
            return domain

    for match in _URL_PATTERN.finditer(text):
        hostname = urlsplit(match.group(0)).hostname or ""
        domain = _clean_domain(hostname)
        if _is_valid_domain(domain):
            return domain

    for match in _GENERIC_DOMAIN.finditer(text):
        raw = match.group(0)
        if _SENTENCE_JOIN.match(raw):
            continue
        domain = _clean_domain(raw)
        if not _is_valid_domain(domain) or _FILE_EXTENSION.search(domain):
            continue
        if domain.rsplit(".", 1)[-1].lower() in KNOWN_TLDS:
            return domain
    return None


def extract_threat_detected_at(text: str) -> Optional[str]:
    if not text:
        return None
    match = _THREAT_DETECTED.search(text)
    return match.group("ts") if match else None


def clean_body(
    text: str,
    category: Optional[str] = None,
    domain: Optional[str] = None,
    addresses: Iterable[str] = (),
) -> str:
    """Free-text part of a card with labels, metadata and filler removed."""
    if not text:
        return ""
    body = repair_concatenation(text)
    body = body.replace(LAW_ENFORCEMENT_NOTICE, " ")
    body = _LOREM_IPSUM.sub(" ", body)
    body = RECENCY_PATTERN.sub(" ", body)
    body = _SUBMITTED_BY.sub(" ", body)
    body = _AMOUNT_LOST.sub(" ", body)
    body = _URL_PATTERN.sub(" ", body)

    for address in list(addresses) or extract_addresses(body):
        body = body.replace(address, " ")
    if domain:
        body = re.sub(re.escape(domain), " ", body, flags=re.IGNORECASE)

    body = _THREAT_DETECTED.sub(" ", body)
    body = _THREAT_LABEL.sub(" ", body)
    body = _ISO_TIMESTAMP.sub(" ", body)
    body = _COUNTERS.sub(" ", body)
    body = _FIELD_LABELS.sub(" ", body)
    body = collapse_whitespace(body)
    body = _strip_leading_category(body, category)
    return body.strip(" .,:;-|")


# Helpers
def _format_amount(match: "re.Match") -> str:
    return f"{match.group('value')} {match.group('currency')}"


def _clean_domain(domain: str) -> str:
    value = (domain or "").strip()
    value = _GLUED_DOMAIN_SUFFIX.sub("", value)
    value = _GLUED_DOMAIN_PREFIX.sub("", value)
    return value.strip(".-").lower()


def _is_valid_domain(domain: str) -> bool:
    if not domain or len(domain) < 4 or "." not in domain:
        return False
    return all(domain.split("."))


def _strip_leading_category(body: str, category: Optional[str]) -> str:
    labels = [category] if category and category != OTHER_CATEGORY else []
    labels.extend(c for c in CATEGORIES if c not in labels)
    lowered = body.lower()
    for label in labels:
        if lowered.startswith(label.lower()):
            return body[len(label):].lstrip(" .:-|")
    return body
