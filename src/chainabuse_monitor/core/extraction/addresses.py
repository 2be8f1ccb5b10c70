"""
Purpose: Find crypto wallet addresses in flattened report text.
Constraints: Pure helpers only; never raises on malformed input.

Card text comes out of the DOM with label words glued to the values
("Address1A1z...", "...DivfNaReported"), so raw matches are cleaned and
re-validated against strict per-family patterns before being accepted.
"""

# Imports
import re
from typing import List, NamedTuple, Optional, Tuple

# Constants
MIN_ADDRESS_LENGTH = 25

_B58 = "1-9A-HJ-NP-Za-km-z"
_BECH32 = "02-9ac-hj-np-z"

BITCOIN = "bitcoin"
LITECOIN = "litecoin"
EVM = "evm"
TRON = "tron"
CARDANO = "cardano"

# (family, raw pattern, strict body)
_FAMILIES: Tuple[Tuple[str, str, str], ...] = (
    (BITCOIN, rf"bc1[{_BECH32}]{{30,70}}", rf"bc1[{_BECH32}]{{38,61}}"),
    (LITECOIN, rf"ltc1[{_BECH32}]{{30,70}}", rf"ltc1[{_BECH32}]{{38,61}}"),
    (CARDANO, r"addr1[a-z0-9]{50,120}", r"addr1[a-z0-9]{50,120}"),
    (EVM, r"0x[a-fA-F0-9]{40}", r"0x[a-fA-F0-9]{40}"),
    (TRON, rf"T[{_B58}]{{30,40}}", rf"T[{_B58}]{{33}}"),
    (BITCOIN, rf"[13][{_B58}]{{20,40}}", rf"[13][{_B58}]{{24,33}}"),
    (LITECOIN, rf"[LM][{_B58}]{{20,40}}", rf"[LM][{_B58}]{{25,33}}"),
)

_RAW_PATTERNS = tuple((family, re.compile(raw)) for family, raw, _ in _FAMILIES)
_STRICT_PATTERNS = tuple((family, re.compile(rf"^{strict}$")) for family, _, strict in _FAMILIES)
_STRICT_AT_END = tuple(re.compile(rf"{strict}$") for _, _, strict in _FAMILIES)
_STRICT_AT_START = tuple(re.compile(rf"^{strict}") for _, _, strict in _FAMILIES)

_GLUED_PREFIXES = ("Address", "ddress", "eported", "TRC20", "USDT", "BTC", "ETH")
_GLUED_SUFFIX_WORDS = ("Reported", "Submitted", "Domain", "Address")

_CHAIN_HINTS = (
    (("polygon", "matic"), "Polygon"),
    (("arbitrum",), "Arbitrum"),
    (("avalanche", "avax"), "Avalanche"),
    (("base",), "Base"),
)
_FAMILY_CHAINS = {
    BITCOIN: "Bitcoin",
    LITECOIN: "Litecoin",
    TRON: "Tron",
    CARDANO: "Cardano",
}


class _Candidate(NamedTuple):
    start: int
    end: int
    value: str


# Public API
def classify_address(address: str) -> Optional[str]:
    """Return the address family, or None when no strict pattern matches."""
    if not address or len(address) < MIN_ADDRESS_LENGTH:
        return None
    for family, pattern in _STRICT_PATTERNS:
        if pattern.match(address):
            return family
    return None


def is_valid_address(address: str) -> bool:
    return classify_address(address) is not None


def address_chain(address: str, context: str = "") -> str:
    """Human-readable chain label; EVM addresses are disambiguated by context words."""
    family = classify_address(address)
    if family == EVM:
        lowered = (context or "").lower()
        for words, chain in _CHAIN_HINTS:
            if any(re.search(rf"\b{word}\b", lowered) for word in words):
                return chain
        return "Ethereum"
    return _FAMILY_CHAINS.get(family, "Unknown")


def clean_address(raw: str) -> Optional[str]:
    """Strip glued label fragments from a raw match and return a valid address."""
    if not raw:
        return None
    if is_valid_address(raw):
        return raw

    stripped = _strip_glued_words(raw)
    if is_valid_address(stripped):
        return stripped

    for candidate in (stripped, raw):
        for pattern in _STRICT_AT_END:
            match = pattern.search(candidate)
            if match and is_valid_address(match.group(0)):
                return match.group(0)
        for pattern in _STRICT_AT_START:
            match = pattern.match(candidate)
            if match and is_valid_address(match.group(0)):
                return match.group(0)
    return None


def extract_addresses(text: str) -> List[str]:
    """All distinct addresses in document order, with fragments of longer ones dropped."""
    if not text:
        return []

    candidates: List[_Candidate] = []
    for _, pattern in _RAW_PATTERNS:
        for match in pattern.finditer(text):
            value = clean_address(match.group(0))
            if not value:
                continue
            offset = match.group(0).find(value)
            start = match.start() + max(offset, 0)
            candidates.append(_Candidate(start, start + len(value), value))

    accepted: List[_Candidate] = []
    for candidate in sorted(candidates, key=lambda c: (c.start, -len(c.value))):
        if any(_overlaps(kept, candidate) or candidate.value in kept.value for kept in accepted):
            continue
        accepted = [kept for kept in accepted if kept.value not in candidate.value]
        accepted.append(candidate)

    ordered: List[str] = []
    for candidate in sorted(accepted, key=lambda c: c.start):
        if candidate.value not in ordered:
            ordered.append(candidate.value)
    return ordered


# Helpers
def _overlaps(first: _Candidate, second: _Candidate) -> bool:
    return first.start < second.end and second.start < first.end


def _strip_glued_words(raw: str) -> str:
    value = raw
    for prefix in _GLUED_PREFIXES:
        if value.startswith(prefix):
            value = value[len(prefix):]
            break
    for word in _GLUED_SUFFIX_WORDS:
        # a greedy match can swallow any leading part of the next label
        for size in range(len(word), 2, -1):
            if value.endswith(word[:size]):
                return value[:-size]
    return value
