"""
Purpose: Canonical scam categories, their keyword taxonomy and the TLD allow-list.
Constraints: Static data plus pure lookups; no I/O.
"""

# Imports
import re
from typing import Dict, Optional, Tuple

from chainabuse_monitor.core.models import OTHER_CATEGORY

# Constants
# Ordered: the first category whose keyword appears wins.
CATEGORY_KEYWORDS: Dict[str, Tuple[str, ...]] = {
    "Phishing Scam": ("phishing", "phish", "fake website", "fake site", "credential"),
    "Rug Pull Scam": ("rug pull", "rugpull", "liquidity"),
    "Other Blackmail Scam": ("blackmail", "threaten", "demand payment"),
    "Sextortion Scam": ("sextortion", "webcam", "intimate", "nude"),
    "Ransomware": ("ransomware", "encrypted", "decrypt", "locked files"),
    "Impersonation Scam": ("impersonat", "pretend", "fake identity", "posing as"),
    "Fake Returns Scam": ("fake return", "guaranteed return", "high return"),
    "Hack - Other": ("hack", "hacked", "breach", "compromised"),
    "NFT Airdrop Scam": ("nft", "airdrop", "free nft", "mint"),
    "Fake Project Scam": ("fake project", "fake ico", "fake token"),
    "Romance Scam": ("romance", "dating", "relationship", "love"),
    "Pigbutchering Scam": ("pigbutchering", "pig butchering", "investment fraud"),
    "Contract Exploit Scam": ("contract exploit", "smart contract", "defi exploit"),
    "Donation Impersonation Scam": ("donation", "charity", "fundraising"),
}

CATEGORIES: Tuple[str, ...] = tuple(CATEGORY_KEYWORDS)

# Loose label fragments -> canonical category, checked by containment
_CATEGORY_ALIASES: Tuple[Tuple[Tuple[str, ...], str], ...] = (
    (("phish",), "Phishing Scam"),
    (("rug pull", "rugpull"), "Rug Pull Scam"),
    (("blackmail",), "Other Blackmail Scam"),
    (("sextortion",), "Sextortion Scam"),
    (("ransomware",), "Ransomware"),
    (("impersonat",), "Impersonation Scam"),
    (("fake return",), "Fake Returns Scam"),
    (("hack",), "Hack - Other"),
    (("nft", "airdrop"), "NFT Airdrop Scam"),
    (("fake project",), "Fake Project Scam"),
    (("romance",), "Romance Scam"),
    (("pigbutcher", "pig butcher"), "Pigbutchering Scam"),
    (("contract",), "Contract Exploit Scam"),
    (("donation",), "Donation Impersonation Scam"),
)

KNOWN_TLDS = frozenset("""
com org world net io co uk de fr gov edu mil int eu us ca au jp cn ru br in mx
it es pl nl se no dk fi ch at be cz sk hu ro bg hr si lt lv ee gr pt ie lu mt
cy is li ad mc sm va md ua by rs me mk al ba xk am az ge kz kg tj tm uz mn pk
bd lk np bt mm th la kh vn my sg id ph tl pg sb vu fj to ws ki nr tv fm mh pw
gu as mp vi pr cr pa ni hn sv gt bz do ht jm cu bs bb tt gd lc vc ag kn dm gp
mq bl mf sx cw aw tc vg ai ms ky bm gl fo sj ax gg je im gi xyz
""".split())

_SENTENCE_START = re.compile(r"^(?:The|This|A|An|I|You|We|They|It|My|Our|Your)\s")
_ISO_DATE = re.compile(r"\d{4}-\d{2}-\d{2}")


# Public API
def is_plausible_category(candidate: str) -> bool:
    """Reject candidates that look like prose, links or metadata rather than a label."""
    if not candidate:
        return False
    text = candidate.strip()
    if not 5 <= len(text) <= 100:
        return False
    if _SENTENCE_START.match(text):
        return False
    lowered = text.lower()
    if "http" in lowered or "@" in text or _ISO_DATE.search(text):
        return False
    if "submitted by" in lowered or "threat detected" in lowered:
        return False
    return True


def normalize_category(candidate: str) -> Optional[str]:
    """Map a label to its canonical category, or None when nothing matches."""
    if not candidate:
        return None
    text = " ".join(candidate.split())
    lowered = text.lower()
    for category in CATEGORIES:
        if category.lower() == lowered:
            return category
    for fragments, category in _CATEGORY_ALIASES:
        if any(fragment in lowered for fragment in fragments):
            return category
    return None


def classify_by_keywords(text: str) -> str:
    """Keyword classification over free text, defaulting to ``Other``."""
    haystack = (text or "").lower()
    for category, keywords in CATEGORY_KEYWORDS.items():
        if any(keyword in haystack for keyword in keywords):
            return category
    return OTHER_CATEGORY
