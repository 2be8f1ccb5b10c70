"""
Purpose: Turn a fetched listing page into ordered CandidateItems.
Constraints: Pure parsing; no network access and no persistence.
"""

# Imports
import re
from typing import List, Optional

from bs4 import BeautifulSoup

from chainabuse_monitor.core.extraction.addresses import extract_addresses
from chainabuse_monitor.core.extraction.fields import (
    clean_body,
    detect_category,
    extract_amount,
    extract_author,
    extract_domain,
    extract_recency_phrase,
    extract_threat_detected_at,
)
from chainabuse_monitor.core.models import CandidateItem
from chainabuse_monitor.core.text_normalization import RECENCY_PATTERN, collapse_whitespace

# Constants
CARD_SELECTOR = ".create-ScamReportCard"
CATEGORY_SELECTOR = ".create-ScamReportCard__category-section"
REPORT_LINK_SELECTOR = 'a[href*="/report/"]'

_REPORT_ID = re.compile(
    r"/report/(?P<id>[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12})",
    re.IGNORECASE,
)
_BLANK_LINES = re.compile(r"\n\s*\n")
_SUBMITTED_MARKER = re.compile(r"Submitted by", re.IGNORECASE)


# Public API
def extract(raw_page: str) -> List[CandidateItem]:
    """Report cards in page order; plain-text blocks when the page has no card markup."""
    if not raw_page or not raw_page.strip():
        return []

    soup = BeautifulSoup(raw_page, "html.parser")
    cards = soup.select(CARD_SELECTOR)
    if cards:
        items = []
        for card in cards:
            item = _item_from_card(card, len(items))
            if item:
                items.append(item)
        return items

    return _items_from_text(soup.get_text("\n"))


def build_item(
    raw_text: str,
    position: int,
    structural_category: Optional[str] = None,
    detail_id: Optional[str] = None,
) -> CandidateItem:
    """Run every field extractor over one card's text."""
    text = collapse_whitespace(raw_text)
    category = detect_category(text, structural_category)
    domain = extract_domain(text)
    addresses = tuple(extract_addresses(text))
    return CandidateItem(
        raw_text=text,
        position=position,
        recency_phrase=extract_recency_phrase(text),
        category=category,
        body=clean_body(text, category=category, domain=domain, addresses=addresses),
        author=extract_author(text),
        monetary_amount=extract_amount(text),
        domain=domain,
        addresses=addresses,
        detail_id=detail_id,
        threat_detected_at=extract_threat_detected_at(text),
    )


def extract_report_id(href: Optional[str]) -> Optional[str]:
    if not href:
        return None
    match = _REPORT_ID.search(href)
    return match.group("id").lower() if match else None


# Helpers
def _item_from_card(card, position: int) -> Optional[CandidateItem]:
    text = card.get_text(" ", strip=True)
    if not text:
        return None

    category_node = card.select_one(CATEGORY_SELECTOR)
    structural = category_node.get_text(" ", strip=True) if category_node else None

    detail_id = None
    for link in card.select(REPORT_LINK_SELECTOR):
        detail_id = extract_report_id(link.get("href"))
        if detail_id:
            break

    return build_item(text, position, structural_category=structural, detail_id=detail_id)


def _items_from_text(text: str) -> List[CandidateItem]:
    items: List[CandidateItem] = []
    for block in _BLANK_LINES.split(text or ""):
        if not block.strip():
            continue
        if not (RECENCY_PATTERN.search(block) or _SUBMITTED_MARKER.search(block)):
            continue
        items.append(build_item(block, len(items), detail_id=extract_report_id(block)))
    return items
