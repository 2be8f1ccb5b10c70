"""
Purpose: Stable content fingerprint for a report card.
Constraints: Pure; position and recency text never affect the hash.
"""

# Imports
import hashlib

from chainabuse_monitor.core.models import CandidateItem
from chainabuse_monitor.core.text_normalization import normalize_for_fingerprint


# Public API
def fingerprint_text(category: str, body: str, author: str) -> str:
    payload = f"{category}{normalize_for_fingerprint(body)}{author}"
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()


def fingerprint(item: CandidateItem) -> str:
    """SHA-256 hex digest over category, normalized body and author."""
    return fingerprint_text(item.category, item.body, item.author)
