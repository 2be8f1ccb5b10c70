"""
Purpose: Shared data models for cross-module communication.
Constraints: Data containers only; no logic.
"""

# Imports
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional, Tuple

UNKNOWN_AUTHOR = "unknown"
OTHER_CATEGORY = "Other"


# Public API
@dataclass(frozen=True)
class CandidateItem:
    """One report card scraped during a single poll cycle."""

    raw_text: str
    position: int
    recency_phrase: str = ""
    category: str = OTHER_CATEGORY
    body: str = ""
    author: str = UNKNOWN_AUTHOR
    monetary_amount: Optional[str] = None
    domain: Optional[str] = None
    addresses: Tuple[str, ...] = ()
    detail_id: Optional[str] = None
    threat_detected_at: Optional[str] = None


@dataclass
class FetchedPage:
    content: str
    status: int
    url: str = ""
    fetched_at: datetime = field(default_factory=datetime.now)


class LoopState(str, Enum):
    IDLE = "idle"
    BASELINE = "baseline"
    STEADY = "steady"
    STOPPED = "stopped"


@dataclass
class CycleResult:
    success: bool
    poll_count: int
    baseline: bool = False
    items_seen: int = 0
    notified: int = 0
    suppressed: int = 0
    failed_notifications: int = 0
    error: Optional[str] = None


@dataclass
class MonitorStatus:
    is_running: bool
    poll_count: int
    last_fingerprint_prefix: str
    state: LoopState = LoopState.IDLE
