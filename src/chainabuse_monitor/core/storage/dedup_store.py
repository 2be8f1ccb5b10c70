"""
Purpose: Persisted, bounded set of fingerprints that were already handled.
Constraints: Storage only; no network calls. Save failures are reported, never raised.
"""

from __future__ import annotations

import json
import os
import tempfile
import time
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Union

from chainabuse_monitor.core.logging import UnifiedLogger

logger = UnifiedLogger("chainabuse_monitor.dedup_store").get_logger()

SENT_REPORTS_DEFAULT_PATH = "data/sent-reports.json"
DEFAULT_CAP = 2000


def _now_utc() -> str:
    return time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime())


class DedupStore:
    """Insertion-ordered fingerprint set; the oldest entries are evicted past ``cap``.

    File layout::

        {"sentHashes": [...], "lastSaved": "<ISO-8601>", "totalSent": <int>}
    """

    def __init__(self, path: Union[str, Path] = SENT_REPORTS_DEFAULT_PATH, cap: int = DEFAULT_CAP):
        if cap <= 0:
            raise ValueError("cap must be positive")
        self.path = Path(path)
        self.cap = cap
        self._fingerprints: Dict[str, None] = {}
        self.last_saved: Optional[str] = None

    def __len__(self) -> int:
        return len(self._fingerprints)

    def __contains__(self, fingerprint: object) -> bool:
        return fingerprint in self._fingerprints

    def has(self, fingerprint: str) -> bool:
        return fingerprint in self._fingerprints

    def add(self, fingerprint: str) -> bool:
        """Record a fingerprint; returns False when it was already present."""
        if not fingerprint or fingerprint in self._fingerprints:
            return False
        self._fingerprints[fingerprint] = None
        if len(self._fingerprints) > self.cap:
            self._evict()
            self.save_to_durable()
        return True

    def update(self, fingerprints: Iterable[str]) -> int:
        return sum(1 for fp in fingerprints if self.add(fp))

    def snapshot(self) -> List[str]:
        return list(self._fingerprints)

    def load_from_durable(self) -> int:
        """Replace the in-memory set with the file contents; returns the entry count."""
        self._fingerprints = {}
        if not self.path.exists():
            logger.info(f"No dedup file at {self.path}; starting empty")
            return 0
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            logger.warning(f"Unreadable dedup file {self.path}: {exc}; starting empty")
            return 0

        hashes = data.get("sentHashes") if isinstance(data, dict) else None
        if not isinstance(hashes, list):
            logger.warning(f"Dedup file {self.path} has no sentHashes list; starting empty")
            return 0

        for value in hashes:
            if isinstance(value, str) and value:
                self._fingerprints[value] = None
        if len(self._fingerprints) > self.cap:
            self._evict()
        self.last_saved = data.get("lastSaved")
        logger.info(f"Loaded {len(self._fingerprints)} fingerprints from {self.path}")
        return len(self._fingerprints)

    def save_to_durable(self) -> bool:
        """Atomically rewrite the file; returns False (and logs) on failure."""
        saved_at = _now_utc()
        payload = {
            "sentHashes": self.snapshot(),
            "lastSaved": saved_at,
            "totalSent": len(self._fingerprints),
        }
        tmp_name = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{self.path.name}.", suffix=".tmp", dir=str(self.path.parent)
            )
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(payload, handle, indent=2)
            os.replace(tmp_name, self.path)
        except OSError as exc:
            logger.error(f"Failed to save dedup file {self.path}: {exc}")
            if tmp_name and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            return False
        self.last_saved = saved_at
        return True

    def _evict(self) -> None:
        overflow = len(self._fingerprints) - self.cap
        for fingerprint in list(self._fingerprints)[:overflow]:
            del self._fingerprints[fingerprint]
        logger.info(f"Evicted {overflow} oldest fingerprints (cap {self.cap})")
