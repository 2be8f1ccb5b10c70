"""
Purpose: Drive fetch -> extract -> fingerprint -> filter -> notify -> persist on a fixed interval.
Constraints: One worker thread; cycles never overlap and no cycle error stops the loop.
"""

# Imports
import threading
import time
from datetime import datetime
from typing import Callable, List, Optional, Set

from chainabuse_monitor.core.config_models import MonitorSettings
from chainabuse_monitor.core.errors import FetchError, NotificationError
from chainabuse_monitor.core.extraction.extractor import extract
from chainabuse_monitor.core.extraction.fields import parse_usd_amount
from chainabuse_monitor.core.fingerprint import fingerprint
from chainabuse_monitor.core.freshness import is_fresh
from chainabuse_monitor.core.logging import UnifiedLogger
from chainabuse_monitor.core.metrics import get_metrics
from chainabuse_monitor.core.models import CandidateItem, CycleResult, LoopState, MonitorStatus
from chainabuse_monitor.core.storage.dedup_store import DedupStore
from chainabuse_monitor.monitor.notifier import format_report_message, format_startup_message

_unified = UnifiedLogger("chainabuse_monitor.poll_loop")
logger = _unified.get_logger()


# Public API
class PollLoop:
    """Polls the listing and alerts once per new, fresh report.

    The first successful cycle is a baseline: everything on the page is
    recorded as known and nothing is sent. Later cycles only consider
    fingerprints that were absent from the previous successful cycle.
    """

    def __init__(
        self,
        fetcher,
        notifier,
        store: DedupStore,
        settings: Optional[MonitorSettings] = None,
        extractor: Callable[[str], List[CandidateItem]] = extract,
    ):
        self.fetcher = fetcher
        self.notifier = notifier
        self.store = store
        self.settings = settings or MonitorSettings()
        self.extractor = extractor

        self.poll_count = 0
        self.state = LoopState.IDLE
        self.last_known: Set[str] = set()
        self.last_fingerprint: Optional[str] = None
        self._baseline_done = False

        self._cycle_lock = threading.Lock()
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    # Control surface
    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive() and not self._stop_event.is_set()

    def start(self) -> bool:
        """Start the background worker; returns False if it is already running.

        A worker that was stopped but is still finishing its cycle is joined
        first, so at most one worker thread exists at a time.
        """
        if self.is_running:
            logger.info("Monitor already running")
            return False
        previous = self._thread
        if previous is not None and previous.is_alive() and previous is not threading.current_thread():
            previous.join()
        self._stop_event = threading.Event()
        self._thread = threading.Thread(target=self._run, args=(self._stop_event,), name="poll-loop", daemon=True)
        self._thread.start()
        logger.info(f"Monitor started (interval {self.settings.interval_seconds:g}s)")
        return True

    def stop(self, wait: bool = True, timeout: Optional[float] = None) -> None:
        """Prevent further cycles; an in-flight cycle is allowed to finish."""
        self._stop_event.set()
        thread = self._thread
        if wait and thread is not None and thread is not threading.current_thread():
            thread.join(timeout)
        self.state = LoopState.STOPPED
        logger.info(f"Monitor stopped after {self.poll_count} polls")

    def status(self) -> MonitorStatus:
        return MonitorStatus(
            is_running=self.is_running,
            poll_count=self.poll_count,
            last_fingerprint_prefix=(self.last_fingerprint or "")[:8],
            state=self.state,
        )

    def run_forever(self) -> None:
        """Block the caller until stop() is called (CLI entry point)."""
        self._stop_event = threading.Event()
        logger.info(f"Monitor running in foreground (interval {self.settings.interval_seconds:g}s)")
        try:
            self._run(self._stop_event)
        finally:
            self.state = LoopState.STOPPED

    # Cycle
    def run_cycle(self) -> CycleResult:
        """One poll. Serialized with the worker, so manual checks queue behind it."""
        with self._cycle_lock:
            started = time.monotonic()
            result = self._run_cycle_locked()
            metrics = get_metrics()
            metrics.record_cycle(success=result.success, duration=time.monotonic() - started)
            metrics.set_gauge("store_size", len(self.store))
            return result

    def _run(self, stop_event: threading.Event) -> None:
        # each worker watches its own event; a later start() cannot revive it
        while not stop_event.is_set():
            try:
                self.run_cycle()
            except Exception as exc:
                _unified.log_error_with_context(exc, {"poll": self.poll_count, "stage": "cycle"})
            if stop_event.wait(self.settings.interval_seconds):
                break

    def _run_cycle_locked(self) -> CycleResult:
        self.poll_count += 1
        poll = self.poll_count

        try:
            page = self.fetcher.fetch()
            items = self.extractor(page.content)
        except FetchError as exc:
            logger.warning(f"Poll #{poll}: fetch failed: {exc}")
            return CycleResult(success=False, poll_count=poll, error=str(exc))
        except Exception as exc:
            _unified.log_error_with_context(exc, {"poll": poll, "stage": "extract"})
            return CycleResult(success=False, poll_count=poll, error=f"{type(exc).__name__}: {exc}")

        fingerprints = [fingerprint(item) for item in items]
        current = set(fingerprints)

        if not self._baseline_done:
            return self._run_baseline(poll, items, fingerprints, current)
        return self._run_steady(poll, items, fingerprints, current)

    def _run_baseline(
        self,
        poll: int,
        items: List[CandidateItem],
        fingerprints: List[str],
        current: Set[str],
    ) -> CycleResult:
        self.state = LoopState.BASELINE
        added = self.store.update(fingerprints)
        if added:
            self.store.save_to_durable()
        self.last_known = current
        self.last_fingerprint = fingerprints[0] if fingerprints else self.last_fingerprint
        self.state = LoopState.STEADY
        self._baseline_done = True

        _unified.log_activity("baseline", {"poll": poll, "items": len(items), "recorded": added})

        if self.settings.announce_startup:
            latest = items[0] if items else None
            try:
                self.notifier.send(format_startup_message(self.settings, latest))
            except NotificationError as exc:
                logger.warning(f"Startup announcement failed: {exc}")

        return CycleResult(success=True, poll_count=poll, baseline=True, items_seen=len(items))

    def _run_steady(
        self,
        poll: int,
        items: List[CandidateItem],
        fingerprints: List[str],
        current: Set[str],
    ) -> CycleResult:
        self.state = LoopState.STEADY
        new = current - self.last_known
        result = CycleResult(success=True, poll_count=poll, items_seen=len(items))
        added_any = False
        handled: Set[str] = set()

        for item, fp in zip(items, fingerprints):
            if fp not in new or fp in handled or self.store.has(fp):
                continue
            handled.add(fp)

            if not is_fresh(item.recency_phrase, self.settings.fresh_max_minutes):
                logger.info(f"Skipping stale report {fp[:8]} ({item.recency_phrase or 'no time'})")
                result.suppressed += 1
            elif not self._passes_amount_filter(item):
                logger.info(f"Skipping report {fp[:8]} below amount threshold ({item.monetary_amount})")
                result.suppressed += 1
            else:
                self._notify(item, fp, result)

            added_any = self.store.add(fp) or added_any

        if added_any:
            self.store.save_to_durable()

        self.last_known = current
        if fingerprints:
            self.last_fingerprint = fingerprints[0]

        _unified.log_activity(
            "poll_cycle",
            {
                "poll": poll,
                "items": len(items),
                "new": len(new),
                "notified": result.notified,
                "suppressed": result.suppressed,
                "failed_notifications": result.failed_notifications,
            },
        )
        return result

    def _notify(self, item: CandidateItem, fp: str, result: CycleResult) -> None:
        message = format_report_message(item, self.settings, observed_at=datetime.now())
        try:
            self.notifier.send(message)
        except NotificationError as exc:
            logger.error(f"Alert for report {fp[:8]} failed: {exc}")
            result.failed_notifications += 1
            get_metrics().record_alert(success=False)
            return
        logger.info(f"Alert sent for report {fp[:8]} ({item.category}, {item.recency_phrase})")
        result.notified += 1
        get_metrics().record_alert(success=True)

    def _passes_amount_filter(self, item: CandidateItem) -> bool:
        threshold = self.settings.min_amount_usd
        if threshold is None:
            return True
        amount = parse_usd_amount(item.monetary_amount)
        return amount is not None and amount >= threshold
