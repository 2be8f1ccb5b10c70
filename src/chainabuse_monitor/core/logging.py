"""
Purpose: Process-wide logging setup (console, rotating text + JSON files) with secret redaction.
Constraints: Logging only; no business logic.

Every module asks for ``UnifiedLogger(name).get_logger()``; the first call
configures the root logger and all others just hand back a named child.
"""

# Imports
import json
import logging
import os
import re
import sys
import threading
import time
import traceback
from datetime import datetime
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Dict, Optional

from chainabuse_monitor.core.metrics import get_metrics

# Constants
REDACTED = "[redacted]"
TEXT_LOG_MAX_BYTES = 10 * 1024 * 1024
JSON_LOG_MAX_BYTES = 5 * 1024 * 1024

_SECRET_PATTERNS = (
    # Telegram bot token, bare or inside an api.telegram.org/bot<token>/ URL
    re.compile(r"(?<!\d)\d{6,12}:[A-Za-z0-9_-]{30,}"),
    re.compile(r"\bsk-[A-Za-z0-9]{16,}\b"),
    re.compile(r"\beyJ[a-zA-Z0-9_\-]+=*\.[a-zA-Z0-9_\-]+=*\.[a-zA-Z0-9_\-]+=*\b"),
)
# user:password@ in proxy URLs
_URL_CREDENTIALS = re.compile(r"(?P<scheme>[a-z][a-z0-9+.-]*://)[^\s/@:]+:[^\s/@]+@", re.IGNORECASE)
_ANY_URL = re.compile(r"https?://[^\s]+", re.IGNORECASE)

_CONSOLE_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"
_FILE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(filename)s:%(lineno)d - %(message)s"


# Public API
def redact(text: str) -> str:
    """Mask bot tokens, API keys and proxy credentials in a log string."""
    if not text:
        return text
    for pattern in _SECRET_PATTERNS:
        text = pattern.sub(REDACTED, text)
    text = _URL_CREDENTIALS.sub(lambda m: f"{m.group('scheme')}{REDACTED}@", text)
    if _flag("REDACT_URLS", "0"):
        text = _ANY_URL.sub(REDACTED, text)
    return text


def logs_dir() -> Path:
    override = os.getenv("LOG_DIR", "").strip()
    if override:
        return Path(override)
    return Path(__file__).resolve().parents[3] / "logs"


class UnifiedLogger:
    """Named logger plus structured helpers used by the fetch, extraction and polling layers."""

    _lock = threading.Lock()
    _configured = False
    _sentry_started = False
    _snapshots_started = False

    def __init__(self, name: str = "chainabuse_monitor", log_level: Optional[str] = None):
        self.name = name
        level = getattr(logging, (log_level or os.getenv("LOG_LEVEL", "INFO")).upper(), logging.INFO)

        with self._lock:
            self.logger = logging.getLogger(name)
            self.logger.setLevel(level)
            self.logger.propagate = True
            if not UnifiedLogger._configured:
                UnifiedLogger._configured = True
                self._configure_process(level)

    def get_logger(self) -> logging.Logger:
        return self.logger

    def log_activity(self, action: str, details: Dict[str, Any], level: str = "INFO"):
        """One structured line per monitor event; ``details`` lands in the JSON log."""
        log_level = getattr(logging, level.upper(), logging.INFO)
        summary = ", ".join(f"{key}={value}" for key, value in details.items())
        self.logger.log(log_level, f"ACTIVITY: {action} ({summary})", extra={"action": action, "details": details})
        get_metrics().record(f"activity.{action}", success=log_level < logging.ERROR)

    def log_error_with_context(self, error: Exception, context: Dict[str, Any], level: str = "ERROR"):
        details = {
            "timestamp": datetime.now().isoformat(),
            "error_type": type(error).__name__,
            "error_message": str(error),
            "context": context,
        }
        if self.logger.isEnabledFor(logging.DEBUG):
            details["traceback"] = traceback.format_exc()
        self.logger.log(
            getattr(logging, level.upper(), logging.ERROR),
            f"ERROR: {type(error).__name__}: {error}",
            extra={"details": details},
        )
        get_metrics().record_error("exception")

    # Process setup
    def _configure_process(self, level: int) -> None:
        directory = logs_dir()
        if _flag("ENABLE_ROOT_LOGGER", "1") and not logging.getLogger().handlers:
            log_file = _install_root_handlers(directory, level)
            if _flag("METRICS_ENABLED", "1"):
                self._start_snapshots(directory)
            self.logger.info(f"Logger initialized. Log file: {log_file}")
        self._start_sentry()

    def _start_snapshots(self, directory: Path) -> None:
        interval = int(os.getenv("METRICS_SNAPSHOT_INTERVAL_SEC", "60"))
        if UnifiedLogger._snapshots_started or interval <= 0:
            return
        target = directory / "metrics.jsonl"
        quiet = logging.getLogger(f"{self.name}.metrics")

        def _loop():
            while True:
                time.sleep(interval)
                try:
                    get_metrics().write_snapshot(target)
                except OSError as exc:
                    quiet.debug(f"Metrics snapshot write failed: {exc}")

        threading.Thread(target=_loop, daemon=True, name="metrics-snapshotter").start()
        UnifiedLogger._snapshots_started = True

    def _start_sentry(self) -> None:
        dsn = os.getenv("SENTRY_DSN", "").strip()
        if UnifiedLogger._sentry_started or not dsn:
            return

        import sentry_sdk
        from sentry_sdk.integrations.logging import LoggingIntegration

        sentry_sdk.init(
            dsn=dsn,
            environment=os.getenv("SENTRY_ENVIRONMENT", "production"),
            release=os.getenv("SENTRY_RELEASE"),
            traces_sample_rate=float(os.getenv("SENTRY_TRACES_SAMPLE_RATE", "0.0")),
            integrations=[LoggingIntegration(level=logging.INFO, event_level=logging.ERROR)],
            before_send=_scrub_sentry_event,
        )
        UnifiedLogger._sentry_started = True


# Helpers
def _flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() not in ("0", "false", "no")


def _redact_value(value):
    if isinstance(value, str):
        return redact(value)
    if isinstance(value, dict):
        return {key: _redact_value(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return type(value)(_redact_value(item) for item in value)
    return value


def _scrub_sentry_event(event, hint):
    return _redact_value(event)


def _install_root_handlers(directory: Path, level: int) -> Path:
    directory.mkdir(parents=True, exist_ok=True)
    stamp = datetime.now().strftime("%Y%m%d")
    scrub = _flag("LOG_REDACTION", "1")
    root = logging.getLogger()
    root.setLevel(level)

    text_file = directory / f"monitor_{stamp}.log"
    file_handler = RotatingFileHandler(text_file, maxBytes=TEXT_LOG_MAX_BYTES, backupCount=5, encoding="utf-8")
    file_handler.setLevel(level)
    file_handler.setFormatter(_RedactingFormatter(_FILE_FORMAT, enabled=scrub))
    root.addHandler(file_handler)

    console = logging.StreamHandler(sys.stdout)
    console.setLevel(getattr(logging, os.getenv("CONSOLE_LOG_LEVEL", "INFO").upper(), logging.INFO))
    console.setFormatter(_RedactingFormatter(_CONSOLE_FORMAT, enabled=scrub))
    root.addHandler(console)

    if _flag("ENABLE_JSON_LOGGING", "1"):
        json_handler = RotatingFileHandler(
            directory / f"monitor_json_{stamp}.log",
            maxBytes=JSON_LOG_MAX_BYTES,
            backupCount=3,
            encoding="utf-8",
        )
        json_handler.setLevel(level)
        json_handler.setFormatter(_JsonFormatter(redact_values=scrub))
        root.addHandler(json_handler)

    if _flag("METRICS_ENABLED", "1"):
        root.addHandler(_MetricsHandler())
    return text_file


class _MetricsHandler(logging.Handler):
    """Counts records per level."""

    def emit(self, record: logging.LogRecord) -> None:
        get_metrics().record(f"log.{record.levelname.lower()}", success=record.levelno < logging.ERROR)


class _RedactingFormatter(logging.Formatter):
    def __init__(self, fmt: str, enabled: bool = True):
        super().__init__(fmt)
        self.enabled = enabled

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        return redact(line) if self.enabled else line


class _JsonFormatter(logging.Formatter):
    _EXTRA_FIELDS = ("action", "details")

    def __init__(self, redact_values: bool = True):
        super().__init__()
        self.redact_values = redact_values

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": datetime.fromtimestamp(record.created).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }
        for field_name in self._EXTRA_FIELDS:
            if hasattr(record, field_name):
                payload[field_name] = getattr(record, field_name)
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        if self.redact_values:
            payload = _redact_value(payload)
        return json.dumps(payload, default=str)
