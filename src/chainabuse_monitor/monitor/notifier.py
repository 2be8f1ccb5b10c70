"""
Purpose: Format report alerts and deliver them through the Telegram Bot API.
Constraints: Message building is pure; only TelegramNotifier.send performs I/O.
"""

# Imports
import html
from datetime import datetime
from typing import Optional

import requests

from chainabuse_monitor.core.config_models import MonitorSettings, TelegramSettings
from chainabuse_monitor.core.errors import NotificationError
from chainabuse_monitor.core.extraction.addresses import address_chain
from chainabuse_monitor.core.logging import UnifiedLogger
from chainabuse_monitor.core.models import OTHER_CATEGORY, UNKNOWN_AUTHOR, CandidateItem
from chainabuse_monitor.core.text_normalization import preview_text
from chainabuse_monitor.core.utils.http import post_with_retry

logger = UnifiedLogger("chainabuse_monitor.notifier").get_logger()

# Constants
# Telegram rejects messages over 4096 characters; the body is the only unbounded part
MAX_BODY_CHARS = 3000
TIMESTAMP_FORMAT = "%m/%d/%Y, %I:%M:%S %p"


# Public API
class TelegramNotifier:
    """Sends HTML-formatted messages to one chat."""

    def __init__(
        self,
        telegram: TelegramSettings,
        timeout: float = 30.0,
        attempts: int = 1,
        session: Optional[requests.Session] = None,
    ):
        self.telegram = telegram
        self.timeout = timeout
        self.attempts = attempts
        self.session = session or requests.Session()

    @property
    def endpoint(self) -> str:
        return f"{self.telegram.api_base.rstrip('/')}/bot{self.telegram.bot_token}/sendMessage"

    def send(self, message: str) -> None:
        """Deliver one message; raises NotificationError on any failure."""
        if not self.telegram.configured:
            raise NotificationError("Telegram bot token or chat id is not configured")
        payload = {
            "chat_id": self.telegram.chat_id,
            "text": message,
            "parse_mode": "HTML",
            "disable_web_page_preview": self.telegram.disable_preview,
        }
        try:
            response = post_with_retry(
                self.endpoint,
                json=payload,
                timeout=self.timeout,
                attempts=self.attempts,
                session=self.session,
            )
        except requests.RequestException as exc:
            # the exception text can carry the endpoint URL, which embeds the token
            raise NotificationError(f"Telegram request failed: {type(exc).__name__}") from exc

        if not 200 <= response.status_code < 300:
            raise NotificationError(
                f"Telegram API returned {response.status_code}: {response.text[:200]}",
                status=response.status_code,
            )
        logger.debug(f"Telegram message delivered ({len(message)} chars)")


def format_report_message(
    item: CandidateItem,
    settings: Optional[MonitorSettings] = None,
    observed_at: Optional[datetime] = None,
) -> str:
    """HTML alert for one new report; every interpolated value is escaped."""
    settings = settings or MonitorSettings()
    observed_at = observed_at or datetime.now()
    esc = html.escape

    message = "🚨 <b>NEW CHAINABUSE REPORT DETECTED</b>\n\n"
    if item.category and item.category != OTHER_CATEGORY:
        message += f"🏷️ <b>Category:</b> {esc(item.category)}\n"
    message += f"⏰ <b>Published:</b> {esc(item.recency_phrase or 'unknown')}\n"

    body = item.body or item.raw_text
    message += f"\n📝 <b>Report Content:</b>\n{esc(preview_text(body, width=MAX_BODY_CHARS))}"

    if item.monetary_amount:
        message += f"\n\n💰 <b>Amount Lost:</b> {esc(item.monetary_amount)}"
    if item.author and item.author != UNKNOWN_AUTHOR:
        message += f"\n\n👤 <b>Submitted by:</b> {esc(item.author)}"
    if item.domain:
        message += f"\n🌐 <b>Reported Domain:</b> {esc(item.domain)}"
    if item.addresses:
        message += "\n💳 <b>Reported Addresses:</b>\n"
        message += "".join(
            f"{esc(address)} ({address_chain(address, item.raw_text)})\n" for address in item.addresses
        )
    if item.threat_detected_at:
        message += f"\n🚨 <b>Threat Detected:</b> {esc(_format_threat_time(item.threat_detected_at))}"

    if item.detail_id:
        url = settings.report_url(item.detail_id)
        link_text = f"View Report {item.detail_id[:8]}..."
        link_info = ""
    else:
        url = settings.listing_url
        link_text = "View Reports Page"
        link_info = "\n⚠️ <i>Direct link unavailable</i>"

    message += (
        f"{link_info}\n\n🔗 <a href=\"{esc(url, quote=True)}\">{link_text}</a>\n\n"
        f"📊 {observed_at.strftime(TIMESTAMP_FORMAT)}"
    )
    return message


def format_startup_message(
    settings: Optional[MonitorSettings] = None,
    latest: Optional[CandidateItem] = None,
    started_at: Optional[datetime] = None,
) -> str:
    settings = settings or MonitorSettings()
    started_at = started_at or datetime.now()
    message = (
        "🚀 <b>ChainAbuse Monitor Started</b>\n\n"
        f"⏰ <b>Started:</b> {started_at.strftime(TIMESTAMP_FORMAT)}\n"
        f"🔄 Checking every {settings.interval_seconds:g} seconds\n"
    )
    if latest is not None:
        message += (
            "\n🔍 <b>Latest report preview:</b>\n"
            f"⏰ {html.escape(latest.recency_phrase or 'unknown')}\n"
            f"🏷️ {html.escape(latest.category)}\n"
            f"📝 {html.escape(preview_text(latest.body or latest.raw_text, width=100))}\n"
        )
    message += "\n📡 <b>Monitoring for new reports...</b>"
    return message


def format_test_message(sent_at: Optional[datetime] = None) -> str:
    sent_at = sent_at or datetime.now()
    return (
        "🧪 <b>ChainAbuse Monitor test message</b>\n\n"
        f"Time: {sent_at.strftime(TIMESTAMP_FORMAT)}\n\n"
        "If you can read this, the Telegram bot is configured correctly ✅"
    )


# Helpers
def _format_threat_time(value: str) -> str:
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return value
    return parsed.strftime(TIMESTAMP_FORMAT)
