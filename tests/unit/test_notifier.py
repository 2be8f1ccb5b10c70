import unittest
from datetime import datetime

import requests

from chainabuse_monitor.core.config_models import MonitorSettings, TelegramSettings
from chainabuse_monitor.core.errors import NotificationError
from chainabuse_monitor.core.models import CandidateItem
from chainabuse_monitor.monitor.notifier import (
    TelegramNotifier,
    format_report_message,
    format_startup_message,
    format_test_message,
)

REPORT_ID = "3f1c2d4e-aaaa-bbbb-cccc-1234567890ab"
OBSERVED = datetime(2024, 5, 1, 14, 30, 0)


class FakeResponse:
    def __init__(self, status_code=200, text='{"ok": true}'):
        self.status_code = status_code
        self.text = text


class FakeSession:
    def __init__(self, responses=None, error=None):
        self.responses = list(responses or [FakeResponse()])
        self.error = error
        self.calls = []

    def request(self, method, url, **kwargs):
        self.calls.append((method, url, kwargs))
        if self.error:
            raise self.error
        return self.responses.pop(0)


def _item(**overrides):
    values = {
        "raw_text": "raw",
        "position": 0,
        "recency_phrase": "2 minutes ago",
        "category": "Phishing Scam",
        "body": "Fake <b>airdrop</b> & drain",
        "author": "bob",
        "monetary_amount": "1,200 USD",
        "domain": "evil-drop.com",
        "addresses": ("0x52908400098527886E0F7030069857D2E4169EE7", "TXYZopYRdj2D9XRtbG411XZZ3kM5VkAeBf"),
        "detail_id": REPORT_ID,
        "threat_detected_at": "2024-05-01T10:20:30Z",
    }
    values.update(overrides)
    return CandidateItem(**values)


class FormatReportMessageTests(unittest.TestCase):
    def test_full_message(self):
        message = format_report_message(_item(), MonitorSettings(), observed_at=OBSERVED)
        self.assertTrue(message.startswith("🚨 <b>NEW CHAINABUSE REPORT DETECTED</b>"))
        self.assertIn("🏷️ <b>Category:</b> Phishing Scam", message)
        self.assertIn("⏰ <b>Published:</b> 2 minutes ago", message)
        self.assertIn("Fake &lt;b&gt;airdrop&lt;/b&gt; &amp; drain", message)
        self.assertIn("💰 <b>Amount Lost:</b> 1,200 USD", message)
        self.assertIn("👤 <b>Submitted by:</b> bob", message)
        self.assertIn("🌐 <b>Reported Domain:</b> evil-drop.com", message)
        self.assertIn(
            "0x52908400098527886E0F7030069857D2E4169EE7 (Ethereum)\nTXYZopYRdj2D9XRtbG411XZZ3kM5VkAeBf (Tron)\n", message
        )
        self.assertIn("🚨 <b>Threat Detected:</b> 05/01/2024, 10:20:30 AM", message)
        self.assertIn(
            f'<a href="https://www.chainabuse.com/report/{REPORT_ID}?context=browse-all">View Report 3f1c2d4e...</a>',
            message,
        )
        self.assertTrue(message.endswith("📊 05/01/2024, 02:30:00 PM"))

    def test_optional_sections_are_omitted(self):
        item = _item(
            category="Other",
            author="unknown",
            monetary_amount=None,
            domain=None,
            addresses=(),
            threat_detected_at=None,
            detail_id=None,
        )
        message = format_report_message(item, MonitorSettings(), observed_at=OBSERVED)
        self.assertNotIn("Category:", message)
        self.assertNotIn("Submitted by:", message)
        self.assertNotIn("Amount Lost:", message)
        self.assertNotIn("Reported Domain:", message)
        self.assertNotIn("Reported Addresses:", message)
        self.assertIn("View Reports Page", message)
        self.assertIn("Direct link unavailable", message)
        self.assertIn('href="https://www.chainabuse.com/reports?sort=newest"', message)

    def test_address_chain_follows_report_context(self):
        item = _item(
            raw_text="Sent 400 USDC on Polygon to 0x52908400098527886E0F7030069857D2E4169EE7",
            addresses=("0x52908400098527886E0F7030069857D2E4169EE7",),
        )
        message = format_report_message(item, MonitorSettings(), observed_at=OBSERVED)
        self.assertIn("0x52908400098527886E0F7030069857D2E4169EE7 (Polygon)\n", message)

    def test_startup_and_test_messages(self):
        startup = format_startup_message(MonitorSettings(), _item(), started_at=OBSERVED)
        self.assertIn("Monitor Started", startup)
        self.assertIn("Checking every 30 seconds", startup)
        self.assertIn("Latest report preview", startup)
        self.assertIn("test message", format_test_message(OBSERVED))


class TelegramNotifierTests(unittest.TestCase):
    def setUp(self):
        self.telegram = TelegramSettings(bot_token="123456:ABC", chat_id="42")

    def test_send_posts_html_message(self):
        session = FakeSession()
        TelegramNotifier(self.telegram, session=session).send("<b>hi</b>")
        method, url, kwargs = session.calls[0]
        self.assertEqual(method, "POST")
        self.assertEqual(url, "https://api.telegram.org/bot123456:ABC/sendMessage")
        self.assertEqual(kwargs["json"]["chat_id"], "42")
        self.assertEqual(kwargs["json"]["parse_mode"], "HTML")
        self.assertEqual(kwargs["json"]["text"], "<b>hi</b>")

    def test_non_2xx_raises(self):
        session = FakeSession([FakeResponse(400, '{"ok": false}')])
        with self.assertRaises(NotificationError) as ctx:
            TelegramNotifier(self.telegram, session=session).send("x")
        self.assertEqual(ctx.exception.status, 400)

    def test_server_error_after_last_attempt_raises(self):
        session = FakeSession([FakeResponse(502, "bad gateway")])
        with self.assertRaises(NotificationError):
            TelegramNotifier(self.telegram, session=session).send("x")

    def test_transport_error_raises_without_leaking_token(self):
        error = requests.ConnectionError("https://api.telegram.org/bot123456:ABC/sendMessage unreachable")
        session = FakeSession(error=error)
        with self.assertRaises(NotificationError) as ctx:
            TelegramNotifier(self.telegram, session=session).send("x")
        self.assertNotIn("123456:ABC", str(ctx.exception))

    def test_unconfigured_raises(self):
        with self.assertRaises(NotificationError):
            TelegramNotifier(TelegramSettings(), session=FakeSession()).send("x")
