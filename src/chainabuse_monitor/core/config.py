"""
Purpose: Load environment and JSON configuration for the monitor.
Constraints: Pure config I/O only; no network or polling side effects.
"""

# Imports
import os
import json
from pathlib import Path
from typing import Any, Dict, Optional

from pydantic import ValidationError

from chainabuse_monitor.core.config_models import MonitorSettings, ProxyConfig, TelegramSettings
from chainabuse_monitor.core.errors import ConfigError

# Environment variable -> MonitorSettings field
_MONITOR_ENV_FIELDS = {
    "MONITOR_URL": "listing_url",
    "REPORT_URL_TEMPLATE": "report_url_template",
    "POLL_INTERVAL_SECONDS": "interval_seconds",
    "FRESH_MAX_MINUTES": "fresh_max_minutes",
    "SENT_REPORTS_PATH": "store_path",
    "SENT_REPORTS_CAP": "store_cap",
    "MIN_AMOUNT_USD": "min_amount_usd",
    "REQUEST_TIMEOUT": "request_timeout",
    "HTTP_RETRY_ATTEMPTS": "http_attempts",
    "ANNOUNCE_STARTUP": "announce_startup",
    "MONITOR_USER_AGENT": "user_agent",
}


# Public API
class ConfigManager:
    """Configuration for the fetch, notify and polling layers"""

    def __init__(self, config_dir: Optional[Path] = None):
        self.config_dir = Path(config_dir) if config_dir else Path(__file__).resolve().parents[3] / "config"

        self.telegram = TelegramSettings()
        self.proxy: Optional[ProxyConfig] = None
        self.monitor = MonitorSettings()
        self.file_settings: Dict[str, Any] = {}
        self.loaded_env_file: Optional[Path] = None

    def load_all(self):
        """Load all configurations"""
        self.load_env()
        self.load_settings()
        return self

    def load_env(self):
        """Load environment variables (dotenv file first if one exists)"""
        from dotenv import load_dotenv

        env_files = [
            self.config_dir / "credentials.env",
            Path.cwd() / ".env",
            Path.home() / ".chainabuse_monitor.env",
        ]

        for env_file in env_files:
            if env_file.exists():
                load_dotenv(env_file)
                self.loaded_env_file = env_file
                break

        if self.loaded_env_file:
            print(f"✓ Loaded environment from: {self.loaded_env_file}")
        else:
            print("⚠️  No .env file found")

        self.telegram = TelegramSettings(
            bot_token=os.getenv("TELEGRAM_BOT_TOKEN", "").strip(),
            chat_id=os.getenv("TELEGRAM_CHAT_ID", "").strip(),
            disable_preview=_truthy(os.getenv("TELEGRAM_DISABLE_PREVIEW", "0")),
        )

        proxy_raw = os.getenv("PROXY_CONFIG", "").strip()
        self.proxy = None
        if proxy_raw:
            try:
                self.proxy = ProxyConfig.from_string(proxy_raw)
            except ValueError as exc:
                raise ConfigError(f"Invalid PROXY_CONFIG: {exc}") from exc

        return self

    def load_settings(self):
        """Load monitor settings: defaults < config/settings.json < environment"""
        self.file_settings = self._load_settings_file()
        merged: Dict[str, Any] = dict(self.file_settings.get("monitor", {}) or {})
        merged.update(self._env_overrides())
        try:
            self.monitor = MonitorSettings(**merged)
        except ValidationError as exc:
            raise ConfigError(f"Invalid monitor settings: {exc}") from exc
        return self

    def _load_settings_file(self) -> Dict[str, Any]:
        settings_file = self.config_dir / "settings.json"
        if not settings_file.exists():
            return {}
        try:
            with settings_file.open("r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            print(f"Error reading settings.json: {e}")
            return {}
        if not isinstance(data, dict):
            print("⚠️  Invalid format in settings.json, using defaults")
            return {}
        return data

    def _env_overrides(self) -> Dict[str, Any]:
        overrides: Dict[str, Any] = {}
        for env_name, field_name in _MONITOR_ENV_FIELDS.items():
            value = os.getenv(env_name)
            if value is None or not value.strip():
                continue
            if field_name == "announce_startup":
                overrides[field_name] = _truthy(value)
            else:
                overrides[field_name] = value.strip()
        return overrides

    def require_telegram(self) -> TelegramSettings:
        """Fail fast when alert delivery cannot work."""
        if not self.telegram.configured:
            raise ConfigError("Missing TELEGRAM_BOT_TOKEN or TELEGRAM_CHAT_ID")
        return self.telegram

    def print_summary(self):
        """Print configuration summary"""
        print("\n" + "=" * 50)
        print("Configuration Summary")
        print("=" * 50)
        print(f"Listing URL: {self.monitor.listing_url}")
        print(f"Poll interval: {self.monitor.interval_seconds}s")
        print(f"Fresh window: <= {self.monitor.fresh_max_minutes} minutes")
        print(f"Store: {self.monitor.store_path} (cap {self.monitor.store_cap})")
        if self.monitor.min_amount_usd is not None:
            print(f"Minimum amount: {self.monitor.min_amount_usd:,.2f} USD")
        else:
            print("Minimum amount: (disabled)")

        print("\nCredentials:")
        token = self.telegram.bot_token
        print(f"  bot_token: {'***' + token[-3:] if len(token) > 3 else '(empty)'}")
        print(f"  chat_id: {self.telegram.chat_id or '(empty)'}")
        if self.proxy:
            print(f"  proxy: {self.proxy.host}:{self.proxy.port} (user {self.proxy.username or '-'})")
        else:
            print("  proxy: (direct)")
        print("=" * 50 + "\n")


def _truthy(value: Any) -> bool:
    if value is None:
        return False
    return str(value).strip().lower() in {"1", "true", "yes", "y", "on"}
