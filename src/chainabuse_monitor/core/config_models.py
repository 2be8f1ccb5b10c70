"""
Purpose: Typed configuration models with validation.
Constraints: Pure models; no file I/O or side effects.
"""

from __future__ import annotations

from typing import Optional
from urllib.parse import quote

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_LISTING_URL = "https://www.chainabuse.com/reports?sort=newest"
DEFAULT_REPORT_URL_TEMPLATE = "https://www.chainabuse.com/report/{report_id}?context=browse-all"
DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)


class TelegramSettings(BaseModel):
    model_config = ConfigDict(extra="allow")
    bot_token: str = ""
    chat_id: str = ""
    api_base: str = "https://api.telegram.org"
    disable_preview: bool = False

    @property
    def configured(self) -> bool:
        return bool(self.bot_token and self.chat_id)


class ProxyConfig(BaseModel):
    """Forward proxy given as ``host:port:username:password``."""

    model_config = ConfigDict(frozen=True)
    host: str
    port: int
    username: str
    password: str

    @field_validator("host")
    @classmethod
    def _host_not_empty(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("proxy host must not be empty")
        return value

    @field_validator("port")
    @classmethod
    def _port_in_range(cls, value: int) -> int:
        if not 0 < value < 65536:
            raise ValueError(f"proxy port out of range: {value}")
        return value

    @classmethod
    def from_string(cls, raw: str) -> "ProxyConfig":
        parts = (raw or "").strip().split(":")
        if len(parts) != 4:
            raise ValueError("Invalid proxy config format. Expected: host:port:username:password")
        host, port, username, password = parts
        try:
            port_num = int(port)
        except ValueError as exc:
            raise ValueError(f"Invalid proxy port: {port!r}") from exc
        return cls(host=host, port=port_num, username=username, password=password)

    def as_url(self) -> str:
        auth = ""
        if self.username:
            auth = f"{quote(self.username, safe='')}:{quote(self.password, safe='')}@"
        return f"http://{auth}{self.host}:{self.port}"

    def as_requests_proxies(self) -> dict:
        url = self.as_url()
        return {"http": url, "https": url}


class MonitorSettings(BaseModel):
    model_config = ConfigDict(extra="allow", validate_assignment=True)
    listing_url: str = DEFAULT_LISTING_URL
    report_url_template: str = DEFAULT_REPORT_URL_TEMPLATE
    interval_seconds: float = Field(default=30.0, gt=0)
    fresh_max_minutes: int = Field(default=5, ge=0)
    store_path: str = "data/sent-reports.json"
    store_cap: int = Field(default=2000, gt=0)
    min_amount_usd: Optional[float] = None
    request_timeout: float = 30.0
    http_attempts: int = Field(default=1, ge=1)
    announce_startup: bool = False
    user_agent: str = DEFAULT_USER_AGENT

    def report_url(self, report_id: str) -> str:
        return self.report_url_template.format(report_id=report_id)
