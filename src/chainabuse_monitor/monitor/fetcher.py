"""
Purpose: Fetch the report listing page over HTTP, optionally through a proxy.
Constraints: Network I/O only; parsing happens in the extractor.
"""

# Imports
import time
from datetime import datetime
from typing import Dict, Optional

import requests

from chainabuse_monitor.core.config_models import MonitorSettings, ProxyConfig
from chainabuse_monitor.core.errors import FetchError
from chainabuse_monitor.core.logging import UnifiedLogger
from chainabuse_monitor.core.models import FetchedPage
from chainabuse_monitor.core.utils.http import get_with_retry

logger = UnifiedLogger("chainabuse_monitor.fetcher").get_logger()


# Public API
class PageFetcher:
    """GETs the listing with browser-like, cache-defeating headers."""

    def __init__(
        self,
        settings: Optional[MonitorSettings] = None,
        proxy: Optional[ProxyConfig] = None,
        session: Optional[requests.Session] = None,
    ):
        self.settings = settings or MonitorSettings()
        self.proxy = proxy
        self.session = session or requests.Session()

    def build_headers(self) -> Dict[str, str]:
        return {
            "User-Agent": self.settings.user_agent,
            "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
            "Accept-Language": "en-US,en;q=0.9",
            "Cache-Control": "no-cache, no-store, must-revalidate",
            "Pragma": "no-cache",
            "Expires": "0",
        }

    def fetch(self, url: Optional[str] = None) -> FetchedPage:
        """Return the page body; raises FetchError on transport failure or non-2xx."""
        target = url or self.settings.listing_url
        params = {"_t": str(int(time.time() * 1000))}
        proxies = self.proxy.as_requests_proxies() if self.proxy else None

        try:
            response = get_with_retry(
                target,
                params=params,
                headers=self.build_headers(),
                proxies=proxies,
                timeout=self.settings.request_timeout,
                attempts=self.settings.http_attempts,
                session=self.session,
            )
        except requests.RequestException as exc:
            raise FetchError(f"Request to {target} failed: {exc}") from exc

        if not 200 <= response.status_code < 300:
            raise FetchError(f"HTTP {response.status_code} from {target}", status=response.status_code)

        logger.debug(f"Fetched {target}: {response.status_code}, {len(response.text)} chars")
        return FetchedPage(
            content=response.text,
            status=response.status_code,
            url=target,
            fetched_at=datetime.now(),
        )
