"""
Purpose: HTTP helpers with retry/backoff for the listing fetch and Telegram calls.
Constraints: No business logic; callers handle response validation.
"""

from __future__ import annotations

from typing import FrozenSet, Optional

import requests

from chainabuse_monitor.core.logging import UnifiedLogger
from chainabuse_monitor.core.utils.retry import RetryPolicy, retry

logger = UnifiedLogger("chainabuse_monitor.http").get_logger()

RETRYABLE_STATUSES: FrozenSet[int] = frozenset({429, 500, 502, 503, 504})


class RetryableStatus(Exception):
    """Carries a retryable response through the retry loop."""

    def __init__(self, response: requests.Response):
        super().__init__(f"HTTP {response.status_code}")
        self.response = response


def request_with_retry(
    method: str,
    url: str,
    *,
    policy: Optional[RetryPolicy] = None,
    attempts: Optional[int] = None,
    retry_on_status: Optional[FrozenSet[int]] = None,
    session: Optional[requests.Session] = None,
    **kwargs,
) -> requests.Response:
    """Send a request, retrying transport errors and retryable statuses.

    When the final attempt still returns a retryable status the response is
    returned so the caller can report it; transport errors propagate.
    ``attempts`` overrides the policy's attempt count.
    """
    policy = (policy or RetryPolicy.from_env()).with_overrides(attempts=attempts)
    statuses = RETRYABLE_STATUSES if retry_on_status is None else retry_on_status
    sender = session.request if session is not None else requests.request

    def _send() -> requests.Response:
        response = sender(method, url, **kwargs)
        if response.status_code in statuses:
            raise RetryableStatus(response)
        return response

    def _log_retry(attempt: int, exc: Exception) -> None:
        # no URL or exception text here; Telegram URLs embed the bot token
        logger.warning(f"{method} attempt {attempt}/{policy.attempts} failed ({type(exc).__name__}); retrying")

    try:
        return retry(
            _send,
            policy,
            exceptions=(requests.RequestException, RetryableStatus),
            on_retry=_log_retry,
        )
    except RetryableStatus as exc:
        return exc.response


def get_with_retry(url: str, **kwargs) -> requests.Response:
    return request_with_retry("GET", url, **kwargs)


def post_with_retry(url: str, **kwargs) -> requests.Response:
    return request_with_retry("POST", url, **kwargs)
