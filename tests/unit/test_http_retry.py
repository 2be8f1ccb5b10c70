import pytest
import requests

from chainabuse_monitor.core.utils.http import request_with_retry
from chainabuse_monitor.core.utils.retry import RetryPolicy, retry

NO_WAIT = RetryPolicy(attempts=2, base_delay=0, jitter=0)


class FakeResponse:
    def __init__(self, status_code):
        self.status_code = status_code


class ScriptedSession:
    def __init__(self, outcomes):
        self.outcomes = list(outcomes)
        self.calls = 0

    def request(self, method, url, **kwargs):
        self.calls += 1
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return FakeResponse(outcome)


def _request(session, attempts):
    return request_with_retry("GET", "https://example.test", policy=NO_WAIT, attempts=attempts, session=session)


def test_retryable_status_is_retried():
    session = ScriptedSession([503, 200])
    assert _request(session, attempts=2).status_code == 200
    assert session.calls == 2


def test_last_retryable_response_is_returned():
    session = ScriptedSession([503, 502])
    assert _request(session, attempts=2).status_code == 502


def test_single_attempt_does_not_retry():
    session = ScriptedSession([500, 200])
    assert _request(session, attempts=1).status_code == 500
    assert session.calls == 1


def test_transport_error_retried_then_propagates():
    session = ScriptedSession([requests.ConnectionError("down"), requests.Timeout("slow")])
    with pytest.raises(requests.Timeout):
        _request(session, attempts=2)
    assert session.calls == 2


def test_client_errors_are_not_retried():
    session = ScriptedSession([404, 200])
    assert _request(session, attempts=3).status_code == 404
    assert session.calls == 1


def test_retry_helper_backoff_and_callbacks():
    delays, retries = [], []
    outcomes = iter([ValueError("a"), ValueError("b"), "ok"])

    def flaky():
        value = next(outcomes)
        if isinstance(value, Exception):
            raise value
        return value

    result = retry(
        flaky,
        RetryPolicy(attempts=3, base_delay=1.0, max_delay=1.5, jitter=0),
        on_retry=lambda attempt, exc: retries.append(attempt),
        sleep=delays.append,
    )
    assert result == "ok"
    assert retries == [1, 2]
    assert delays == [1.0, 1.5]


def test_retry_only_catches_listed_exceptions():
    calls = []

    def broken():
        calls.append(1)
        raise KeyError("nope")

    with pytest.raises(KeyError):
        retry(broken, RetryPolicy(attempts=3, jitter=0), exceptions=(ValueError,), sleep=lambda _: None)
    assert len(calls) == 1


def test_policy_delay_caps():
    policy = RetryPolicy(base_delay=0.5, max_delay=5.0, jitter=0)
    assert policy.delay(1) == 0.5
    assert policy.delay(3) == 2.0
    assert policy.delay(10) == 5.0


def test_policy_from_env_and_overrides(monkeypatch):
    monkeypatch.setenv("HTTP_RETRY_ATTEMPTS", "4")
    monkeypatch.setenv("HTTP_RETRY_JITTER", "0")
    policy = RetryPolicy.from_env(base_delay=2.0, max_delay=None)
    assert policy.attempts == 4
    assert policy.base_delay == 2.0
    assert policy.max_delay == 5.0
    assert list(policy.delays()) == [2.0, 4.0, 5.0]


def test_policy_rejects_zero_attempts():
    with pytest.raises(ValueError):
        RetryPolicy(attempts=0)
