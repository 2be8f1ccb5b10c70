import pytest

from chainabuse_monitor.core.freshness import FRESH_MAX_MINUTES, is_fresh


@pytest.mark.parametrize(
    "phrase",
    [
        "just now",
        "a few seconds ago",
        "1 second ago",
        "49 seconds ago",
        "a minute ago",
        "an minute ago",
        "1 minute ago",
        "5 minutes ago",
        "  5  Minutes AGO ",
    ],
)
def test_fresh_phrases(phrase):
    assert is_fresh(phrase)


@pytest.mark.parametrize(
    "phrase",
    [
        "",
        "50 seconds ago",
        "59 seconds ago",
        "6 minutes ago",
        "10 minutes ago",
        "15 minutes ago",
        "25 minutes ago",
        "an hour ago",
        "1 hour ago",
        "2 days ago",
        "yesterday",
        "5 minutes",
    ],
)
def test_stale_or_unparsable_phrases(phrase):
    assert not is_fresh(phrase)


def test_none_is_not_fresh():
    assert not is_fresh(None)


def test_threshold_is_configurable():
    assert FRESH_MAX_MINUTES == 5
    assert is_fresh("10 minutes ago", max_minutes=10)
    assert not is_fresh("3 minutes ago", max_minutes=2)
    assert not is_fresh("a minute ago", max_minutes=0)
