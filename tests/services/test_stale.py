"""Tests for stale pull request handling."""

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock

import pytest

from dependabot_bouncer.services.github.models import PRAction
from dependabot_bouncer.services.stale import (
    close_pull_requests,
    find_stale_pull_requests,
    format_age,
    parse_duration,
)

NOW = datetime(2024, 6, 1, tzinfo=timezone.utc)


@pytest.mark.parametrize(
    "value,expected",
    [
        ("720h", timedelta(hours=720)),
        ("30d", timedelta(days=30)),
        ("2w", timedelta(weeks=2)),
        ("1d12h", timedelta(days=1, hours=12)),
        ("90m", timedelta(minutes=90)),
        (" 45S ", timedelta(seconds=45)),
    ],
)
def test_parse_duration(value: str, expected: timedelta) -> None:
    """Test supported duration formats."""
    assert parse_duration(value) == expected


@pytest.mark.parametrize("value", ["", "30", "thirty days", "30x", "d30", "0d", "0h0m"])
def test_parse_duration_invalid(value: str) -> None:
    """Test malformed and zero durations are rejected."""
    with pytest.raises(ValueError):
        parse_duration(value)


@pytest.mark.parametrize(
    "age,expected",
    [
        (timedelta(minutes=30), "less than 1 hour"),
        (timedelta(hours=1), "1 hour"),
        (timedelta(hours=5), "5 hours"),
        (timedelta(days=1), "1 day"),
        (timedelta(days=3), "3 days"),
        (timedelta(days=14), "2 weeks"),
        (timedelta(days=45), "1 month"),
        (timedelta(days=800), "2 years"),
    ],
)
def test_format_age(age: timedelta, expected: str) -> None:
    """Test ages are rendered in their largest whole unit."""
    assert format_age(age) == expected


def test_find_stale_pull_requests(record_factory) -> None:
    """Test only labelled PRs at least max_age old are returned, in order."""
    records = [
        record_factory(1, labels=["dependencies"], created_at=NOW - timedelta(days=40)),
        record_factory(2, labels=["dependencies"], created_at=NOW - timedelta(days=5)),
        record_factory(3, labels=["Dependencies", "go"], created_at=NOW - timedelta(days=30)),
        record_factory(4, labels=["javascript"], created_at=NOW - timedelta(days=90)),
        record_factory(5, labels=["dependencies"], created_at=None),
    ]

    stale = find_stale_pull_requests(records, "dependencies", timedelta(days=30), now=NOW)

    assert [record.number for record in stale] == [1, 3]


def test_find_stale_pull_requests_empty(record_factory) -> None:
    """Test no records gives no stale PRs."""
    assert find_stale_pull_requests([], "dependencies", timedelta(days=1), now=NOW) == []


@pytest.mark.asyncio
async def test_close_pull_requests(record_factory) -> None:
    """Test each PR is closed and failures do not stop the batch."""
    provider = AsyncMock()
    provider.apply_action.side_effect = [None, RuntimeError("boom"), None]
    records = [record_factory(1), record_factory(2), record_factory(3)]

    batch = await close_pull_requests(provider, "owner", "repo", records)

    assert provider.apply_action.call_count == 3
    for call in provider.apply_action.call_args_list:
        assert call.args[3] == PRAction.CLOSE
    assert batch.mode == "close"
    assert batch.succeeded == 2
    assert batch.failed_prs == [2]
    assert batch.results[1].error == "boom"
