"""Finding and closing stale labelled pull requests."""

import re
from collections.abc import Iterable
from datetime import datetime, timedelta, timezone
from logging import getLogger

from .github.models import ActionResult, BatchResult, PRAction, PullRequestRecord
from .github.pullrequests import GitHubPullRequestProvider

logger = getLogger(__name__)

_DURATION_PART = re.compile(r"(\d+)([wdhms])")
_DURATION = re.compile(r"(?:\d+[wdhms])+")

_UNIT_SECONDS = {"w": 7 * 86400, "d": 86400, "h": 3600, "m": 60, "s": 1}


def parse_duration(value: str) -> timedelta:
    """Parse a duration such as "720h", "30d", "2w" or "1d12h".

    Raises:
        ValueError: If the value is malformed or zero
    """
    text = value.strip().lower()
    if not _DURATION.fullmatch(text):
        raise ValueError(f"Invalid duration: {value}. Expected e.g. 720h, 30d, 2w or 1d12h")

    seconds = sum(int(amount) * _UNIT_SECONDS[unit] for amount, unit in _DURATION_PART.findall(text))
    if seconds == 0:
        raise ValueError("Duration must be greater than zero")
    return timedelta(seconds=seconds)


def format_age(age: timedelta) -> str:
    """Format an age in the largest whole unit, e.g. "3 weeks" or "1 year"."""
    days = age.days
    for unit, size in (("year", 365), ("month", 30), ("week", 7), ("day", 1)):
        if days >= size:
            count = days // size
            return f"1 {unit}" if count == 1 else f"{count} {unit}s"

    hours = int(age.total_seconds() // 3600)
    if hours >= 1:
        return "1 hour" if hours == 1 else f"{hours} hours"
    return "less than 1 hour"


def find_stale_pull_requests(
    records: Iterable[PullRequestRecord],
    label: str,
    max_age: timedelta,
    now: datetime | None = None,
) -> list[PullRequestRecord]:
    """Return PRs carrying ``label`` that were created at least ``max_age`` ago.

    Args:
        records: Open pull requests
        label: Label name, compared case-insensitively
        max_age: Minimum age for a PR to count as stale
        now: Reference time (default: current UTC time)

    Returns:
        Stale pull requests in input order
    """
    if now is None:
        now = datetime.now(timezone.utc)
    cutoff = now - max_age
    wanted = label.lower()

    stale: list[PullRequestRecord] = []
    for record in records:
        if not any(existing.lower() == wanted for existing in record.labels):
            continue
        if record.created_at is None or record.created_at > cutoff:
            continue
        stale.append(record)
    return stale


async def close_pull_requests(
    provider: GitHubPullRequestProvider,
    owner: str,
    repo: str,
    records: Iterable[PullRequestRecord],
) -> BatchResult:
    """Close each pull request with a comment, continuing past failures."""
    batch = BatchResult(repository=f"{owner}/{repo}", mode="close")
    for record in records:
        try:
            await provider.apply_action(owner, repo, record, PRAction.CLOSE)
        except Exception as e:
            logger.error(f"Failed to close PR #{record.number} in {owner}/{repo}: {e}")
            batch.results.append(ActionResult(number=record.number, action=PRAction.CLOSE, success=False, error=str(e)))
            continue
        batch.results.append(ActionResult(number=record.number, action=PRAction.CLOSE, success=True))
    return batch
