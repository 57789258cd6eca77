import os

# Keep tests away from a developer's real config file BEFORE any dependabot_bouncer imports
# This must happen before settings are loaded
if "DEPENDABOT_BOUNCER_CONFIG" not in os.environ:
    os.environ["DEPENDABOT_BOUNCER_CONFIG"] = "/nonexistent/dependabot-bouncer/config.yaml"

from datetime import datetime, timezone

import pytest
from pydantic import SecretStr

from dependabot_bouncer.conf.bouncer import BouncerSettings
from dependabot_bouncer.services.github.client import GitHubAPIClient
from dependabot_bouncer.services.github.models import CheckEntry, MergeState, PullRequestRecord


@pytest.fixture
def mock_client() -> GitHubAPIClient:
    """Create a test GitHub API client for mocking."""
    return GitHubAPIClient(token=SecretStr("test_token"))


@pytest.fixture
def bouncer_settings() -> BouncerSettings:
    """Triage settings with defaults, independent of the environment."""
    return BouncerSettings(bot_login="dependabot")


def make_record(
    number: int,
    title: str = "Bump github.com/spf13/cobra from 1.6.0 to 1.7.0",
    author_login: str = "dependabot",
    merge_state: MergeState = MergeState.CLEAN,
    checks: list[CheckEntry] | None = None,
    **kwargs,
) -> PullRequestRecord:
    """Build a pull request record with passing CI unless told otherwise."""
    if checks is None:
        checks = [CheckEntry(name="build", completed=True, outcome="success")]
    return PullRequestRecord(
        number=number,
        title=title,
        url=f"https://github.com/owner/repo/pull/{number}",
        author_login=author_login,
        merge_state=merge_state,
        checks=checks,
        node_id=f"PR_node{number}",
        created_at=kwargs.pop("created_at", datetime(2024, 1, 1, tzinfo=timezone.utc)),
        **kwargs,
    )


@pytest.fixture
def record_factory():
    """Factory fixture for pull request records."""
    return make_record
