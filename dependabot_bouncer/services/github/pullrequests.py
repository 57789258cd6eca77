"""Service for listing and acting on open pull requests."""

from datetime import datetime
from logging import getLogger
from typing import Any

from dependabot_bouncer.conf.bouncer import BouncerSettings

from .client import GitHubAPIClient
from .models import CheckEntry, MergeState, PRAction, PullRequestRecord

logger = getLogger(__name__)

OPEN_PULL_REQUESTS_QUERY = """
query($owner: String!, $name: String!, $cursor: String) {
  repository(owner: $owner, name: $name) {
    pullRequests(states: OPEN, first: 100, after: $cursor) {
      pageInfo {
        hasNextPage
        endCursor
      }
      nodes {
        id
        number
        title
        url
        createdAt
        mergeStateStatus
        author {
          login
        }
        labels(first: 50) {
          nodes {
            name
          }
        }
        viewerLatestReview {
          state
        }
        autoMergeRequest {
          enabledAt
        }
        commits(last: 1) {
          nodes {
            commit {
              statusCheckRollup {
                contexts(first: 100) {
                  pageInfo {
                    hasNextPage
                  }
                  nodes {
                    __typename
                    ... on CheckRun {
                      name
                      status
                      conclusion
                    }
                    ... on StatusContext {
                      context
                      state
                    }
                  }
                }
              }
            }
          }
        }
      }
    }
  }
}
"""

ENABLE_AUTO_MERGE_MUTATION = """
mutation($pullRequestId: ID!, $mergeMethod: PullRequestMergeMethod!) {
  enablePullRequestAutoMerge(input: {pullRequestId: $pullRequestId, mergeMethod: $mergeMethod}) {
    pullRequest {
      autoMergeRequest {
        enabledAt
      }
    }
  }
}
"""

# Commit status states that have not produced a result yet
PENDING_STATUS_STATES = {"PENDING", "EXPECTED"}


def is_bot_author(login: str, bot_login: str) -> bool:
    """Check whether a PR author is the automation bot.

    GraphQL reports bots as "dependabot" while REST uses "dependabot[bot]"; both are accepted.
    """
    normalized = login.strip().lower().removeprefix("app/").removesuffix("[bot]")
    expected = bot_login.strip().lower().removeprefix("app/").removesuffix("[bot]")
    return bool(normalized) and normalized == expected


def parse_check_context(node: dict[str, Any]) -> CheckEntry:
    """Convert a statusCheckRollup context (CheckRun or StatusContext) into a CheckEntry."""
    if node.get("__typename") == "StatusContext":
        state = (node.get("state") or "").upper()
        completed = bool(state) and state not in PENDING_STATUS_STATES
        return CheckEntry(
            name=node.get("context") or "",
            completed=completed,
            outcome=state.lower() if completed else None,
        )

    status = (node.get("status") or "").upper()
    conclusion = node.get("conclusion")
    return CheckEntry(
        name=node.get("name") or "",
        completed=status == "COMPLETED",
        outcome=conclusion.lower() if conclusion else None,
    )


def parse_pull_request_node(node: dict[str, Any]) -> PullRequestRecord:
    """Convert a GraphQL pull request node into a PullRequestRecord.

    Raises:
        KeyError: If required fields are missing
    """
    checks: list[CheckEntry] = []
    commit_nodes = (node.get("commits") or {}).get("nodes") or []
    if commit_nodes:
        commit = commit_nodes[-1].get("commit") or {}
        rollup = commit.get("statusCheckRollup") or {}
        contexts = rollup.get("contexts") or {}
        if (contexts.get("pageInfo") or {}).get("hasNextPage"):
            logger.warning(
                f"PR #{node.get('number')} has more than 100 status checks, CI state is based on the first 100"
            )
        checks = [parse_check_context(context) for context in contexts.get("nodes") or [] if context]

    created_at = None
    if node.get("createdAt"):
        created_at = datetime.fromisoformat(node["createdAt"].replace("Z", "+00:00"))

    author = node.get("author") or {}
    labels = [label["name"] for label in (node.get("labels") or {}).get("nodes") or [] if label]
    latest_review = node.get("viewerLatestReview") or {}

    return PullRequestRecord(
        number=node["number"],
        title=node["title"],
        url=node.get("url") or "",
        author_login=author.get("login") or "",
        merge_state=MergeState.parse(node.get("mergeStateStatus")),
        checks=checks,
        node_id=node.get("id") or "",
        labels=labels,
        created_at=created_at,
        approved=latest_review.get("state") == "APPROVED",
        auto_merge_enabled=node.get("autoMergeRequest") is not None,
    )


class GitHubPullRequestProvider:
    """Lists open pull requests and applies triage actions through the GitHub API."""

    def __init__(self, github_client: GitHubAPIClient, settings: BouncerSettings | None = None) -> None:
        """Initialize the provider.

        Args:
            github_client: Authenticated GitHub API client (already entered)
            settings: Triage settings (defaults to global settings)
        """
        if settings is None:
            from dependabot_bouncer.settings import settings as global_settings

            settings = global_settings

        self.github_client = github_client
        self.settings = settings

    async def list_open_pull_requests(self, owner: str, repo: str) -> list[PullRequestRecord]:
        """List every open pull request in a repository, following pagination.

        Raises:
            httpx.HTTPStatusError: If the request fails
            ValueError: If GraphQL reports errors (for example an unknown repository)
        """
        records: list[PullRequestRecord] = []
        cursor: str | None = None

        while True:
            result = await self.github_client.execute_graphql(
                OPEN_PULL_REQUESTS_QUERY,
                {"owner": owner, "name": repo, "cursor": cursor},
            )
            repository = (result.get("data") or {}).get("repository")
            if repository is None:
                raise ValueError(f"Repository not found: {owner}/{repo}")

            connection = repository["pullRequests"]
            for node in connection.get("nodes") or []:
                if not node:
                    continue
                try:
                    records.append(parse_pull_request_node(node))
                except (KeyError, ValueError) as e:
                    logger.warning(f"Failed to parse pull request in {owner}/{repo}: {e}", exc_info=True)

            page_info = connection.get("pageInfo") or {}
            if not page_info.get("hasNextPage"):
                break
            cursor = page_info.get("endCursor")
            if not cursor:
                raise ValueError(f"Missing end cursor while paginating pull requests in {owner}/{repo}")

        logger.debug(f"Found {len(records)} open pull requests in {owner}/{repo}")
        return records

    async def list_open_automation_prs(self, owner: str, repo: str) -> list[PullRequestRecord]:
        """List open pull requests opened by the automation bot."""
        records = await self.list_open_pull_requests(owner, repo)
        bot_records = [record for record in records if is_bot_author(record.author_login, self.settings.bot_login)]
        logger.info(f"Found {len(bot_records)} open {self.settings.bot_login} pull requests in {owner}/{repo}")
        return bot_records

    async def apply_action(self, owner: str, repo: str, pr: PullRequestRecord, action: PRAction) -> None:
        """Apply a single action to a pull request.

        Raises:
            httpx.HTTPError: If the GitHub request fails
            ValueError: If GraphQL reports errors or the action is unknown
        """
        if action == PRAction.APPROVE:
            await self.github_client.create_review(owner, repo, pr.number, "APPROVE", self.settings.approve_comment)
            logger.info(f"Approved PR #{pr.number}: {pr.title}")
        elif action == PRAction.REQUEST_REBASE:
            await self.github_client.create_issue_comment(owner, repo, pr.number, self.settings.rebase_comment)
            logger.info(f"Requested rebase of PR #{pr.number}: {pr.title}")
        elif action == PRAction.REQUEST_RECREATE:
            await self.github_client.create_issue_comment(owner, repo, pr.number, self.settings.recreate_comment)
            logger.info(f"Requested recreation of PR #{pr.number}: {pr.title}")
        elif action == PRAction.ENABLE_AUTO_MERGE:
            if not pr.node_id:
                raise ValueError(f"PR #{pr.number} has no node id, cannot enable auto-merge")
            await self.github_client.execute_graphql(
                ENABLE_AUTO_MERGE_MUTATION,
                {"pullRequestId": pr.node_id, "mergeMethod": self.settings.auto_merge_method},
            )
            logger.info(f"Enabled auto-merge ({self.settings.auto_merge_method.lower()}) on PR #{pr.number}")
        elif action == PRAction.CLOSE:
            await self.github_client.create_issue_comment(owner, repo, pr.number, self.settings.close_comment)
            await self.github_client.update_pull_request(owner, repo, pr.number, state="closed")
            logger.info(f"Closed PR #{pr.number}: {pr.title}")
        else:
            raise ValueError(f"Unsupported action: {action}")
