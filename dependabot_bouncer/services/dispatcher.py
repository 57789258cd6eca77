"""Apply triage actions to classified pull requests."""

from enum import Enum
from logging import getLogger

from .classifier import actionable
from .github.models import ActionResult, BatchResult, ClassifiedPR, MergeState, PRAction
from .github.pullrequests import GitHubPullRequestProvider

logger = getLogger(__name__)


class DispatchMode(str, Enum):
    """Bulk action applied to a repository's pull requests."""

    APPROVE = "approve"
    RECREATE = "recreate"
    CHECK = "check"


def plan_actions(pr: ClassifiedPR, mode: DispatchMode) -> list[PRAction]:
    """Return the ordered actions a mode requires for one pull request.

    Approve recreates conflicted PRs instead of approving them, asks for a rebase of
    out-of-date PRs, then approves and enables auto-merge unless either is already in place.
    """
    if mode == DispatchMode.RECREATE:
        return [PRAction.REQUEST_RECREATE]
    if mode != DispatchMode.APPROVE:
        return []

    if pr.record.merge_state == MergeState.DIRTY:
        return [PRAction.REQUEST_RECREATE]

    actions: list[PRAction] = []
    if pr.record.merge_state == MergeState.BEHIND:
        actions.append(PRAction.REQUEST_REBASE)
    if not pr.record.approved:
        actions.append(PRAction.APPROVE)
    if not pr.record.auto_merge_enabled:
        actions.append(PRAction.ENABLE_AUTO_MERGE)
    return actions


async def dispatch(
    provider: GitHubPullRequestProvider,
    owner: str,
    repo: str,
    classified: list[ClassifiedPR],
    mode: DispatchMode,
) -> BatchResult:
    """Run a mode over classified pull requests, one PR and one action at a time.

    A failing action is logged and recorded; the remaining actions and PRs are still
    processed.

    Args:
        provider: Pull request provider used for every mutating call
        owner: Repository owner
        repo: Repository name
        classified: Output of the classifier; skipped PRs are never acted on
        mode: Approve, recreate or check

    Returns:
        BatchResult with one ActionResult per attempted action
    """
    batch = BatchResult(repository=f"{owner}/{repo}", mode=mode.value)
    if mode == DispatchMode.CHECK:
        return batch

    targets = actionable(classified)
    logger.info(f"Processing {len(targets)} pull requests in {owner}/{repo} ({mode.value})")

    for pr in targets:
        for action in plan_actions(pr, mode):
            try:
                await provider.apply_action(owner, repo, pr.record, action)
            except Exception as e:
                logger.error(f"Failed to {action.value.replace('_', ' ')} PR #{pr.number} in {owner}/{repo}: {e}")
                batch.results.append(ActionResult(number=pr.number, action=action, success=False, error=str(e)))
                continue
            batch.results.append(ActionResult(number=pr.number, action=action, success=True))

    logger.info(f"Finished {mode.value} for {owner}/{repo}: {batch.succeeded} succeeded, {batch.failed} failed")
    return batch
