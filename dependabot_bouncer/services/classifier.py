"""Classification of bot pull requests against deny-list policy and CI state."""

from collections.abc import Iterable
from logging import getLogger

from dependabot_bouncer.conf.policy import ResolvedConfig

from .github.models import CheckEntry, CIState, ClassifiedPR, PullRequestRecord
from .github.pullrequests import is_bot_author
from .policy import deny_reason
from .titles import parse_title

logger = getLogger(__name__)

# Completed outcomes that do not count as a failure
PASSING_OUTCOMES = {"success", "skipped", "neutral"}


def derive_ci_state(checks: Iterable[CheckEntry]) -> CIState:
    """Reduce status and check entries to a single CI state.

    Pending when there are no entries or any entry is still running, failure when any
    completed entry did not pass, success otherwise.
    """
    entries = list(checks)
    if not entries:
        return CIState.PENDING
    if any(not entry.completed for entry in entries):
        return CIState.PENDING
    if any((entry.outcome or "").lower() not in PASSING_OUTCOMES for entry in entries):
        return CIState.FAILURE
    return CIState.SUCCESS


def classify_pull_requests(
    records: Iterable[PullRequestRecord],
    config: ResolvedConfig,
    skip_failing: bool = False,
    bot_login: str = "dependabot",
) -> list[ClassifiedPR]:
    """Filter and annotate pull requests for triage.

    Denied PRs stay in the result with ``skipped`` set so they can be reported; use
    :func:`actionable` for the set that approve and recreate act on.

    Args:
        records: Open pull requests in list order
        config: Resolved deny lists and ignored PRs for the repository
        skip_failing: Drop PRs whose CI state is not success
        bot_login: Login of the automation bot

    Returns:
        Classified pull requests in input order
    """
    classified: list[ClassifiedPR] = []

    for record in records:
        if record.number in config.ignored_prs:
            logger.info(f"Ignoring PR #{record.number}: listed in ignored PRs")
            continue

        if not is_bot_author(record.author_login, bot_login):
            logger.debug(f"Skipping PR #{record.number}: author {record.author_login!r} is not {bot_login}")
            continue

        identity = parse_title(record.title)
        reason = deny_reason(
            identity.package_name,
            identity.organization_name,
            config.denied_packages,
            config.denied_orgs,
        )
        if reason:
            logger.info(
                f"Skipping denied package: {identity.package_name} (org: {identity.organization_name}) "
                f"- PR #{record.number}: {record.title} ({reason})"
            )

        ci_state = derive_ci_state(record.checks)
        if skip_failing and ci_state != CIState.SUCCESS:
            logger.info(f"Skipping PR #{record.number}: CI is {ci_state.value}")
            continue

        classified.append(
            ClassifiedPR(
                record=record,
                identity=identity,
                ci_state=ci_state,
                skipped=reason is not None,
                skip_reason=reason or "",
            )
        )

    return classified


def actionable(classified: Iterable[ClassifiedPR]) -> list[ClassifiedPR]:
    """Return the classified PRs that were not denied by policy."""
    return [pr for pr in classified if not pr.skipped]
