"""Tests for PR classification."""

from dependabot_bouncer.conf.policy import ResolvedConfig
from dependabot_bouncer.services.classifier import actionable, classify_pull_requests, derive_ci_state
from dependabot_bouncer.services.github.models import CheckEntry, CIState


def test_derive_ci_state_no_entries_is_pending() -> None:
    """Test that a PR without any checks is pending."""
    assert derive_ci_state([]) == CIState.PENDING


def test_derive_ci_state_incomplete_entry_is_pending() -> None:
    """Test that any running check makes the PR pending, even next to a failure."""
    checks = [
        CheckEntry(name="lint", completed=True, outcome="failure"),
        CheckEntry(name="test", completed=False),
    ]
    assert derive_ci_state(checks) == CIState.PENDING


def test_derive_ci_state_failure() -> None:
    """Test failure and error outcomes."""
    assert derive_ci_state([CheckEntry("a", True, "success"), CheckEntry("b", True, "failure")]) == CIState.FAILURE
    assert derive_ci_state([CheckEntry("a", True, "error")]) == CIState.FAILURE
    assert derive_ci_state([CheckEntry("a", True, "timed_out")]) == CIState.FAILURE


def test_derive_ci_state_success_ignores_skipped_and_neutral() -> None:
    """Test skipped and neutral outcomes count as passing."""
    checks = [
        CheckEntry("build", True, "success"),
        CheckEntry("optional", True, "skipped"),
        CheckEntry("report", True, "NEUTRAL"),
    ]
    assert derive_ci_state(checks) == CIState.SUCCESS


def test_classify_preserves_order_and_annotates(record_factory) -> None:
    """Test records are classified in input order with parsed identities."""
    records = [
        record_factory(3, title="Bump github.com/spf13/cobra from 1.6.0 to 1.7.0"),
        record_factory(1, title="Bump @datadog/browser-rum from 4.0.0 to 5.0.0"),
        record_factory(2, title="Bump lodash from 4.17.20 to 4.17.21"),
    ]

    classified = classify_pull_requests(records, ResolvedConfig())

    assert [pr.number for pr in classified] == [3, 1, 2]
    assert classified[0].identity.organization_name == "spf13"
    assert classified[1].identity.package_name == "@datadog/browser-rum"
    assert all(pr.ci_state == CIState.SUCCESS for pr in classified)
    assert not any(pr.skipped for pr in classified)


def test_classify_ignored_prs_take_precedence(record_factory) -> None:
    """Test an ignored PR is dropped even though it passes every deny check."""
    records = [record_factory(10), record_factory(11)]
    config = ResolvedConfig(ignored_prs=frozenset({10}))

    classified = classify_pull_requests(records, config)

    assert [pr.number for pr in classified] == [11]


def test_classify_drops_non_bot_authors(record_factory) -> None:
    """Test only the bot's PRs are kept, with REST and GraphQL login spellings both accepted."""
    records = [
        record_factory(1, author_login="dependabot"),
        record_factory(2, author_login="dependabot[bot]"),
        record_factory(3, author_login="octocat"),
        record_factory(4, author_login="renovate[bot]"),
    ]

    classified = classify_pull_requests(records, ResolvedConfig())

    assert [pr.number for pr in classified] == [1, 2]


def test_classify_custom_bot_login(record_factory) -> None:
    """Test another automation bot can be targeted."""
    records = [record_factory(1, author_login="dependabot"), record_factory(2, author_login="renovate[bot]")]

    classified = classify_pull_requests(records, ResolvedConfig(), bot_login="renovate")

    assert [pr.number for pr in classified] == [2]


def test_classify_marks_denied_packages_skipped(record_factory) -> None:
    """Test denied PRs stay visible with a reason but are not actionable."""
    records = [
        record_factory(1, title="Bump github.com/pkg/errors from 0.9.0 to 0.9.1"),
        record_factory(2, title="Bump github.com/DataDog/datadog-go from 1.0.0 to 2.0.0"),
        record_factory(3, title="Bump github.com/spf13/cobra from 1.6.0 to 1.7.0"),
    ]
    config = ResolvedConfig(denied_packages=("github.com/pkg/errors",), denied_orgs=("datadog",))

    classified = classify_pull_requests(records, config)

    assert [pr.number for pr in classified] == [1, 2, 3]
    assert classified[0].skipped
    assert classified[0].skip_reason == "package 'github.com/pkg/errors' is denied"
    assert classified[1].skipped
    assert classified[1].skip_reason == "org 'DataDog' is denied"
    assert not classified[2].skipped
    assert [pr.number for pr in actionable(classified)] == [3]


def test_classify_unparseable_title_proceeds(record_factory) -> None:
    """Test a title with no recognizable package is not denied."""
    records = [record_factory(1, title="Weekly dependency refresh")]
    config = ResolvedConfig(denied_packages=("*",), denied_orgs=("datadog",))

    classified = classify_pull_requests(records, config)

    assert len(classified) == 1
    assert not classified[0].skipped
    assert classified[0].identity.package_name == ""


def test_classify_skip_failing_excludes_pending_and_failing(record_factory) -> None:
    """Test skip_failing keeps only PRs with successful CI."""
    records = [
        record_factory(1),
        record_factory(2, checks=[]),
        record_factory(3, checks=[CheckEntry("build", True, "failure")]),
        record_factory(4, checks=[CheckEntry("build", False)]),
    ]

    gated = classify_pull_requests(records, ResolvedConfig(), skip_failing=True)
    report = classify_pull_requests(records, ResolvedConfig(), skip_failing=False)

    assert [pr.number for pr in gated] == [1]
    assert [pr.number for pr in report] == [1, 2, 3, 4]
    assert [pr.ci_state for pr in report] == [CIState.SUCCESS, CIState.PENDING, CIState.FAILURE, CIState.PENDING]


def test_actionable_filters_skipped(record_factory) -> None:
    """Test actionable drops denied PRs and keeps order."""
    records = [record_factory(1), record_factory(2, title="Bump github.com/pkg/errors from 1 to 2"), record_factory(3)]
    classified = classify_pull_requests(records, ResolvedConfig(denied_packages=("github.com/pkg/errors",)))

    assert [pr.number for pr in actionable(classified)] == [1, 3]
