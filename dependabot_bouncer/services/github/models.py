from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class MergeState(str, Enum):
    """Mergeability of a pull request relative to its base branch, as reported by GitHub."""

    CLEAN = "CLEAN"
    BEHIND = "BEHIND"
    DIRTY = "DIRTY"
    BLOCKED = "BLOCKED"
    UNSTABLE = "UNSTABLE"
    DRAFT = "DRAFT"
    UNKNOWN = "UNKNOWN"
    HAS_HOOKS = "HAS_HOOKS"

    @classmethod
    def parse(cls, value: str | None) -> "MergeState":
        """Map a provider value onto a MergeState, falling back to UNKNOWN."""
        if not value:
            return cls.UNKNOWN
        try:
            return cls(value.upper())
        except ValueError:
            return cls.UNKNOWN


class CIState(str, Enum):
    """Reduced summary over all status and check entries of a pull request."""

    SUCCESS = "success"
    FAILURE = "failure"
    PENDING = "pending"


class PRAction(str, Enum):
    """Mutating actions the provider knows how to apply to a pull request."""

    APPROVE = "approve"
    REQUEST_REBASE = "request_rebase"
    REQUEST_RECREATE = "request_recreate"
    ENABLE_AUTO_MERGE = "enable_auto_merge"
    CLOSE = "close"


@dataclass
class CheckEntry:
    """A single commit status or check run."""

    name: str
    completed: bool
    outcome: str | None = None  # Lower-cased conclusion (success, failure, neutral, ...)


@dataclass
class PullRequestRecord:
    """Domain model for an open pull request as listed from GitHub."""

    number: int
    title: str
    url: str
    author_login: str
    merge_state: MergeState = MergeState.UNKNOWN
    checks: list[CheckEntry] = field(default_factory=list)
    node_id: str = ""  # GraphQL node id, required for auto-merge
    labels: list[str] = field(default_factory=list)
    created_at: datetime | None = None
    approved: bool = False  # The authenticated viewer has already approved
    auto_merge_enabled: bool = False


@dataclass(frozen=True)
class PackageIdentity:
    """Package and owning organization extracted from a pull request title."""

    package_name: str = ""
    organization_name: str = ""


@dataclass
class ClassifiedPR:
    """A pull request annotated with its package identity and policy outcome."""

    record: PullRequestRecord
    identity: PackageIdentity
    ci_state: CIState
    skipped: bool = False
    skip_reason: str = ""

    @property
    def number(self) -> int:
        return self.record.number

    @property
    def title(self) -> str:
        return self.record.title


@dataclass
class ActionResult:
    """Outcome of one provider call for one pull request."""

    number: int
    action: PRAction
    success: bool
    error: str | None = None


@dataclass
class BatchResult:
    """Per-repository record of every action attempted during a run."""

    repository: str
    mode: str
    results: list[ActionResult] = field(default_factory=list)
    error: str | None = None  # Set when the repository could not be processed at all

    @property
    def succeeded(self) -> int:
        return sum(1 for result in self.results if result.success)

    @property
    def failed(self) -> int:
        return sum(1 for result in self.results if not result.success)

    @property
    def failed_prs(self) -> list[int]:
        """PR numbers with at least one failed action, in first-failure order."""
        numbers: list[int] = []
        for result in self.results:
            if not result.success and result.number not in numbers:
                numbers.append(result.number)
        return numbers

    @property
    def ok(self) -> bool:
        return self.error is None and self.failed == 0
