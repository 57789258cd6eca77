"""Deny-list configuration file and per-repository resolution."""

from collections.abc import Iterable
from dataclasses import dataclass
from logging import getLogger
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, SecretStr, ValidationError, field_validator

logger = getLogger(__name__)


class RepositoryPolicy(BaseModel):
    """Deny lists and ignored PRs for one scope (global or a single repository)."""

    model_config = ConfigDict(extra="ignore")

    denied_packages: list[str] = Field(default_factory=list)
    denied_orgs: list[str] = Field(default_factory=list)
    ignored_prs: list[int] = Field(default_factory=list)

    @field_validator("denied_packages", "denied_orgs", "ignored_prs", mode="before")
    @classmethod
    def none_as_empty(cls, v: Any) -> Any:
        """Treat an empty YAML key (None) as an empty list."""
        return [] if v is None else v


class CheckSection(BaseModel):
    """Legacy `check.repositories` list, used when `repositories` is empty."""

    repositories: list[str] = Field(default_factory=list)


class PolicyConfig(BaseModel):
    """Contents of the YAML configuration file."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    github_token: SecretStr | None = Field(default=None, alias="github-token")
    global_policy: RepositoryPolicy = Field(default_factory=RepositoryPolicy, alias="global")
    repositories: dict[str, RepositoryPolicy] = Field(default_factory=dict)
    check: CheckSection = Field(default_factory=CheckSection)

    @field_validator("repositories", mode="before")
    @classmethod
    def normalize_repositories(cls, v: Any) -> Any:
        """Allow repositories listed with no settings (`owner/repo:` with an empty value)."""
        if v is None:
            return {}
        if isinstance(v, dict):
            return {key: value if value is not None else {} for key, value in v.items()}
        return v

    def configured_repositories(self) -> list[str]:
        """Repositories to process when none are given on the command line."""
        if self.repositories:
            return list(self.repositories)
        return list(self.check.repositories)

    def policy_for(self, repo_key: str) -> RepositoryPolicy:
        """Return the repository-specific policy, matching the key case-insensitively."""
        if repo_key in self.repositories:
            return self.repositories[repo_key]
        lowered = repo_key.lower()
        for key, policy in self.repositories.items():
            if key.lower() == lowered:
                return policy
        return RepositoryPolicy()


@dataclass(frozen=True)
class ResolvedConfig:
    """Immutable deny-list configuration for one repository and one run."""

    denied_packages: tuple[str, ...] = ()
    denied_orgs: tuple[str, ...] = ()
    ignored_prs: frozenset[int] = frozenset()


def load_policy_config(path: Path | str, required: bool = False) -> PolicyConfig:
    """Load the YAML configuration file.

    Args:
        path: Path to the configuration file
        required: Raise if the file does not exist instead of returning an empty config

    Returns:
        Parsed configuration

    Raises:
        ValueError: If the file is required but missing, or is not valid configuration
    """
    config_path = Path(path).expanduser()
    if not config_path.exists():
        if required:
            raise ValueError(f"Config file not found: {config_path}")
        logger.debug(f"No config file at {config_path}, using empty configuration")
        return PolicyConfig()

    try:
        with open(config_path, "r") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in config file {config_path}: {e}") from e

    if not isinstance(data, dict):
        raise ValueError(f"Config file {config_path} must contain a mapping at the top level")

    try:
        config = PolicyConfig.model_validate(data)
    except ValidationError as e:
        raise ValueError(f"Invalid config file {config_path}: {e}") from e

    logger.info(f"Loaded config file {config_path}")
    return config


def resolve_config(
    config: PolicyConfig,
    repo_key: str,
    deny_packages: Iterable[str] | None = None,
    deny_orgs: Iterable[str] | None = None,
) -> ResolvedConfig:
    """Merge global, repository-specific and command-line deny lists.

    Command-line entries are appended after the file's lists rather than replacing them.

    Args:
        config: Parsed configuration file
        repo_key: Repository in owner/repo form
        deny_packages: Extra package rules from the command line
        deny_orgs: Extra organizations from the command line

    Returns:
        Deduplicated, immutable configuration for the repository
    """
    repo_policy = config.policy_for(repo_key)

    packages = [*config.global_policy.denied_packages, *repo_policy.denied_packages, *(deny_packages or [])]
    orgs = [*config.global_policy.denied_orgs, *repo_policy.denied_orgs, *(deny_orgs or [])]
    ignored = [*config.global_policy.ignored_prs, *repo_policy.ignored_prs]

    return ResolvedConfig(
        denied_packages=tuple(remove_duplicates(packages)),
        denied_orgs=tuple(remove_duplicates(orgs)),
        ignored_prs=frozenset(ignored),
    )


def remove_duplicates(items: Iterable[str]) -> list[str]:
    """Drop blank and duplicate entries, comparing trimmed lower-case values.

    The first spelling of each entry is kept, with surrounding whitespace removed.
    """
    seen: set[str] = set()
    result: list[str] = []
    for item in items:
        normalized = item.strip().lower()
        if normalized and normalized not in seen:
            seen.add(normalized)
            result.append(item.strip())
    return result


def split_list_option(values: Iterable[str] | None) -> list[str]:
    """Flatten repeated and comma-separated command-line values."""
    result: list[str] = []
    for value in values or []:
        result.extend(part.strip() for part in value.split(",") if part.strip())
    return result
