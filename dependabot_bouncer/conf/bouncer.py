from pathlib import Path

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings


class BouncerSettings(BaseSettings):
    """Pull request triage settings."""

    config_file: Path = Field(
        default=Path("~/.dependabot-bouncer/config.yaml"),
        validation_alias=AliasChoices("config_file", "dependabot_bouncer_config"),
        description="YAML file holding deny lists, ignored PRs and configured repositories",
    )

    bot_login: str = Field(
        default="dependabot",
        description="Login of the automation bot whose pull requests are processed",
    )

    approve_comment: str | None = Field(
        default=None,
        description="Optional review body posted with each approval",
    )
    rebase_comment: str = Field(
        default="@dependabot rebase",
        description="Comment that asks the bot to rebase a pull request",
    )
    recreate_comment: str = Field(
        default="@dependabot recreate",
        description="Comment that asks the bot to recreate a pull request",
    )
    close_comment: str = Field(
        default="Closed due to inactivity.",
        description="Comment posted before closing a stale pull request",
    )

    auto_merge_method: str = Field(
        default="SQUASH",
        description="Merge method used when enabling auto-merge (MERGE, SQUASH or REBASE)",
    )

    @field_validator("auto_merge_method")
    @classmethod
    def validate_merge_method(cls, v: str) -> str:
        """Validate the merge method is one GitHub accepts."""
        method = v.upper()
        if method not in {"MERGE", "SQUASH", "REBASE"}:
            raise ValueError("auto_merge_method must be one of MERGE, SQUASH or REBASE")
        return method
