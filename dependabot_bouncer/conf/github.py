from pydantic import AliasChoices, Field, SecretStr, field_validator
from pydantic_settings import BaseSettings


class GitHubSettings(BaseSettings):
    """GitHub API configuration and authentication settings."""

    # Personal Access Token authentication
    github_token: SecretStr | None = Field(
        default=None,
        validation_alias=AliasChoices("github_token", "dependabot_bouncer_github_token", "user_github_token"),
        description="GitHub token for API authentication (falls back to `gh auth token` when unset)",
    )

    github_api_url: str = Field(
        default="https://api.github.com",
        description="Base URL for the GitHub REST API",
    )
    github_graphql_url: str = Field(
        default="https://api.github.com/graphql",
        description="URL of the GitHub GraphQL endpoint",
    )

    github_request_timeout: float = Field(
        default=30.0,
        description="Timeout in seconds for a single GitHub API request",
    )
    github_max_retries: int = Field(
        default=3,
        description="Retries on timeouts and rate limiting before a request fails",
    )

    @field_validator("github_request_timeout")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        """Validate the request timeout is positive."""
        if v <= 0:
            raise ValueError("GitHub request timeout must be greater than 0")
        return v

    @field_validator("github_max_retries")
    @classmethod
    def validate_retries(cls, v: int) -> int:
        """Validate the retry count is not negative."""
        if v < 0:
            raise ValueError("GitHub max retries must not be negative")
        return v
