"""GitHub authentication and client factory."""

import shutil
import subprocess
from logging import getLogger

from pydantic import SecretStr

from dependabot_bouncer.conf.github import GitHubSettings

from .client import GitHubAPIClient

logger = getLogger(__name__)

GH_TOKEN_TIMEOUT = 10  # seconds


def gh_auth_token() -> str | None:
    """Read a token from the GitHub CLI (`gh auth token`), if it is installed and logged in."""
    if shutil.which("gh") is None:
        logger.debug("gh CLI not found, skipping token fallback")
        return None

    try:
        result = subprocess.run(
            ["gh", "auth", "token"],
            capture_output=True,
            text=True,
            timeout=GH_TOKEN_TIMEOUT,
            check=True,
        )
    except (subprocess.CalledProcessError, subprocess.TimeoutExpired, OSError) as e:
        logger.warning(f"gh auth token fallback failed: {e}")
        return None

    token = result.stdout.strip()
    return token or None


class GitHubClient:
    """Factory for creating authenticated GitHub API clients."""

    def __init__(
        self,
        settings: GitHubSettings | None = None,
        token_override: str | None = None,
        config_token: SecretStr | None = None,
    ) -> None:
        """Initialize with settings.

        Args:
            settings: GitHub settings (defaults to global settings)
            token_override: Optional token to override settings
            config_token: Token from the configuration file, used when settings have none
        """
        if settings is None:
            from dependabot_bouncer.settings import settings as global_settings

            settings = global_settings

        self.settings = settings
        self.token_override = token_override
        self.config_token = config_token

    def resolve_token(self) -> SecretStr:
        """Find a token: override, settings, config file, then the gh CLI.

        Raises:
            ValueError: If no token is available
        """
        if self.token_override:
            logger.info("Using token override for authentication")
            return SecretStr(self.token_override)

        if self.settings.github_token and self.settings.github_token.get_secret_value():
            logger.info("Using token from environment for authentication")
            return self.settings.github_token

        if self.config_token and self.config_token.get_secret_value():
            logger.info("Using token from config file for authentication")
            return self.config_token

        token = gh_auth_token()
        if token:
            logger.info("Using token from gh CLI for authentication")
            return SecretStr(token)

        raise ValueError(
            "GitHub token not found. Either run 'gh auth login' or set --token / USER_GITHUB_TOKEN environment variable"
        )

    async def get_authenticated_client(self) -> GitHubAPIClient:
        """Return authenticated GitHub API client.

        Raises:
            ValueError: If no token is available
        """
        return GitHubAPIClient(
            self.resolve_token(),
            base_url=self.settings.github_api_url,
            graphql_url=self.settings.github_graphql_url,
            timeout=self.settings.github_request_timeout,
            max_retries=self.settings.github_max_retries,
        )
