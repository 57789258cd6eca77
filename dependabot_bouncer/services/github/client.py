"""Async GitHub API client using httpx."""

import asyncio
import time
from logging import getLogger
from typing import Any

import httpx
from pydantic import SecretStr

logger = getLogger(__name__)


class GitHubAPIClient:
    """Async GitHub API client for making API requests."""

    def __init__(
        self,
        token: SecretStr,
        base_url: str = "https://api.github.com",
        graphql_url: str = "https://api.github.com/graphql",
        timeout: float = 30.0,
        max_retries: int = 3,
    ) -> None:
        """Initialize GitHub API client.

        Args:
            token: GitHub token
            base_url: Base URL for the REST API (default: https://api.github.com)
            graphql_url: GraphQL endpoint (default: https://api.github.com/graphql)
            timeout: Per-request timeout in seconds
            max_retries: Retries on timeouts and rate limiting
        """
        self.token = token.get_secret_value()
        self.base_url = base_url.rstrip("/")
        self.graphql_url = graphql_url
        self.timeout = timeout
        self.max_retries = max_retries
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> "GitHubAPIClient":
        """Enter async context manager."""
        self._client = httpx.AsyncClient(
            headers={
                "Authorization": f"Bearer {self.token}",
                "Accept": "application/vnd.github+json",
                "X-GitHub-Api-Version": "2022-11-28",
            },
            timeout=httpx.Timeout(self.timeout, connect=10.0),
        )
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Exit async context manager."""
        if self._client:
            await self._client.aclose()

    async def _request_with_retry(
        self,
        method: str,
        url: str,
        retry_count: int = 0,
        **kwargs: Any,
    ) -> httpx.Response:
        """Make HTTP request with automatic retry on timeout and rate limiting.

        Args:
            method: HTTP method (GET, POST, etc.)
            url: URL to request
            retry_count: Current retry attempt (internal use)
            **kwargs: Additional arguments to pass to httpx request

        Returns:
            httpx.Response object

        Raises:
            httpx.HTTPStatusError: If the request fails after retries
            httpx.TimeoutException: If request times out after retries
        """
        if not self._client:
            raise RuntimeError("Client not initialized - use async with context manager")

        try:
            response = await self._client.request(method, url, **kwargs)
            response.raise_for_status()
            return response

        except httpx.TimeoutException:
            if retry_count < self.max_retries:
                wait_time = 2**retry_count  # 1, 2, 4 seconds
                logger.warning(
                    f"Timeout on {method} {url} (attempt {retry_count + 1}/{self.max_retries}). "
                    f"Waiting {wait_time} seconds before retry..."
                )
                await asyncio.sleep(wait_time)
                return await self._request_with_retry(method, url, retry_count + 1, **kwargs)
            logger.error(f"{method} {url} failed after {self.max_retries} retries due to timeout")
            raise

        except httpx.HTTPStatusError as e:
            # Handle rate limiting (403 or 429)
            if e.response.status_code in (403, 429) and retry_count < self.max_retries:
                reset_time = e.response.headers.get("X-RateLimit-Reset")
                remaining = e.response.headers.get("X-RateLimit-Remaining", "")
                is_rate_limit = e.response.status_code == 429 or remaining == "0"

                if is_rate_limit:
                    if reset_time:
                        wait_time = min(int(reset_time) - int(time.time()), 60)
                        wait_time = max(wait_time, 1)
                    else:
                        wait_time = 2**retry_count

                    logger.warning(
                        f"Rate limit hit on {method} {url} (attempt {retry_count + 1}/{self.max_retries}). "
                        f"Waiting {wait_time} seconds before retry..."
                    )
                    await asyncio.sleep(wait_time)
                    return await self._request_with_retry(method, url, retry_count + 1, **kwargs)
            raise

    async def execute_graphql(
        self,
        query: str,
        variables: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Execute a GraphQL query against GitHub's GraphQL API.

        Args:
            query: GraphQL query string
            variables: Optional dictionary of GraphQL variables

        Returns:
            GraphQL response data dictionary

        Raises:
            httpx.HTTPStatusError: If the HTTP request fails
            ValueError: If GraphQL response contains errors
        """
        payload: dict[str, Any] = {"query": query}
        if variables:
            payload["variables"] = variables

        response = await self._request_with_retry("POST", self.graphql_url, json=payload)
        result: dict[str, Any] = response.json()

        if result.get("errors"):
            error_messages = [error.get("message", str(error)) for error in result["errors"]]
            raise ValueError(f"GraphQL errors: {'; '.join(error_messages)}")

        return result

    async def create_review(
        self,
        owner: str,
        repo: str,
        number: int,
        event: str,
        body: str | None = None,
    ) -> dict[str, Any]:
        """Submit a review on a pull request.

        Args:
            owner: Repository owner
            repo: Repository name
            number: Pull request number
            event: Review event (APPROVE, COMMENT or REQUEST_CHANGES)
            body: Optional review body

        Returns:
            Review data dictionary

        Raises:
            httpx.HTTPStatusError: If the request fails
        """
        payload: dict[str, Any] = {"event": event}
        if body:
            payload["body"] = body

        response = await self._request_with_retry(
            "POST",
            f"{self.base_url}/repos/{owner}/{repo}/pulls/{number}/reviews",
            json=payload,
        )
        result: dict[str, Any] = response.json()
        return result

    async def create_issue_comment(self, owner: str, repo: str, number: int, body: str) -> dict[str, Any]:
        """Post a comment on a pull request's conversation.

        Raises:
            httpx.HTTPStatusError: If the request fails
        """
        response = await self._request_with_retry(
            "POST",
            f"{self.base_url}/repos/{owner}/{repo}/issues/{number}/comments",
            json={"body": body},
        )
        result: dict[str, Any] = response.json()
        return result

    async def update_pull_request(self, owner: str, repo: str, number: int, **fields: Any) -> dict[str, Any]:
        """Edit a pull request (title, body, state, base).

        Raises:
            httpx.HTTPStatusError: If the request fails
        """
        response = await self._request_with_retry(
            "PATCH",
            f"{self.base_url}/repos/{owner}/{repo}/pulls/{number}",
            json=fields,
        )
        result: dict[str, Any] = response.json()
        return result
